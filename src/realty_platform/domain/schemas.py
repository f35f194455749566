"""Pydantic v2 schemas for API request/response validation.

The React client speaks camelCase, so every schema aliases its snake_case
fields with ``to_camel``. Responses are serialised by alias.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from realty_platform.domain.enums import (
    Level,
    PropertyStatus,
    QualificationOutcome,
    RiskSeverity,
    SessionStatus,
    TurnRole,
    UserRole,
)


class CamelModel(BaseModel):
    """Base schema accepting both camelCase and snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(CamelModel):
    """Schema for creating a new user."""

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str | None = None
    role: UserRole = UserRole.CLIENT
    credits: int = 0


class UserResponse(CamelModel):
    """Schema for user API responses."""

    id: str
    name: str
    email: str
    phone: str | None = None
    role: str
    credits: int | None = 0
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Developers
# ---------------------------------------------------------------------------


class DeveloperCreate(CamelModel):
    """Schema for registering a developer."""

    name: str = Field(min_length=1)
    company_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str | None = None
    logo: str | None = None
    trust_score: float = Field(0, ge=0, le=100)
    delivery_history: list[dict] = []
    reviews: list[dict] = []
    legal_cases: list[dict] = []
    years_active: int = 0
    projects_completed: int = 0
    average_rating: float = 0
    description: str | None = None


class DeveloperResponse(DeveloperCreate):
    """Schema for developer API responses."""

    id: str
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class RiskFlag(CamelModel):
    """A single risk annotation on a property."""

    type: str
    severity: RiskSeverity
    description: str


class PropertyCreate(CamelModel):
    """Schema for listing a property."""

    title: str = Field(min_length=1)
    title_ar: str | None = None
    description: str | None = None
    description_ar: str | None = None
    city: str = Field(min_length=1)
    city_ar: str | None = None
    property_type: str = Field(min_length=1)
    price: float = Field(ge=0)
    size: float = Field(ge=0)
    bedrooms: int | None = None
    bathrooms: int | None = None
    images: list[str] = []
    developer_id: str
    risk_flags: list[RiskFlag] = []
    features: list[str] = []
    status: PropertyStatus = PropertyStatus.AVAILABLE
    latitude: float | None = None
    longitude: float | None = None


class PropertyResponse(PropertyCreate):
    """Schema for property API responses."""

    id: str
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Buyer profile
# ---------------------------------------------------------------------------


class BuyerProfileUpsert(CamelModel):
    """Schema for creating or updating the buyer profile of a user."""

    user_id: str = Field(min_length=1)
    psychological_profile: dict = {}
    risk_tolerance: Level
    urgency_level: Level
    price_sensitivity: Level
    preferred_cities: list[str] = []
    preferred_types: list[str] = []
    min_price: float | None = None
    max_price: float | None = None
    min_size: float | None = None
    max_size: float | None = None
    must_have_features: list[str] = []


class BuyerProfileResponse(BuyerProfileUpsert):
    """Schema for buyer profile API responses."""

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Property matches
# ---------------------------------------------------------------------------


class PropertyMatchRequest(CamelModel):
    """Request body for computing matches for a user."""

    user_id: str = Field(min_length=1)


class PropertyMatchResponse(CamelModel):
    """Schema for a persisted property match."""

    id: str
    user_id: str
    property_id: str
    match_score: float
    match_reasons: list[str] = []
    viewed: bool | None = False
    interested: bool | None = False
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# AI closer
# ---------------------------------------------------------------------------


class ConversationTurn(CamelModel):
    """One turn of an AI closer conversation."""

    role: TurnRole
    content: str
    timestamp: str


class BudgetRange(CamelModel):
    """Budget bounds extracted from a conversation."""

    min: float | None = None
    max: float | None = None


class ExtractedNeeds(CamelModel):
    """Structured buyer needs extracted by qualification."""

    budget: BudgetRange | None = None
    location: list[str] = []
    property_type: list[str] = []
    urgency: str | None = None
    features: list[str] = []


class QualificationResult(CamelModel):
    """Output of the qualification step."""

    qualification_score: float = Field(ge=0, le=100)
    extracted_needs: ExtractedNeeds = Field(default_factory=ExtractedNeeds)
    outcome: QualificationOutcome


class AiCloserStartRequest(CamelModel):
    """Request body for starting an AI closer session."""

    message: str = Field(min_length=1)
    user_id: str | None = None


class AiCloserStartResponse(CamelModel):
    """Response for a started session: its id and the first two turns."""

    session_id: str
    messages: list[ConversationTurn]


class AiCloserMessageRequest(CamelModel):
    """Request body for continuing an AI closer session."""

    message: str = Field(min_length=1)


class AiCloserMessageResponse(CamelModel):
    """Response for a continued session: the new turns and any qualification."""

    messages: list[ConversationTurn]
    qualification: QualificationResult | None = None


class AiCloserSessionResponse(CamelModel):
    """Full AI closer session record."""

    id: str
    user_id: str
    session_history: list[ConversationTurn] = []
    status: SessionStatus
    outcome: QualificationOutcome | None = None
    qualification_score: float | None = None
    extracted_needs: dict = {}
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Behaviour tracking
# ---------------------------------------------------------------------------


class BehaviorCreate(CamelModel):
    """Analytics payload posted when a user leaves a page."""

    user_id: str | None = None
    session_id: str | None = None
    page: str = Field(min_length=1)
    scroll_depth: float | None = Field(None, ge=0, le=100)
    time_on_page: int | None = Field(None, ge=0)
    clicks: list[dict] = []
    interactions: list[dict] = []
    property_id: str | None = None


class BehaviorResponse(BehaviorCreate):
    """Schema for a stored behaviour tracking row."""

    id: str
    created_at: datetime | None = None

"""SQLAlchemy ORM models for the realty platform.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB)
- DateTime for timestamps (no TIMESTAMPTZ)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from realty_platform.infra.database import Base


def _utcnow() -> datetime:
    # Python-side so flushed rows keep the value (no post-commit reload under asyncio)
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Marketplace user (buyer, agent, admin or developer account)."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default="client")  # client, agent, admin, developer
    credits = Column(Integer, default=0)
    created_at = Column(DateTime, default=_utcnow)

    # Relationships
    buyer_profile = relationship("BuyerProfile", back_populates="user", uselist=False)


# ---------------------------------------------------------------------------
# Supply side
# ---------------------------------------------------------------------------


class Developer(Base):
    """Real estate developer. trust_score is stored, never derived here."""

    __tablename__ = "developers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    company_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(50), nullable=True)
    logo = Column(String(500), nullable=True)
    trust_score = Column(Float, nullable=False, default=0)  # 0-100
    delivery_history = Column(JSON, nullable=False, default=list)  # [{project, date, status}]
    reviews = Column(JSON, nullable=False, default=list)  # [{user, rating, comment, date}]
    legal_cases = Column(JSON, nullable=False, default=list)  # [{case, status, date}]
    years_active = Column(Integer, default=0)
    projects_completed = Column(Integer, default=0)
    average_rating = Column(Float, default=0)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow)

    # Relationships
    properties = relationship("Property", back_populates="developer")


class Property(Base):
    """Listed property. Read-only input to the match scorer."""

    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    title_ar = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    description_ar = Column(Text, nullable=True)
    city = Column(String(100), nullable=False, index=True)
    city_ar = Column(String(100), nullable=True)
    property_type = Column(String(50), nullable=False)  # apartment, villa, office, land
    price = Column(Float, nullable=False)
    size = Column(Float, nullable=False)  # sqm
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    developer_id = Column(String(36), ForeignKey("developers.id"), nullable=False, index=True)
    risk_flags = Column(JSON, nullable=False, default=list)  # [{type, severity, description}]
    features = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="available")  # available, reserved, sold
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, default=_utcnow)

    # Relationships
    developer = relationship("Developer", back_populates="properties")


# ---------------------------------------------------------------------------
# Buyer side
# ---------------------------------------------------------------------------


class BuyerProfile(Base):
    """Stored buyer preferences. One row per user, upserted by user_id."""

    __tablename__ = "buyer_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True, index=True)
    psychological_profile = Column(JSON, nullable=False, default=dict)
    risk_tolerance = Column(String(10), nullable=False)  # low, medium, high
    urgency_level = Column(String(10), nullable=False)
    price_sensitivity = Column(String(10), nullable=False)
    preferred_cities = Column(JSON, nullable=False, default=list)
    preferred_types = Column(JSON, nullable=False, default=list)
    min_price = Column(Float, nullable=True)
    max_price = Column(Float, nullable=True)
    min_size = Column(Float, nullable=True)
    max_size = Column(Float, nullable=True)
    must_have_features = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    user = relationship("User", back_populates="buyer_profile")


class PropertyMatch(Base):
    """Persisted scorer output. Recomputing inserts new rows."""

    __tablename__ = "property_matches"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id"), nullable=False)
    match_score = Column(Float, nullable=False)  # 0-100
    match_reasons = Column(JSON, nullable=False, default=list)
    viewed = Column(Boolean, default=False)
    interested = Column(Boolean, default=False)
    created_at = Column(DateTime, default=_utcnow)


class AiCloserSession(Base):
    """Conversational qualification session with the AI closer.

    ``version`` is bumped on every flush; an UPDATE that finds a different
    version raises ``StaleDataError`` so concurrent turns cannot silently
    overwrite each other's history.
    """

    __tablename__ = "ai_closer_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)  # may be the guest id
    session_history = Column(JSON, nullable=False, default=list)  # [{role, content, timestamp}]
    status = Column(String(20), nullable=False, default="active")  # active, completed, abandoned
    outcome = Column(String(20), nullable=True)  # qualified, not_qualified, needs_followup
    qualification_score = Column(Float, nullable=True)  # 0-100
    extracted_needs = Column(JSON, nullable=False, default=dict)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow)

    __mapper_args__ = {"version_id_col": version}


class BehaviorTracking(Base):
    """Page engagement analytics posted by the client."""

    __tablename__ = "behavior_tracking"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=True, index=True)
    session_id = Column(String(100), nullable=True)  # anonymous tracking
    page = Column(String(500), nullable=False)
    scroll_depth = Column(Float, nullable=True)  # 0-100 %
    time_on_page = Column(Integer, nullable=True)  # seconds
    clicks = Column(JSON, nullable=False, default=list)
    interactions = Column(JSON, nullable=False, default=list)
    property_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=_utcnow)

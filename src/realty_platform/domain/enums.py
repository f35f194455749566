"""Domain enumerations for the realty platform.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role of a platform user."""

    CLIENT = "client"
    AGENT = "agent"
    ADMIN = "admin"
    DEVELOPER = "developer"


class Level(str, Enum):
    """Three-step scale used for risk tolerance, urgency and price sensitivity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PropertyType(str, Enum):
    """Kind of property on the marketplace."""

    APARTMENT = "apartment"
    VILLA = "villa"
    OFFICE = "office"
    LAND = "land"


class PropertyStatus(str, Enum):
    """Sales status of a property."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"


class RiskSeverity(str, Enum):
    """Severity of a risk flag attached to a property."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TurnRole(str, Enum):
    """Speaker of a single AI closer conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


class SessionStatus(str, Enum):
    """Lifecycle status of an AI closer session."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QualificationOutcome(str, Enum):
    """Classification of a buyer after qualification."""

    QUALIFIED = "qualified"
    NOT_QUALIFIED = "not_qualified"
    NEEDS_FOLLOWUP = "needs_followup"

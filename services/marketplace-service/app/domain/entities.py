"""
Domain enumerations for the marketplace.

Values are the exact strings persisted in the database and exposed over the
API, so they must not be renamed.
"""

from enum import Enum


class UserRole(str, Enum):
    """Roles a platform user can hold."""

    INVESTOR = "INVESTOR"
    BUSINESS_OWNER = "BUSINESS_OWNER"
    ADMINISTRATOR = "ADMINISTRATOR"


class BusinessStatus(str, Enum):
    """Listing status of a funding opportunity."""

    OPEN = "OPEN"
    FUNDED = "FUNDED"
    CLOSED = "CLOSED"


class InvestmentStatus(str, Enum):
    """Lifecycle status of an investment."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RiskLevel(str, Enum):
    """Risk rating chosen by the business owner."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class MessageStatus(str, Enum):
    """Read state of a direct message."""

    UNREAD = "UNREAD"
    READ = "READ"

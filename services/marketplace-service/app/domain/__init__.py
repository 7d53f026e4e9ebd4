"""
Domain layer for the marketplace.

Framework-free enums, exceptions, investment lifecycle rules and the
analytics and projection functions.
"""

from .entities import (BusinessStatus, InvestmentStatus, MessageStatus,
                       RiskLevel, UserRole)
from .exceptions import (AuthenticationRequired, BusinessRuleViolation,
                         ConcurrentModificationError, InvalidTransitionError,
                         MarketplaceException, NotFoundException,
                         PermissionDeniedException, ValidationException)

__all__ = [
    "AuthenticationRequired",
    "BusinessRuleViolation",
    "BusinessStatus",
    "ConcurrentModificationError",
    "InvalidTransitionError",
    "InvestmentStatus",
    "MarketplaceException",
    "MessageStatus",
    "NotFoundException",
    "PermissionDeniedException",
    "RiskLevel",
    "UserRole",
    "ValidationException",
]

"""
Custom exceptions for the marketplace domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, database, etc.). The application layer
maps each class to a status code.
"""

from typing import Any, Dict, Optional


class MarketplaceException(Exception):
    """Base exception for all marketplace errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationRequired(MarketplaceException):
    """Raised when a request carries no valid identity."""

    def __init__(self, reason: str = "Authentication required"):
        super().__init__(message=reason)


class PermissionDeniedException(MarketplaceException):
    """Raised when the caller's role or ownership does not allow the action."""

    def __init__(self, action: str, reason: Optional[str] = None):
        message = reason or f"Not authorized to {action}"
        super().__init__(message=message, details={"action": action})


class NotFoundException(MarketplaceException):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Optional[str] = None):
        super().__init__(
            message=f"{entity} not found",
            details={"entity": entity, "id": entity_id},
        )


class ValidationException(MarketplaceException):
    """Raised when input validation fails beyond schema checks."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=reason,
            details={"field": field, "value": str(value)},
        )


class BusinessRuleViolation(MarketplaceException):
    """Raised when an operation would break a marketplace rule."""

    def __init__(self, rule: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, details={"rule": rule, **(details or {})})


class InvalidTransitionError(MarketplaceException):
    """Raised when an investment status change is not allowed."""

    def __init__(self, current: str, target: str):
        if current == target:
            message = f"Investment is already {current}"
        else:
            message = f"Cannot change investment status from {current} to {target}"
        super().__init__(message=message, details={"current": current, "target": target})


class ConcurrentModificationError(MarketplaceException):
    """Raised when a record changed between read and conditional write."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity} was modified by another request, please retry",
            details={"entity": entity, "id": entity_id},
        )

"""HTTP routers for the marketplace API."""

from . import (admin, analytics, calculator, health, investments, messages,
               notifications, opportunities, users)

__all__ = [
    "admin",
    "analytics",
    "calculator",
    "health",
    "investments",
    "messages",
    "notifications",
    "opportunities",
    "users",
]

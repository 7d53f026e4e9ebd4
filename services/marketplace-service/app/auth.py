"""Authentication and authorization."""

from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .domain.entities import UserRole
from .logging_config import get_logger
from .security import decode_access_token
from .services import user_service

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


class CurrentUser:
    """Authenticated user resolved from the bearer token."""

    def __init__(self, id: str, email: str, name: str, role: UserRole):
        self.id = id
        self.email = email
        self.name = name
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMINISTRATOR

    def __repr__(self):
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role.value})"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Get current authenticated user from the bearer token.

    The identity is mirrored into the local users table so that investments,
    messages and notifications can reference it.

    Raises:
        HTTPException: 401 if the token is missing, invalid or incomplete
    """
    if not credentials:
        raise _unauthorized("Authentication required")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub")
    email = payload.get("email")
    try:
        role = UserRole(payload.get("role", UserRole.INVESTOR.value))
    except ValueError:
        raise _unauthorized("Invalid token payload")

    if not user_id or not email:
        raise _unauthorized("Invalid token payload")

    name = payload.get("name") or email.split("@")[0]
    user_service.sync_profile(db, user_id=user_id, email=email, name=name, role=role)

    user = CurrentUser(id=user_id, email=email, name=name, role=role)
    logger.debug("User authenticated", user_id=user.id, role=role.value)
    return user


def require_roles(*roles: UserRole, detail: Optional[str] = None) -> Callable:
    """
    Build a dependency that only admits the given roles.

    Args:
        roles: Roles allowed through
        detail: Error message for everyone else

    Returns:
        FastAPI dependency resolving to the current user
    """
    allowed = set(roles)
    message = detail or "Access denied. {} role required.".format(
        " or ".join(role.value.replace("_", " ").title() for role in roles)
    )

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            logger.info("Role check failed", user_id=user.id, role=user.role.value)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
        return user

    return dependency

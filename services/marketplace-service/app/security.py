"""
Security utilities.

Password hashing for locally created administrator accounts and bearer
token verification for identities issued by the external auth provider.
"""

from typing import Any, Dict, Optional

import bcrypt
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)


# ==================== PASSWORD HASHING ====================


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=settings.PASSWORD_HASH_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error("Password verification failed", error=str(e))
        return False


# ==================== TOKEN VERIFICATION ====================


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a bearer token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload or None if invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except ExpiredSignatureError:
        logger.warning("JWT token expired")
        return None
    except InvalidTokenError as e:
        logger.warning("Invalid JWT token", error=str(e))
        return None

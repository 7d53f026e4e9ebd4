"""User profile mirroring, directory search and administrator accounts."""

import hmac
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import transaction
from ..domain.entities import UserRole
from ..domain.exceptions import (AuthenticationRequired, BusinessRuleViolation,
                                 PermissionDeniedException)
from ..logging_config import get_logger
from ..models import User
from ..security import hash_password

logger = get_logger(__name__)

MIN_SEARCH_LENGTH = 2


def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email."""
    return db.query(User).filter(User.email == email).first()


def sync_profile(db: Session, user_id: str, email: str, name: str, role: UserRole) -> User:
    """
    Mirror an authenticated identity into the users table.

    Inserts the user on first sight and refreshes email, name and role when
    the identity provider reports new values.

    Raises:
        AuthenticationRequired: If the email already belongs to another account
    """
    user = get_user(db, user_id)
    if user and (user.email, user.name, user.role) == (email, name, role.value):
        return user

    try:
        with transaction(db):
            if user is None:
                user = User(id=user_id, email=email, name=name, role=role.value, verified=True)
                db.add(user)
                logger.info("User profile created", user_id=user_id, role=role.value)
            else:
                user.email = email
                user.name = name
                user.role = role.value
                logger.info("User profile refreshed", user_id=user_id, role=role.value)
    except IntegrityError:
        # A concurrent request may have inserted the same identity first
        user = get_user(db, user_id)
        if user is None:
            logger.warning("Profile email already registered", user_id=user_id)
            raise AuthenticationRequired("Account email is registered to another identity")

    return user


def search(db: Session, current_user_id: str, q: Optional[str], limit: int = 10) -> Tuple[List[User], Optional[str]]:
    """
    Find users to message by name or email.

    Returns:
        Tuple of (matching users, hint message when the query is too short)
    """
    term = (q or "").strip()
    if len(term) < MIN_SEARCH_LENGTH:
        return [], f"Please enter at least {MIN_SEARCH_LENGTH} characters to search"

    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    users = (
        db.query(User)
        .filter(User.id != current_user_id)
        .filter(
            or_(
                User.name.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\"),
            )
        )
        .order_by(User.name.asc())
        .limit(limit)
        .all()
    )
    return users, None


def _create_admin_account(db: Session, name: str, email: str, password: str) -> User:
    if get_user_by_email(db, email):
        raise BusinessRuleViolation("unique_email", "User with this email already exists")

    admin = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=UserRole.ADMINISTRATOR.value,
        verified=True,
    )
    db.add(admin)
    return admin


def create_initial_admin(db: Session, name: str, email: str, password: str, secret: str) -> User:
    """
    Bootstrap the first administrator account.

    Raises:
        PermissionDeniedException: If the admin secret key does not match
        BusinessRuleViolation: If an administrator exists or the email is taken
    """
    if not hmac.compare_digest(secret.encode("utf-8"), settings.ADMIN_SECRET_KEY.encode("utf-8")):
        logger.warning("Initial admin creation rejected", reason="invalid_secret")
        raise PermissionDeniedException("create administrator", "Invalid admin secret key")

    with transaction(db):
        existing_admin = (
            db.query(User).filter(User.role == UserRole.ADMINISTRATOR.value).first()
        )
        if existing_admin:
            raise BusinessRuleViolation(
                "single_bootstrap_admin",
                "An administrator account already exists. Use the update endpoint to modify.",
            )
        admin = _create_admin_account(db, name, email, password)

    db.refresh(admin)
    logger.info("Initial administrator created", admin_id=admin.id)
    return admin


def create_admin(db: Session, creator_id: str, name: str, email: str, password: str) -> User:
    """Create an additional administrator on behalf of an existing one."""
    with transaction(db):
        admin = _create_admin_account(db, name, email, password)

    db.refresh(admin)
    logger.info("Administrator created", admin_id=admin.id, created_by=creator_id)
    return admin

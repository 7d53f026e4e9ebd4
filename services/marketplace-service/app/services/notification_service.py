"""Notification records created as side effects of marketplace operations."""

from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from ..database import transaction
from ..domain.exceptions import NotFoundException, PermissionDeniedException
from ..logging_config import get_logger
from ..models import Notification
from ..pagination import paginate

logger = get_logger(__name__)


def notify(db: Session, user_id: str, title: str, content: str) -> Notification:
    """
    Add a notification to the caller's open transaction.

    Nothing is committed here; the notification is persisted together with
    the operation that produced it.
    """
    notification = Notification(user_id=user_id, title=title, content=content)
    db.add(notification)
    logger.debug("Notification queued", user_id=user_id, title=title)
    return notification


def unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )


def list_notifications(
    db: Session, user_id: str, unread_only: bool = False, page: int = 1, limit: int = 20
) -> Tuple[List[Notification], Dict[str, int], int]:
    """
    List a user's notifications, newest first.

    Returns:
        Tuple of (notifications, pagination, unread count)
    """
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))

    items, pagination = paginate(query.order_by(Notification.created_at.desc()), page, limit)
    return items, pagination, unread_count(db, user_id)


def mark_read(db: Session, user_id: str, notification_id: str) -> Notification:
    """
    Mark a single notification read.

    Raises:
        NotFoundException: If the notification does not exist
        PermissionDeniedException: If it belongs to another user
    """
    with transaction(db):
        notification = db.query(Notification).filter(Notification.id == notification_id).first()
        if not notification:
            raise NotFoundException("Notification", notification_id)
        if notification.user_id != user_id:
            raise PermissionDeniedException("update this notification")
        notification.read = True

    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: str) -> int:
    """Mark every unread notification of a user read and return how many changed."""
    with transaction(db):
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )

    logger.info("Notifications marked read", user_id=user_id, count=updated)
    return updated

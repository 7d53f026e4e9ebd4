"""Direct messages between users."""

from typing import Any, Dict, List, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from ..database import transaction
from ..domain.entities import MessageStatus
from ..domain.exceptions import BusinessRuleViolation, NotFoundException
from ..logging_config import get_logger
from ..models import Message, User
from ..pagination import paginate
from . import notification_service

logger = get_logger(__name__)

RECEIVED = "received"
SENT = "sent"


def _with_people(query):
    return query.options(selectinload(Message.sender), selectinload(Message.receiver))


def _between(user_id: str, other_id: str):
    return or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_id),
        and_(Message.sender_id == other_id, Message.receiver_id == user_id),
    )


def _mark_read(db: Session, *criteria) -> int:
    with transaction(db):
        return (
            db.query(Message)
            .filter(Message.status == MessageStatus.UNREAD.value, *criteria)
            .update({Message.status: MessageStatus.READ.value}, synchronize_session=False)
        )


def send(db: Session, sender, receiver_id: str, subject: str, content: str) -> Message:
    """
    Send a message and notify the receiver.

    Raises:
        NotFoundException: If the receiver does not exist
        BusinessRuleViolation: If the sender addresses themselves
    """
    receiver = db.query(User).filter(User.id == receiver_id).first()
    if not receiver:
        raise NotFoundException("Receiver", receiver_id)
    if receiver.id == sender.id:
        raise BusinessRuleViolation("self_message", "Cannot send message to yourself")

    with transaction(db):
        message = Message(
            subject=subject,
            content=content,
            status=MessageStatus.UNREAD.value,
            sender_id=sender.id,
            receiver_id=receiver.id,
        )
        db.add(message)
        notification_service.notify(
            db,
            receiver.id,
            "New Message Received",
            f"You have received a new message from {sender.name}: {subject}",
        )

    logger.info("Message sent", message_id=message.id, sender_id=sender.id, receiver_id=receiver.id)
    return _with_people(db.query(Message)).filter(Message.id == message.id).one()


def list_messages(
    db: Session, user, type: str = RECEIVED, page: int = 1, limit: int = 20
) -> Tuple[List[Message], Dict[str, int]]:
    """
    List received or sent messages, newest first.

    Reading only; callers mark the inbox read with ``mark_received_read``
    once the page has been rendered.
    """
    if type == SENT:
        query = db.query(Message).filter(Message.sender_id == user.id)
    else:
        query = db.query(Message).filter(Message.receiver_id == user.id)

    return paginate(_with_people(query).order_by(Message.created_at.desc()), page, limit)


def mark_received_read(db: Session, user_id: str) -> int:
    """Mark every unread message received by a user read."""
    marked = _mark_read(db, Message.receiver_id == user_id)
    if marked:
        logger.debug("Messages marked read", user_id=user_id, count=marked)
    return marked


def mark_conversation_read(db: Session, user_id: str, other_id: str) -> int:
    """Mark the messages another user sent to ``user_id`` read."""
    return _mark_read(db, Message.sender_id == other_id, Message.receiver_id == user_id)


def conversations(db: Session, user) -> List[Dict[str, Any]]:
    """
    Summarise every conversation the caller takes part in.

    Each entry carries the counterpart, the latest message either way and the
    number of unread messages from the counterpart, most recent first.
    """
    sent_to = {
        row[0]
        for row in db.query(Message.receiver_id).filter(Message.sender_id == user.id).distinct()
    }
    received_from = {
        row[0]
        for row in db.query(Message.sender_id).filter(Message.receiver_id == user.id).distinct()
    }
    counterpart_ids = sent_to | received_from
    if not counterpart_ids:
        return []

    counterparts = db.query(User).filter(User.id.in_(counterpart_ids)).all()

    results = []
    for other in counterparts:
        latest = (
            _with_people(db.query(Message))
            .filter(_between(user.id, other.id))
            .order_by(Message.created_at.desc())
            .first()
        )
        unread = (
            db.query(Message)
            .filter(
                Message.sender_id == other.id,
                Message.receiver_id == user.id,
                Message.status == MessageStatus.UNREAD.value,
            )
            .count()
        )
        results.append({"user": other, "latest_message": latest, "unread_count": unread})

    results.sort(key=lambda conv: conv["latest_message"].created_at, reverse=True)
    return results


def conversation(
    db: Session, user, other_id: str, page: int = 1, limit: int = 50
) -> Tuple[User, List[Message], Dict[str, int]]:
    """
    Chronological thread between the caller and another user.

    Raises:
        NotFoundException: If the other user does not exist
    """
    other = db.query(User).filter(User.id == other_id).first()
    if not other:
        raise NotFoundException("User", other_id)

    items, pagination = paginate(
        _with_people(db.query(Message))
        .filter(_between(user.id, other.id))
        .order_by(Message.created_at.asc()),
        page,
        limit,
    )
    return other, items, pagination


def unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(Message)
        .filter(Message.receiver_id == user_id, Message.status == MessageStatus.UNREAD.value)
        .count()
    )

"""Direct messaging endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..metrics import track_message_sent
from ..schemas import (ConversationListResponse, ConversationThreadResponse,
                       MessageCreate, MessageItem, MessageListResponse,
                       MessageSentResponse, UnreadCountResponse,
                       UserSummary)
from ..services import message_service

router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.post(
    "",
    response_model=MessageSentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
def send_message(
    payload: MessageCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    message = message_service.send(
        db, current_user, payload.receiver_id, payload.subject, payload.content
    )
    track_message_sent()
    return MessageSentResponse(
        message="Message sent successfully", data=MessageItem.model_validate(message)
    )


@router.get("", response_model=MessageListResponse, summary="List messages")
def list_messages(
    type: Literal["received", "sent"] = Query("received"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    List received or sent messages, newest first.

    Listing received messages marks them all read; the response still shows
    which ones were unread.
    """
    items, pagination = message_service.list_messages(db, current_user, type, page, limit)
    response = MessageListResponse(
        messages=[MessageItem.model_validate(m) for m in items], pagination=pagination
    )
    if type == "received":
        message_service.mark_received_read(db, current_user.id)
    return response


@router.get(
    "/conversations", response_model=ConversationListResponse, summary="List conversations"
)
def list_conversations(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"conversations": message_service.conversations(db, current_user)}


@router.get(
    "/conversations/{user_id}",
    response_model=ConversationThreadResponse,
    summary="Get conversation thread",
)
def get_conversation(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Chronological thread with another user; their messages are marked read."""
    other, items, pagination = message_service.conversation(
        db, current_user, user_id, page, limit
    )
    response = ConversationThreadResponse(
        messages=[MessageItem.model_validate(m) for m in items],
        other_user=UserSummary.model_validate(other),
        pagination=pagination,
    )
    message_service.mark_conversation_read(db, current_user.id, other.id)
    return response


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Count unread messages")
def unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UnreadCountResponse(unread_count=message_service.unread_count(db, current_user.id))

"""Notification inbox endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..schemas import MessageResponse, NotificationItem, NotificationListResponse
from ..services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse, summary="List notifications")
def list_notifications(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, pagination, unread = notification_service.list_notifications(
        db, current_user.id, unread_only, page, limit
    )
    return {"notifications": items, "unread_count": unread, "pagination": pagination}


@router.patch(
    "/{notification_id}/read", response_model=NotificationItem, summary="Mark notification read"
)
def mark_notification_read(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return notification_service.mark_read(db, current_user.id, notification_id)


@router.post("/read-all", response_model=MessageResponse, summary="Mark all notifications read")
def mark_all_notifications_read(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = notification_service.mark_all_read(db, current_user.id)
    return MessageResponse(message=f"{updated} notifications marked as read")

"""User directory endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..schemas import UserSearchResponse
from ..services import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/search", response_model=UserSearchResponse, summary="Search users to message")
def search_users(
    q: str = Query("", description="Name or email fragment, at least 2 characters"),
    limit: int = Query(10, ge=1, le=50),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    users, hint = user_service.search(db, current_user.id, q, limit)
    return {"users": users, "total": len(users), "message": hint}

"""
Investment endpoints.

Investors submit and cancel investments; business owners and administrators
review them, move them through their lifecycle and record returns.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..domain.entities import InvestmentStatus
from ..logging_config import get_logger
from ..metrics import track_investment_created, track_return_recorded
from ..schemas import (InvestmentActionResponse, InvestmentCreate,
                       InvestmentDetail, InvestmentDetailResponse,
                       InvestmentItem, InvestmentListResponse,
                       InvestmentStatusUpdate, ReturnActionResponse,
                       ReturnCreate, ReturnItem)
from ..services import investment_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/investments", tags=["Investments"])


@router.post(
    "",
    response_model=InvestmentActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an investment",
)
def create_investment(
    payload: InvestmentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Commit capital to an open opportunity.

    The investment starts PENDING and immediately counts toward the
    opportunity's raised capital.

    Raises:
        HTTPException: 403 for non-investors, 404 for an unknown business,
            400 when the amount or business state does not allow it
    """
    investment = investment_service.create_investment(
        db, current_user, payload.business_id, payload.amount
    )
    track_investment_created(investment.business.industry, investment.amount)
    return InvestmentActionResponse(
        message="Investment submitted successfully",
        investment=InvestmentItem.model_validate(investment),
    )


@router.get("", response_model=InvestmentListResponse, summary="List my investments")
def list_my_investments(
    status: Optional[InvestmentStatus] = Query(None, description="Filter by status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, pagination, summary = investment_service.list_investor_investments(
        db, current_user, status, page, limit
    )
    return {"investments": items, "pagination": pagination, "summary": summary}


@router.get(
    "/business",
    response_model=InvestmentListResponse,
    summary="List investments into my businesses",
)
def list_business_investments(
    status: Optional[InvestmentStatus] = Query(None, description="Filter by status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Investments into the caller's opportunities.

    Administrators see every investment on the platform.
    """
    items, pagination, summary = investment_service.list_business_investments(
        db, current_user, status, page, limit
    )
    return {"investments": items, "pagination": pagination, "summary": summary}


@router.get(
    "/{investment_id}", response_model=InvestmentDetailResponse, summary="Get investment"
)
def get_investment(
    investment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    investment = investment_service.get_investment(db, current_user, investment_id)
    detail = InvestmentDetail(
        **InvestmentItem.model_validate(investment).model_dump(),
        performance=investment_service.investment_performance(investment),
    )
    return InvestmentDetailResponse(investment=detail)


@router.patch(
    "/{investment_id}",
    response_model=InvestmentActionResponse,
    summary="Update investment status",
)
def update_investment_status(
    investment_id: str,
    payload: InvestmentStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Approve, complete or cancel an investment.

    Only the owner of the business or an administrator may do this. The
    investor is notified, with the optional note appended.

    Raises:
        HTTPException: 400 for a disallowed transition, 409 when another
            request changed the status first
    """
    investment = investment_service.update_status(
        db, current_user, investment_id, payload.status, payload.note
    )
    return InvestmentActionResponse(
        message="Investment status updated successfully",
        investment=InvestmentItem.model_validate(investment),
    )


@router.delete(
    "/{investment_id}",
    response_model=InvestmentActionResponse,
    summary="Cancel a pending investment",
)
def cancel_investment(
    investment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    investment = investment_service.cancel_investment(db, current_user, investment_id)
    return InvestmentActionResponse(
        message="Investment cancelled successfully",
        investment=InvestmentItem.model_validate(investment),
    )


@router.post(
    "/{investment_id}/returns",
    response_model=ReturnActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a return",
)
def record_return(
    investment_id: str,
    payload: ReturnCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    investment_return = investment_service.record_return(
        db, current_user, investment_id, payload.amount, payload.description
    )
    track_return_recorded()
    return ReturnActionResponse(
        message="Return recorded successfully",
        investment_return=ReturnItem.model_validate(investment_return),
    )

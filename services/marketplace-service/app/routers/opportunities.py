"""Funding opportunity endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..metrics import track_opportunity_created
from ..schemas import (OpportunityActionResponse, OpportunityCreate,
                       OpportunityDetailResponse, OpportunityItem,
                       OpportunityListResponse, OpportunityStatusUpdate,
                       OwnedOpportunityListResponse)
from ..services import opportunity_service

router = APIRouter(prefix="/api/opportunities", tags=["Opportunities"])


@router.get("", response_model=OpportunityListResponse, summary="Browse open opportunities")
def list_opportunities(
    industry: Optional[str] = Query(None, description="Industry, or 'all'"),
    risk_level: Optional[str] = Query(None, description="Low, Medium, High, or 'all'"),
    min_amount: Optional[float] = Query(None, ge=0, description="Lower bound on the minimum ticket"),
    max_amount: Optional[float] = Query(None, ge=0, description="Upper bound on the target capital"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Public listing of opportunities accepting investments, newest first.

    No authentication is required.
    """
    businesses, pagination = opportunity_service.list_open(
        db, industry, risk_level, min_amount, max_amount, page, limit
    )
    return {"businesses": businesses, "pagination": pagination}


@router.post(
    "",
    response_model=OpportunityActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List a new opportunity",
)
def create_opportunity(
    payload: OpportunityCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    business = opportunity_service.create_opportunity(db, current_user, payload.model_dump())
    track_opportunity_created(business.industry, business.risk_level)
    return OpportunityActionResponse(
        message="Opportunity created successfully",
        business=OpportunityItem.model_validate(business),
    )


@router.get(
    "/business",
    response_model=OwnedOpportunityListResponse,
    summary="List my opportunities",
)
def list_owned_opportunities(
    status: Optional[str] = Query(None, description="OPEN, FUNDED, CLOSED or ALL"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    The caller's opportunities with their investments and a summary.

    Administrators see every opportunity.
    """
    items, pagination, summary = opportunity_service.list_owned(
        db, current_user, status, page, limit
    )
    return {"opportunities": items, "pagination": pagination, "summary": summary}


@router.get(
    "/{business_id}", response_model=OpportunityDetailResponse, summary="Get opportunity"
)
def get_opportunity(business_id: str, db: Session = Depends(get_db)):
    return {"business": opportunity_service.get_opportunity(db, business_id)}


@router.patch(
    "/{business_id}/status",
    response_model=OpportunityActionResponse,
    summary="Close or reopen an opportunity",
)
def update_opportunity_status(
    business_id: str,
    payload: OpportunityStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    business = opportunity_service.update_status(db, current_user, business_id, payload.status)
    return OpportunityActionResponse(
        message="Opportunity status updated successfully",
        business=OpportunityItem.model_validate(business),
    )

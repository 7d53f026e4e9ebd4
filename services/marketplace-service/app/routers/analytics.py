"""
Dashboard analytics endpoints.

Each dashboard is restricted to one role: investors see their portfolio,
business owners their funding, administrators the whole platform.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import CurrentUser, require_roles
from ..database import get_db
from ..domain.entities import UserRole
from ..services import analytics_service

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])

investor_only = require_roles(
    UserRole.INVESTOR, detail="Access denied. Investor role required."
)
business_owner_only = require_roles(
    UserRole.BUSINESS_OWNER, detail="Access denied. Business owner role required."
)
administrator_only = require_roles(
    UserRole.ADMINISTRATOR, detail="Access denied. Administrator role required."
)


@router.get("/portfolio", summary="Investor portfolio analytics")
def portfolio_analytics(
    time_range: int = Query(12, ge=1, le=120, description="Months of history"),
    include_returns: bool = Query(False, description="Count realised returns"),
    current_user: CurrentUser = Depends(investor_only),
    db: Session = Depends(get_db),
):
    """
    Portfolio metrics, sector breakdown and monthly time series.

    Cancelled investments are excluded.
    """
    data = analytics_service.portfolio(db, current_user, time_range, include_returns)
    return {"success": True, "data": data}


@router.get("/business", summary="Business owner funding analytics")
def business_analytics(
    current_user: CurrentUser = Depends(business_owner_only),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": analytics_service.business(db, current_user)}


@router.get("/platform", summary="Platform analytics")
def platform_analytics(
    current_user: CurrentUser = Depends(administrator_only),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": analytics_service.platform(db, current_user)}

"""
Dashboard analytics.

Loads the records a dashboard needs, maps them onto the plain records the
domain analytics functions work on, and assembles the response payloads.
"""

from collections import Counter
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from ..domain import analytics
from ..domain.analytics import (FundingRecord, InvestmentRecord,
                                OpportunityRecord, ReturnRecord, UserRecord)
from ..domain.entities import BusinessStatus, InvestmentStatus, UserRole
from ..domain.exceptions import PermissionDeniedException
from ..logging_config import get_logger
from ..models import Business, Investment, User, utcnow

logger = get_logger(__name__)

RECENT_ACTIVITY_LIMIT = 10

ROLE_LABELS = {
    UserRole.INVESTOR: "Investor",
    UserRole.BUSINESS_OWNER: "Business owner",
    UserRole.ADMINISTRATOR: "Administrator",
}


def _require_role(user, role: UserRole, label: str) -> None:
    if user.role != role:
        raise PermissionDeniedException(
            f"view {label} analytics", f"Access denied. {ROLE_LABELS[role]} role required."
        )


def _to_investment_record(investment: Investment, include_returns: bool) -> InvestmentRecord:
    returns = []
    if include_returns:
        returns = [
            ReturnRecord(
                id=ret.id,
                amount=ret.amount,
                date=ret.created_at,
                type=ret.description or "Investment Return",
            )
            for ret in investment.returns
        ]
    return InvestmentRecord(
        id=investment.id,
        amount=investment.amount,
        current_value=investment.amount,
        investment_date=investment.created_at,
        status=investment.status,
        title=investment.business.title,
        sector=investment.business.industry or "Unspecified",
        returns=returns,
    )


def _to_funding_record(investment: Investment, sector: Optional[str] = None) -> FundingRecord:
    return FundingRecord(
        id=investment.id,
        amount=investment.amount,
        status=investment.status,
        created_at=investment.created_at,
        investor_id=investment.investor_id,
        sector=sector or "Unspecified",
        returns_total=investment.total_returns,
    )


def _to_opportunity_record(business: Business) -> OpportunityRecord:
    return OpportunityRecord(
        id=business.id,
        title=business.title,
        target_capital=business.target_capital,
        current_raised=business.current_raised,
        status=business.status,
        created_at=business.created_at,
        industry=business.industry or "Unspecified",
    )


# ==================== PORTFOLIO ====================


def portfolio(
    db: Session,
    user,
    months: int = 12,
    include_returns: bool = False,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Portfolio analytics for an investor.

    Cancelled investments are left out. Holdings are valued at their
    invested amount; realised returns are only counted when
    ``include_returns`` is set.
    """
    _require_role(user, UserRole.INVESTOR, "portfolio")

    investments = (
        db.query(Investment)
        .options(selectinload(Investment.business), selectinload(Investment.returns))
        .filter(
            Investment.investor_id == user.id,
            Investment.status != InvestmentStatus.CANCELLED.value,
        )
        .order_by(Investment.created_at.desc())
        .all()
    )
    records = [_to_investment_record(inv, include_returns) for inv in investments]

    metrics = analytics.calculate_portfolio_metrics(records, now=now)
    sectors = analytics.analyze_by_sector(records)
    time_series = analytics.generate_time_series(records, months=months, now=now)

    logger.debug("Portfolio analytics computed", user_id=user.id, investments=len(records))

    return {
        "portfolio_metrics": asdict(metrics),
        "sector_analysis": [asdict(sector) for sector in sectors],
        "time_series_data": [asdict(point) for point in time_series],
        "investments": [asdict(record) for record in records],
        "summary": {
            "total_investments": len(records),
            "active_investments": sum(
                1 for inv in investments if inv.status == InvestmentStatus.ACTIVE.value
            ),
            "total_invested": metrics.total_invested,
            "total_current_value": metrics.total_current_value,
            "total_returns": metrics.total_returns,
        },
    }


# ==================== BUSINESS ====================


def business(db: Session, user, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Funding analytics across a business owner's listings."""
    _require_role(user, UserRole.BUSINESS_OWNER, "business")

    opportunities = (
        db.query(Business)
        .options(
            selectinload(Business.investments).selectinload(Investment.investor),
            selectinload(Business.investments).selectinload(Investment.returns),
        )
        .filter(Business.owner_id == user.id)
        .order_by(Business.created_at.desc())
        .all()
    )

    live_investments: List[Investment] = [
        inv
        for opp in opportunities
        for inv in opp.investments
        if inv.status != InvestmentStatus.CANCELLED.value
    ]
    live_investments.sort(key=lambda inv: inv.created_at, reverse=True)

    funding = [_to_funding_record(inv, inv.business.industry) for inv in live_investments]
    metrics = analytics.calculate_business_metrics(
        [_to_opportunity_record(opp) for opp in opportunities], funding, now=now
    )
    trends = analytics.calculate_monthly_investment_trends(funding)

    return {
        "business_metrics": asdict(metrics),
        "opportunities": [
            {
                "id": opp.id,
                "title": opp.title,
                "target_capital": opp.target_capital,
                "current_raised": opp.current_raised,
                "status": opp.status,
                "created_at": opp.created_at,
                "investment_count": opp.investment_count,
            }
            for opp in opportunities
        ],
        "summary": {
            "total_opportunities": len(opportunities),
            "total_capital_raised": metrics.total_capital_raised,
            "total_target_capital": sum(opp.target_capital for opp in opportunities),
            "total_investors": metrics.investor_count,
            "pending_investments": sum(
                1 for inv in live_investments if inv.status == InvestmentStatus.PENDING.value
            ),
            "active_opportunities": sum(
                1 for opp in opportunities if opp.status == BusinessStatus.OPEN.value
            ),
        },
        "recent_investments": [
            {
                "id": inv.id,
                "amount": inv.amount,
                "status": inv.status,
                "created_at": inv.created_at,
                "investor": {
                    "id": inv.investor.id,
                    "name": inv.investor.name,
                    "email": inv.investor.email,
                },
                "business": {"title": inv.business.title, "industry": inv.business.industry},
            }
            for inv in live_investments[:RECENT_ACTIVITY_LIMIT]
        ],
        "monthly_trends": [asdict(trend) for trend in trends],
    }


# ==================== PLATFORM ====================


def platform(db: Session, user, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Platform-wide analytics for administrators.

    Every investment counts here, cancelled ones included, so that the
    success rate has the full denominator.
    """
    _require_role(user, UserRole.ADMINISTRATOR, "platform")
    reference = now or utcnow()

    users = db.query(User).order_by(User.created_at.desc()).all()
    businesses = db.query(Business).order_by(Business.created_at.desc()).all()
    investments = (
        db.query(Investment)
        .options(selectinload(Investment.business), selectinload(Investment.returns))
        .order_by(Investment.created_at.desc())
        .all()
    )

    user_records = [UserRecord(id=u.id, role=u.role, created_at=u.created_at) for u in users]
    business_records = [_to_opportunity_record(biz) for biz in businesses]
    funding = [_to_funding_record(inv, inv.business.industry) for inv in investments]

    metrics = analytics.calculate_platform_metrics(
        user_records, business_records, funding, now=reference
    )

    last_month = analytics.month_start(reference, 1)
    last_year = analytics.month_start(reference, 12)

    def created_since(rows, since: datetime) -> int:
        return sum(1 for row in rows if row.created_at >= since)

    return {
        "platform_metrics": asdict(metrics),
        "overview": {
            "total_users": len(users),
            "total_businesses": len(businesses),
            "total_investments": len(investments),
            "total_volume": metrics.total_volume,
        },
        "distributions": {
            "users_by_role": dict(Counter(u.role for u in users)),
            "businesses_by_industry": dict(Counter(b.industry for b in businesses)),
            "investments_by_status": dict(Counter(i.status for i in investments)),
        },
        "growth": {
            "monthly": {
                "new_users": created_since(users, last_month),
                "new_businesses": created_since(businesses, last_month),
                "new_investments": created_since(investments, last_month),
            },
            "yearly": {
                "new_users": created_since(users, last_year),
                "new_businesses": created_since(businesses, last_year),
                "new_investments": created_since(investments, last_year),
            },
        },
        "recent_activity": {
            "users": [
                {"id": u.id, "role": u.role, "created_at": u.created_at}
                for u in users[:RECENT_ACTIVITY_LIMIT]
            ],
            "businesses": [
                {
                    "id": b.id,
                    "title": b.title,
                    "industry": b.industry,
                    "target_capital": b.target_capital,
                    "current_raised": b.current_raised,
                    "status": b.status,
                    "created_at": b.created_at,
                }
                for b in businesses[:RECENT_ACTIVITY_LIMIT]
            ],
            "investments": [
                {"id": i.id, "amount": i.amount, "status": i.status, "created_at": i.created_at}
                for i in investments[:RECENT_ACTIVITY_LIMIT]
            ],
        },
    }

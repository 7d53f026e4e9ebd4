"""Funding opportunity listings."""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session, selectinload

from ..database import transaction
from ..domain.entities import BusinessStatus, InvestmentStatus, RiskLevel, UserRole
from ..domain.exceptions import (BusinessRuleViolation, NotFoundException,
                                 PermissionDeniedException, ValidationException)
from ..logging_config import get_logger
from ..models import Business, Investment
from ..pagination import paginate
from . import notification_service

logger = get_logger(__name__)

ALL_FILTER = "all"


def _with_details(query):
    return query.options(
        selectinload(Business.owner),
        selectinload(Business.investments).selectinload(Investment.investor),
    )


def list_open(
    db: Session,
    industry: Optional[str] = None,
    risk_level: Optional[str] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    page: int = 1,
    limit: int = 12,
) -> Tuple[List[Business], Dict[str, int]]:
    """
    List businesses currently accepting investments, newest first.

    ``industry`` and ``risk_level`` accept ``all`` to disable the filter.
    ``min_amount`` bounds the minimum ticket from below and ``max_amount``
    bounds the target capital from above.
    """
    query = db.query(Business).filter(Business.status == BusinessStatus.OPEN.value)

    if industry and industry.lower() != ALL_FILTER:
        query = query.filter(Business.industry == industry)
    if risk_level and risk_level.lower() != ALL_FILTER:
        query = query.filter(Business.risk_level == risk_level)
    if min_amount is not None:
        query = query.filter(Business.minimum_investment >= min_amount)
    if max_amount is not None:
        query = query.filter(Business.target_capital <= max_amount)

    return paginate(_with_details(query).order_by(Business.created_at.desc()), page, limit)


def get_opportunity(db: Session, business_id: str) -> Business:
    business = _with_details(db.query(Business)).filter(Business.id == business_id).first()
    if not business:
        raise NotFoundException("Business opportunity", business_id)
    return business


def create_opportunity(db: Session, owner, data: Dict[str, Any]) -> Business:
    """
    List a new funding opportunity.

    Args:
        db: Database session
        owner: Authenticated user, must hold the BUSINESS_OWNER role
        data: Validated opportunity fields

    Raises:
        PermissionDeniedException: If the caller is not a business owner
        ValidationException: If the minimum ticket exceeds the target
    """
    if owner.role != UserRole.BUSINESS_OWNER:
        raise PermissionDeniedException(
            "create opportunities", "Only business owners can create opportunities"
        )

    if data["minimum_investment"] > data["target_capital"]:
        raise ValidationException(
            "minimum_investment",
            data["minimum_investment"],
            "Minimum investment cannot be greater than target capital",
        )

    with transaction(db):
        business = Business(
            title=data["title"],
            description=data["description"],
            detailed_plan=data["detailed_plan"],
            target_capital=data["target_capital"],
            minimum_investment=data["minimum_investment"],
            expected_roi=data["expected_roi"],
            timeline=data["timeline"],
            industry=data["industry"],
            risk_level=RiskLevel(data["risk_level"]).value,
            status=BusinessStatus.OPEN.value,
            current_raised=0.0,
            owner_id=owner.id,
        )
        db.add(business)

        notification_service.notify(
            db,
            owner.id,
            "Opportunity Created",
            f'Your investment opportunity "{business.title}" has been successfully '
            "created and is now live for investors.",
        )

    logger.info("Opportunity created", business_id=business.id, owner_id=owner.id)
    return get_opportunity(db, business.id)


def _owned_summary(db: Session, query) -> Dict[str, Any]:
    target_total, raised_total = query.with_entities(
        func.coalesce(func.sum(Business.target_capital), 0.0),
        func.coalesce(func.sum(Business.current_raised), 0.0),
    ).one()
    total = query.count()
    active = query.filter(Business.status == BusinessStatus.OPEN.value).count()

    business_ids = query.with_entities(Business.id).subquery()
    investments = db.query(Investment).filter(
        Investment.business_id.in_(select(business_ids.c.id))
    )
    investor_count = investments.with_entities(
        func.count(distinct(Investment.investor_id))
    ).scalar()
    pending = investments.filter(Investment.status == InvestmentStatus.PENDING.value).count()

    return {
        "total_opportunities": total,
        "total_target_capital": float(target_total),
        "total_raised": float(raised_total),
        "active_opportunities": active,
        "total_investors": investor_count or 0,
        "pending_investments": pending,
    }


def list_owned(
    db: Session, user, status: Optional[str] = None, page: int = 1, limit: int = 10
) -> Tuple[List[Business], Dict[str, int], Dict[str, Any]]:
    """
    List the caller's opportunities with their investments.

    Administrators see every listing. ``status=ALL`` disables the filter.

    Returns:
        Tuple of (opportunities, pagination, summary over the filtered set)
    """
    if user.role not in (UserRole.BUSINESS_OWNER, UserRole.ADMINISTRATOR):
        raise PermissionDeniedException(
            "view business opportunities",
            "Access denied. Business owner or administrator role required.",
        )

    query = db.query(Business)
    if user.role == UserRole.BUSINESS_OWNER:
        query = query.filter(Business.owner_id == user.id)

    if status and status.lower() != ALL_FILTER:
        try:
            status_value = BusinessStatus(status.upper()).value
        except ValueError:
            raise ValidationException("status", status, f"Unknown opportunity status: {status}")
        query = query.filter(Business.status == status_value)

    summary = _owned_summary(db, query)
    items, pagination = paginate(
        _with_details(query).order_by(Business.created_at.desc()), page, limit
    )
    return items, pagination, summary


def update_status(db: Session, user, business_id: str, status: BusinessStatus) -> Business:
    """
    Close a listing to new investments or reopen it.

    Raises:
        NotFoundException: If the business does not exist
        PermissionDeniedException: Unless the caller owns it or is an administrator
        BusinessRuleViolation: If the listing already has that status, or a
            fully raised listing would be reopened
    """
    target = BusinessStatus(status)
    if target == BusinessStatus.FUNDED:
        raise ValidationException("status", target.value, "Funded status is set automatically")

    with transaction(db):
        business = (
            db.query(Business)
            .filter(Business.id == business_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not business:
            raise NotFoundException("Business opportunity", business_id)
        if not (user.id == business.owner_id or user.is_admin):
            raise PermissionDeniedException("update this opportunity")

        previous = business.status
        if previous == target.value:
            raise BusinessRuleViolation(
                "status_change", f"Opportunity is already {target.value}"
            )
        if target == BusinessStatus.OPEN and business.current_raised >= business.target_capital:
            raise BusinessRuleViolation(
                "capacity", "Cannot reopen an opportunity that has reached its target"
            )

        business.status = target.value
        notification_service.notify(
            db,
            business.owner_id,
            "Opportunity Status Updated",
            f'Your opportunity "{business.title}" is now {target.value.lower()}',
        )

    logger.info(
        "Opportunity status updated",
        business_id=business_id,
        previous=previous,
        status=target.value,
        updated_by=user.id,
    )
    return get_opportunity(db, business_id)

"""
Investment operations.

Creating, approving, completing and cancelling investments keeps each
business's raised capital in step with the investments that hold capacity.
Every operation runs in one transaction: the business row is locked while
capacity is checked, and status changes are compare-and-set so concurrent
requests cannot both move the same investment.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Query, Session, selectinload

from ..database import transaction
from ..domain.analytics import format_currency
from ..domain.entities import BusinessStatus, InvestmentStatus, UserRole
from ..domain.exceptions import (BusinessRuleViolation,
                                 ConcurrentModificationError,
                                 NotFoundException, PermissionDeniedException,
                                 ValidationException)
from ..domain.lifecycle import (OPEN_STATUSES, ensure_transition,
                                releases_capacity, status_message)
from ..logging_config import get_logger
from ..metrics import track_investment_transition
from ..models import Business, Investment, Return, utcnow
from ..pagination import paginate
from . import notification_service

logger = get_logger(__name__)

RETURN_ELIGIBLE_STATUSES = {InvestmentStatus.ACTIVE.value, InvestmentStatus.COMPLETED.value}


def _with_details(query: Query) -> Query:
    return query.options(
        selectinload(Investment.investor),
        selectinload(Investment.business).selectinload(Business.owner),
        selectinload(Investment.returns),
    )


def _get_investment(db: Session, investment_id: str) -> Investment:
    investment = (
        _with_details(db.query(Investment)).filter(Investment.id == investment_id).first()
    )
    if not investment:
        raise NotFoundException("Investment", investment_id)
    return investment


def _lock_business(db: Session, business_id: str) -> Optional[Business]:
    """Load a business with its row locked for the rest of the transaction."""
    return (
        db.query(Business)
        .filter(Business.id == business_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _release_capacity(db: Session, business_id: str, amount: float) -> Business:
    business = _lock_business(db, business_id)
    business.current_raised = max(0.0, business.current_raised - amount)
    if (
        business.status == BusinessStatus.FUNDED.value
        and business.current_raised < business.target_capital
    ):
        business.status = BusinessStatus.OPEN.value
        logger.info("Business reopened after cancellation", business_id=business.id)
    return business


def _compare_and_set_status(
    db: Session, investment: Investment, observed: InvestmentStatus, target: InvestmentStatus
) -> None:
    updated = (
        db.query(Investment)
        .filter(Investment.id == investment.id, Investment.status == observed.value)
        .update(
            {Investment.status: target.value, Investment.updated_at: utcnow()},
            synchronize_session=False,
        )
    )
    if updated == 0:
        logger.warning(
            "Investment status changed concurrently",
            investment_id=investment.id,
            observed=observed.value,
            target=target.value,
        )
        raise ConcurrentModificationError("Investment", investment.id)


def _summary(db: Session, query: Query) -> Dict[str, Any]:
    """Aggregate totals over every investment matched by ``query``."""
    total_invested = query.with_entities(
        func.coalesce(func.sum(Investment.amount), 0.0)
    ).scalar()

    status_counts = dict(
        query.with_entities(Investment.status, func.count(Investment.id))
        .group_by(Investment.status)
        .all()
    )

    matched_ids = query.with_entities(Investment.id).subquery()
    total_returns = (
        db.query(func.coalesce(func.sum(Return.amount), 0.0))
        .filter(Return.investment_id.in_(select(matched_ids.c.id)))
        .scalar()
    )

    return {
        "total_invested": float(total_invested or 0.0),
        "total_returns": float(total_returns or 0.0),
        "total_value": float((total_invested or 0.0) + (total_returns or 0.0)),
        "active_investments": status_counts.get(InvestmentStatus.ACTIVE.value, 0),
        "pending_investments": status_counts.get(InvestmentStatus.PENDING.value, 0),
    }


def _list(
    db: Session, query: Query, status: Optional[InvestmentStatus], page: int, limit: int
) -> Tuple[List[Investment], Dict[str, int], Dict[str, Any]]:
    if status:
        query = query.filter(Investment.status == InvestmentStatus(status).value)

    summary = _summary(db, query)
    items, pagination = paginate(
        _with_details(query).order_by(Investment.created_at.desc()), page, limit
    )
    return items, pagination, summary


# ==================== CREATE ====================


def create_investment(db: Session, investor, business_id: str, amount: float) -> Investment:
    """
    Commit capital to an open business.

    Args:
        db: Database session
        investor: Authenticated user, must hold the INVESTOR role
        business_id: Business to invest in
        amount: Amount in naira

    Returns:
        The new PENDING investment

    Raises:
        PermissionDeniedException: If the caller is not an investor
        NotFoundException: If the business does not exist
        ValidationException: If the amount is below the minimum ticket
        BusinessRuleViolation: If the business is not open, the amount exceeds
            the remaining capacity or the investor already holds an open position
    """
    if investor.role != UserRole.INVESTOR:
        raise PermissionDeniedException("make investments", "Only investors can make investments")

    with transaction(db):
        business = _lock_business(db, business_id)
        if not business:
            raise NotFoundException("Business opportunity", business_id)

        if business.status != BusinessStatus.OPEN.value:
            raise BusinessRuleViolation(
                "business_open", "This investment opportunity is no longer open"
            )

        if amount < business.minimum_investment:
            raise ValidationException(
                "amount",
                amount,
                f"Minimum investment amount is {format_currency(business.minimum_investment)}",
            )

        remaining = business.target_capital - business.current_raised
        if amount > remaining:
            raise BusinessRuleViolation(
                "capacity",
                "Investment amount exceeds remaining capacity. "
                f"Maximum available: {format_currency(remaining)}",
                {"remaining_capacity": remaining},
            )

        existing = (
            db.query(Investment)
            .filter(
                Investment.investor_id == investor.id,
                Investment.business_id == business.id,
                Investment.status.in_([s.value for s in OPEN_STATUSES]),
            )
            .first()
        )
        if existing:
            raise BusinessRuleViolation(
                "single_open_investment",
                "You already have an active investment in this opportunity",
                {"investment_id": existing.id},
            )

        investment = Investment(
            amount=amount,
            status=InvestmentStatus.PENDING.value,
            investor_id=investor.id,
            business_id=business.id,
        )
        db.add(investment)

        business.current_raised += amount
        if business.current_raised >= business.target_capital:
            business.status = BusinessStatus.FUNDED.value
            logger.info("Business fully funded", business_id=business.id)

        notification_service.notify(
            db,
            business.owner_id,
            "New Investment Received",
            f"{investor.name} has invested {format_currency(amount)} in {business.title}",
        )
        notification_service.notify(
            db,
            investor.id,
            "Investment Submitted",
            f"Your investment of {format_currency(amount)} in {business.title} is pending approval",
        )

    logger.info(
        "Investment created",
        investment_id=investment.id,
        business_id=business_id,
        investor_id=investor.id,
        amount=amount,
    )
    return _get_investment(db, investment.id)


# ==================== READ ====================


def list_investor_investments(
    db: Session, user, status: Optional[InvestmentStatus] = None, page: int = 1, limit: int = 10
):
    """List the caller's own investments, newest first, with a summary over the filtered set."""
    query = db.query(Investment).filter(Investment.investor_id == user.id)
    return _list(db, query, status, page, limit)


def list_business_investments(
    db: Session, user, status: Optional[InvestmentStatus] = None, page: int = 1, limit: int = 10
):
    """
    List investments into the caller's businesses.

    Administrators see every investment on the platform.
    """
    if user.role not in (UserRole.BUSINESS_OWNER, UserRole.ADMINISTRATOR):
        raise PermissionDeniedException(
            "view business investments",
            "Access denied. Business owner or administrator role required.",
        )

    query = db.query(Investment)
    if user.role == UserRole.BUSINESS_OWNER:
        query = query.join(Business, Investment.business_id == Business.id).filter(
            Business.owner_id == user.id
        )
    return _list(db, query, status, page, limit)


def investment_performance(investment: Investment) -> Dict[str, Any]:
    total_returns = investment.total_returns
    return {
        "total_returns": total_returns,
        "current_value": investment.amount + total_returns,
        "roi": (total_returns / investment.amount * 100) if investment.amount > 0 else 0.0,
        "return_count": len(investment.returns),
    }


def get_investment(db: Session, user, investment_id: str) -> Investment:
    """
    Fetch an investment visible to the caller.

    Raises:
        NotFoundException: If the investment does not exist
        PermissionDeniedException: Unless the caller is the investor, the
            business owner or an administrator
    """
    investment = _get_investment(db, investment_id)
    if not (
        user.id == investment.investor_id
        or user.id == investment.business.owner_id
        or user.is_admin
    ):
        raise PermissionDeniedException("view this investment")
    return investment


# ==================== LIFECYCLE ====================


def update_status(
    db: Session, user, investment_id: str, status: InvestmentStatus, note: Optional[str] = None
) -> Investment:
    """
    Move an investment through its lifecycle on behalf of the business owner.

    Cancelling releases the amount from the business's raised capital;
    approving re-checks that the business is not over its target.

    Raises:
        NotFoundException: If the investment does not exist
        PermissionDeniedException: Unless the caller owns the business or is an administrator
        InvalidTransitionError: If the status change is not allowed
        ConcurrentModificationError: If another request changed the status first
    """
    target = InvestmentStatus(status)

    with transaction(db):
        investment = _get_investment(db, investment_id)
        business = investment.business
        if not (user.id == business.owner_id or user.is_admin):
            raise PermissionDeniedException("update this investment")

        current = InvestmentStatus(investment.status)
        ensure_transition(current, target)

        if target == InvestmentStatus.ACTIVE:
            locked = _lock_business(db, business.id)
            if locked.current_raised > locked.target_capital:
                raise BusinessRuleViolation(
                    "capacity",
                    "Business raised capital exceeds its target",
                    {"current_raised": locked.current_raised},
                )

        _compare_and_set_status(db, investment, current, target)

        if releases_capacity(current, target):
            _release_capacity(db, business.id, investment.amount)

        content = f"{status_message(target)} for {business.title}"
        if note:
            content += f". Note: {note}"
        notification_service.notify(
            db, investment.investor_id, "Investment Status Updated", content
        )

    logger.info(
        "Investment status updated",
        investment_id=investment_id,
        previous=current.value,
        status=target.value,
        updated_by=user.id,
    )
    track_investment_transition(current.value, target.value)
    return _get_investment(db, investment_id)


def cancel_investment(db: Session, user, investment_id: str) -> Investment:
    """
    Cancel a pending investment on behalf of its investor.

    Raises:
        NotFoundException: If the investment does not exist
        PermissionDeniedException: If the caller is not the investor
        BusinessRuleViolation: If the investment is no longer pending
        ConcurrentModificationError: If another request changed the status first
    """
    with transaction(db):
        investment = _get_investment(db, investment_id)
        if user.id != investment.investor_id:
            raise PermissionDeniedException("cancel this investment")

        if investment.status != InvestmentStatus.PENDING.value:
            raise BusinessRuleViolation(
                "cancel_pending_only", "Can only cancel pending investments"
            )

        _compare_and_set_status(
            db, investment, InvestmentStatus.PENDING, InvestmentStatus.CANCELLED
        )
        business = _release_capacity(db, investment.business_id, investment.amount)

        notification_service.notify(
            db,
            business.owner_id,
            "Investment Cancelled",
            f"An investment of {format_currency(investment.amount)} in {business.title} "
            "has been cancelled by the investor",
        )

    logger.info("Investment cancelled", investment_id=investment_id, investor_id=user.id)
    track_investment_transition(InvestmentStatus.PENDING.value, InvestmentStatus.CANCELLED.value)
    return _get_investment(db, investment_id)


def record_return(
    db: Session, user, investment_id: str, amount: float, description: str
) -> Return:
    """
    Record a payout against an active or completed investment.

    Raises:
        NotFoundException: If the investment does not exist
        PermissionDeniedException: Unless the caller owns the business or is an administrator
        BusinessRuleViolation: If the investment is pending or cancelled
    """
    with transaction(db):
        investment = _get_investment(db, investment_id)
        business = investment.business
        if not (user.id == business.owner_id or user.is_admin):
            raise PermissionDeniedException("record returns for this investment")

        if investment.status not in RETURN_ELIGIBLE_STATUSES:
            raise BusinessRuleViolation(
                "return_eligibility",
                "Returns can only be recorded for active or completed investments",
                {"status": investment.status},
            )

        investment_return = Return(
            amount=amount, description=description, investment_id=investment.id
        )
        db.add(investment_return)

        notification_service.notify(
            db,
            investment.investor_id,
            "Return Received",
            f"You received a return of {format_currency(amount)} on your investment "
            f"in {business.title}: {description}",
        )

    db.refresh(investment_return)
    logger.info(
        "Return recorded", investment_id=investment_id, return_id=investment_return.id, amount=amount
    )
    return investment_return

"""Token minting and record factories shared by the tests."""

import os
from datetime import datetime, timedelta, timezone

import jwt

from app.domain.entities import (BusinessStatus, InvestmentStatus,
                                 MessageStatus, UserRole)
from app.models import Business, Investment, Message, Return, User

TEST_SECRET = os.environ.get("JWT_SECRET_KEY", "test-secret-key-for-testing-only-32chars")


# ==================== TOKENS ====================


def make_token(user: User, expires_in: timedelta = timedelta(minutes=30), **overrides) -> str:
    """Mint a bearer token the way the identity provider does."""
    payload = {
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    payload.update(overrides)
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def auth_headers(user: User, **overrides) -> dict:
    return {"Authorization": f"Bearer {make_token(user, **overrides)}"}


# ==================== FACTORIES ====================


def create_user(db, name: str, role: UserRole, email: str = None) -> User:
    user = User(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        role=role.value,
        verified=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_business(db, owner: User, **overrides) -> Business:
    data = {
        "title": "Lagos Solar Farms",
        "description": "Community solar installations for Lagos estates",
        "detailed_plan": "Install rooftop solar across twenty estates and sell power "
        "under long-term purchase agreements with the residents associations.",
        "target_capital": 1_000_000.0,
        "minimum_investment": 10_000.0,
        "expected_roi": 18.0,
        "timeline": 24,
        "industry": "Energy",
        "risk_level": "Medium",
        "status": BusinessStatus.OPEN.value,
        "current_raised": 0.0,
    }
    data.update(overrides)
    business = Business(owner_id=owner.id, **data)
    db.add(business)
    db.commit()
    db.refresh(business)
    return business


def create_investment(
    db,
    investor: User,
    business: Business,
    amount: float,
    status: InvestmentStatus = InvestmentStatus.PENDING,
    created_at: datetime = None,
    hold_capacity: bool = True,
) -> Investment:
    investment = Investment(
        amount=amount,
        status=status.value,
        investor_id=investor.id,
        business_id=business.id,
    )
    if created_at is not None:
        investment.created_at = created_at
        investment.updated_at = created_at
    db.add(investment)
    if hold_capacity and status != InvestmentStatus.CANCELLED:
        business.current_raised += amount
    db.commit()
    db.refresh(investment)
    return investment


def create_return(db, investment: Investment, amount: float, description: str = "Dividend") -> Return:
    investment_return = Return(amount=amount, description=description, investment_id=investment.id)
    db.add(investment_return)
    db.commit()
    db.refresh(investment_return)
    return investment_return


def create_message(
    db,
    sender: User,
    receiver: User,
    subject: str = "Hello",
    content: str = "Are you still raising?",
    created_at: datetime = None,
    status: MessageStatus = MessageStatus.UNREAD,
) -> Message:
    message = Message(
        subject=subject,
        content=content,
        status=status.value,
        sender_id=sender.id,
        receiver_id=receiver.id,
    )
    if created_at is not None:
        message.created_at = created_at
    db.add(message)
    db.commit()
    db.refresh(message)
    return message

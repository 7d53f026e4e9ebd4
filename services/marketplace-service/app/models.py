"""
Database models for marketplace service.

This module defines SQLAlchemy ORM models for users, funding opportunities
(businesses), investments, returns, direct messages and notifications.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (Boolean, Column, DateTime, Float, ForeignKey, Index,
                        Integer, String, Text)
from sqlalchemy.orm import declarative_base, relationship

from .domain.entities import (BusinessStatus, InvestmentStatus, MessageStatus,
                              UserRole)

Base: Any = declarative_base()


def generate_id() -> str:
    """Generate a new primary key."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """
    Platform user mirrored from the external identity provider.

    Attributes:
        id: Subject identifier issued by the auth provider
        email: Unique email address
        name: Display name
        role: INVESTOR, BUSINESS_OWNER or ADMINISTRATOR
        password_hash: bcrypt hash, only set for locally created administrators
        verified: Whether the account has been verified
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(320), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.INVESTOR.value)
    password_hash = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    businesses = relationship("Business", back_populates="owner")
    investments = relationship("Investment", back_populates="investor")


class Business(Base):
    """
    Funding opportunity listed by a business owner.

    ``current_raised`` holds the sum of all investment amounts that still hold
    capacity (pending, active or completed) and never exceeds
    ``target_capital``.
    """

    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    detailed_plan = Column(Text, nullable=False)
    target_capital = Column(Float, nullable=False)
    minimum_investment = Column(Float, nullable=False)
    expected_roi = Column(Float, nullable=False)
    timeline = Column(Integer, nullable=False)
    industry = Column(String(100), nullable=False, index=True)
    risk_level = Column(String(10), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=BusinessStatus.OPEN.value, index=True)
    current_raised = Column(Float, nullable=False, default=0.0)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="businesses")
    investments = relationship(
        "Investment",
        back_populates="business",
        order_by="desc(Investment.created_at)",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("idx_business_owner_status", "owner_id", "status"),)

    @property
    def remaining_capacity(self) -> float:
        return max(0.0, self.target_capital - self.current_raised)

    @property
    def investment_count(self) -> int:
        return len(self.investments)


class Investment(Base):
    """An investor's capital commitment to a business."""

    __tablename__ = "investments"

    id = Column(String(36), primary_key=True, default=generate_id)
    amount = Column(Float, nullable=False)
    status = Column(
        String(20), nullable=False, default=InvestmentStatus.PENDING.value, index=True
    )
    investor_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    business_id = Column(
        String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    investor = relationship("User", back_populates="investments")
    business = relationship("Business", back_populates="investments")
    returns = relationship(
        "Return",
        back_populates="investment",
        order_by="desc(Return.created_at)",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_investment_investor_business", "investor_id", "business_id"),
    )

    @property
    def total_returns(self) -> float:
        return sum(ret.amount for ret in self.returns)


class Return(Base):
    """Payout recorded against an investment."""

    __tablename__ = "returns"

    id = Column(String(36), primary_key=True, default=generate_id)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    investment_id = Column(
        String(36), ForeignKey("investments.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)

    investment = relationship("Investment", back_populates="returns")


class Message(Base):
    """Direct message between two users."""

    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    subject = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(String(10), nullable=False, default=MessageStatus.UNREAD.value)
    sender_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])

    __table_args__ = (
        Index("idx_message_receiver_status", "receiver_id", "status"),
        Index("idx_message_sender", "sender_id"),
    )


class Notification(Base):
    """User-targeted notification record. Delivery is out of scope."""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("idx_notification_user_read", "user_id", "read"),)

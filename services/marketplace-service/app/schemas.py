"""Pydantic models for request/response validation."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .domain.entities import (BusinessStatus, InvestmentStatus, MessageStatus,
                              RiskLevel, UserRole)


class ORMModel(BaseModel):
    """Base for response models read from ORM objects."""

    model_config = ConfigDict(from_attributes=True)


# ==================== SHARED ====================


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class MessageResponse(BaseModel):
    """Generic confirmation response."""

    message: str
    success: bool = True


class UserSummary(ORMModel):
    id: str
    name: str
    email: str
    role: UserRole


class OwnerSummary(ORMModel):
    id: str
    name: str


# ==================== OPPORTUNITIES ====================


class OpportunityCreate(BaseModel):
    """Request model for listing a new funding opportunity."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=10, max_length=1000)
    detailed_plan: str = Field(..., min_length=50, max_length=5000)
    target_capital: float = Field(..., ge=1_000, le=1_000_000_000, description="Target in naira")
    minimum_investment: float = Field(..., ge=100, description="Smallest accepted ticket")
    expected_roi: float = Field(..., ge=0, le=1000, description="Expected ROI in percent")
    timeline: int = Field(..., ge=1, le=120, description="Timeline in months")
    industry: str = Field(..., min_length=1, max_length=100)
    risk_level: RiskLevel


class OpportunityStatusUpdate(BaseModel):
    status: BusinessStatus = Field(..., description="OPEN or CLOSED")


class OpportunityItem(ORMModel):
    """Public listing of a funding opportunity."""

    id: str
    title: str
    description: str
    detailed_plan: str
    target_capital: float
    minimum_investment: float
    expected_roi: float
    timeline: int
    industry: str
    risk_level: RiskLevel
    status: BusinessStatus
    current_raised: float
    remaining_capacity: float
    investment_count: int
    owner: OwnerSummary
    created_at: datetime


class OpportunityListResponse(BaseModel):
    businesses: List[OpportunityItem]
    pagination: Pagination


class OpportunityDetailResponse(BaseModel):
    business: OpportunityItem


class OpportunityInvestment(ORMModel):
    id: str
    amount: float
    status: InvestmentStatus
    created_at: datetime
    investor: UserSummary


class OwnedOpportunity(OpportunityItem):
    investments: List[OpportunityInvestment]


class OwnedOpportunitySummary(BaseModel):
    total_opportunities: int
    total_target_capital: float
    total_raised: float
    active_opportunities: int
    total_investors: int
    pending_investments: int


class OwnedOpportunityListResponse(BaseModel):
    opportunities: List[OwnedOpportunity]
    pagination: Pagination
    summary: OwnedOpportunitySummary


class OpportunityActionResponse(BaseModel):
    message: str
    business: OpportunityItem


# ==================== INVESTMENTS ====================


class InvestmentCreate(BaseModel):
    """Request model for committing capital to an opportunity."""

    business_id: str = Field(..., min_length=1, description="Opportunity to invest in")
    amount: float = Field(..., ge=1, description="Amount in naira")


class InvestmentStatusUpdate(BaseModel):
    status: InvestmentStatus
    note: Optional[str] = Field(None, max_length=500)


class ReturnCreate(BaseModel):
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=500)


class ReturnItem(ORMModel):
    id: str
    amount: float
    description: str
    created_at: datetime


class BusinessBrief(ORMModel):
    id: str
    title: str
    industry: str
    expected_roi: float
    timeline: int
    risk_level: RiskLevel
    status: BusinessStatus
    owner: OwnerSummary


class InvestmentItem(ORMModel):
    id: str
    amount: float
    status: InvestmentStatus
    investor_id: str
    business_id: str
    created_at: datetime
    updated_at: datetime
    investor: UserSummary
    business: BusinessBrief
    returns: List[ReturnItem]


class InvestmentPerformance(BaseModel):
    total_returns: float
    current_value: float
    roi: float
    return_count: int


class InvestmentDetail(InvestmentItem):
    performance: InvestmentPerformance


class InvestmentDetailResponse(BaseModel):
    investment: InvestmentDetail


class InvestmentSummary(BaseModel):
    total_invested: float
    total_returns: float
    total_value: float
    active_investments: int
    pending_investments: int


class InvestmentListResponse(BaseModel):
    investments: List[InvestmentItem]
    pagination: Pagination
    summary: InvestmentSummary


class InvestmentActionResponse(BaseModel):
    message: str
    investment: InvestmentItem


class ReturnActionResponse(BaseModel):
    message: str
    investment_return: ReturnItem


# ==================== MESSAGES ====================


class MessageCreate(BaseModel):
    receiver_id: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=2000)


class MessageItem(ORMModel):
    id: str
    subject: str
    content: str
    status: MessageStatus
    created_at: datetime
    sender: UserSummary
    receiver: UserSummary


class MessageListResponse(BaseModel):
    messages: List[MessageItem]
    pagination: Pagination


class MessageSentResponse(BaseModel):
    message: str
    data: MessageItem


class ConversationItem(BaseModel):
    user: UserSummary
    latest_message: Optional[MessageItem] = None
    unread_count: int


class ConversationListResponse(BaseModel):
    conversations: List[ConversationItem]


class ConversationThreadResponse(BaseModel):
    messages: List[MessageItem]
    other_user: UserSummary
    pagination: Pagination


class UnreadCountResponse(BaseModel):
    unread_count: int


# ==================== USERS & ADMIN ====================


class UserSearchResponse(BaseModel):
    users: List[UserSummary]
    total: int
    message: Optional[str] = None


class AdminCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class InitialAdminCreate(AdminCreate):
    admin_secret_key: str = Field(..., min_length=1)


class AdminUser(ORMModel):
    id: str
    name: str
    email: str
    role: UserRole
    created_at: datetime


class AdminCreatedResponse(BaseModel):
    message: str
    admin: AdminUser


# ==================== NOTIFICATIONS ====================


class NotificationItem(ORMModel):
    id: str
    title: str
    content: str
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationItem]
    unread_count: int
    pagination: Pagination


# ==================== CALCULATOR ====================


class CalculatorRequest(BaseModel):
    initial_amount: float = Field(..., ge=0)
    monthly_contribution: float = Field(0, ge=0)
    expected_return: float = Field(..., ge=0, le=100, description="Annual return in percent")
    time_horizon: float = Field(..., gt=0, le=50, description="Horizon in years")
    inflation_rate: float = Field(0, ge=0, le=100)
    risk_tolerance: RiskLevel = RiskLevel.MEDIUM


class ProjectionItem(BaseModel):
    future_value: float
    total_invested: float
    total_returns: float
    roi: float
    annualized_return: float
    risk_score: float
    risk_level: RiskLevel
    inflation_adjusted_value: float


class CalculatorResponse(BaseModel):
    result: ProjectionItem
    scenarios: Dict[str, ProjectionItem]

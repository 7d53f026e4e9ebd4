"""
Portfolio, business and platform analytics.

Pure functions over in-memory records. Nothing here touches the database or
the web layer; services load rows, convert them into the dataclasses below and
pass them in. Every ratio returns 0 when its denominator is 0.

All datetimes are compared as naive UTC.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from .entities import InvestmentStatus

DAYS_PER_MONTH = 30
MILESTONE_INVESTMENT_INTERVAL = 5
MILESTONE_CAPITAL_STEP = 1_000_000
TOP_SECTOR_COUNT = 5
TREND_MONTHS = 12


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _now(now: Optional[datetime]) -> datetime:
    return _naive_utc(now) if now else datetime.now(timezone.utc).replace(tzinfo=None)


def _ratio(numerator: float, denominator: float) -> float:
    """Percentage of numerator over denominator, 0 when denominator is 0."""
    return (numerator / denominator) * 100 if denominator else 0.0


def month_start(reference: datetime, months_back: int = 0) -> datetime:
    """First instant of the month ``months_back`` months before ``reference``."""
    index = reference.year * 12 + (reference.month - 1) - months_back
    year, month = divmod(index, 12)
    return datetime(year, month + 1, 1)


def month_key(value: datetime) -> str:
    return value.strftime("%Y-%m")


# ==================== INPUT RECORDS ====================


@dataclass
class ReturnRecord:
    """A payout received on an investment."""

    id: str
    amount: float
    date: datetime
    type: str = "Investment Return"


@dataclass
class InvestmentRecord:
    """An investor's holding as seen by portfolio analytics."""

    id: str
    amount: float
    current_value: float
    investment_date: datetime
    status: str
    title: str
    sector: str
    returns: List[ReturnRecord] = field(default_factory=list)

    @property
    def total_returns(self) -> float:
        return sum(ret.amount for ret in self.returns)


@dataclass
class FundingRecord:
    """An investment as seen from the business or platform side."""

    id: str
    amount: float
    status: str
    created_at: datetime
    investor_id: Optional[str] = None
    sector: str = "Unspecified"
    returns_total: float = 0.0

    @property
    def current_value(self) -> float:
        return self.amount

    @property
    def total_returns(self) -> float:
        return self.returns_total


@dataclass
class OpportunityRecord:
    """A funding opportunity reduced to the fields analytics need."""

    id: str
    title: str
    target_capital: float
    current_raised: float
    status: str
    created_at: datetime
    industry: str = "Unspecified"


@dataclass
class UserRecord:
    id: str
    role: str
    created_at: datetime


# ==================== RESULTS ====================


@dataclass
class PerformanceMetrics:
    total_invested: float = 0.0
    total_current_value: float = 0.0
    total_returns: float = 0.0
    net_gain: float = 0.0
    roi: float = 0.0
    average_roi: float = 0.0
    best_performing_investment: Optional[InvestmentRecord] = None
    worst_performing_investment: Optional[InvestmentRecord] = None
    portfolio_growth: float = 0.0
    monthly_growth_rate: float = 0.0
    yearly_growth_rate: float = 0.0


@dataclass
class SectorAnalysis:
    sector: str
    total_invested: float
    total_returns: float
    roi: float
    investment_count: int
    percentage: float


@dataclass
class TimeSeriesPoint:
    date: str
    portfolio_value: float
    total_invested: float
    total_returns: float
    roi: float


@dataclass
class FundingMilestone:
    date: datetime
    amount: float
    cumulative_amount: float
    investor_count: int
    milestone: str


@dataclass
class BusinessMetrics:
    total_capital_raised: float
    average_investment_size: float
    investor_count: int
    capital_utilization_rate: float
    investor_retention_rate: float
    roi_delivered: float
    growth_rate: float
    funding_milestones: List[FundingMilestone]


@dataclass
class InvestmentTrend:
    month: str
    new_investments: int
    total_amount: float
    new_investors: int


@dataclass
class MonthlyTrend:
    month: str
    new_users: int
    new_investments: int
    investment_volume: float
    new_businesses: int


@dataclass
class PlatformMetrics:
    total_users: int
    total_businesses: int
    total_investments: int
    total_volume: float
    average_investment_size: float
    platform_growth_rate: float
    user_acquisition_rate: float
    investment_success_rate: float
    platform_roi: float
    top_performing_sectors: List[SectorAnalysis]
    monthly_trends: List[MonthlyTrend]


# ==================== PORTFOLIO ====================


def calculate_investment_roi(investment: InvestmentRecord) -> float:
    """
    Calculate ROI for a single investment.

    Unrealised gain (current value over amount) plus realised returns,
    as a percentage of the amount invested.
    """
    if investment.amount == 0:
        return 0.0
    current_gain = investment.current_value - investment.amount + investment.total_returns
    return (current_gain / investment.amount) * 100


def calculate_portfolio_metrics(
    investments: List[InvestmentRecord], now: Optional[datetime] = None
) -> PerformanceMetrics:
    """
    Calculate overall portfolio performance metrics.

    Growth rates are compounded from the age of the oldest investment,
    counted in 30-day months with a floor of one month.

    Args:
        investments: Holdings of a single investor
        now: Reference time, defaults to the current UTC time

    Returns:
        Aggregated performance metrics
    """
    if not investments:
        return PerformanceMetrics()

    reference = _now(now)

    total_invested = sum(inv.amount for inv in investments)
    total_current_value = sum(inv.current_value for inv in investments)
    total_returns = sum(inv.total_returns for inv in investments)

    net_gain = total_current_value - total_invested + total_returns
    roi = _ratio(net_gain, total_invested)

    scored = [(inv, calculate_investment_roi(inv)) for inv in investments]
    average_roi = sum(score for _, score in scored) / len(scored)

    # Ties keep the earliest entry
    best = scored[0]
    worst = scored[0]
    for candidate in scored[1:]:
        if candidate[1] > best[1]:
            best = candidate
        if candidate[1] < worst[1]:
            worst = candidate

    portfolio_growth = (
        ((total_current_value + total_returns) / total_invested - 1) * 100
        if total_invested > 0
        else 0.0
    )

    oldest = min(_naive_utc(inv.investment_date) for inv in investments)
    months_since_oldest = max(
        1.0, (reference - oldest).total_seconds() / timedelta(days=DAYS_PER_MONTH).total_seconds()
    )

    growth_base = max(0.0, 1 + portfolio_growth / 100)
    monthly_growth_rate = growth_base ** (1 / months_since_oldest) - 1
    yearly_growth_rate = (1 + monthly_growth_rate) ** 12 - 1

    return PerformanceMetrics(
        total_invested=total_invested,
        total_current_value=total_current_value,
        total_returns=total_returns,
        net_gain=net_gain,
        roi=roi,
        average_roi=average_roi,
        best_performing_investment=best[0],
        worst_performing_investment=worst[0],
        portfolio_growth=portfolio_growth,
        monthly_growth_rate=monthly_growth_rate * 100,
        yearly_growth_rate=yearly_growth_rate * 100,
    )


def analyze_by_sector(investments: Iterable) -> List[SectorAnalysis]:
    """
    Break a set of investments down by sector.

    Accepts any records exposing ``amount``, ``current_value``,
    ``total_returns`` and ``sector``. Sector returns include unrealised gain.
    Sectors are listed in order of first appearance.
    """
    investments = list(investments)
    buckets: Dict[str, Dict[str, float]] = {}

    for investment in investments:
        bucket = buckets.setdefault(
            investment.sector, {"invested": 0.0, "returns": 0.0, "count": 0}
        )
        bucket["invested"] += investment.amount
        bucket["returns"] += investment.total_returns + (
            investment.current_value - investment.amount
        )
        bucket["count"] += 1

    total_invested = sum(inv.amount for inv in investments)

    return [
        SectorAnalysis(
            sector=sector,
            total_invested=data["invested"],
            total_returns=data["returns"],
            roi=_ratio(data["returns"], data["invested"]),
            investment_count=int(data["count"]),
            percentage=_ratio(data["invested"], total_invested),
        )
        for sector, data in buckets.items()
    ]


def generate_time_series(
    investments: List[InvestmentRecord],
    months: int = 12,
    now: Optional[datetime] = None,
) -> List[TimeSeriesPoint]:
    """
    Generate month-by-month portfolio values, oldest month first.

    Each point reflects the portfolio as of the end of that month; the
    current month is cut at ``now``.
    """
    reference = _now(now)
    points: List[TimeSeriesPoint] = []

    for offset in range(months - 1, -1, -1):
        start = month_start(reference, offset)
        cutoff = min(month_start(reference, offset - 1), reference)

        relevant = [inv for inv in investments if _naive_utc(inv.investment_date) < cutoff]

        total_invested = sum(inv.amount for inv in relevant)
        total_returns = sum(
            ret.amount
            for inv in relevant
            for ret in inv.returns
            if _naive_utc(ret.date) < cutoff
        )
        portfolio_value = sum(inv.current_value for inv in relevant)

        points.append(
            TimeSeriesPoint(
                date=month_key(start),
                portfolio_value=max(0.0, portfolio_value),
                total_invested=total_invested,
                total_returns=total_returns,
                roi=_ratio(portfolio_value + total_returns - total_invested, total_invested),
            )
        )

    return points


# ==================== BUSINESS ====================


def calculate_business_metrics(
    opportunities: List[OpportunityRecord],
    investments: List[FundingRecord],
    now: Optional[datetime] = None,
) -> BusinessMetrics:
    """
    Calculate performance metrics for a business owner's listings.

    Args:
        opportunities: The owner's listings
        investments: Investments into those listings (cancelled ones excluded)
        now: Reference time for the recent growth window

    Returns:
        Business metrics including funding milestones
    """
    reference = _now(now)

    total_raised = sum(inv.amount for inv in investments)
    average_size = total_raised / len(investments) if investments else 0.0

    per_investor: Dict[Optional[str], int] = defaultdict(int)
    for inv in investments:
        per_investor[inv.investor_id] += 1
    investor_count = len(per_investor)
    repeat_investors = sum(1 for count in per_investor.values() if count > 1)

    total_target = sum(opp.target_capital for opp in opportunities)
    returns_paid = sum(inv.returns_total for inv in investments)

    window_start = reference - timedelta(days=DAYS_PER_MONTH)
    recent_raised = sum(
        inv.amount for inv in investments if _naive_utc(inv.created_at) >= window_start
    )

    milestones: List[FundingMilestone] = []
    cumulative = 0.0
    next_capital_mark = MILESTONE_CAPITAL_STEP
    seen_investors = set()
    ordered = sorted(investments, key=lambda inv: _naive_utc(inv.created_at))
    for index, inv in enumerate(ordered):
        cumulative += inv.amount
        seen_investors.add(inv.investor_id)
        passed_capital_mark = cumulative >= next_capital_mark
        if passed_capital_mark:
            next_capital_mark = (cumulative // MILESTONE_CAPITAL_STEP + 1) * MILESTONE_CAPITAL_STEP
        if index % MILESTONE_INVESTMENT_INTERVAL == 0 or passed_capital_mark:
            milestones.append(
                FundingMilestone(
                    date=inv.created_at,
                    amount=inv.amount,
                    cumulative_amount=cumulative,
                    investor_count=len(seen_investors),
                    milestone=f"Milestone {len(milestones) + 1}",
                )
            )

    return BusinessMetrics(
        total_capital_raised=total_raised,
        average_investment_size=average_size,
        investor_count=investor_count,
        capital_utilization_rate=_ratio(total_raised, total_target),
        investor_retention_rate=_ratio(repeat_investors, investor_count),
        roi_delivered=_ratio(returns_paid, total_raised),
        growth_rate=_ratio(recent_raised, total_raised),
        funding_milestones=milestones,
    )


def calculate_monthly_investment_trends(investments: List[FundingRecord]) -> List[InvestmentTrend]:
    """Group investments by calendar month, oldest month first."""
    months: Dict[str, Dict] = {}
    for inv in investments:
        key = month_key(_naive_utc(inv.created_at))
        bucket = months.setdefault(key, {"count": 0, "amount": 0.0, "investors": set()})
        bucket["count"] += 1
        bucket["amount"] += inv.amount
        bucket["investors"].add(inv.investor_id)

    return [
        InvestmentTrend(
            month=key,
            new_investments=data["count"],
            total_amount=data["amount"],
            new_investors=len(data["investors"]),
        )
        for key, data in sorted(months.items())
    ]


# ==================== PLATFORM ====================


def calculate_platform_metrics(
    users: List[UserRecord],
    businesses: List[OpportunityRecord],
    investments: List[FundingRecord],
    now: Optional[datetime] = None,
) -> PlatformMetrics:
    """
    Calculate platform-wide metrics for administrators.

    Growth and acquisition rates are the share of records created since the
    first day of the previous month.
    """
    reference = _now(now)
    since = month_start(reference, 1)

    total_investments = len(investments)
    total_volume = sum(inv.amount for inv in investments)

    recent_investments = sum(1 for inv in investments if _naive_utc(inv.created_at) >= since)
    recent_users = sum(1 for user in users if _naive_utc(user.created_at) >= since)
    successful = sum(
        1
        for inv in investments
        if inv.status in (InvestmentStatus.ACTIVE.value, InvestmentStatus.COMPLETED.value)
    )
    returns_paid = sum(inv.returns_total for inv in investments)

    sectors = sorted(analyze_by_sector(investments), key=lambda s: s.roi, reverse=True)

    trends: List[MonthlyTrend] = []
    for offset in range(TREND_MONTHS - 1, -1, -1):
        start = month_start(reference, offset)
        end = month_start(reference, offset - 1)

        def in_month(value: datetime) -> bool:
            return start <= _naive_utc(value) < end

        month_investments = [inv for inv in investments if in_month(inv.created_at)]
        trends.append(
            MonthlyTrend(
                month=month_key(start),
                new_users=sum(1 for user in users if in_month(user.created_at)),
                new_investments=len(month_investments),
                investment_volume=sum(inv.amount for inv in month_investments),
                new_businesses=sum(1 for biz in businesses if in_month(biz.created_at)),
            )
        )

    return PlatformMetrics(
        total_users=len(users),
        total_businesses=len(businesses),
        total_investments=total_investments,
        total_volume=total_volume,
        average_investment_size=total_volume / total_investments if total_investments else 0.0,
        platform_growth_rate=_ratio(recent_investments, total_investments),
        user_acquisition_rate=_ratio(recent_users, len(users)),
        investment_success_rate=_ratio(successful, total_investments),
        platform_roi=_ratio(returns_paid, total_volume),
        top_performing_sectors=sectors[:TOP_SECTOR_COUNT],
        monthly_trends=trends,
    )


# ==================== FORMATTING ====================


def format_currency(amount: float) -> str:
    """Format an amount in naira without decimals, e.g. ``₦1,250,000``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}₦{abs(amount):,.0f}"


def format_percentage(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def format_large_number(num: float) -> str:
    """Abbreviate with K, M or B suffixes."""
    if num >= 1_000_000_000:
        return f"{num / 1_000_000_000:.1f}B"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return f"{num:g}"

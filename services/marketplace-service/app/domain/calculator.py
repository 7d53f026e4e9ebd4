"""Investment projection calculator with scenario analysis."""

from dataclasses import dataclass

from .entities import RiskLevel

RISK_MULTIPLIERS = {
    RiskLevel.LOW: 0.8,
    RiskLevel.MEDIUM: 1.0,
    RiskLevel.HIGH: 1.3,
}

BASELINE_RATE = 5.0
SCENARIO_SPREAD = 4.0
CONSERVATIVE_FLOOR = 6.0


@dataclass
class ProjectionResult:
    future_value: float
    total_invested: float
    total_returns: float
    roi: float
    annualized_return: float
    risk_score: float
    risk_level: RiskLevel
    inflation_adjusted_value: float


@dataclass
class ScenarioAnalysis:
    conservative: ProjectionResult
    moderate: ProjectionResult
    aggressive: ProjectionResult


def project_investment(
    initial_amount: float,
    monthly_contribution: float,
    annual_rate: float,
    years: float,
    inflation_rate: float = 0.0,
    risk_level: RiskLevel = RiskLevel.MEDIUM,
) -> ProjectionResult:
    """
    Project the value of a lump sum plus monthly contributions.

    Growth compounds monthly. The risk score scales how far the expected
    rate sits above a 5% baseline and is clamped to 0..100.

    Args:
        initial_amount: Principal invested up front
        monthly_contribution: Amount added at the end of every month
        annual_rate: Expected annual return in percent
        years: Investment horizon in years (must be positive)
        inflation_rate: Annual inflation in percent
        risk_level: Investor risk tolerance

    Returns:
        Projection with ROI, annualised return and inflation-adjusted value
    """
    if years <= 0:
        raise ValueError("years must be positive")

    risk_level = RiskLevel(risk_level)
    monthly_rate = annual_rate / 100 / 12
    total_months = years * 12

    growth = (1 + monthly_rate) ** total_months
    future_principal = initial_amount * growth
    if monthly_rate == 0:
        future_annuity = monthly_contribution * total_months
    else:
        future_annuity = monthly_contribution * (growth - 1) / monthly_rate

    future_value = future_principal + future_annuity
    total_invested = initial_amount + monthly_contribution * total_months
    total_returns = future_value - total_invested

    if total_invested > 0:
        roi = total_returns / total_invested * 100
        annualized_return = ((future_value / total_invested) ** (1 / years) - 1) * 100
    else:
        roi = 0.0
        annualized_return = 0.0

    base_risk = (annual_rate - BASELINE_RATE) * 2
    risk_score = min(100.0, max(0.0, base_risk * RISK_MULTIPLIERS[risk_level]))

    inflation_adjusted_value = future_value / (1 + inflation_rate / 100) ** years

    return ProjectionResult(
        future_value=future_value,
        total_invested=total_invested,
        total_returns=total_returns,
        roi=roi,
        annualized_return=annualized_return,
        risk_score=risk_score,
        risk_level=risk_level,
        inflation_adjusted_value=inflation_adjusted_value,
    )


def scenario_analysis(
    initial_amount: float,
    monthly_contribution: float,
    annual_rate: float,
    years: float,
    inflation_rate: float = 0.0,
) -> ScenarioAnalysis:
    """Project conservative, moderate and aggressive variants of a plan."""
    return ScenarioAnalysis(
        conservative=project_investment(
            initial_amount,
            monthly_contribution,
            max(CONSERVATIVE_FLOOR, annual_rate - SCENARIO_SPREAD),
            years,
            inflation_rate,
            RiskLevel.LOW,
        ),
        moderate=project_investment(
            initial_amount, monthly_contribution, annual_rate, years, inflation_rate, RiskLevel.MEDIUM
        ),
        aggressive=project_investment(
            initial_amount,
            monthly_contribution,
            annual_rate + SCENARIO_SPREAD,
            years,
            inflation_rate,
            RiskLevel.HIGH,
        ),
    )

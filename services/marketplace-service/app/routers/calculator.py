"""Investment projection calculator."""

from dataclasses import asdict

from fastapi import APIRouter

from ..domain.calculator import project_investment, scenario_analysis
from ..metrics import track_calculator_projection
from ..schemas import CalculatorRequest, CalculatorResponse

router = APIRouter(prefix="/api/calculator", tags=["Calculator"])


@router.post("", response_model=CalculatorResponse, summary="Project an investment plan")
async def calculate(payload: CalculatorRequest):
    """
    Project a lump sum plus monthly contributions.

    Returns the projection at the requested risk tolerance together with
    conservative, moderate and aggressive scenarios.
    """
    result = project_investment(
        payload.initial_amount,
        payload.monthly_contribution,
        payload.expected_return,
        payload.time_horizon,
        payload.inflation_rate,
        payload.risk_tolerance,
    )
    scenarios = scenario_analysis(
        payload.initial_amount,
        payload.monthly_contribution,
        payload.expected_return,
        payload.time_horizon,
        payload.inflation_rate,
    )
    track_calculator_projection(payload.risk_tolerance.value)
    return {"result": asdict(result), "scenarios": asdict(scenarios)}

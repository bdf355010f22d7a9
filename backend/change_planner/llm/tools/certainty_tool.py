import json
from typing import Literal, Optional

from pydantic import BaseModel, Field

from change_planner.llm.tools.registry import ToolExecutionContext

VISA_POINTS = {"visa_free": 30, "visa_on_arrival": 25, "e_visa": 20, "embassy_visa": 10, "restricted": 0}
BUDGET_POINTS = {"comfortable": 20, "adequate": 15, "tight": 8, "insufficient": 0}
SAFETY_POINTS = {"safe": 25, "moderate_caution": 18, "high_caution": 8, "avoid": 0}


class CertaintyArgs(BaseModel):
    visa_status: Literal["visa_free", "visa_on_arrival", "e_visa", "embassy_visa", "restricted"] = Field(
        description="The visa requirement status"
    )
    budget_adequacy: Literal["comfortable", "adequate", "tight", "insufficient"] = Field(
        description="How well the budget covers expected costs"
    )
    safety_level: Literal["safe", "moderate_caution", "high_caution", "avoid"] = Field(
        description="Safety assessment level"
    )
    days_until_trip: Optional[int] = Field(
        None, description="Days until the trip starts (for visa processing time consideration)"
    )


def _timing_points(visa_status: str, days_until_trip: Optional[int]) -> int:
    if days_until_trip is None:
        return 20
    if visa_status == "embassy_visa" and days_until_trip < 7:
        return 5
    if visa_status == "embassy_visa" and days_until_trip < 14:
        return 12
    if days_until_trip >= 30:
        return 25
    return 20


def calculate_certainty_score(args: CertaintyArgs, context: ToolExecutionContext) -> str:
    visa = VISA_POINTS[args.visa_status]
    budget = BUDGET_POINTS[args.budget_adequacy]
    safety = SAFETY_POINTS[args.safety_level]
    timing = _timing_points(args.visa_status, args.days_until_trip)
    score = visa + budget + safety + timing

    if score < 50:
        verdict, visa_risk = "NO", "high"
    elif score < 70:
        verdict, visa_risk = "POSSIBLE", "medium"
    else:
        verdict, visa_risk = "GO", "low"
    if args.visa_status == "restricted":
        visa_risk = "high"
    elif args.visa_status == "embassy_visa":
        visa_risk = "medium"

    return json.dumps(
        {
            "score": score,
            "breakdown": {
                "visa": {"score": visa, "max": 30},
                "budget": {"score": budget, "max": 20},
                "safety": {"score": safety, "max": 25},
                "accessibility": {"score": timing, "max": 25},
            },
            "verdict": verdict,
            "visa_risk": visa_risk,
            "explanation": f"Score {score}/100: Visa ({visa}/30), Budget ({budget}/20), "
            f"Safety ({safety}/25), Timing ({timing}/25)",
        }
    )

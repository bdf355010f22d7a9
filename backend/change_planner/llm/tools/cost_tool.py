import json
from typing import Dict, Literal

from pydantic import BaseModel, Field

from change_planner.llm.tools.registry import ToolExecutionContext

# Multiplier relative to a US baseline.
COST_INDEX: Dict[str, float] = {
    "thailand": 0.35,
    "vietnam": 0.30,
    "indonesia": 0.35,
    "india": 0.25,
    "mexico": 0.45,
    "japan": 1.1,
    "singapore": 0.9,
    "uk": 1.2,
    "france": 1.1,
    "italy": 0.95,
    "spain": 0.85,
    "germany": 1.0,
    "usa": 1.0,
    "australia": 1.1,
}
DEFAULT_COST_INDEX = 0.7

# Per person per day, USD.
BASE_DAILY: Dict[str, Dict[str, float]] = {
    "budget": {"food": 25, "transport": 15, "activities": 20},
    "moderate": {"food": 50, "transport": 30, "activities": 50},
    "luxury": {"food": 100, "transport": 60, "activities": 120},
}


class DailyCostArgs(BaseModel):
    destination: str = Field(description="The destination city or country")
    travel_style: Literal["budget", "moderate", "luxury"] = Field(
        description="The travel style affecting cost estimates"
    )
    num_days: int = Field(ge=1, description="Number of days to estimate costs for")
    travelers: int = Field(ge=1, description="Number of travelers")


def cost_index_for(destination: str) -> float:
    lower = destination.lower()
    for region, index in COST_INDEX.items():
        if region in lower:
            return index
    return DEFAULT_COST_INDEX


def estimate_daily_costs(args: DailyCostArgs, context: ToolExecutionContext) -> str:
    index = cost_index_for(args.destination)
    base = BASE_DAILY[args.travel_style]
    per_person = {k: round(v * index) for k, v in base.items()}
    per_person["total"] = round(sum(base.values()) * index)
    multiplier = args.num_days * args.travelers
    return json.dumps(
        {
            "destination": args.destination,
            "travel_style": args.travel_style,
            "num_days": args.num_days,
            "travelers": args.travelers,
            "cost_index": index,
            "daily_per_person": per_person,
            "total_trip": {k: v * multiplier for k, v in per_person.items()},
            "currency": "USD",
            "note": f"Estimates based on {args.travel_style} travel style in {args.destination}",
        }
    )

import json
from typing import Dict, Optional

from pydantic import BaseModel, Field

from change_planner.llm.tools.registry import ToolExecutionContext

SAFETY_LEVELS: Dict[str, dict] = {
    "japan": {
        "level": "safe",
        "score": 95,
        "notes": ["Very low crime", "Excellent healthcare", "Natural disaster preparedness"],
    },
    "singapore": {
        "level": "safe",
        "score": 95,
        "notes": ["Very low crime", "Strict laws", "Excellent infrastructure"],
    },
    "thailand": {
        "level": "moderate_caution",
        "score": 75,
        "notes": [
            "Generally safe for tourists",
            "Watch for petty theft in tourist areas",
            "Exercise caution in southern provinces",
        ],
    },
    "indonesia": {
        "level": "moderate_caution",
        "score": 70,
        "notes": [
            "Bali very safe for tourists",
            "Natural disaster risk (earthquakes, volcanoes)",
            "Traffic can be challenging",
        ],
    },
    "india": {
        "level": "moderate_caution",
        "score": 65,
        "notes": ["Varies by region", "Tourist scams common", "Great healthcare in major cities"],
    },
    "mexico": {
        "level": "moderate_caution",
        "score": 60,
        "notes": ["Tourist areas generally safe", "Avoid certain regions", "Use authorized transportation"],
    },
}

DEFAULT_SAFETY = {
    "level": "moderate_caution",
    "score": 70,
    "notes": ["Standard travel precautions recommended", "Check local conditions before travel"],
}

RECOMMENDATIONS = {
    "safe": "Safe to travel with normal precautions",
    "moderate_caution": "Safe for most travelers with standard precautions",
}


class SafetyArgs(BaseModel):
    destination: str = Field(description="The destination country or city")
    travel_dates: Optional[str] = Field(
        None, description="The planned travel dates (e.g., 'Feb 15-22, 2025')"
    )


def assess_safety(args: SafetyArgs, context: ToolExecutionContext) -> str:
    lower = args.destination.lower()
    info = next((v for k, v in SAFETY_LEVELS.items() if k in lower), DEFAULT_SAFETY)
    return json.dumps(
        {
            "destination": args.destination,
            "travel_dates": args.travel_dates or "Not specified",
            "safety_level": info["level"],
            "safety_score": info["score"],
            "advisories": info["notes"],
            "recommendation": RECOMMENDATIONS.get(
                info["level"], "Exercise increased caution, research specific areas"
            ),
        }
    )

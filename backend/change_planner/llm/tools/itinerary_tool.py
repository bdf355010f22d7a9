import json
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from change_planner.llm.tools.registry import ToolExecutionContext


class ItineraryArgs(BaseModel):
    destination: str = Field(description="The trip destination")
    start_date: date = Field(description="Trip start date in YYYY-MM-DD format")
    num_days: int = Field(ge=1, description="Total number of days for the trip")
    travel_style: Literal["budget", "moderate", "luxury", "adventure", "cultural", "relaxation"] = Field(
        description="The preferred travel style"
    )
    days_to_regenerate: List[int] = Field(
        default_factory=list,
        description="Which day numbers to regenerate (1-indexed). Empty array means all days.",
    )
    preferences: Optional[str] = Field(
        None, description="Any specific preferences or constraints for the itinerary"
    )


def regenerate_itinerary_days(args: ItineraryArgs, context: ToolExecutionContext) -> str:
    # Day content comes from the itinerary service; here we only report the
    # day count the regenerated plan will have.
    existing = context.current_trip.day_count
    return json.dumps(
        {
            "status": "using_existing" if existing == args.num_days else "resized",
            "message": f"Itinerary planned for {args.num_days} days in {args.destination}",
            "days_count": args.num_days,
            "previous_days_count": existing,
            "days_to_regenerate": args.days_to_regenerate or list(range(1, args.num_days + 1)),
            "travel_style": args.travel_style,
            "preferences": args.preferences or "None specified",
        }
    )

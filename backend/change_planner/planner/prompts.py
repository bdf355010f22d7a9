from typing import List

from change_planner.models.domain import ChangeSource, DetectedChange
from change_planner.models.schemas import CurrentTripResult, TripInput

CHANGE_PLANNER_SYSTEM_PROMPT = """You are the Change Planner for a travel planning application. \
Your job is to analyze changes a user makes to their trip and determine what needs to be recalculated.

## Responsibilities
1. Analyze what the user changed (dates, budget, passport, destination, ...).
2. Decide which aspects of the trip are affected.
3. Use tools to gather updated information.
4. Summarize how the changes affect the trip.

## When to call tools
- Passport OR destination changed: ALWAYS call `get_visa_requirements`.
- Dates changed: call `search_flights` and `search_hotels`.
- Budget changed: call `estimate_daily_costs` to check adequacy.
- Destination changed: call all cost tools and `assess_safety`.
- After visa/budget/safety info: call `calculate_certainty_score`.
Do not call tools for minor preference changes or for data you already have.

## Response format
When you are done, answer with exactly one JSON block:

```json
{
  "analysis": {"changed_fields": ["dates"], "impact_summary": "...", "modules_recomputed": ["flights"]},
  "updated_data": {"visa": {}, "flights": {}, "hotels": {}, "daily_costs": {}, "certainty": {"score": 85}},
  "deltas": {"certainty_before": 75, "certainty_after": 85, "cost_before": 2500, "cost_after": 2800,
             "explanation": "What changed and why"},
  "recommendation": "Short recommendation for the user"
}
```

## Rules
1. Be concise.
2. Call independent tools in the same round (e.g. flights and hotels together).
3. If a tool fails, note it and continue with the others.
4. Recalculate the certainty score if ANY change could affect visa, budget, or safety.
"""


def _fmt_location(value) -> str:
    return value.label if value and value.label else "Not specified"


def format_change_request(
    trip_id: str,
    proposed: TripInput,
    current: CurrentTripResult,
    source: ChangeSource,
    changes: List[DetectedChange],
) -> str:
    """Render the user turn that opens the planner conversation."""
    if changes:
        changed = "\n".join(
            f"- {c.field.value} ({c.severity.value}): {c.before!r} -> {c.after!r}" for c in changes
        )
    else:
        changed = "- No significant changes detected"

    visa = current.feasibility_report.visa_details
    dates = proposed.dates
    budget = proposed.budget
    travelers = proposed.travelers
    prefs = proposed.preferences

    lines = [
        "## Change Request",
        f"Trip ID: {trip_id}",
        f"Source: {source.value}",
        "",
        "### What Changed",
        changed,
        "",
        "### Current Trip State",
        f"- Destination: {current.destination or 'unknown'}",
        f"- Current Certainty Score: {current.certainty_score:g}/100",
        f"- Current Total Cost: ${current.total_cost:g}",
        f"- Visa Status: {(visa.type if visa else None) or 'unknown'}",
        f"- Itinerary Days: {current.day_count}",
        "",
        "### New Input Values",
        f"- Passport: {proposed.passport or 'Not specified'}",
        f"- Destination: {_fmt_location(proposed.destination)}",
        f"- Origin: {_fmt_location(proposed.origin)}",
        f"- Dates: {dates.start if dates else None} to {dates.end if dates else None}",
        f"- Budget: {budget.total if budget else 'Not specified'} {budget.currency if budget else ''}".rstrip(),
        f"- Travelers: {travelers.total if travelers else 1}",
        f"- Travel Style: {(prefs.pace if prefs else None) or 'moderate'}",
        "",
        "Please analyze these changes and gather the necessary data to update the trip.",
    ]
    return "\n".join(lines)

"""Single builder for ChangePlannerResponse, shared by both execution paths."""

from typing import List, Optional, Tuple

from pydantic import ValidationError

from change_planner.models.domain import (
    DetectedChange,
    ModuleOutputs,
    OutputSource,
    RecomputableModule,
)
from change_planner.models.schemas import (
    Banner,
    BlockerDelta,
    CertaintyDelta,
    ChangePlannerResponse,
    CostDelta,
    CurrentTripResult,
    DeltaSummary,
    DetectedChangeSchema,
    ItineraryDelta,
    ModuleFailureSchema,
    Toast,
    UIInstructions,
    UpdatedData,
    VisaDetails,
)
from change_planner.planner.deterministic import adjust_certainty
from change_planner.planner.impact import build_recompute_plan

M = RecomputableModule

SUCCESS_TOASTS = {
    OutputSource.agent: "Trip updated successfully.",
    OutputSource.deterministic: "Trip updated.",
}

# Modules → UI section they refresh, in display order.
HIGHLIGHTS: List[Tuple[str, Tuple[RecomputableModule, ...]]] = [
    ("ActionItems", (M.action_items,)),
    ("CostBreakdown", (M.hotels, M.flights)),
    ("Itinerary", (M.itinerary,)),
    ("VisaCard", (M.visa,)),
]


def _visa(raw: Optional[dict]) -> Optional[VisaDetails]:
    if not raw:
        return None
    try:
        return VisaDetails.model_validate(raw)
    except ValidationError:
        return None


def blocker_count(visa: Optional[VisaDetails]) -> int:
    return 1 if visa is not None and visa.is_blocker else 0


def banner_for(blockers: int, recommendation: Optional[str]) -> Banner:
    if blockers == 0:
        return Banner(
            tone="green",
            title="Updated. No blockers found.",
            subtitle=recommendation or "You're all set for planning.",
        )
    if blockers <= 2:
        plural = "s" if blockers != 1 else ""
        return Banner(
            tone="amber",
            title=f"Updated. {blockers} item{plural} need attention.",
            subtitle=recommendation,
        )
    return Banner(
        tone="red",
        title="Updated. This change introduced blockers.",
        subtitle=recommendation,
    )


def highlight_sections(modules: List[RecomputableModule]) -> List[str]:
    present = set(modules)
    return [section for section, triggers in HIGHLIGHTS if present.intersection(triggers)]


def synthesize(
    change_id: str,
    changes: List[DetectedChange],
    modules: List[RecomputableModule],
    current: CurrentTripResult,
    outputs: ModuleOutputs,
) -> ChangePlannerResponse:
    certainty_before = current.certainty_score
    if outputs.certainty_score is not None:
        certainty_after = float(outputs.certainty_score)
        reason = outputs.certainty_reason or "Trip updated based on changes"
    else:
        certainty_after, default_reason = adjust_certainty(certainty_before, changes)
        reason = outputs.certainty_reason or default_reason

    cost_before = current.total_cost
    cost_after = outputs.cost_after if outputs.cost_after is not None else cost_before

    visa_before = current.feasibility_report.visa_details
    visa_after = _visa(outputs.visa) or visa_before
    blockers_before = blocker_count(visa_before)
    blockers_after = blocker_count(visa_after)
    resolved: List[str] = []
    new: List[str] = []
    if blockers_before and not blockers_after:
        resolved.append("Visa no longer required")
    if blockers_after and not blockers_before:
        new.append("Visa now required")

    day_count_before = current.day_count
    day_count_after = (
        outputs.itinerary_day_count if outputs.itinerary_day_count is not None else day_count_before
    )

    toasts = [Toast(tone="success", message=SUCCESS_TOASTS[outputs.source])]
    toasts.extend(Toast(tone="warning", message=notice) for notice in outputs.notices)
    toasts.extend(
        Toast(tone="warning", message=f"Could not refresh {f.module.value}; showing previous values.")
        for f in outputs.failures
    )

    cost_breakdown = None
    if outputs.daily_costs:
        base = current.itinerary.cost_breakdown
        cost_breakdown = {**(base.model_dump() if base else {}), "daily_costs": outputs.daily_costs}

    return ChangePlannerResponse(
        change_id=change_id,
        detected_changes=[DetectedChangeSchema.from_domain(c) for c in changes],
        recompute_plan=build_recompute_plan(modules),
        delta_summary=DeltaSummary(
            certainty=CertaintyDelta(before=certainty_before, after=certainty_after, reason=reason),
            total_cost=CostDelta(
                before=cost_before,
                after=cost_after,
                delta=cost_after - cost_before,
                notes=["Cost estimate updated based on changes"] if cost_after != cost_before else [],
            ),
            blockers=BlockerDelta(
                before=blockers_before, after=blockers_after, resolved=resolved, new=new
            ),
            itinerary=ItineraryDelta(
                day_count_before=day_count_before, day_count_after=day_count_after
            ),
        ),
        ui_instructions=UIInstructions(
            banner=banner_for(blockers_after, outputs.recommendation),
            highlight_sections=highlight_sections(modules),
            toasts=toasts,
        ),
        updated_data=UpdatedData(
            visa=_visa(outputs.visa),
            flights=outputs.flights,
            hotels=outputs.hotels,
            cost_breakdown=cost_breakdown,
            refresh_action_items=outputs.refresh_action_items or M.action_items in modules,
            stale_modules=list(outputs.stale_modules),
        ),
        failures=[ModuleFailureSchema.from_domain(f) for f in outputs.failures] or None,
    )

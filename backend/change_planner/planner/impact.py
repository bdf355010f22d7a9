from typing import Dict, Iterable, List

from change_planner.models.domain import ChangeableField, DetectedChange, RecomputableModule
from change_planner.models.schemas import ApiCall, RecomputePlan

M = RecomputableModule

IMPACT: Dict[ChangeableField, List[RecomputableModule]] = {
    ChangeableField.dates: [M.flights, M.hotels, M.itinerary, M.certainty, M.action_items],
    ChangeableField.budget: [M.hotels, M.itinerary, M.certainty, M.action_items],
    ChangeableField.origin: [M.flights, M.action_items],
    ChangeableField.destination: [
        M.visa,
        M.flights,
        M.hotels,
        M.itinerary,
        M.certainty,
        M.action_items,
    ],
    ChangeableField.passport: [M.visa, M.certainty, M.action_items],
    ChangeableField.travelers: [M.flights, M.hotels, M.certainty, M.action_items],
    ChangeableField.preferences: [M.hotels, M.itinerary, M.action_items],
    ChangeableField.constraints: [M.flights, M.hotels, M.itinerary, M.action_items],
}

# 1 = compute first. Ordering only; modules never wait on each other.
MODULE_PRIORITY: Dict[RecomputableModule, int] = {
    M.visa: 1,
    M.certainty: 1,
    M.action_items: 1,
    M.flights: 2,
    M.hotels: 2,
    M.itinerary: 3,
}


def impact_for(field: ChangeableField) -> List[RecomputableModule]:
    return list(IMPACT[field])


def order_modules(modules: Iterable[RecomputableModule]) -> List[RecomputableModule]:
    return sorted(set(modules), key=lambda m: (MODULE_PRIORITY[m], m.value))


def resolve_modules(changes: List[DetectedChange]) -> List[RecomputableModule]:
    """Union of impacted modules, ordered by priority tier then name."""
    return order_modules(m for change in changes for m in change.impact)


def build_recompute_plan(modules: List[RecomputableModule]) -> RecomputePlan:
    return RecomputePlan(
        modules_to_recompute=list(modules),
        cache_keys_to_invalidate=[],
        api_calls=[
            ApiCall(name=f"recompute_{m.value}", endpoint_key=m, priority=MODULE_PRIORITY[m])
            for m in modules
        ],
    )

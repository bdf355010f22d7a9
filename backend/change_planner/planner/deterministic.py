import logging
from typing import Dict, List, Tuple

from change_planner.models.domain import (
    ChangeSeverity,
    ChangeableField,
    DetectedChange,
    ModuleOutputs,
    OutputSource,
    RecomputableModule,
)
from change_planner.models.schemas import CurrentTripResult

logger = logging.getLogger(__name__)

SEVERITY_PENALTY: Dict[ChangeSeverity, Tuple[int, str]] = {
    ChangeSeverity.high: (-10, "Major change detected (destination or passport)"),
    ChangeSeverity.medium: (-3, "Date change may affect availability"),
    ChangeSeverity.low: (0, "No significant certainty impact"),
}

_SEVERITY_RANK = {ChangeSeverity.low: 0, ChangeSeverity.medium: 1, ChangeSeverity.high: 2}


def max_severity(changes: List[DetectedChange]) -> ChangeSeverity:
    if not changes:
        return ChangeSeverity.low
    return max((c.severity for c in changes), key=_SEVERITY_RANK.__getitem__)


def adjust_certainty(score: float, changes: List[DetectedChange]) -> Tuple[float, str]:
    """Previous score plus the penalty for the worst change, clamped to 0-100."""
    penalty, reason = SEVERITY_PENALTY[max_severity(changes)]
    return max(0.0, min(100.0, score + penalty)), reason


class DeterministicExecutor:
    """
    Recomputes modules with local heuristics only. Fast and always available;
    prices and itinerary are passed through rather than refreshed.
    """

    def execute(
        self,
        changes: List[DetectedChange],
        modules: List[RecomputableModule],
        current: CurrentTripResult,
    ) -> ModuleOutputs:
        outputs = ModuleOutputs(source=OutputSource.deterministic)
        changed_fields = {c.field for c in changes}
        for module in modules:
            if module == RecomputableModule.visa:
                self._visa(outputs, current, changed_fields)
            elif module == RecomputableModule.certainty:
                outputs.certainty_score, outputs.certainty_reason = adjust_certainty(
                    current.certainty_score, changes
                )
            elif module in (RecomputableModule.flights, RecomputableModule.hotels):
                outputs.cost_after = current.total_cost
            elif module == RecomputableModule.itinerary:
                outputs.itinerary_day_count = current.day_count
            elif module == RecomputableModule.action_items:
                outputs.refresh_action_items = True
        logger.debug("Deterministic recompute of %d modules", len(modules))
        return outputs

    @staticmethod
    def _visa(outputs: ModuleOutputs, current: CurrentTripResult, changed_fields: set) -> None:
        visa = current.feasibility_report.visa_details
        if changed_fields & {ChangeableField.destination, ChangeableField.passport}:
            # Needs a visa lookup, which this path never performs.
            outputs.stale_modules.append(RecomputableModule.visa)
        elif visa is not None:
            outputs.visa = visa.model_dump(mode="json")

"""Field-by-field comparison of two trip inputs."""

import hashlib
import json
from typing import Any, List

from pydantic import BaseModel

from change_planner.models.domain import ChangeSeverity, ChangeableField, DetectedChange
from change_planner.models.schemas import TripInput
from change_planner.planner.impact import impact_for

FIELD_ORDER: List[ChangeableField] = list(ChangeableField)


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    return json.dumps(to_jsonable(value), sort_keys=True, separators=(",", ":"), default=str)


def severity_for(field: ChangeableField) -> ChangeSeverity:
    if field in (ChangeableField.destination, ChangeableField.passport):
        return ChangeSeverity.high
    if field == ChangeableField.dates:
        return ChangeSeverity.medium
    return ChangeSeverity.low


def detect_changes(previous: TripInput, proposed: TripInput) -> List[DetectedChange]:
    """
    Compare every changeable field by value. Output follows FIELD_ORDER so the
    same pair of inputs always yields the same list.
    """
    changes: List[DetectedChange] = []
    for field in FIELD_ORDER:
        before = to_jsonable(getattr(previous, field.value))
        after = to_jsonable(getattr(proposed, field.value))
        if canonical_json(before) == canonical_json(after):
            continue
        changes.append(
            DetectedChange(
                field=field,
                before=before,
                after=after,
                impact=impact_for(field),
                severity=severity_for(field),
            )
        )
    return changes


def make_change_id(trip_id: str, previous: TripInput, proposed: TripInput) -> str:
    digest = hashlib.sha1()
    digest.update(str(trip_id).encode("utf-8"))
    digest.update(canonical_json(previous).encode("utf-8"))
    digest.update(canonical_json(proposed).encode("utf-8"))
    return f"chg_{digest.hexdigest()[:10]}"

"""Best-effort extraction of the structured answer from planner text."""

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def extract_structured_block(content: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Look for a fenced JSON block, then the whole text, then the outermost
    brace span. Returns None when nothing decodes to a JSON object.
    """
    if not content or not content.strip():
        return None

    for match in _FENCED_JSON.finditer(content):
        parsed = _load_object(match.group(1))
        if parsed is not None:
            return parsed

    parsed = _load_object(content.strip())
    if parsed is not None:
        return parsed

    start, end = content.find("{"), content.rfind("}")
    if 0 <= start < end:
        parsed = _load_object(content[start : end + 1])
        if parsed is not None:
            return parsed

    logger.warning("Planner answer had no usable JSON block")
    return None


def pick(data: Optional[Dict[str, Any]], *keys: str) -> Any:
    """First present key; accepts snake_case and camelCase spellings."""
    if not isinstance(data, dict):
        return None
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def as_score(value: Any) -> Optional[float]:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if score != score:  # NaN
        return None
    return max(0.0, min(100.0, score))


def as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

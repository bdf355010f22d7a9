"""
Minimal corrective patches for remaining blockers. Only the visa-timing date
shift is implemented; it is a pure function of known visa timing facts.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from change_planner.models.schemas import (
    ExpectedOutcome,
    FeasibilityReport,
    FixOption,
    TripInput,
    VisaDetails,
)

logger = logging.getLogger(__name__)

SAFETY_BUFFER_BUSINESS_DAYS = 2
MIN_SHIFT_CALENDAR_DAYS = 3
DEFAULT_PROCESSING_DAYS = 15
CONFIDENCE_RANK = {"high": 0, "medium": 1, "low": 2}


def business_days_between(start: date, end: date) -> int:
    """Weekdays in [start, end). Holidays are not considered."""
    count = 0
    current = start
    while current < end:
        if current.weekday() < 5:
            count += 1
        current += timedelta(days=1)
    return count


def business_to_calendar_days(business_days: int) -> int:
    # 5 business days ~ 7 calendar days; ceil(n * 1.4) without float error.
    return -(-business_days * 7 // 5)


def snap_to_weekday(value: date) -> date:
    if value.weekday() == 5:
        return value + timedelta(days=2)
    if value.weekday() == 6:
        return value + timedelta(days=1)
    return value


def needs_timing_fix(visa: Optional[VisaDetails]) -> bool:
    if visa is None or not visa.is_blocker or visa.timing is None:
        return False
    return visa.timing.urgency in ("tight", "risky") or visa.timing.has_enough_time is False


def shift_dates_option(
    current_input: TripInput, visa: VisaDetails, today: Optional[date] = None
) -> Optional[FixOption]:
    timing = visa.timing
    dates = current_input.dates
    if timing is None or dates is None or dates.start is None:
        return None

    needed = timing.processing_days_needed or (
        visa.processing_days.maximum if visa.processing_days else 0
    ) or DEFAULT_PROCESSING_DAYS
    available = timing.business_days_until_trip
    if available is None:
        available = business_days_between(today or date.today(), dates.start)
    shortfall = needed - available + SAFETY_BUFFER_BUSINESS_DAYS
    if shortfall <= 0:
        return None

    shift = max(MIN_SHIFT_CALENDAR_DAYS, business_to_calendar_days(shortfall))
    new_start = snap_to_weekday(dates.start + timedelta(days=shift))
    duration = dates.day_count or 1
    new_end = new_start + timedelta(days=duration - 1)

    return FixOption(
        title=f"Shift trip {shift} days later",
        change_patch={
            "dates": {
                "start": new_start.isoformat(),
                "end": new_end.isoformat(),
                "duration": duration,
            }
        },
        expected_outcome=ExpectedOutcome(certainty_after=85, blockers_after=0, cost_delta=0),
        confidence="high",
        shift_days=shift,
    )


def generate_fix_options(
    current_input: TripInput,
    feasibility_report: FeasibilityReport,
    today: Optional[date] = None,
) -> List[FixOption]:
    """Ranked fix options; empty when timing is already sufficient."""
    visa = feasibility_report.visa_details
    if not needs_timing_fix(visa):
        return []

    options: List[FixOption] = []
    shift = shift_dates_option(current_input, visa, today)
    if shift is not None:
        options.append(shift)

    options.sort(key=lambda o: (CONFIDENCE_RANK[o.confidence], o.shift_days or 0))
    logger.info("Generated %d fix option(s)", len(options))
    return options

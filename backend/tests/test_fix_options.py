from datetime import date

from change_planner.models.schemas import FeasibilityReport
from change_planner.planner.fix_options import (
    business_days_between,
    business_to_calendar_days,
    generate_fix_options,
    snap_to_weekday,
)

from conftest import make_input


def _report(visa_type="embassy_visa", required=True, **timing) -> FeasibilityReport:
    return FeasibilityReport.model_validate(
        {
            "score": 55,
            "visa_details": {
                "required": required,
                "type": visa_type,
                "processing_days": {"minimum": 5, "maximum": 15},
                "timing": timing or None,
            },
        }
    )


def test_calendar_conversion_rounds_up():
    assert business_to_calendar_days(5) == 7
    assert business_to_calendar_days(10) == 14
    assert business_to_calendar_days(11) == 16
    assert business_to_calendar_days(1) == 2


def test_weekend_dates_snap_to_monday():
    assert snap_to_weekday(date(2026, 3, 14)) == date(2026, 3, 16)
    assert snap_to_weekday(date(2026, 3, 15)) == date(2026, 3, 16)
    assert snap_to_weekday(date(2026, 3, 17)) == date(2026, 3, 17)


def test_business_days_between_skips_weekends():
    assert business_days_between(date(2026, 2, 20), date(2026, 3, 2)) == 6
    assert business_days_between(date(2026, 3, 2), date(2026, 3, 2)) == 0


def test_shift_covers_shortfall_plus_buffer():
    report = _report(urgency="risky", business_days_until_trip=3, processing_days_needed=10, has_enough_time=False)

    (option,) = generate_fix_options(make_input(), report)

    # 10 needed - 3 available + 2 buffer = 9 business days -> 13 calendar days
    assert option.shift_days == 13
    new_start = date.fromisoformat(option.change_patch["dates"]["start"])
    new_end = date.fromisoformat(option.change_patch["dates"]["end"])
    assert new_start >= date(2026, 3, 15)
    assert new_start.weekday() < 5
    assert (new_end - new_start).days + 1 == 5
    assert option.change_patch["dates"]["duration"] == 5
    assert option.confidence == "high"
    assert option.expected_outcome.blockers_after == 0
    assert option.expected_outcome.certainty_after == 85


def test_small_shortfall_uses_minimum_shift():
    report = _report(urgency="tight", business_days_until_trip=11, processing_days_needed=10)

    (option,) = generate_fix_options(make_input(), report)

    assert option.shift_days == 3
    assert option.change_patch["dates"]["start"] == "2026-03-05"


def test_no_option_when_time_suffices():
    ok = _report(urgency="ok", business_days_until_trip=30, processing_days_needed=18, has_enough_time=True)
    tight_but_covered = _report(urgency="tight", business_days_until_trip=20, processing_days_needed=18)

    assert generate_fix_options(make_input(), ok) == []
    assert generate_fix_options(make_input(), tight_but_covered) == []


def test_no_option_without_a_visa_blocker():
    free = _report(visa_type="visa_free", required=False, urgency="risky")

    assert generate_fix_options(make_input(), free) == []
    assert generate_fix_options(make_input(), FeasibilityReport()) == []


def test_available_days_counted_from_today_when_missing():
    report = _report(urgency="risky", processing_days_needed=18)

    (option,) = generate_fix_options(make_input(), report, today=date(2026, 2, 20))

    # 6 weekdays until 2026-03-02: 18 - 6 + 2 = 14 business -> 20 calendar days
    assert option.shift_days == 20
    assert option.change_patch["dates"]["start"] == "2026-03-23"

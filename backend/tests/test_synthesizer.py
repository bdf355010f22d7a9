from change_planner.models.domain import FailureCode, ModuleFailure, ModuleOutputs, OutputSource
from change_planner.models.domain import RecomputableModule as M
from change_planner.planner.diff import detect_changes
from change_planner.planner.impact import resolve_modules
from change_planner.planner.synthesizer import banner_for, highlight_sections, synthesize

from conftest import make_current, make_input

EMBASSY = {"required": True, "type": "embassy_visa"}


def _synthesize(proposed, outputs, current=None):
    current = current or make_current()
    changes = detect_changes(make_input(), proposed)
    return synthesize("chg_test", changes, resolve_modules(changes), current, outputs)


def test_banner_tone_by_blocker_count():
    assert banner_for(0, None).tone == "green"
    assert banner_for(0, None).subtitle == "You're all set for planning."
    assert banner_for(1, "Apply now").title == "Updated. 1 item need attention."
    assert banner_for(2, None).title == "Updated. 2 items need attention."
    assert banner_for(3, None).tone == "red"


def test_highlight_sections_follow_display_order():
    assert highlight_sections([M.certainty]) == []
    assert highlight_sections([M.visa, M.itinerary, M.hotels, M.action_items]) == [
        "ActionItems",
        "CostBreakdown",
        "Itinerary",
        "VisaCard",
    ]


def test_missing_agent_values_fall_back_to_current_trip():
    proposed = make_input(destination={"city": "Paris", "country": "France"})

    response = _synthesize(proposed, ModuleOutputs(source=OutputSource.agent))

    summary = response.delta_summary
    assert summary.certainty.before == 80
    assert summary.certainty.after == 70
    assert summary.total_cost.after == summary.total_cost.before == 2500
    assert summary.total_cost.notes == []
    assert summary.itinerary.day_count_after == 5
    assert response.ui_instructions.toasts[0].message == "Trip updated successfully."
    assert response.failures is None


def test_resolved_visa_blocker():
    current = make_current(visa=EMBASSY)
    outputs = ModuleOutputs(
        source=OutputSource.agent,
        visa={"required": False, "type": "visa_free"},
        certainty_score=88,
        cost_after=2300,
    )

    response = _synthesize(make_input(passport="Germany"), outputs, current)

    blockers = response.delta_summary.blockers
    assert (blockers.before, blockers.after) == (1, 0)
    assert blockers.resolved == ["Visa no longer required"]
    assert response.ui_instructions.banner.tone == "green"
    assert response.delta_summary.certainty.after == 88
    assert response.delta_summary.total_cost.delta == -200
    assert response.updated_data.visa.type == "visa_free"


def test_new_visa_blocker():
    outputs = ModuleOutputs(source=OutputSource.agent, visa=EMBASSY)

    response = _synthesize(make_input(passport="India"), outputs)

    assert response.delta_summary.blockers.new == ["Visa now required"]
    assert response.ui_instructions.banner.tone == "amber"


def test_failures_become_warning_toasts():
    outputs = ModuleOutputs(
        source=OutputSource.agent,
        failures=[ModuleFailure(M.hotels, FailureCode.tool_error, "upstream 503", True)],
        notices=["Heads up"],
    )

    response = _synthesize(make_input(budget={"total": 2000}), outputs)

    toasts = [(t.tone, t.message) for t in response.ui_instructions.toasts]
    assert toasts == [
        ("success", "Trip updated successfully."),
        ("warning", "Heads up"),
        ("warning", "Could not refresh hotels; showing previous values."),
    ]
    assert response.failures[0].module == M.hotels


def test_daily_costs_merge_into_cost_breakdown():
    outputs = ModuleOutputs(source=OutputSource.agent, daily_costs={"total_trip": {"total": 900}})

    response = _synthesize(make_input(budget={"total": 2000}), outputs)

    assert response.updated_data.cost_breakdown["grand_total"] == 2500
    assert response.updated_data.cost_breakdown["daily_costs"] == {"total_trip": {"total": 900}}
    assert response.updated_data.refresh_action_items is True

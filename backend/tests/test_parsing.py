from change_planner.planner.parsing import as_number, as_score, extract_structured_block, pick


def test_fenced_block_is_preferred():
    content = 'Here you go:\n```json\n{"recommendation": "Apply now"}\n```\nThanks'

    assert extract_structured_block(content) == {"recommendation": "Apply now"}


def test_bare_and_embedded_objects():
    assert extract_structured_block('{"a": 1}') == {"a": 1}
    assert extract_structured_block('Result: {"a": {"b": 2}} done') == {"a": {"b": 2}}


def test_unusable_answers_return_none():
    assert extract_structured_block(None) is None
    assert extract_structured_block("   ") is None
    assert extract_structured_block("no json here") is None
    assert extract_structured_block("[1, 2, 3]") is None
    assert extract_structured_block("{not: valid}") is None


def test_pick_accepts_either_spelling():
    data = {"updatedData": {"visa": None}, "deltas": {"certainty_after": 61}}

    assert pick(data, "updated_data", "updatedData") == {"visa": None}
    assert pick(data["deltas"], "certaintyAfter", "certainty_after") == 61
    assert pick("not a dict", "x") is None


def test_scores_and_numbers_are_coerced():
    assert as_score("72.6") == 72.6
    assert as_score(130) == 100
    assert as_score(-4) == 0
    assert as_score(float("nan")) is None
    assert as_score("high") is None
    assert as_number("12.5") == 12.5
    assert as_number(True) is None

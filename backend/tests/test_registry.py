import json
from datetime import date

import pytest
from pydantic import BaseModel

from change_planner.llm.tools.registry import (
    InvalidToolArgumentsError,
    ToolExecutionContext,
    ToolRegistry,
    ToolSpec,
    UnknownToolError,
    execute_tool_call,
)
from change_planner.models.domain import FailureCode, RecomputableModule, ToolCall

from conftest import make_current, make_input


class CountArgs(BaseModel):
    count: int


def _context() -> ToolExecutionContext:
    return ToolExecutionContext(current_trip=make_current(), proposed=make_input(), today=date(2026, 2, 20))


def _registry(calls: list) -> ToolRegistry:
    def executor(args: CountArgs, context: ToolExecutionContext) -> str:
        calls.append(args.count)
        return json.dumps({"count": args.count})

    registry = ToolRegistry()
    registry.register(
        ToolSpec(
            name="count",
            description="Count things",
            args_model=CountArgs,
            executor=executor,
            module=RecomputableModule.hotels,
        )
    )
    return registry


def test_execute_validates_and_runs():
    calls: list = []
    registry = _registry(calls)

    result = registry.execute("count", {"count": "3"}, _context())

    assert json.loads(result) == {"count": 3}
    assert calls == [3]
    assert registry.module_for("count") == RecomputableModule.hotels
    assert registry.module_for("missing") is None


def test_unknown_tool_raises():
    with pytest.raises(UnknownToolError):
        _registry([]).execute("nope", {}, _context())


def test_invalid_arguments_never_reach_executor():
    calls: list = []

    with pytest.raises(InvalidToolArgumentsError):
        _registry(calls).execute("count", {"count": "many"}, _context())
    assert calls == []


def test_duplicate_registration_rejected():
    registry = _registry([])
    with pytest.raises(ValueError):
        registry.register(registry.get("count"))


def test_definitions_expose_json_schema():
    (definition,) = _registry([]).definitions()

    assert definition["type"] == "function"
    assert definition["function"]["name"] == "count"
    assert definition["function"]["parameters"]["required"] == ["count"]


@pytest.mark.parametrize(
    "name, arguments, code",
    [
        ("nope", {}, FailureCode.unknown_tool),
        ("count", {}, FailureCode.invalid_arguments),
    ],
)
def test_execute_tool_call_turns_errors_into_payloads(name, arguments, code):
    result = execute_tool_call(_registry([]), ToolCall(id="c1", name=name, arguments=arguments), _context())

    assert not result.ok
    assert result.error_code == code
    payload = json.loads(result.content)
    assert payload["tool"] == name
    assert payload["code"] == code.value
    assert payload["error"]


def test_execute_tool_call_catches_executor_exceptions():
    def explode(args, context):
        raise RuntimeError("provider down")

    registry = ToolRegistry()
    registry.register(
        ToolSpec("explode", "Always fails", CountArgs, explode, RecomputableModule.flights)
    )

    result = execute_tool_call(registry, ToolCall(id="c1", name="explode", arguments={"count": 1}), _context())

    assert result.error_code == FailureCode.tool_error
    assert json.loads(result.content)["error"] == "provider down"

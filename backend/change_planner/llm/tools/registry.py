"""
Name-keyed catalog of the external capabilities the planner may call.

Each tool declares a pydantic argument model; arguments are validated against
it before the executor runs, so an executor never sees a malformed bag.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Type

from pydantic import BaseModel, ValidationError

from change_planner.models.domain import FailureCode, RecomputableModule, ToolCall, ToolCallResult
from change_planner.models.schemas import CurrentTripResult, TripInput

logger = logging.getLogger(__name__)


class ToolError(Exception):
    code = FailureCode.tool_error


class UnknownToolError(ToolError):
    code = FailureCode.unknown_tool

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class InvalidToolArgumentsError(ToolError):
    code = FailureCode.invalid_arguments


@dataclass(frozen=True)
class ToolExecutionContext:
    """Read-only snapshot handed to every tool call of a run."""

    current_trip: CurrentTripResult
    proposed: TripInput
    today: date = field(default_factory=date.today)


ToolExecutor = Callable[[Any, ToolExecutionContext], str]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_model: Type[BaseModel]
    executor: ToolExecutor
    module: RecomputableModule

    def definition(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_model.model_json_schema(),
            },
        }


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def get(self, name: str) -> ToolSpec:
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownToolError(name)
        return spec

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def definitions(self) -> List[Dict[str, Any]]:
        return [spec.definition() for spec in self._tools.values()]

    def module_for(self, name: str) -> RecomputableModule | None:
        spec = self._tools.get(name)
        return spec.module if spec else None

    def execute(self, name: str, arguments: Dict[str, Any], context: ToolExecutionContext) -> str:
        spec = self.get(name)
        try:
            args = spec.args_model.model_validate(arguments)
        except ValidationError as exc:
            raise InvalidToolArgumentsError(
                f"Invalid arguments for {name}: {exc.error_count()} error(s)"
            ) from exc
        return spec.executor(args, context)


def execute_tool_call(
    registry: ToolRegistry, call: ToolCall, context: ToolExecutionContext
) -> ToolCallResult:
    """Run one call; any failure is turned into an error payload string."""
    logger.info("Executing tool %s (%s)", call.name, call.id)
    try:
        content = registry.execute(call.name, call.arguments, context)
        return ToolCallResult(call=call, content=content)
    except ToolError as exc:
        logger.warning("Tool %s rejected: %s", call.name, exc)
        code, message = exc.code, str(exc)
    except Exception as exc:  # noqa: BLE001
        logger.error("Tool %s failed: %s", call.name, exc)
        code, message = FailureCode.tool_error, str(exc) or "Tool execution failed"
    payload = json.dumps({"error": message, "tool": call.name, "code": code.value})
    return ToolCallResult(call=call, content=payload, error_code=code, error_message=message)

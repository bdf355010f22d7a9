from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from change_planner.llm.tools.registry import ToolExecutionContext
from change_planner.models.domain import DetectedChange, ToolCall


class PlannerError(Exception):
    """The planning model could not be reached or answered malformed."""


@dataclass
class PlannerRequest:
    system_prompt: str
    messages: List[Dict[str, Any]]
    tools: List[Dict[str, Any]]
    allow_tools: bool
    context: ToolExecutionContext
    changes: List[DetectedChange] = field(default_factory=list)


@dataclass
class PlannerReply:
    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)


class PlannerBackend(Protocol):
    def chat(self, request: PlannerRequest) -> PlannerReply:
        ...


class LLMClient:
    """
    Pluggable planner client. Backends speak to a concrete model; any error
    they raise surfaces here as PlannerError so callers handle one type.
    """

    def __init__(self, backend: PlannerBackend):
        self.backend = backend

    def chat(self, request: PlannerRequest) -> PlannerReply:
        try:
            return self.backend.chat(request)
        except PlannerError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise PlannerError(f"{type(self.backend).__name__} failed: {exc}") from exc

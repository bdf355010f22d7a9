"""
Bounded tool-calling loop. The planning model decides which tools to call;
this module executes them, feeds results back and turns the final answer into
ModuleOutputs.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from change_planner.core.config import settings
from change_planner.llm.client import LLMClient, PlannerRequest
from change_planner.llm.tools import catalog
from change_planner.llm.tools.registry import ToolExecutionContext, ToolRegistry, execute_tool_call
from change_planner.models.domain import (
    ChangeSource,
    DetectedChange,
    FailureCode,
    ModuleFailure,
    ModuleOutputs,
    OutputSource,
    RecomputableModule,
    ToolCall,
    ToolCallResult,
)
from change_planner.planner.parsing import as_number, as_score, extract_structured_block, pick
from change_planner.planner.prompts import CHANGE_PLANNER_SYSTEM_PROMPT, format_change_request

logger = logging.getLogger(__name__)


class AgentState(str, Enum):
    analyze = "ANALYZE"
    tool_dispatch = "TOOL_DISPATCH"
    synthesize = "SYNTHESIZE"
    done = "DONE"


@dataclass
class AgentRun:
    content: Optional[str]
    parsed: Optional[Dict[str, Any]]
    outputs: ModuleOutputs
    iterations: int
    transcript: List[Dict[str, Any]] = field(default_factory=list)
    tool_results: List[ToolCallResult] = field(default_factory=list)
    states: List[AgentState] = field(default_factory=list)


class AgenticOrchestrator:
    def __init__(
        self,
        client: LLMClient,
        registry: ToolRegistry,
        max_iterations: int = settings.max_iterations,
        max_tool_calls_per_round: int = settings.max_tool_calls_per_round,
    ):
        if max_iterations < 1 or max_tool_calls_per_round < 1:
            raise ValueError("Iteration and tool-call caps must be positive")
        self.client = client
        self.registry = registry
        self.max_iterations = max_iterations
        self.max_tool_calls_per_round = max_tool_calls_per_round

    def run(
        self,
        trip_id: str,
        changes: List[DetectedChange],
        context: ToolExecutionContext,
        source: ChangeSource = ChangeSource.edit_trip,
    ) -> AgentRun:
        """
        Drive the planner until it stops requesting tools or the iteration cap
        is hit. PlannerError from the model call propagates to the caller.
        """
        transcript: List[Dict[str, Any]] = [
            {
                "role": "user",
                "content": format_change_request(
                    trip_id, context.proposed, context.current_trip, source, changes
                ),
            }
        ]
        tool_results: List[ToolCallResult] = []
        states: List[AgentState] = []
        last_content: Optional[str] = None
        iterations = 0

        while iterations < self.max_iterations:
            iterations += 1
            states.append(AgentState.analyze)
            allow_tools = iterations < self.max_iterations
            logger.info("Planner iteration %d/%d", iterations, self.max_iterations)

            reply = self.client.chat(
                PlannerRequest(
                    system_prompt=CHANGE_PLANNER_SYSTEM_PROMPT,
                    messages=list(transcript),
                    tools=self.registry.definitions(),
                    allow_tools=allow_tools,
                    context=context,
                    changes=changes,
                )
            )
            if reply.content:
                last_content = reply.content
            if not reply.tool_calls or not allow_tools:
                break

            states.append(AgentState.tool_dispatch)
            calls = reply.tool_calls[: self.max_tool_calls_per_round]
            if len(reply.tool_calls) > len(calls):
                logger.warning(
                    "Planner requested %d tool calls, running first %d",
                    len(reply.tool_calls),
                    len(calls),
                )
            transcript.append(_assistant_message(reply.content, calls))
            results = self._dispatch(calls, context)
            for result in results:
                transcript.append(
                    {"role": "tool", "tool_call_id": result.call.id, "content": result.content}
                )
            tool_results.extend(results)

        states.append(AgentState.synthesize)
        parsed = extract_structured_block(last_content)
        outputs = outputs_from_agent(parsed, tool_results, self.registry)
        states.append(AgentState.done)
        logger.info(
            "Planner finished after %d iteration(s), %d tool call(s), parsed=%s",
            iterations,
            len(tool_results),
            parsed is not None,
        )
        return AgentRun(
            content=last_content,
            parsed=parsed,
            outputs=outputs,
            iterations=iterations,
            transcript=transcript,
            tool_results=tool_results,
            states=states,
        )

    def _dispatch(self, calls: List[ToolCall], context: ToolExecutionContext) -> List[ToolCallResult]:
        # map() keeps issue order regardless of completion order.
        with ThreadPoolExecutor(max_workers=len(calls)) as pool:
            return list(pool.map(lambda call: execute_tool_call(self.registry, call, context), calls))


def _assistant_message(content: Optional[str], calls: List[ToolCall]) -> Dict[str, Any]:
    return {
        "role": "assistant",
        "content": content,
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
            }
            for call in calls
        ],
    }


def _non_empty(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) and value else None


def _harvest(results: List[ToolCallResult]) -> Dict[str, Dict[str, Any]]:
    """Last successful payload per tool name."""
    payloads: Dict[str, Dict[str, Any]] = {}
    for result in results:
        if not result.ok:
            continue
        try:
            payload = json.loads(result.content)
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            payloads[result.call.name] = payload
    return payloads


def collect_failures(results: List[ToolCallResult], registry: ToolRegistry) -> List[ModuleFailure]:
    """
    One failure per module whose calls all failed. Calls to unknown tools have
    no module and are only logged.
    """
    failed: Dict[RecomputableModule, ModuleFailure] = {}
    succeeded = set()
    for result in results:
        module = registry.module_for(result.call.name)
        if module is None:
            logger.warning("Planner called unknown tool %s", result.call.name)
            continue
        if result.ok:
            succeeded.add(module)
        elif module not in failed:
            code = result.error_code or FailureCode.tool_error
            failed[module] = ModuleFailure(
                module=module,
                code=code,
                message=result.error_message or "Tool execution failed",
                retryable=code == FailureCode.tool_error,
            )
    return [f for m, f in failed.items() if m not in succeeded]


def outputs_from_agent(
    parsed: Optional[Dict[str, Any]],
    results: List[ToolCallResult],
    registry: ToolRegistry,
) -> ModuleOutputs:
    """
    Fields come from the structured answer first, then from the raw tool
    payloads. Anything still missing stays None for the synthesizer to fill.
    """
    updated = pick(parsed, "updated_data", "updatedData") or {}
    deltas = pick(parsed, "deltas") or {}
    harvested = _harvest(results)

    certainty_tool = harvested.get(catalog.CALCULATE_CERTAINTY_SCORE, {})
    itinerary_tool = harvested.get(catalog.REGENERATE_ITINERARY_DAYS, {})
    certainty_score = as_score(pick(pick(updated, "certainty"), "score"))
    if certainty_score is None:
        certainty_score = as_score(pick(deltas, "certainty_after", "certaintyAfter"))
    if certainty_score is None:
        certainty_score = as_score(certainty_tool.get("score"))

    recommendation = pick(parsed, "recommendation")
    if not isinstance(recommendation, str):
        recommendation = None
    reason = pick(deltas, "explanation")
    if not isinstance(reason, str):
        reason = recommendation or certainty_tool.get("explanation")

    day_count = as_number(itinerary_tool.get("days_count"))

    return ModuleOutputs(
        source=OutputSource.agent,
        visa=_non_empty(pick(updated, "visa")) or harvested.get(catalog.GET_VISA_REQUIREMENTS),
        flights=_non_empty(pick(updated, "flights")) or harvested.get(catalog.SEARCH_FLIGHTS),
        hotels=_non_empty(pick(updated, "hotels")) or harvested.get(catalog.SEARCH_HOTELS),
        daily_costs=_non_empty(pick(updated, "daily_costs", "dailyCosts"))
        or harvested.get(catalog.ESTIMATE_DAILY_COSTS),
        certainty_score=certainty_score,
        certainty_reason=reason,
        cost_after=as_number(pick(deltas, "cost_after", "costAfter")),
        itinerary_day_count=int(day_count) if day_count is not None else None,
        recommendation=recommendation,
        failures=collect_failures(results, registry),
    )

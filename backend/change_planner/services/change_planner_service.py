import logging
import time
from datetime import date, datetime, timezone
from typing import Optional

from change_planner.core.config import Settings, settings as default_settings
from change_planner.llm.backends.ollama_backend import OllamaPlannerBackend
from change_planner.llm.backends.openai_backend import OpenAICompatiblePlannerBackend
from change_planner.llm.client import LLMClient, PlannerBackend
from change_planner.llm.planner import MockPlannerBackend
from change_planner.llm.tools.catalog import build_default_registry
from change_planner.llm.tools.registry import ToolExecutionContext, ToolRegistry
from change_planner.models.domain import ModuleOutputs, RecomputableModule
from change_planner.models.schemas import (
    ChangePlanRequest,
    ChangePlannerResponse,
    FixOptionsRequest,
    FixOptionsResponse,
    PlannerStatus,
)
from change_planner.planner.agent import AgenticOrchestrator
from change_planner.planner.deterministic import DeterministicExecutor
from change_planner.planner.diff import detect_changes, make_change_id
from change_planner.planner.fix_options import generate_fix_options
from change_planner.planner.impact import resolve_modules
from change_planner.planner.synthesizer import synthesize

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Using simplified update (AI unavailable)."


def backend_from_settings(config: Settings) -> Optional[PlannerBackend]:
    provider = config.llm_provider.lower()
    if provider == "mock":
        return MockPlannerBackend()
    if provider == "ollama":
        return OllamaPlannerBackend(host=config.ollama_host, model=config.ollama_model)
    if provider == "openai":
        if not config.openai_api_key:
            logger.warning("LLM_PROVIDER=openai but no OPENAI_API_KEY; agent disabled")
            return None
        return OpenAICompatiblePlannerBackend(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            model=config.openai_model,
        )
    return None


class ChangePlannerService:
    """
    Entry point for a planning run: diff, resolve impact, execute through the
    agent when configured (falling back to heuristics on any agent error) and
    synthesize one response shape.
    """

    def __init__(
        self,
        config: Settings = default_settings,
        backend: Optional[PlannerBackend] = None,
        registry: Optional[ToolRegistry] = None,
    ):
        self.settings = config
        self.registry = registry or build_default_registry(config)
        self.deterministic = DeterministicExecutor()
        if backend is None:
            backend = backend_from_settings(config)
        self.orchestrator = (
            AgenticOrchestrator(
                client=LLMClient(backend=backend),
                registry=self.registry,
                max_iterations=config.max_iterations,
                max_tool_calls_per_round=config.max_tool_calls_per_round,
            )
            if backend is not None
            else None
        )
        mode = "agent" if self.orchestrator else "deterministic"
        logger.info("Change planner ready (%s mode)", mode)

    @property
    def agent_initialized(self) -> bool:
        return self.orchestrator is not None

    def status(self) -> PlannerStatus:
        use_agent = self.settings.use_change_planner_agent
        return PlannerStatus(
            agent_initialized=self.agent_initialized,
            use_agent_default=use_agent,
            mode="agent" if use_agent and self.agent_initialized else "deterministic",
        )

    def plan_change(
        self, request: ChangePlanRequest, today: Optional[date] = None
    ) -> ChangePlannerResponse:
        started = time.perf_counter()
        change_id = make_change_id(request.trip_id, request.previous, request.proposed)
        changes = detect_changes(request.previous, request.proposed)
        modules = resolve_modules(changes)
        current = request.current_results
        logger.info(
            "Planning %s for trip %s (source=%s): %d change(s), modules=%s",
            change_id,
            request.trip_id,
            request.source.value,
            len(changes),
            ",".join(m.value for m in modules) or "-",
        )

        use_agent = request.use_agent
        if use_agent is None:
            use_agent = self.settings.use_change_planner_agent

        outputs: Optional[ModuleOutputs] = None
        if changes and use_agent and self.orchestrator is not None:
            context = ToolExecutionContext(
                current_trip=current,
                proposed=request.proposed,
                today=today or date.today(),
            )
            try:
                run = self.orchestrator.run(request.trip_id, changes, context, request.source)
                outputs = run.outputs
            except Exception as exc:  # noqa: BLE001
                logger.warning("Agent failed, falling back to deterministic: %s", exc)
                outputs = self.deterministic.execute(changes, modules, current)
                outputs.notices.append(FALLBACK_NOTICE)
        if outputs is None:
            outputs = self.deterministic.execute(changes, modules, current)

        response = synthesize(change_id, changes, modules, current, outputs)
        # A stale visa means the known timing belongs to the previous trip.
        visa_stale = RecomputableModule.visa in response.updated_data.stale_modules
        if response.delta_summary.blockers.after and not visa_stale:
            report = current.feasibility_report
            if response.updated_data.visa is not None:
                report = report.model_copy(update={"visa_details": response.updated_data.visa})
            response.fix_options = (
                generate_fix_options(request.proposed, report, today) or None
            )

        logger.info(
            "Completed %s in %dms, certainty %g -> %g",
            change_id,
            (time.perf_counter() - started) * 1000,
            response.delta_summary.certainty.before,
            response.delta_summary.certainty.after,
        )
        return response

    def fix_options(self, request: FixOptionsRequest, today: Optional[date] = None) -> FixOptionsResponse:
        options = generate_fix_options(
            request.current_input, request.feasibility_report, today
        )
        logger.info("Generated %d fix option(s) for trip %s", len(options), request.trip_id)
        return FixOptionsResponse(
            trip_id=request.trip_id,
            options=options,
            generated_at=datetime.now(timezone.utc),
        )


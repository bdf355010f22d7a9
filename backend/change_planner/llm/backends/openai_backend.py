from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

import requests

from change_planner.core.config import settings
from change_planner.llm.client import PlannerBackend, PlannerError, PlannerReply, PlannerRequest
from change_planner.models.domain import ToolCall

logger = logging.getLogger(__name__)


def _parse_arguments(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw or "{}")
    except json.JSONDecodeError:
        logger.warning("Planner sent non-JSON tool arguments: %s", raw)
        return {"__raw__": raw}
    return parsed if isinstance(parsed, dict) else {"__raw__": raw}


@dataclass
class OpenAICompatiblePlannerBackend(PlannerBackend):
    """
    Planner backend for any OpenAI-compatible /chat/completions endpoint
    (DeepSeek by default).
    """

    api_key: str
    base_url: str = settings.openai_base_url
    model: str = settings.openai_model
    timeout: int = settings.planner_timeout_seconds

    def chat(self, request: PlannerRequest) -> PlannerReply:
        messages: List[dict] = [{"role": "system", "content": request.system_prompt}]
        messages.extend(request.messages)
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.3,
            "max_tokens": 2000,
            "tools": request.tools,
            # Forces a final answer on the last round.
            "tool_choice": "auto" if request.allow_tools else "none",
        }
        try:
            resp = requests.post(
                f"{self.base_url.rstrip('/')}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            message = resp.json()["choices"][0]["message"]
        except (requests.RequestException, ValueError, KeyError, IndexError) as exc:
            logger.error("Chat completion request failed: %s", exc)
            raise PlannerError(f"Chat completion request failed: {exc}") from exc

        calls = [
            ToolCall(
                id=c.get("id") or f"call_{idx}",
                name=c.get("function", {}).get("name", "unknown"),
                arguments=_parse_arguments(c.get("function", {}).get("arguments")),
            )
            for idx, c in enumerate(message.get("tool_calls") or [])
        ]
        return PlannerReply(content=message.get("content") or None, tool_calls=calls)

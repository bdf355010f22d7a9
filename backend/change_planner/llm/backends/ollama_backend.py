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


@dataclass
class OllamaPlannerBackend(PlannerBackend):
    """
    Planner backend using Ollama's chat API with tool calling.
    Tool arguments arrive as objects; call ids are synthesized per round.
    """

    host: str = settings.ollama_host
    model: str = settings.ollama_model
    timeout: int = settings.planner_timeout_seconds

    def _build_messages(self, request: PlannerRequest) -> List[dict]:
        messages: List[dict] = [{"role": "system", "content": request.system_prompt}]
        for message in request.messages:
            if message["role"] == "assistant" and message.get("tool_calls"):
                messages.append(
                    {
                        "role": "assistant",
                        "content": message.get("content") or "",
                        "tool_calls": [
                            {
                                "function": {
                                    "name": c["function"]["name"],
                                    "arguments": json.loads(c["function"]["arguments"]),
                                }
                            }
                            for c in message["tool_calls"]
                        ],
                    }
                )
            elif message["role"] == "tool":
                messages.append({"role": "tool", "content": message["content"]})
            else:
                messages.append({"role": message["role"], "content": message["content"]})
        return messages

    def chat(self, request: PlannerRequest) -> PlannerReply:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": self._build_messages(request),
            "stream": False,
            "options": {"temperature": 0.3},
        }
        if request.allow_tools:
            payload["tools"] = request.tools
        try:
            resp = requests.post(f"{self.host}/api/chat", json=payload, timeout=self.timeout)
            resp.raise_for_status()
            message = resp.json().get("message", {})
        except (requests.RequestException, ValueError) as exc:
            logger.error("Ollama request failed: %s", exc)
            raise PlannerError(f"Ollama request failed: {exc}") from exc

        calls = [
            ToolCall(
                id=f"call_{idx}",
                name=c.get("function", {}).get("name", "unknown"),
                arguments=c.get("function", {}).get("arguments") or {},
            )
            for idx, c in enumerate(message.get("tool_calls") or [])
        ]
        return PlannerReply(content=message.get("content") or None, tool_calls=calls)

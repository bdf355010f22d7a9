import json
import logging
from typing import Dict, List, Optional

from change_planner.llm.client import PlannerBackend, PlannerReply, PlannerRequest
from change_planner.llm.tools import catalog
from change_planner.models.domain import ChangeableField, ToolCall

logger = logging.getLogger(__name__)

F = ChangeableField

VISA_FIELDS = {F.destination, F.passport}
FLIGHT_FIELDS = {F.dates, F.destination, F.origin, F.travelers, F.constraints}
HOTEL_FIELDS = {F.dates, F.destination, F.travelers, F.budget, F.preferences, F.constraints}
COST_FIELDS = {F.dates, F.destination, F.travelers, F.budget, F.preferences}
TRAVEL_STYLES = ("budget", "moderate", "luxury")


class MockPlannerBackend(PlannerBackend):
    """
    A deterministic planner that simulates LLM tool use. Round one requests
    the data tools matching the changed fields, round two scores certainty from
    what came back, and the last round answers with the JSON block the system
    prompt asks for.
    """

    def chat(self, request: PlannerRequest) -> PlannerReply:
        results = self._tool_results(request.messages)
        if request.allow_tools:
            calls = self._next_calls(request, results)
            if calls:
                return PlannerReply(content=None, tool_calls=calls)
        return PlannerReply(content=self._answer(request, results))

    @staticmethod
    def _tool_results(messages: List[dict]) -> Dict[str, dict]:
        names: Dict[str, str] = {}
        results: Dict[str, dict] = {}
        for message in messages:
            for call in message.get("tool_calls") or []:
                names[call["id"]] = call["function"]["name"]
            if message["role"] == "tool":
                try:
                    payload = json.loads(message["content"])
                except json.JSONDecodeError:
                    continue
                name = names.get(message.get("tool_call_id", ""))
                if name and isinstance(payload, dict) and "error" not in payload:
                    results[name] = payload
        return results

    def _next_calls(self, request: PlannerRequest, results: Dict[str, dict]) -> List[ToolCall]:
        called = {
            c["function"]["name"]
            for m in request.messages
            for c in (m.get("tool_calls") or [])
        }
        if not called:
            return self._data_calls(request)
        if catalog.CALCULATE_CERTAINTY_SCORE not in called:
            call = self._certainty_call(request, results)
            return [call] if call else []
        return []

    def _data_calls(self, request: PlannerRequest) -> List[ToolCall]:
        proposed = request.context.proposed
        fields = {c.field for c in request.changes}
        destination = proposed.destination.label if proposed.destination else ""
        dates = proposed.dates
        has_dates = bool(dates and dates.start and dates.end)
        travelers = proposed.travelers.total if proposed.travelers else 1
        calls: List[ToolCall] = []

        def add(name: str, arguments: dict) -> None:
            calls.append(ToolCall(id=f"mock_{len(calls)}", name=name, arguments=arguments))

        if fields & VISA_FIELDS and proposed.passport and proposed.destination:
            add(
                catalog.GET_VISA_REQUIREMENTS,
                {
                    "passport_country": proposed.passport,
                    "destination_country": proposed.destination.country or destination,
                    "trip_duration_days": (dates.day_count if dates else None) or 14,
                },
            )
        if fields & FLIGHT_FIELDS and has_dates and proposed.origin and destination:
            add(
                catalog.SEARCH_FLIGHTS,
                {
                    "origin": proposed.origin.label,
                    "destination": destination,
                    "departure_date": dates.start.isoformat(),
                    "return_date": dates.end.isoformat(),
                    "passengers": travelers,
                },
            )
        if fields & HOTEL_FIELDS and has_dates and destination:
            add(
                catalog.SEARCH_HOTELS,
                {
                    "destination": destination,
                    "check_in": dates.start.isoformat(),
                    "check_out": dates.end.isoformat(),
                    "guests": travelers,
                },
            )
        if fields & COST_FIELDS and destination:
            add(
                catalog.ESTIMATE_DAILY_COSTS,
                {
                    "destination": destination,
                    "travel_style": self._travel_style(request),
                    "num_days": (dates.day_count if dates else None) or 1,
                    "travelers": travelers,
                },
            )
        return calls

    @staticmethod
    def _travel_style(request: PlannerRequest) -> str:
        prefs = request.context.proposed.preferences
        style = (prefs.hotel_class or "").lower() if prefs else ""
        return style if style in TRAVEL_STYLES else "moderate"

    def _certainty_call(self, request: PlannerRequest, results: Dict[str, dict]) -> Optional[ToolCall]:
        if not results:
            return None
        visa = results.get(catalog.GET_VISA_REQUIREMENTS)
        if visa is None:
            known = request.context.current_trip.feasibility_report.visa_details
            visa_status = (known.type if known else None) or "visa_free"
        else:
            visa_status = visa.get("type", "visa_free")
        arguments = {
            "visa_status": visa_status,
            "budget_adequacy": self._budget_adequacy(request, results),
            "safety_level": "moderate_caution",
        }
        dates = request.context.proposed.dates
        if dates and dates.start:
            arguments["days_until_trip"] = (dates.start - request.context.today).days
        return ToolCall(id="mock_certainty", name=catalog.CALCULATE_CERTAINTY_SCORE, arguments=arguments)

    def _budget_adequacy(self, request: PlannerRequest, results: Dict[str, dict]) -> str:
        budget = request.context.proposed.budget
        cost = self._estimated_cost(results)
        if not budget or cost is None or cost <= 0:
            return "adequate"
        ratio = budget.total / cost
        if ratio >= 1.3:
            return "comfortable"
        if ratio >= 1.0:
            return "adequate"
        if ratio >= 0.8:
            return "tight"
        return "insufficient"

    @staticmethod
    def _estimated_cost(results: Dict[str, dict]) -> Optional[float]:
        flights = results.get(catalog.SEARCH_FLIGHTS)
        hotels = results.get(catalog.SEARCH_HOTELS)
        if not flights or not hotels:
            return None
        flight = flights.get("flight") or flights.get("estimate") or {}
        hotel = hotels.get("hotel") or hotels.get("estimate") or {}
        daily = (results.get(catalog.ESTIMATE_DAILY_COSTS) or {}).get("total_trip", {})
        return float(flight.get("price", 0)) + float(hotel.get("total_price", 0)) + float(
            daily.get("total", 0)
        )

    def _answer(self, request: PlannerRequest, results: Dict[str, dict]) -> str:
        current = request.context.current_trip
        certainty = results.get(catalog.CALCULATE_CERTAINTY_SCORE)
        cost_after = self._estimated_cost(results)
        deltas: dict = {
            "certainty_before": current.certainty_score,
            "cost_before": current.total_cost,
            "explanation": certainty["explanation"]
            if certainty
            else "Trip details updated; scores carried over.",
        }
        if certainty:
            deltas["certainty_after"] = certainty["score"]
        if cost_after is not None:
            deltas["cost_after"] = cost_after

        visa = results.get(catalog.GET_VISA_REQUIREMENTS)
        recommendation = "Review the updated estimates."
        if visa and visa.get("required") and visa.get("type") != "visa_free":
            recommendation = "Start your visa application soon."

        answer = {
            "analysis": {
                "changed_fields": [c.field.value for c in request.changes],
                "modules_recomputed": sorted(results),
            },
            "updated_data": {
                "visa": visa,
                "flights": results.get(catalog.SEARCH_FLIGHTS),
                "hotels": results.get(catalog.SEARCH_HOTELS),
                "daily_costs": results.get(catalog.ESTIMATE_DAILY_COSTS),
                "certainty": {"score": certainty["score"]} if certainty else None,
            },
            "deltas": deltas,
            "recommendation": recommendation,
        }
        logger.debug("Mock planner answering after %d tool result(s)", len(results))
        return f"```json\n{json.dumps(answer)}\n```"

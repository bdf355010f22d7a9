from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from change_planner.llm.tools.cache import TTLCache
from change_planner.llm.tools.registry import ToolExecutionContext

logger = logging.getLogger(__name__)

VISA_FREE: Dict[str, List[str]] = {
    "united states": [
        "canada", "mexico", "uk", "france", "germany", "italy", "spain", "japan",
        "south korea", "singapore", "thailand", "indonesia", "malaysia", "philippines",
    ],
    "india": [
        "thailand", "indonesia", "maldives", "mauritius", "fiji", "jamaica",
        "serbia", "tunisia", "ecuador", "dominica",
    ],
    "uk": [
        "usa", "canada", "eu", "japan", "south korea", "singapore", "thailand",
        "malaysia", "indonesia", "australia", "new zealand",
    ],
}

VISA_ON_ARRIVAL: Dict[str, List[str]] = {
    "india": ["thailand", "indonesia", "cambodia", "laos", "myanmar", "nepal"],
    "united states": ["egypt", "turkey", "cambodia", "laos"],
}

BASE_DOCUMENTS = ["Valid passport (6+ months validity)"]


class VisaLookupArgs(BaseModel):
    passport_country: str = Field(
        description="The country that issued the passport (e.g., 'India', 'United States')"
    )
    destination_country: str = Field(
        description="The destination country to visit (e.g., 'Thailand', 'Japan')"
    )
    trip_duration_days: int = Field(14, description="How many days the traveler plans to stay")


class VisaLookupTool:
    """
    Visa requirements from a small built-in knowledge base. Facts per
    passport/destination pair are cached; timing is recomputed per call because
    it depends on the trip start date.
    """

    def __init__(self, cache: TTLCache, ttl_seconds: float) -> None:
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def run(self, args: VisaLookupArgs, context: ToolExecutionContext) -> str:
        facts = self.lookup(args.passport_country, args.destination_country)
        result = dict(facts)
        timing = self._timing(facts, context)
        if timing:
            result["timing"] = timing
        return json.dumps(result)

    def lookup(self, passport_country: str, destination_country: str) -> dict:
        key = f"{passport_country.strip().lower()}|{destination_country.strip().lower()}"
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Visa cache hit for %s", key)
            return cached
        facts = self._classify(passport_country, destination_country)
        self.cache.set(key, facts, self.ttl_seconds)
        return facts

    @staticmethod
    def _classify(passport_country: str, destination_country: str) -> dict:
        passport = passport_country.strip().lower()
        destination = destination_country.strip().lower()

        if any(d in destination for d in VISA_FREE.get(passport, [])):
            return {
                "type": "visa_free",
                "required": False,
                "max_stay": 30,
                "processing_days": {"minimum": 0, "maximum": 0},
                "cost": 0,
                "documents_required": BASE_DOCUMENTS
                + ["Return ticket", "Proof of accommodation"],
                "notes": f"{passport_country} passport holders can visit "
                f"{destination_country} visa-free for up to 30 days.",
            }

        if any(d in destination for d in VISA_ON_ARRIVAL.get(passport, [])):
            return {
                "type": "visa_on_arrival",
                "required": True,
                "max_stay": 30,
                "processing_days": {"minimum": 0, "maximum": 0},
                "cost": 35,
                "documents_required": BASE_DOCUMENTS
                + ["Passport photo", "Return ticket", "Proof of funds ($500+ recommended)"],
                "notes": f"Visa on arrival available for {passport_country} passport holders. "
                "Fee payable at airport.",
            }

        return {
            "type": "embassy_visa",
            "required": True,
            "max_stay": 60,
            "processing_days": {"minimum": 5, "maximum": 15},
            "cost": 80,
            "documents_required": BASE_DOCUMENTS
            + [
                "Completed visa application form",
                "Passport photos (2)",
                "Bank statements (3 months)",
                "Flight itinerary",
                "Hotel bookings",
                "Travel insurance",
            ],
            "notes": f"{passport_country} passport holders require an embassy visa for "
            f"{destination_country}. Apply at least 2-3 weeks before travel.",
        }

    @staticmethod
    def _timing(facts: dict, context: ToolExecutionContext) -> Optional[dict]:
        dates = context.proposed.dates
        if not facts["required"] or not dates or not dates.start:
            return None
        days_until = (dates.start - context.today).days
        processing = facts["processing_days"]
        needed = processing["maximum"] + 3
        if days_until < processing["minimum"]:
            urgency = "impossible"
            recommendation = "Not enough time. Consider postponing or expedited processing."
        elif days_until < needed:
            urgency = "risky"
            recommendation = "Very risky! Apply immediately. Consider expedited processing."
        elif days_until < needed + 7:
            urgency = "tight"
            recommendation = "Time is tight. Apply today."
        else:
            urgency = "ok"
            recommendation = "You have time, but don't delay. Apply within the next week."
        return {
            "days_until_trip": days_until,
            "business_days_until_trip": days_until * 5 // 7,
            "processing_days_needed": needed,
            "has_enough_time": days_until >= needed,
            "urgency": urgency,
            "recommendation": recommendation,
        }

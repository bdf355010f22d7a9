from __future__ import annotations

import json
import logging
from datetime import date
from typing import Optional, Protocol

import requests
from pydantic import BaseModel, Field

from change_planner.llm.tools.registry import ToolExecutionContext

logger = logging.getLogger(__name__)

ESTIMATED_FARE_PER_PASSENGER = 800.0


class FlightSearchArgs(BaseModel):
    origin: str = Field(description="Departure city or airport code (e.g., 'New York' or 'JFK')")
    destination: str = Field(description="Arrival city or airport code (e.g., 'Bangkok' or 'BKK')")
    departure_date: date = Field(description="Departure date in YYYY-MM-DD format")
    return_date: date = Field(description="Return date in YYYY-MM-DD format")
    passengers: int = Field(ge=1, description="Number of passengers")


class FlightProvider(Protocol):
    """Flight price source; implementations enforce their own timeout."""

    def search(self, args: FlightSearchArgs) -> Optional[dict]:
        ...


class FlightSearchTool:
    def __init__(self, provider: Optional[FlightProvider] = None) -> None:
        self.provider = provider

    def run(self, args: FlightSearchArgs, context: ToolExecutionContext) -> str:
        quote = self._quote(args)
        if not quote or not quote.get("price"):
            return json.dumps(
                {
                    "found": False,
                    "message": "No flights found for this route and dates",
                    "estimate": {
                        "price": args.passengers * ESTIMATED_FARE_PER_PASSENGER,
                        "note": "Rough estimate based on typical routes",
                    },
                }
            )
        return json.dumps({"found": True, "flight": quote, "currency": "USD"})

    def _quote(self, args: FlightSearchArgs) -> Optional[dict]:
        if self.provider is None:
            return None
        try:
            return self.provider.search(args)
        except requests.RequestException as exc:
            logger.warning("Flight provider request failed, using estimate: %s", exc)
            return None

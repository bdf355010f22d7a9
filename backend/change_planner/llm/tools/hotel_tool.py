from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Protocol

from pydantic import BaseModel, Field

from change_planner.llm.tools.registry import ToolExecutionContext

logger = logging.getLogger(__name__)

ESTIMATED_NIGHTLY_RATE = 100.0


@dataclass
class Hotel:
    id: str
    name: str
    city: str
    price_per_night: float
    rating: Optional[float] = None


class HotelProvider(Protocol):
    """Hotel search abstraction to allow swapping providers."""

    def search_hotels(self, city: str, limit: int = 5) -> List[Hotel]:
        ...


class HotelSearchArgs(BaseModel):
    destination: str = Field(description="The destination city (e.g., 'Bangkok, Thailand')")
    check_in: date = Field(description="Check-in date in YYYY-MM-DD format")
    check_out: date = Field(description="Check-out date in YYYY-MM-DD format")
    guests: int = Field(ge=1, description="Number of guests")
    budget_per_night: Optional[float] = Field(
        None, description="Optional maximum budget per night in USD"
    )


class HotelSearchTool:
    def __init__(self, provider: Optional[HotelProvider] = None) -> None:
        self.provider = provider

    def run(self, args: HotelSearchArgs, context: ToolExecutionContext) -> str:
        nights = max((args.check_out - args.check_in).days, 1)
        rooms = math.ceil(args.guests / 2)
        hotel = self._pick(args)
        if hotel is None:
            return json.dumps(
                {
                    "found": False,
                    "message": "No hotels found, using estimates",
                    "estimate": {
                        "total_price": nights * ESTIMATED_NIGHTLY_RATE * rooms,
                        "price_per_night": ESTIMATED_NIGHTLY_RATE,
                        "nights": nights,
                        "type": "Mid-range hotel",
                    },
                }
            )
        return json.dumps(
            {
                "found": True,
                "hotel": {
                    "total_price": round(nights * hotel.price_per_night * rooms, 2),
                    "price_per_night": hotel.price_per_night,
                    "nights": nights,
                    "hotel_name": hotel.name,
                    "rating": hotel.rating,
                },
                "currency": "USD",
            }
        )

    def _pick(self, args: HotelSearchArgs) -> Optional[Hotel]:
        if self.provider is None:
            return None
        city = args.destination.split(",")[0].strip()
        priced = [h for h in self.provider.search_hotels(city) if h.price_per_night > 0]
        if args.budget_per_night is not None:
            within = [h for h in priced if h.price_per_night <= args.budget_per_night]
            priced = within or priced
        if not priced:
            return None
        return min(priced, key=lambda h: h.price_per_night)

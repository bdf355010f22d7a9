import logging
from typing import List

import requests

from change_planner.llm.tools.hotel_tool import Hotel

logger = logging.getLogger(__name__)


class MakCorpsHotelProvider:
    """
    Hotel prices from the MakCorps free API. Requires a JWT token (set via
    MAKCORPS_JWT). Network failures yield no hotels so the tool falls back to
    its estimate.
    """

    base_url = "https://api.makcorps.com/free"

    def __init__(self, jwt_token: str, timeout: float = 8):
        self.jwt_token = jwt_token
        self.timeout = timeout

    def search_hotels(self, city: str, limit: int = 5) -> List[Hotel]:
        headers = {"Authorization": f"JWT {self.jwt_token}"}
        try:
            resp = requests.get(f"{self.base_url}/{city}", headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json() if resp.content else {}
        except (requests.RequestException, ValueError) as exc:
            logger.warning("MakCorps API request failed: %s", exc)
            return []

        hotels: List[Hotel] = []
        for h in data.get("hotels", [])[:limit]:
            try:
                price = float(h.get("lowest_price") or 0.0)
            except (TypeError, ValueError):
                price = 0.0
            name = h.get("hotel_name", "Unknown Hotel")
            hotels.append(
                Hotel(
                    id=name.lower().replace(" ", "_"),
                    name=name,
                    city=city,
                    price_per_night=price,
                )
            )
        return hotels

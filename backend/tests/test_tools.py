import json
from datetime import date

import requests

from change_planner.llm.tools.cache import InMemoryTTLCache
from change_planner.llm.tools.certainty_tool import CertaintyArgs, calculate_certainty_score
from change_planner.llm.tools.cost_tool import DailyCostArgs, cost_index_for, estimate_daily_costs
from change_planner.llm.tools.flight_tool import FlightSearchArgs, FlightSearchTool
from change_planner.llm.tools.hotel_tool import Hotel, HotelSearchArgs, HotelSearchTool
from change_planner.llm.tools.itinerary_tool import ItineraryArgs, regenerate_itinerary_days
from change_planner.llm.tools.registry import ToolExecutionContext
from change_planner.llm.tools.safety_tool import SafetyArgs, assess_safety
from change_planner.llm.tools.visa_tool import VisaLookupArgs, VisaLookupTool

from conftest import make_current, make_input


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _context(**overrides) -> ToolExecutionContext:
    return ToolExecutionContext(
        current_trip=make_current(), proposed=make_input(**overrides), today=date(2026, 2, 20)
    )


def test_cache_entries_expire():
    clock = FakeClock()
    cache = InMemoryTTLCache(clock=clock)
    cache.set("k", {"v": 1}, ttl_seconds=10)

    clock.now = 9.9
    assert cache.get("k") == {"v": 1}
    clock.now = 10
    assert cache.get("k") is None
    assert len(cache) == 0


def test_cache_evict():
    cache = InMemoryTTLCache()
    cache.set("k", 1, ttl_seconds=60)
    cache.evict("k")
    cache.evict("missing")

    assert cache.get("k") is None


def test_visa_free_has_no_timing():
    tool = VisaLookupTool(cache=InMemoryTTLCache(), ttl_seconds=60)
    args = VisaLookupArgs(passport_country="United States", destination_country="Japan")

    result = json.loads(tool.run(args, _context()))

    assert result["type"] == "visa_free"
    assert result["required"] is False
    assert "timing" not in result


def test_visa_on_arrival():
    tool = VisaLookupTool(cache=InMemoryTTLCache(), ttl_seconds=60)
    args = VisaLookupArgs(passport_country="India", destination_country="Cambodia")

    result = json.loads(tool.run(args, _context(passport="India")))

    assert result["type"] == "visa_on_arrival"
    assert result["required"] is True


def test_embassy_visa_timing_is_computed_from_trip_start():
    tool = VisaLookupTool(cache=InMemoryTTLCache(), ttl_seconds=60)
    args = VisaLookupArgs(passport_country="India", destination_country="Japan")

    result = json.loads(tool.run(args, _context(passport="India")))

    assert result["type"] == "embassy_visa"
    timing = result["timing"]
    assert timing["days_until_trip"] == 10
    assert timing["business_days_until_trip"] == 7
    assert timing["processing_days_needed"] == 18
    assert timing["has_enough_time"] is False
    assert timing["urgency"] == "risky"


def test_visa_facts_are_cached_per_pair():
    clock = FakeClock()
    cache = InMemoryTTLCache(clock=clock)
    tool = VisaLookupTool(cache=cache, ttl_seconds=100)

    first = tool.lookup("India", "Japan")
    second = tool.lookup(" india ", "JAPAN")

    assert first is second
    assert len(cache) == 1
    clock.now = 100
    assert tool.lookup("India", "Japan") is not first


class RaisingFlights:
    def search(self, args):
        raise requests.ConnectionError("timeout")


def _flight_args(passengers: int = 2) -> FlightSearchArgs:
    return FlightSearchArgs(
        origin="New York",
        destination="Tokyo",
        departure_date="2026-03-02",
        return_date="2026-03-06",
        passengers=passengers,
    )


def test_flight_search_estimates_without_provider():
    result = json.loads(FlightSearchTool().run(_flight_args(3), _context()))

    assert result["found"] is False
    assert result["estimate"]["price"] == 2400


def test_flight_search_estimates_when_provider_fails():
    result = json.loads(FlightSearchTool(RaisingFlights()).run(_flight_args(), _context()))

    assert result["found"] is False
    assert result["estimate"]["price"] == 1600


class StaticHotels:
    def __init__(self, hotels):
        self.hotels = hotels

    def search_hotels(self, city: str, limit: int = 5):
        assert city == "Tokyo"
        return self.hotels


def _hotel_args(**overrides) -> HotelSearchArgs:
    data = {"destination": "Tokyo, Japan", "check_in": "2026-03-02", "check_out": "2026-03-06", "guests": 3}
    data.update(overrides)
    return HotelSearchArgs(**data)


def test_hotel_search_estimate_counts_rooms():
    result = json.loads(HotelSearchTool().run(_hotel_args(), _context()))

    assert result["found"] is False
    assert result["estimate"]["nights"] == 4
    assert result["estimate"]["total_price"] == 800


def test_hotel_search_prefers_cheapest_within_budget():
    provider = StaticHotels(
        [
            Hotel(id="1", name="Grand", city="Tokyo", price_per_night=300),
            Hotel(id="2", name="Capsule", city="Tokyo", price_per_night=40),
            Hotel(id="3", name="Free", city="Tokyo", price_per_night=0),
        ]
    )

    result = json.loads(HotelSearchTool(provider).run(_hotel_args(guests=2), _context()))

    assert result["found"] is True
    assert result["hotel"]["hotel_name"] == "Capsule"
    assert result["hotel"]["total_price"] == 160


def test_daily_costs_scale_by_days_and_travelers():
    args = DailyCostArgs(destination="Bangkok, Thailand", travel_style="budget", num_days=4, travelers=2)

    result = json.loads(estimate_daily_costs(args, _context()))

    assert result["cost_index"] == 0.35
    assert result["total_trip"]["total"] == result["daily_per_person"]["total"] * 8
    assert cost_index_for("Reykjavik") == 0.7


def test_certainty_score_components():
    best = json.loads(
        calculate_certainty_score(
            CertaintyArgs(
                visa_status="visa_free", budget_adequacy="comfortable", safety_level="safe", days_until_trip=45
            ),
            _context(),
        )
    )
    rushed = json.loads(
        calculate_certainty_score(
            CertaintyArgs(
                visa_status="embassy_visa", budget_adequacy="adequate", safety_level="moderate_caution", days_until_trip=10
            ),
            _context(),
        )
    )

    assert best["score"] == 100
    assert best["verdict"] == "GO"
    assert rushed["score"] == 55
    assert rushed["verdict"] == "POSSIBLE"
    assert rushed["visa_risk"] == "medium"


def test_safety_assessment_uses_known_regions():
    japan = json.loads(assess_safety(SafetyArgs(destination="Tokyo, Japan"), _context()))
    unknown = json.loads(assess_safety(SafetyArgs(destination="Atlantis"), _context()))

    assert japan["safety_level"] == "safe"
    assert unknown["travel_dates"] == "Not specified"


def test_itinerary_regeneration_reports_day_count():
    args = ItineraryArgs(destination="Tokyo", start_date="2026-03-02", num_days=7, travel_style="cultural")

    result = json.loads(regenerate_itinerary_days(args, _context()))

    assert result["status"] == "resized"
    assert result["days_count"] == 7
    assert result["previous_days_count"] == 5
    assert result["days_to_regenerate"] == [1, 2, 3, 4, 5, 6, 7]


def test_cache_set_sweeps_expired_entries():
    clock = FakeClock()
    cache = InMemoryTTLCache(clock=clock)
    cache.set("india|japan", 1, ttl_seconds=10)
    cache.set("india|peru", 2, ttl_seconds=50)

    clock.now = 20
    cache.set("uk|chile", 3, ttl_seconds=10)

    assert len(cache) == 2
    assert cache.get("india|peru") == 2

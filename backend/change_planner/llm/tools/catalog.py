from typing import Optional

from change_planner.core.config import Settings
from change_planner.llm.tools.cache import InMemoryTTLCache, TTLCache
from change_planner.llm.tools.certainty_tool import CertaintyArgs, calculate_certainty_score
from change_planner.llm.tools.cost_tool import DailyCostArgs, estimate_daily_costs
from change_planner.llm.tools.flight_tool import FlightProvider, FlightSearchArgs, FlightSearchTool
from change_planner.llm.tools.hotel_makcorps import MakCorpsHotelProvider
from change_planner.llm.tools.hotel_tool import HotelProvider, HotelSearchArgs, HotelSearchTool
from change_planner.llm.tools.itinerary_tool import ItineraryArgs, regenerate_itinerary_days
from change_planner.llm.tools.registry import ToolRegistry, ToolSpec
from change_planner.llm.tools.safety_tool import SafetyArgs, assess_safety
from change_planner.llm.tools.visa_tool import VisaLookupArgs, VisaLookupTool
from change_planner.models.domain import RecomputableModule

GET_VISA_REQUIREMENTS = "get_visa_requirements"
SEARCH_FLIGHTS = "search_flights"
SEARCH_HOTELS = "search_hotels"
ESTIMATE_DAILY_COSTS = "estimate_daily_costs"
ASSESS_SAFETY = "assess_safety"
CALCULATE_CERTAINTY_SCORE = "calculate_certainty_score"
REGENERATE_ITINERARY_DAYS = "regenerate_itinerary_days"


def build_default_registry(
    settings: Settings,
    cache: Optional[TTLCache] = None,
    flight_provider: Optional[FlightProvider] = None,
    hotel_provider: Optional[HotelProvider] = None,
) -> ToolRegistry:
    if hotel_provider is None and settings.makcorps_jwt:
        hotel_provider = MakCorpsHotelProvider(
            settings.makcorps_jwt, timeout=settings.tool_timeout_seconds
        )
    visa_tool = VisaLookupTool(
        cache=cache or InMemoryTTLCache(), ttl_seconds=settings.visa_cache_ttl_seconds
    )

    registry = ToolRegistry()
    registry.register(
        ToolSpec(
            name=GET_VISA_REQUIREMENTS,
            description="Get visa requirements for a passport holder traveling to a destination. "
            "Returns visa type, processing time, costs, and required documents.",
            args_model=VisaLookupArgs,
            executor=visa_tool.run,
            module=RecomputableModule.visa,
        )
    )
    registry.register(
        ToolSpec(
            name=SEARCH_FLIGHTS,
            description="Search for flight prices and options between two cities. "
            "Returns price estimates, airlines, and duration.",
            args_model=FlightSearchArgs,
            executor=FlightSearchTool(flight_provider).run,
            module=RecomputableModule.flights,
        )
    )
    registry.register(
        ToolSpec(
            name=SEARCH_HOTELS,
            description="Search for hotel prices and options in a destination. "
            "Returns price per night, total cost, and hotel type.",
            args_model=HotelSearchArgs,
            executor=HotelSearchTool(hotel_provider).run,
            module=RecomputableModule.hotels,
        )
    )
    registry.register(
        ToolSpec(
            name=ESTIMATE_DAILY_COSTS,
            description="Estimate daily costs for a destination including food, transport, "
            "and activities based on travel style.",
            args_model=DailyCostArgs,
            executor=estimate_daily_costs,
            module=RecomputableModule.itinerary,
        )
    )
    registry.register(
        ToolSpec(
            name=ASSESS_SAFETY,
            description="Get safety assessment for a destination including travel advisories "
            "and current conditions.",
            args_model=SafetyArgs,
            executor=assess_safety,
            module=RecomputableModule.certainty,
        )
    )
    registry.register(
        ToolSpec(
            name=CALCULATE_CERTAINTY_SCORE,
            description="Calculate the certainty score based on visa status, budget adequacy, "
            "safety, and accessibility factors.",
            args_model=CertaintyArgs,
            executor=calculate_certainty_score,
            module=RecomputableModule.certainty,
        )
    )
    registry.register(
        ToolSpec(
            name=REGENERATE_ITINERARY_DAYS,
            description="Regenerate specific days of the itinerary based on changes. "
            "Use when dates or preferences change significantly.",
            args_model=ItineraryArgs,
            executor=regenerate_itinerary_days,
            module=RecomputableModule.itinerary,
        )
    )
    return registry

from datetime import date

import pytest

from change_planner.models.schemas import CurrentTripResult, TripInput


def make_input(**overrides) -> TripInput:
    data = {
        "dates": {"start": "2026-03-02", "end": "2026-03-06", "duration": 5},
        "budget": {"total": 3000, "currency": "USD"},
        "origin": {"city": "New York", "country": "United States"},
        "destination": {"city": "Tokyo", "country": "Japan"},
        "passport": "United States",
        "travelers": {"adults": 2},
        "preferences": {"pace": "moderate", "interests": ["food"], "hotel_class": "moderate"},
        "constraints": [],
    }
    data.update(overrides)
    return TripInput.model_validate(data)


def make_current(score: float = 80, visa: dict | None = None, days: int = 5, cost: float = 2500) -> CurrentTripResult:
    return CurrentTripResult.model_validate(
        {
            "destination": "Tokyo, Japan",
            "feasibility_report": {
                "overall": "yes",
                "score": score,
                "visa_details": visa or {"required": False, "type": "visa_free"},
            },
            "itinerary": {
                "days": [{"day": i + 1} for i in range(days)],
                "cost_breakdown": {"grand_total": cost},
            },
        }
    )


@pytest.fixture
def previous_input() -> TripInput:
    return make_input()


@pytest.fixture
def current_trip() -> CurrentTripResult:
    return make_current()


@pytest.fixture
def today() -> date:
    return date(2026, 2, 20)

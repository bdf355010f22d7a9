from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ChangeableField(str, Enum):
    dates = "dates"
    budget = "budget"
    origin = "origin"
    destination = "destination"
    passport = "passport"
    travelers = "travelers"
    preferences = "preferences"
    constraints = "constraints"


class ChangeSeverity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class RecomputableModule(str, Enum):
    visa = "visa"
    flights = "flights"
    hotels = "hotels"
    itinerary = "itinerary"
    certainty = "certainty"
    action_items = "action_items"


class ChangeSource(str, Enum):
    edit_trip = "edit_trip"
    quick_chip = "quick_chip"
    fix_blocker = "fix_blocker"


class OutputSource(str, Enum):
    agent = "agent"
    deterministic = "deterministic"


class FailureCode(str, Enum):
    tool_error = "TOOL_ERROR"
    unknown_tool = "UNKNOWN_TOOL"
    invalid_arguments = "INVALID_ARGUMENTS"


@dataclass(frozen=True)
class DetectedChange:
    field: ChangeableField
    before: Any
    after: Any
    impact: List[RecomputableModule]
    severity: ChangeSeverity


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class ToolCallResult:
    call: ToolCall
    content: str
    error_code: Optional[FailureCode] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_code is None


@dataclass(frozen=True)
class ModuleFailure:
    module: RecomputableModule
    code: FailureCode
    message: str
    retryable: bool


@dataclass
class ModuleOutputs:
    """
    Partial per-module results from either execution path. Any field left as
    None is filled by the synthesizer from the previous trip state.
    """

    source: OutputSource
    visa: Optional[Dict[str, Any]] = None
    flights: Optional[Dict[str, Any]] = None
    hotels: Optional[Dict[str, Any]] = None
    daily_costs: Optional[Dict[str, Any]] = None
    certainty_score: Optional[float] = None
    certainty_reason: Optional[str] = None
    cost_after: Optional[float] = None
    itinerary_day_count: Optional[int] = None
    recommendation: Optional[str] = None
    stale_modules: List[RecomputableModule] = field(default_factory=list)
    refresh_action_items: bool = False
    failures: List[ModuleFailure] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)

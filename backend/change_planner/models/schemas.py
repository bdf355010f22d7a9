from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from change_planner.models.domain import (
    ChangeSeverity,
    ChangeSource,
    ChangeableField,
    DetectedChange,
    FailureCode,
    ModuleFailure,
    RecomputableModule,
)


# --- Trip input ---------------------------------------------------------------


class TripDates(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Optional[date] = None
    end: Optional[date] = None
    duration: Optional[int] = None

    @property
    def day_count(self) -> Optional[int]:
        if self.duration:
            return self.duration
        if self.start and self.end:
            return (self.end - self.start).days + 1
        return None


class Budget(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: float
    currency: str = "USD"


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: Optional[str] = None
    country: Optional[str] = None

    @property
    def label(self) -> str:
        return ", ".join(p for p in [self.city, self.country] if p)


class Travelers(BaseModel):
    model_config = ConfigDict(frozen=True)

    adults: int = 1
    children: int = 0
    infants: int = 0

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants


class TripPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    pace: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    hotel_class: Optional[str] = None


class TripInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    dates: Optional[TripDates] = None
    budget: Optional[Budget] = None
    origin: Optional[Location] = None
    destination: Optional[Location] = None
    passport: Optional[str] = None
    travelers: Optional[Travelers] = None
    preferences: Optional[TripPreferences] = None
    constraints: List[str] = Field(default_factory=list)

    @field_validator("constraints", mode="before")
    @classmethod
    def null_constraints(cls, value: Any) -> Any:
        # null and absent both mean "no constraints"
        return [] if value is None else value


# --- Current trip result --------------------------------------------------------


class ProcessingDays(BaseModel):
    minimum: int = 0
    maximum: int = 0


class VisaTiming(BaseModel):
    days_until_trip: Optional[int] = None
    business_days_until_trip: Optional[int] = None
    processing_days_needed: Optional[int] = None
    has_enough_time: Optional[bool] = None
    urgency: Optional[Literal["ok", "tight", "risky", "impossible"]] = None
    recommendation: Optional[str] = None


class VisaDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    required: bool = False
    type: Optional[str] = None
    processing_days: Optional[ProcessingDays] = None
    cost: Optional[float] = None
    documents_required: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    timing: Optional[VisaTiming] = None

    @property
    def is_blocker(self) -> bool:
        # Visa is the only blocker source; see DESIGN.md.
        return self.required and self.type != "visa_free"


class FeasibilityReport(BaseModel):
    model_config = ConfigDict(extra="allow")

    overall: Optional[Literal["yes", "no", "warning"]] = None
    score: float = 0
    visa_details: Optional[VisaDetails] = None
    summary: Optional[str] = None


class CostBreakdown(BaseModel):
    model_config = ConfigDict(extra="allow")

    grand_total: Optional[float] = None
    total: Optional[float] = None

    @property
    def resolved_total(self) -> float:
        return float(self.grand_total or self.total or 0)


class Itinerary(BaseModel):
    model_config = ConfigDict(extra="allow")

    days: List[Dict[str, Any]] = Field(default_factory=list)
    cost_breakdown: Optional[CostBreakdown] = None


class CurrentTripResult(BaseModel):
    destination: Optional[str] = None
    feasibility_report: FeasibilityReport = Field(default_factory=FeasibilityReport)
    itinerary: Itinerary = Field(default_factory=Itinerary)

    @property
    def certainty_score(self) -> float:
        return float(self.feasibility_report.score or 0)

    @property
    def total_cost(self) -> float:
        breakdown = self.itinerary.cost_breakdown
        return breakdown.resolved_total if breakdown else 0.0

    @property
    def day_count(self) -> int:
        return len(self.itinerary.days)


# --- Requests -------------------------------------------------------------------


def _coerce_trip_id(value: Any) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValueError("trip_id is required")
    return text


class ChangePlanRequest(BaseModel):
    trip_id: str
    previous: TripInput
    proposed: TripInput
    current_results: CurrentTripResult
    source: ChangeSource = ChangeSource.edit_trip
    use_agent: Optional[bool] = None

    @field_validator("trip_id", mode="before")
    @classmethod
    def check_trip_id(cls, value: Any) -> str:
        return _coerce_trip_id(value)


class FixOptionsRequest(BaseModel):
    trip_id: str
    current_input: TripInput
    feasibility_report: FeasibilityReport

    @field_validator("trip_id", mode="before")
    @classmethod
    def check_trip_id(cls, value: Any) -> str:
        return _coerce_trip_id(value)


# --- Responses ------------------------------------------------------------------


class DetectedChangeSchema(BaseModel):
    field: ChangeableField
    before: Any = None
    after: Any = None
    impact: List[RecomputableModule]
    severity: ChangeSeverity

    @classmethod
    def from_domain(cls, obj: DetectedChange) -> "DetectedChangeSchema":
        return cls(
            field=obj.field,
            before=obj.before,
            after=obj.after,
            impact=list(obj.impact),
            severity=obj.severity,
        )


class ApiCall(BaseModel):
    name: str
    endpoint_key: RecomputableModule
    priority: int


class RecomputePlan(BaseModel):
    modules_to_recompute: List[RecomputableModule]
    cache_keys_to_invalidate: List[str] = Field(default_factory=list)
    api_calls: List[ApiCall] = Field(default_factory=list)


class CertaintyDelta(BaseModel):
    before: float
    after: float
    reason: str


class CostDelta(BaseModel):
    before: float
    after: float
    delta: float
    notes: List[str] = Field(default_factory=list)


class BlockerDelta(BaseModel):
    before: int
    after: int
    resolved: List[str] = Field(default_factory=list)
    new: List[str] = Field(default_factory=list)


class ItineraryDelta(BaseModel):
    day_count_before: int
    day_count_after: int
    major_diffs: List[str] = Field(default_factory=list)


class DeltaSummary(BaseModel):
    certainty: CertaintyDelta
    total_cost: CostDelta
    blockers: BlockerDelta
    itinerary: ItineraryDelta


BannerTone = Literal["green", "amber", "red"]
ToastTone = Literal["success", "info", "warning"]
HighlightSection = Literal["ActionItems", "CostBreakdown", "Itinerary", "VisaCard"]


class Banner(BaseModel):
    tone: BannerTone
    title: str
    subtitle: Optional[str] = None


class Toast(BaseModel):
    tone: ToastTone
    message: str


class UIInstructions(BaseModel):
    banner: Banner
    highlight_sections: List[HighlightSection] = Field(default_factory=list)
    toasts: List[Toast] = Field(default_factory=list)


class UpdatedData(BaseModel):
    visa: Optional[VisaDetails] = None
    flights: Optional[Dict[str, Any]] = None
    hotels: Optional[Dict[str, Any]] = None
    cost_breakdown: Optional[Dict[str, Any]] = None
    action_items: List[Dict[str, Any]] = Field(default_factory=list)
    refresh_action_items: bool = False
    stale_modules: List[RecomputableModule] = Field(default_factory=list)


class ModuleFailureSchema(BaseModel):
    module: RecomputableModule
    code: FailureCode
    message: str
    retryable: bool

    @classmethod
    def from_domain(cls, obj: ModuleFailure) -> "ModuleFailureSchema":
        return cls(
            module=obj.module,
            code=obj.code,
            message=obj.message,
            retryable=obj.retryable,
        )


class ExpectedOutcome(BaseModel):
    certainty_after: float
    blockers_after: int
    cost_delta: float


class FixOption(BaseModel):
    title: str
    change_patch: Dict[str, Any]
    expected_outcome: ExpectedOutcome
    confidence: Literal["high", "medium", "low"]
    shift_days: Optional[int] = None


class ChangePlannerResponse(BaseModel):
    change_id: str
    detected_changes: List[DetectedChangeSchema]
    recompute_plan: RecomputePlan
    delta_summary: DeltaSummary
    ui_instructions: UIInstructions
    updated_data: UpdatedData
    failures: Optional[List[ModuleFailureSchema]] = None
    fix_options: Optional[List[FixOption]] = None


class FixOptionsResponse(BaseModel):
    trip_id: str
    options: List[FixOption]
    generated_at: datetime


class PlannerStatus(BaseModel):
    agent_initialized: bool
    use_agent_default: bool
    mode: Literal["agent", "deterministic"]

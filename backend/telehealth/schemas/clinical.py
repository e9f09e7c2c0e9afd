"""Clinical analysis request and response schemas.

Request models are deliberately lenient: out-of-range severities, unknown
enum values and odd durations are accepted here and normalized by the
engine, so a slightly malformed symptom never turns into a 422.
Request fields accept both snake_case and camelCase names.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from telehealth.schemas.base import (
    AlertSeverity,
    ConditionCategory,
    ConditionUrgency,
    DurationUnit,
    Frequency,
    Onset,
    OverallUrgency,
    Progression,
    QuestionType,
)

_LENIENT = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _valid_utf8(value: Any) -> Any:
    """Replace lone surrogates, which cannot be encoded, with U+FFFD."""
    if isinstance(value, str):
        return value.encode("utf-8", "surrogatepass").decode("utf-8", "replace")
    if isinstance(value, list):
        return [_valid_utf8(item) for item in value]
    return value


# ============================================================================
# Requests
# ============================================================================


class _RequestModel(BaseModel):
    model_config = _LENIENT

    @field_validator("*", mode="before")
    @classmethod
    def encodable_text(cls, v: Any) -> Any:
        """JSON escapes can produce lone surrogates; make the text encodable."""
        return _valid_utf8(v)


class DurationInput(_RequestModel):
    """How long a symptom has lasted."""

    value: float | str | None = Field(None, description="Duration amount (must be > 0)")
    unit: str | None = Field(None, description="hours, days, weeks or months")


class SymptomInput(_RequestModel):
    """One reported symptom."""

    id: str | int | None = Field(None, description="Client symptom id (defaults to symptom_<index>)")
    name: str = Field("", description="Symptom name, free text (English or Hindi)")
    severity: float | str | None = Field(None, description="Severity 1-5 (clamped, default 3)")
    duration: DurationInput | float | str | None = Field(None, description="Duration (default 1 day)")
    progression: str | None = Field(None, description="improving, stable or worsening")
    onset: str | None = Field(None, description="sudden or gradual")
    frequency: str | None = Field(None, description="constant, intermittent or occasional")
    location: str | None = Field(None, description="Body location, if relevant")


class BloodPressureInput(_RequestModel):
    systolic: float | str | None = None
    diastolic: float | str | None = None


class VitalsInput(_RequestModel):
    """Optional vital signs."""

    heart_rate: float | str | None = Field(None, description="Heart rate in bpm")
    blood_pressure: BloodPressureInput | None = Field(None, description="Blood pressure in mmHg")
    temperature: float | str | None = Field(None, description="Body temperature in °F")
    oxygen_saturation: float | str | None = Field(None, description="SpO2 in %")
    respiratory_rate: float | str | None = Field(None, description="Breaths per minute")


class PatientContextInput(_RequestModel):
    """Optional patient demographics and history."""

    age: float | str | None = Field(None, description="Age in years")
    gender: str | None = Field(None, description="male, female or other")
    medical_history: list[str] = Field(default_factory=list, description="Known conditions")
    medications: list[str] = Field(default_factory=list, description="Current medications")
    vitals: VitalsInput | None = Field(None, description="Optional vital signs")


class AnalyzeRequest(_RequestModel):
    """Request body for clinical analysis."""

    symptoms: list[SymptomInput] = Field(default_factory=list, description="Reported symptoms")
    patient_context: PatientContextInput | None = Field(None, description="Optional patient context")

    def engine_payload(self) -> dict[str, Any]:
        """Plain-data form of the request, as consumed by the engine and cache."""
        return self.model_dump(exclude_none=True)


# ============================================================================
# Responses
# ============================================================================

_FROM_ATTRIBUTES = ConfigDict(from_attributes=True)


class DurationResponse(BaseModel):
    model_config = _FROM_ATTRIBUTES

    value: float
    unit: DurationUnit


class SymptomResponse(BaseModel):
    """A symptom as the engine understood it."""

    model_config = _FROM_ATTRIBUTES

    id: str
    name: str
    severity: int
    duration: DurationResponse
    progression: Progression
    onset: Onset
    frequency: Frequency
    location: str | None = None


class ConditionResponse(BaseModel):
    """A candidate condition in the differential."""

    model_config = _FROM_ATTRIBUTES

    id: str = Field(..., description="Condition identifier")
    name: str = Field(..., description="Condition name")
    description: str = Field(..., description="Short description")
    category: ConditionCategory = Field(..., description="Clinical category")
    confidence: int = Field(..., description="Confidence 0-95 (never certain)")
    matching_symptoms: list[str] = Field(..., description="Reported symptoms that fit")
    missing_symptoms: list[str] = Field(..., description="Expected symptoms not reported")
    reasoning: list[str] = Field(..., description="What drove the score")
    differential_factors: list[str] = Field(..., description="What separates it from the nearest competitor")
    red_flags: list[str] = Field(..., description="Warning signs to watch for")
    urgency: ConditionUrgency = Field(..., description="routine, soon, urgent or emergency")


class RedFlagAlertResponse(BaseModel):
    """A triggered safety rule."""

    model_config = _FROM_ATTRIBUTES

    id: str
    title: str
    description: str
    severity: AlertSeverity
    trigger_symptoms: list[str]
    action: str
    call_emergency: bool


class QuestionOptionResponse(BaseModel):
    model_config = _FROM_ATTRIBUTES

    value: str
    label: str


class FollowUpQuestionResponse(BaseModel):
    """A clarifying question."""

    model_config = _FROM_ATTRIBUTES

    id: str
    question: str
    type: QuestionType
    options: list[QuestionOptionResponse] = Field(default_factory=list)
    purpose: str
    reduces_uncertainty: list[str]
    priority: float
    symptom_key: str


class AssessmentResponse(BaseModel):
    """Full clinical assessment."""

    model_config = _FROM_ATTRIBUTES

    id: str = Field(..., description="Deterministic assessment id")
    timestamp: datetime = Field(..., description="When the assessment was produced")
    input_symptoms: list[SymptomResponse] = Field(..., description="Symptoms after normalization")
    possible_conditions: list[ConditionResponse] = Field(..., description="Ranked differential")
    red_flag_alerts: list[RedFlagAlertResponse] = Field(..., description="Triggered safety alerts")
    follow_up_questions: list[FollowUpQuestionResponse] = Field(..., description="Clarifying questions")
    overall_urgency: OverallUrgency = Field(..., description="Overall urgency level")
    urgency_reason: str = Field(..., description="What triggered the urgency level")
    requires_emergency: bool = Field(..., description="True when emergency care is needed now")
    confidence_explanation: str
    differential_explanation: str
    next_steps: list[str]
    self_care_advice: list[str]
    when_to_seek_help: list[str]
    unrecognized_symptoms: list[str] = Field(default_factory=list, description="Symptoms not in the knowledge base")


class AnalyzeResponse(BaseModel):
    """Response from clinical analysis."""

    success: bool = Field(True, description="Whether analysis succeeded")
    assessment: AssessmentResponse
    disclaimer: str = Field(..., description="Decision-support disclaimer")
    privacy_note: str = Field(..., description="How symptom data was handled")
    cached: bool = Field(False, description="Served from the assessment cache")
    processing_time_ms: float = Field(..., description="Time taken in ms")


class ConditionSummary(BaseModel):
    id: str
    name: str
    category: ConditionCategory
    urgency: ConditionUrgency


class KnowledgeBaseResponse(BaseModel):
    """Knowledge base catalogue."""

    stats: dict[str, Any] = Field(..., description="Catalogue statistics")
    conditions: list[ConditionSummary] = Field(..., description="Known conditions")

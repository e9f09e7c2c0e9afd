"""Data contracts of the clinical decision-support engine.

Every object here is created and consumed inside a single ``analyze()``
call. They are frozen dataclasses holding tuples so an assessment can be
shared freely once it is built.
"""

from dataclasses import dataclass, field
from datetime import datetime

from telehealth.schemas.base import (
    AlertSeverity,
    ConditionCategory,
    ConditionUrgency,
    DurationUnit,
    Frequency,
    Gender,
    Onset,
    OverallUrgency,
    Progression,
    QuestionType,
)


# ============================================================================
# Input
# ============================================================================


@dataclass(frozen=True)
class SymptomDuration:
    """How long a symptom has been present."""

    value: float = 1.0
    unit: DurationUnit = DurationUnit.DAYS

    @property
    def hours(self) -> float:
        return self.value * _HOURS_PER_UNIT[self.unit]


_HOURS_PER_UNIT = {
    DurationUnit.HOURS: 1.0,
    DurationUnit.DAYS: 24.0,
    DurationUnit.WEEKS: 24.0 * 7,
    DurationUnit.MONTHS: 24.0 * 30,
}


@dataclass(frozen=True)
class TemporalSymptom:
    """One reported symptom instance."""

    id: str
    name: str
    severity: int = 3  # 1=mild, 5=severe
    duration: SymptomDuration = field(default_factory=SymptomDuration)
    progression: Progression = Progression.STABLE
    onset: Onset = Onset.GRADUAL
    frequency: Frequency = Frequency.CONSTANT
    location: str | None = None


@dataclass(frozen=True)
class Vitals:
    """Optional vital signs, used only by the vitals red-flag rules."""

    heart_rate: float | None = None  # bpm
    systolic_bp: float | None = None  # mmHg
    diastolic_bp: float | None = None  # mmHg
    temperature: float | None = None  # °F
    oxygen_saturation: float | None = None  # %
    respiratory_rate: float | None = None  # breaths/min


@dataclass(frozen=True)
class PatientContext:
    """Optional demographic and clinical modifiers."""

    age: int | None = None
    gender: Gender | None = None
    medical_history: tuple[str, ...] = ()
    medications: tuple[str, ...] = ()
    vitals: Vitals | None = None


@dataclass(frozen=True)
class NormalizedSymptom:
    """A symptom after canonicalization and default-filling."""

    key: str  # Canonical knowledge-base key, or a literal slug when unrecognized
    recognized: bool
    symptom: TemporalSymptom

    @property
    def severity(self) -> int:
        return self.symptom.severity

    @property
    def is_sudden(self) -> bool:
        return self.symptom.onset == Onset.SUDDEN

    @property
    def is_worsening(self) -> bool:
        return self.symptom.progression == Progression.WORSENING

    @property
    def is_improving(self) -> bool:
        return self.symptom.progression == Progression.IMPROVING


# ============================================================================
# Intermediate results
# ============================================================================


@dataclass(frozen=True)
class ConditionScore:
    """Raw score of one condition together with how it was reached."""

    condition_id: str
    raw_score: float  # 0.0 to 1.0
    coverage: float  # Fraction of signature weight matched
    severity_factor: float  # Weighted-average severity multiplier, 0.7 to 1.3
    temporal_adjustment: float  # -0.15 to +0.15, acute conditions only
    demographic_adjustment: float  # -0.20 to +0.20
    exclusion_penalty: float  # 0.0 to 0.20
    ceiling_applied: bool  # Highest-weight symptom absent
    matched_keys: tuple[str, ...] = ()
    excluded_keys: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()  # Descriptions of matching modifiers


@dataclass(frozen=True)
class UrgencyDecision:
    """Overall urgency together with the trigger that produced it."""

    overall_urgency: OverallUrgency
    urgency_reason: str


# ============================================================================
# Output
# ============================================================================


@dataclass(frozen=True)
class ClinicalCondition:
    """A scored, ranked candidate condition."""

    id: str
    name: str
    description: str
    category: ConditionCategory
    confidence: int  # 0 to 100
    matching_symptoms: tuple[str, ...]
    missing_symptoms: tuple[str, ...]
    reasoning: tuple[str, ...]
    differential_factors: tuple[str, ...]
    red_flags: tuple[str, ...]  # danger signs of this condition that were reported
    urgency: ConditionUrgency


@dataclass(frozen=True)
class RedFlagAlert:
    """A triggered safety rule, independent of any single condition."""

    id: str
    title: str
    description: str
    severity: AlertSeverity
    trigger_symptoms: tuple[str, ...]
    action: str
    call_emergency: bool


@dataclass(frozen=True)
class QuestionOption:
    value: str
    label: str


@dataclass(frozen=True)
class FollowUpQuestion:
    """A clarifying question ranked by how much it separates candidates."""

    id: str
    question: str
    type: QuestionType
    purpose: str
    reduces_uncertainty: tuple[str, ...]  # Condition ids it helps separate
    priority: float
    symptom_key: str
    options: tuple[QuestionOption, ...] = ()


@dataclass(frozen=True)
class ClinicalAssessment:
    """Immutable result of one analysis call."""

    id: str
    timestamp: datetime
    input_symptoms: tuple[TemporalSymptom, ...]
    patient_context: PatientContext | None
    possible_conditions: tuple[ClinicalCondition, ...]
    red_flag_alerts: tuple[RedFlagAlert, ...]
    follow_up_questions: tuple[FollowUpQuestion, ...]
    overall_urgency: OverallUrgency
    urgency_reason: str
    confidence_explanation: str
    differential_explanation: str
    next_steps: tuple[str, ...]
    self_care_advice: tuple[str, ...]
    when_to_seek_help: tuple[str, ...]
    unrecognized_symptoms: tuple[str, ...] = ()

    @property
    def requires_emergency(self) -> bool:
        return self.overall_urgency == OverallUrgency.EMERGENCY

"""Base enums shared by the clinical decision-support engine and the API."""

from enum import Enum


class DurationUnit(str, Enum):
    """Unit of a reported symptom duration."""

    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class Progression(str, Enum):
    """How a symptom has evolved since it started."""

    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class Onset(str, Enum):
    """How a symptom started."""

    SUDDEN = "sudden"
    GRADUAL = "gradual"


class Frequency(str, Enum):
    """How often a symptom is present."""

    CONSTANT = "constant"
    INTERMITTENT = "intermittent"
    OCCASIONAL = "occasional"


class Gender(str, Enum):
    """Patient gender as reported."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ConditionUrgency(str, Enum):
    """Urgency tier of a single candidate condition."""

    ROUTINE = "routine"  # Can be managed at home or electively
    SOON = "soon"  # Doctor visit within a few days
    URGENT = "urgent"  # Same-day evaluation
    EMERGENCY = "emergency"  # Immediate emergency care

    @property
    def rank(self) -> int:
        """Ordinal used for safety-biased comparisons (higher is more urgent)."""
        return _CONDITION_URGENCY_RANK[self]


_CONDITION_URGENCY_RANK = {
    ConditionUrgency.ROUTINE: 0,
    ConditionUrgency.SOON: 1,
    ConditionUrgency.URGENT: 2,
    ConditionUrgency.EMERGENCY: 3,
}


class OverallUrgency(str, Enum):
    """Urgency of the whole assessment."""

    SELF_CARE = "self-care"
    SCHEDULE_VISIT = "schedule-visit"
    URGENT_CARE = "urgent-care"
    EMERGENCY = "emergency"


class AlertSeverity(str, Enum):
    """Severity of a triggered red-flag rule."""

    WARNING = "warning"
    DANGER = "danger"
    CRITICAL = "critical"


class QuestionType(str, Enum):
    """Answer format of a follow-up question."""

    YES_NO = "yes_no"
    SCALE = "scale"
    SELECT = "select"


class ConditionCategory(str, Enum):
    """Clinical category of a knowledge-base condition."""

    RESPIRATORY = "respiratory"
    DIGESTIVE = "digestive"
    NEUROLOGICAL = "neurological"
    INFECTIOUS = "infectious"
    CARDIAC = "cardiac"
    UROLOGICAL = "urological"
    SURGICAL = "surgical"
    METABOLIC = "metabolic"
    ALLERGIC = "allergic"

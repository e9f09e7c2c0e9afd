"""Urgency Classifier.

Folds ranked conditions and red-flag alerts into one overall urgency level.
Levels are checked from most to least urgent and the first match wins, so
no later rule can downgrade an emergency.
"""

from collections.abc import Sequence

from telehealth.schemas.base import AlertSeverity, ConditionUrgency, OverallUrgency
from telehealth.services.clinical_types import (
    ClinicalCondition,
    NormalizedSymptom,
    RedFlagAlert,
    UrgencyDecision,
)

EMERGENCY_CONFIDENCE_THRESHOLD = 60
URGENT_CONFIDENCE_THRESHOLD = 40
SCHEDULE_VISIT_CONFIDENCE_THRESHOLD = 35


def classify(
    ranked: Sequence[ClinicalCondition],
    red_flags: Sequence[RedFlagAlert],
    normalized: Sequence[NormalizedSymptom] = (),
    emergency_threshold: int = EMERGENCY_CONFIDENCE_THRESHOLD,
    urgent_threshold: int = URGENT_CONFIDENCE_THRESHOLD,
    schedule_visit_threshold: int = SCHEDULE_VISIT_CONFIDENCE_THRESHOLD,
) -> UrgencyDecision:
    """Decide the overall urgency and the reason for it.

    Args:
        ranked: Ranked conditions, most likely first
        red_flags: Alerts from the red-flag detector
        normalized: The normalized symptoms, used for the default reason
        emergency_threshold: Confidence at which an emergency-tier condition escalates
        urgent_threshold: Confidence at which an urgent top condition needs same-day care
        schedule_visit_threshold: Confidence at which the top condition warrants a visit

    Returns:
        UrgencyDecision naming the level and what triggered it.
    """
    top = ranked[0] if ranked else None

    # Level 1: emergency
    for alert in red_flags:
        if alert.call_emergency:
            return UrgencyDecision(
                OverallUrgency.EMERGENCY,
                f"Emergency warning sign: {alert.title} ({alert.id})",
            )
    for condition in ranked:
        if condition.urgency == ConditionUrgency.EMERGENCY and condition.confidence >= emergency_threshold:
            return UrgencyDecision(
                OverallUrgency.EMERGENCY,
                f"{condition.name} is possible ({condition.confidence}% confidence) and needs emergency care",
            )

    # Level 2: urgent care
    for alert in red_flags:
        if alert.severity in (AlertSeverity.DANGER, AlertSeverity.CRITICAL):
            return UrgencyDecision(
                OverallUrgency.URGENT_CARE,
                f"Warning sign needs prompt care: {alert.title} ({alert.id})",
            )
    if (
        top is not None
        and top.urgency.rank >= ConditionUrgency.URGENT.rank
        and top.confidence >= urgent_threshold
    ):
        return UrgencyDecision(
            OverallUrgency.URGENT_CARE,
            f"{top.name} ({top.confidence}% confidence) needs same-day medical evaluation",
        )

    # Level 3: schedule a visit
    if top is not None and top.confidence >= schedule_visit_threshold:
        return UrgencyDecision(
            OverallUrgency.SCHEDULE_VISIT,
            f"{top.name} ({top.confidence}% confidence) should be checked by a doctor",
        )
    for alert in red_flags:
        if alert.severity == AlertSeverity.WARNING:
            return UrgencyDecision(
                OverallUrgency.SCHEDULE_VISIT,
                f"{alert.title} ({alert.id}) should be checked by a doctor",
            )

    # Level 4: self-care
    if top is None:
        reason = f"No known condition matches the {len(normalized)} reported symptom(s) and no warning signs were found"
    else:
        reason = f"Low confidence match ({top.name}, {top.confidence}%) and no warning signs were found"
    return UrgencyDecision(OverallUrgency.SELF_CARE, reason)

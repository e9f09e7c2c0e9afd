"""Red-Flag Detector.

Safety rules evaluated directly on the normalized symptoms and vitals,
independent of condition scoring, so a dangerous combination is flagged
even when no single condition scores well.
"""

import logging
from collections.abc import Sequence

from telehealth.schemas.base import AlertSeverity
from telehealth.services.clinical_knowledge import (
    RED_FLAG_RULES,
    VITAL_RULES,
    RedFlagRule,
    VitalRule,
    expand_key,
)
from telehealth.services.clinical_types import NormalizedSymptom, PatientContext, RedFlagAlert

logger = logging.getLogger(__name__)

DEFAULT_EMERGENCY_NUMBER = "108"

_SEVERITY_RANK = {
    AlertSeverity.WARNING: 0,
    AlertSeverity.DANGER: 1,
    AlertSeverity.CRITICAL: 2,
}


def _qualifies(symptom: NormalizedSymptom, rule: RedFlagRule) -> bool:
    if symptom.severity < rule.min_severity:
        return False
    if symptom.symptom.duration.hours < rule.min_duration_hours:
        return False
    if rule.require_worsening and not symptom.is_worsening:
        return False
    return True


def match_rule(
    rule: RedFlagRule,
    normalized: Sequence[NormalizedSymptom],
    context: PatientContext | None = None,
) -> tuple[str, ...]:
    """Return the keys of the symptoms that fire ``rule``, or () if it does not fire."""
    if rule.max_age is not None and (context is None or context.age is None or context.age > rule.max_age):
        return ()

    qualifying = [n for n in normalized if _qualifies(n, rule)]

    if not rule.groups:
        triggers = qualifying
    else:
        satisfied = 0
        triggers = []
        for group in rule.groups:
            members = [
                n for n in qualifying if n.recognized and set(expand_key(n.key)) & set(group)
            ]
            if members:
                satisfied += 1
                triggers.extend(m for m in members if m not in triggers)

        needed = rule.min_groups if rule.min_groups is not None else len(rule.groups)
        if satisfied < needed:
            return ()

    if not triggers:
        return ()
    if rule.require_sudden_onset and not any(n.is_sudden for n in triggers):
        return ()

    # Report triggers in input order
    return tuple(n.key for n in normalized if n in triggers)


def match_vital_rule(rule: VitalRule, context: PatientContext | None) -> float | None:
    """Return the offending reading when ``rule`` fires, else None."""
    if context is None or context.vitals is None:
        return None
    value = getattr(context.vitals, rule.vital, None)
    if value is None:
        return None
    if rule.below is not None and value < rule.below:
        return value
    if rule.at_or_above is not None and value >= rule.at_or_above:
        return value
    return None


def detect_red_flags(
    normalized: Sequence[NormalizedSymptom],
    context: PatientContext | None = None,
    emergency_number: str = DEFAULT_EMERGENCY_NUMBER,
) -> list[RedFlagAlert]:
    """Evaluate every red-flag rule once.

    Args:
        normalized: Output of the symptom normalizer
        context: Optional patient context (age-limited rules and vitals)
        emergency_number: Number quoted in emergency actions

    Returns:
        Fired alerts, most severe first.
    """
    alerts: list[RedFlagAlert] = []

    for rule in RED_FLAG_RULES:
        triggers = match_rule(rule, normalized, context)
        if not triggers:
            continue
        alerts.append(
            RedFlagAlert(
                id=rule.id,
                title=rule.title,
                description=rule.description,
                severity=rule.severity,
                trigger_symptoms=triggers,
                action=rule.action.format(emergency_number=emergency_number),
                call_emergency=rule.call_emergency,
            )
        )

    for vital_rule in VITAL_RULES:
        reading = match_vital_rule(vital_rule, context)
        if reading is None:
            continue
        alerts.append(
            RedFlagAlert(
                id=vital_rule.id,
                title=vital_rule.title,
                description=vital_rule.description,
                severity=vital_rule.severity,
                trigger_symptoms=(f"{vital_rule.vital}={reading:g}",),
                action=vital_rule.action.format(emergency_number=emergency_number),
                call_emergency=vital_rule.call_emergency,
            )
        )

    alerts.sort(key=lambda a: -_SEVERITY_RANK[a.severity])

    if alerts:
        logger.info(f"Red-flag rules fired: {', '.join(a.id for a in alerts)}")
    return alerts

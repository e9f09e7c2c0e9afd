"""Condition Scorer.

Scores every knowledge-base condition against the normalized symptoms.

Per condition:
1. Coverage: matched signature weight over total signature weight
2. Severity: each matched symptom counts ``weight * m(severity)`` where m
   maps 1..5 onto 0.7..1.3
3. Temporal pattern (acute conditions only): sudden or worsening symptoms
   push the score up, improving ones pull it down, at most +/-0.15
4. Demographic risk modifiers, clamped to +/-0.20
5. Findings that argue against the condition cost 0.10 each, at most 0.20
6. Without any of the highest-weight symptoms the score is capped at 0.50

Every matched symptom adds a strictly positive term, so reporting one more
signature symptom never lowers a condition's score.
"""

import logging
from collections.abc import Mapping, Sequence

from telehealth.schemas.base import Onset
from telehealth.services.clinical_knowledge import (
    CONDITIONS,
    ConditionDefinition,
    RiskModifier,
    expand_key,
)
from telehealth.services.clinical_types import ConditionScore, NormalizedSymptom, PatientContext

logger = logging.getLogger(__name__)

MIN_CONDITION_SCORE = 0.15
KEY_SYMPTOM_CEILING = 0.50
MAX_TEMPORAL_ADJUSTMENT = 0.15
MAX_DEMOGRAPHIC_ADJUSTMENT = 0.20
EXCLUSION_PENALTY = 0.10
MAX_EXCLUSION_PENALTY = 0.20

_MIN_MULTIPLIER = 0.7
_MAX_MULTIPLIER = 1.3


def severity_multiplier(severity: int) -> float:
    """Map severity 1..5 linearly onto 0.7..1.3."""
    return _MIN_MULTIPLIER + (severity - 1) * (_MAX_MULTIPLIER - _MIN_MULTIPLIER) / 4


def temporal_signal(symptom: NormalizedSymptom) -> float:
    """Direction of a symptom's course in [-1, 1]."""
    signal = 0.0
    if symptom.is_sudden:
        signal += 0.5
    if symptom.is_worsening:
        signal += 0.5
    if symptom.is_improving:
        signal -= 0.5
        if symptom.symptom.onset == Onset.GRADUAL:
            signal -= 0.5
    return max(-1.0, min(1.0, signal))


def present_findings(normalized: Sequence[NormalizedSymptom]) -> dict[str, NormalizedSymptom]:
    """Index recognized symptoms by every key they satisfy.

    A specific finding also satisfies its broader parent (high fever counts
    as fever); when two reports land on one key the more severe one wins.
    """
    present: dict[str, NormalizedSymptom] = {}
    for symptom in normalized:
        if not symptom.recognized:
            continue
        for key in expand_key(symptom.key):
            current = present.get(key)
            if current is None or symptom.severity > current.severity:
                present[key] = symptom
    return present


def _modifier_matches(modifier: RiskModifier, context: PatientContext) -> bool:
    if modifier.min_age is not None or modifier.max_age is not None:
        if context.age is None:
            return False
        if modifier.min_age is not None and context.age < modifier.min_age:
            return False
        if modifier.max_age is not None and context.age > modifier.max_age:
            return False

    if modifier.gender is not None and context.gender != modifier.gender:
        return False

    if modifier.history_terms:
        history = context.medical_history
        if not any(term in entry for term in modifier.history_terms for entry in history):
            return False

    return True


def demographic_adjustment(
    condition: ConditionDefinition,
    context: PatientContext | None,
) -> tuple[float, tuple[str, ...]]:
    """Sum matching risk modifiers, clamped to +/-0.20."""
    if context is None:
        return 0.0, ()

    matched = [m for m in condition.risk_modifiers if _modifier_matches(m, context)]
    total = sum(m.adjustment for m in matched)
    total = max(-MAX_DEMOGRAPHIC_ADJUSTMENT, min(MAX_DEMOGRAPHIC_ADJUSTMENT, total))
    return total, tuple(m.description for m in matched)


def score_condition(
    condition: ConditionDefinition,
    present: Mapping[str, NormalizedSymptom],
    context: PatientContext | None = None,
) -> ConditionScore | None:
    """Score one condition; returns None when no signature symptom matched."""
    total_weight = condition.total_weight
    matched = [s for s in condition.signature if s.key in present]
    if not matched:
        return None

    matched_weight = sum(s.weight for s in matched)
    coverage = matched_weight / total_weight

    severity_part = sum(s.weight * severity_multiplier(present[s.key].severity) for s in matched) / total_weight

    temporal = 0.0
    if condition.acute:
        temporal = sum(
            s.weight * MAX_TEMPORAL_ADJUSTMENT * temporal_signal(present[s.key]) for s in matched
        ) / total_weight

    demographic, risk_factors = demographic_adjustment(condition, context)

    excluded = tuple(key for key in condition.excludes if key in present)
    penalty = min(MAX_EXCLUSION_PENALTY, EXCLUSION_PENALTY * len(excluded))

    raw = severity_part + temporal + demographic - penalty

    ceiling_applied = not (condition.key_symptoms & present.keys())
    if ceiling_applied:
        raw = min(raw, KEY_SYMPTOM_CEILING)

    raw = max(0.0, min(1.0, raw))

    return ConditionScore(
        condition_id=condition.id,
        raw_score=raw,
        coverage=coverage,
        severity_factor=severity_part / coverage,
        temporal_adjustment=temporal,
        demographic_adjustment=demographic,
        exclusion_penalty=penalty,
        ceiling_applied=ceiling_applied,
        matched_keys=tuple(s.key for s in matched),
        excluded_keys=excluded,
        risk_factors=risk_factors,
    )


def score(
    normalized: Sequence[NormalizedSymptom],
    context: PatientContext | None = None,
    min_score: float = MIN_CONDITION_SCORE,
    conditions: Mapping[str, ConditionDefinition] = CONDITIONS,
) -> dict[str, ConditionScore]:
    """Score all conditions and keep those at or above ``min_score``.

    Args:
        normalized: Output of the symptom normalizer
        context: Optional patient context for risk modifiers
        min_score: Exclusion threshold on the raw score
        conditions: Knowledge-base conditions to score

    Returns:
        Mapping of condition id to its score, in knowledge-base order.
    """
    present = present_findings(normalized)
    if not present:
        return {}

    scores: dict[str, ConditionScore] = {}
    below_threshold = 0
    for condition in conditions.values():
        result = score_condition(condition, present, context)
        if result is None:
            continue
        if result.raw_score < min_score:
            below_threshold += 1
            continue
        scores[condition.id] = result

    logger.debug(f"Scored {len(scores)} conditions ({below_threshold} below threshold)")
    return scores

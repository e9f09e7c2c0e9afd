"""Differential Ranker.

Converts raw condition scores into ranked, explained ``ClinicalCondition``
records.

Ordering is confidence first; ties go to the condition with more matching
symptoms, then to the more urgent condition (safety bias), then to the more
prevalent one, then to the id so the order is always deterministic.

Confidence is capped at 95%. Anything that raises the raw score, such as a
matching risk profile or a more severe report, therefore raises confidence
only while it is below the cap; at 95 it stays at 95.
"""

import logging
import math
from collections.abc import Mapping, Sequence

from telehealth.schemas.base import ConditionUrgency
from telehealth.services.clinical_knowledge import (
    CONDITIONS,
    ConditionDefinition,
    expand_key,
    symptom_label,
)
from telehealth.services.clinical_types import ClinicalCondition, ConditionScore, NormalizedSymptom
from telehealth.services.condition_scorer import present_findings

logger = logging.getLogger(__name__)

MAX_CONDITIONS = 5
MAX_CONFIDENCE = 95  # Never claim certainty
MAX_DIFFERENTIAL_SYMPTOMS = 4

_URGENCY_ORDER = [
    ConditionUrgency.ROUTINE,
    ConditionUrgency.SOON,
    ConditionUrgency.URGENT,
    ConditionUrgency.EMERGENCY,
]


def to_confidence(raw_score: float) -> int:
    """Raw score in [0, 1] to a 0-95 confidence percentage (half rounds up).

    Monotonic but not strictly: every raw score that rounds to 95 or more maps to 95.
    """
    return min(MAX_CONFIDENCE, int(math.floor(raw_score * 100 + 0.5)))


def escalate(urgency: ConditionUrgency) -> ConditionUrgency:
    """Raise an urgency tier by one step, saturating at emergency."""
    index = _URGENCY_ORDER.index(urgency)
    return _URGENCY_ORDER[min(index + 1, len(_URGENCY_ORDER) - 1)]


def _labels(keys: Sequence[str]) -> str:
    return ", ".join(symptom_label(k) for k in keys)


def _build_reasoning(
    condition: ConditionDefinition,
    result: ConditionScore,
    normalized: Sequence[NormalizedSymptom],
) -> list[str]:
    reasoning = [
        f"Matches {len(result.matched_keys)} of {len(condition.signature)} expected symptoms "
        f"({result.coverage:.0%} of the symptom pattern): {_labels(result.matched_keys)}"
    ]

    key_present = [k for k in result.matched_keys if k in condition.key_symptoms]
    if key_present:
        reasoning.append(f"Key symptom present: {_labels(key_present)}")
    else:
        reasoning.append(
            f"Key symptom not reported ({_labels(sorted(condition.key_symptoms))}), so confidence is limited"
        )

    if result.severity_factor >= 1.15:
        reasoning.append("High reported severity strengthens the match")
    elif result.severity_factor <= 0.85:
        reasoning.append("Mild reported severity weakens the match")

    if result.temporal_adjustment > 0:
        reasoning.append("Sudden or worsening course fits this acute condition")
    elif result.temporal_adjustment < 0:
        reasoning.append("Improving course makes this acute condition less likely")

    for factor in result.risk_factors:
        reasoning.append(f"Risk factor: {factor}")

    if result.excluded_keys:
        reasoning.append(f"Argues against: {_labels(result.excluded_keys)}")

    signature = {s.key for s in condition.signature}
    unexplained = [
        n.key for n in normalized if not (set(expand_key(n.key)) & signature)
    ]
    if unexplained:
        reasoning.append(f"Not explained by this condition: {_labels(unexplained)}")

    return reasoning


def _differential_factors(
    condition: ConditionDefinition,
    competitor: ConditionDefinition | None,
    present: Mapping[str, NormalizedSymptom],
) -> list[str]:
    factors: list[str] = []

    if competitor is not None:
        own = {s.key for s in condition.signature}
        other = {s.key for s in competitor.signature}
        distinguishing = [(s.weight, s.key, condition, competitor) for s in condition.signature if s.key not in other]
        distinguishing += [(s.weight, s.key, competitor, condition) for s in competitor.signature if s.key not in own]
        distinguishing.sort(key=lambda item: (-item[0], item[1]))

        for _, key, favoured, against in distinguishing[:MAX_DIFFERENTIAL_SYMPTOMS]:
            label = symptom_label(key).capitalize()
            if key in present:
                factors.append(f"{label} (reported) favours {favoured.name} over {against.name}")
            else:
                factors.append(f"{label} would favour {favoured.name} over {against.name}")

    factors.append(f"Typical onset: {condition.typical_onset}")
    factors.append(f"Typical duration: {condition.typical_duration}")
    return factors


def rank(
    scores: Mapping[str, ConditionScore],
    normalized: Sequence[NormalizedSymptom],
    max_conditions: int = MAX_CONDITIONS,
    conditions: Mapping[str, ConditionDefinition] = CONDITIONS,
) -> list[ClinicalCondition]:
    """Rank scored conditions and explain each one.

    Args:
        scores: Output of the condition scorer
        normalized: The normalized symptoms the scores came from
        max_conditions: How many candidates to keep
        conditions: Knowledge-base conditions the scores refer to

    Returns:
        At most ``max_conditions`` conditions, most likely first.
    """
    if not scores:
        return []

    def sort_key(result: ConditionScore) -> tuple:
        definition = conditions[result.condition_id]
        return (
            -to_confidence(result.raw_score),
            -len(result.matched_keys),
            -definition.urgency.rank,
            -definition.prevalence,
            definition.id,
        )

    ordered = sorted(scores.values(), key=sort_key)[:max_conditions]
    definitions = [conditions[r.condition_id] for r in ordered]
    present = present_findings(normalized)

    ranked: list[ClinicalCondition] = []
    for index, (result, definition) in enumerate(zip(ordered, definitions)):
        if len(definitions) < 2:
            competitor = None
        elif index == 0:
            competitor = definitions[1]
        else:
            competitor = definitions[index - 1]

        urgency = definition.urgency
        if any(key in present for key in definition.red_flag_symptoms):
            urgency = escalate(urgency)

        ranked.append(
            ClinicalCondition(
                id=definition.id,
                name=definition.name,
                description=definition.description,
                category=definition.category,
                confidence=to_confidence(result.raw_score),
                matching_symptoms=result.matched_keys,
                missing_symptoms=tuple(s.key for s in definition.signature if s.key not in result.matched_keys),
                reasoning=tuple(_build_reasoning(definition, result, normalized)),
                differential_factors=tuple(_differential_factors(definition, competitor, present)),
                red_flags=tuple(symptom_label(k) for k in definition.red_flag_symptoms if k in present),
                urgency=urgency,
            )
        )

    logger.debug(f"Ranked {len(ranked)} of {len(scores)} scored conditions")
    return ranked

"""Follow-Up Question Generator.

Suggests the questions that best separate the leading candidates. For each
pair of ranked conditions, the unreported symptom whose weight differs most
between the two signatures is the most informative thing to ask about.
"""

from collections.abc import Mapping, Sequence
from itertools import combinations

from telehealth.services.clinical_knowledge import (
    CONDITIONS,
    QUESTION_TEMPLATES,
    ConditionDefinition,
    QuestionTemplate,
    symptom_label,
)
from telehealth.services.clinical_types import (
    ClinicalCondition,
    FollowUpQuestion,
    NormalizedSymptom,
    QuestionOption,
)
from telehealth.services.condition_scorer import present_findings

MAX_FOLLOW_UP_QUESTIONS = 5


def _join_names(names: list[str]) -> str:
    if len(names) <= 2:
        return " and ".join(names)
    return f"{', '.join(names[:-1])} and {names[-1]}"


def _template_for(key: str) -> QuestionTemplate:
    template = QUESTION_TEMPLATES.get(key)
    if template is None:
        template = QuestionTemplate(f"Do you also have {symptom_label(key)}?")
    return template


def _best_symptom(
    first: ConditionDefinition,
    second: ConditionDefinition,
    answered: set[str],
) -> tuple[str, float] | None:
    """Most discriminating unreported symptom for one pair of conditions."""
    candidates = {s.key for s in first.signature} | {s.key for s in second.signature}
    best: tuple[str, float] | None = None
    for key in sorted(candidates - answered):
        priority = abs(first.weight_of(key) - second.weight_of(key))
        if priority > 0 and (best is None or priority > best[1]):
            best = (key, priority)
    return best


def generate_questions(
    ranked: Sequence[ClinicalCondition],
    normalized: Sequence[NormalizedSymptom] = (),
    max_questions: int = MAX_FOLLOW_UP_QUESTIONS,
    conditions: Mapping[str, ConditionDefinition] = CONDITIONS,
) -> list[FollowUpQuestion]:
    """Generate follow-up questions for the ranked differential.

    Returns an empty list when fewer than two candidates remain.
    """
    if len(ranked) < 2:
        return []

    answered = set(present_findings(normalized))
    for condition in ranked:
        answered.update(condition.matching_symptoms)

    # symptom key -> (priority, condition ids in rank order)
    selected: dict[str, tuple[float, list[str]]] = {}
    for first, second in combinations(ranked, 2):
        best = _best_symptom(conditions[first.id], conditions[second.id], answered)
        if best is None:
            continue
        key, priority = best
        current_priority, ids = selected.get(key, (0.0, []))
        for condition_id in (first.id, second.id):
            if condition_id not in ids:
                ids.append(condition_id)
        selected[key] = (max(current_priority, priority), ids)

    rank_of = {c.id: i for i, c in enumerate(ranked)}
    names = {c.id: c.name for c in ranked}

    questions: list[FollowUpQuestion] = []
    for key, (priority, ids) in selected.items():
        ids.sort(key=rank_of.__getitem__)
        template = _template_for(key)
        questions.append(
            FollowUpQuestion(
                id=f"q_{key}",
                question=template.question,
                type=template.type,
                purpose=f"Helps tell apart {_join_names([names[i] for i in ids])}",
                reduces_uncertainty=tuple(ids),
                priority=round(priority, 3),
                symptom_key=key,
                options=tuple(QuestionOption(value=v, label=label) for v, label in template.options),
            )
        )

    questions.sort(key=lambda q: (-q.priority, q.symptom_key))
    return questions[:max_questions]

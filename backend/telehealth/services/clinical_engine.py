"""Clinical Reasoning Engine.

Offline, rule-based clinical decision support. Orchestrates the pipeline:

    normalize -> score -> rank -> red flags -> urgency -> follow-up questions

and wraps the result in an immutable ``ClinicalAssessment`` with next steps,
self-care advice and warning signs to watch for.

The engine holds no state between calls: ``analyze()`` builds a fresh
engine over the read-only knowledge base every time, so it is safe to call
from any number of threads. Analytics and caching live in the API layer.

Note: This is a decision support tool and does not provide a diagnosis.
High-risk presentations are always directed to human care.
"""

import hashlib
import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from telehealth.schemas.base import ConditionCategory, OverallUrgency
from telehealth.services.clinical_knowledge import CONDITIONS, symptom_label
from telehealth.services.clinical_types import (
    ClinicalAssessment,
    ClinicalCondition,
    NormalizedSymptom,
    PatientContext,
)
from telehealth.services.condition_scorer import MIN_CONDITION_SCORE, score
from telehealth.services.differential_ranker import MAX_CONDITIONS, rank
from telehealth.services.follow_up_questions import MAX_FOLLOW_UP_QUESTIONS, generate_questions
from telehealth.services.red_flags import DEFAULT_EMERGENCY_NUMBER, detect_red_flags
from telehealth.services.symptom_normalizer import normalize, normalize_context
from telehealth.services.urgency_classifier import (
    EMERGENCY_CONFIDENCE_THRESHOLD,
    SCHEDULE_VISIT_CONFIDENCE_THRESHOLD,
    URGENT_CONFIDENCE_THRESHOLD,
    classify,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Tunable thresholds of the reasoning pipeline."""

    min_condition_score: float = MIN_CONDITION_SCORE
    max_conditions: int = MAX_CONDITIONS
    max_follow_up_questions: int = MAX_FOLLOW_UP_QUESTIONS
    emergency_confidence_threshold: int = EMERGENCY_CONFIDENCE_THRESHOLD
    urgent_confidence_threshold: int = URGENT_CONFIDENCE_THRESHOLD
    schedule_visit_confidence_threshold: int = SCHEDULE_VISIT_CONFIDENCE_THRESHOLD
    emergency_number: str = DEFAULT_EMERGENCY_NUMBER


# ============================================================================
# Advice Templates
# ============================================================================

_NEXT_STEPS: dict[OverallUrgency, tuple[str, ...]] = {
    OverallUrgency.EMERGENCY: (
        "Call {emergency_number} or go to the nearest emergency department now",
        "Do not drive yourself; ask someone to take you or wait for the ambulance",
        "Keep a list of your symptoms and medicines ready for the doctors",
    ),
    OverallUrgency.URGENT_CARE: (
        "See a doctor today at a clinic or hospital",
        "Call {emergency_number} if your symptoms suddenly get worse",
        "Take your symptom list and current medicines with you",
    ),
    OverallUrgency.SCHEDULE_VISIT: (
        "Book a doctor visit or teleconsultation in the next 1-3 days",
        "Note how your symptoms change until the visit",
        "Answer the follow-up questions to help narrow down the cause",
    ),
    OverallUrgency.SELF_CARE: (
        "Rest and monitor your symptoms at home",
        "Consult a doctor if symptoms last more than a few days or get worse",
    ),
}

_GENERAL_SELF_CARE: tuple[str, ...] = (
    "Get plenty of rest",
    "Drink enough water and fluids",
    "Keep track of your symptoms and temperature",
)

_CATEGORY_SELF_CARE: dict[ConditionCategory, tuple[str, ...]] = {
    ConditionCategory.RESPIRATORY: (
        "Rest and drink warm fluids",
        "Try steam inhalation for a blocked nose",
        "Honey with warm water can soothe a cough (not for children under 1 year)",
        "Paracetamol can help with fever and body aches",
    ),
    ConditionCategory.DIGESTIVE: (
        "Sip oral rehydration solution (ORS) in small amounts often",
        "Eat light foods such as rice, bananas, curd and toast",
        "Avoid oily, spicy food and milk until you recover",
        "Wash hands thoroughly before eating and after using the toilet",
    ),
    ConditionCategory.NEUROLOGICAL: (
        "Rest in a dark, quiet room",
        "Stay hydrated and do not skip meals",
        "Limit screen time and keep a regular sleep schedule",
    ),
    ConditionCategory.INFECTIOUS: (
        "Drink plenty of fluids",
        "Use paracetamol for fever; avoid ibuprofen and aspirin until dengue is ruled out",
        "Sleep under a mosquito net and use repellent",
    ),
    ConditionCategory.CARDIAC: (
        "Rest and avoid strenuous activity",
        "Reduce salt in your food",
        "Take prescribed medicines regularly and check your blood pressure",
    ),
    ConditionCategory.UROLOGICAL: (
        "Drink plenty of water",
        "Do not hold urine for long",
        "Avoid caffeine and alcohol until you recover",
    ),
    ConditionCategory.SURGICAL: (
        "Do not eat or drink until a doctor has examined you",
        "Avoid painkillers that could hide worsening pain",
    ),
    ConditionCategory.METABOLIC: (
        "Check your blood sugar if you have a glucometer",
        "Drink water rather than sugary drinks",
        "Take prescribed medicines regularly",
    ),
    ConditionCategory.ALLERGIC: (
        "Avoid the suspected trigger",
        "Take an antihistamine if a doctor has advised one before",
        "Use a cool compress on itchy skin",
    ),
}

_WHEN_TO_SEEK_HELP: tuple[str, ...] = (
    "Difficulty breathing, chest pain or fainting",
    "Confusion, a severe headache or a stiff neck",
    "High fever above 103°F (39.4°C) or fever lasting more than 3 days",
    "Symptoms that get worse or do not improve in 3 days",
)


def _fill(lines: Iterable[str], config: EngineConfig) -> tuple[str, ...]:
    return tuple(line.format(emergency_number=config.emergency_number) for line in lines)


# ============================================================================
# Engine
# ============================================================================


class ClinicalReasoningEngine:
    """Runs one analysis over the static knowledge base."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()

    def analyze(
        self,
        symptoms: Iterable[Any] | None,
        context: Any = None,
    ) -> ClinicalAssessment:
        """Produce a clinical assessment.

        Args:
            symptoms: Raw symptom reports (TemporalSymptom objects or mappings)
            context: Optional patient context (PatientContext or mapping)

        Returns:
            Immutable ClinicalAssessment. Never raises for malformed input.
        """
        config = self.config
        normalized = normalize(symptoms)
        patient = normalize_context(context)

        scores = score(normalized, patient, min_score=config.min_condition_score)
        ranked = rank(scores, normalized, max_conditions=config.max_conditions)
        alerts = detect_red_flags(normalized, patient, emergency_number=config.emergency_number)
        decision = classify(
            ranked,
            alerts,
            normalized,
            emergency_threshold=config.emergency_confidence_threshold,
            urgent_threshold=config.urgent_confidence_threshold,
            schedule_visit_threshold=config.schedule_visit_confidence_threshold,
        )
        questions = generate_questions(ranked, normalized, max_questions=config.max_follow_up_questions)

        assessment = ClinicalAssessment(
            id=self._assessment_id(normalized, patient),
            timestamp=datetime.now(UTC),
            input_symptoms=tuple(n.symptom for n in normalized),
            patient_context=patient,
            possible_conditions=tuple(ranked),
            red_flag_alerts=tuple(alerts),
            follow_up_questions=tuple(questions),
            overall_urgency=decision.overall_urgency,
            urgency_reason=decision.urgency_reason,
            confidence_explanation=self._confidence_explanation(ranked),
            differential_explanation=self._differential_explanation(ranked),
            next_steps=_fill(_NEXT_STEPS[decision.overall_urgency], config),
            self_care_advice=self._self_care_advice(decision.overall_urgency, ranked),
            when_to_seek_help=self._when_to_seek_help(decision.overall_urgency, ranked),
            unrecognized_symptoms=tuple(n.key for n in normalized if not n.recognized),
        )

        logger.info(
            f"Assessment complete: {len(normalized)} symptoms, {len(ranked)} conditions, "
            f"{len(alerts)} alerts, urgency={decision.overall_urgency.value}"
        )
        return assessment

    @staticmethod
    def _assessment_id(normalized: Sequence[NormalizedSymptom], patient: PatientContext | None) -> str:
        """Digest of the canonical input, so identical input gets an identical id."""
        payload = {
            "symptoms": [
                [
                    n.key,
                    n.severity,
                    n.symptom.duration.hours,
                    n.symptom.progression.value,
                    n.symptom.onset.value,
                    n.symptom.frequency.value,
                ]
                for n in normalized
            ],
            "context": None,
        }
        if patient is not None:
            vitals = patient.vitals
            payload["context"] = {
                "age": patient.age,
                "gender": patient.gender.value if patient.gender else None,
                "history": sorted(patient.medical_history),
                "medications": sorted(patient.medications),
                "vitals": None if vitals is None else [
                    vitals.heart_rate,
                    vitals.systolic_bp,
                    vitals.diastolic_bp,
                    vitals.temperature,
                    vitals.oxygen_saturation,
                    vitals.respiratory_rate,
                ],
            }
        digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()
        return f"assessment_{digest[:16]}"

    @staticmethod
    def _confidence_explanation(ranked: Sequence[ClinicalCondition]) -> str:
        if not ranked:
            return (
                "No known condition matched your symptoms strongly enough to suggest it. "
                "This does not rule out illness; consult a doctor if you are concerned."
            )
        top = ranked[0]
        return (
            f"The closest match is {top.name} at {top.confidence}% confidence, based on "
            f"{len(top.matching_symptoms)} matching symptom(s). Confidence shows how well your "
            f"symptoms fit known patterns; it is not a diagnosis."
        )

    @staticmethod
    def _differential_explanation(ranked: Sequence[ClinicalCondition]) -> str:
        if not ranked:
            return "There is not enough information to compare possible conditions."
        if len(ranked) == 1:
            return f"{ranked[0].name} is the only condition that matched your symptoms."

        top, runner_up = ranked[0], ranked[1]
        explanation = (
            f"{top.name} ({top.confidence}%) ranks above {runner_up.name} ({runner_up.confidence}%)."
        )
        distinguishing = [f for f in top.differential_factors if not f.startswith("Typical ")]
        if distinguishing:
            explanation += f" {distinguishing[0]}."
        return explanation

    @staticmethod
    def _self_care_advice(
        urgency: OverallUrgency,
        ranked: Sequence[ClinicalCondition],
    ) -> tuple[str, ...]:
        if urgency == OverallUrgency.EMERGENCY:
            return ()
        if urgency == OverallUrgency.URGENT_CARE:
            return ("Stay with someone and keep drinking small amounts of water while you arrange care",)
        if ranked:
            return _CATEGORY_SELF_CARE.get(ranked[0].category, _GENERAL_SELF_CARE)
        return _GENERAL_SELF_CARE

    def _when_to_seek_help(
        self,
        urgency: OverallUrgency,
        ranked: Sequence[ClinicalCondition],
    ) -> tuple[str, ...]:
        if urgency == OverallUrgency.EMERGENCY:
            return (f"Now: call {self.config.emergency_number} or go to the nearest emergency department",)

        lines = list(_WHEN_TO_SEEK_HELP)
        if ranked:
            warning_signs = [symptom_label(k) for k in CONDITIONS[ranked[0].id].red_flag_symptoms]
            if warning_signs:
                lines.insert(0, f"Warning signs for {ranked[0].name}: {', '.join(warning_signs)}")
        return tuple(lines)


def analyze(
    symptoms: Iterable[Any] | None,
    context: Any = None,
    config: EngineConfig | None = None,
) -> ClinicalAssessment:
    """Analyze symptoms with a fresh engine over the static knowledge base."""
    return ClinicalReasoningEngine(config).analyze(symptoms, context)

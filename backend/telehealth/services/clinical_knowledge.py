"""Clinical Knowledge Base.

Static catalogue used by the offline decision-support engine:

- Symptom vocabulary (canonical keys and display labels)
- Synonym table, including Hindi and romanised Hindi phrasing
- Condition definitions with weighted symptom signatures, demographic
  risk modifiers and condition-specific red flags
- Red-flag rules over symptom combinations and vital signs
- Follow-up question templates

Everything is immutable and validated once at import time, so a malformed
entry fails the process start instead of silently skewing scores.

Note: weights and modifiers are curated decision-support heuristics, not
validated clinical probabilities.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from telehealth.schemas.base import (
    AlertSeverity,
    ConditionCategory,
    ConditionUrgency,
    Gender,
    QuestionType,
)


class KnowledgeBaseError(ValueError):
    """Raised when the static knowledge base is internally inconsistent."""


# ============================================================================
# Knowledge Base Types
# ============================================================================


@dataclass(frozen=True)
class SignatureSymptom:
    """One expected symptom of a condition and how strongly it points to it."""

    key: str
    weight: float  # 0.0 < weight <= 1.0


@dataclass(frozen=True)
class RiskModifier:
    """Demographic or history rule that shifts a condition's prior.

    A modifier matches only when every criterion it sets is satisfied by the
    patient context; unset criteria are ignored.
    """

    description: str
    adjustment: float
    min_age: int | None = None
    max_age: int | None = None
    gender: Gender | None = None
    history_terms: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConditionDefinition:
    """Template for one known condition."""

    id: str
    name: str
    description: str
    category: ConditionCategory
    urgency: ConditionUrgency
    signature: tuple[SignatureSymptom, ...]
    acute: bool = False  # Sudden/worsening presentations raise the score
    excludes: tuple[str, ...] = ()  # Findings that argue against
    red_flag_symptoms: tuple[str, ...] = ()
    risk_modifiers: tuple[RiskModifier, ...] = ()
    prevalence: float = 0.01  # Base rate, used as a late tie-break
    typical_onset: str = "gradual"
    typical_duration: str = "variable"

    @property
    def total_weight(self) -> float:
        return sum(s.weight for s in self.signature)

    @property
    def max_weight(self) -> float:
        return max(s.weight for s in self.signature)

    @property
    def key_symptoms(self) -> frozenset[str]:
        """Signature symptoms carrying the highest weight."""
        top = self.max_weight
        return frozenset(s.key for s in self.signature if s.weight == top)

    def weight_of(self, key: str) -> float:
        for s in self.signature:
            if s.key == key:
                return s.weight
        return 0.0


@dataclass(frozen=True)
class RedFlagRule:
    """Safety rule over symptom combinations.

    Each group is satisfied by any one of its members. The rule fires when at
    least ``min_groups`` groups are satisfied (all groups when unset) by
    symptoms meeting the per-symptom requirements. A rule without groups fires
    on any qualifying symptom, recognized or not.
    """

    id: str
    title: str
    description: str
    severity: AlertSeverity
    action: str
    call_emergency: bool = False
    groups: tuple[tuple[str, ...], ...] = ()
    min_groups: int | None = None
    require_sudden_onset: bool = False
    require_worsening: bool = False
    min_severity: int = 1
    min_duration_hours: float = 0.0
    max_age: int | None = None


@dataclass(frozen=True)
class VitalRule:
    """Safety rule over a single vital sign threshold."""

    id: str
    title: str
    description: str
    vital: str  # Attribute name on Vitals
    severity: AlertSeverity
    action: str
    call_emergency: bool = False
    below: float | None = None
    at_or_above: float | None = None


@dataclass(frozen=True)
class QuestionTemplate:
    question: str
    type: QuestionType = QuestionType.YES_NO
    options: tuple[tuple[str, str], ...] = ()  # (value, label)


# ============================================================================
# Symptom Vocabulary
# ============================================================================

SYMPTOM_LABELS: Mapping[str, str] = MappingProxyType({
    # General
    "fever": "fever",
    "high_fever": "high fever",
    "chills": "chills",
    "sweating": "sweating",
    "fatigue": "fatigue",
    "body_aches": "body aches",
    "joint_pain": "joint pain",
    "loss_of_appetite": "loss of appetite",
    "weight_loss": "weight loss",
    "excessive_thirst": "excessive thirst",
    "slow_healing": "slow wound healing",
    # Neurological
    "headache": "headache",
    "severe_headache": "severe headache",
    "neck_pain": "neck pain",
    "stiff_neck": "stiff neck",
    "light_sensitivity": "sensitivity to light",
    "sound_sensitivity": "sensitivity to sound",
    "vision_changes": "vision changes",
    "eye_pain": "pain behind the eyes",
    "dizziness": "dizziness",
    "confusion": "confusion",
    "seizure": "seizure",
    "fainting": "fainting",
    "sudden_weakness": "sudden weakness",
    "facial_drooping": "facial drooping",
    "speech_difficulty": "speech difficulty",
    "numbness": "numbness",
    "suicidal_thoughts": "suicidal thoughts",
    # Respiratory
    "cough": "cough",
    "phlegm": "phlegm",
    "runny_nose": "runny nose",
    "sneezing": "sneezing",
    "sore_throat": "sore throat",
    "loss_of_taste": "loss of taste",
    "loss_of_smell": "loss of smell",
    "shortness_of_breath": "shortness of breath",
    "wheezing": "wheezing",
    "chest_tightness": "chest tightness",
    "rapid_breathing": "rapid breathing",
    "bluish_lips": "bluish lips",
    # Cardiac
    "chest_pain": "chest pain",
    "arm_pain": "arm pain",
    "jaw_pain": "jaw pain",
    "palpitations": "palpitations",
    "nosebleed": "nosebleed",
    # Digestive
    "nausea": "nausea",
    "vomiting": "vomiting",
    "diarrhea": "diarrhea",
    "constipation": "constipation",
    "abdominal_pain": "abdominal pain",
    "severe_abdominal_pain": "severe abdominal pain",
    "abdominal_cramps": "abdominal cramps",
    "lower_abdominal_pain": "lower abdominal pain",
    "rigid_abdomen": "rigid abdomen",
    "blood_in_stool": "blood in stool",
    "vomiting_blood": "vomiting blood",
    # Urological
    "painful_urination": "painful urination",
    "frequent_urination": "frequent urination",
    "cloudy_urine": "cloudy urine",
    "blood_in_urine": "blood in urine",
    "back_pain": "back pain",
    # Skin / allergic
    "rash": "rash",
    "hives": "hives",
    "itching": "itching",
    "facial_swelling": "facial swelling",
    "throat_swelling": "throat swelling",
    "bleeding": "unusual bleeding",
})

# A more specific finding also counts as its broader parent when matching
SYMPTOM_IMPLIES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "high_fever": ("fever",),
    "severe_headache": ("headache",),
    "severe_abdominal_pain": ("abdominal_pain",),
    "lower_abdominal_pain": ("abdominal_pain",),
    "stiff_neck": ("neck_pain",),
})

SYMPTOM_SYNONYMS: Mapping[str, str] = MappingProxyType({
    # Fever
    "temperature": "fever",
    "febrile": "fever",
    "feverish": "fever",
    "mild fever": "fever",
    "very high fever": "high_fever",
    "high temperature": "high_fever",
    "burning up": "high_fever",
    "shivering": "chills",
    "rigors": "chills",
    "night sweats": "sweating",
    "cold sweat": "sweating",
    "diaphoresis": "sweating",
    "tiredness": "fatigue",
    "tired": "fatigue",
    "weakness": "fatigue",
    "exhaustion": "fatigue",
    "lethargy": "fatigue",
    "malaise": "fatigue",
    "body ache": "body_aches",
    "body pain": "body_aches",
    "muscle pain": "body_aches",
    "muscle aches": "body_aches",
    "myalgia": "body_aches",
    "severe body aches": "body_aches",
    "joint ache": "joint_pain",
    "arthralgia": "joint_pain",
    "no appetite": "loss_of_appetite",
    "not hungry": "loss_of_appetite",
    "anorexia": "loss_of_appetite",
    "always thirsty": "excessive_thirst",
    "increased thirst": "excessive_thirst",
    "wounds not healing": "slow_healing",
    # Headache
    "head pain": "headache",
    "head ache": "headache",
    "headaches": "headache",
    "migraine headache": "severe_headache",
    "worst headache": "severe_headache",
    "worst headache ever": "severe_headache",
    "thunderclap headache": "severe_headache",
    "stiff neck pain": "stiff_neck",
    "neck stiffness": "stiff_neck",
    "cannot bend neck": "stiff_neck",
    "sore neck": "neck_pain",
    "light sensitivity": "light_sensitivity",
    "sensitive to light": "light_sensitivity",
    "photophobia": "light_sensitivity",
    "sensitive to sound": "sound_sensitivity",
    "noise sensitivity": "sound_sensitivity",
    "phonophobia": "sound_sensitivity",
    "blurred vision": "vision_changes",
    "blurry vision": "vision_changes",
    "double vision": "vision_changes",
    "vision problems": "vision_changes",
    "pain behind eyes": "eye_pain",
    "dizzy": "dizziness",
    "lightheaded": "dizziness",
    "lightheadedness": "dizziness",
    "vertigo": "dizziness",
    "confused": "confusion",
    "disoriented": "confusion",
    "altered mental status": "confusion",
    "seizures": "seizure",
    "fits": "seizure",
    "convulsions": "seizure",
    "fainted": "fainting",
    "passed out": "fainting",
    "syncope": "fainting",
    "blackout": "fainting",
    "arm weakness": "sudden_weakness",
    "one sided weakness": "sudden_weakness",
    "weakness on one side": "sudden_weakness",
    "face drooping": "facial_drooping",
    "facial droop": "facial_drooping",
    "slurred speech": "speech_difficulty",
    "trouble speaking": "speech_difficulty",
    "cannot speak": "speech_difficulty",
    "tingling": "numbness",
    "pins and needles": "numbness",
    "want to die": "suicidal_thoughts",
    "suicidal": "suicidal_thoughts",
    # Respiratory
    "coughing": "cough",
    "dry cough": "cough",
    "productive cough": "phlegm",
    "sputum": "phlegm",
    "mucus": "phlegm",
    "runny nose": "runny_nose",
    "running nose": "runny_nose",
    "blocked nose": "runny_nose",
    "stuffy nose": "runny_nose",
    "nasal congestion": "runny_nose",
    "sneeze": "sneezing",
    "throat pain": "sore_throat",
    "scratchy throat": "sore_throat",
    "lost taste": "loss_of_taste",
    "no taste": "loss_of_taste",
    "lost smell": "loss_of_smell",
    "no smell": "loss_of_smell",
    "short of breath": "shortness_of_breath",
    "breathlessness": "shortness_of_breath",
    "difficulty breathing": "shortness_of_breath",
    "trouble breathing": "shortness_of_breath",
    "breathing difficulty": "shortness_of_breath",
    "cannot breathe": "shortness_of_breath",
    "dyspnea": "shortness_of_breath",
    "sob": "shortness_of_breath",
    "wheeze": "wheezing",
    "tight chest": "chest_tightness",
    "fast breathing": "rapid_breathing",
    "breathing fast": "rapid_breathing",
    "blue lips": "bluish_lips",
    "cyanosis": "bluish_lips",
    # Cardiac
    "chest discomfort": "chest_pain",
    "chest pressure": "chest_pain",
    "crushing chest pain": "chest_pain",
    "angina": "chest_pain",
    "pain in arm": "arm_pain",
    "left arm pain": "arm_pain",
    "jaw ache": "jaw_pain",
    "racing heart": "palpitations",
    "heart racing": "palpitations",
    "pounding heart": "palpitations",
    "nose bleed": "nosebleed",
    "epistaxis": "nosebleed",
    # Digestive
    "nauseous": "nausea",
    "queasy": "nausea",
    "feeling sick": "nausea",
    "throwing up": "vomiting",
    "vomit": "vomiting",
    "emesis": "vomiting",
    "loose motions": "diarrhea",
    "loose stools": "diarrhea",
    "watery stools": "diarrhea",
    "diarrhoea": "diarrhea",
    "stomach ache": "abdominal_pain",
    "stomachache": "abdominal_pain",
    "stomach pain": "abdominal_pain",
    "belly pain": "abdominal_pain",
    "tummy ache": "abdominal_pain",
    "severe stomach pain": "severe_abdominal_pain",
    "stomach cramps": "abdominal_cramps",
    "cramps": "abdominal_cramps",
    "pelvic pain": "lower_abdominal_pain",
    "hard abdomen": "rigid_abdomen",
    "bloody stool": "blood_in_stool",
    "black stool": "blood_in_stool",
    "rectal bleeding": "blood_in_stool",
    "blood in vomit": "vomiting_blood",
    "hematemesis": "vomiting_blood",
    # Urological
    "burning urination": "painful_urination",
    "pain when urinating": "painful_urination",
    "dysuria": "painful_urination",
    "frequent urge to urinate": "frequent_urination",
    "urinating often": "frequent_urination",
    "polyuria": "frequent_urination",
    "blood in urine": "blood_in_urine",
    "hematuria": "blood_in_urine",
    "lower back pain": "back_pain",
    "flank pain": "back_pain",
    # Skin / allergic
    "skin rash": "rash",
    "red spots": "rash",
    "welts": "hives",
    "urticaria": "hives",
    "itchy": "itching",
    "itch": "itching",
    "swollen face": "facial_swelling",
    "swollen lips": "facial_swelling",
    "swollen throat": "throat_swelling",
    "throat closing": "throat_swelling",
    "bleeding gums": "bleeding",
    "easy bruising": "bleeding",
    # Hindi (Devanagari)
    "बुखार": "fever",
    "तेज बुखार": "high_fever",
    "ठंड लगना": "chills",
    "कंपकंपी": "chills",
    "थकान": "fatigue",
    "कमजोरी": "fatigue",
    "बदन दर्द": "body_aches",
    "सिरदर्द": "headache",
    "सिर दर्द": "headache",
    "चक्कर": "dizziness",
    "खांसी": "cough",
    "जुकाम": "runny_nose",
    "छींक": "sneezing",
    "गले में खराश": "sore_throat",
    "सांस लेने में तकलीफ": "shortness_of_breath",
    "सीने में दर्द": "chest_pain",
    "मतली": "nausea",
    "उल्टी": "vomiting",
    "दस्त": "diarrhea",
    "पेट दर्द": "abdominal_pain",
    "पेशाब में जलन": "painful_urination",
    "दाने": "rash",
    "खुजली": "itching",
    "बेहोशी": "fainting",
    # Romanised Hindi
    "bukhar": "fever",
    "tez bukhar": "high_fever",
    "thand lagna": "chills",
    "thakan": "fatigue",
    "kamzori": "fatigue",
    "badan dard": "body_aches",
    "sir dard": "headache",
    "sardard": "headache",
    "chakkar": "dizziness",
    "khansi": "cough",
    "zukam": "runny_nose",
    "gale mein kharash": "sore_throat",
    "saans lene mein takleef": "shortness_of_breath",
    "saans phoolna": "shortness_of_breath",
    "seene mein dard": "chest_pain",
    "ji machlana": "nausea",
    "ulti": "vomiting",
    "dast": "diarrhea",
    "pet dard": "abdominal_pain",
    "peshab mein jalan": "painful_urination",
    "khujli": "itching",
    "behoshi": "fainting",
})


def symptom_label(key: str) -> str:
    """Human-readable label for a canonical or literal symptom key."""
    return SYMPTOM_LABELS.get(key, key.replace("_", " "))


def expand_key(key: str) -> tuple[str, ...]:
    """Return a key together with the broader findings it implies."""
    return (key,) + SYMPTOM_IMPLIES.get(key, ())


# ============================================================================
# Condition Definitions
# ============================================================================

_HYPERTENSION_TERMS = ("hypertension", "high blood pressure", "high bp")
_DIABETES_TERMS = ("diabetes", "diabetic", "prediabetes")
_HEART_TERMS = ("heart disease", "coronary", "angina", "heart attack", "cholesterol")
_LUNG_TERMS = ("asthma", "copd", "bronchitis", "smok")
_ALLERGY_TERMS = ("allergy", "allergic", "eczema", "hay fever")


def _sig(*pairs: tuple[str, float]) -> tuple[SignatureSymptom, ...]:
    return tuple(SignatureSymptom(key=k, weight=w) for k, w in pairs)


_CONDITIONS: tuple[ConditionDefinition, ...] = (
    # =========================================================================
    # RESPIRATORY
    # =========================================================================
    ConditionDefinition(
        id="common_cold",
        name="Common Cold",
        description="Viral infection of the upper respiratory tract",
        category=ConditionCategory.RESPIRATORY,
        urgency=ConditionUrgency.ROUTINE,
        signature=_sig(
            ("runny_nose", 0.9),
            ("sneezing", 0.8),
            ("sore_throat", 0.8),
            ("cough", 0.5),
            ("fever", 0.3),
            ("fatigue", 0.3),
            ("headache", 0.3),
        ),
        excludes=("high_fever", "stiff_neck", "chest_pain"),
        red_flag_symptoms=("shortness_of_breath",),
        risk_modifiers=(
            RiskModifier("Young children catch colds more often", 0.05, max_age=12),
        ),
        prevalence=0.15,
        typical_duration="7-10 days",
    ),
    ConditionDefinition(
        id="influenza",
        name="Influenza (Flu)",
        description="Viral respiratory infection with systemic symptoms",
        category=ConditionCategory.RESPIRATORY,
        urgency=ConditionUrgency.SOON,
        signature=_sig(
            ("fever", 0.9),
            ("body_aches", 0.9),
            ("fatigue", 0.8),
            ("chills", 0.6),
            ("cough", 0.6),
            ("headache", 0.5),
            ("sore_throat", 0.4),
        ),
        acute=True,
        excludes=("rash",),
        red_flag_symptoms=("shortness_of_breath", "chest_pain", "confusion"),
        risk_modifiers=(
            RiskModifier("Age 65 or older raises the risk of complicated flu", 0.08, min_age=65),
            RiskModifier(
                "Chronic lung disease or diabetes raises flu risk",
                0.05,
                history_terms=_LUNG_TERMS + _DIABETES_TERMS,
            ),
        ),
        prevalence=0.08,
        typical_onset="sudden",
        typical_duration="1-2 weeks",
    ),
    ConditionDefinition(
        id="covid19",
        name="COVID-19",
        description="Coronavirus respiratory infection",
        category=ConditionCategory.RESPIRATORY,
        urgency=ConditionUrgency.SOON,
        signature=_sig(
            ("cough", 0.8),
            ("fever", 0.8),
            ("loss_of_taste", 0.7),
            ("loss_of_smell", 0.7),
            ("fatigue", 0.5),
            ("shortness_of_breath", 0.5),
            ("body_aches", 0.4),
            ("sore_throat", 0.4),
        ),
        red_flag_symptoms=("bluish_lips", "confusion", "chest_pain"),
        risk_modifiers=(
            RiskModifier("Age 60 or older raises the risk of severe COVID-19", 0.08, min_age=60),
            RiskModifier(
                "Diabetes, hypertension or heart disease raises COVID-19 risk",
                0.06,
                history_terms=_DIABETES_TERMS + _HYPERTENSION_TERMS + _HEART_TERMS,
            ),
        ),
        prevalence=0.05,
        typical_duration="2-6 weeks",
    ),
    ConditionDefinition(
        id="pneumonia",
        name="Pneumonia",
        description="Lung infection causing inflammation of the air sacs",
        category=ConditionCategory.RESPIRATORY,
        urgency=ConditionUrgency.URGENT,
        signature=_sig(
            ("cough", 0.9),
            ("shortness_of_breath", 0.9),
            ("fever", 0.8),
            ("phlegm", 0.6),
            ("chest_pain", 0.5),
            ("chills", 0.4),
            ("fatigue", 0.3),
        ),
        red_flag_symptoms=("bluish_lips", "confusion", "rapid_breathing"),
        risk_modifiers=(
            RiskModifier("Age 65 or older raises pneumonia risk", 0.08, min_age=65),
            RiskModifier("Children under 5 are more prone to pneumonia", 0.05, max_age=4),
            RiskModifier("Chronic lung disease or smoking raises pneumonia risk", 0.06, history_terms=_LUNG_TERMS),
        ),
        prevalence=0.02,
        typical_duration="1-3 weeks",
    ),
    ConditionDefinition(
        id="asthma_attack",
        name="Asthma Attack",
        description="Airway narrowing causing breathing difficulty",
        category=ConditionCategory.RESPIRATORY,
        urgency=ConditionUrgency.URGENT,
        signature=_sig(
            ("wheezing", 1.0),
            ("shortness_of_breath", 0.9),
            ("chest_tightness", 0.7),
            ("cough", 0.5),
            ("rapid_breathing", 0.5),
        ),
        acute=True,
        red_flag_symptoms=("bluish_lips", "speech_difficulty"),
        risk_modifiers=(
            RiskModifier("Known asthma", 0.15, history_terms=("asthma",)),
            RiskModifier("History of allergies", 0.05, history_terms=_ALLERGY_TERMS),
        ),
        prevalence=0.08,
        typical_onset="sudden",
    ),
    # =========================================================================
    # DIGESTIVE
    # =========================================================================
    ConditionDefinition(
        id="gastroenteritis",
        name="Gastroenteritis",
        description="Inflammation of the stomach and intestines, usually viral",
        category=ConditionCategory.DIGESTIVE,
        urgency=ConditionUrgency.ROUTINE,
        signature=_sig(
            ("diarrhea", 0.9),
            ("nausea", 0.8),
            ("vomiting", 0.8),
            ("abdominal_cramps", 0.6),
            ("abdominal_pain", 0.5),
            ("fever", 0.3),
            ("fatigue", 0.2),
        ),
        acute=True,
        excludes=("blood_in_stool",),
        red_flag_symptoms=("blood_in_stool", "high_fever", "confusion"),
        risk_modifiers=(
            RiskModifier("Infants and young children dehydrate quickly", 0.04, max_age=5),
        ),
        prevalence=0.10,
        typical_onset="sudden",
        typical_duration="1-3 days",
    ),
    ConditionDefinition(
        id="food_poisoning",
        name="Food Poisoning",
        description="Illness from contaminated food or water",
        category=ConditionCategory.DIGESTIVE,
        urgency=ConditionUrgency.ROUTINE,
        signature=_sig(
            ("nausea", 0.9),
            ("vomiting", 0.9),
            ("diarrhea", 0.7),
            ("abdominal_cramps", 0.6),
            ("fever", 0.3),
        ),
        acute=True,
        red_flag_symptoms=("blood_in_stool", "vomiting_blood", "confusion"),
        prevalence=0.05,
        typical_onset="sudden",
        typical_duration="1-2 days",
    ),
    ConditionDefinition(
        id="typhoid",
        name="Typhoid Fever",
        description="Bacterial infection spread through contaminated food and water",
        category=ConditionCategory.INFECTIOUS,
        urgency=ConditionUrgency.URGENT,
        signature=_sig(
            ("fever", 0.9),
            ("abdominal_pain", 0.6),
            ("headache", 0.5),
            ("fatigue", 0.5),
            ("loss_of_appetite", 0.5),
            ("constipation", 0.4),
            ("diarrhea", 0.3),
        ),
        red_flag_symptoms=("severe_abdominal_pain", "blood_in_stool", "confusion"),
        prevalence=0.02,
        typical_duration="1-4 weeks",
    ),
    ConditionDefinition(
        id="appendicitis",
        name="Appendicitis",
        description="Inflammation of the appendix that may require surgery",
        category=ConditionCategory.SURGICAL,
        urgency=ConditionUrgency.EMERGENCY,
        signature=_sig(
            ("abdominal_pain", 1.0),
            ("lower_abdominal_pain", 0.7),
            ("loss_of_appetite", 0.6),
            ("nausea", 0.5),
            ("vomiting", 0.5),
            ("fever", 0.4),
        ),
        acute=True,
        red_flag_symptoms=("severe_abdominal_pain", "rigid_abdomen", "high_fever"),
        risk_modifiers=(
            RiskModifier("Peak incidence between ages 10 and 30", 0.06, min_age=10, max_age=30),
        ),
        prevalence=0.01,
        typical_onset="sudden",
        typical_duration="progressive over hours",
    ),
    # =========================================================================
    # INFECTIOUS
    # =========================================================================
    ConditionDefinition(
        id="dengue",
        name="Dengue Fever",
        description="Mosquito-borne viral infection",
        category=ConditionCategory.INFECTIOUS,
        urgency=ConditionUrgency.URGENT,
        signature=_sig(
            ("high_fever", 0.9),
            ("body_aches", 0.8),
            ("eye_pain", 0.6),
            ("joint_pain", 0.6),
            ("headache", 0.5),
            ("rash", 0.5),
            ("nausea", 0.3),
            ("fatigue", 0.3),
        ),
        acute=True,
        red_flag_symptoms=("bleeding", "severe_abdominal_pain", "vomiting_blood"),
        prevalence=0.03,
        typical_onset="sudden",
        typical_duration="2-7 days",
    ),
    ConditionDefinition(
        id="malaria",
        name="Malaria",
        description="Parasitic infection transmitted by mosquito bites",
        category=ConditionCategory.INFECTIOUS,
        urgency=ConditionUrgency.URGENT,
        signature=_sig(
            ("high_fever", 0.9),
            ("chills", 0.9),
            ("sweating", 0.7),
            ("headache", 0.5),
            ("body_aches", 0.4),
            ("nausea", 0.3),
            ("fatigue", 0.3),
        ),
        acute=True,
        red_flag_symptoms=("confusion", "seizure", "shortness_of_breath"),
        risk_modifiers=(
            RiskModifier("Previous malaria episodes", 0.05, history_terms=("malaria",)),
        ),
        prevalence=0.02,
        typical_onset="sudden",
        typical_duration="cyclical fevers every 2-3 days",
    ),
    ConditionDefinition(
        id="urinary_tract_infection",
        name="Urinary Tract Infection",
        description="Bacterial infection of the urinary system",
        category=ConditionCategory.UROLOGICAL,
        urgency=ConditionUrgency.SOON,
        signature=_sig(
            ("painful_urination", 1.0),
            ("frequent_urination", 0.9),
            ("lower_abdominal_pain", 0.5),
            ("cloudy_urine", 0.5),
            ("blood_in_urine", 0.4),
            ("fever", 0.2),
        ),
        red_flag_symptoms=("high_fever", "back_pain", "vomiting"),
        risk_modifiers=(
            RiskModifier("Urinary infections are far more common in women", 0.08, gender=Gender.FEMALE),
            RiskModifier("Diabetes raises infection risk", 0.04, history_terms=_DIABETES_TERMS),
        ),
        prevalence=0.08,
        typical_duration="3-7 days with treatment",
    ),
    # =========================================================================
    # NEUROLOGICAL
    # =========================================================================
    ConditionDefinition(
        id="migraine",
        name="Migraine",
        description="Recurrent headache disorder with sensory sensitivity",
        category=ConditionCategory.NEUROLOGICAL,
        urgency=ConditionUrgency.SOON,
        signature=_sig(
            ("headache", 0.9),
            ("light_sensitivity", 0.7),
            ("nausea", 0.6),
            ("sound_sensitivity", 0.5),
            ("vision_changes", 0.4),
            ("vomiting", 0.3),
        ),
        excludes=("fever", "stiff_neck"),
        red_flag_symptoms=("confusion", "seizure", "speech_difficulty"),
        risk_modifiers=(
            RiskModifier("Migraine is about three times more common in women", 0.06, gender=Gender.FEMALE),
            RiskModifier("Peak incidence between ages 15 and 50", 0.04, min_age=15, max_age=50),
        ),
        prevalence=0.12,
        typical_duration="4-72 hours",
    ),
    ConditionDefinition(
        id="tension_headache",
        name="Tension Headache",
        description="Band-like headache linked to stress, posture and muscle tension",
        category=ConditionCategory.NEUROLOGICAL,
        urgency=ConditionUrgency.ROUTINE,
        signature=_sig(
            ("headache", 0.9),
            ("neck_pain", 0.6),
            ("fatigue", 0.3),
            ("dizziness", 0.2),
        ),
        excludes=("fever", "vomiting"),
        red_flag_symptoms=("severe_headache", "confusion", "vision_changes"),
        prevalence=0.20,
        typical_duration="30 minutes to several days",
    ),
    ConditionDefinition(
        id="meningitis",
        name="Meningitis",
        description="Infection of the membranes around the brain - LIFE THREATENING",
        category=ConditionCategory.NEUROLOGICAL,
        urgency=ConditionUrgency.EMERGENCY,
        signature=_sig(
            ("stiff_neck", 1.0),
            ("fever", 0.9),
            ("headache", 0.8),
            ("light_sensitivity", 0.6),
            ("confusion", 0.5),
            ("rash", 0.4),
            ("nausea", 0.3),
            ("vomiting", 0.3),
        ),
        acute=True,
        red_flag_symptoms=("seizure", "confusion", "rash"),
        risk_modifiers=(
            RiskModifier("Young children are at higher risk", 0.05, max_age=4),
            RiskModifier("Adolescents and young adults are at higher risk", 0.04, min_age=15, max_age=24),
        ),
        prevalence=0.001,
        typical_onset="sudden",
        typical_duration="progressive over hours",
    ),
    ConditionDefinition(
        id="stroke",
        name="Stroke",
        description="Interrupted blood flow to the brain - LIFE THREATENING",
        category=ConditionCategory.NEUROLOGICAL,
        urgency=ConditionUrgency.EMERGENCY,
        signature=_sig(
            ("facial_drooping", 1.0),
            ("sudden_weakness", 1.0),
            ("speech_difficulty", 0.9),
            ("numbness", 0.6),
            ("confusion", 0.5),
            ("vision_changes", 0.4),
            ("severe_headache", 0.4),
            ("dizziness", 0.3),
        ),
        acute=True,
        red_flag_symptoms=("seizure", "fainting"),
        risk_modifiers=(
            RiskModifier("Age 60 or older raises stroke risk", 0.08, min_age=60),
            RiskModifier(
                "Hypertension, diabetes or atrial fibrillation raises stroke risk",
                0.08,
                history_terms=_HYPERTENSION_TERMS + _DIABETES_TERMS + ("atrial fibrillation", "stroke"),
            ),
        ),
        prevalence=0.003,
        typical_onset="sudden",
        typical_duration="persistent",
    ),
    # =========================================================================
    # CARDIAC / METABOLIC
    # =========================================================================
    ConditionDefinition(
        id="heart_attack",
        name="Heart Attack",
        description="Blocked blood flow to the heart - LIFE THREATENING",
        category=ConditionCategory.CARDIAC,
        urgency=ConditionUrgency.EMERGENCY,
        signature=_sig(
            ("chest_pain", 1.0),
            ("shortness_of_breath", 0.7),
            ("arm_pain", 0.6),
            ("sweating", 0.6),
            ("jaw_pain", 0.5),
            ("nausea", 0.3),
            ("dizziness", 0.3),
        ),
        acute=True,
        red_flag_symptoms=("fainting", "confusion", "bluish_lips"),
        risk_modifiers=(
            RiskModifier("Men over 45 are at higher cardiac risk", 0.08, min_age=45, gender=Gender.MALE),
            RiskModifier("Women over 55 are at higher cardiac risk", 0.06, min_age=55, gender=Gender.FEMALE),
            RiskModifier(
                "Hypertension, diabetes or heart disease raises cardiac risk",
                0.08,
                history_terms=_HYPERTENSION_TERMS + _DIABETES_TERMS + _HEART_TERMS,
            ),
            RiskModifier("Children rarely have heart attacks", -0.10, max_age=17),
        ),
        prevalence=0.005,
        typical_onset="sudden",
        typical_duration="persistent",
    ),
    ConditionDefinition(
        id="hypertension",
        name="High Blood Pressure",
        description="Elevated blood pressure causing symptoms",
        category=ConditionCategory.CARDIAC,
        urgency=ConditionUrgency.SOON,
        signature=_sig(
            ("headache", 0.7),
            ("dizziness", 0.7),
            ("vision_changes", 0.6),
            ("chest_pain", 0.4),
            ("shortness_of_breath", 0.4),
            ("palpitations", 0.4),
            ("nosebleed", 0.4),
        ),
        red_flag_symptoms=("severe_headache", "confusion", "speech_difficulty"),
        risk_modifiers=(
            RiskModifier("Blood pressure problems become more common after 60", 0.08, min_age=60),
            RiskModifier("Known history of hypertension", 0.12, history_terms=_HYPERTENSION_TERMS),
            RiskModifier("Diabetes or kidney disease raises blood pressure risk", 0.05, history_terms=_DIABETES_TERMS + ("kidney",)),
        ),
        prevalence=0.10,
        typical_duration="chronic",
    ),
    ConditionDefinition(
        id="diabetes",
        name="Uncontrolled Blood Sugar (Diabetes)",
        description="High blood sugar from diabetes that is new or poorly controlled",
        category=ConditionCategory.METABOLIC,
        urgency=ConditionUrgency.SOON,
        signature=_sig(
            ("excessive_thirst", 1.0),
            ("frequent_urination", 0.9),
            ("weight_loss", 0.6),
            ("fatigue", 0.5),
            ("vision_changes", 0.5),
            ("slow_healing", 0.5),
        ),
        red_flag_symptoms=("confusion", "vomiting", "rapid_breathing"),
        risk_modifiers=(
            RiskModifier("Type 2 diabetes becomes more common after 45", 0.05, min_age=45),
            RiskModifier("Known diabetes or prediabetes", 0.10, history_terms=_DIABETES_TERMS + ("obesity",)),
        ),
        prevalence=0.08,
        typical_duration="weeks to months",
    ),
    # =========================================================================
    # ALLERGIC
    # =========================================================================
    ConditionDefinition(
        id="allergic_reaction",
        name="Allergic Reaction",
        description="Immune reaction to a food, drug, insect sting or other trigger",
        category=ConditionCategory.ALLERGIC,
        urgency=ConditionUrgency.SOON,
        signature=_sig(
            ("hives", 1.0),
            ("itching", 0.8),
            ("rash", 0.6),
            ("facial_swelling", 0.6),
            ("sneezing", 0.3),
            ("runny_nose", 0.2),
        ),
        acute=True,
        red_flag_symptoms=("throat_swelling", "shortness_of_breath", "wheezing"),
        risk_modifiers=(
            RiskModifier("History of allergies or asthma", 0.06, history_terms=_ALLERGY_TERMS + ("asthma",)),
        ),
        prevalence=0.05,
        typical_onset="sudden",
        typical_duration="hours to days",
    ),
)

CONDITIONS: Mapping[str, ConditionDefinition] = MappingProxyType({c.id: c for c in _CONDITIONS})


# ============================================================================
# Red-Flag Rules
# ============================================================================

# "{emergency_number}" is filled in by the detector from the engine config
RED_FLAG_RULES: tuple[RedFlagRule, ...] = (
    RedFlagRule(
        id="cardiac_emergency",
        title="Possible Heart Attack",
        description="Sudden chest pain with breathlessness may be a cardiac event",
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number} immediately and chew an aspirin if not allergic",
        call_emergency=True,
        groups=(("chest_pain",), ("shortness_of_breath",)),
        require_sudden_onset=True,
    ),
    RedFlagRule(
        id="cardiac_warning",
        title="Chest Pain With Warning Signs",
        description="Chest pain together with breathlessness, sweating or pain spreading to the arm or jaw",
        severity=AlertSeverity.DANGER,
        action="Get a medical evaluation today; call {emergency_number} if the pain worsens",
        groups=(("chest_pain",), ("shortness_of_breath", "arm_pain", "jaw_pain", "sweating")),
    ),
    RedFlagRule(
        id="stroke_signs",
        title="Possible Stroke",
        description="Two or more FAST signs (face drooping, arm weakness, speech difficulty)",
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number} immediately and note the time symptoms started",
        call_emergency=True,
        groups=(("facial_drooping",), ("sudden_weakness",), ("speech_difficulty",)),
        min_groups=2,
    ),
    RedFlagRule(
        id="stroke_sudden_sign",
        title="Sudden Neurological Deficit",
        description="A FAST sign that started suddenly",
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number} immediately and note the time symptoms started",
        call_emergency=True,
        groups=(("facial_drooping", "sudden_weakness", "speech_difficulty"),),
        require_sudden_onset=True,
    ),
    RedFlagRule(
        id="meningitis_triad",
        title="Possible Meningitis",
        description="Fever, headache and stiff neck together",
        severity=AlertSeverity.CRITICAL,
        action="Seek emergency care immediately",
        call_emergency=True,
        groups=(("stiff_neck",), ("fever",), ("headache",)),
    ),
    RedFlagRule(
        id="respiratory_failure",
        title="Breathing Emergency",
        description="Bluish lips with breathing difficulty suggest too little oxygen",
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number} immediately",
        call_emergency=True,
        groups=(("bluish_lips",), ("shortness_of_breath", "wheezing", "rapid_breathing")),
    ),
    RedFlagRule(
        id="airway_swelling",
        title="Airway Swelling",
        description="Throat swelling can block the airway",
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number} immediately; use an adrenaline auto-injector if prescribed",
        call_emergency=True,
        groups=(("throat_swelling",),),
    ),
    RedFlagRule(
        id="anaphylaxis",
        title="Possible Severe Allergic Reaction",
        description="Skin reaction together with breathing difficulty",
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number} immediately; use an adrenaline auto-injector if prescribed",
        call_emergency=True,
        groups=(("hives", "facial_swelling", "itching", "rash"), ("shortness_of_breath", "wheezing")),
    ),
    RedFlagRule(
        id="seizure",
        title="Seizure",
        description="A seizure needs emergency assessment",
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number}; keep the person on their side and do not put anything in their mouth",
        call_emergency=True,
        groups=(("seizure",),),
    ),
    RedFlagRule(
        id="suicidal_ideation",
        title="Thoughts of Self-Harm",
        description="Thoughts of suicide or self-harm need immediate support",
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number} or the Tele-MANAS helpline 14416 now and stay with someone you trust",
        call_emergency=True,
        groups=(("suicidal_thoughts",),),
    ),
    RedFlagRule(
        id="severe_breathlessness",
        title="Severe Breathlessness",
        description="Breathing difficulty rated as severe",
        severity=AlertSeverity.DANGER,
        action="Get urgent medical care; call {emergency_number} if it worsens",
        groups=(("shortness_of_breath",),),
        min_severity=5,
    ),
    RedFlagRule(
        id="fainting",
        title="Loss of Consciousness",
        description="Fainting or blacking out needs medical evaluation",
        severity=AlertSeverity.DANGER,
        action="See a doctor today; call {emergency_number} if it happens again or does not resolve quickly",
        groups=(("fainting",),),
    ),
    RedFlagRule(
        id="altered_mental_status",
        title="Confusion",
        description="New confusion can signal a serious infection, stroke or low oxygen",
        severity=AlertSeverity.DANGER,
        action="Get urgent medical care today",
        groups=(("confusion",),),
    ),
    RedFlagRule(
        id="gi_bleeding",
        title="Possible Internal Bleeding",
        description="Blood in stool or vomit",
        severity=AlertSeverity.DANGER,
        action="Get urgent medical care today",
        groups=(("blood_in_stool", "vomiting_blood"),),
    ),
    RedFlagRule(
        id="acute_abdomen",
        title="Severe Abdominal Pain",
        description="Severe or rigid abdominal pain may need surgery",
        severity=AlertSeverity.DANGER,
        action="Go to a hospital today; do not eat or drink until assessed",
        groups=(("severe_abdominal_pain", "rigid_abdomen"),),
    ),
    RedFlagRule(
        id="dengue_warning",
        title="Fever With Bleeding",
        description="Fever with unusual bleeding is a dengue warning sign",
        severity=AlertSeverity.DANGER,
        action="Get a blood test and medical evaluation today",
        groups=(("bleeding",), ("fever",)),
    ),
    RedFlagRule(
        id="infant_fever",
        title="Fever in an Infant",
        description="Any fever in a baby under one year needs prompt assessment",
        severity=AlertSeverity.DANGER,
        action="Take the baby to a doctor today",
        groups=(("fever",),),
        max_age=0,
    ),
    RedFlagRule(
        id="severe_symptoms",
        title="Severe Symptoms Detected",
        description="One or more symptoms were rated as severe",
        severity=AlertSeverity.DANGER,
        action="Seek medical attention promptly",
        min_severity=5,
    ),
    RedFlagRule(
        id="high_fever",
        title="Very High Fever",
        description="A very high fever needs monitoring and treatment",
        severity=AlertSeverity.WARNING,
        action="Take paracetamol, sponge with lukewarm water and see a doctor if it lasts beyond a day",
        groups=(("high_fever",),),
    ),
    RedFlagRule(
        id="persistent_worsening",
        title="Persistent Worsening Symptom",
        description="A symptom that has worsened for two weeks or more",
        severity=AlertSeverity.WARNING,
        action="Book a doctor visit in the next few days",
        require_worsening=True,
        min_duration_hours=14 * 24,
    ),
)

VITAL_RULES: tuple[VitalRule, ...] = (
    VitalRule(
        id="hypoxia",
        title="Dangerously Low Oxygen",
        description="Oxygen saturation below 90%",
        vital="oxygen_saturation",
        below=90,
        severity=AlertSeverity.CRITICAL,
        action="Call {emergency_number} immediately",
        call_emergency=True,
    ),
    VitalRule(
        id="low_oxygen",
        title="Low Oxygen Level",
        description="Oxygen saturation below 94%",
        vital="oxygen_saturation",
        below=94,
        severity=AlertSeverity.DANGER,
        action="Get urgent medical care today",
    ),
    VitalRule(
        id="severe_tachycardia",
        title="Very Fast Heart Rate",
        description="Resting heart rate of 130 bpm or more",
        vital="heart_rate",
        at_or_above=130,
        severity=AlertSeverity.DANGER,
        action="Get urgent medical care today",
    ),
    VitalRule(
        id="bradycardia",
        title="Very Slow Heart Rate",
        description="Heart rate below 40 bpm",
        vital="heart_rate",
        below=40,
        severity=AlertSeverity.DANGER,
        action="Get urgent medical care today",
    ),
    VitalRule(
        id="hypertensive_crisis",
        title="Very High Blood Pressure",
        description="Systolic blood pressure of 180 mmHg or more",
        vital="systolic_bp",
        at_or_above=180,
        severity=AlertSeverity.DANGER,
        action="Rest, recheck in 5 minutes and get urgent medical care if it stays high",
    ),
    VitalRule(
        id="hypertensive_crisis_diastolic",
        title="Very High Diastolic Pressure",
        description="Diastolic blood pressure of 120 mmHg or more",
        vital="diastolic_bp",
        at_or_above=120,
        severity=AlertSeverity.DANGER,
        action="Rest, recheck in 5 minutes and get urgent medical care if it stays high",
    ),
    VitalRule(
        id="hypotension",
        title="Low Blood Pressure",
        description="Systolic blood pressure below 90 mmHg",
        vital="systolic_bp",
        below=90,
        severity=AlertSeverity.DANGER,
        action="Lie down with legs raised and get urgent medical care",
    ),
    VitalRule(
        id="hyperpyrexia",
        title="Dangerously High Temperature",
        description="Body temperature of 104°F (40°C) or more",
        vital="temperature",
        at_or_above=104,
        severity=AlertSeverity.DANGER,
        action="Cool the body and get urgent medical care",
    ),
    VitalRule(
        id="hypothermia",
        title="Low Body Temperature",
        description="Body temperature below 95°F (35°C)",
        vital="temperature",
        below=95,
        severity=AlertSeverity.DANGER,
        action="Warm the person gradually and get urgent medical care",
    ),
    VitalRule(
        id="tachypnea",
        title="Very Fast Breathing",
        description="Respiratory rate of 30 breaths per minute or more",
        vital="respiratory_rate",
        at_or_above=30,
        severity=AlertSeverity.DANGER,
        action="Get urgent medical care today",
    ),
)


# ============================================================================
# Follow-Up Question Templates
# ============================================================================

QUESTION_TEMPLATES: Mapping[str, QuestionTemplate] = MappingProxyType({
    "fever": QuestionTemplate("Have you measured a temperature above 100.4°F (38°C)?"),
    "high_fever": QuestionTemplate("Has your temperature gone above 102°F (39°C)?"),
    "chills": QuestionTemplate("Have you had shivering or chills?"),
    "body_aches": QuestionTemplate("Do you have aches in your muscles or whole body?"),
    "headache": QuestionTemplate(
        "What type of headache do you have?",
        QuestionType.SELECT,
        (("none", "No headache"), ("throbbing", "Throbbing/pulsating"), ("pressure", "Pressure/squeezing"), ("sharp", "Sharp/stabbing")),
    ),
    "light_sensitivity": QuestionTemplate("Does bright light bother you or make the pain worse?"),
    "stiff_neck": QuestionTemplate("Is your neck stiff or painful when you bend your head forward?"),
    "neck_pain": QuestionTemplate("How much tension or pain do you feel in your neck and shoulders?", QuestionType.SCALE),
    "runny_nose": QuestionTemplate("Do you have a runny or blocked nose?"),
    "sneezing": QuestionTemplate("Have you been sneezing?"),
    "loss_of_taste": QuestionTemplate("Have you lost your sense of taste?"),
    "loss_of_smell": QuestionTemplate("Have you lost your sense of smell?"),
    "shortness_of_breath": QuestionTemplate("Do you feel short of breath, at rest or on light activity?"),
    "wheezing": QuestionTemplate("Do you hear a whistling sound when you breathe out?"),
    "chest_pain": QuestionTemplate("Do you have any chest pain or pressure?"),
    "arm_pain": QuestionTemplate("Does any pain spread to your arm, neck or jaw?"),
    "sweating": QuestionTemplate("Have you had heavy sweating or a cold sweat?"),
    "diarrhea": QuestionTemplate("Have you had loose or watery stools?"),
    "vomiting": QuestionTemplate("Have you vomited?"),
    "abdominal_pain": QuestionTemplate(
        "Where is the abdominal pain located?",
        QuestionType.SELECT,
        (("none", "No abdominal pain"), ("upper_center", "Upper center"), ("lower_right", "Lower right"), ("lower_left", "Lower left"), ("all_over", "All over")),
    ),
    "painful_urination": QuestionTemplate("Do you feel burning or pain when passing urine?"),
    "frequent_urination": QuestionTemplate("Are you passing urine more often than usual?"),
    "excessive_thirst": QuestionTemplate("Have you been unusually thirsty?"),
    "rash": QuestionTemplate("Have you noticed any rash or spots on your skin?"),
    "hives": QuestionTemplate("Do you have raised, itchy welts on your skin?"),
    "eye_pain": QuestionTemplate("Do you have pain behind your eyes?"),
    "joint_pain": QuestionTemplate("Do your joints ache?"),
    "dizziness": QuestionTemplate("Do you feel dizzy or lightheaded?"),
    "vision_changes": QuestionTemplate("Have you noticed blurred or double vision?"),
})


# ============================================================================
# Validation
# ============================================================================


def validate_knowledge_base() -> None:
    """Check the static tables for internal consistency.

    Raises:
        KnowledgeBaseError: If any entry is malformed.
    """
    vocabulary = set(SYMPTOM_LABELS)

    for key, implied in SYMPTOM_IMPLIES.items():
        for k in (key,) + implied:
            if k not in vocabulary:
                raise KnowledgeBaseError(f"Implied symptom '{k}' is not in the vocabulary")

    for phrase, key in SYMPTOM_SYNONYMS.items():
        if key not in vocabulary:
            raise KnowledgeBaseError(f"Synonym '{phrase}' maps to unknown symptom '{key}'")
        if phrase != phrase.strip().lower():
            raise KnowledgeBaseError(f"Synonym '{phrase}' must be lower-case and trimmed")

    seen_ids: set[str] = set()
    for condition in _CONDITIONS:
        if condition.id in seen_ids:
            raise KnowledgeBaseError(f"Duplicate condition id '{condition.id}'")
        seen_ids.add(condition.id)

        if not condition.signature:
            raise KnowledgeBaseError(f"Condition '{condition.id}' has an empty signature")
        signature_keys = [s.key for s in condition.signature]
        if len(signature_keys) != len(set(signature_keys)):
            raise KnowledgeBaseError(f"Condition '{condition.id}' repeats a signature symptom")
        for s in condition.signature:
            if s.key not in vocabulary:
                raise KnowledgeBaseError(f"Condition '{condition.id}' uses unknown symptom '{s.key}'")
            if not 0.0 < s.weight <= 1.0:
                raise KnowledgeBaseError(f"Condition '{condition.id}' has weight {s.weight} for '{s.key}'")

        for key in condition.excludes + condition.red_flag_symptoms:
            if key not in vocabulary:
                raise KnowledgeBaseError(f"Condition '{condition.id}' references unknown symptom '{key}'")
        implied_signature = {k for key in signature_keys for k in expand_key(key)}
        if set(condition.excludes) & implied_signature:
            raise KnowledgeBaseError(f"Condition '{condition.id}' excludes its own signature symptom")

        for modifier in condition.risk_modifiers:
            if not -0.2 <= modifier.adjustment <= 0.2:
                raise KnowledgeBaseError(f"Condition '{condition.id}' has an out-of-range risk modifier")
            if (
                modifier.min_age is None
                and modifier.max_age is None
                and modifier.gender is None
                and not modifier.history_terms
            ):
                raise KnowledgeBaseError(f"Condition '{condition.id}' has a modifier without criteria")

        if not 0.0 < condition.prevalence < 1.0:
            raise KnowledgeBaseError(f"Condition '{condition.id}' has prevalence {condition.prevalence}")

    rule_ids: set[str] = set()
    for rule in RED_FLAG_RULES:
        if rule.id in rule_ids:
            raise KnowledgeBaseError(f"Duplicate red-flag rule id '{rule.id}'")
        rule_ids.add(rule.id)
        for group in rule.groups:
            if not group:
                raise KnowledgeBaseError(f"Red-flag rule '{rule.id}' has an empty group")
            for key in group:
                if key not in vocabulary:
                    raise KnowledgeBaseError(f"Red-flag rule '{rule.id}' uses unknown symptom '{key}'")
        if rule.min_groups is not None and not 1 <= rule.min_groups <= len(rule.groups):
            raise KnowledgeBaseError(f"Red-flag rule '{rule.id}' has an invalid min_groups")

    for vital_rule in VITAL_RULES:
        if vital_rule.id in rule_ids:
            raise KnowledgeBaseError(f"Duplicate red-flag rule id '{vital_rule.id}'")
        rule_ids.add(vital_rule.id)
        if (vital_rule.below is None) == (vital_rule.at_or_above is None):
            raise KnowledgeBaseError(f"Vital rule '{vital_rule.id}' must set exactly one threshold")

    for key in QUESTION_TEMPLATES:
        if key not in vocabulary:
            raise KnowledgeBaseError(f"Question template for unknown symptom '{key}'")


def get_knowledge_base_stats() -> dict:
    """Summary counts of the knowledge base."""
    by_category: dict[str, int] = {}
    by_urgency: dict[str, int] = {}
    for condition in _CONDITIONS:
        by_category[condition.category.value] = by_category.get(condition.category.value, 0) + 1
        by_urgency[condition.urgency.value] = by_urgency.get(condition.urgency.value, 0) + 1

    return {
        "total_conditions": len(_CONDITIONS),
        "total_symptoms": len(SYMPTOM_LABELS),
        "total_synonyms": len(SYMPTOM_SYNONYMS),
        "total_red_flag_rules": len(RED_FLAG_RULES) + len(VITAL_RULES),
        "by_category": by_category,
        "by_urgency": by_urgency,
    }


validate_knowledge_base()

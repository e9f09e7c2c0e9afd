"""Symptom Normalizer.

Turns raw symptom reports (dataclasses or plain mappings from the API layer)
into canonical, default-filled ``NormalizedSymptom`` records:

- Names are lower-cased, trimmed and mapped to knowledge-base keys through
  the synonym table (English, Hindi and romanised Hindi)
- When no exact synonym exists, the longest known phrase contained in the
  name is used ("sharp chest pain since morning" -> chest_pain)
- Unknown names are kept under a literal key and flagged as unrecognized
- Duplicates collapse onto one key, keeping the more severe report

Malformed fields fall back to defaults; nothing here raises.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, TypeVar

from telehealth.schemas.base import DurationUnit, Frequency, Gender, Onset, Progression
from telehealth.services.clinical_knowledge import SYMPTOM_LABELS, SYMPTOM_SYNONYMS
from telehealth.services.clinical_types import (
    NormalizedSymptom,
    PatientContext,
    SymptomDuration,
    TemporalSymptom,
    Vitals,
)

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = 3
MIN_SEVERITY = 1
MAX_SEVERITY = 5
MAX_AGE = 130

_E = TypeVar("_E", bound=Enum)


def _build_phrase_index() -> dict[str, str]:
    """Map every known phrase (synonym, label or spaced key) to its key."""
    index: dict[str, str] = {}
    for key, label in SYMPTOM_LABELS.items():
        index[key.replace("_", " ")] = key
        index[label] = key
    index.update(SYMPTOM_SYNONYMS)
    return index


_PHRASE_INDEX: dict[str, str] = _build_phrase_index()

# Token tuples sorted longest first so the first containment hit wins
_PHRASE_TOKENS: list[tuple[tuple[str, ...], str]] = sorted(
    ((tuple(phrase.split()), key) for phrase, key in _PHRASE_INDEX.items()),
    key=lambda item: (-len(item[0]), -sum(len(t) for t in item[0]), " ".join(item[0])),
)


def clean_name(name: str) -> str:
    """Lower-case a symptom name and collapse separators to single spaces."""
    text = name.lower().replace("_", " ").replace("-", " ")
    return " ".join(text.split())


def canonicalize(name: str) -> tuple[str, bool]:
    """Resolve a free-text symptom name to ``(key, recognized)``.

    Unknown names come back as an underscore slug with ``recognized=False``.
    """
    phrase = clean_name(name)
    if phrase in _PHRASE_INDEX:
        return _PHRASE_INDEX[phrase], True

    tokens = tuple(phrase.split())
    for phrase_tokens, key in _PHRASE_TOKENS:
        if _contains(tokens, phrase_tokens):
            return key, True

    return "_".join(tokens), False


def _contains(tokens: tuple[str, ...], phrase: tuple[str, ...]) -> bool:
    size = len(phrase)
    if size == 0 or size > len(tokens):
        return False
    return any(tokens[i : i + size] == phrase for i in range(len(tokens) - size + 1))


# ============================================================================
# Field coercion
# ============================================================================


def _get(raw: Any, *names: str) -> Any:
    """Read the first present field from a mapping or an object."""
    for name in names:
        if isinstance(raw, Mapping):
            if name in raw and raw[name] is not None:
                return raw[name]
        else:
            value = getattr(raw, name, None)
            if value is not None:
                return value
    return None


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _coerce_enum(value: Any, enum_cls: type[_E], default: _E | None) -> _E | None:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return default
    return default


def coerce_severity(value: Any) -> int:
    """Clamp a reported severity into 1..5; unusable values become 3."""
    number = _to_float(value)
    if number is None:
        return DEFAULT_SEVERITY
    return max(MIN_SEVERITY, min(MAX_SEVERITY, int(math.floor(number + 0.5))))


def coerce_duration(value: Any) -> SymptomDuration:
    """Build a duration; anything without a positive value becomes 1 day."""
    if value is None:
        return SymptomDuration()

    if isinstance(value, (str, int, float)):
        amount = _to_float(value)
        unit = DurationUnit.DAYS
    else:
        amount = _to_float(_get(value, "value"))
        raw_unit = _get(value, "unit")
        unit = _coerce_enum(raw_unit, DurationUnit, None) if raw_unit is not None else DurationUnit.DAYS

    if amount is None or amount <= 0 or unit is None:
        return SymptomDuration()
    return SymptomDuration(value=amount, unit=unit)


def coerce_symptom(raw: Any, index: int) -> TemporalSymptom | None:
    """Coerce one raw report; returns None for entries that are not symptoms."""
    if raw is None or isinstance(raw, (str, bytes, int, float)):
        return None

    name = _get(raw, "name", "symptom", "symptomName", "symptom_name")
    if not isinstance(name, str) or not name.strip():
        return None

    raw_id = _get(raw, "id")
    symptom_id = str(raw_id).strip() if raw_id is not None and str(raw_id).strip() else f"symptom_{index}"

    location = _get(raw, "location")

    return TemporalSymptom(
        id=symptom_id,
        name=name.strip(),
        severity=coerce_severity(_get(raw, "severity")),
        duration=coerce_duration(_get(raw, "duration")),
        progression=_coerce_enum(_get(raw, "progression"), Progression, Progression.STABLE),
        onset=_coerce_enum(_get(raw, "onset"), Onset, Onset.GRADUAL),
        frequency=_coerce_enum(_get(raw, "frequency"), Frequency, Frequency.CONSTANT),
        location=(location.strip() or None) if isinstance(location, str) else None,
    )


# ============================================================================
# Public API
# ============================================================================


def normalize(raw_symptoms: Iterable[Any] | None) -> list[NormalizedSymptom]:
    """Canonicalize, default-fill and deduplicate raw symptom reports.

    Args:
        raw_symptoms: TemporalSymptom objects or mappings (snake_case or
            camelCase keys). Entries that are not symptoms are skipped.

    Returns:
        Normalized symptoms in first-seen order, one per canonical key.
    """
    if raw_symptoms is None or isinstance(raw_symptoms, (str, bytes, Mapping)):
        return []

    by_key: dict[str, NormalizedSymptom] = {}
    skipped = 0

    for index, raw in enumerate(raw_symptoms):
        symptom = coerce_symptom(raw, index)
        if symptom is None:
            skipped += 1
            continue

        key, recognized = canonicalize(symptom.name)
        normalized = NormalizedSymptom(key=key, recognized=recognized, symptom=symptom)

        existing = by_key.get(key)
        if existing is None:
            by_key[key] = normalized
        elif normalized.severity > existing.severity:
            # Replace in place so the first-seen position is kept
            by_key[key] = normalized

    result = list(by_key.values())
    unrecognized = sum(1 for n in result if not n.recognized)
    logger.debug(
        f"Normalized {len(result)} symptoms ({unrecognized} unrecognized, {skipped} skipped)"
    )
    return result


def _coerce_terms(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable) or isinstance(value, Mapping):
        return ()

    terms: list[str] = []
    for item in value:
        if isinstance(item, str):
            term = " ".join(item.lower().split())
            if term and term not in terms:
                terms.append(term)
    return tuple(terms)


def _coerce_vital(value: Any, low: float, high: float) -> float | None:
    number = _to_float(value)
    if number is None or not low <= number <= high:
        return None
    return number


def coerce_vitals(raw: Any) -> Vitals | None:
    """Coerce vital signs; implausible readings are dropped."""
    if raw is None or isinstance(raw, (str, bytes, int, float)):
        return None
    if isinstance(raw, Vitals):
        raw = {name: getattr(raw, name) for name in Vitals.__dataclass_fields__}

    blood_pressure = _get(raw, "blood_pressure", "bloodPressure")
    systolic = _get(raw, "systolic_bp", "systolicBP", "systolic")
    diastolic = _get(raw, "diastolic_bp", "diastolicBP", "diastolic")
    if blood_pressure is not None:
        systolic = systolic if systolic is not None else _get(blood_pressure, "systolic")
        diastolic = diastolic if diastolic is not None else _get(blood_pressure, "diastolic")

    vitals = Vitals(
        heart_rate=_coerce_vital(_get(raw, "heart_rate", "heartRate"), 1, 300),
        systolic_bp=_coerce_vital(systolic, 30, 300),
        diastolic_bp=_coerce_vital(diastolic, 10, 200),
        temperature=_coerce_vital(_get(raw, "temperature"), 80, 115),
        oxygen_saturation=_coerce_vital(_get(raw, "oxygen_saturation", "oxygenSaturation", "spo2"), 1, 100),
        respiratory_rate=_coerce_vital(_get(raw, "respiratory_rate", "respiratoryRate"), 1, 100),
    )
    if vitals == Vitals():
        return None
    return vitals


def normalize_context(raw: Any) -> PatientContext | None:
    """Coerce an optional patient context; invalid fields are dropped."""
    if raw is None or isinstance(raw, (str, bytes, int, float)):
        return None

    age_value = _to_float(_get(raw, "age"))
    age = int(age_value) if age_value is not None and 0 <= age_value <= MAX_AGE else None

    return PatientContext(
        age=age,
        gender=_coerce_enum(_get(raw, "gender"), Gender, None),
        medical_history=_coerce_terms(_get(raw, "medical_history", "medicalHistory")),
        medications=_coerce_terms(_get(raw, "medications")),
        vitals=coerce_vitals(_get(raw, "vitals")),
    )

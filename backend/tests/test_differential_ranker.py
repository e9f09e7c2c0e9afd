"""Tests for the differential ranker."""

from telehealth.schemas.base import ConditionUrgency
from telehealth.services.clinical_types import ConditionScore
from telehealth.services.condition_scorer import score
from telehealth.services.differential_ranker import (
    MAX_CONDITIONS,
    escalate,
    rank,
    to_confidence,
)
from telehealth.services.symptom_normalizer import normalize


def _score(condition_id: str, raw: float, matched: tuple[str, ...]) -> ConditionScore:
    return ConditionScore(
        condition_id=condition_id,
        raw_score=raw,
        coverage=raw,
        severity_factor=1.0,
        temporal_adjustment=0.0,
        demographic_adjustment=0.0,
        exclusion_penalty=0.0,
        ceiling_applied=False,
        matched_keys=matched,
    )


def _ranked(*symptoms: dict) -> list:
    normalized = normalize(list(symptoms))
    return rank(score(normalized), normalized)


class TestConfidence:
    """Tests for raw score to confidence conversion."""

    def test_conversion(self) -> None:
        """Test raw scores become integer percentages."""
        assert to_confidence(0.0) == 0
        assert to_confidence(0.5) == 50
        assert to_confidence(0.123) == 12

    def test_capped_below_certainty(self) -> None:
        """Test confidence never reaches 100."""
        assert to_confidence(1.0) == 95
        assert to_confidence(0.97) == 95

    def test_raw_score_gain_visible_only_below_cap(self) -> None:
        """Test a higher raw score raises confidence below the cap and saturates at it."""
        assert to_confidence(0.56 + 0.20) > to_confidence(0.56)
        assert to_confidence(0.80 + 0.20) == to_confidence(0.96) == 95


class TestEscalate:
    """Tests for urgency escalation."""

    def test_one_step_up(self) -> None:
        """Test escalation raises the tier by one."""
        assert escalate(ConditionUrgency.ROUTINE) == ConditionUrgency.SOON
        assert escalate(ConditionUrgency.URGENT) == ConditionUrgency.EMERGENCY

    def test_saturates(self) -> None:
        """Test emergency cannot be escalated further."""
        assert escalate(ConditionUrgency.EMERGENCY) == ConditionUrgency.EMERGENCY


class TestRankOrdering:
    """Tests for ordering and truncation."""

    def test_empty_scores(self) -> None:
        """Test no scores gives no conditions."""
        assert rank({}, []) == []

    def test_sorted_by_confidence(self) -> None:
        """Test higher confidence ranks first."""
        ranked = _ranked({"name": "headache"}, {"name": "nausea"})

        assert [c.id for c in ranked] == [
            "tension_headache",
            "migraine",
            "food_poisoning",
            "meningitis",
            "malaria",
        ]
        assert [c.confidence for c in ranked] == [45, 44, 26, 23, 20]

    def test_tie_broken_by_matching_symptom_count(self) -> None:
        """Test equal confidence goes to the condition with more matches."""
        normalized = normalize([{"name": "headache"}, {"name": "nausea"}])
        ranked = rank(
            {
                "gastroenteritis": _score("gastroenteritis", 0.2, ("nausea",)),
                "malaria": _score("malaria", 0.2, ("headache", "nausea")),
            },
            normalized,
        )
        assert [c.id for c in ranked] == ["malaria", "gastroenteritis"]

    def test_tie_broken_by_urgency(self) -> None:
        """Test exact ties go to the more urgent condition."""
        normalized = normalize([{"name": "nausea"}])
        ranked = rank(
            {
                "food_poisoning": _score("food_poisoning", 0.3, ("nausea",)),
                "heart_attack": _score("heart_attack", 0.3, ("nausea",)),
            },
            normalized,
        )
        assert [c.id for c in ranked] == ["heart_attack", "food_poisoning"]

    def test_truncated_to_max(self) -> None:
        """Test the output never exceeds the top-N constant."""
        ranked = _ranked(
            {"name": "fever"},
            {"name": "headache"},
            {"name": "fatigue"},
            {"name": "nausea"},
            {"name": "body aches"},
            {"name": "cough"},
        )
        assert len(ranked) == MAX_CONDITIONS

    def test_custom_max(self) -> None:
        """Test max_conditions limits the output."""
        normalized = normalize([{"name": "headache"}, {"name": "nausea"}])
        assert len(rank(score(normalized), normalized, max_conditions=2)) == 2

    def test_single_scored_condition_kept(self) -> None:
        """Test one condition above threshold is never dropped."""
        normalized = normalize([{"name": "painful urination"}])
        ranked = rank(score(normalized), normalized)
        assert [c.id for c in ranked] == ["urinary_tract_infection"]


class TestRankExplanations:
    """Tests for the explanation fields of ranked conditions."""

    def test_matching_and_missing_symptoms(self) -> None:
        """Test matching and missing symptoms partition the signature."""
        top = _ranked({"name": "headache"}, {"name": "nausea"})[1]

        assert top.id == "migraine"
        assert top.matching_symptoms == ("headache", "nausea")
        assert top.missing_symptoms == ("light_sensitivity", "sound_sensitivity", "vision_changes", "vomiting")

    def test_reasoning_names_inputs(self) -> None:
        """Test reasoning names the specific matched symptoms."""
        migraine = _ranked({"name": "headache"}, {"name": "nausea"})[1]

        assert migraine.reasoning[0].startswith("Matches 2 of 6 expected symptoms")
        assert "headache, nausea" in migraine.reasoning[0]
        assert "Key symptom present: headache" in migraine.reasoning

    def test_reasoning_mentions_missing_key_symptom(self) -> None:
        """Test a capped condition explains the missing key symptom."""
        ranked = _ranked({"name": "headache"}, {"name": "nausea"})
        meningitis = next(c for c in ranked if c.id == "meningitis")

        assert any(r.startswith("Key symptom not reported (stiff neck)") for r in meningitis.reasoning)

    def test_reasoning_mentions_unexplained_symptoms(self) -> None:
        """Test symptoms outside the signature are called out."""
        tension = _ranked({"name": "headache"}, {"name": "nausea"})[0]
        assert "Not explained by this condition: nausea" in tension.reasoning

    def test_reasoning_mentions_exclusions(self) -> None:
        """Test findings that argue against a condition appear in its reasoning."""
        ranked = _ranked({"name": "headache", "severity": 5}, {"name": "vomiting"})
        tension = next(c for c in ranked if c.id == "tension_headache")
        assert "Argues against: vomiting" in tension.reasoning

    def test_differential_factors_against_runner_up(self) -> None:
        """Test the top condition is contrasted with the second."""
        top = _ranked({"name": "headache"}, {"name": "nausea"})[0]

        assert top.differential_factors[:4] == (
            "Sensitivity to light would favour Migraine over Tension Headache",
            "Nausea (reported) favours Migraine over Tension Headache",
            "Neck pain would favour Tension Headache over Migraine",
            "Sensitivity to sound would favour Migraine over Tension Headache",
        )
        assert top.differential_factors[-2:] == (
            "Typical onset: gradual",
            "Typical duration: 30 minutes to several days",
        )

    def test_red_flags_empty_when_none_reported(self) -> None:
        """Test danger signs that were not reported are not listed."""
        ranked = _ranked({"name": "headache"}, {"name": "nausea"})

        assert ranked[0].id == "tension_headache"
        assert all(c.red_flags == () for c in ranked)

    def test_red_flags_are_reported_labels(self) -> None:
        """Test only reported danger signs are listed, as readable labels."""
        ranked = _ranked({"name": "headache"}, {"name": "nausea"}, {"name": "confusion"})

        tension = next(c for c in ranked if c.id == "tension_headache")
        assert tension.red_flags == ("confusion",)

    def test_red_flag_symptom_escalates_urgency(self) -> None:
        """Test a present red-flag symptom raises the condition's urgency."""
        without = _ranked({"name": "headache"}, {"name": "nausea"})
        with_flag = _ranked({"name": "headache"}, {"name": "nausea"}, {"name": "confusion"})

        migraine_without = next(c for c in without if c.id == "migraine")
        migraine_with = next(c for c in with_flag if c.id == "migraine")
        assert migraine_without.urgency == ConditionUrgency.SOON
        assert migraine_with.urgency == ConditionUrgency.URGENT

    def test_id_does_not_affect_confidence(self) -> None:
        """Test symptom ids are not scoring-relevant."""
        first = _ranked({"id": "a", "name": "headache"}, {"id": "b", "name": "nausea"})
        second = _ranked({"id": "x", "name": "headache"}, {"id": "y", "name": "nausea"})

        assert [(c.id, c.confidence) for c in first] == [(c.id, c.confidence) for c in second]

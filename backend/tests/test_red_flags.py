"""Tests for the red-flag detector."""

from telehealth.schemas.base import AlertSeverity
from telehealth.services.clinical_knowledge import RED_FLAG_RULES, VITAL_RULES
from telehealth.services.red_flags import detect_red_flags, match_rule, match_vital_rule
from telehealth.services.symptom_normalizer import normalize, normalize_context


def _ids(alerts: list) -> list[str]:
    return [a.id for a in alerts]


def _rule(rule_id: str):
    return next(r for r in RED_FLAG_RULES if r.id == rule_id)


def _vital_rule(rule_id: str):
    return next(r for r in VITAL_RULES if r.id == rule_id)


class TestSymptomRules:
    """Tests for rules over symptom combinations."""

    def test_cardiac_emergency(self) -> None:
        """Test sudden chest pain with breathlessness is a critical alert."""
        alerts = detect_red_flags(normalize([
            {"name": "chest pain", "severity": 5, "onset": "sudden", "progression": "worsening"},
            {"name": "shortness of breath", "severity": 4, "onset": "sudden"},
        ]))

        cardiac = alerts[0]
        assert cardiac.id == "cardiac_emergency"
        assert cardiac.severity == AlertSeverity.CRITICAL
        assert cardiac.call_emergency is True
        assert cardiac.trigger_symptoms == ("chest_pain", "shortness_of_breath")
        assert "108" in cardiac.action

    def test_cardiac_emergency_needs_sudden_onset(self) -> None:
        """Test gradual chest pain with breathlessness is not the critical rule."""
        alerts = detect_red_flags(normalize([
            {"name": "chest pain"},
            {"name": "shortness of breath"},
        ]))

        assert "cardiac_emergency" not in _ids(alerts)
        assert "cardiac_warning" in _ids(alerts)

    def test_stroke_two_fast_signs(self) -> None:
        """Test any two FAST signs fire the stroke rule."""
        alerts = detect_red_flags(normalize([
            {"name": "facial droop"},
            {"name": "slurred speech"},
        ]))

        assert "stroke_signs" in _ids(alerts)
        assert "stroke_sudden_sign" not in _ids(alerts)

    def test_single_sudden_fast_sign(self) -> None:
        """Test one FAST sign with sudden onset is enough."""
        alerts = detect_red_flags(normalize([{"name": "slurred speech", "onset": "sudden"}]))

        assert _ids(alerts) == ["stroke_sudden_sign"]

    def test_meningitis_triad_with_implied_fever(self) -> None:
        """Test high fever satisfies the fever part of the triad."""
        alerts = detect_red_flags(normalize([
            {"name": "stiff neck"},
            {"name": "high fever"},
            {"name": "headache"},
        ]))

        meningitis = next(a for a in alerts if a.id == "meningitis_triad")
        assert meningitis.trigger_symptoms == ("stiff_neck", "high_fever", "headache")
        assert "high_fever" in _ids(alerts)

    def test_partial_combination_does_not_fire(self) -> None:
        """Test a combination rule needs all of its groups."""
        alerts = detect_red_flags(normalize([{"name": "stiff neck"}, {"name": "headache"}]))
        assert "meningitis_triad" not in _ids(alerts)

    def test_severe_symptom_even_if_unrecognized(self) -> None:
        """Test severity rules fire on symptoms the knowledge base does not know."""
        alerts = detect_red_flags(normalize([{"name": "strange feeling", "severity": 5}]))

        assert _ids(alerts) == ["severe_symptoms"]
        assert alerts[0].trigger_symptoms == ("strange_feeling",)

    def test_one_alert_per_rule(self) -> None:
        """Test several triggering symptoms still give one alert per rule."""
        alerts = detect_red_flags(normalize([
            {"name": "cough", "severity": 5},
            {"name": "back pain", "severity": 5},
        ]))

        assert _ids(alerts) == ["severe_symptoms"]
        assert alerts[0].trigger_symptoms == ("cough", "back_pain")

    def test_severe_breathlessness_threshold(self) -> None:
        """Test the breathlessness rule needs severity 5."""
        assert "severe_breathlessness" not in _ids(
            detect_red_flags(normalize([{"name": "breathlessness", "severity": 4}]))
        )
        assert "severe_breathlessness" in _ids(
            detect_red_flags(normalize([{"name": "breathlessness", "severity": 5}]))
        )

    def test_persistent_worsening_needs_duration(self) -> None:
        """Test the persistence rule needs two weeks of worsening."""
        recent = normalize([{"name": "cough", "progression": "worsening", "duration": {"value": 1, "unit": "weeks"}}])
        long = normalize([{"name": "cough", "progression": "worsening", "duration": {"value": 3, "unit": "weeks"}}])
        stable = normalize([{"name": "cough", "duration": {"value": 3, "unit": "weeks"}}])

        assert match_rule(_rule("persistent_worsening"), recent) == ()
        assert match_rule(_rule("persistent_worsening"), long) == ("cough",)
        assert match_rule(_rule("persistent_worsening"), stable) == ()

    def test_infant_fever_needs_age(self) -> None:
        """Test the infant rule only fires for a known age under one."""
        fever = normalize([{"name": "fever"}])

        assert match_rule(_rule("infant_fever"), fever) == ()
        assert match_rule(_rule("infant_fever"), fever, normalize_context({"age": 5})) == ()
        assert match_rule(_rule("infant_fever"), fever, normalize_context({"age": 0})) == ("fever",)

    def test_no_symptoms_no_alerts(self) -> None:
        """Test nothing fires on empty input."""
        assert detect_red_flags([]) == []


class TestVitalRules:
    """Tests for vital sign thresholds."""

    def test_no_vitals(self) -> None:
        """Test vital rules ignore missing readings."""
        assert match_vital_rule(_vital_rule("hypoxia"), None) is None
        assert match_vital_rule(_vital_rule("hypoxia"), normalize_context({"age": 40})) is None

    def test_low_oxygen_fires_both_levels(self) -> None:
        """Test a very low SpO2 fires the critical and the danger rule."""
        context = normalize_context({"vitals": {"oxygenSaturation": 85}})
        alerts = detect_red_flags([], context)

        assert _ids(alerts) == ["hypoxia", "low_oxygen"]
        assert alerts[0].call_emergency is True
        assert alerts[0].trigger_symptoms == ("oxygen_saturation=85",)

    def test_threshold_boundaries(self) -> None:
        """Test below is strict and at-or-above is inclusive."""
        assert match_vital_rule(_vital_rule("low_oxygen"), normalize_context({"vitals": {"spo2": 94}})) is None
        assert match_vital_rule(_vital_rule("hyperpyrexia"), normalize_context({"vitals": {"temperature": 104}})) == 104

    def test_blood_pressure(self) -> None:
        """Test nested blood pressure readings are checked."""
        context = normalize_context({"vitals": {"bloodPressure": {"systolic": 185, "diastolic": 125}}})
        ids = _ids(detect_red_flags([], context))

        assert "hypertensive_crisis" in ids
        assert "hypertensive_crisis_diastolic" in ids


class TestDetectRedFlags:
    """Tests for alert assembly."""

    def test_critical_alerts_first(self) -> None:
        """Test alerts are ordered most severe first."""
        alerts = detect_red_flags(normalize([
            {"name": "high fever"},
            {"name": "fainting"},
            {"name": "seizure"},
        ]))

        assert _ids(alerts) == ["seizure", "fainting", "high_fever"]

    def test_emergency_number_in_action(self) -> None:
        """Test the configured emergency number is quoted."""
        alerts = detect_red_flags(normalize([{"name": "seizure"}]), emergency_number="911")

        assert "911" in alerts[0].action
        assert "{emergency_number}" not in alerts[0].action

    def test_independent_of_condition_scores(self) -> None:
        """Test rules fire even when no condition matches."""
        alerts = detect_red_flags(normalize([{"name": "suicidal thoughts"}]))

        assert _ids(alerts) == ["suicidal_ideation"]
        assert alerts[0].call_emergency is True

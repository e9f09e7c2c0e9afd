"""Tests for clinical analytics."""

import pytest

from telehealth.schemas.base import OverallUrgency
from telehealth.services import analytics as analytics_module
from telehealth.services.analytics import (
    MAX_RESPONSE_SAMPLES,
    TRIMMED_RESPONSE_SAMPLES,
    ClinicalAnalytics,
    get_clinical_analytics,
    reset_clinical_analytics,
    track_assessments,
)
from telehealth.services.clinical_engine import analyze


class TestClinicalAnalytics:
    """Tests for the analytics recorder."""

    def setup_method(self) -> None:
        """Create a fresh recorder for each test."""
        self.analytics = ClinicalAnalytics()

    def test_empty_summary(self) -> None:
        """Test a new recorder reports zeros."""
        summary = self.analytics.summary()

        assert summary["total_requests"] == 0
        assert summary["avg_response_time_ms"] == 0.0
        assert summary["urgency_breakdown"] == {}
        assert summary["top_symptoms"] == []
        assert len(summary["hourly_traffic"]) == 24

    def test_record_assessment(self) -> None:
        """Test an analysis updates counts, urgency and symptoms."""
        assessment = analyze([{"name": "headache"}, {"name": "head pain"}, {"name": "nausea"}])
        self.analytics.record_assessment(assessment, 12.0)

        summary = self.analytics.summary()
        assert summary["total_requests"] == 1
        assert summary["clinical_analyses"] == 1
        assert summary["urgency_breakdown"] == {"schedule-visit": 1}
        assert summary["avg_response_time_ms"] == 12.0
        assert {"symptom": "headache", "count": 1} in summary["top_symptoms"]
        assert sum(summary["hourly_traffic"]) == 1

    def test_unrecognized_symptoms_not_counted(self) -> None:
        """Test free-text symptoms never appear in the statistics."""
        self.analytics.record_assessment(analyze([{"name": "purple toenails"}]))
        assert self.analytics.summary()["top_symptoms"] == []

    def test_emergency_counted(self) -> None:
        """Test emergencies are counted separately."""
        self.analytics.record_assessment(analyze([{"name": "seizure"}]))

        summary = self.analytics.summary()
        assert summary["emergency_alerts"] == 1
        assert summary["urgency_breakdown"] == {"emergency": 1}

    def test_record_cache_hit(self) -> None:
        """Test cache hits count as requests and analyses."""
        self.analytics.record_cache_hit(OverallUrgency.SELF_CARE, 1.0)

        summary = self.analytics.summary()
        assert summary["cache_hits"] == 1
        assert summary["clinical_analyses"] == 1
        assert summary["urgency_breakdown"] == {"self-care": 1}

    def test_record_error(self) -> None:
        """Test errors count as requests but not as analyses."""
        self.analytics.record_error()

        summary = self.analytics.summary()
        assert summary["errors"] == 1
        assert summary["total_requests"] == 1
        assert summary["clinical_analyses"] == 0

    def test_response_times_trimmed(self) -> None:
        """Test the response time buffer is trimmed once it grows too large."""
        for _ in range(MAX_RESPONSE_SAMPLES + 1):
            self.analytics.record_error(1.0)
        assert len(self.analytics._response_times_ms) == TRIMMED_RESPONSE_SAMPLES

    def test_top_symptoms_ordered(self) -> None:
        """Test the most frequent symptoms come first."""
        self.analytics.record_assessment(analyze([{"name": "cough"}]))
        self.analytics.record_assessment(analyze([{"name": "cough"}, {"name": "fever"}]))

        top = self.analytics.summary()["top_symptoms"]
        assert top[0] == {"symptom": "cough", "count": 2}
        assert top[1] == {"symptom": "fever", "count": 1}


class TestTrackAssessments:
    """Tests for the analyze wrapper."""

    def setup_method(self) -> None:
        """Create a fresh recorder for each test."""
        self.analytics = ClinicalAnalytics()

    def test_records_success(self) -> None:
        """Test a successful call is recorded and returned unchanged."""
        tracked = track_assessments(analyze, self.analytics)
        assessment = tracked([{"name": "cough"}])

        assert assessment.input_symptoms[0].name == "cough"
        assert self.analytics.summary()["clinical_analyses"] == 1

    def test_records_and_reraises_failure(self) -> None:
        """Test a failure is recorded and re-raised."""

        def failing(*args, **kwargs):
            raise RuntimeError("boom")

        tracked = track_assessments(failing, self.analytics)
        with pytest.raises(RuntimeError):
            tracked([])

        assert self.analytics.summary()["errors"] == 1

    def test_preserves_name(self) -> None:
        """Test the wrapper keeps the wrapped function's metadata."""
        assert track_assessments(analyze, self.analytics).__name__ == "analyze"


class TestSingleton:
    """Tests for the process-wide recorder."""

    def setup_method(self) -> None:
        """Reset the singleton before each test."""
        reset_clinical_analytics()

    def teardown_method(self) -> None:
        """Reset the singleton after each test."""
        reset_clinical_analytics()

    def test_same_instance(self) -> None:
        """Test repeated calls return the same recorder."""
        assert get_clinical_analytics() is get_clinical_analytics()

    def test_reset(self) -> None:
        """Test reset drops the instance."""
        first = get_clinical_analytics()
        reset_clinical_analytics()

        assert analytics_module._analytics is None
        assert get_clinical_analytics() is not first

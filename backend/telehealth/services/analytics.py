"""Clinical Analytics.

In-memory usage statistics for the analysis endpoint: request totals,
urgency breakdown, emergency alerts, most frequent canonical symptoms,
response times and hourly traffic.

The recorder lives outside the reasoning engine; ``track_assessments``
wraps a pure ``analyze`` callable so the engine itself stays stateless.
Only canonical symptom keys are counted, never free text.
"""

import logging
import threading
import time
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
from typing import Any

from telehealth.schemas.base import OverallUrgency
from telehealth.services.clinical_types import ClinicalAssessment
from telehealth.services.symptom_normalizer import canonicalize

logger = logging.getLogger(__name__)

MAX_RESPONSE_SAMPLES = 1000
TRIMMED_RESPONSE_SAMPLES = 500
TOP_SYMPTOMS_LIMIT = 10


class ClinicalAnalytics:
    """Thread-safe recorder of analysis statistics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self._total_requests = 0
        self._clinical_analyses = 0
        self._cache_hits = 0
        self._emergency_alerts = 0
        self._errors = 0
        self._urgency_breakdown: Counter[str] = Counter()
        self._symptom_frequency: Counter[str] = Counter()
        self._response_times_ms: list[float] = []
        self._hourly_traffic = [0] * 24

    def _record_request(self, response_time_ms: float | None) -> None:
        # Caller holds the lock
        self._total_requests += 1
        self._hourly_traffic[datetime.now(UTC).hour] += 1
        if response_time_ms is not None:
            self._response_times_ms.append(response_time_ms)
            if len(self._response_times_ms) > MAX_RESPONSE_SAMPLES:
                self._response_times_ms = self._response_times_ms[-TRIMMED_RESPONSE_SAMPLES:]

    def _record_urgency(self, overall_urgency: OverallUrgency) -> None:
        self._clinical_analyses += 1
        self._urgency_breakdown[overall_urgency.value] += 1
        if overall_urgency == OverallUrgency.EMERGENCY:
            self._emergency_alerts += 1

    def record_assessment(
        self,
        assessment: ClinicalAssessment,
        response_time_ms: float | None = None,
    ) -> None:
        """Record one completed analysis."""
        with self._lock:
            self._record_request(response_time_ms)
            self._record_urgency(assessment.overall_urgency)
            # Unrecognized names are literal user text, so they are not counted
            for symptom in assessment.input_symptoms:
                key, recognized = canonicalize(symptom.name)
                if recognized:
                    self._symptom_frequency[key] += 1

    def record_cache_hit(self, overall_urgency: OverallUrgency, response_time_ms: float | None = None) -> None:
        """Record an analysis served from the assessment cache."""
        with self._lock:
            self._record_request(response_time_ms)
            self._cache_hits += 1
            self._record_urgency(overall_urgency)

    def record_error(self, response_time_ms: float | None = None) -> None:
        """Record a failed analysis."""
        with self._lock:
            self._record_request(response_time_ms)
            self._errors += 1

    def summary(self) -> dict[str, Any]:
        """Snapshot of the collected statistics."""
        with self._lock:
            uptime_seconds = time.monotonic() - self._started
            times = self._response_times_ms
            avg_response = sum(times) / len(times) if times else 0.0
            requests_per_minute = (self._total_requests / uptime_seconds) * 60 if uptime_seconds > 0 else 0.0

            return {
                "total_requests": self._total_requests,
                "clinical_analyses": self._clinical_analyses,
                "cache_hits": self._cache_hits,
                "emergency_alerts": self._emergency_alerts,
                "errors": self._errors,
                "uptime_seconds": round(uptime_seconds, 1),
                "requests_per_minute": round(requests_per_minute, 2),
                "avg_response_time_ms": round(avg_response, 2),
                "urgency_breakdown": dict(self._urgency_breakdown),
                "top_symptoms": [
                    {"symptom": symptom, "count": count}
                    for symptom, count in sorted(
                        self._symptom_frequency.items(), key=lambda item: (-item[1], item[0])
                    )[:TOP_SYMPTOMS_LIMIT]
                ],
                "hourly_traffic": list(self._hourly_traffic),
            }


def track_assessments(
    fn: Callable[..., ClinicalAssessment],
    recorder: ClinicalAnalytics,
) -> Callable[..., ClinicalAssessment]:
    """Wrap an analyze callable so every call is timed and recorded.

    Failures are recorded and re-raised unchanged.
    """

    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> ClinicalAssessment:
        start = time.perf_counter()
        try:
            assessment = fn(*args, **kwargs)
        except Exception:
            recorder.record_error((time.perf_counter() - start) * 1000)
            raise
        recorder.record_assessment(assessment, (time.perf_counter() - start) * 1000)
        return assessment

    return wrapper


# Singleton instance and lock for thread safety
_analytics: ClinicalAnalytics | None = None
_analytics_lock = threading.Lock()


def get_clinical_analytics() -> ClinicalAnalytics:
    """Get the process-wide analytics recorder."""
    global _analytics
    if _analytics is None:
        with _analytics_lock:
            if _analytics is None:
                logger.info("Creating singleton ClinicalAnalytics instance")
                _analytics = ClinicalAnalytics()
    return _analytics


def reset_clinical_analytics() -> None:
    """Reset the singleton instance (for testing)."""
    global _analytics
    with _analytics_lock:
        _analytics = None

"""Clinical decision-support API endpoints."""

import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from telehealth.core.audit import AuditAction, log_analysis_failure, log_assessment, log_audit
from telehealth.core.config import settings
from telehealth.core.redis import get_redis
from telehealth.schemas.clinical import (
    AnalyzeRequest,
    AnalyzeResponse,
    AssessmentResponse,
    ConditionSummary,
    KnowledgeBaseResponse,
)
from telehealth.services.analytics import ClinicalAnalytics, get_clinical_analytics, track_assessments
from telehealth.services.assessment_cache import AssessmentCache
from telehealth.services.clinical_engine import analyze
from telehealth.services.clinical_knowledge import CONDITIONS, get_knowledge_base_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinical", tags=["Clinical Decision Support"])

DISCLAIMER = (
    "This is a decision-support tool, not a diagnosis. "
    "Always consult a healthcare professional."
)
PRIVACY_NOTE = "Your symptom data was processed locally and is not stored."


def get_assessment_cache() -> AssessmentCache:
    """Assessment cache configured from settings."""
    return AssessmentCache(
        get_redis,
        ttl_seconds=settings.assessment_cache_ttl_seconds,
        enabled=settings.assessment_cache_enabled,
    )


def _client_ip(http_request: Request) -> str | None:
    return http_request.client.host if http_request.client else None


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Analyze symptoms",
    description="Offline differential, urgency, red flags and follow-up questions for reported symptoms.",
)
def analyze_symptoms(
    request: AnalyzeRequest,
    http_request: Request,
    cache: AssessmentCache = Depends(get_assessment_cache),
    analytics: ClinicalAnalytics = Depends(get_clinical_analytics),
) -> AnalyzeResponse:
    """Run the clinical reasoning engine on the reported symptoms.

    Results include:

    - **Possible conditions**: ranked, with confidence (never above 95%)
    - **Red-flag alerts**: dangerous symptom combinations or vitals
    - **Overall urgency**: self-care, schedule-visit, urgent-care or emergency
    - **Follow-up questions**: what to ask next to narrow the differential

    **Important**: This is a decision support tool and does not replace a
    consultation with a doctor.
    """
    if not request.symptoms:
        raise HTTPException(status_code=400, detail="At least one symptom is required")

    start_time = time.perf_counter()
    client_ip = _client_ip(http_request)
    payload = request.engine_payload()

    cached = cache.get(payload)
    if cached is not None:
        try:
            assessment = AssessmentResponse.model_validate(cached)
        except ValueError:
            logger.warning("Ignoring cached assessment that no longer matches the response schema")
        else:
            processing_time_ms = (time.perf_counter() - start_time) * 1000
            analytics.record_cache_hit(assessment.overall_urgency, processing_time_ms)
            log_assessment(
                assessment_id=assessment.id,
                overall_urgency=assessment.overall_urgency.value,
                symptom_count=len(assessment.input_symptoms),
                condition_ids=[c.id for c in assessment.possible_conditions],
                alert_ids=[a.id for a in assessment.red_flag_alerts],
                cached=True,
                ip_address=client_ip,
            )
            return AnalyzeResponse(
                success=True,
                assessment=assessment,
                disclaimer=DISCLAIMER,
                privacy_note=PRIVACY_NOTE,
                cached=True,
                processing_time_ms=processing_time_ms,
            )

    tracked_analyze = track_assessments(analyze, analytics)
    try:
        result = tracked_analyze(
            payload.get("symptoms", []),
            payload.get("patient_context"),
            config=settings.engine_config(),
        )
        assessment = AssessmentResponse.model_validate(result, from_attributes=True)
    except Exception as e:
        # Error type only: the message could echo symptom text
        logger.error(f"Clinical analysis failed: {type(e).__name__}")
        log_analysis_failure(type(e).__name__, ip_address=client_ip)
        raise HTTPException(status_code=500, detail="Analysis failed. Please try again.")

    cache.set(payload, assessment.model_dump(mode="json"))

    # Privacy: log only an anonymized summary, never raw symptoms
    logger.info(
        f"Clinical analysis: {len(request.symptoms)} symptoms, "
        f"urgency: {assessment.overall_urgency.value}"
    )
    log_assessment(
        assessment_id=assessment.id,
        overall_urgency=assessment.overall_urgency.value,
        symptom_count=len(assessment.input_symptoms),
        condition_ids=[c.id for c in assessment.possible_conditions],
        alert_ids=[a.id for a in assessment.red_flag_alerts],
        ip_address=client_ip,
    )

    return AnalyzeResponse(
        success=True,
        assessment=assessment,
        disclaimer=DISCLAIMER,
        privacy_note=PRIVACY_NOTE,
        cached=False,
        processing_time_ms=(time.perf_counter() - start_time) * 1000,
    )


@router.get(
    "/knowledge-base",
    response_model=KnowledgeBaseResponse,
    summary="Knowledge base catalogue",
)
async def get_knowledge_base() -> KnowledgeBaseResponse:
    """List the conditions the engine knows about, with catalogue statistics."""
    return KnowledgeBaseResponse(
        stats=get_knowledge_base_stats(),
        conditions=[
            ConditionSummary(id=c.id, name=c.name, category=c.category, urgency=c.urgency)
            for c in CONDITIONS.values()
        ],
    )


@router.get("/analytics", summary="Analysis usage statistics")
async def get_analytics(
    http_request: Request,
    analytics: ClinicalAnalytics = Depends(get_clinical_analytics),
) -> dict[str, Any]:
    """Aggregate, anonymized statistics of analyses served by this process."""
    log_audit(AuditAction.READ, resource_type="analytics", ip_address=_client_ip(http_request))
    return analytics.summary()

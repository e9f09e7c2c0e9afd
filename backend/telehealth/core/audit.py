"""Audit logging for clinical assessments.

Records who asked for what and what the engine decided:
- Every completed analysis (urgency, counts, rule ids)
- Emergency escalations
- Analysis failures

Audit records never carry symptom text or patient context, only counts,
identifiers and the urgency decision. They should be shipped to a secure,
append-only store in production.
"""

import logging
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# Separate audit logger for safety-relevant events
audit_logger = logging.getLogger("audit")


class AuditAction(str, Enum):
    """Types of auditable actions."""

    ANALYZE = "analyze"
    CACHE_HIT = "cache_hit"
    EMERGENCY_ESCALATION = "emergency_escalation"
    READ = "read"
    ERROR = "error"


class AuditEvent(BaseModel):
    """Audit event record."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    action: AuditAction = Field(..., description="Type of action performed")
    resource_type: str = Field(..., description="Type of resource accessed")
    resource_id: str | None = Field(None, description="ID of specific resource")
    ip_address: str | None = Field(None, description="Client IP address")
    details: dict | None = Field(None, description="Additional context")
    success: bool = Field(True, description="Whether action succeeded")


def log_audit(
    action: AuditAction,
    resource_type: str,
    resource_id: str | None = None,
    ip_address: str | None = None,
    details: dict | None = None,
    success: bool = True,
) -> AuditEvent:
    """Log an audit event.

    Args:
        action: Type of action being audited
        resource_type: The type of resource being accessed
        resource_id: Specific resource identifier
        ip_address: Client IP address
        details: Additional context (counts and identifiers only)
        success: Whether the action succeeded

    Returns:
        The created AuditEvent
    """
    event = AuditEvent(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        ip_address=ip_address,
        details=details,
        success=success,
    )

    log_level = logging.INFO if success else logging.WARNING
    audit_logger.log(
        log_level,
        f"AUDIT: {action.value} {resource_type}"
        f"{f'/{resource_id}' if resource_id else ''}"
        f" success={success}",
        extra={"audit_event": event.model_dump()},
    )

    return event


def log_assessment(
    assessment_id: str,
    overall_urgency: str,
    symptom_count: int,
    condition_ids: list[str],
    alert_ids: list[str],
    cached: bool = False,
    ip_address: str | None = None,
) -> AuditEvent:
    """Log a completed analysis.

    Emergencies are additionally recorded as an escalation event so they can
    be reviewed on their own.
    """
    details = {
        "overall_urgency": overall_urgency,
        "symptom_count": symptom_count,
        "condition_ids": condition_ids,
        "alert_ids": alert_ids,
    }
    event = log_audit(
        action=AuditAction.CACHE_HIT if cached else AuditAction.ANALYZE,
        resource_type="assessment",
        resource_id=assessment_id,
        ip_address=ip_address,
        details=details,
    )

    if overall_urgency == "emergency":
        audit_logger.warning(f"AUDIT: emergency escalation for assessment/{assessment_id}")
        log_audit(
            action=AuditAction.EMERGENCY_ESCALATION,
            resource_type="assessment",
            resource_id=assessment_id,
            ip_address=ip_address,
            details={"alert_ids": alert_ids},
        )

    return event


def log_analysis_failure(error_type: str, ip_address: str | None = None) -> AuditEvent:
    """Log a failed analysis by exception type only."""
    return log_audit(
        action=AuditAction.ERROR,
        resource_type="assessment",
        ip_address=ip_address,
        details={"error_type": error_type},
        success=False,
    )

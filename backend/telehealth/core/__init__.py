"""Core application configuration and utilities."""

from telehealth.core.audit import (
    AuditAction,
    AuditEvent,
    log_analysis_failure,
    log_assessment,
    log_audit,
)
from telehealth.core.config import Settings, settings

__all__ = [
    # Config
    "Settings",
    "settings",
    # Audit
    "AuditAction",
    "AuditEvent",
    "log_analysis_failure",
    "log_assessment",
    "log_audit",
]

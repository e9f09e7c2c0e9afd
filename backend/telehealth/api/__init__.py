"""API routers for the telehealth decision-support service."""

from telehealth.api.clinical import router as clinical_router

__all__ = [
    "clinical_router",
]

"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from telehealth.services.clinical_engine import EngineConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Telehealth Clinical Decision Support"
    debug: bool = False

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Assessment cache
    assessment_cache_enabled: bool = True
    assessment_cache_ttl_seconds: int = 300

    # Emergency services (India: 108 ambulance)
    emergency_number: str = "108"

    # Reasoning engine thresholds
    min_condition_score: float = 0.15
    max_conditions: int = 5
    max_follow_up_questions: int = 5
    emergency_confidence_threshold: int = 60
    urgent_confidence_threshold: int = 40
    schedule_visit_confidence_threshold: int = 35

    def engine_config(self) -> EngineConfig:
        """Build the immutable engine configuration from these settings."""
        return EngineConfig(
            min_condition_score=self.min_condition_score,
            max_conditions=self.max_conditions,
            max_follow_up_questions=self.max_follow_up_questions,
            emergency_confidence_threshold=self.emergency_confidence_threshold,
            urgent_confidence_threshold=self.urgent_confidence_threshold,
            schedule_visit_confidence_threshold=self.schedule_visit_confidence_threshold,
            emergency_number=self.emergency_number,
        )


settings = Settings()

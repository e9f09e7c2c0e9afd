"""Tests for application settings."""

from telehealth.core.config import Settings
from telehealth.services.clinical_engine import EngineConfig


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch) -> None:
        """Test default settings without environment overrides."""
        for name in ("EMERGENCY_NUMBER", "ASSESSMENT_CACHE_ENABLED", "MAX_CONDITIONS"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)

        assert settings.emergency_number == "108"
        assert settings.assessment_cache_enabled is True
        assert settings.assessment_cache_ttl_seconds == 300
        assert settings.max_conditions == 5

    def test_environment_override(self, monkeypatch) -> None:
        """Test settings are read from environment variables."""
        monkeypatch.setenv("EMERGENCY_NUMBER", "911")
        monkeypatch.setenv("ASSESSMENT_CACHE_ENABLED", "false")
        monkeypatch.setenv("MAX_CONDITIONS", "3")
        settings = Settings(_env_file=None)

        assert settings.emergency_number == "911"
        assert settings.assessment_cache_enabled is False
        assert settings.max_conditions == 3

    def test_engine_config(self) -> None:
        """Test settings build the matching engine configuration."""
        settings = Settings(_env_file=None, emergency_number="112", urgent_confidence_threshold=50)
        config = settings.engine_config()

        assert isinstance(config, EngineConfig)
        assert config.emergency_number == "112"
        assert config.urgent_confidence_threshold == 50
        assert config.min_condition_score == settings.min_condition_score

    def test_default_engine_config_matches_engine_defaults(self) -> None:
        """Test default settings do not change engine behaviour."""
        assert Settings(_env_file=None).engine_config() == EngineConfig()

"""
Unit Tests for Configuration Management

Tests the Settings class and YAML configuration loading.
"""

import os
from unittest.mock import patch

from practice_engine.config import Settings, get_settings, load_yaml_config, settings
from practice_engine.config.settings import DEFAULT_CONFIG_PATH


class TestSettings:
    """Test suite for the Settings Pydantic model."""

    def test_default_values(self) -> None:
        """Settings should have sensible defaults when env vars are not set."""
        with patch.dict(os.environ, {}, clear=True):
            test_settings = Settings(_env_file=None)

            assert test_settings.SCHEDULER_ALGORITHM == "fsrs"
            assert test_settings.FSRS_DEFAULT_RETENTION == 0.9
            assert test_settings.FSRS_MAX_INTERVAL_DAYS == 365
            assert test_settings.FSRS_ENABLE_FUZZING is False
            assert test_settings.LAPSE_STABILITY_CEILING == 0.45
            assert test_settings.RATING_FAST_THRESHOLD_MS == 15_000
            assert test_settings.RATING_SLOW_THRESHOLD_MS == 30_000
            assert test_settings.GRADING_TELEMETRY_ENABLED is True

    def test_environment_overrides(self) -> None:
        """Environment variables should override defaults."""
        env = {"SCHEDULER_ALGORITHM": "sm2", "GRADING_EXECUTION_TIMEOUT_SECONDS": "2.5"}
        with patch.dict(os.environ, env, clear=True):
            test_settings = Settings(_env_file=None)

            assert test_settings.SCHEDULER_ALGORITHM == "sm2"
            assert test_settings.GRADING_EXECUTION_TIMEOUT_SECONDS == 2.5

    def test_get_settings_is_cached(self) -> None:
        """get_settings should return the module-level instance."""
        assert get_settings() is get_settings()
        assert get_settings() is settings


class TestYamlConfig:
    """Test suite for default.yaml loading."""

    def test_config_ships_inside_package(self) -> None:
        """The YAML file should live in the package so wheels include it."""
        import practice_engine

        package_dir = os.path.dirname(practice_engine.__file__)

        assert DEFAULT_CONFIG_PATH.is_file()
        assert str(DEFAULT_CONFIG_PATH).startswith(package_dir)

    def test_selection_defaults(self) -> None:
        """The YAML file should define level order and type ratios."""
        config = load_yaml_config()

        assert config["selection"]["level_order"] == ["intro", "practice", "edge", "integrated"]
        assert sum(config["selection"]["type_ratios"].values()) == 1.0

    def test_grading_defaults(self) -> None:
        """The YAML file should define coaching text and the execution template."""
        grading = load_yaml_config()["grading"]

        assert grading["default_coaching_feedback"]
        assert "{{answer}}" in grading["verification_template"]

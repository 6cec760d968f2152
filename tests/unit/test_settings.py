"""Unit tests for configuration models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from fibred.config import (
    AlgorithmConfig,
    FibredSettings,
    LoggingConfig,
    LogLevel,
    OutputConfig,
    get_default_settings,
)


class TestAlgorithmConfig:
    """Tests for AlgorithmConfig."""

    def test_defaults(self) -> None:
        """Test default values."""
        config = AlgorithmConfig()
        assert config.max_steps_factor == 20
        assert config.check_integrity
        assert config.prefix_check_depth == 4
        assert config.halt_on_reducible
        assert config.keep_history

    def test_step_factor_bounds(self) -> None:
        """Test the step factor must be positive."""
        with pytest.raises(ValidationError):
            AlgorithmConfig(max_steps_factor=0)

    def test_tolerance_bounds(self) -> None:
        """Test tolerances cannot be negative."""
        with pytest.raises(ValidationError):
            AlgorithmConfig(growth_tolerance=-1.0)


class TestOutputConfig:
    """Tests for OutputConfig."""

    def test_defaults(self) -> None:
        """Test default values."""
        config = OutputConfig()
        assert config.max_path_length == 150
        assert config.path_tail == 10
        assert config.matrix_max_size == 20
        assert not config.verbose
        assert not config.quiet

    def test_path_length_minimum(self) -> None:
        """Test very short path limits are rejected."""
        with pytest.raises(ValidationError):
            OutputConfig(max_path_length=5)


class TestFibredSettings:
    """Tests for FibredSettings."""

    def test_default_settings(self) -> None:
        """Test the default settings bundle every section."""
        settings = get_default_settings()
        assert isinstance(settings.algorithm, AlgorithmConfig)
        assert isinstance(settings.output, OutputConfig)
        assert settings.logging.log_file is None
        assert settings.logging.console_level is LogLevel.WARNING
        assert settings.logging.file_level is LogLevel.DEBUG

    def test_from_dict(self) -> None:
        """Test nested settings are validated from plain data."""
        settings = FibredSettings.model_validate(
            {
                "algorithm": {"halt_on_reducible": False},
                "logging": {"log_file": "run.log", "console_level": "INFO"},
            }
        )
        assert not settings.algorithm.halt_on_reducible
        assert settings.logging.log_file == Path("run.log")
        assert settings.logging.console_level is LogLevel.INFO

    def test_unknown_level(self) -> None:
        """Test log levels are restricted."""
        with pytest.raises(ValidationError):
            LoggingConfig(console_level="LOUD")

"""Configuration management for fibred.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- AlgorithmConfig: Step limits, integrity checks and numerical tolerances
- OutputConfig: Graph dump settings
- LoggingConfig: Logging settings
- FibredSettings: Main application settings
"""

from fibred.config.settings import (
    AlgorithmConfig,
    FibredSettings,
    LoggingConfig,
    LogLevel,
    OutputConfig,
    get_default_settings,
)

__all__ = [
    "AlgorithmConfig",
    "FibredSettings",
    "LogLevel",
    "LoggingConfig",
    "OutputConfig",
    "get_default_settings",
]

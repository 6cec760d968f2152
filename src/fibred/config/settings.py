"""Configuration settings for fibred."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log levels accepted for console and file output."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class AlgorithmConfig(BaseModel):
    """Configuration for running the train track algorithm."""

    max_steps_factor: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Maximal number of applied suggestions per edge of the initial graph",
    )
    check_integrity: bool = Field(
        default=True,
        description="Check the graph map for consistency after every applied move",
    )
    prefix_check_depth: int = Field(
        default=4,
        ge=1,
        le=10,
        description="Prefix lengths checked for contiguity in the cyclic order at each vertex",
    )
    halt_on_reducible: bool = Field(
        default=True,
        description="Stop a run when the map is found to be reducible",
    )
    keep_history: bool = Field(
        default=True,
        description="Keep earlier states reachable for undo",
    )
    growth_tolerance: float = Field(
        default=1e-6,
        ge=0.0,
        le=0.1,
        description="Growth rates within this distance of 1 count as finite order",
    )
    eigen_tolerance: float = Field(
        default=1e-6,
        ge=0.0,
        le=0.1,
        description="Left eigenvector entries below this are ignored when scaling lengths",
    )
    length_tolerance: float = Field(
        default=1e-12,
        ge=0.0,
        le=0.1,
        description="Edge lengths below this are reported as zero",
    )


class OutputConfig(BaseModel):
    """Configuration for the textual graph dump."""

    max_path_length: int = Field(
        default=150,
        ge=10,
        description="Image paths longer than this are abbreviated",
    )
    path_tail: int = Field(
        default=10,
        ge=0,
        description="Number of trailing letters kept when abbreviating a path",
    )
    matrix_max_size: int = Field(
        default=20,
        ge=0,
        description="Largest number of essential edges for which the transition matrix is shown",
    )
    verbose: bool = Field(
        default=False,
        description="Print every applied suggestion",
    )
    quiet: bool = Field(
        default=False,
        description="Only print the final result",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    console_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Console log level",
    )
    file_level: LogLevel = Field(
        default=LogLevel.DEBUG,
        description="File log level (more verbose)",
    )


class FibredSettings(BaseModel):
    """Main application settings."""

    algorithm: AlgorithmConfig = Field(default_factory=AlgorithmConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> FibredSettings:
    """Get default application settings."""
    return FibredSettings()

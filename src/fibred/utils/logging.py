"""Logging utilities for fibred."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

import structlog

# Handlers installed by configure_logging, replaced on the next call
_installed_handlers: list[logging.Handler] = []


@dataclass
class AlgorithmStats:
    """Statistics from an algorithm run."""

    steps: int = 0
    moves: Counter = field(default_factory=Counter)
    integrity_failures: int = 0
    start_time: float | None = None
    end_time: float | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate run duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "WARNING",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root_logger.addHandler(file_handler)
        _installed_handlers.append(file_handler)

    if not quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(console_handler)
        _installed_handlers.append(console_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("fibred")
    logger.info(
        "Logging initialized",
        log_file=str(log_file) if log_file is not None else None,
        level=file_level,
    )

    return logger


class AlgorithmLogger:
    """Logger for tracking the progress of a train track run."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger if logger is not None else structlog.get_logger("fibred")
        self._stats = AlgorithmStats()

    def log_run_start(self, surface_name: str, edges: int, vertices: int, limit: int) -> None:
        """Log start of a run."""
        self._logger.info(
            "Run started",
            surface=surface_name,
            edges=edges,
            vertices=vertices,
            step_limit=limit,
        )

    def log_suggestion(self, kind: str, description: str, options: int) -> None:
        self._logger.debug("Suggestion", kind=kind, description=description, options=options)

    def log_action(self, button: str, selection: list) -> None:
        """Log the button pressed and the selection it was pressed with."""
        self._logger.debug("Applying suggestion", button=button, selection=[str(s) for s in selection])
        self._stats.steps += 1

    def log_move(self, kind: str, edges: int, vertices: int, duration_ms: float) -> None:
        """Log a completed move."""
        self._logger.info(
            "Move applied",
            kind=kind,
            edges=edges,
            vertices=vertices,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.moves[kind] += 1

    def log_integrity_failure(
        self,
        check: str,
        details: str,
        button: str,
        traceback: str | None = None,
    ) -> None:
        """Log a failed consistency check."""
        self._logger.error(
            "Integrity check failed",
            check=check,
            details=details,
            button=button,
            traceback=traceback,
        )
        self._stats.integrity_failures += 1

    def log_reducible(self, description: str) -> None:
        self._logger.warning("Map is reducible", description=description)

    def log_run_complete(
        self,
        finished: bool,
        classification: str | None,
        growth: float | None,
    ) -> None:
        """Log the result of a run."""
        self._logger.info(
            "Run complete",
            finished=finished,
            steps=self._stats.steps,
            classification=classification,
            growth=round(growth, 6) if growth is not None else None,
            duration_s=round(self._stats.duration_seconds, 3),
        )

    @property
    def stats(self) -> AlgorithmStats:
        """Get current run statistics."""
        return self._stats

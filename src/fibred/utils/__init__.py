"""Utility functions for fibred.

This module provides utility functions including:

- Logging setup and configuration
- Cyclic order helpers for stars of vertices
"""

from fibred.utils.cyclic import cyclic_shift, is_connected_set, sort_connected_set
from fibred.utils.logging import (
    AlgorithmLogger,
    AlgorithmStats,
    configure_logging,
)

__all__ = [
    "AlgorithmLogger",
    "AlgorithmStats",
    "configure_logging",
    "cyclic_shift",
    "is_connected_set",
    "sort_connected_set",
]

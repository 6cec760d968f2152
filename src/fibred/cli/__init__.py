"""Command-line interface for fibred.

This module provides the CLI using Typer with rich output for
user-friendly feedback.

Key features:
- Running the algorithm to completion on a surface file
- Inspecting a surface and its next suggested move
- Verbose/quiet output modes
- Detailed error reporting
"""

from fibred.cli.app import cli, main

__all__ = ["cli", "main"]

"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with tables and formatted messages.
"""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from fibred.core.controller import RunSummary
from fibred.domain.suggestion import Suggestion

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]fibred[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator.

    Args:
        message: Step description message
    """
    console.print(f"\n{SYM_STEP} {message}")


def print_surface_info(source: str, name: str, edges: int, vertices: int, peripheral: int) -> None:
    """Print the size of a loaded surface.

    Args:
        source: Path of the surface file
        name: Name of the surface
        edges: Number of edges
        vertices: Number of vertices
        peripheral: Number of peripheral edges
    """
    # Use Text to safely handle paths with special characters
    line = Text("  ")
    line.append(source)
    line.append(f" ({name})")
    console.print(line)
    console.print(
        f"  {edges} edges {SYM_DOT} {vertices} vertices {SYM_DOT} {peripheral} peripheral"
    )


def print_suggestion(suggestion: Suggestion, verbose: bool = False) -> None:
    """Print a suggestion with its buttons and, if verbose, its options."""
    line = Text("  ")
    line.append(suggestion.kind.name.replace("_", " ").lower(), style="bold")
    line.append(f" {SYM_DOT} ")
    line.append(suggestion.description)
    console.print(line)
    if suggestion.buttons:
        console.print(Text("  " + " | ".join(button.value for button in suggestion.buttons)))
    if verbose:
        for option in suggestion.options[:20]:
            console.print(Text(f"    {option.label}"))
        if len(suggestion.options) > 20:
            console.print(f"    {SYM_DOT}{SYM_DOT}{SYM_DOT} (+{len(suggestion.options) - 20} more)")


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def print_summary(summary: RunSummary, total_time_s: float, verbose: bool = False) -> None:
    """Print the outcome of a run.

    Args:
        summary: The run summary
        total_time_s: Duration of the run in seconds
        verbose: Whether to list the moves by button
    """
    time_str = _format_time(total_time_s)
    if summary.finished:
        console.print(f"\n[bold green]{SYM_OK} Finished[/bold green] in {time_str}")
    elif summary.halted_reducible:
        console.print(f"\n[bold yellow]{SYM_DOT} Reducible[/bold yellow] after {time_str}")
        console.print(Text(f"  invariant subgraph: {', '.join(summary.reducible_edges)}"))
    else:
        console.print(f"\n[bold red]{SYM_ERR} Not finished[/bold red] after {time_str}")

    details = [f"{summary.steps} steps"]
    if summary.classification is not None:
        details.append(summary.classification.value)
    if summary.growth is not None:
        details.append(f"growth {summary.growth:.6g}")
    console.print(f"  {f' {SYM_DOT} '.join(details)}")

    if verbose and summary.moves:
        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Move")
        table.add_column("Count", justify="right")
        for button, count in sorted(summary.moves.items(), key=lambda item: -item[1]):
            table.add_row(button, str(count))
        console.print(table)


def print_graph(text: str) -> None:
    """Print a graph dump without interpreting markup."""
    console.print()
    console.print(Text(text))


def print_written(path: str) -> None:
    line = Text(f"\n{SYM_OK} Wrote ")
    line.append(path, style="bold")
    console.print(line)


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(Text(f"  {details}"))

"""CLI application entry point for fibred.

This module provides the main CLI interface using Typer.
"""

import time
from pathlib import Path
from typing import Annotated

import typer

from fibred import __version__
from fibred.cli.output import (
    console,
    print_error,
    print_graph,
    print_header,
    print_step,
    print_suggestion,
    print_summary,
    print_surface_info,
    print_written,
)
from fibred.config import (
    AlgorithmConfig,
    FibredSettings,
    LoggingConfig,
    LogLevel,
    OutputConfig,
)
from fibred.core.analysis import classify
from fibred.core.controller import AlgorithmState, StepController, next_suggestion
from fibred.core.graph_map import GraphMapUpdateMode
from fibred.domain.surface import FibredSurface
from fibred.exceptions import AlgorithmError, FibredError, InputError, IntegrityError
from fibred.io.reader import SurfaceReader
from fibred.io.writer import graph_string, write_surface
from fibred.utils.logging import AlgorithmLogger, configure_logging

# Create the Typer app
app = typer.Typer(
    name="fibred",
    help="Find efficient train track representatives of surface homeomorphisms.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]fibred[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Find efficient train track representatives of surface homeomorphisms."""


def _map_mode(value: str) -> GraphMapUpdateMode:
    try:
        return GraphMapUpdateMode(value.lower())
    except ValueError:
        print_error(
            f"Invalid map mode: {value}",
            details="Valid values: " + ", ".join(mode.value for mode in GraphMapUpdateMode),
        )
        raise typer.Exit(code=1)


def _load_surface(
    surface_file: Path,
    map_text: str | None,
    map_mode: GraphMapUpdateMode,
    prefix_depth: int,
) -> FibredSurface:
    """Read a surface file, overriding its map update if one was given."""
    if not surface_file.exists():
        print_error(
            f"Input file not found: {surface_file}",
            details=f"The file '{surface_file}' does not exist or is not accessible.",
        )
        raise typer.Exit(code=1)

    if not surface_file.is_file():
        print_error(
            f"Input path is not a file: {surface_file}",
            details="Please provide a path to a TOML or JSON surface file.",
        )
        raise typer.Exit(code=1)

    reader = SurfaceReader(surface_file)
    description = reader.load()
    if map_text is not None:
        description = description.model_copy(update={"map": map_text, "map_mode": map_mode})
    return description.build(validate=True, prefix_depth=prefix_depth)


@app.command()
def run(
    surface_file: Annotated[
        Path,
        typer.Argument(
            help="Path to a TOML or JSON surface file",
            show_default=False,
        ),
    ],
    map_text: Annotated[
        str | None,
        typer.Option(
            "--map",
            "-m",
            help="Map update applied after loading, e.g. 'a -> a b, b -> a'",
        ),
    ] = None,
    map_mode: Annotated[
        str,
        typer.Option(
            "--map-mode",
            help="How --map is applied (replace|precompose|postcompose)",
        ),
    ] = "replace",
    max_steps: Annotated[
        int | None,
        typer.Option(
            "--max-steps",
            "-n",
            help="Maximum number of moves (default: 20 per edge)",
            min=1,
        ),
    ] = None,
    continue_reducible: Annotated[
        bool,
        typer.Option(
            "--continue-reducible",
            help="Keep going when the map is found to be reducible",
        ),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the resulting surface to this JSON file",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose console output",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    no_integrity_checks: Annotated[
        bool,
        typer.Option(
            "--no-integrity-checks",
            help="Skip the consistency checks after each move",
        ),
    ] = False,
) -> None:
    """Run the Bestvina-Handel algorithm on a surface until it is finished.

    The surface file describes a graph with a cyclic order at each vertex and
    a map on it. Moves are applied in the order the algorithm suggests them,
    always with every option selected.

    Example:
        fibred run golden.toml

    This prints the efficient representative, its growth rate and its type.
    """
    # Validate mutually exclusive options
    if verbose and quiet:
        print_error("Cannot use --verbose and --quiet together")
        raise typer.Exit(code=1)

    mode = _map_mode(map_mode)

    # Create settings from CLI arguments
    settings = FibredSettings(
        algorithm=AlgorithmConfig(
            check_integrity=not no_integrity_checks,
            halt_on_reducible=not continue_reducible,
        ),
        output=OutputConfig(verbose=verbose, quiet=quiet),
        logging=LoggingConfig(
            log_file=log_file,
            console_level=LogLevel.INFO if verbose else LogLevel.WARNING,
        ),
    )
    structured = configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.console_level,
        file_level=settings.logging.file_level,
        quiet=quiet,
    )

    if not quiet:
        print_header(__version__)

    try:
        if not quiet:
            print_step("Loading surface")
        surface = _load_surface(
            surface_file, map_text, mode, settings.algorithm.prefix_check_depth
        )
        if not quiet:
            print_surface_info(
                str(surface_file),
                surface.name,
                len(surface.edges),
                len(surface.vertices),
                len(surface.peripheral),
            )
            print_step("Running")

        controller = StepController(surface, settings.algorithm, AlgorithmLogger(structured))
        start = time.time()
        summary = controller.run(max_steps)
        duration = time.time() - start

        if not quiet:
            print_summary(summary, duration, verbose)
            print_graph(graph_string(controller.surface, summary.classification, settings.output))
        else:
            kind = summary.classification.value if summary.classification is not None else "Unknown"
            console.print(kind)

        if output is not None:
            write_surface(controller.surface, output)
            if not quiet:
                print_written(str(output))

    except InputError as e:
        print_error("Invalid input", details=str(e))
        raise typer.Exit(code=1)
    except IntegrityError as e:
        print_error(f"Integrity check '{e.check}' failed", details=e.details)
        raise typer.Exit(code=1)
    except AlgorithmError as e:
        print_error(f"Algorithm failed in {e.operation}", details=e.reason)
        raise typer.Exit(code=1)
    except FibredError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except OSError as e:
        print_error(f"Could not access file: {e}")
        raise typer.Exit(code=1)
    except typer.Exit:
        # Re-raise typer.Exit to allow clean exits
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e!r}")
        raise typer.Exit(code=1)


@app.command()
def inspect(
    surface_file: Annotated[
        Path,
        typer.Argument(
            help="Path to a TOML or JSON surface file",
            show_default=False,
        ),
    ],
    map_text: Annotated[
        str | None,
        typer.Option(
            "--map",
            "-m",
            help="Map update applied after loading",
        ),
    ] = None,
    map_mode: Annotated[
        str,
        typer.Option(
            "--map-mode",
            help="How --map is applied (replace|precompose|postcompose)",
        ),
    ] = "replace",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="List the options of the next suggestion",
        ),
    ] = False,
) -> None:
    """Show a surface and the move the algorithm would make next."""
    mode = _map_mode(map_mode)
    settings = FibredSettings()
    try:
        surface = _load_surface(
            surface_file, map_text, mode, settings.algorithm.prefix_check_depth
        )
        print_graph(graph_string(surface, classify(surface), settings.output))
        print_step("Next suggestion")
        print_suggestion(next_suggestion(AlgorithmState(surface)), verbose)
    except InputError as e:
        print_error("Invalid input", details=str(e))
        raise typer.Exit(code=1)
    except FibredError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        print_error(f"Could not inspect surface: {e!r}")
        raise typer.Exit(code=1)


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()

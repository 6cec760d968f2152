"""Surface writer for textual dumps and surface files.

``graph_string`` renders a surface for people: vertices with their images and
gates, edges with their images, boundary words, the transition matrix and the
growth rate. ``describe_surface`` turns a surface back into a
SurfaceDescription, which ``write_surface`` saves as JSON.
"""

import logging
from pathlib import Path

from fibred.config.settings import OutputConfig
from fibred.core.analysis import MappingClassType, PerronFrobenius, perron_frobenius
from fibred.core.gates import find_gates, gates_at
from fibred.domain.edge_path import EdgePath
from fibred.domain.surface import FibredSurface
from fibred.io.reader import EdgeDescription, SurfaceDescription

logger = logging.getLogger(__name__)


def _format_number(value: float) -> str:
    if abs(value - round(value)) < 1e-9:
        return str(int(round(value)))
    return f"{value:.3g}"


def _path_string(path: EdgePath, config: OutputConfig) -> str:
    return path.to_string(config.max_path_length, config.path_tail)


def vertex_lines(surface: FibredSurface) -> list[str]:
    gates = find_gates(surface)
    lines = []
    for vertex in surface.vertices:
        image = vertex.image.name if vertex.image is not None else "?"
        here = ", ".join(str(gate) for gate in gates_at(gates, vertex))
        lines.append(f"{vertex.name} ↦ {image}, gates: {here}")
    return lines


def edge_lines(surface: FibredSurface, config: OutputConfig) -> list[str]:
    lines = []
    for edge in surface.edges:
        marker = " (peripheral)" if edge in surface.peripheral else ""
        lines.append(
            f"{edge.name}: {edge.source.name} → {edge.target.name}{marker}, "
            f"g({edge.name}) = {_path_string(edge.path, config)}"
        )
    return lines


def boundary_lines(surface: FibredSurface, config: OutputConfig) -> list[str]:
    """Boundary words, with the words running along the periphery on their own line."""
    peripheral = {str(word) for word in surface.peripheral_boundary_words()}
    ordinary = []
    along = []
    for word in surface.boundary_words():
        text = _path_string(word, config)
        if str(word) in peripheral:
            along.append(text)
        else:
            ordinary.append(text)
    return [
        "Boundary / puncture words (following to the right):",
        ", ".join(ordinary),
        "Peripheral: " + ", ".join(along),
    ]


def matrix_lines(data: PerronFrobenius, config: OutputConfig) -> list[str]:
    """The transition matrix with a width column and a length row.

    Returns:
        The table rows, or a single note if there are too many edges
    """
    if not data.edges:
        return []
    if len(data.edges) > config.matrix_max_size:
        return [f"Transition matrix omitted ({len(data.edges)} edges)."]
    names = [edge.name for edge in data.edges]
    header = ["", *names, "width"]
    rows = [header]
    for i, edge in enumerate(data.edges):
        row = [edge.name]
        row.extend(str(int(value)) for value in data.matrix[i])
        row.append(_format_number(data.widths[edge]))
        rows.append(row)
    rows.append(["length", *(_format_number(data.lengths[edge]) for edge in data.edges), ""])
    widths = [max(len(row[k]) for row in rows) for k in range(len(header))]
    return ["  ".join(cell.rjust(width) for cell, width in zip(row, widths)).rstrip() for row in rows]


def graph_string(
    surface: FibredSurface,
    classification: MappingClassType | None = None,
    config: OutputConfig | None = None,
) -> str:
    """Render the surface and its graph map as text.

    Args:
        surface: The surface
        classification: Type of the map, if known
        config: Output settings (defaults if None)

    Returns:
        Multi-line description
    """
    config = config or OutputConfig()
    lines = vertex_lines(surface)
    lines.extend(edge_lines(surface, config))
    lines.extend(boundary_lines(surface, config))
    definitions = surface.named_paths()
    if definitions:
        lines.append("Variables:")
        lines.extend(f"{named.name} = {_path_string(named.value, config)}" for named in definitions)
    data = perron_frobenius(surface)
    lines.extend(matrix_lines(data, config))
    lines.append(f"Growth rate: {data.growth:.3g}")
    if classification is not None:
        lines.append(f"Type: {classification.value}")
    return "\n".join(lines)


def describe_surface(surface: FibredSurface) -> SurfaceDescription:
    """A description that rebuilds the surface, including its cyclic orders."""
    return SurfaceDescription(
        name=surface.name,
        edges=[
            EdgeDescription(
                name=edge.name,
                source=edge.source.name,
                target=edge.target.name,
                image=" ".join(letter.name for letter in edge.path),
                order_start=edge.order_index_start,
                order_end=edge.order_index_end,
            )
            for edge in surface.edges
        ],
        peripheral=[edge.name for edge in surface.edges if edge in surface.peripheral],
    )


def write_surface(surface: FibredSurface, path: Path) -> Path:
    """Save the surface as a JSON surface file.

    Returns:
        The path written to
    """
    description = describe_surface(surface)
    path.write_text(description.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
    logger.debug("Wrote surface %s to %s", surface.name, path)
    return path

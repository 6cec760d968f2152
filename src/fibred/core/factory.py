"""Construction of fibred surfaces from edge descriptions."""

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from fibred.core.graph_map import induced_vertex_images
from fibred.core.integrity import check_integrity
from fibred.domain.edge_path import reverse_case
from fibred.domain.graph import Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import (
    IntegrityError,
    MapDefinitionError,
    PathSyntaxError,
    SurfaceDefinitionError,
    UnknownEdgeError,
)
from fibred.io.parser import CONJUGATIONS, SEPARATORS, PathParser

logger = logging.getLogger(__name__)

_RESERVED = SEPARATORS | CONJUGATIONS | frozenset("'(),=")


@dataclass(frozen=True)
class EdgeSpec:
    """Description of one edge of a surface to build.

    The cyclic order at each endpoint comes from an explicit order index, or
    from a tangent direction (its angle), or else from the order in which the
    edges are listed.

    Attributes:
        name: Lowercase edge name
        source: Name of the start vertex
        target: Name of the end vertex
        image: Image word, e.g. ``"a B c"``
        order_start: Explicit position in the cyclic order at the source
        order_end: Explicit position in the cyclic order at the target
        start_direction: Tangent vector of the edge leaving its source
        end_direction: Tangent vector of the edge leaving its target backwards
    """

    name: str
    source: str
    target: str
    image: str
    order_start: float | None = None
    order_end: float | None = None
    start_direction: tuple[float, float] | None = None
    end_direction: tuple[float, float] | None = None


def build_surface(
    specs: Iterable[EdgeSpec],
    peripheral: Iterable[str] = (),
    name: str = "fibred surface",
    validate: bool = True,
    prefix_depth: int = 4,
) -> FibredSurface:
    """Build a fibred surface.

    Args:
        specs: Edge descriptions
        peripheral: Names of the edges of the peripheral subgraph
        name: Name of the surface
        validate: Run the integrity checks on the result
        prefix_depth: Prefix depth of the cyclic-order check

    Returns:
        The new surface with vertex images induced by the edge images

    Raises:
        SurfaceDefinitionError: If the description is not a valid fibred surface
    """
    specs = list(specs)
    if not specs:
        raise SurfaceDefinitionError(name, "no edges given")

    surface = FibredSurface(name)
    vertices: dict[str, Vertex] = {}
    counters: dict[str, float] = defaultdict(float)

    def vertex(vertex_name: str) -> Vertex:
        if vertex_name not in vertices:
            vertices[vertex_name] = surface.add_vertex(vertex_name)
        return vertices[vertex_name]

    def order_index(
        vertex_name: str, explicit: float | None, direction: tuple[float, float] | None
    ) -> float:
        if explicit is not None:
            return float(explicit)
        if direction is not None:
            return math.atan2(direction[1], direction[0])
        value = counters[vertex_name]
        counters[vertex_name] += 1
        return value

    for spec in specs:
        _check_edge_name(spec.name, surface, name)
        start = order_index(spec.source, spec.order_start, spec.start_direction)
        end = order_index(spec.target, spec.order_end, spec.end_direction)
        surface.add_edge(
            vertex(spec.source),
            vertex(spec.target),
            name=spec.name,
            order_index_start=start,
            order_index_end=end,
        )

    parser = PathParser(surface.letters())
    for edge, spec in zip(surface.edges, specs):
        try:
            edge.path = parser.parse(spec.image)
        except (PathSyntaxError, UnknownEdgeError) as e:
            raise SurfaceDefinitionError(name, f"image of {spec.name}: {e}") from e

    try:
        images = induced_vertex_images(surface)
    except MapDefinitionError as e:
        raise SurfaceDefinitionError(name, str(e)) from e
    for junction, image in images.items():
        junction.image = image

    for edge_name in peripheral:
        matches = [edge for edge in surface.edges if edge.name == edge_name]
        if not matches:
            raise SurfaceDefinitionError(name, f"unknown peripheral edge '{edge_name}'")
        surface.peripheral.add(matches[0])

    if validate:
        try:
            check_integrity(surface, prefix_depth)
        except IntegrityError as e:
            raise SurfaceDefinitionError(name, str(e)) from e

    logger.debug(
        "Built surface %s: %d vertices, %d edges, %d peripheral",
        name,
        len(surface.vertices),
        len(surface.edges),
        len(surface.peripheral),
    )
    return surface


def rose_spine(
    images: Mapping[str, str],
    peripheral: Iterable[str] = (),
    name: str = "rose",
    validate: bool = True,
) -> FibredSurface:
    """Build a rose: one vertex with a loop per edge.

    Args:
        images: Image word of every edge, e.g. ``{"a": "a b", "b": "a"}``
        peripheral: Names of peripheral loops
        name: Name of the surface
        validate: Run the integrity checks on the result

    Returns:
        The surface; the loops leave the vertex as ``a, b, ...`` and return
        as ``A, B, ...``, so two loops span a once-punctured torus
    """
    count = len(images)
    specs = [
        EdgeSpec(edge_name, "v", "v", word, float(i), float(count + i))
        for i, (edge_name, word) in enumerate(images.items())
    ]
    return build_surface(specs, peripheral, name, validate)


def _check_edge_name(edge_name: str, surface: FibredSurface, source: str) -> None:
    if not edge_name or reverse_case(edge_name) == edge_name:
        raise SurfaceDefinitionError(source, f"edge name '{edge_name}' needs a letter")
    if edge_name != edge_name.lower():
        raise SurfaceDefinitionError(source, f"edge name '{edge_name}' must be lowercase")
    if any(char in _RESERVED for char in edge_name):
        raise SurfaceDefinitionError(source, f"edge name '{edge_name}' contains an operator")
    if surface.has_edge_name(edge_name):
        raise SurfaceDefinitionError(source, f"edge name '{edge_name}' is used twice")

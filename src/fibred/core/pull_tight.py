"""Pulling the graph map tight.

Two kinds of looseness are removed:

- backtracks ``... e E ...`` inside an image path, which are cancelled
- extremal vertices, where every outgoing edge starts its image with the same
  edge; that first edge is stripped from every image at the vertex and the
  vertex image advances along it
"""

import logging
from dataclasses import dataclass, field

from fibred.domain.edge_point import EdgePoint
from fibred.domain.graph import OrientedEdge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import IterationLimitError

logger = logging.getLogger(__name__)


@dataclass
class LoosePosition:
    """Where pulling tight along one oriented edge would change the map.

    Attributes:
        edge: The edge that would be pulled
        backtracks: Backtracks whose direction after the turn is ``edge``
        extremal_vertices: Extremal vertices whose edges all start with ``edge``
    """

    edge: OrientedEdge
    backtracks: list[EdgePoint] = field(default_factory=list)
    extremal_vertices: list[Vertex] = field(default_factory=list)

    def describe(self) -> str:
        parts = []
        if self.extremal_vertices:
            names = ", ".join(vertex.name for vertex in self.extremal_vertices)
            parts.append(f"extremal vertex {names}")
        if self.backtracks:
            parts.append(f"{len(self.backtracks)} backtrack(s)")
        return f"Tighten along {self.edge.name}: " + " and ".join(parts)


def extremal_vertices(surface: FibredSurface, edge: OrientedEdge | None = None) -> list[Vertex]:
    """Vertices whose whole star maps to a single direction.

    Args:
        surface: The surface
        edge: Only report vertices whose star maps to this edge

    Returns:
        The extremal vertices
    """
    result = []
    for vertex in surface.vertices:
        star = surface.star(vertex)
        if not star:
            continue
        first = star[0].dg
        if first is None or (edge is not None and first != edge):
            continue
        if all(oriented.dg == first for oriented in star):
            result.append(vertex)
    return result


def backtracks(surface: FibredSurface, edge: OrientedEdge | None = None) -> list[EdgePoint]:
    """Points where an image path immediately returns along the same edge."""
    result = []
    for strip in surface.edges:
        letters = list(strip.path)
        for index in range(1, len(letters)):
            after = letters[index]
            if letters[index - 1].reversed() != after:
                continue
            if edge is None or after == edge:
                result.append(EdgePoint(strip.forward, index))
    return result


def loose_positions(surface: FibredSurface) -> list[LoosePosition]:
    """Loose positions grouped by the edge that would be pulled."""
    positions: dict[OrientedEdge, LoosePosition] = {}
    for vertex in extremal_vertices(surface):
        edge = surface.star(vertex)[0].dg
        positions.setdefault(edge, LoosePosition(edge)).extremal_vertices.append(vertex)
    for point in backtracks(surface):
        edge = point.dg_after()
        positions.setdefault(edge, LoosePosition(edge)).backtracks.append(point)
    return list(positions.values())


def pull_tight_extremal_vertex(surface: FibredSurface, vertex: Vertex) -> None:
    """Strip the common first edge from the images of the vertex's star."""
    image: Vertex | None = None
    for oriented in surface.star(vertex):
        oriented.set_path(oriented.path.skip(1))
        if image is None and oriented.dg is not None:
            image = oriented.dg.source
    vertex.image = image
    logger.debug("Pulled tight extremal vertex %s", vertex.name)


def pull_tight_backtrack(
    surface: FibredSurface, point: EdgePoint, update_points: list[EdgePoint] | None = None
) -> None:
    """Cancel the backtrack at ``point``.

    Args:
        surface: The surface
        point: Position between the two cancelling letters
        update_points: Points on the same edge, moved to their new position
    """
    edge = point.edge
    path = edge.path
    index = point.index
    edge.set_path(path.take(index - 1).concat(path.skip(index + 1)))
    for k, other in enumerate(update_points or []):
        aligned = other.aligned_index(edge)
        if aligned is None:
            continue
        position, reverse = aligned
        if position >= index + 1:
            position -= 2
        elif position >= index:
            position -= 1
        moved = EdgePoint(edge, position)
        update_points[k] = moved.reversed() if reverse else moved
    logger.debug("Cancelled backtrack on %s at %d", edge.name, index)


def pull_tight_all(surface: FibredSurface, edge: OrientedEdge | None = None) -> int:
    """Pull tight until nothing is loose.

    Args:
        surface: The surface
        edge: Only pull along this edge

    Returns:
        Number of elementary tightenings performed

    Raises:
        IterationLimitError: If the map is still loose after as many steps as
            the total image length plus the number of vertices
    """
    limit = sum(len(strip.path) for strip in surface.edges) + len(surface.vertices)
    changes = 0
    for _ in range(limit + 1):
        vertices = extremal_vertices(surface, edge)
        if vertices:
            pull_tight_extremal_vertex(surface, vertices[0])
            changes += 1
            continue
        points = backtracks(surface, edge)
        if points:
            pull_tight_backtrack(surface, points[0])
            changes += 1
            continue
        return changes
    raise IterationLimitError("Pulling tight", limit)

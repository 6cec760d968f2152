"""Splitting and folding edges.

- split: subdivide an edge at a point of its image, creating a new vertex
- fold: identify edges with the same source and the same image into one
- fold initial segments: split edges sharing an image prefix at the end of
  that prefix and fold the resulting initial pieces

Every move rewrites the images of all other edges so that they stay
continuous, and moves the given edge points along with the graph.
"""

import logging
from collections.abc import Sequence

from fibred.domain.edge_path import FlatPath
from fibred.domain.edge_point import EdgePoint
from fibred.domain.graph import OrientedEdge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import AlgorithmError
from fibred.utils.cyclic import sort_connected_set

logger = logging.getLogger(__name__)


def shared_initial_segment(edges: Sequence[OrientedEdge]) -> int:
    """Length of the longest common prefix of the edges' images."""
    if not edges:
        return 0
    paths = [list(edge.path) for edge in edges]
    length = min(len(path) for path in paths)
    for index in range(length):
        letter = paths[0][index]
        if any(path[index] != letter for path in paths[1:]):
            return index
    return length


def split_names(surface: FibredSurface, name: str) -> tuple[str, str]:
    """Names for the two pieces of a split edge.

    ``x`` splits into ``x1`` and ``x2``, ``x1`` into ``x1-`` and ``x1+``, and
    ``x2`` into ``x2`` and ``x3``; taken names fall back to fresh ones.
    """
    original = name.lower()
    used = surface.used_names()
    if original.endswith("2"):
        first = original
        second = original[:-1] + "3"
        if second in used:
            second = original[:-1] + "4"
        if second in used:
            second = surface.next_edge_name()
        return first, second
    if original.endswith("1"):
        second = original + "+"
        if second in used:
            second = surface.next_edge_name()
        return original + "-", second
    first = original + "1"
    if first in used:
        fresh = surface.next_edge_name()
        return fresh + "1", fresh + "2"
    for second in (original + "2", original + "3", original + "2+"):
        if second not in used:
            return first, second
    return first, surface.next_edge_name()


def split_edge(
    surface: FibredSurface,
    point: EdgePoint,
    update_points: list[EdgePoint] | None = None,
) -> tuple[OrientedEdge, OrientedEdge]:
    """Subdivide an edge at an interior point of its image.

    Args:
        surface: The surface
        point: Where to split; ``0 < point.index < len(point.edge.path)``
        update_points: Edge points moved onto the new edges (in place)

    Returns:
        The two pieces, oriented like ``point.edge``

    Raises:
        AlgorithmError: If the point is not interior
    """
    split = point.edge
    edge = split.edge
    length = len(edge.path)
    if not 0 < point.index < length:
        raise AlgorithmError(
            "Split", f"cannot split {split.name} at {point.index}, its image has length {length}"
        )
    forward_index = length - point.index if split.reverse else point.index
    new_vertex = surface.add_vertex(image=point.image)
    first_name, second_name = split_names(surface, edge.name)
    position = surface.edges.index(edge)
    second = surface.add_edge(
        new_vertex,
        edge.target,
        edge.path.skip(forward_index),
        second_name,
        1.0,
        edge.order_index_end,
        edge in surface.peripheral,
        position,
    )
    first = surface.add_edge(
        edge.source,
        new_vertex,
        edge.path.take(forward_index),
        first_name,
        edge.order_index_start,
        0.0,
        edge in surface.peripheral,
        position,
    )
    if split.reverse:
        pieces = (second.reversed(), first.reversed())
    else:
        pieces = (first.forward, second.forward)

    if update_points:
        _move_points_onto_pieces(update_points, split, point.index, pieces)
        for k, other in enumerate(update_points):
            crossings = sum(
                1 for letter in other.edge.path.take(other.index) if letter.edge is edge
            )
            if crossings:
                update_points[k] = EdgePoint(other.edge, other.index + crossings)

    surface.remove_edge(edge)
    forward = FlatPath((first.forward, second.forward))
    backward = FlatPath((second.reversed(), first.reversed()))
    surface.substitute({edge.forward: forward, edge.reversed(): backward})
    logger.debug(
        "Split %s at %d into %s and %s", split.name, point.index, pieces[0].name, pieces[1].name
    )
    return pieces


def _move_points_onto_pieces(
    points: list[EdgePoint],
    split: OrientedEdge,
    index: int,
    pieces: tuple[OrientedEdge, OrientedEdge],
) -> None:
    for k, other in enumerate(points):
        if other.edge != split and other.edge != split.reversed():
            continue
        aligned = EdgePoint(split, index).aligned_index(other.edge)
        split_index, reverse = aligned
        if other.index < split_index:
            target = pieces[1].reversed() if reverse else pieces[0]
            points[k] = EdgePoint(target, other.index)
        else:
            target = pieces[0].reversed() if reverse else pieces[1]
            points[k] = EdgePoint(target, other.index - split_index)


def preferred_edge_candidates(
    surface: FibredSurface, edges: Sequence[OrientedEdge]
) -> list[OrientedEdge]:
    """Edges to keep when folding, best first.

    Middle edges of the folded range are preferred, then edges ending at a
    vertex of lower valence, then edges whose name ends in a letter.
    """
    count = len(edges)

    def badness(item: tuple[int, OrientedEdge]) -> float:
        index, edge = item
        score = abs(index - count / 2) / count
        score += surface.valence(edge.target) / (count + 1)
        if not edge.name[-1].isalpha():
            score += 1 / count
        return score

    return [edge for _, edge in sorted(enumerate(edges), key=badness)]


def fold_edges(
    surface: FibredSurface,
    edges: Sequence[OrientedEdge],
    update_points: list[EdgePoint] | None = None,
    preferred: OrientedEdge | None = None,
) -> OrientedEdge:
    """Identify edges with a common source and equal images.

    The edges must be adjacent in the cyclic order at their source. Their
    targets are merged into the target of the remaining edge.

    Args:
        surface: The surface
        edges: Edges to fold
        update_points: Edge points moved onto the remaining edge (in place)
        preferred: The edge to keep (chosen by heuristic if None)

    Returns:
        The remaining edge

    Raises:
        AlgorithmError: If the edges cannot be folded
    """
    if not edges:
        raise AlgorithmError("Fold", "no edges to fold")
    if len(edges) == 1:
        return edges[0]
    path = edges[0].path
    if any(edge.path != path for edge in edges[1:]):
        raise AlgorithmError(
            "Fold", f"edges {', '.join(e.name for e in edges)} do not have the same image"
        )
    source = edges[0].source
    if any(edge.source is not source for edge in edges):
        raise AlgorithmError("Fold", "edges to fold do not have the same source")
    star = surface.star_ordered(source)
    ordered = sort_connected_set(star, edges)
    if set(ordered) != set(edges):
        raise AlgorithmError(
            "Fold", f"edges {', '.join(e.name for e in edges)} are not adjacent at {source}"
        )
    if preferred is None or preferred not in ordered:
        preferred = preferred_edge_candidates(surface, ordered)[0]
    remaining = preferred
    folded = [edge for edge in ordered if edge != remaining]
    new_name = (
        remaining.edge.name if remaining.edge.name[-1].isalpha() else surface.next_edge_name()
    )

    for k, other in enumerate(update_points or []):
        for edge in ordered:
            aligned = other.aligned_index(edge)
            if aligned is None:
                continue
            position, reverse = aligned
            moved = EdgePoint(remaining, position)
            update_points[k] = moved.reversed() if reverse else moved
            break

    new_star = [remaining.reversed()]
    reversed_folded = {edge.reversed() for edge in ordered}
    targets: list[Vertex] = []
    for edge in ordered:
        if edge.target not in targets:
            targets.append(edge.target)
    for target in targets:
        local = surface.star_ordered(target)
        outer = [oriented for oriented in local if oriented not in reversed_folded]
        if outer:
            new_star.extend(sort_connected_set(local, outer))
    _merge_vertices(surface, new_star, remaining.target)

    surface.substitute(
        {
            **{edge: remaining for edge in folded},
            **{edge.reversed(): remaining.reversed() for edge in folded},
        }
    )
    for edge in folded:
        surface.remove_edge(edge.edge)
    remaining.edge.name = new_name
    logger.debug(
        "Folded %s into %s", ", ".join(edge.name for edge in folded), remaining.name
    )
    return remaining


def _merge_vertices(
    surface: FibredSurface, new_star: list[OrientedEdge], new_vertex: Vertex
) -> None:
    """Make ``new_vertex`` the common source of ``new_star``, in that order."""
    merged = {oriented.source for oriented in new_star}
    for oriented in surface.oriented_edges():
        if oriented.source in merged:
            oriented.set_source(new_vertex)
    for vertex in merged:
        if vertex is not new_vertex:
            surface.vertices.remove(vertex)
    surface.remap_images({vertex: new_vertex for vertex in merged})
    for index, oriented in enumerate(new_star):
        oriented.set_order_index_start(float(index))


def fold_initial_segment(
    surface: FibredSurface,
    edges: Sequence[OrientedEdge],
    length: int | None = None,
    update_points: list[EdgePoint] | None = None,
    preferred_index: int | None = None,
) -> OrientedEdge:
    """Fold the first ``length`` image letters of the given edges.

    Each edge whose image is longer than ``length`` is split there first; the
    far piece takes back the edge's name when it is free.

    Args:
        surface: The surface
        edges: Edges with a common image prefix of at least ``length`` letters
        length: Prefix length (the whole shared prefix if None)
        update_points: Edge points moved along (in place)
        preferred_index: Index into ``edges`` of the edge whose piece is kept

    Returns:
        The folded edge

    Raises:
        AlgorithmError: If the edges share no prefix
    """
    if length is None:
        length = shared_initial_segment(edges)
    if length <= 0:
        raise AlgorithmError(
            "Fold", f"edges {', '.join(e.name for e in edges)} share no initial segment"
        )
    points = update_points if update_points is not None else []
    base = len(points)
    points.extend(EdgePoint(edge, length) for edge in edges)
    tracked = len(points)
    renames: dict[str, OrientedEdge] = {}
    for k in range(len(edges)):
        point = points[base + k]
        edge = point.edge
        if point.index == len(edge.path):
            points.append(EdgePoint(edge, 0))
            continue
        old_name = edge.edge.name
        first, second = split_edge(surface, point, points)
        points.append(EdgePoint(first, 0))
        preferred_name = old_name.rstrip("2")
        if preferred_name and not surface.has_edge_name(preferred_name):
            renames[preferred_name] = second
    for name, piece in renames.items():
        if piece.edge in surface.edges and not surface.has_edge_name(name):
            piece.edge.name = name
    segments = [point.edge for point in points[tracked:]]
    del points[base:]
    preferred = segments[preferred_index] if preferred_index is not None else None
    return fold_edges(surface, segments, update_points, preferred)

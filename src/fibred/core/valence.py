"""Removing vertices of valence one and two."""

import logging

from fibred.core.analysis import perron_frobenius, pre_periphery
from fibred.domain.edge_path import EdgePath
from fibred.domain.graph import OrientedEdge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import AlgorithmError

logger = logging.getLogger(__name__)


def valence_one_vertices(surface: FibredSurface) -> list[Vertex]:
    return [vertex for vertex in surface.vertices if surface.valence(vertex) == 1]


def remove_valence_one_vertex(surface: FibredSurface, vertex: Vertex) -> None:
    """Delete a leaf together with its edge.

    Raises:
        AlgorithmError: If the vertex does not have valence one
    """
    star = surface.star(vertex)
    if len(star) != 1:
        raise AlgorithmError(
            "Valence one", f"{vertex.name} has valence {len(star)}, not 1"
        )
    removed = star[0]
    other = removed.target
    surface.remove_vertex(vertex)
    surface.replace_in_paths(lambda letter: None if letter.edge is removed.edge else letter)
    surface.remap_images({vertex: other})
    logger.debug("Removed valence-one vertex %s with edge %s", vertex.name, removed.name)


def valence_two_vertices(surface: FibredSurface) -> list[Vertex]:
    """Vertices of valence two that are not the base of a single loop."""
    result = []
    for vertex in surface.vertices:
        star = surface.star(vertex)
        if len(star) == 2 and star[0] != star[1].reversed():
            result.append(vertex)
    return result


def remove_valence_two_vertex(
    surface: FibredSurface, vertex: Vertex, removed: OrientedEdge | None = None
) -> OrientedEdge:
    """Splice the two edges at a valence-two vertex into one.

    The discarded edge is one in the pre-periphery if there is one, and
    otherwise the one of smaller width.

    Args:
        surface: The surface
        vertex: The valence-two vertex
        removed: The edge to discard (chosen as above if None)

    Returns:
        The new edge, oriented away from the far end of the discarded edge

    Raises:
        AlgorithmError: If the vertex does not have valence two or carries a loop
    """
    star = surface.star(vertex)
    if len(star) != 2:
        raise AlgorithmError(
            "Valence two", f"{vertex.name} has valence {len(star)}, not 2"
        )
    if star[0] == star[1].reversed():
        raise AlgorithmError("Valence two", f"{vertex.name} is the base of the loop {star[0].name}")

    if removed is None:
        removed = _choose_removed(surface, star)
    elif removed.edge is star[0].edge:
        removed = star[0]
    elif removed.edge is star[1].edge:
        removed = star[1]
    else:
        raise AlgorithmError("Valence two", f"{removed.name} does not end at {vertex.name}")
    kept = star[1] if removed == star[0] else star[0]
    enlarged = removed.target

    name = kept.edge.name
    if name.lower().startswith(removed.edge.name.lower()):
        name = removed.edge.name
    path: EdgePath = removed.path.inverse().concat(kept.path)
    position = surface.edges.index(kept.edge)
    peripheral = kept.edge in surface.peripheral
    if kept.reverse:
        new_edge = surface.add_edge(
            kept.target,
            enlarged,
            path.inverse(),
            name,
            kept.order_index_end,
            removed.order_index_end,
            peripheral,
            position,
        )
        new = new_edge.reversed()
    else:
        new_edge = surface.add_edge(
            enlarged,
            kept.target,
            path,
            name,
            removed.order_index_end,
            kept.order_index_end,
            peripheral,
            position,
        )
        new = new_edge.forward

    surface.remove_vertex(vertex)
    surface.substitute(
        {
            removed: None,
            removed.reversed(): None,
            kept: new,
            kept.reversed(): new.reversed(),
        }
    )
    surface.remap_images({vertex: enlarged})
    logger.debug(
        "Removed valence-two vertex %s: dropped %s, %s is now %s",
        vertex.name,
        removed.name,
        kept.name,
        new.name,
    )
    return new


def _choose_removed(surface: FibredSurface, star: list[OrientedEdge]) -> OrientedEdge:
    prefix = pre_periphery(surface)
    for oriented in star:
        if oriented.edge in prefix:
            return oriented
    widths = perron_frobenius(surface).widths
    first = widths.get(star[0].edge, 0.0)
    second = widths.get(star[1].edge, 0.0)
    return star[0] if first < second else star[1]

"""Structural invariants of a fibred surface.

``check_integrity`` runs after every move of the algorithm. A failure means
that a move produced an inconsistent surface, which is never the user's fault.
"""

import logging
from collections import defaultdict

from fibred.domain.surface import FibredSurface
from fibred.exceptions import IntegrityError
from fibred.utils.cyclic import is_connected_set

logger = logging.getLogger(__name__)


def check_integrity(surface: FibredSurface, prefix_depth: int = 4) -> None:
    """Verify all invariants of the surface.

    Args:
        surface: The surface to check
        prefix_depth: Check cyclic-order contiguity for image prefixes
            shorter than this

    Raises:
        IntegrityError: On the first violated invariant
    """
    check_graph(surface)
    check_names(surface)
    check_continuity(surface)
    check_vertex_images(surface)
    check_cyclic_order(surface, prefix_depth)


def check_graph(surface: FibredSurface) -> None:
    vertices = set(surface.vertices)
    for edge in surface.edges:
        if edge.source not in vertices or edge.target not in vertices:
            raise IntegrityError("graph", f"edge {edge.name} has an endpoint outside of the graph")
        if edge.is_loop and not edge.path:
            raise IntegrityError("non-degenerate loops", f"the loop {edge.name} maps to a vertex")
    for vertex in surface.vertices:
        if vertex.image is not None and vertex.image not in vertices:
            raise IntegrityError("graph", f"vertex {vertex} maps to a removed vertex")
    stray = [edge.name for edge in surface.peripheral if edge not in set(surface.edges)]
    if stray:
        raise IntegrityError("graph", f"peripheral edges {stray} are not in the graph")


def check_names(surface: FibredSurface) -> None:
    seen: set[str] = set()
    for oriented in surface.oriented_edges():
        if oriented.name in seen:
            raise IntegrityError("unique names", f"the name {oriented.name} is used twice")
        seen.add(oriented.name)
    vertex_names = [vertex.name for vertex in surface.vertices]
    if len(set(vertex_names)) != len(vertex_names):
        raise IntegrityError("unique names", "two vertices share a name")


def check_continuity(surface: FibredSurface) -> None:
    for edge in surface.edges:
        letters = list(edge.path)
        for index in range(1, len(letters)):
            if letters[index - 1].target is not letters[index].source:
                raise IntegrityError(
                    "continuity",
                    f"g({edge.name}) = {edge.path} breaks between "
                    f"{letters[index - 1].name} and {letters[index].name}",
                )


def check_vertex_images(surface: FibredSurface) -> None:
    for vertex in surface.vertices:
        for oriented in surface.star(vertex):
            dg = oriented.dg
            if dg is not None and dg.source is not vertex.image:
                raise IntegrityError(
                    "vertex images",
                    f"{vertex} maps to {vertex.image} but g({oriented.name}) "
                    f"starts at {dg.source}",
                )


def check_cyclic_order(surface: FibredSurface, prefix_depth: int = 4) -> None:
    """Edges whose images share a prefix must be adjacent in the star."""
    for vertex in surface.vertices:
        star = surface.star_ordered(vertex)
        for length in range(1, prefix_depth):
            groups: dict[tuple, list] = defaultdict(list)
            for oriented in star:
                prefix = tuple(oriented.path.take(length))
                if len(prefix) == length:
                    groups[prefix].append(oriented)
            for prefix, members in groups.items():
                if len(members) > 1 and not is_connected_set(star, members):
                    names = ", ".join(member.name for member in members)
                    raise IntegrityError(
                        "cyclic order",
                        f"edges {{{names}}} at {vertex} share the image prefix "
                        f"{' '.join(letter.name for letter in prefix)} but are not adjacent",
                    )

"""Invariant subforests and their collapse.

A subforest is periphery-friendly when each of its components meets the
peripheral subgraph in at most one vertex; collapsing such a forest keeps the
peripheral subgraph intact. Invariant subforests are found as orbits of single
edges under the graph map.
"""

import logging
from collections.abc import Collection, Iterable, Sequence

import networkx as nx

from fibred.domain.graph import Edge, OrientedEdge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import AlgorithmError

logger = logging.getLogger(__name__)


def edge_graph(edges: Iterable[Edge]) -> nx.MultiGraph:
    """The multigraph spanned by ``edges``, keyed by the edges themselves."""
    graph = nx.MultiGraph()
    for edge in edges:
        graph.add_edge(edge.source, edge.target, key=edge)
    return graph


def forest_components(edges: Iterable[Edge]) -> list[list[Edge]]:
    """Edge sets of the connected components spanned by ``edges``."""
    graph = edge_graph(edges)
    components = []
    for nodes in nx.connected_components(graph):
        component = [key for _, _, key in graph.subgraph(nodes).edges(keys=True)]
        if component:
            components.append(component)
    return components


def is_periphery_friendly_forest(
    surface: FibredSurface,
    edges: Iterable[Edge],
    peripheral: Collection[Edge] | None = None,
    remove_peripheral: bool = False,
    touching: bool = False,
) -> bool:
    """Whether ``edges`` form a forest meeting the periphery at most once per component.

    Args:
        surface: The surface
        edges: Edges of the subgraph
        peripheral: The peripheral subgraph (the surface's own if None)
        remove_peripheral: Drop peripheral edges from ``edges`` first
        touching: Require every component to meet the periphery exactly once

    Returns:
        True if the subgraph is a periphery-friendly forest; an empty
        subgraph is not a forest
    """
    if peripheral is None:
        peripheral = surface.peripheral
    edges = list(edges)
    if remove_peripheral:
        edges = [edge for edge in edges if edge not in peripheral]
    graph = edge_graph(edges)
    if graph.number_of_nodes() == 0 or not nx.is_forest(graph):
        return False
    peripheral_vertices = FibredSurface.vertices_of(peripheral)
    for nodes in nx.connected_components(graph):
        meeting = len(nodes & peripheral_vertices)
        if meeting > 1 or (touching and meeting != 1):
            return False
    return True


def invariant_subforests(surface: FibredSurface) -> list[list[Edge]]:
    """Maximal periphery-friendly forests that are orbits of single edges.

    An orbit containing an earlier subforest replaces it.
    """
    found: dict[Edge, set[Edge]] = {}
    for edge in surface.edges:
        if any(edge in forest for forest in found.values()):
            continue
        orbit = surface.orbit_of_edge(edge)
        if not is_periphery_friendly_forest(surface, orbit):
            continue
        for key in [key for key in found if key in orbit]:
            del found[key]
        found[edge] = orbit
    return [
        [edge for edge in surface.edges if edge in forest] for forest in found.values()
    ]


def collapse_component(surface: FibredSurface, edges: Collection[Edge], center: Vertex) -> None:
    """Contract one tree of a subforest into ``center``.

    Edges hanging off the tree are pulled toward the center one tree edge at a
    time. Their images are prolonged by the inverse image of the tree edge and
    their order indices are spread into the gap the tree edge occupied at its
    parent, so that the cyclic order at the center stays that of the tree's
    boundary.

    Raises:
        AlgorithmError: If the edges contain a cycle or the resulting cyclic
            order is inconsistent
    """
    if not nx.is_forest(edge_graph(edges)):
        names = ", ".join(edge.name for edge in edges)
        raise AlgorithmError("Collapse", f"{{{names}}} contains a cycle")
    component = set(edges)

    def pull(
        junction: Vertex, toward_center: OrientedEdge | None, width: float
    ) -> list[OrientedEdge]:
        full = surface.star_ordered(junction)
        star = surface.star_ordered(junction, toward_center, drop_first=toward_center is not None)
        new_star: list[OrientedEdge] = []
        for child in star:
            if child.edge not in component:
                new_star.append(child)
                continue
            position = full.index(child)
            if position + 1 < len(full):
                child_width = full[position + 1].order_index_start - child.order_index_start
            else:
                child_width = 2.0
            if child_width <= 0:
                child_width = 2.0
            grandchild = child.reversed()
            new_star.extend(pull(grandchild.source, grandchild, child_width))

        expected = surface.star_ordered(
            junction, toward_center, drop_first=toward_center is not None
        )
        if new_star != expected:
            raise AlgorithmError(
                "Collapse",
                f"star of {junction.name} is {', '.join(e.name for e in expected)}, "
                f"expected {', '.join(e.name for e in new_star)}",
            )
        if toward_center is None:
            return new_star

        prefix = toward_center.path.inverse()
        for oriented in new_star:
            oriented.set_path(prefix.concat(oriented.path))
        scale = width / len(new_star) if new_star else 0.0
        parent = toward_center.target
        start = toward_center.order_index_end
        for index, oriented in enumerate(new_star):
            oriented.set_source(parent)
            oriented.set_order_index_start(start + scale * index)
        surface.remove_edge(toward_center.edge)
        return new_star

    pull(center, None, 1.0)


def collapse_subforest(
    surface: FibredSurface,
    edges: Iterable[Edge],
    centers: Sequence[Vertex | None] | None = None,
) -> list[Vertex]:
    """Collapse every component of a subforest to a single vertex.

    Args:
        surface: The surface
        edges: Edges of the subforest
        centers: Chosen center per component (largest valence if None)

    Returns:
        The centers, one per component
    """
    edges = list(edges)
    forest = set(edges)
    components = forest_components(edges)
    component_vertices = [FibredSurface.vertices_of(component) for component in components]
    absorbed_images = [
        next(vertex for vertex in surface.vertices if vertex in vertices).image
        for vertices in component_vertices
    ]

    chosen: list[Vertex] = []
    for index, component in enumerate(components):
        vertices = component_vertices[index]
        center = centers[index] if centers is not None and index < len(centers) else None
        if center is None or center not in vertices:
            center = max(
                (vertex for vertex in surface.vertices if vertex in vertices),
                key=surface.valence,
            )
        chosen.append(center)
        collapse_component(surface, component, center)
        for vertex in vertices:
            if vertex is not center:
                surface.remove_vertex(vertex)
        logger.debug(
            "Collapsed {%s} into %s", ", ".join(edge.name for edge in component), center.name
        )

    surface.replace_in_paths(lambda letter: None if letter.edge in forest else letter)
    mapping = {
        vertex: center for vertices, center in zip(component_vertices, chosen) for vertex in vertices
    }
    surface.remap_images(mapping)
    for center, image in zip(chosen, absorbed_images):
        center.image = mapping.get(image, image)
    return chosen

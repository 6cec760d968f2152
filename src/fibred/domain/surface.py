"""The fibred surface aggregate.

A fibred surface is a finite graph (a spine of a punctured surface) together
with a graph map. The surface owns its vertex and edge lists; everything else
(stars, oriented edges, boundary words) is derived from them. Name pools are
per-instance so that independent surfaces never influence each other.
"""

from collections import deque
from collections.abc import Collection, Iterable, Mapping
from typing import Any, ClassVar

from fibred.domain.edge_path import EMPTY, EdgePath, FlatPath, NamedPath, Substitution
from fibred.domain.graph import Edge, OrientedEdge, Vertex
from fibred.exceptions import AlgorithmError, IterationLimitError, UnknownEdgeError
from fibred.utils.cyclic import cyclic_shift

_LATIN_EDGE_NAMES = tuple("abcdxyzuhijklmno")
_GREEK_EDGE_NAMES = tuple("αβγδεζθκλμξπρστφψω")


class FibredSurface:
    """A graph with a graph map, modelling a surface homeomorphism on a spine.

    Attributes:
        name: Display name of the surface
        vertices: Vertices in creation order
        edges: Unoriented edges in creation order
        peripheral: Edges of the peripheral subgraph
    """

    EDGE_NAMES: ClassVar[tuple[str, ...]] = (
        _LATIN_EDGE_NAMES + _GREEK_EDGE_NAMES + tuple(f"e{i}" for i in range(1, 1001))
    )
    GREEK_EDGE_NAMES: ClassVar[tuple[str, ...]] = (
        _GREEK_EDGE_NAMES + tuple(f"ε{i}" for i in range(1, 1001))
    )
    VERTEX_NAMES: ClassVar[tuple[str, ...]] = (
        tuple("vwpqrst") + tuple(f"v{i}" for i in range(1, 1001))
    )

    def __init__(self, name: str = "fibred surface") -> None:
        self.name = name
        self.vertices: list[Vertex] = []
        self.edges: list[Edge] = []
        self.peripheral: set[Edge] = set()

    def __repr__(self) -> str:
        return (
            f"FibredSurface({self.name!r}, vertices={len(self.vertices)}, "
            f"edges={len(self.edges)})"
        )

    # -- construction ---------------------------------------------------

    def add_vertex(self, name: str | None = None, image: Vertex | None = None) -> Vertex:
        vertex = Vertex(name if name is not None else self.next_vertex_name(), image)
        self.vertices.append(vertex)
        return vertex

    def add_edge(
        self,
        source: Vertex,
        target: Vertex,
        path: EdgePath = EMPTY,
        name: str | None = None,
        order_index_start: float = 0.0,
        order_index_end: float = 0.0,
        peripheral: bool = False,
        position: int | None = None,
    ) -> Edge:
        """Create an edge and add it to the surface.

        Args:
            source: Start vertex
            target: End vertex
            path: Image path in forward orientation
            name: Edge name (next free name from the pool if None)
            order_index_start: Cyclic order position at the source
            order_index_end: Cyclic order position at the target
            peripheral: Whether the edge belongs to the peripheral subgraph
            position: Index in the edge list (appended if None)

        Returns:
            The new edge
        """
        edge = Edge(
            name if name is not None else self.next_edge_name(),
            source,
            target,
            path,
            order_index_start,
            order_index_end,
        )
        if position is None:
            self.edges.append(edge)
        else:
            self.edges.insert(position, edge)
        if peripheral:
            self.peripheral.add(edge)
        return edge

    def remove_edge(self, edge: Edge) -> None:
        self.edges.remove(edge)
        self.peripheral.discard(edge)

    def remove_vertex(self, vertex: Vertex) -> None:
        """Remove a vertex together with all edges incident to it."""
        for edge in [e for e in self.edges if e.source is vertex or e.target is vertex]:
            self.remove_edge(edge)
        self.vertices.remove(vertex)

    # -- lookup ---------------------------------------------------------

    def oriented_edges(self) -> list[OrientedEdge]:
        """All oriented edges: forward views first, then reversed views."""
        return [edge.forward for edge in self.edges] + [edge.reversed() for edge in self.edges]

    def letters(self) -> dict[str, OrientedEdge]:
        """Oriented edges by name, the alphabet of the path parser."""
        return {oriented.name: oriented for oriented in self.oriented_edges()}

    def edge_named(self, name: str) -> OrientedEdge:
        for edge in self.edges:
            if edge.name == name:
                return edge.forward
            if edge.reversed().name == name:
                return edge.reversed()
        raise UnknownEdgeError(name)

    def vertex_named(self, name: str) -> Vertex:
        for vertex in self.vertices:
            if vertex.name == name:
                return vertex
        raise KeyError(f"No vertex named '{name}'")

    def has_edge_name(self, name: str) -> bool:
        return name.lower() in self.used_names()

    def named_paths(self) -> list[NamedPath]:
        """Definitions occurring in the image paths, first occurrence per name."""
        seen: dict[str, NamedPath] = {}
        for edge in self.edges:
            for named in edge.path.named_paths():
                seen.setdefault(named.name, named)
        return list(seen.values())

    def used_names(self) -> set[str]:
        names = {edge.name.lower() for edge in self.edges}
        names.update(named.name.lower() for named in self.named_paths())
        return names

    def next_edge_name(self) -> str:
        return self._next_name(self.EDGE_NAMES, self.used_names(), "edge")

    def next_greek_edge_name(self) -> str:
        return self._next_name(self.GREEK_EDGE_NAMES, self.used_names(), "edge")

    def next_vertex_name(self) -> str:
        used = {vertex.name for vertex in self.vertices}
        return self._next_name(self.VERTEX_NAMES, used, "vertex")

    @staticmethod
    def _next_name(pool: Iterable[str], used: Collection[str], kind: str) -> str:
        for name in pool:
            if name not in used:
                return name
        raise AlgorithmError("Naming", f"ran out of {kind} names")

    # -- stars ----------------------------------------------------------

    def star(self, vertex: Vertex) -> list[OrientedEdge]:
        """Oriented edges starting at ``vertex``; a loop contributes both views."""
        star = []
        for edge in self.edges:
            if edge.source is vertex:
                star.append(edge.forward)
            if edge.target is vertex:
                star.append(edge.reversed())
        return star

    def star_ordered(
        self,
        vertex: Vertex,
        first: OrientedEdge | None = None,
        drop_first: bool = False,
    ) -> list[OrientedEdge]:
        """The star in cyclic order, optionally rotated to begin at ``first``."""
        star = sorted(self.star(vertex), key=lambda oriented: oriented.order_index_start)
        if first is None:
            return star
        try:
            start = star.index(first)
        except ValueError as e:
            raise AlgorithmError(
                "Cyclic order", f"{first} is not in the star of {vertex}"
            ) from e
        star = cyclic_shift(star, start)
        return star[1:] if drop_first else star

    def valence(self, vertex: Vertex) -> int:
        return len(self.star(vertex))

    def subgraph_star(self, edges: Collection[Edge]) -> list[OrientedEdge]:
        """Oriented edges leaving the subgraph spanned by ``edges``."""
        vertices = self.vertices_of(edges)
        return [
            oriented
            for oriented in self.oriented_edges()
            if oriented.source in vertices and oriented.edge not in edges
        ]

    @staticmethod
    def vertices_of(edges: Iterable[Edge]) -> set[Vertex]:
        vertices: set[Vertex] = set()
        for edge in edges:
            vertices.add(edge.source)
            vertices.add(edge.target)
        return vertices

    def peripheral_edges(self) -> list[Edge]:
        return [edge for edge in self.edges if edge in self.peripheral]

    def peripheral_vertices(self) -> set[Vertex]:
        return self.vertices_of(self.peripheral)

    # -- graph map ------------------------------------------------------

    def replace_in_paths(self, substitution: Substitution) -> None:
        """Apply a substitution to the image of every edge."""
        for edge in self.edges:
            edge.path = edge.path.replace(substitution)

    def substitute(self, mapping: Mapping[OrientedEdge, OrientedEdge | EdgePath | None]) -> None:
        """Replace letters by the given images in every edge's image path.

        Missing letters stay as they are; letters mapped to None are dropped.
        """
        if not mapping:
            return
        self.replace_in_paths(lambda letter: mapping[letter] if letter in mapping else letter)

    def remap_images(self, mapping: Mapping[Vertex, Vertex]) -> None:
        for vertex in self.vertices:
            if vertex.image is not None and vertex.image in mapping:
                vertex.image = mapping[vertex.image]

    def orbit_of_edge(self, edge: Edge, full_orbit: Collection[Edge] = ()) -> set[Edge]:
        """Edges reached from ``edge`` by iterating the graph map.

        Args:
            edge: Starting edge
            full_orbit: Edges whose orbit is known to be the whole graph

        Returns:
            The forward orbit of ``edge`` as a set of unoriented edges
        """
        orbit = {edge}
        queue = deque([edge])
        while queue:
            current = queue.popleft()
            for letter in current.path:
                image = letter.edge
                if image in orbit:
                    continue
                if image in full_orbit:
                    return set(self.edges)
                orbit.add(image)
                queue.append(image)
        return orbit

    def boundary_words(self, edges: Collection[Edge] | None = None) -> list[EdgePath]:
        """Boundary words of the thickened graph, one per boundary component.

        Following the right-hand side of an edge ``e`` leads to the edge after
        ``e.reversed()`` in the cyclic order at the target of ``e``.

        Args:
            edges: Thicken only this subgraph, with the induced cyclic orders
        """
        chosen = set(self.edges if edges is None else edges)
        stars = {
            vertex: [o for o in self.star_ordered(vertex) if o.edge in chosen]
            for vertex in self.vertices
        }
        limit = 2 * len(self.edges)

        def following(oriented: OrientedEdge) -> OrientedEdge:
            star = stars[oriented.target]
            index = star.index(oriented.reversed())
            return star[(index + 1) % len(star)]

        words: list[EdgePath] = []
        seen: set[OrientedEdge] = set()
        for start in self.oriented_edges():
            if start in seen or start.edge not in chosen:
                continue
            word = [start]
            seen.add(start)
            current = following(start)
            while current != start:
                if len(word) > limit:
                    raise IterationLimitError("Boundary word", limit)
                word.append(current)
                seen.add(current)
                current = following(current)
            words.append(FlatPath(word))
        return words

    def peripheral_boundary_words(self) -> list[EdgePath]:
        return [
            word
            for word in self.boundary_words()
            if all(letter.edge in self.peripheral for letter in word)
        ]

    # -- copying --------------------------------------------------------

    def clone(self) -> "FibredSurface":
        """Deep copy of the surface; names, order indices and images are kept."""
        copy = FibredSurface(self.name)
        vertex_map = {vertex: Vertex(vertex.name) for vertex in self.vertices}
        for vertex, new_vertex in vertex_map.items():
            new_vertex.image = vertex_map.get(vertex.image) if vertex.image else None
        copy.vertices = list(vertex_map.values())
        edge_map = {
            edge: Edge(
                edge.name,
                vertex_map[edge.source],
                vertex_map[edge.target],
                EMPTY,
                edge.order_index_start,
                edge.order_index_end,
            )
            for edge in self.edges
        }

        def relabel(letter: Any) -> OrientedEdge:
            return OrientedEdge(edge_map[letter.edge], letter.reverse)

        for edge, new_edge in edge_map.items():
            new_edge.path = edge.path.relabel(relabel)
        copy.edges = list(edge_map.values())
        copy.peripheral = {edge_map[edge] for edge in self.peripheral}
        return copy

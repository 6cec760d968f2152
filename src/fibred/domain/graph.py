"""Vertices and edges of a fibred surface.

- Vertex: a junction, carrying the vertex it is mapped to
- Edge: an unoriented edge ("strip") with its image path under the graph map
- OrientedEdge: an edge read forward or backward; the alphabet of edge paths

Vertices and edges compare by identity. Oriented edges compare by
``(edge, orientation)``, so the two views of the same edge are distinct
letters but every forward view of an edge equals every other one.
"""

from dataclasses import dataclass, field

from fibred.domain.edge_path import EMPTY, EdgePath, reverse_case


@dataclass(eq=False)
class Vertex:
    """A junction of the fibred surface.

    Attributes:
        name: Display name, unique within a surface
        image: The vertex this one is mapped to by the graph map
    """

    name: str
    image: "Vertex | None" = field(default=None, repr=False)

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class Edge:
    """An unoriented edge together with its image under the graph map.

    The order indices place the edge in the cyclic order of edges around its
    source and its target; only their relative order at a vertex matters.

    Attributes:
        name: Lowercase display name, unique within a surface
        source: Start vertex
        target: End vertex
        path: Image of the edge, read in the forward orientation
        order_index_start: Position in the cyclic order at the source
        order_index_end: Position in the cyclic order at the target
    """

    name: str
    source: Vertex
    target: Vertex
    path: EdgePath = field(default=EMPTY, repr=False)
    order_index_start: float = 0.0
    order_index_end: float = 0.0

    @property
    def forward(self) -> "OrientedEdge":
        return OrientedEdge(self, False)

    def reversed(self) -> "OrientedEdge":
        return OrientedEdge(self, True)

    @property
    def is_loop(self) -> bool:
        return self.source is self.target

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class OrientedEdge:
    """An edge read in one of its two orientations."""

    edge: Edge
    reverse: bool = False

    @property
    def name(self) -> str:
        return reverse_case(self.edge.name) if self.reverse else self.edge.name

    @property
    def source(self) -> Vertex:
        return self.edge.target if self.reverse else self.edge.source

    @property
    def target(self) -> Vertex:
        return self.edge.source if self.reverse else self.edge.target

    @property
    def path(self) -> EdgePath:
        return self.edge.path.inverse() if self.reverse else self.edge.path

    @property
    def dg(self) -> "OrientedEdge | None":
        """Derivative of the graph map: the first edge of the image."""
        path = self.edge.path
        if not path:
            return None
        if self.reverse:
            return path[len(path) - 1].reversed()
        return path[0]

    @property
    def order_index_start(self) -> float:
        return self.edge.order_index_end if self.reverse else self.edge.order_index_start

    @property
    def order_index_end(self) -> float:
        return self.edge.order_index_start if self.reverse else self.edge.order_index_end

    @property
    def is_loop(self) -> bool:
        return self.edge.is_loop

    def reversed(self) -> "OrientedEdge":
        return OrientedEdge(self.edge, not self.reverse)

    def set_path(self, path: EdgePath) -> None:
        self.edge.path = path.inverse() if self.reverse else path

    def set_source(self, vertex: Vertex) -> None:
        if self.reverse:
            self.edge.target = vertex
        else:
            self.edge.source = vertex

    def set_target(self, vertex: Vertex) -> None:
        self.reversed().set_source(vertex)

    def set_order_index_start(self, value: float) -> None:
        if self.reverse:
            self.edge.order_index_end = value
        else:
            self.edge.order_index_start = value

    def set_order_index_end(self, value: float) -> None:
        self.reversed().set_order_index_start(value)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"OrientedEdge({self.name})"

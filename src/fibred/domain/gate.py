"""Gates: classes of directions identified by the iterated derivative."""

from collections.abc import Hashable
from dataclasses import dataclass, field

from fibred.domain.graph import OrientedEdge


@dataclass(eq=False)
class EdgeCycle:
    """A periodic orbit of the derivative and the edges attracted to it.

    Attributes:
        order: Period of the cycle
        attracted: Pairs ``(edge, distance)`` where distance is the number of
            derivative steps from the edge to the cycle's base edge, modulo
            the period for edges on the cycle
    """

    order: int
    attracted: list[tuple[OrientedEdge, int]] = field(default_factory=list)

    @property
    def base(self) -> OrientedEdge:
        return self.attracted[0][0]


@dataclass(eq=False)
class Gate:
    """Oriented edges at one vertex that are eventually mapped to the same edge.

    Attributes:
        key: Grouping key of the star the gate lives in (usually the vertex)
        edges: Member edges in discovery order
        cycle_distance: Distance of the first member into its cycle
    """

    key: Hashable
    edges: list[OrientedEdge] = field(default_factory=list)
    cycle_distance: int = 0

    def __contains__(self, edge: object) -> bool:
        return edge in self.edges

    def __len__(self) -> int:
        return len(self.edges)

    def __str__(self) -> str:
        return "{" + ", ".join(edge.name for edge in self.edges) + "}"

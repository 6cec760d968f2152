"""Points on image paths and the inefficiencies located at them."""

from dataclasses import dataclass, field

from fibred.domain.graph import OrientedEdge, Vertex


class EdgePoint:
    """A position between two letters of an oriented edge's image path.

    Index ``i`` lies between ``path[i - 1]`` and ``path[i]``. The same point
    viewed from the reversed edge has index ``len(path) - i``; both views
    compare equal.
    """

    __slots__ = ("edge", "index")

    def __init__(self, edge: OrientedEdge, index: int) -> None:
        self.edge = edge
        self.index = index

    @property
    def image(self) -> Vertex | None:
        """The vertex of the image path at this point."""
        path = self.edge.path
        if self.index < len(path):
            return path[self.index].source
        if path:
            return path[len(path) - 1].target
        return self.edge.source.image

    def dg_before(self) -> OrientedEdge | None:
        """Direction at the point pointing backwards along the image path."""
        if self.index <= 0:
            return None
        return self.edge.path[self.index - 1].reversed()

    def dg_after(self) -> OrientedEdge | None:
        """Direction at the point pointing forwards along the image path."""
        path = self.edge.path
        if self.index >= len(path):
            return None
        return path[self.index]

    def reversed(self) -> "EdgePoint":
        return EdgePoint(self.edge.reversed(), len(self.edge.path) - self.index)

    def aligned_index(self, edge: OrientedEdge) -> tuple[int, bool] | None:
        """Index of this point on ``edge`` and whether the views are opposite.

        Returns:
            ``(index, reversed)`` or None if the point is on another edge
        """
        if self.edge == edge:
            return self.index, False
        if self.edge == edge.reversed():
            return len(self.edge.path) - self.index, True
        return None

    def serialize(self) -> str:
        return f"{self.edge.name}@{self.index}"

    def _key(self) -> tuple[object, int]:
        if self.edge.reverse:
            return self.edge.edge, len(self.edge.path) - self.index
        return self.edge.edge, self.index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EdgePoint):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"EdgePoint({self.serialize()})"

    def __str__(self) -> str:
        path = self.edge.path
        before = path.take(self.index).to_string(12, 4)
        after = path.skip(self.index).to_string(12, 4)
        return f"point {self.index} on g({self.edge.name}) = {before} · {after}"


@dataclass(eq=False)
class Inefficiency:
    """An illegal turn inside an image path.

    Attributes:
        point: Position of the turn
        order: Number of derivative iterations until the two directions coincide
        edges_to_fold: Edges at the turn's vertex sharing the offending prefix
        initial_segment: Length of the shared prefix to fold
    """

    point: EdgePoint
    order: int
    edges_to_fold: list[OrientedEdge] = field(default_factory=list)
    initial_segment: int = 0

    @property
    def full_fold(self) -> bool:
        """Whether one of the folded edges is folded along its whole length."""
        return any(len(edge.path) == self.initial_segment for edge in self.edges_to_fold)

    @property
    def priority(self) -> float:
        return self.order + (0.0 if self.full_fold else 0.5)

    def describe(self) -> str:
        if self.order == 0:
            return f"Backtrack at {self.point}"
        edges = ", ".join(edge.name for edge in self.edges_to_fold)
        return (
            f"Inefficiency of order {self.order} at {self.point}: "
            f"fold {{{edges}}} along {self.initial_segment} edge(s)"
        )

    def __str__(self) -> str:
        return self.describe()

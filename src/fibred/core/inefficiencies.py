"""Detecting and removing inefficiencies (illegal turns).

An inefficiency is a point inside some image path where the directions
before and after the point lie in the same gate. Its order is the number of
derivative iterations until the two directions become the same edge. Folding
the edges at the turn along their common image prefix lowers the order by
exactly one; order zero is a backtrack and is pulled tight.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from fibred.core.folding import fold_initial_segment, shared_initial_segment, split_edge
from fibred.core.gates import find_gates, gate_lookup
from fibred.core.pull_tight import pull_tight_all
from fibred.domain.edge_point import EdgePoint, Inefficiency
from fibred.domain.gate import Gate
from fibred.domain.graph import OrientedEdge
from fibred.domain.surface import FibredSurface
from fibred.exceptions import AlgorithmError, IterationLimitError

logger = logging.getLogger(__name__)


@dataclass
class FoldPlan:
    """The fold that lowers the order of an inefficiency by one.

    Attributes:
        edges: Edges whose initial segments are folded
        initial_segment: Length of the folded segments
        points: Edge points to carry along; the first one is the inefficiency
    """

    edges: list[OrientedEdge]
    initial_segment: int
    points: list[EdgePoint]


def turn_directions(
    surface: FibredSurface, point: EdgePoint
) -> tuple[OrientedEdge | None, OrientedEdge | None]:
    """The two directions of the turn at ``point``.

    Inside an image path these are the letters on either side. At an end of
    the path the point is a vertex; if that vertex has valence two, the turn
    is the one the map makes while passing through it. Otherwise there is no
    turn and None is returned for the missing side.
    """
    path = point.edge.path
    if 0 < point.index < len(path):
        return point.dg_before(), point.dg_after()
    edge = point.edge if point.index == 0 else point.edge.reversed()
    star = surface.star(edge.source)
    if len(star) != 2 or edge not in star:
        return None, None
    other = star[0] if star[1] == edge else star[1]
    return other.dg, edge.dg


def analyze_turn(surface: FibredSurface, point: EdgePoint) -> Inefficiency:
    """Compute order and fold data of the turn at ``point``.

    Raises:
        AlgorithmError: If the turn is not an inefficiency
    """
    a, b = turn_directions(surface, point)
    if a is None or b is None:
        raise AlgorithmError("Inefficiency", f"{point} is not an interior point")
    limit = 2 * len(surface.oriented_edges())
    previous_a, previous_b = a, b
    for order in range(limit + 1):
        if a.source is not b.source:
            raise AlgorithmError(
                "Inefficiency", f"directions {a.name} and {b.name} have different sources"
            )
        if a == b:
            if order == 0:
                return Inefficiency(point, 0)
            length = shared_initial_segment([previous_a, previous_b])
            prefix = previous_a.path.take(length)
            edges = sorted(
                (
                    oriented
                    for oriented in surface.star(previous_a.source)
                    if oriented.path.take(length) == prefix
                ),
                key=lambda oriented: oriented.name,
            )
            return Inefficiency(point, order, edges, length)
        previous_a, previous_b = a, b
        a, b = a.dg, b.dg
        if a is None or b is None:
            raise AlgorithmError("Inefficiency", f"the directions at {point} vanish under Dg")
    raise IterationLimitError(f"Order of the turn at {point}", limit)


def check_efficiency(
    surface: FibredSurface, point: EdgePoint, gates: list[Gate] | None = None
) -> Inefficiency | None:
    """The inefficiency at ``point``, or None if the turn there is legal.

    Points at the end of an image path count when they lie on a valence-two
    vertex.
    """
    a, b = turn_directions(surface, point)
    if a is None or b is None:
        return None
    if a.source is not b.source:
        raise AlgorithmError(
            "Inefficiency", f"directions {a.name} and {b.name} at {point} have different sources"
        )
    lookup = gate_lookup(gates if gates is not None else find_gates(surface))
    if b not in lookup[a]:
        return None
    return analyze_turn(surface, point)


def inefficient_turns(gates: list[Gate]) -> Iterator[tuple[OrientedEdge, OrientedEdge]]:
    """Illegal turns ``(x, y)``: ``x.reversed()`` and ``y`` share a gate."""
    for gate in gates:
        for i, first in enumerate(gate.edges):
            for second in gate.edges[i:]:
                yield first.reversed(), second


def find_inefficiencies(
    surface: FibredSurface, gates: list[Gate] | None = None
) -> list[Inefficiency]:
    """One inefficiency per illegal turn occurring in some image path.

    Returns:
        Inefficiencies sorted with low orders and full folds first
    """
    if gates is None:
        gates = find_gates(surface)
    words = [(edge, list(edge.path)) for edge in surface.edges]
    found = []
    for before, after in inefficient_turns(gates):
        before_reversed, after_reversed = after.reversed(), before.reversed()
        for edge, letters in words:
            index = next(
                (
                    k
                    for k in range(1, len(letters))
                    if (letters[k - 1] == before and letters[k] == after)
                    or (letters[k - 1] == before_reversed and letters[k] == after_reversed)
                ),
                None,
            )
            if index is not None:
                found.append(analyze_turn(surface, EdgePoint(edge.forward, index)))
                break
    found.sort(key=lambda inefficiency: inefficiency.priority)
    return found


def prepare_fold(surface: FibredSurface, inefficiency: Inefficiency) -> FoldPlan:
    """First half of an order reduction.

    Shortens the folded segment while it would end exactly at the
    inefficiency. If nothing is left to fold, an ancestor edge is split so
    that the edges to fold share a segment of length one.
    """
    point = inefficiency.point
    edges = list(inefficiency.edges_to_fold)
    length = inefficiency.initial_segment
    while length > 0 and any(EdgePoint(edge, length) == point for edge in edges):
        length -= 1
    points = [point]
    if length > 0:
        return FoldPlan(edges, length, points)

    limit = 2 * len(surface.edges)
    ancestor = edges[0].dg
    if ancestor is None:
        raise AlgorithmError("Inefficiency", f"{edges[0].name} has an empty image")
    to_split = [ancestor]
    while len(to_split[0].path) == 1 and len(to_split) <= limit:
        previous = to_split[0].dg
        if previous is None:
            raise AlgorithmError("Inefficiency", f"{to_split[0].name} has an empty image")
        to_split.insert(0, previous)
    if len(to_split[0].path) == 1:
        raise AlgorithmError(
            "Inefficiency", "the derivative only ever maps these edges to single edges"
        )
    points.extend(EdgePoint(edge, 0) for edge in edges)
    for edge in to_split:
        current = _current_view(surface, edge)
        split_edge(surface, EdgePoint(current, 1), points)
    return FoldPlan([p.edge for p in points[1:]], 1, points)


def _current_view(surface: FibredSurface, edge: OrientedEdge) -> OrientedEdge:
    if edge.edge not in surface.edges:
        raise AlgorithmError("Inefficiency", f"{edge.name} disappeared while splitting")
    return edge


def fold_prepared(
    surface: FibredSurface,
    inefficiency: Inefficiency,
    plan: FoldPlan,
    preferred_index: int | None = None,
) -> Inefficiency:
    """Second half of an order reduction: fold and re-examine the turn.

    Returns:
        The inefficiency at the carried point, one order lower

    Raises:
        AlgorithmError: If the order did not drop by exactly one
    """
    points = list(plan.points[:1])
    fold_initial_segment(surface, plan.edges, plan.initial_segment, points, preferred_index)
    reduced = check_efficiency(surface, points[0])
    at_vertex = points[0].index in (0, len(points[0].edge.path))
    if reduced is None and inefficiency.order == 1 and at_vertex:
        # the backtrack now sits at a vertex; pulling tight removes it
        reduced = Inefficiency(points[0], 0)
    if reduced is None or reduced.order != inefficiency.order - 1:
        found = "a legal turn" if reduced is None else f"order {reduced.order}"
        raise AlgorithmError(
            "Inefficiency",
            f"folding an inefficiency of order {inefficiency.order} left {found}",
        )
    logger.debug("Reduced inefficiency to order %d at %s", reduced.order, reduced.point)
    return reduced


def reduce_inefficiency(
    surface: FibredSurface, inefficiency: Inefficiency, preferred_index: int | None = None
) -> Inefficiency:
    """Lower the order of an inefficiency of positive order by one."""
    plan = prepare_fold(surface, inefficiency)
    return fold_prepared(surface, inefficiency, plan, preferred_index)


def remove_inefficiency(surface: FibredSurface, inefficiency: Inefficiency) -> int:
    """Remove an inefficiency completely.

    Returns:
        Number of folds performed before the final tightening
    """
    folds = 0
    current = inefficiency
    while current.order > 0:
        current = reduce_inefficiency(surface, current)
        folds += 1
    _, after = turn_directions(surface, current.point)
    pull_tight_all(surface, after)
    return folds

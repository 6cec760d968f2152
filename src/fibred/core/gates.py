"""Gate finder.

Every oriented edge is followed under the derivative Dg until its orbit runs
into a cycle. Two edges at the same vertex lie in the same gate when they run
into the same cycle at congruent distances, i.e. when some power of Dg maps
them to the same edge.
"""

import logging
from collections.abc import Callable, Hashable, Iterable

from fibred.domain.gate import EdgeCycle, Gate
from fibred.domain.graph import OrientedEdge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import IterationLimitError

logger = logging.getLogger(__name__)


def find_edge_cycles(surface: FibredSurface) -> tuple[list[EdgeCycle], list[OrientedEdge]]:
    """Periodic orbits of the derivative and their basins.

    Args:
        surface: The surface

    Returns:
        The cycles (each listing its attracted edges with their distances)
        and the edges whose orbit ends in an empty image

    Raises:
        IterationLimitError: If an orbit neither closes up nor dies out
            within twice the number of oriented edges
    """
    cycles: list[EdgeCycle] = []
    vanishing: list[OrientedEdge] = []
    assigned: dict[OrientedEdge, tuple[EdgeCycle | None, int]] = {}
    limit = 2 * len(surface.oriented_edges())

    def attach(edge: OrientedEdge, cycle: EdgeCycle | None, distance: int) -> None:
        assigned[edge] = (cycle, distance)
        if cycle is None:
            vanishing.append(edge)
        else:
            cycle.attracted.append((edge, distance))

    for start in surface.oriented_edges():
        if start in assigned:
            continue
        orbit: list[OrientedEdge] = []
        positions: dict[OrientedEdge, int] = {}
        current: OrientedEdge | None = start
        for step in range(1, limit + 1):
            positions[current] = len(orbit)
            orbit.append(current)
            current = current.dg
            if current is None:
                for index, edge in enumerate(orbit):
                    attach(edge, None, step - index)
                break
            if current in assigned:
                cycle, distance = assigned[current]
                for index, edge in enumerate(orbit):
                    attach(edge, cycle, distance + step - index)
                break
            if current in positions:
                first = positions[current]
                order = step - first
                cycle = EdgeCycle(order)
                cycles.append(cycle)
                for k in range(order):
                    attach(orbit[first + k], cycle, (-k) % order)
                for index in range(first):
                    attach(orbit[index], cycle, first - index)
                break
        else:
            raise IterationLimitError(f"Orbit of {start.name} under Dg", limit)
    return cycles, vanishing


def find_gates(
    surface: FibredSurface, key: Callable[[Vertex], Hashable] | None = None
) -> list[Gate]:
    """Partition the stars of all vertices into gates.

    Args:
        surface: The surface
        key: Groups vertices whose stars are treated as one star
            (defaults to the vertex itself)

    Returns:
        All gates; every oriented edge lies in exactly one of them
    """
    key = key or (lambda vertex: vertex)
    cycles, vanishing = find_edge_cycles(surface)
    gates: list[Gate] = []
    for cycle in cycles:
        cycle_gates: list[Gate] = []
        for edge, distance in cycle.attracted:
            group = key(edge.source)
            for gate in cycle_gates:
                if gate.key == group and (distance - gate.cycle_distance) % cycle.order == 0:
                    gate.edges.append(edge)
                    break
            else:
                cycle_gates.append(Gate(group, [edge], distance))
        gates.extend(cycle_gates)
    for edge in vanishing:
        gates.append(Gate(key(edge.source), [edge], 0))
    logger.debug("Found %d gates in %d cycles", len(gates), len(cycles))
    return gates


def gate_lookup(gates: Iterable[Gate]) -> dict[OrientedEdge, Gate]:
    return {edge: gate for gate in gates for edge in gate.edges}


def gates_at(gates: Iterable[Gate], vertex: Vertex) -> list[Gate]:
    return [gate for gate in gates if gate.edges and gate.edges[0].source is vertex]

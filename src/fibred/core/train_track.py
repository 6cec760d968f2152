"""Conversion of an efficient fibred surface into a train track.

Every vertex is blown up into one junction per gate. Turns that occur in
image paths become infinitesimal edges between gate junctions, so that the map
is locally injective at every junction.
"""

import logging
from collections import deque

from fibred.core.gates import find_gates, gate_lookup
from fibred.domain.edge_path import EMPTY, FlatPath
from fibred.domain.gate import Gate
from fibred.domain.graph import OrientedEdge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import TrainTrackConversionError
from fibred.utils.cyclic import sort_connected_set

logger = logging.getLogger(__name__)


def convert_to_train_track(surface: FibredSurface) -> list[OrientedEdge]:
    """Split every vertex into gate junctions joined by infinitesimal edges.

    Args:
        surface: An efficient surface; it is modified in place

    Returns:
        The infinitesimal edges that were created

    Raises:
        TrainTrackConversionError: If some image path turns inside a gate
    """
    gates = find_gates(surface)
    gate_of = gate_lookup(gates)
    gates_at: dict[Vertex, list[Gate]] = {}
    for gate in gates:
        gates_at.setdefault(gate.key, []).append(gate)
    for here in gates_at.values():
        here.sort(key=lambda gate: gate.edges[0].order_index_start)

    junctions: dict[Gate, Vertex] = {}
    for vertex in list(surface.vertices):
        star = surface.star_ordered(vertex)
        for gate in gates_at.get(vertex, []):
            junction = surface.add_vertex(f"gate {gate} @ {vertex.name}")
            junctions[gate] = junction
            for index, oriented in enumerate(sort_connected_set(star, gate.edges)):
                oriented.set_source(junction)
                oriented.set_order_index_start(float(index))
        surface.remove_vertex(vertex)

    gate_images: dict[Gate, Gate] = {}
    for gate in gates:
        first = gate.edges[0].dg
        if first is None:
            raise TrainTrackConversionError(f"{gate.edges[0].name} has an empty image")
        gate_images[gate] = gate_of[first]
        junctions[gate].image = junctions[gate_images[gate]]

    infinitesimal: dict[tuple[Gate, Gate], OrientedEdge] = {}
    created: list[OrientedEdge] = []

    def new_infinitesimal_edge(incoming: Gate, outgoing: Gate) -> OrientedEdge:
        if incoming is outgoing:
            raise TrainTrackConversionError(
                f"the turn inside gate {incoming} would need an infinitesimal loop"
            )
        here = gates_at[incoming.key]
        in_index = here.index(incoming)
        out_index = here.index(outgoing)
        start = len(incoming) + (out_index if out_index > in_index else out_index + len(here))
        end = len(outgoing) + (in_index if in_index > out_index else in_index + len(here))
        edge = surface.add_edge(
            junctions[incoming],
            junctions[outgoing],
            EMPTY,
            surface.next_greek_edge_name(),
            float(start),
            float(end),
        )
        infinitesimal[(incoming, outgoing)] = edge.forward
        infinitesimal[(outgoing, incoming)] = edge.reversed()
        created.append(edge.forward)
        return edge.forward

    for edge in list(surface.edges):
        letters = list(edge.path)
        if len(letters) < 2:
            continue
        path = [letters[0]]
        for before, after in zip(letters, letters[1:]):
            incoming = gate_of[before.reversed()]
            outgoing = gate_of[after]
            if incoming is outgoing:
                raise TrainTrackConversionError(
                    f"the image of {edge.name} turns from {before.name} to {after.name} "
                    f"inside the gate {incoming}"
                )
            connector = infinitesimal.get((incoming, outgoing))
            if connector is None:
                connector = new_infinitesimal_edge(incoming, outgoing)
            path.append(connector)
            path.append(after)
        edge.path = FlatPath(path)

    pending = deque(created)
    while pending:
        oriented = pending.popleft()
        incoming = _gate_at(junctions, oriented.source)
        outgoing = _gate_at(junctions, oriented.target)
        key = (gate_images[incoming], gate_images[outgoing])
        image = infinitesimal.get(key)
        if image is None:
            image = new_infinitesimal_edge(*key)
            pending.append(image)
        oriented.set_path(FlatPath((image,)))

    logger.debug(
        "Converted to train track: %d gate junctions, %d infinitesimal edges",
        len(junctions),
        len(created),
    )
    return created


def _gate_at(junctions: dict[Gate, Vertex], junction: Vertex) -> Gate:
    for gate, candidate in junctions.items():
        if candidate is junction:
            return gate
    raise TrainTrackConversionError(f"{junction.name} is not a gate junction")

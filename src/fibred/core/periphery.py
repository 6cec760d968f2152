"""Absorbing invariant material into the peripheral subgraph.

The peripheral subgraph P holds one loop per puncture. Before the map can be
analysed, everything that deformation retracts onto P and is invariant has
to be absorbed into it, and P has to be rebuilt so that every gate at P gets
its own vertex on the new periphery. Otherwise boundary-parallel edges show
up as false witnesses of reducibility.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from fibred.core.analysis import pre_periphery
from fibred.core.folding import fold_initial_segment
from fibred.core.gates import find_gates, gate_lookup
from fibred.core.subforests import collapse_subforest, forest_components, is_periphery_friendly_forest
from fibred.domain.edge_path import EMPTY, EdgePath, FlatPath
from fibred.domain.gate import Gate
from fibred.domain.graph import Edge, OrientedEdge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import AlgorithmError, IterationLimitError
from fibred.utils.cyclic import cyclic_shift, sort_connected_set

logger = logging.getLogger(__name__)


@dataclass
class AbsorptionCheck:
    """Reasons why the periphery has to absorb more of the graph.

    Attributes:
        extension: Edges of the maximal peripheral subgraph Q outside P
        low_valence: Vertices of Q with valence at most two
        non_maximal: Edges leaving Q whose image starts inside Q
    """

    extension: list[Edge] = field(default_factory=list)
    low_valence: list[Vertex] = field(default_factory=list)
    non_maximal: list[OrientedEdge] = field(default_factory=list)

    @property
    def needed(self) -> bool:
        return bool(self.extension or self.low_valence or self.non_maximal)

    def describe(self) -> str:
        parts = []
        if self.extension:
            names = ", ".join(edge.name for edge in self.extension)
            parts.append(f"Q = P ∪ {{{names}}} deformation retracts to P")
        if self.low_valence:
            names = ", ".join(vertex.name for vertex in self.low_valence)
            parts.append(f"the periphery has vertices of valence at most two: {names}")
        if self.non_maximal:
            names = ", ".join(edge.name for edge in self.non_maximal)
            parts.append(f"edges leaving the periphery start with peripheral edges: {names}")
        return "; ".join(parts)


def maximal_peripheral_subgraph(surface: FibredSurface) -> set[Edge]:
    """The largest invariant subgraph Q containing P that retracts onto P."""
    result = set(surface.peripheral)
    for edge in surface.edges:
        if edge in result:
            continue
        orbit = surface.orbit_of_edge(edge)
        if is_periphery_friendly_forest(
            surface, orbit, result, remove_peripheral=True, touching=True
        ):
            result |= orbit
    return result


def absorption_needed(surface: FibredSurface) -> AbsorptionCheck:
    maximal = maximal_peripheral_subgraph(surface)
    vertices = FibredSurface.vertices_of(maximal)
    check = AbsorptionCheck()
    check.extension = [
        edge for edge in surface.edges if edge in maximal and edge not in surface.peripheral
    ]
    check.low_valence = [
        vertex
        for vertex in surface.vertices
        if vertex in vertices and surface.valence(vertex) <= 2
    ]
    check.non_maximal = [
        oriented
        for oriented in surface.subgraph_star(maximal)
        if oriented.dg is not None and oriented.dg.edge in maximal
    ]
    return check


def absorb_into_periphery(
    surface: FibredSurface, extension: Sequence[Edge] | None = None
) -> list[Edge]:
    """Collapse Q \\ P onto P and rebuild the periphery.

    Args:
        surface: The surface
        extension: Edges of Q \\ P (computed if None)

    Returns:
        The edges of the new peripheral subgraph
    """
    if extension is None:
        extension = absorption_needed(surface).extension
    extension = [edge for edge in extension if edge in surface.edges]
    if extension:
        peripheral_vertices = surface.peripheral_vertices()
        centers: list[Vertex | None] = []
        for component in forest_components(extension):
            vertices = FibredSurface.vertices_of(component) & peripheral_vertices
            centers.append(next(iter(vertices), None))
        collapse_subforest(surface, extension, centers)
    return rebuild_periphery(surface)


def rebuild_periphery(surface: FibredSurface) -> list[Edge]:
    """Replace every peripheral cycle by a cycle through one new vertex per gate.

    Returns:
        The new peripheral edges

    Raises:
        AlgorithmError: If the map does not act on the new periphery as a
            graph automorphism
    """
    return _PeripheryRebuild(surface).run()


class _PeripheryRebuild:
    """State of a single periphery rebuild."""

    def __init__(self, surface: FibredSurface) -> None:
        self.surface = surface
        self.old_edges = set(surface.peripheral)
        self.old_vertices = surface.peripheral_vertices()
        self.components: list[list[OrientedEdge]] = []
        self.component_of: dict[Vertex, int] = {}
        self.previous_old: dict[Vertex, OrientedEdge] = {}
        self.next_old: dict[Vertex, OrientedEdge] = {}
        self.component_stars: list[list[OrientedEdge]] = []
        self.star_position: dict[OrientedEdge, int] = {}
        self.paths_in_p: dict[OrientedEdge, list[OrientedEdge]] = {}
        self.gates: list[Gate] = []
        self.gate_of: dict[OrientedEdge, Gate] = {}
        self.ordered: list[list[tuple[Gate, list[OrientedEdge]]]] = []
        self.gate_order: dict[Gate, list[OrientedEdge]] = {}
        self.new_vertices: dict[Gate, Vertex] = {}
        self.next_new: dict[Vertex, OrientedEdge] = {}
        self.previous_new: dict[Vertex, OrientedEdge] = {}
        self.new_edges: set[Edge] = set()

    def run(self) -> list[Edge]:
        self._record_components()
        self._strip_peripheral_prefixes()
        self.gates = find_gates(self.surface, lambda vertex: self.component_of.get(vertex, -1))
        self.gate_of = gate_lookup(self.gates)
        for index in range(len(self.components)):
            self._order_gates(index)
        self._create_vertices()
        self._create_edges()
        self._assign_images()
        self._reattach_vertices()
        self._replace_interior_runs()
        new_edges = [edge for edge in self.surface.edges if edge in self.new_edges]
        logger.debug(
            "Rebuilt periphery: %d components, edges %s",
            len(self.components),
            ", ".join(edge.name for edge in new_edges),
        )
        return new_edges

    # -- old periphery ----------------------------------------------------

    def _record_components(self) -> None:
        words = self.surface.peripheral_boundary_words()
        if not words:
            raise AlgorithmError("Absorb", "no boundary component runs along the periphery")
        for index, word in enumerate(words):
            component = list(word.inverse())
            self.components.append(component)
            star_c: list[OrientedEdge] = []
            last = component[-1]
            for oriented in component:
                vertex = oriented.source
                self.component_of[vertex] = index
                self.previous_old[vertex] = last.reversed()
                self.next_old[vertex] = oriented
                last = oriented
                star_c.extend(self.surface.star_ordered(vertex, oriented)[2:])
            if not star_c:
                raise AlgorithmError(
                    "Absorb", f"peripheral component {FlatPath(component)} has nothing attached"
                )
            self.component_stars.append(star_c)
            for position, oriented in enumerate(star_c):
                self.star_position[oriented] = position

    def _strip_peripheral_prefixes(self) -> None:
        for star_c in self.component_stars:
            for oriented in star_c:
                letters = list(oriented.path)
                length = self._peripheral_prefix(letters)
                if length == len(letters):
                    raise AlgorithmError(
                        "Absorb", f"{oriented.name} maps into the periphery but was not absorbed"
                    )
                self.paths_in_p[oriented] = letters[:length]
                if length:
                    oriented.set_path(oriented.path.skip(length))

    def _peripheral_prefix(self, letters: list[OrientedEdge]) -> int:
        length = 0
        while length < len(letters) and letters[length].edge in self.old_edges:
            length += 1
        return length

    # -- new periphery ----------------------------------------------------

    def _order_gates(self, index: int) -> None:
        star_c = self.component_stars[index]
        gates = [
            gate
            for gate in self.gates
            if gate.key == index and any(edge.edge not in self.old_edges for edge in gate.edges)
        ]
        result = []
        for gate in gates:
            if len(gates) == 1:
                scores = [self._single_gate_score(oriented) for oriented in star_c]
                ordered = cyclic_shift(star_c, scores.index(max(scores)))
            else:
                ordered = sort_connected_set(star_c, gate.edges)
            if set(ordered) != set(gate.edges):
                raise AlgorithmError(
                    "Absorb", f"gate {gate} is not contiguous around the periphery"
                )
            result.append((gate, ordered))
            self.gate_order[gate] = ordered
        result.sort(key=lambda item: self.star_position[item[1][0]])
        self.ordered.append(result)

    def _single_gate_score(self, oriented: OrientedEdge) -> int:
        tight = _cancel_backtracking(self.paths_in_p.get(oriented, []))
        image = oriented.source.image
        if tight and image is not None and tight[0] == self.next_old.get(image):
            return len(tight)
        return -len(tight)

    def _create_vertices(self) -> None:
        for component in self.ordered:
            for gate, edges in component:
                vertex = self.surface.add_vertex()
                self.new_vertices[gate] = vertex
                for index, oriented in enumerate(edges):
                    oriented.set_source(vertex)
                    oriented.set_order_index_start(float(index))

    def _create_edges(self) -> None:
        for component in self.components:
            for oriented in component:
                if oriented.edge in self.surface.edges:
                    self.surface.remove_edge(oriented.edge)
            for oriented in component:
                if oriented.source in self.surface.vertices:
                    self.surface.remove_vertex(oriented.source)
        for component in self.ordered:
            vertices = [self.new_vertices[gate] for gate, _ in component]
            for index, (_, edges) in enumerate(component):
                source = vertices[index]
                target = vertices[(index + 1) % len(vertices)]
                edge = self.surface.add_edge(
                    source,
                    target,
                    EMPTY,
                    self.surface.next_greek_edge_name(),
                    float(len(edges)),
                    -1.0,
                    peripheral=True,
                )
                self.new_edges.add(edge)
                self.next_new[source] = edge.forward
                self.previous_new[target] = edge.reversed()

    def _assign_images(self) -> None:
        for gate, vertex in self.new_vertices.items():
            image_gate = self.gate_of.get(gate.edges[0].dg)
            if image_gate not in self.new_vertices:
                raise AlgorithmError("Absorb", f"gate {gate} is not mapped to a peripheral gate")
            vertex.image = self.new_vertices[image_gate]
        for vertex in self.new_vertices.values():
            step = self.next_new[vertex]
            image = self.next_new[vertex.image]
            if image.target is not step.target.image:
                raise AlgorithmError(
                    "Absorb", "the map does not act as an automorphism on the new periphery"
                )
            step.set_path(FlatPath((image,)))

    # -- rerouting through the new periphery --------------------------------

    def _reattach_vertices(self) -> None:
        new_vertex_set = set(self.new_vertices.values())
        deferred: dict[Edge, OrientedEdge] = {}
        for junction in list(self.surface.vertices):
            old_image = junction.image
            if old_image not in self.old_vertices or junction in new_vertex_set:
                continue
            component = self.ordered[self.component_of[old_image]]
            star = self.surface.star(junction)
            indices = [self._direction_index(old_image, oriented, component) for oriented in star]
            best = min(
                range(len(component)),
                key=lambda j: sum(abs(j - i) for i in indices if i is not None),
            )
            gate, edges = component[best]
            junction.image = self.new_vertices[gate]
            anchor = edges[0]
            for oriented in star:
                letters = list(oriented.path)
                length = self._peripheral_prefix(letters)
                if length == len(letters):
                    deferred[oriented.edge] = oriented
                    continue
                rest = oriented.path.skip(length)
                walk = self._connect(anchor, rest[0], letters[:length])
                oriented.set_path(walk.concat(rest))
        for oriented in deferred.values():
            run = list(oriented.path)
            start = oriented.source.image
            end = oriented.target.image
            if start is None or end is None:
                raise AlgorithmError("Absorb", f"{oriented.name} has an endpoint without image")
            tight = _cancel_backtracking(run)
            clockwise = self._run_direction(tight) if tight else False
            oriented.set_path(self._walk(start, end, clockwise, bool(tight)))

    def _direction_index(
        self,
        old_image: Vertex,
        oriented: OrientedEdge,
        component: list[tuple[Gate, list[OrientedEdge]]],
    ) -> int | None:
        first = oriented.dg
        if first is None:
            return None
        if first == self.previous_old.get(old_image):
            return len(component)
        if first == self.next_old.get(old_image):
            return -1
        gate = self.gate_of.get(first)
        for index, (candidate, _) in enumerate(component):
            if candidate is gate:
                return index
        return None

    def _replace_interior_runs(self) -> None:
        new_vertex_set = set(self.new_vertices.values())
        for edge in self.surface.edges:
            if edge in self.new_edges:
                continue
            letters = list(edge.path)
            result: list[OrientedEdge] = []
            changed = False
            index = 0
            while index < len(letters):
                letter = letters[index]
                if letter.edge in self.old_edges:
                    end = index
                    while end < len(letters) and letters[end].edge in self.old_edges:
                        end += 1
                    if not result or end == len(letters):
                        raise AlgorithmError(
                            "Absorb", f"the image of {edge.name} ends in the old periphery"
                        )
                    walk = self._connect(result[-1].reversed(), letters[end], letters[index:end])
                    result.extend(walk)
                    changed = True
                    index = end
                    continue
                if (
                    result
                    and letter.source in new_vertex_set
                    and letter.edge not in self.new_edges
                    and result[-1].edge not in self.new_edges
                ):
                    walk = self._connect(result[-1].reversed(), letter, [])
                    if walk:
                        result.extend(walk)
                        changed = True
                result.append(letter)
                index += 1
            if changed:
                edge.path = FlatPath(result)

    def _connect(
        self, before: OrientedEdge, after: OrientedEdge, run: list[OrientedEdge]
    ) -> EdgePath:
        """Walk along the new periphery replacing ``run`` between two directions.

        Args:
            before: Direction at the start, pointing back along the path
            after: Direction at the end, pointing forward along the path
            run: The old peripheral edges between them
        """
        start = before.source
        end = after.source
        tight = _cancel_backtracking(run)
        if tight:
            return self._walk(start, end, self._run_direction(tight), True)
        if before not in self.star_position or after not in self.star_position:
            raise AlgorithmError(
                "Absorb", f"cannot place the turn {before.name}, {after.name} on the periphery"
            )
        clockwise = self.star_position[before] > self.star_position[after]
        nontrivial = False
        if start is end:
            order = self.gate_order[self.gate_of[before]]
            nontrivial = clockwise != (order.index(before) > order.index(after))
        return self._walk(start, end, clockwise, nontrivial)

    def _run_direction(self, tight: list[OrientedEdge]) -> bool:
        first = tight[0]
        if first == self.previous_old.get(first.source):
            return True
        if first == self.next_old.get(first.source):
            return False
        raise AlgorithmError("Absorb", f"{first.name} does not run along its peripheral component")

    def _walk(self, start: Vertex, end: Vertex, clockwise: bool, nontrivial: bool) -> EdgePath:
        steps: list[OrientedEdge] = []
        current = start
        limit = len(self.surface.vertices)
        while (nontrivial and not steps) or current is not end:
            step = self.previous_new[current] if clockwise else self.next_new[current]
            steps.append(step)
            current = step.target
            if len(steps) > limit:
                raise IterationLimitError("Walk around the periphery", limit)
        return FlatPath(steps) if steps else EMPTY


def _cancel_backtracking(letters: list[OrientedEdge]) -> list[OrientedEdge]:
    result: list[OrientedEdge] = []
    for letter in letters:
        if result and result[-1] == letter.reversed():
            result.pop()
        else:
            result.append(letter)
    return result


def peripheral_inefficiencies(surface: FibredSurface) -> list[list[OrientedEdge]]:
    """Groups of edges at a vertex sharing a first image edge in the pre-periphery."""
    prefix = pre_periphery(surface)
    found: list[list[OrientedEdge]] = []
    seen: set[frozenset[OrientedEdge]] = set()
    for oriented in surface.oriented_edges():
        first = oriented.dg
        if first is None or first.edge not in prefix:
            continue
        group = [other for other in surface.star_ordered(oriented.source) if other.dg == first]
        key = frozenset(group)
        if len(group) > 1 and key not in seen:
            seen.add(key)
            found.append(group)
    return found


def remove_peripheral_inefficiency(
    surface: FibredSurface, edges: Sequence[OrientedEdge]
) -> OrientedEdge:
    """Fold the shared initial segment of edges mapping into the pre-periphery."""
    return fold_initial_segment(surface, edges)

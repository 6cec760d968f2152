"""Step controller for the Bestvina-Handel algorithm.

The algorithm is a state machine. ``next_suggestion`` inspects the state and
proposes the next move as a Suggestion; ``apply_suggestion`` performs the
move chosen by the caller. Moves that take several steps leave a pending step
in the state, which refers to edges and vertices by name only, so that a state
can be cloned at any point and both copies continued independently.

Suggestions are produced in a fixed priority:

1. invariant subforests
2. loose positions (pulling tight)
3. valence-one vertices
4. absorption into the periphery
5. reducibility, unless waived
6. valence-two vertices
7. peripheral inefficiencies
8. inefficiencies
9. conversion to a train track
10. finished
"""

import logging
import time
import traceback
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from fibred.config.settings import AlgorithmConfig
from fibred.core.analysis import (
    MappingClassType,
    boundary_words_preserved,
    classify,
    perron_frobenius,
    preserved_subgraph,
)
from fibred.core.folding import preferred_edge_candidates
from fibred.core.inefficiencies import (
    FoldPlan,
    check_efficiency,
    find_inefficiencies,
    fold_prepared,
    prepare_fold,
    reduce_inefficiency,
    remove_inefficiency,
    turn_directions,
)
from fibred.core.integrity import check_integrity
from fibred.core.periphery import (
    absorb_into_periphery,
    absorption_needed,
    peripheral_inefficiencies,
    rebuild_periphery,
    remove_peripheral_inefficiency,
)
from fibred.core.pull_tight import loose_positions, pull_tight_all
from fibred.core.subforests import collapse_subforest, forest_components, invariant_subforests
from fibred.core.train_track import convert_to_train_track
from fibred.core.valence import (
    remove_valence_one_vertex,
    remove_valence_two_vertex,
    valence_one_vertices,
    valence_two_vertices,
)
from fibred.domain.edge_point import EdgePoint, Inefficiency
from fibred.domain.graph import Edge, Vertex
from fibred.domain.suggestion import Button, Option, Suggestion, SuggestionKind
from fibred.domain.surface import FibredSurface
from fibred.exceptions import (
    AlgorithmError,
    IntegrityError,
    SelectionError,
    UnknownEdgeError,
)
from fibred.utils.logging import AlgorithmLogger

logger = logging.getLogger(__name__)


class FoldStage(str, Enum):
    """Where a paused inefficiency removal continues."""

    REDUCE = "reduce"
    SPLIT = "split"
    FOLD = "fold"
    TIGHTEN = "tighten"


@dataclass(frozen=True)
class CollapseStep:
    """Components of an invariant subforest still to be contracted."""

    components: tuple[tuple[str, ...], ...]


@dataclass(frozen=True)
class AbsorbStep:
    """Absorption into the periphery; an empty extension means only the rebuild is left."""

    extension: tuple[str, ...] = ()


@dataclass(frozen=True)
class InefficiencyStep:
    """A paused removal of an inefficiency.

    Attributes:
        point: Serialized edge point of the illegal turn
        order: Order of the inefficiency at ``point``
        fine: Whether splits and folds are shown as separate steps
        stage: What the next continuation does
        fold_edges: Names of the edges to fold in the FOLD stage
        initial_segment: Length of the segments to fold in the FOLD stage
    """

    point: str
    order: int
    fine: bool = False
    stage: FoldStage = FoldStage.REDUCE
    fold_edges: tuple[str, ...] = ()
    initial_segment: int = 0


PendingStep = CollapseStep | AbsorbStep | InefficiencyStep

CONTINUATION_BUTTONS = (Button.CONTINUE, Button.CONTRACT_COMPONENT, Button.MOVE)


@dataclass
class AlgorithmState:
    """Everything the algorithm needs to continue from here.

    Attributes:
        surface: The fibred surface, mutated by moves
        ignore_reducibility: Whether the caller chose to continue on a reducible map
        is_train_track: Whether the surface was converted to a train track
        pending: The paused multi-step move, if any
        classification: Type of the map, recorded on conversion
        growth: Growth rate, recorded on conversion
    """

    surface: FibredSurface
    ignore_reducibility: bool = False
    is_train_track: bool = False
    pending: PendingStep | None = None
    classification: MappingClassType | None = None
    growth: float | None = None

    def clone(self) -> "AlgorithmState":
        return replace(self, surface=self.surface.clone())


# -- suggestions ----------------------------------------------------------


def next_suggestion(state: AlgorithmState) -> Suggestion:
    """The move to make next, in the fixed priority order."""
    if state.pending is not None:
        return _pending_suggestion(state.surface, state.pending)
    if state.is_train_track:
        # infinitesimal edges form invariant forests, so nothing below applies
        result = state.classification.value if state.classification is not None else "unknown"
        return Suggestion(
            SuggestionKind.FINISHED, f"The algorithm is finished. Type: {result}.", (), ()
        )
    surface = state.surface

    forests = invariant_subforests(surface)
    if forests:
        return Suggestion(
            SuggestionKind.SUBFOREST,
            "Collapse an invariant subforest.",
            tuple(
                Option(tuple(edge.name for edge in forest), ", ".join(e.name for e in forest))
                for forest in forests
            ),
            (Button.COLLAPSE_AT_ONCE, Button.COLLAPSE_IN_STEPS),
        )

    loose = loose_positions(surface)
    if loose:
        return Suggestion(
            SuggestionKind.TIGHTEN,
            "Pull tight at one or more edges.",
            tuple(Option(position.edge.name, position.describe()) for position in loose),
            (Button.TIGHTEN_ALL, Button.TIGHTEN_SELECTED),
            allow_multiple_selection=True,
        )

    leaves = valence_one_vertices(surface)
    if leaves:
        return Suggestion(
            SuggestionKind.VALENCE_ONE,
            "Remove a valence-one junction.",
            tuple(Option(vertex.name, vertex.name) for vertex in leaves),
            (Button.REMOVE_VALENCE_ONE,),
            allow_multiple_selection=True,
        )

    check = absorption_needed(surface)
    if check.needed:
        names = tuple(edge.name for edge in check.extension)
        return Suggestion(
            SuggestionKind.ABSORB,
            f"Absorb into the periphery: {check.describe()}.",
            (Option(names, "Q \\ P = {" + ", ".join(names) + "}"),),
            (Button.ABSORB_AT_ONCE, Button.ABSORB_IN_STEPS),
        )

    if not state.ignore_reducibility:
        preserved = preserved_subgraph(surface)
        if preserved is not None and not boundary_words_preserved(surface, preserved):
            logger.warning(
                "The boundary words of the invariant subgraph %s are not preserved",
                _edge_names(surface, preserved),
            )
        elif preserved is not None:
            return Suggestion(
                SuggestionKind.REDUCIBLE,
                "The map is reducible because there is an invariant essential subgraph "
                f"with edges {_edge_names(surface, preserved)}. You can continue with the "
                "algorithm, but it will not necessarily terminate.",
                (),
                (Button.CONTINUE_ANYWAYS,),
            )

    valence_two = valence_two_vertices(surface)
    if valence_two:
        return Suggestion(
            SuggestionKind.VALENCE_TWO,
            "Remove a valence-two junction.",
            tuple(Option(vertex.name, vertex.name) for vertex in valence_two),
            (Button.REMOVE_ALL, Button.REMOVE_SELECTED),
            allow_multiple_selection=True,
        )

    groups = peripheral_inefficiencies(surface)
    if groups:
        return Suggestion(
            SuggestionKind.PERIPHERAL_INEFFICIENCY,
            "Fold initial segments of edges that map to edges in the pre-periphery.",
            tuple(
                Option(
                    tuple(edge.name for edge in group),
                    ", ".join(edge.name for edge in group)
                    + f" are all mapped to {group[0].dg.name} in the pre-periphery",
                )
                for group in groups
            ),
            (Button.FOLD_SELECTED,),
        )

    inefficiencies = find_inefficiencies(surface)
    if inefficiencies:
        return Suggestion(
            SuggestionKind.INEFFICIENCY,
            "Remove an inefficiency.",
            tuple(
                Option(inefficiency.point.serialize(), inefficiency.describe())
                for inefficiency in inefficiencies
            ),
            (Button.REMOVE_AT_ONCE, Button.REMOVE_IN_STEPS, Button.REMOVE_IN_FINE_STEPS),
        )

    return Suggestion(
        SuggestionKind.TRAIN_TRACK,
        "The graph map is efficient; the fibred surface can be turned into a train track.",
        (),
        (Button.CONVERT_TO_TRAIN_TRACK,),
    )


def _pending_suggestion(surface: FibredSurface, pending: PendingStep) -> Suggestion:
    if isinstance(pending, CollapseStep):
        component = _edges_named(surface, pending.components[0])
        vertices = sorted(
            (v for v in surface.vertices if v in FibredSurface.vertices_of(component)),
            key=surface.valence,
            reverse=True,
        )
        return Suggestion(
            SuggestionKind.IN_PROGRESS,
            f"Pull component {{{', '.join(pending.components[0])}}} towards a vertex.",
            tuple(
                Option(vertex.name, f"{vertex.name} (valence {surface.valence(vertex)})")
                for vertex in vertices
            ),
            (Button.CONTRACT_COMPONENT,),
        )
    if isinstance(pending, AbsorbStep):
        if pending.extension:
            description = (
                f"Collapse Q \\ P = {{{', '.join(pending.extension)}}} onto the periphery."
            )
        else:
            description = "Rebuild the periphery with one vertex per gate."
        return Suggestion(SuggestionKind.IN_PROGRESS, description)

    point = pending.point
    if pending.stage is FoldStage.TIGHTEN:
        return Suggestion(SuggestionKind.IN_PROGRESS, f"Pull tight the backtrack at {point}.")
    if pending.stage is FoldStage.REDUCE:
        return Suggestion(
            SuggestionKind.IN_PROGRESS,
            f"Remove the inefficiency of order {pending.order} at {point}.",
        )
    if pending.stage is FoldStage.SPLIT:
        return Suggestion(
            SuggestionKind.IN_PROGRESS,
            f"Prepare folding the inefficiency of order {pending.order} at {point}: "
            "shorten the segment to fold or split the edges it runs through.",
        )
    edges = [surface.edge_named(name) for name in pending.fold_edges]
    order = {edge: index for index, edge in enumerate(edges)}
    return Suggestion(
        SuggestionKind.IN_PROGRESS,
        f"Fold the initial segments of length {pending.initial_segment} of "
        f"{', '.join(pending.fold_edges)}. Select the edge to keep and press Move, "
        "or Continue to let the algorithm choose.",
        tuple(
            Option(order[edge], edge.name) for edge in preferred_edge_candidates(surface, edges)
        ),
        (Button.CONTINUE, Button.MOVE),
    )


# -- applying suggestions -------------------------------------------------


def apply_suggestion(
    state: AlgorithmState,
    selection: Sequence[Any],
    button: Button | str,
    config: AlgorithmConfig | None = None,
) -> None:
    """Perform the move chosen for the current suggestion.

    The state is mutated in place; use ``step`` to keep the old state.

    Args:
        state: The algorithm state
        selection: Selected option values
        button: The pressed button or its label
        config: Algorithm configuration (defaults if None)

    Raises:
        SelectionError: If the button or the selection does not fit the
            current suggestion
        IntegrityError: If the move left the graph map inconsistent
    """
    config = config or AlgorithmConfig()
    try:
        button = Button(button)
    except ValueError as e:
        raise SelectionError(str(button), "unknown button") from e
    selection = list(selection)

    if state.pending is not None:
        allowed = _pending_suggestion(state.surface, state.pending).buttons
        if button not in allowed:
            raise SelectionError(button.value, "a paused step has to be continued first")
        _continue_pending(state, selection, button)
    elif button in CONTINUATION_BUTTONS:
        raise SelectionError(button.value, "there is no paused step to continue")
    elif state.is_train_track:
        raise SelectionError(button.value, "the surface already is a train track")
    else:
        offered = next_suggestion(state).buttons
        if button not in offered:
            labels = ", ".join(b.value for b in offered) or "nothing"
            raise SelectionError(button.value, f"the current suggestion offers {labels}")
        _apply_button(state, selection, button, config)

    if config.check_integrity:
        check_integrity(state.surface, config.prefix_check_depth)


def step(
    state: AlgorithmState,
    selection: Sequence[Any],
    button: Button | str,
    config: AlgorithmConfig | None = None,
) -> tuple[AlgorithmState, Suggestion]:
    """Apply a move to a copy of the state.

    Returns:
        The new state and its next suggestion; ``state`` is unchanged
    """
    new_state = state.clone()
    apply_suggestion(new_state, selection, button, config)
    return new_state, next_suggestion(new_state)


def _apply_button(
    state: AlgorithmState, selection: list[Any], button: Button, config: AlgorithmConfig
) -> None:
    surface = state.surface
    if button is Button.COLLAPSE_AT_ONCE:
        collapse_subforest(surface, _edges_named(surface, _first(selection, button)))
    elif button is Button.COLLAPSE_IN_STEPS:
        edges = _edges_named(surface, _first(selection, button))
        components = tuple(
            tuple(edge.name for edge in surface.edges if edge in component)
            for component in map(set, forest_components(edges))
        )
        state.pending = CollapseStep(components)
    elif button is Button.TIGHTEN_ALL:
        pull_tight_all(surface)
    elif button is Button.TIGHTEN_SELECTED:
        if not selection:
            raise SelectionError(button.value, "no edge selected")
        for name in selection:
            pull_tight_all(surface, _edge_named(surface, name, button))
    elif button is Button.REMOVE_VALENCE_ONE:
        for name in selection:
            remove_valence_one_vertex(surface, _vertex_named(surface, name, button))
    elif button is Button.ABSORB_AT_ONCE:
        absorb_into_periphery(surface, _edges_named(surface, _first(selection, button, ())))
    elif button is Button.ABSORB_IN_STEPS:
        extension = tuple(_first(selection, button, ()))
        _edges_named(surface, extension)
        state.pending = AbsorbStep(extension)
    elif button is Button.CONTINUE_ANYWAYS:
        state.ignore_reducibility = True
    elif button is Button.REMOVE_ALL:
        _remove_all_valence_two(surface)
    elif button is Button.REMOVE_SELECTED:
        for name in selection:
            vertex = _vertex_named(surface, name, button)
            remove_valence_two_vertex(surface, vertex)
            if invariant_subforests(surface):
                break
    elif button is Button.FOLD_SELECTED:
        remove_peripheral_inefficiency(
            surface, [_edge_named(surface, name, button) for name in _first(selection, button)]
        )
    elif button in (Button.REMOVE_AT_ONCE, Button.REMOVE_IN_STEPS, Button.REMOVE_IN_FINE_STEPS):
        _start_inefficiency(state, _first(selection, button), button)
    elif button is Button.CONVERT_TO_TRAIN_TRACK:
        state.classification = classify(
            surface,
            is_train_track=True,
            reducibility_ignored=state.ignore_reducibility,
            growth_tolerance=config.growth_tolerance,
        )
        state.growth = perron_frobenius(
            surface,
            eigen_tolerance=config.eigen_tolerance,
            length_tolerance=config.length_tolerance,
        ).growth
        convert_to_train_track(surface)
        state.is_train_track = True
    else:
        raise SelectionError(button.value, "not applicable here")


def _remove_all_valence_two(surface: FibredSurface) -> None:
    for _ in range(len(surface.vertices)):
        if invariant_subforests(surface):
            return
        vertices = valence_two_vertices(surface)
        if not vertices:
            return
        remove_valence_two_vertex(surface, vertices[0])


def _start_inefficiency(state: AlgorithmState, value: Any, button: Button) -> None:
    surface = state.surface
    point = _point_from(surface, value, button)
    inefficiency = check_efficiency(surface, point)
    if inefficiency is None:
        raise SelectionError(button.value, f"there is no inefficiency at {value}")
    if button is Button.REMOVE_AT_ONCE:
        remove_inefficiency(surface, inefficiency)
        return
    fine = button is Button.REMOVE_IN_FINE_STEPS
    if inefficiency.order == 0:
        if fine:
            state.pending = InefficiencyStep(point.serialize(), 0, True, FoldStage.TIGHTEN)
        else:
            pull_tight_all(surface, turn_directions(surface, point)[1])
        return
    if fine:
        state.pending = InefficiencyStep(
            point.serialize(), inefficiency.order, True, FoldStage.SPLIT
        )
        return
    _after_reduction(state, reduce_inefficiency(surface, inefficiency), fine=False)


def _after_reduction(state: AlgorithmState, reduced: Inefficiency, fine: bool) -> None:
    point = reduced.point.serialize()
    if reduced.order > 0:
        stage = FoldStage.SPLIT if fine else FoldStage.REDUCE
        state.pending = InefficiencyStep(point, reduced.order, fine, stage)
    elif fine:
        state.pending = InefficiencyStep(point, 0, True, FoldStage.TIGHTEN)
    else:
        state.pending = None
        pull_tight_all(state.surface, turn_directions(state.surface, reduced.point)[1])


def _continue_pending(state: AlgorithmState, selection: list[Any], button: Button) -> None:
    surface = state.surface
    pending = state.pending
    if isinstance(pending, CollapseStep):
        component = _edges_named(surface, pending.components[0])
        center = None
        if selection:
            center = _vertex_named(surface, selection[0], button)
        collapse_subforest(surface, component, [center])
        rest = pending.components[1:]
        state.pending = CollapseStep(rest) if rest else None
    elif isinstance(pending, AbsorbStep):
        if pending.extension:
            extension = _edges_named(surface, pending.extension)
            peripheral_vertices = surface.peripheral_vertices()
            centers: list[Vertex | None] = [
                next(iter(FibredSurface.vertices_of(component) & peripheral_vertices), None)
                for component in forest_components(extension)
            ]
            collapse_subforest(surface, extension, centers)
            state.pending = AbsorbStep()
        else:
            rebuild_periphery(surface)
            state.pending = None
    else:
        _continue_inefficiency(state, pending, selection, button)


def _continue_inefficiency(
    state: AlgorithmState, pending: InefficiencyStep, selection: list[Any], button: Button
) -> None:
    surface = state.surface
    point = _point_from(surface, pending.point, button)
    if pending.stage is FoldStage.TIGHTEN:
        state.pending = None
        pull_tight_all(surface, turn_directions(surface, point)[1])
        return
    if pending.stage is FoldStage.FOLD:
        plan = FoldPlan(
            [surface.edge_named(name) for name in pending.fold_edges],
            pending.initial_segment,
            [point],
        )
        preferred = None
        if button is Button.MOVE:
            preferred = int(_first(selection, button))
        reduced = fold_prepared(surface, Inefficiency(point, pending.order), plan, preferred)
        _after_reduction(state, reduced, fine=True)
        return

    inefficiency = check_efficiency(surface, point)
    if inefficiency is None or inefficiency.order != pending.order:
        raise AlgorithmError(
            "Inefficiency", f"the paused inefficiency at {pending.point} has changed"
        )
    if pending.stage is FoldStage.REDUCE:
        _after_reduction(state, reduce_inefficiency(surface, inefficiency), fine=False)
        return
    plan = prepare_fold(surface, inefficiency)
    state.pending = InefficiencyStep(
        plan.points[0].serialize(),
        pending.order,
        True,
        FoldStage.FOLD,
        tuple(edge.name for edge in plan.edges),
        plan.initial_segment,
    )


# -- selection helpers ----------------------------------------------------


_MISSING = object()


def _first(selection: list[Any], button: Button, default: Any = _MISSING) -> Any:
    if selection:
        return selection[0]
    if default is _MISSING:
        raise SelectionError(button.value, "nothing selected")
    return default


def _edge_named(surface: FibredSurface, name: Any, button: Button) -> Any:
    try:
        return surface.edge_named(str(name))
    except UnknownEdgeError as e:
        raise SelectionError(button.value, f"there is no edge {name}") from e


def _vertex_named(surface: FibredSurface, name: Any, button: Button) -> Vertex:
    try:
        return surface.vertex_named(str(name))
    except KeyError as e:
        raise SelectionError(button.value, f"there is no vertex {name}") from e


def _edges_named(surface: FibredSurface, names: Sequence[str]) -> list[Edge]:
    if isinstance(names, str):
        names = [names]
    return [surface.edge_named(name).edge for name in names]


def _point_from(surface: FibredSurface, value: Any, button: Button) -> EdgePoint:
    name, separator, index = str(value).rpartition("@")
    if not separator or not index.isdigit():
        raise SelectionError(button.value, f"'{value}' does not denote a point on an edge")
    edge = _edge_named(surface, name, button)
    if int(index) > len(edge.path):
        raise SelectionError(button.value, f"'{value}' lies beyond the image of {name}")
    return EdgePoint(edge, int(index))


def _edge_names(surface: FibredSurface, edges: set[Edge]) -> str:
    return ", ".join(edge.name for edge in surface.edges if edge in edges)


# -- driving the algorithm ------------------------------------------------


@dataclass
class RunSummary:
    """Outcome of ``StepController.run``.

    Attributes:
        steps: Number of applied suggestions
        finished: Whether the algorithm reached its final state
        halted_reducible: Whether the run stopped at a reducibility suggestion
        reducible_edges: Edges of the invariant subgraph witnessing reducibility
        classification: Type of the map, if known
        growth: Growth rate, if known
        moves: Number of applied suggestions per button
    """

    steps: int
    finished: bool
    halted_reducible: bool = False
    reducible_edges: list[str] = field(default_factory=list)
    classification: MappingClassType | None = None
    growth: float | None = None
    moves: dict[str, int] = field(default_factory=dict)


class StepController:
    """Drive an algorithm state, keeping earlier states for undo.

    Every applied move works on a clone of the current state, so earlier
    states stay untouched and can be returned to or branched from.
    """

    def __init__(
        self,
        state: AlgorithmState | FibredSurface,
        config: AlgorithmConfig | None = None,
        algorithm_logger: AlgorithmLogger | None = None,
    ) -> None:
        if isinstance(state, FibredSurface):
            state = AlgorithmState(state)
        self.state = state
        self.config = config or AlgorithmConfig()
        self.logger = algorithm_logger or AlgorithmLogger()
        self.history: list[AlgorithmState] = []

    @property
    def surface(self) -> FibredSurface:
        return self.state.surface

    def suggestion(self) -> Suggestion:
        return self._logged(next_suggestion(self.state))

    def _logged(self, suggestion: Suggestion) -> Suggestion:
        self.logger.log_suggestion(
            suggestion.kind.name, suggestion.description, len(suggestion.options)
        )
        return suggestion

    def apply(self, selection: Sequence[Any], button: Button | str) -> Suggestion:
        """Apply a move and return the next suggestion.

        Raises:
            SelectionError: If the move does not fit the current suggestion
            IntegrityError: If the move broke the graph map; logged first
        """
        label = button.value if isinstance(button, Button) else str(button)
        self.logger.log_action(label, list(selection))
        start = time.perf_counter()
        try:
            new_state, suggestion = step(self.state, selection, button, self.config)
        except IntegrityError as e:
            self.logger.log_integrity_failure(e.check, e.details, label, traceback.format_exc())
            raise
        if self.config.keep_history:
            self.history.append(self.state)
        self.state = new_state
        self.logger.log_move(
            label,
            len(self.surface.edges),
            len(self.surface.vertices),
            (time.perf_counter() - start) * 1000,
        )
        return self._logged(suggestion)

    def apply_next(self) -> Suggestion:
        """Apply the first button of the current suggestion with every option selected."""
        suggestion = self.suggestion()
        button = suggestion.default_button
        if button is None:
            return suggestion
        return self.apply(suggestion.values(), button)

    def undo(self) -> AlgorithmState:
        if not self.history:
            raise SelectionError("Undo", "there is no earlier state")
        self.state = self.history.pop()
        return self.state

    def branch(self) -> "StepController":
        """An independent controller starting from a copy of the current state."""
        branch = StepController(self.state.clone(), self.config, self.logger)
        branch.history = list(self.history)
        return branch

    def run(self, max_steps: int | None = None) -> RunSummary:
        """Apply suggestions until the algorithm is finished.

        Args:
            max_steps: Limit on applied suggestions (``max_steps_factor`` times
                the number of edges if None)

        Returns:
            Summary of the run; unfinished if the limit was reached
        """
        if max_steps is None:
            max_steps = self.config.max_steps_factor * max(len(self.surface.edges), 1)
        stats = self.logger.stats
        stats.start_time = time.time()
        self.logger.log_run_start(
            self.surface.name, len(self.surface.edges), len(self.surface.vertices), max_steps
        )
        steps = 0
        halted = False
        suggestion = self.suggestion()
        while not suggestion.is_finished and steps < max_steps:
            if suggestion.kind is SuggestionKind.REDUCIBLE and self.config.halt_on_reducible:
                self.logger.log_reducible(suggestion.description)
                halted = True
                break
            suggestion = self.apply(suggestion.values(), suggestion.default_button)
            steps += 1
        if not suggestion.is_finished and not halted:
            logger.warning("Stopped after %d steps without finishing", steps)

        summary = RunSummary(
            steps,
            suggestion.is_finished,
            halted,
            classification=self.state.classification,
            growth=self.state.growth,
            moves=dict(stats.moves),
        )
        if halted:
            witness = preserved_subgraph(self.surface) or set()
            summary.reducible_edges = [e.name for e in self.surface.edges if e in witness]
            summary.classification = MappingClassType.REDUCIBLE
        stats.end_time = time.time()
        self.logger.log_run_complete(
            summary.finished,
            summary.classification.value if summary.classification is not None else None,
            summary.growth,
        )
        return summary


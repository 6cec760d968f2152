"""Tests for suggestions, moves and the step controller."""

import pytest

from fibred.config import AlgorithmConfig
from fibred.core.analysis import MappingClassType
from fibred.core.controller import (
    AlgorithmState,
    StepController,
    apply_suggestion,
    next_suggestion,
    step,
)
from fibred.core.factory import EdgeSpec, build_surface, rose_spine
from fibred.domain.suggestion import Button, SuggestionKind
from fibred.domain.surface import FibredSurface
from fibred.exceptions import SelectionError
from fibred.utils.logging import AlgorithmLogger

GOLDEN_RATIO = (1 + 5**0.5) / 2


@pytest.fixture
def golden() -> FibredSurface:
    """Once-punctured torus with g(a) = a b, g(b) = a."""
    return build_surface(
        [EdgeSpec("a", "v", "v", "a b", 0, 2), EdgeSpec("b", "v", "v", "a", 1, 3)],
        name="golden",
    )


@pytest.fixture
def dumbbell() -> FibredSurface:
    """Loops a at v and b at w joined by e, all mapped identically."""
    return build_surface(
        [
            EdgeSpec("a", "v", "v", "a", 0, 1),
            EdgeSpec("e", "v", "w", "e", 2, 0),
            EdgeSpec("b", "w", "w", "b", 1, 2),
        ],
        name="dumbbell",
    )


@pytest.fixture
def inefficient() -> FibredSurface:
    """Once-punctured torus with g(a) = a b, g(b) = A b."""
    return build_surface(
        [EdgeSpec("a", "v", "v", "a b", 0, 2), EdgeSpec("b", "v", "v", "A b", 1, 3)]
    )


@pytest.fixture
def order_three() -> FibredSurface:
    """Rose with g(a) = b, g(b) = b A, whose illegal turn has order three."""
    return rose_spine({"a": "b", "b": "b A"})


class TestNextSuggestion:
    """Tests for next_suggestion function."""

    def test_efficient_map(self, golden: FibredSurface) -> None:
        """Test an efficient map is ready for conversion."""
        suggestion = next_suggestion(AlgorithmState(golden))
        assert suggestion.kind is SuggestionKind.TRAIN_TRACK
        assert suggestion.default_button is Button.CONVERT_TO_TRAIN_TRACK

    def test_subforest_comes_first(self, dumbbell: FibredSurface) -> None:
        """Test the invariant bar of the dumbbell is offered for collapse."""
        suggestion = next_suggestion(AlgorithmState(dumbbell))
        assert suggestion.kind is SuggestionKind.SUBFOREST
        assert suggestion.values() == [("e",)]
        assert suggestion.buttons == (Button.COLLAPSE_AT_ONCE, Button.COLLAPSE_IN_STEPS)

    def test_inefficiency(self, inefficient: FibredSurface) -> None:
        """Test the illegal turn is offered by its position."""
        suggestion = next_suggestion(AlgorithmState(inefficient))
        assert suggestion.kind is SuggestionKind.INEFFICIENCY
        assert suggestion.values() == ["a@1"]

    def test_finished_after_conversion(self, golden: FibredSurface) -> None:
        """Test nothing is left to do on a train track."""
        state = AlgorithmState(golden, is_train_track=True)
        state.classification = MappingClassType.PSEUDO_ANOSOV
        suggestion = next_suggestion(state)
        assert suggestion.is_finished
        assert "Pseudo-Anosov" in suggestion.description

    def test_reducible_with_preserved_boundary(self) -> None:
        """Test an invariant subgraph whose boundary is permuted stops the run."""
        surface = rose_spine({"a": "b", "b": "A", "c": "c"})
        suggestion = next_suggestion(AlgorithmState(surface))
        assert suggestion.kind is SuggestionKind.REDUCIBLE
        assert suggestion.buttons == (Button.CONTINUE_ANYWAYS,)

    def test_invariant_subgraph_with_broken_boundary(self) -> None:
        """Test an invariant subgraph is no reduction if its boundary is not kept."""
        surface = rose_spine({"a": "b b", "b": "b", "c": "c"})
        suggestion = next_suggestion(AlgorithmState(surface))
        assert suggestion.kind is SuggestionKind.TRAIN_TRACK


class TestApplySuggestion:
    """Tests for apply_suggestion and step functions."""

    def test_convert(self, golden: FibredSurface) -> None:
        """Test conversion records type and growth."""
        state = AlgorithmState(golden)
        apply_suggestion(state, [], Button.CONVERT_TO_TRAIN_TRACK)
        assert state.is_train_track
        assert state.classification is MappingClassType.PSEUDO_ANOSOV
        assert state.growth == pytest.approx(GOLDEN_RATIO)
        assert next_suggestion(state).kind is SuggestionKind.FINISHED

    def test_button_label(self, golden: FibredSurface) -> None:
        """Test buttons can be given by their labels."""
        state = AlgorithmState(golden)
        apply_suggestion(state, [], "Convert to train track")
        assert state.is_train_track

    def test_convert_twice(self, golden: FibredSurface) -> None:
        """Test a train track cannot be converted again."""
        state = AlgorithmState(golden)
        apply_suggestion(state, [], Button.CONVERT_TO_TRAIN_TRACK)
        with pytest.raises(SelectionError, match="already is a train track"):
            apply_suggestion(state, [], Button.CONVERT_TO_TRAIN_TRACK)

    def test_unknown_button(self, golden: FibredSurface) -> None:
        """Test labels that are no buttons are rejected."""
        with pytest.raises(SelectionError, match="unknown button"):
            apply_suggestion(AlgorithmState(golden), [], "Fly away")

    def test_continue_without_pending_step(self, golden: FibredSurface) -> None:
        """Test continuation buttons need a paused step."""
        with pytest.raises(SelectionError, match="no paused step"):
            apply_suggestion(AlgorithmState(golden), [], Button.CONTINUE)

    def test_step_keeps_old_state(self, dumbbell: FibredSurface) -> None:
        """Test step works on a copy."""
        state = AlgorithmState(dumbbell)
        new_state, suggestion = step(state, [("e",)], Button.COLLAPSE_AT_ONCE)
        assert len(state.surface.edges) == 3
        assert len(new_state.surface.edges) == 2
        assert suggestion.kind is SuggestionKind.REDUCIBLE

    def test_continue_anyways(self, dumbbell: FibredSurface) -> None:
        """Test reducibility can be waived."""
        state, _ = step(AlgorithmState(dumbbell), [("e",)], Button.COLLAPSE_AT_ONCE)
        state, suggestion = step(state, [], Button.CONTINUE_ANYWAYS)
        assert state.ignore_reducibility
        assert suggestion.kind is SuggestionKind.TRAIN_TRACK

    def test_button_not_offered(self, inefficient: FibredSurface) -> None:
        """Test a button of another suggestion is rejected before any change."""
        state = AlgorithmState(inefficient)
        with pytest.raises(SelectionError, match="offers Remove at once"):
            apply_suggestion(state, [], Button.CONVERT_TO_TRAIN_TRACK)
        assert len(state.surface.edges) == 2
        assert len(state.surface.vertices) == 1
        assert not state.is_train_track

    def test_continue_anyways_needs_reducibility(self, golden: FibredSurface) -> None:
        """Test reducibility cannot be waived on an irreducible map."""
        state = AlgorithmState(golden)
        with pytest.raises(SelectionError, match="offers Convert to train track"):
            apply_suggestion(state, [], Button.CONTINUE_ANYWAYS)
        assert not state.ignore_reducibility
        assert state.classification is None

    def test_remove_in_steps(self, order_three: FibredSurface) -> None:
        """Test one fold per step until the turn is gone."""
        state = AlgorithmState(order_three)
        apply_suggestion(state, ["b@1"], Button.REMOVE_IN_STEPS)
        orders = [state.pending.order]
        assert next_suggestion(state).kind is SuggestionKind.IN_PROGRESS
        while state.pending is not None:
            apply_suggestion(state, [], Button.CONTINUE)
            if state.pending is not None:
                orders.append(state.pending.order)
        assert orders == [2, 1]
        assert next_suggestion(state).kind is not SuggestionKind.IN_PROGRESS

    def test_remove_in_fine_steps(self, order_three: FibredSurface) -> None:
        """Test fine steps pause before every fold and offer the edge to keep."""
        state = AlgorithmState(order_three)
        apply_suggestion(state, ["b@1"], Button.REMOVE_IN_FINE_STEPS)
        folds = 0
        while state.pending is not None:
            suggestion = next_suggestion(state)
            assert suggestion.kind is SuggestionKind.IN_PROGRESS
            if Button.MOVE in suggestion.buttons:
                folds += 1
            if Button.MOVE in suggestion.buttons and suggestion.options:
                apply_suggestion(state, [suggestion.values()[0]], Button.MOVE)
            else:
                apply_suggestion(state, [], Button.CONTINUE)
        assert folds == 3


class TestStepController:
    """Tests for StepController class."""

    def test_run_golden(self, golden: FibredSurface) -> None:
        """Test the golden map finishes after one conversion."""
        summary = StepController(golden).run()
        assert summary.finished
        assert summary.steps == 1
        assert summary.classification is MappingClassType.PSEUDO_ANOSOV
        assert summary.growth == pytest.approx(GOLDEN_RATIO)
        assert summary.moves == {"Convert to train track": 1}

    def test_run_halts_on_reducible(self, dumbbell: FibredSurface) -> None:
        """Test a run stops with the witness of reducibility."""
        summary = StepController(dumbbell).run()
        assert not summary.finished
        assert summary.halted_reducible
        assert summary.steps == 1
        assert summary.reducible_edges == ["a"]
        assert summary.classification is MappingClassType.REDUCIBLE

    def test_run_through_reducible(self, dumbbell: FibredSurface) -> None:
        """Test a run can continue past reducibility."""
        config = AlgorithmConfig(halt_on_reducible=False)
        summary = StepController(dumbbell, config).run()
        assert summary.finished
        assert summary.steps == 3
        assert summary.classification is MappingClassType.REDUCIBLE
        assert summary.growth == pytest.approx(1.0)

    def test_step_limit(self, dumbbell: FibredSurface) -> None:
        """Test a run stops unfinished at the limit."""
        config = AlgorithmConfig(halt_on_reducible=False)
        summary = StepController(dumbbell, config).run(max_steps=1)
        assert not summary.finished
        assert not summary.halted_reducible
        assert summary.steps == 1

    def test_undo(self, dumbbell: FibredSurface) -> None:
        """Test undo returns to the state before the last move."""
        controller = StepController(dumbbell)
        controller.apply_next()
        assert len(controller.surface.edges) == 2
        controller.undo()
        assert len(controller.surface.edges) == 3
        assert controller.suggestion().kind is SuggestionKind.SUBFOREST

    def test_undo_without_history(self, golden: FibredSurface) -> None:
        """Test undo needs an earlier state."""
        with pytest.raises(SelectionError, match="no earlier state"):
            StepController(golden).undo()

    def test_history_can_be_disabled(self, golden: FibredSurface) -> None:
        """Test no states are kept without history."""
        controller = StepController(golden, AlgorithmConfig(keep_history=False))
        controller.apply_next()
        assert controller.history == []

    def test_branch_is_independent(self, dumbbell: FibredSurface) -> None:
        """Test moves on a branch leave the original alone."""
        controller = StepController(dumbbell)
        branch = controller.branch()
        branch.apply_next()
        assert len(branch.surface.edges) == 2
        assert len(controller.surface.edges) == 3

    def test_apply_next_when_finished(self, golden: FibredSurface) -> None:
        """Test nothing happens once the algorithm is finished."""
        controller = StepController(golden)
        controller.apply_next()
        suggestion = controller.apply_next()
        assert suggestion.is_finished
        assert len(controller.history) == 1

    def test_suggestions_logged_once(self, golden: FibredSurface) -> None:
        """Test every suggestion of a run is logged a single time."""

        class CountingLogger(AlgorithmLogger):
            def __init__(self) -> None:
                super().__init__()
                self.suggestions: list[str] = []

            def log_suggestion(self, kind: str, description: str, options: int) -> None:
                self.suggestions.append(kind)

        algorithm_logger = CountingLogger()
        summary = StepController(golden, algorithm_logger=algorithm_logger).run()
        assert summary.steps == 1
        assert algorithm_logger.suggestions == ["TRAIN_TRACK", "FINISHED"]

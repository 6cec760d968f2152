"""Tests for invariant subforests and collapsing them."""

import pytest

from fibred.core.factory import EdgeSpec, build_surface
from fibred.core.integrity import check_integrity
from fibred.core.subforests import (
    collapse_component,
    collapse_subforest,
    edge_graph,
    forest_components,
    invariant_subforests,
    is_periphery_friendly_forest,
)
from fibred.domain.surface import FibredSurface
from fibred.exceptions import AlgorithmError


def _dumbbell(peripheral: tuple[str, ...] = ()) -> FibredSurface:
    return build_surface(
        [
            EdgeSpec("a", "v", "v", "a", 0, 1),
            EdgeSpec("e", "v", "w", "e", 2, 0),
            EdgeSpec("b", "w", "w", "b", 1, 2),
        ],
        peripheral,
    )


@pytest.fixture
def dumbbell() -> FibredSurface:
    """Loops a at v and b at w joined by e, all mapped identically."""
    return _dumbbell()


class TestForests:
    """Tests for the forest helpers."""

    def test_edge_graph(self, dumbbell: FibredSurface) -> None:
        """Test every edge becomes a keyed graph edge."""
        graph = edge_graph(dumbbell.edges)
        assert graph.number_of_nodes() == 2
        assert graph.number_of_edges() == 3

    def test_forest_components(self, dumbbell: FibredSurface) -> None:
        """Test components are grouped by connectivity."""
        a, e, b = dumbbell.edges
        assert forest_components([a, b]) == [[a], [b]]
        assert len(forest_components([a, e, b])) == 1

    def test_single_edge_is_a_forest(self, dumbbell: FibredSurface) -> None:
        """Test an edge between distinct vertices is a forest."""
        assert is_periphery_friendly_forest(dumbbell, [dumbbell.edges[1]])

    def test_loop_is_not_a_forest(self, dumbbell: FibredSurface) -> None:
        """Test a loop is a cycle."""
        assert not is_periphery_friendly_forest(dumbbell, [dumbbell.edges[0]])

    def test_empty_set_is_not_a_forest(self, dumbbell: FibredSurface) -> None:
        """Test the empty subgraph does not count."""
        assert not is_periphery_friendly_forest(dumbbell, [])

    def test_forest_meeting_periphery_twice(self) -> None:
        """Test a tree joining two peripheral loops is not periphery-friendly."""
        surface = _dumbbell(("a", "b"))
        assert not is_periphery_friendly_forest(surface, [surface.edges[1]])

    def test_touching_requires_contact(self, dumbbell: FibredSurface) -> None:
        """Test touching forests must meet the periphery."""
        assert not is_periphery_friendly_forest(dumbbell, [dumbbell.edges[1]], touching=True)

    def test_remove_peripheral(self) -> None:
        """Test peripheral edges can be dropped before checking."""
        surface = _dumbbell(("a",))
        a, e, _ = surface.edges
        assert is_periphery_friendly_forest(surface, [a, e], remove_peripheral=True, touching=True)


class TestInvariantSubforests:
    """Tests for invariant_subforests function."""

    def test_connecting_edge(self, dumbbell: FibredSurface) -> None:
        """Test the invariant bar of the dumbbell is found."""
        assert invariant_subforests(dumbbell) == [[dumbbell.edges[1]]]

    def test_peripheral_loops_block_collapse(self) -> None:
        """Test a bar between two punctures is not collapsible."""
        assert invariant_subforests(_dumbbell(("a", "b"))) == []

    def test_loops_only(self) -> None:
        """Test a rose has no subforests."""
        surface = build_surface(
            [EdgeSpec("a", "v", "v", "a b", 0, 2), EdgeSpec("b", "v", "v", "a", 1, 3)]
        )
        assert invariant_subforests(surface) == []


class TestCollapse:
    """Tests for collapsing subforests."""

    def test_collapse_bar(self, dumbbell: FibredSurface) -> None:
        """Test the dumbbell collapses to a rose with two petals."""
        v = dumbbell.vertices[0]
        centers = collapse_subforest(dumbbell, [dumbbell.edges[1]])
        assert centers == [v]
        assert dumbbell.vertices == [v]
        assert [edge.name for edge in dumbbell.edges] == ["a", "b"]
        assert [str(edge.path) for edge in dumbbell.edges] == ["a", "b"]
        assert v.image is v
        check_integrity(dumbbell)

    def test_collapse_keeps_cyclic_order(self, dumbbell: FibredSurface) -> None:
        """Test edges pulled to the center take the place of the bar."""
        v = dumbbell.vertices[0]
        collapse_subforest(dumbbell, [dumbbell.edges[1]])
        assert [edge.name for edge in dumbbell.star_ordered(v)] == ["a", "A", "b", "B"]

    def test_chosen_center(self, dumbbell: FibredSurface) -> None:
        """Test an explicit center is used."""
        w = dumbbell.vertices[1]
        assert collapse_subforest(dumbbell, [dumbbell.edges[1]], [w]) == [w]
        assert dumbbell.vertices == [w]

    def test_cycle_cannot_collapse(self, dumbbell: FibredSurface) -> None:
        """Test collapsing a loop fails."""
        with pytest.raises(AlgorithmError, match="contains a cycle"):
            collapse_component(dumbbell, [dumbbell.edges[0]], dumbbell.vertices[0])

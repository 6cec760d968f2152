"""Tests for the structural checks of a fibred surface."""

import pytest

from fibred.core.factory import EdgeSpec, build_surface
from fibred.core.integrity import (
    check_continuity,
    check_cyclic_order,
    check_graph,
    check_integrity,
    check_names,
    check_vertex_images,
)
from fibred.domain.edge_path import EMPTY, FlatPath
from fibred.domain.graph import Edge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import IntegrityError


@pytest.fixture
def dumbbell() -> FibredSurface:
    """Loops a at v and b at w joined by e, all mapped identically."""
    return build_surface(
        [
            EdgeSpec("a", "v", "v", "a", 0, 1),
            EdgeSpec("e", "v", "w", "e", 2, 0),
            EdgeSpec("b", "w", "w", "b", 1, 2),
        ]
    )


class TestCheckIntegrity:
    """Tests for check_integrity and the individual checks."""

    def test_valid_surface(self, dumbbell: FibredSurface) -> None:
        """Test a consistent surface passes every check."""
        check_integrity(dumbbell)

    def test_degenerate_loop(self, dumbbell: FibredSurface) -> None:
        """Test a loop must not map to a vertex."""
        dumbbell.edges[0].path = EMPTY
        with pytest.raises(IntegrityError) as info:
            check_graph(dumbbell)
        assert info.value.check == "non-degenerate loops"

    def test_stray_peripheral_edge(self, dumbbell: FibredSurface) -> None:
        """Test peripheral edges must belong to the graph."""
        v = dumbbell.vertex_named("v")
        dumbbell.peripheral.add(Edge("z", v, v))
        with pytest.raises(IntegrityError, match="peripheral"):
            check_graph(dumbbell)

    def test_vertex_image_outside_graph(self, dumbbell: FibredSurface) -> None:
        """Test vertex images must be vertices of the graph."""
        dumbbell.vertex_named("v").image = Vertex("x")
        with pytest.raises(IntegrityError) as info:
            check_integrity(dumbbell)
        assert info.value.check == "graph"

    def test_duplicate_names(self, dumbbell: FibredSurface) -> None:
        """Test two edges with the same name."""
        dumbbell.edges[2].name = "a"
        with pytest.raises(IntegrityError) as info:
            check_names(dumbbell)
        assert info.value.check == "unique names"

    def test_discontinuous_image(self, dumbbell: FibredSurface) -> None:
        """Test an image path that jumps."""
        e = dumbbell.edge_named("e")
        e.set_path(FlatPath([e, e]))
        with pytest.raises(IntegrityError) as info:
            check_continuity(dumbbell)
        assert info.value.check == "continuity"
        assert "e e" in info.value.details

    def test_wrong_vertex_image(self, dumbbell: FibredSurface) -> None:
        """Test an edge image starting away from the vertex image."""
        dumbbell.vertex_named("v").image = dumbbell.vertex_named("w")
        with pytest.raises(IntegrityError) as info:
            check_vertex_images(dumbbell)
        assert info.value.check == "vertex images"

    def test_cyclic_order(self) -> None:
        """Test edges whose images start alike must be adjacent."""
        surface = build_surface(
            [EdgeSpec("a", "v", "v", "a b"), EdgeSpec("b", "v", "v", "a")], validate=False
        )
        with pytest.raises(IntegrityError) as info:
            check_cyclic_order(surface)
        assert info.value.check == "cyclic order"
        assert "{a, b}" in info.value.details

    def test_cyclic_order_depth(self) -> None:
        """Test only prefixes shorter than the depth are checked."""
        surface = build_surface(
            [EdgeSpec("a", "v", "v", "a b"), EdgeSpec("b", "v", "v", "a")], validate=False
        )
        check_cyclic_order(surface, prefix_depth=1)

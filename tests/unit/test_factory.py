"""Tests for constructing fibred surfaces."""

import math

import pytest

from fibred.core.factory import EdgeSpec, build_surface, rose_spine
from fibred.exceptions import SurfaceDefinitionError


class TestBuildSurface:
    """Tests for build_surface function."""

    def test_golden_surface(self) -> None:
        """Test building a one-vertex surface with explicit orders."""
        surface = build_surface(
            [EdgeSpec("a", "v", "v", "a b", 0, 2), EdgeSpec("b", "v", "v", "a", 1, 3)],
            name="golden",
        )
        assert surface.name == "golden"
        assert [v.name for v in surface.vertices] == ["v"]
        assert [e.name for e in surface.edges] == ["a", "b"]
        assert str(surface.edges[0].path) == "a b"
        assert surface.vertices[0].image is surface.vertices[0]

    def test_listing_order_is_the_default(self) -> None:
        """Test edges without orders are ordered as listed at each vertex."""
        surface = build_surface(
            [EdgeSpec("a", "v", "v", "a"), EdgeSpec("b", "v", "v", "b")]
        )
        star = surface.star_ordered(surface.vertices[0])
        assert [e.name for e in star] == ["a", "A", "b", "B"]

    def test_directions_become_angles(self) -> None:
        """Test tangent directions are turned into angles."""
        surface = build_surface(
            [
                EdgeSpec("a", "v", "v", "a", start_direction=(1.0, 0.0), end_direction=(0.0, 1.0)),
                EdgeSpec("b", "v", "v", "b", start_direction=(-1.0, 0.0), end_direction=(0.0, -1.0)),
            ]
        )
        a, b = surface.edges
        assert a.order_index_start == 0.0
        assert a.order_index_end == pytest.approx(math.pi / 2)
        assert b.order_index_start == pytest.approx(math.pi)
        assert [e.name for e in surface.star_ordered(surface.vertices[0])] == ["B", "a", "A", "b"]

    def test_peripheral_edges(self) -> None:
        """Test peripheral edges are marked by name."""
        surface = build_surface(
            [
                EdgeSpec("a", "v", "v", "a", 0, 1),
                EdgeSpec("e", "v", "w", "e", 2, 0),
                EdgeSpec("b", "w", "w", "b", 1, 2),
            ],
            peripheral=["a", "b"],
        )
        assert {e.name for e in surface.peripheral} == {"a", "b"}

    def test_unvalidated_surface(self) -> None:
        """Test validation can be skipped."""
        surface = build_surface(
            [EdgeSpec("a", "v", "v", "a b"), EdgeSpec("b", "v", "v", "a")], validate=False
        )
        assert len(surface.edges) == 2


class TestBuildSurfaceErrors:
    """Tests for invalid surface descriptions."""

    def test_no_edges(self) -> None:
        """Test an empty description."""
        with pytest.raises(SurfaceDefinitionError, match="no edges"):
            build_surface([])

    @pytest.mark.parametrize(
        ("name", "reason"),
        [
            ("A", "lowercase"),
            ("1", "needs a letter"),
            ("a'", "operator"),
        ],
    )
    def test_bad_edge_names(self, name: str, reason: str) -> None:
        """Test edge names that cannot be written in paths."""
        with pytest.raises(SurfaceDefinitionError, match=reason):
            build_surface([EdgeSpec(name, "v", "v", "")], validate=False)

    def test_duplicate_edge_name(self) -> None:
        """Test an edge name used twice."""
        with pytest.raises(SurfaceDefinitionError, match="used twice"):
            build_surface([EdgeSpec("a", "v", "v", "a"), EdgeSpec("a", "v", "v", "a")])

    def test_unknown_letter_in_image(self) -> None:
        """Test an image mentioning a missing edge."""
        with pytest.raises(SurfaceDefinitionError, match="image of a"):
            build_surface([EdgeSpec("a", "v", "v", "a q")])

    def test_discontinuous_image(self) -> None:
        """Test an image that is not a path."""
        with pytest.raises(SurfaceDefinitionError):
            build_surface(
                [
                    EdgeSpec("a", "v", "v", "a"),
                    EdgeSpec("e", "v", "w", "e e"),
                    EdgeSpec("b", "w", "w", "b"),
                ]
            )

    def test_unknown_peripheral_edge(self) -> None:
        """Test a peripheral name that is not an edge."""
        with pytest.raises(SurfaceDefinitionError, match="peripheral"):
            build_surface([EdgeSpec("a", "v", "v", "a")], peripheral=["z"])

    def test_degenerate_loop(self) -> None:
        """Test a loop mapped to a vertex fails validation."""
        with pytest.raises(SurfaceDefinitionError, match="non-degenerate loops"):
            build_surface([EdgeSpec("a", "v", "v", "")])

    def test_cyclic_order_violation(self) -> None:
        """Test images sharing a prefix must leave the vertex side by side."""
        with pytest.raises(SurfaceDefinitionError, match="cyclic order"):
            build_surface([EdgeSpec("a", "v", "v", "a b"), EdgeSpec("b", "v", "v", "a")])


class TestRoseSpine:
    """Tests for rose_spine function."""

    def test_golden_rose(self) -> None:
        """Test the two-petal rose is a once-punctured torus."""
        surface = rose_spine({"a": "a b", "b": "a"})
        v = surface.vertices[0]
        assert [e.name for e in surface.star_ordered(v)] == ["a", "b", "A", "B"]
        assert len(surface.boundary_words()) == 1

    def test_peripheral_loop(self) -> None:
        """Test loops can be marked peripheral."""
        surface = rose_spine({"a": "a", "b": "b"}, peripheral=["b"])
        assert [e.name for e in surface.peripheral_edges()] == ["b"]

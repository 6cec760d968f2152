"""Tests for removing vertices of valence one and two."""

import pytest

from fibred.core.factory import EdgeSpec, build_surface
from fibred.core.integrity import check_integrity
from fibred.core.valence import (
    remove_valence_one_vertex,
    remove_valence_two_vertex,
    valence_one_vertices,
    valence_two_vertices,
)
from fibred.domain.surface import FibredSurface
from fibred.exceptions import AlgorithmError


@pytest.fixture
def leaf() -> FibredSurface:
    """A loop at v with a hair e ending in w."""
    return build_surface(
        [EdgeSpec("a", "v", "v", "a", 0, 1), EdgeSpec("e", "v", "w", "e", 2, 0)]
    )


@pytest.fixture
def subdivided() -> FibredSurface:
    """A loop at v and a second loop subdivided at w."""
    return build_surface(
        [
            EdgeSpec("a", "v", "v", "a", 0, 1),
            EdgeSpec("b", "v", "w", "b", 2, 0),
            EdgeSpec("c", "w", "v", "c", 1, 3),
        ]
    )


class TestValenceOne:
    """Tests for valence-one vertices."""

    def test_find(self, leaf: FibredSurface) -> None:
        """Test the end of the hair is a leaf."""
        assert valence_one_vertices(leaf) == [leaf.vertices[1]]

    def test_remove(self, leaf: FibredSurface) -> None:
        """Test removing the leaf drops its edge."""
        v, w = leaf.vertices
        remove_valence_one_vertex(leaf, w)
        assert leaf.vertices == [v]
        assert [edge.name for edge in leaf.edges] == ["a"]
        assert valence_one_vertices(leaf) == []

    def test_wrong_valence(self, leaf: FibredSurface) -> None:
        """Test vertices of other valences are rejected."""
        with pytest.raises(AlgorithmError, match="valence 3, not 1"):
            remove_valence_one_vertex(leaf, leaf.vertices[0])


class TestValenceTwo:
    """Tests for valence-two vertices."""

    def test_find(self, subdivided: FibredSurface) -> None:
        """Test the subdivision point is found."""
        assert valence_two_vertices(subdivided) == [subdivided.vertices[1]]

    def test_single_loop_is_not_subdivided(self) -> None:
        """Test the base of a lonely loop does not count."""
        surface = build_surface([EdgeSpec("a", "v", "v", "a", 0, 1)])
        assert valence_two_vertices(surface) == []
        with pytest.raises(AlgorithmError, match="base of the loop"):
            remove_valence_two_vertex(surface, surface.vertices[0])

    def test_remove_with_given_edge(self, subdivided: FibredSurface) -> None:
        """Test the two halves are joined into one edge."""
        v, w = subdivided.vertices
        new = remove_valence_two_vertex(subdivided, w, removed=subdivided.edges[2].forward)
        assert subdivided.vertices == [v]
        assert [edge.name for edge in subdivided.edges] == ["a", "b"]
        assert new.edge is subdivided.edges[1]
        assert str(subdivided.edges[1].path) == "b"
        check_integrity(subdivided)

    def test_removed_edge_must_end_there(self, subdivided: FibredSurface) -> None:
        """Test the discarded edge has to be incident to the vertex."""
        with pytest.raises(AlgorithmError, match="does not end at"):
            remove_valence_two_vertex(
                subdivided, subdivided.vertices[1], removed=subdivided.edges[0].forward
            )

    def test_wrong_valence(self, subdivided: FibredSurface) -> None:
        """Test vertices of other valences are rejected."""
        with pytest.raises(AlgorithmError, match="valence 4, not 2"):
            remove_valence_two_vertex(subdivided, subdivided.vertices[0])

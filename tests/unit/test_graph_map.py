"""Tests for editing the graph map."""

import pytest

from fibred.core.factory import EdgeSpec, build_surface
from fibred.core.graph_map import (
    GraphMapUpdateMode,
    induced_vertex_images,
    parse_map,
    set_map,
    update_map,
)
from fibred.domain.edge_path import FlatPath, NamedPath
from fibred.domain.surface import FibredSurface
from fibred.exceptions import MapDefinitionError, UnknownEdgeError


@pytest.fixture
def golden() -> FibredSurface:
    """Once-punctured torus with g(a) = a b, g(b) = a."""
    return build_surface(
        [EdgeSpec("a", "v", "v", "a b", 0, 2), EdgeSpec("b", "v", "v", "a", 1, 3)]
    )


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


def image(surface: FibredSurface, name: str) -> str:
    return str(surface.edge_named(name).path)


class TestParseMap:
    """Tests for parse_map function."""

    def test_missing_edges_get_identity(self, golden: FibredSurface) -> None:
        """Test edges without an entry map to themselves."""
        images = parse_map(golden, "a -> b")
        a, b = golden.edge_named("a"), golden.edge_named("b")
        assert str(images[a]) == "b"
        assert images[b] == FlatPath([b])

    def test_entry_for_reversed_edge(self, golden: FibredSurface) -> None:
        """Test an entry may name the reversed orientation."""
        images = parse_map(golden, "A -> B A")
        assert str(images[golden.edge_named("A")]) == "B A"

    def test_two_images_for_one_edge(self, golden: FibredSurface) -> None:
        """Test giving both orientations of an edge is rejected."""
        with pytest.raises(MapDefinitionError, match="more than one image"):
            parse_map(golden, "a -> a, A -> A")

    def test_accepts_split_entries(self, golden: FibredSurface) -> None:
        """Test entries may be passed as a mapping."""
        images = parse_map(golden, {"b": "a b"})
        assert str(images[golden.edge_named("b")]) == "a b"

    def test_unknown_letter(self, golden: FibredSurface) -> None:
        """Test an image using an unknown name."""
        with pytest.raises(UnknownEdgeError):
            parse_map(golden, "a -> a z")


class TestUpdateMap:
    """Tests for update_map and set_map."""

    def test_replace(self, golden: FibredSurface) -> None:
        """Test replacing the map."""
        update_map(golden, "a -> a b a, b -> A")
        assert image(golden, "a") == "a b a"
        assert image(golden, "b") == "A"

    def test_replace_through_reversed_edge(self, golden: FibredSurface) -> None:
        """Test an entry for A sets the inverse image on a."""
        update_map(golden, "A -> B")
        assert image(golden, "a") == "b"

    def test_definitions(self, golden: FibredSurface) -> None:
        """Test definitions can be used and are kept by name."""
        update_map(golden, "x := a b, a -> x, b -> a")
        assert isinstance(golden.edges[0].path, NamedPath)
        assert image(golden, "a") == "x"
        assert [named.name for named in golden.named_paths()] == ["x"]

    def test_precompose(self, golden: FibredSurface) -> None:
        """Test precomposition applies the old map to the new images."""
        update_map(golden, "a -> b, b -> a", GraphMapUpdateMode.PRECOMPOSE)
        assert image(golden, "a") == "a"
        assert image(golden, "b") == "a b"

    def test_postcompose(self, golden: FibredSurface) -> None:
        """Test postcomposition applies the new map to the old images."""
        update_map(golden, "a -> b, b -> a", GraphMapUpdateMode.POSTCOMPOSE)
        assert image(golden, "a") == "b a"
        assert image(golden, "b") == "b"

    def test_postcompose_needs_every_edge(self, golden: FibredSurface) -> None:
        """Test a partial map cannot be postcomposed."""
        a = golden.edge_named("a")
        with pytest.raises(MapDefinitionError, match="postcomposition"):
            set_map(golden, {a: FlatPath([a])}, GraphMapUpdateMode.POSTCOMPOSE)

    def test_discontinuous_image_is_rejected(self, dumbbell: FibredSurface) -> None:
        """Test an image that jumps between vertices."""
        with pytest.raises(MapDefinitionError, match="does not end where"):
            update_map(dumbbell, "a -> e a")
        assert image(dumbbell, "a") == "a"

    def test_inconsistent_vertex_image_is_rejected(self, dumbbell: FibredSurface) -> None:
        """Test images disagreeing about a vertex leave the map unchanged."""
        with pytest.raises(MapDefinitionError, match="would map to both"):
            update_map(dumbbell, "a -> a e")
        assert image(dumbbell, "a") == "a"
        assert image(dumbbell, "e") == "e"

    def test_vertex_images_follow_the_map(self, dumbbell: FibredSurface) -> None:
        """Test vertex images are induced from the new edge images."""
        update_map(dumbbell, "a -> e b E, e -> e b, b -> b")
        v = dumbbell.vertex_named("v")
        w = dumbbell.vertex_named("w")
        assert v.image is v
        assert w.image is w


class TestInducedVertexImages:
    """Tests for induced_vertex_images function."""

    def test_golden(self, golden: FibredSurface) -> None:
        """Test the single vertex maps to itself."""
        v = golden.vertices[0]
        assert induced_vertex_images(golden) == {v: v}

    def test_replacement_paths(self, dumbbell: FibredSurface) -> None:
        """Test replacement images are used instead of the current ones."""
        v = dumbbell.vertex_named("v")
        w = dumbbell.vertex_named("w")
        a = dumbbell.edges[0]
        loop = FlatPath([dumbbell.edge_named(name) for name in ("e", "b", "E")])
        images = induced_vertex_images(dumbbell, {a: loop})
        assert images[v] is v
        assert images[w] is w

"""Unit tests for the edge-path parser and map texts."""

import pytest

from fibred.domain.edge_path import EMPTY, ConjugatePath, NamedPath
from fibred.domain.graph import Edge, OrientedEdge, Vertex
from fibred.exceptions import MapDefinitionError, PathSyntaxError, UnknownEdgeError
from fibred.io import PathParser, parse_map_text, parse_path


@pytest.fixture
def letters() -> dict[str, OrientedEdge]:
    """Loops a, b and c at one vertex."""
    v = Vertex("v")
    result = {}
    for name in "abc":
        edge = Edge(name, v, v)
        result[name] = edge.forward
        result[name.upper()] = edge.reversed()
    return result


def names(path) -> list[str]:
    return [letter.name for letter in path]


class TestParsePath:
    """Tests for parsing path expressions."""

    def test_space_separated_word(self, letters: dict[str, OrientedEdge]) -> None:
        """Test a plain word of edge names."""
        assert names(parse_path("a B c", letters)) == ["a", "B", "c"]

    def test_other_separators(self, letters: dict[str, OrientedEdge]) -> None:
        """Test '*' and '·' concatenate like whitespace."""
        assert names(parse_path("a*b·c", letters)) == ["a", "b", "c"]

    def test_blank_text_is_empty(self, letters: dict[str, OrientedEdge]) -> None:
        """Test blank input parses to the empty path."""
        assert parse_path("", letters) is EMPTY
        assert parse_path("   ", letters) is EMPTY

    def test_prime_inverts_letter(self, letters: dict[str, OrientedEdge]) -> None:
        """Test a prime inverts the preceding edge."""
        assert names(parse_path("a' b", letters)) == ["A", "b"]

    def test_prime_inverts_group(self, letters: dict[str, OrientedEdge]) -> None:
        """Test a prime inverts a parenthesized group."""
        assert names(parse_path("c (a b)'", letters)) == ["c", "B", "A"]

    def test_right_conjugation(self, letters: dict[str, OrientedEdge]) -> None:
        """Test x^y parses to the right conjugate y⁻¹ x y."""
        path = parse_path("a^b", letters)
        assert isinstance(path, ConjugatePath)
        assert names(path) == ["B", "a", "b"]

    def test_left_conjugation(self, letters: dict[str, OrientedEdge]) -> None:
        """Test x°y parses to the left conjugate x y x⁻¹."""
        path = parse_path("a°b", letters)
        assert names(path) == ["a", "b", "A"]
        assert str(path) == "a°b"

    def test_conjugation_by_group(self, letters: dict[str, OrientedEdge]) -> None:
        """Test conjugating by a parenthesized path."""
        assert names(parse_path("c^(a b)", letters)) == ["B", "A", "c", "a", "b"]


class TestParseErrors:
    """Tests for malformed expressions."""

    def test_unbalanced_parentheses(self, letters: dict[str, OrientedEdge]) -> None:
        """Test unbalanced parentheses are rejected before parsing."""
        with pytest.raises(PathSyntaxError, match="parentheses"):
            parse_path("(a b", letters)

    def test_prime_without_operand(self, letters: dict[str, OrientedEdge]) -> None:
        """Test a leading prime is rejected with its position."""
        with pytest.raises(PathSyntaxError) as info:
            parse_path("'a", letters)
        assert info.value.position == 0

    def test_dangling_conjugation(self, letters: dict[str, OrientedEdge]) -> None:
        """Test a conjugation operator at the end of the input."""
        with pytest.raises(PathSyntaxError):
            parse_path("a^", letters)

    def test_unknown_name(self, letters: dict[str, OrientedEdge]) -> None:
        """Test unknown names are reported by name."""
        with pytest.raises(UnknownEdgeError) as info:
            parse_path("a q", letters)
        assert info.value.name == "q"


class TestDefinitions:
    """Tests for named definitions."""

    def test_define_and_use(self, letters: dict[str, OrientedEdge]) -> None:
        """Test a definition can be used in later expressions."""
        parser = PathParser(letters)
        parser.define("x", "a b")
        path = parser.parse("x C")
        assert names(path) == ["a", "b", "C"]
        assert str(path) == "x C"
        assert [named.name for named in path.named_paths()] == ["x"]

    def test_inverse_definition(self, letters: dict[str, OrientedEdge]) -> None:
        """Test the uppercase name denotes the inverse definition."""
        parser = PathParser(letters)
        named = parser.define("x", "a b")
        assert isinstance(named, NamedPath)
        assert names(parser.parse("X")) == ["B", "A"]

    def test_lookup_unknown(self, letters: dict[str, OrientedEdge]) -> None:
        """Test lookup of a name that is neither edge nor definition."""
        with pytest.raises(UnknownEdgeError):
            PathParser(letters).lookup("z", "z")


class TestParseMapText:
    """Tests for splitting map texts into entries."""

    def test_arrow_entries_separated_by_commas(self) -> None:
        """Test the arrow form with comma separated entries."""
        assert parse_map_text("a -> a b, b -> a") == {"a": "a b", "b": "a"}

    def test_all_entry_forms(self) -> None:
        """Test every accepted entry form, one per line."""
        text = "g(a) = a b\nb ↦ A\nx := a b\nc = C"
        assert parse_map_text(text) == {"a": "a b", "b": "A", "x": "a b", "c": "C"}

    def test_blank_entries_are_skipped(self) -> None:
        """Test empty lines and trailing commas."""
        assert parse_map_text("a -> b,\n\n") == {"a": "b"}

    def test_invalid_entry(self) -> None:
        """Test an entry without an assignment."""
        with pytest.raises(MapDefinitionError) as info:
            parse_map_text("a b c")
        assert info.value.entry == "a b c"

    def test_missing_edge_name(self) -> None:
        """Test an entry with an empty key."""
        with pytest.raises(MapDefinitionError, match="missing edge name"):
            parse_map_text("g( ) = a")

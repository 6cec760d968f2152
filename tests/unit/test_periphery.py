"""Tests for the peripheral subgraph: absorption and peripheral inefficiencies."""

import pytest

from fibred.core.factory import EdgeSpec, build_surface
from fibred.core.integrity import check_integrity
from fibred.core.periphery import (
    AbsorptionCheck,
    absorb_into_periphery,
    absorption_needed,
    maximal_peripheral_subgraph,
    peripheral_inefficiencies,
)
from fibred.domain.surface import FibredSurface


@pytest.fixture
def attached() -> FibredSurface:
    """A puncture loop p at w whose connecting edge e maps across it."""
    return build_surface(
        [
            EdgeSpec("a", "v", "v", "a b", 0, 4),
            EdgeSpec("b", "v", "v", "a", 1, 3),
            EdgeSpec("e", "v", "w", "a e p", 2, 0),
            EdgeSpec("p", "w", "w", "p", 2, 1),
        ],
        peripheral=["p"],
    )


@pytest.fixture
def layered() -> FibredSurface:
    """A peripheral loop p with a loop q mapped onto it."""
    return build_surface(
        [
            EdgeSpec("a", "v", "v", "a", 0, 1),
            EdgeSpec("e", "v", "w", "e", 2, 0),
            EdgeSpec("p", "w", "w", "p", 1, 3),
            EdgeSpec("q", "w", "w", "p", 2, 4),
        ],
        peripheral=["p"],
    )


class TestAbsorptionCheck:
    """Tests for deciding whether the periphery must grow."""

    def test_nothing_needed(self) -> None:
        """Test an empty check asks for nothing."""
        check = AbsorptionCheck()
        assert not check.needed
        assert check.describe() == ""

    def test_maximal_subgraph(self, attached: FibredSurface) -> None:
        """Test no orbit retracts onto the puncture loop."""
        p = attached.edges[3]
        assert maximal_peripheral_subgraph(attached) == {p}

    def test_edge_starting_into_periphery(self, attached: FibredSurface) -> None:
        """Test E starts with P, so it has to be absorbed."""
        check = absorption_needed(attached)
        assert check.extension == []
        assert check.low_valence == []
        assert [edge.name for edge in check.non_maximal] == ["E"]
        assert check.needed
        assert "E" in check.describe()


class TestAbsorbIntoPeriphery:
    """Tests for absorb_into_periphery function."""

    def test_rebuilt_periphery(self, attached: FibredSurface) -> None:
        """Test the puncture gets a fresh loop and e loses its peripheral tail."""
        new = absorb_into_periphery(attached)
        assert [edge.name for edge in new] == ["α"]
        assert [edge.name for edge in attached.peripheral_edges()] == ["α"]
        e = next(edge for edge in attached.edges if edge.name == "e")
        assert str(e.path) == "a e"
        check_integrity(attached)

    def test_absorption_is_complete(self, attached: FibredSurface) -> None:
        """Test nothing is left to absorb afterwards."""
        absorb_into_periphery(attached)
        assert not absorption_needed(attached).needed


class TestPeripheralInefficiencies:
    """Tests for peripheral_inefficiencies function."""

    def test_edges_entering_the_same_peripheral_edge(self, layered: FibredSurface) -> None:
        """Test p and q both start with p, in both directions."""
        groups = {tuple(edge.name for edge in group) for group in peripheral_inefficiencies(layered)}
        assert groups == {("p", "q"), ("P", "Q")}

    def test_without_periphery(self) -> None:
        """Test nothing is found when there is no periphery."""
        surface = build_surface(
            [EdgeSpec("a", "v", "v", "a b", 0, 2), EdgeSpec("b", "v", "v", "a", 1, 3)]
        )
        assert peripheral_inefficiencies(surface) == []

"""Transition matrix, reducibility and Perron-Frobenius data.

The pre-periphery is peeled off in layers: edges whose images run only
through already classified edges, starting from the peripheral subgraph.
Everything else is the essential subgraph, whose transition matrix carries the
growth rate of the map.
"""

import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from fibred.domain.graph import Edge, OrientedEdge
from fibred.domain.surface import FibredSurface
from fibred.exceptions import IterationLimitError

logger = logging.getLogger(__name__)


class MappingClassType(str, Enum):
    """Thurston-Nielsen type of the map."""

    PSEUDO_ANOSOV = "Pseudo-Anosov"
    FINITE_ORDER = "Finite-Order"
    REDUCIBLE = "Reducible"


@dataclass
class PerronFrobenius:
    """Growth rate and eigenvector data of a transition matrix.

    Attributes:
        growth: The Perron-Frobenius eigenvalue
        edges: Edges indexing the rows and columns of ``matrix``
        matrix: The transition matrix
        widths: Right eigenvector entry per edge
        lengths: Left eigenvector entry per edge, scaled to match image lengths
    """

    growth: float
    edges: list[Edge] = field(default_factory=list)
    matrix: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    widths: dict[Edge, float] = field(default_factory=dict)
    lengths: dict[Edge, float] = field(default_factory=dict)


def pre_peripheral_degrees(surface: FibredSurface) -> list[set[Edge]]:
    """Layers ``P_0 = P, P_1, ...`` of edges mapped into lower layers.

    Raises:
        IterationLimitError: If peeling does not stop within twice the
            number of edges
    """
    degrees = [set(surface.peripheral)]
    remaining = set(surface.edges) - degrees[0]
    limit = 2 * len(surface.edges)
    for _ in range(limit + 1):
        layer = {
            edge
            for edge in remaining
            if all(letter.edge not in remaining for letter in edge.path)
        }
        if not layer:
            return degrees
        degrees.append(layer)
        remaining -= layer
        if not remaining:
            return degrees
    raise IterationLimitError("Pre-peripheral layers", limit)


def pre_periphery(surface: FibredSurface) -> set[Edge]:
    """Edges eventually mapped into the periphery, the periphery included."""
    result: set[Edge] = set()
    for degree in pre_peripheral_degrees(surface):
        result |= degree
    return result


def essential_subgraph(surface: FibredSurface) -> list[Edge]:
    prefix = pre_periphery(surface)
    return [edge for edge in surface.edges if edge not in prefix]


def transition_matrix(surface: FibredSurface, edges: list[Edge] | None = None) -> np.ndarray:
    """Crossing counts: entry ``[i, j]`` counts ``edges[i]`` in the image of ``edges[j]``.

    Args:
        surface: The surface
        edges: Edges indexing rows and columns (all edges if None)

    Returns:
        An integer matrix
    """
    if edges is None:
        edges = list(surface.edges)
    index = {edge: i for i, edge in enumerate(edges)}
    matrix = np.zeros((len(edges), len(edges)), dtype=int)
    for j, edge in enumerate(edges):
        for letter in edge.path:
            i = index.get(letter.edge)
            if i is not None:
                matrix[i, j] += 1
    return matrix


def preserved_subgraph(surface: FibredSurface) -> set[Edge] | None:
    """An invariant subgraph not containing the whole essential subgraph.

    Returns:
        The orbit of an essential edge witnessing reducibility, or None if
        every essential edge eventually covers the essential subgraph
    """
    essential = essential_subgraph(surface)
    full_orbit: set[Edge] = set()
    for edge in essential:
        if edge in full_orbit:
            continue
        orbit = surface.orbit_of_edge(edge, full_orbit)
        if any(other not in orbit for other in essential):
            return orbit
        full_orbit.add(edge)
    return None


def boundary_words_preserved(surface: FibredSurface, subgraph: Collection[Edge]) -> bool:
    """Whether the map permutes the boundary words of an invariant subgraph.

    The image of every boundary word, cyclically reduced, must again be a
    boundary word of the subgraph up to rotation (or its inverse, for maps
    reversing the orientation).
    """
    words = surface.boundary_words(subgraph)
    known = {_cyclic_key(_cyclically_reduced(list(word))) for word in words}
    for word in words:
        image = _cyclically_reduced([letter for oriented in word for letter in oriented.path])
        inverse = [letter.reversed() for letter in reversed(image)]
        if _cyclic_key(image) not in known and _cyclic_key(inverse) not in known:
            logger.debug("Boundary word %s is not mapped to a boundary word", word)
            return False
    return True


def _cyclically_reduced(letters: list[OrientedEdge]) -> list[OrientedEdge]:
    reduced: list[OrientedEdge] = []
    for letter in letters:
        if reduced and reduced[-1] == letter.reversed():
            reduced.pop()
        else:
            reduced.append(letter)
    while len(reduced) > 1 and reduced[0] == reduced[-1].reversed():
        reduced = reduced[1:-1]
    return reduced


def _cyclic_key(letters: list[OrientedEdge]) -> tuple[str, ...]:
    names = [letter.name for letter in letters]
    if not names:
        return ()
    return min(tuple(names[i:] + names[:i]) for i in range(len(names)))


def _positive_geometric_mean(values: np.ndarray) -> float:
    positive = values[values > 0]
    if positive.size == 0:
        return 1.0
    return float(np.exp(np.mean(np.log(positive))))


def _oriented_positive(vector: np.ndarray) -> np.ndarray:
    vector = np.real(vector)
    if vector.sum() < 0:
        vector = -vector
    return vector


def perron_frobenius(
    surface: FibredSurface,
    essential: bool = True,
    eigen_tolerance: float = 1e-6,
    length_tolerance: float = 1e-12,
) -> PerronFrobenius:
    """Perron-Frobenius eigenvalue and eigenvectors of the transition matrix.

    Args:
        surface: The surface
        essential: Restrict to the essential subgraph
        eigen_tolerance: Left eigenvector entries below this are not used to
            match image lengths
        length_tolerance: Lengths below this are reported as zero

    Returns:
        The growth rate with widths and lengths per edge; an empty matrix has
        growth 1
    """
    edges = essential_subgraph(surface) if essential else list(surface.edges)
    if not edges:
        return PerronFrobenius(1.0)
    matrix = transition_matrix(surface, edges)
    values, vectors = np.linalg.eig(matrix.astype(float))
    column = int(np.argmax(values.real))
    growth = float(values[column].real)

    right = _oriented_positive(vectors[:, column])
    right = right * growth / _positive_geometric_mean(right)

    left_values, left_vectors = np.linalg.eig(matrix.T.astype(float))
    left_column = int(np.argmin(np.abs(left_values - growth)))
    left = _oriented_positive(left_vectors[:, left_column])
    expected = np.array([len(edge.path) for edge in edges], dtype=float)
    usable = np.abs(left) >= eigen_tolerance
    ratios = np.zeros_like(left)
    ratios[usable] = expected[usable] / left[usable]
    left = left * _positive_geometric_mean(ratios)
    left[left < length_tolerance] = 0.0

    logger.debug("Perron-Frobenius eigenvalue %.6f on %d edges", growth, len(edges))
    return PerronFrobenius(
        growth,
        edges,
        matrix,
        {edge: float(right[i]) for i, edge in enumerate(edges)},
        {edge: float(left[i]) for i, edge in enumerate(edges)},
    )


def classify(
    surface: FibredSurface,
    is_train_track: bool = False,
    reducibility_ignored: bool = False,
    growth_tolerance: float = 1e-6,
) -> MappingClassType | None:
    """Thurston-Nielsen type, as far as it is known.

    Returns:
        REDUCIBLE if reducibility was waived or is detected; for a train track
        PSEUDO_ANOSOV or FINITE_ORDER depending on the growth rate; otherwise
        None
    """
    if reducibility_ignored or preserved_subgraph(surface) is not None:
        return MappingClassType.REDUCIBLE
    if not is_train_track:
        return None
    growth = perron_frobenius(surface).growth
    if growth > 1 + growth_tolerance:
        return MappingClassType.PSEUDO_ANOSOV
    return MappingClassType.FINITE_ORDER

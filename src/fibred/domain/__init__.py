"""Domain models for fibred.

This module contains the models for graphs embedded in punctured surfaces and
the maps between them:

- Edge paths are immutable words in oriented edges
- Vertices and edges are mutable and compared by identity
- Suggestions describe the moves the algorithm proposes

Key classes:
- EdgePath: An immutable word of oriented edges
- Vertex, Edge, OrientedEdge: Graph elements
- FibredSurface: The graph, its cyclic orders and its graph map
- Gate: A class of directions identified by the derivative map
- EdgePoint, Inefficiency: Points on edges and illegal turns there
- Suggestion, Button: Proposed moves and the actions they offer
"""

from fibred.domain.edge_path import (
    EMPTY,
    ConcatPath,
    ConjugatePath,
    EdgePath,
    FlatPath,
    NamedPath,
    reverse_case,
)
from fibred.domain.edge_point import EdgePoint, Inefficiency
from fibred.domain.gate import EdgeCycle, Gate
from fibred.domain.graph import Edge, OrientedEdge, Vertex
from fibred.domain.suggestion import Button, Option, Suggestion, SuggestionKind
from fibred.domain.surface import FibredSurface

__all__: list[str] = [
    # Paths
    "EMPTY",
    "EdgePath",
    "FlatPath",
    "ConcatPath",
    "ConjugatePath",
    "NamedPath",
    "reverse_case",
    # Graph
    "Vertex",
    "Edge",
    "OrientedEdge",
    "FibredSurface",
    "EdgeCycle",
    "Gate",
    "EdgePoint",
    "Inefficiency",
    # Suggestions
    "Button",
    "Option",
    "Suggestion",
    "SuggestionKind",
]

"""Core algorithms for fibred.

This module contains the moves of the Bestvina-Handel algorithm and the
analysis of the resulting graph maps:

- Graph map updates and surface construction
- Gates, pulling tight, folding and inefficiencies
- Invariant subforests, valence reduction and absorption into the periphery
- Transition matrices, growth rates and train track conversion

All moves mutate the surface in place; the step controller clones states
before applying a move.

Key functions:
- build_surface: Construct a surface from edge descriptions
- rose_spine: Construct a one-vertex rose
- update_map: Replace or compose the graph map
- find_gates: Gates of the derivative map
- perron_frobenius: Growth rate with widths and lengths
- check_integrity: Verify the surface invariants

Key classes:
- AlgorithmState: Surface plus algorithm flags and the pending step
- StepController: Applies suggestions with undo and bounded runs
"""

from fibred.core.analysis import MappingClassType, PerronFrobenius, classify, perron_frobenius
from fibred.core.controller import (
    AlgorithmState,
    RunSummary,
    StepController,
    apply_suggestion,
    next_suggestion,
    step,
)
from fibred.core.factory import EdgeSpec, build_surface, rose_spine
from fibred.core.gates import find_gates
from fibred.core.graph_map import GraphMapUpdateMode, set_map, update_map
from fibred.core.integrity import check_integrity
from fibred.core.train_track import convert_to_train_track

__all__ = [
    # Controller
    "AlgorithmState",
    "RunSummary",
    "StepController",
    "apply_suggestion",
    "next_suggestion",
    "step",
    # Construction
    "EdgeSpec",
    "GraphMapUpdateMode",
    "build_surface",
    "rose_spine",
    "set_map",
    "update_map",
    # Analysis
    "MappingClassType",
    "PerronFrobenius",
    "check_integrity",
    "classify",
    "convert_to_train_track",
    "find_gates",
    "perron_frobenius",
]

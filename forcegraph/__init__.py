# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
"""
forcegraph: Warp-accelerated force-directed graph layout.

Architecture:
    - sim.Model: Static graph description (node records, sorted edges)
    - sim.State: One node buffer; two of them form the double buffer
    - solvers.Solver*: Advance the layout one frame per step()
"""

from .sim import EdgeIndex, EdgeIndexError, LayoutConfig, Model, State, build_edge_index
from .solvers import SolverBase, SolverForceDirected, SolverReference

__version__ = "0.1.0"

__all__ = [
    "EdgeIndex",
    "EdgeIndexError",
    "LayoutConfig",
    "Model",
    "SolverBase",
    "SolverForceDirected",
    "SolverReference",
    "State",
    "build_edge_index",
]

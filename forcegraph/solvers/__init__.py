# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Solvers module for force-directed graph layout

from .force_directed import SolverForceDirected
from .reference import SolverReference
from .solver import SolverBase

__all__ = [
    "SolverBase",
    "SolverForceDirected",
    "SolverReference",
]

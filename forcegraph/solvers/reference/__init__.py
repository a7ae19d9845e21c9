# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0

from .octree import Octree
from .solver_reference import SolverReference

__all__ = [
    "Octree",
    "SolverReference",
]

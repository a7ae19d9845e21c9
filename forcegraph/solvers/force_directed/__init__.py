# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0

from .solver_force_directed import SolverForceDirected

__all__ = [
    "SolverForceDirected",
]

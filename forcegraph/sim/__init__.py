# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0

from .config import LayoutConfig
from .edge_index import EdgeIndex, EdgeIndexError, build_edge_index, with_reverse_edges
from .state import State
from .model import Model

__all__ = [
    "EdgeIndex",
    "EdgeIndexError",
    "LayoutConfig",
    "Model",
    "State",
    "build_edge_index",
    "with_reverse_edges",
]

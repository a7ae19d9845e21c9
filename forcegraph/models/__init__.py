# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0

from .random_tree import RandomTreeModel
from .random_graph import RandomGraphModel

__all__ = [
    "RandomTreeModel",
    "RandomGraphModel",
]

# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Random tree graph model

import numpy as np

from ..sim.edge_index import with_reverse_edges
from ..sim.model import Model


class RandomTreeModel(Model):
    """
    Graph model with a randomly grown tree topology.

    Starts from the edge (0, 1); every new node attaches to the far end of
    a uniformly chosen existing edge, which favours long branches over a
    star. Reverse edges are appended so attraction pulls on both ends.

    Args:
        edge_count: Number of tree edges (tree has edge_count + 1 nodes)
        node_count: Total node count; nodes beyond the tree stay isolated.
            Defaults to edge_count + 1.
        device: Warp device ('cuda', 'cpu' or None)
        seed: Random seed
        root_flag: Flag assigned to the root node (0 = no highlight)

    Example:
        >>> model = RandomTreeModel(edge_count=500, device='cpu', seed=1)
        >>> state = model.state()
    """

    def __init__(self, edge_count: int = 1000, node_count: int = None,
                 device=None, seed: int = None, root_flag: int = 1):

        super().__init__(device=device)

        if edge_count < 1:
            raise ValueError(f"edge_count must be >= 1, got {edge_count}")

        tree_nodes = edge_count + 1
        if node_count is None:
            node_count = tree_nodes
        if node_count < tree_nodes:
            raise ValueError(
                f"node_count ({node_count}) must be at least edge_count + 1 ({tree_nodes})")

        rng = np.random.default_rng(seed)
        self.tree_edges = self._grow_tree(edge_count, rng)

        # Isolated nodes start in a small cube, tree nodes in a unit cube
        positions = (rng.random((node_count, 3)) * 0.2 - 0.1).astype(np.float32)
        positions[:tree_nodes] = rng.random((tree_nodes, 3)) - 0.5

        flags = np.zeros(node_count, dtype=np.int32)
        flags[0] = root_flag

        self.set_nodes(positions, flags=flags)
        self.set_edges(with_reverse_edges(self.tree_edges))

        print(f"✓ Created random tree: {tree_nodes} tree nodes, {node_count - tree_nodes} isolated")
        print(f"✓ Created {self.edge_count} directed edges ({edge_count} + reverse)")

    @staticmethod
    def _grow_tree(edge_count: int, rng) -> np.ndarray:
        edges = np.zeros((edge_count, 2), dtype=np.int32)
        edges[0] = (0, 1)
        for i in range(1, edge_count):
            parent = edges[rng.integers(i), 1]
            edges[i] = (parent, i + 1)
        return edges

# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Uniform random graph model

import numpy as np

from ..sim.edge_index import with_reverse_edges
from ..sim.model import Model


class RandomGraphModel(Model):
    """
    Graph model with uniformly random nodes and edges.

    Node positions are drawn from the cube [-0.5, 0.5)^3 and both edge
    endpoints uniformly from all nodes. Self loops are dropped since they
    carry no attraction.

    Args:
        node_count: Number of nodes. Default 600.
        edge_count: Number of random edges before reversal. Default 450.
        device: Warp device ('cuda', 'cpu' or None)
        seed: Random seed
        bidirectional: Append the reverse of every edge
        flat: Place all nodes in the z = 0 plane

    Example:
        >>> model = RandomGraphModel(node_count=100, edge_count=80, device='cpu')
    """

    def __init__(self, node_count: int = 600, edge_count: int = 450, device=None,
                 seed: int = None, bidirectional: bool = True, flat: bool = False):

        super().__init__(device=device)

        if node_count < 1:
            raise ValueError(f"node_count must be >= 1, got {node_count}")

        rng = np.random.default_rng(seed)

        positions = rng.random((node_count, 3)) - 0.5
        if flat:
            positions[:, 2] = 0.0

        edges = rng.integers(0, node_count, size=(edge_count, 2))
        loops = edges[:, 0] == edges[:, 1]
        if np.any(loops):
            print(f"  ⚠ Dropped {int(loops.sum())} self loops")
        edges = edges[~loops]

        if bidirectional:
            edges = with_reverse_edges(edges)

        self.set_nodes(positions)
        self.set_edges(edges)

        print(f"✓ Created random graph: {self.node_count} nodes, {self.edge_count} directed edges")

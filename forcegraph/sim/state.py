# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# State class for force-directed layout

class State:
    """
    One node buffer of the double-buffered layout.

    Holds the complete node record as a structure of arrays. Every pass
    writes all of these arrays so that buffers stay self-consistent
    after a swap.

    Attributes:
        node_q: Positions (vec3), shape [node_count]
        node_qd: Velocities (vec3), shape [node_count], carried only
        node_edge_start: 1-based first edge pointer (int), 0 means no edges
        node_flags: Render tag per node (int)
        node_density: Reserved per-node value (float)
        edge_generation: Model edge index generation the pointers were copied from
    """

    def __init__(self):
        self.node_q = None            # Positions (vec3)
        self.node_qd = None           # Velocities (vec3)
        self.node_edge_start = None   # First edge pointer (int, 1-based)
        self.node_flags = None        # Flags (int)
        self.node_density = None      # Density (float)
        self.edge_generation = 0      # Edge index the pointers belong to

    @property
    def node_count(self) -> int:
        if self.node_q is None:
            return 0
        return self.node_q.shape[0]

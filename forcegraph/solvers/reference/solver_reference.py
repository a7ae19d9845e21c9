# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Host-side numpy solver for force-directed layout

import numpy as np
import warp as wp

from ...sim.edge_index import EdgeIndexError
from ..solver import SolverBase
from .octree import Octree


class SolverReference(SolverBase):
    """
    Numpy implementation of the repulsion and attraction passes.

    Produces the same frame as SolverForceDirected (up to float32
    rounding) and is used to cross-check the Warp kernels. With
    theta > 0 the repulsion sum is approximated with a Barnes-Hut
    octree instead of the exact O(N^2) sum.
    """

    def __init__(self, model, config=None, theta: float = 0.0):
        """
        Args:
            model: The Model to lay out
            config: LayoutConfig (defaults if None)
            theta: Barnes-Hut opening angle, 0 for the exact pairwise sum
        """
        super().__init__(model, config)
        if theta < 0.0:
            raise ValueError(f"theta must be non-negative, got {theta}")
        self.theta = theta

        n = model.node_count
        self.edge_visit_start = np.full(n, -1, dtype=np.int32)
        self.edge_visit_count = np.zeros(n, dtype=np.int32)

    def repulsion_forces(self, q: np.ndarray) -> np.ndarray:
        """Pairwise repulsion on every node, shape (N, 3)."""
        config = self.config
        strength = config.repulsion * config.repulsion * config.repulsion_scale

        if len(q) < 2 or strength == 0.0:
            return np.zeros_like(q)

        if self.theta > 0.0:
            tree = Octree.from_points(q)
            return np.array([
                tree.get_force(p, 1.0, strength, self.theta, config.repulsion_epsilon)
                for p in q
            ])

        # d[i, j] = q[j] - q[i]
        d = q[None, :, :] - q[:, None, :]
        d2 = np.einsum('ijk,ijk->ij', d, d)
        mask = d2 >= config.repulsion_epsilon
        safe_d2 = np.where(mask, d2, 1.0)
        magnitude = np.where(mask, strength / (safe_d2 * np.sqrt(safe_d2)), 0.0)
        return -np.einsum('ij,ijk->ik', magnitude, d)

    def repulsion_pass(self, q: np.ndarray) -> np.ndarray:
        """Positions after repulsion, centering and the stability clamp."""
        config = self.config
        force = self.repulsion_forces(q) - q * config.center_attraction
        p = q + force

        if config.clamp_radius > 0.0 and len(p) > 0:
            r = np.linalg.norm(p, axis=1)
            far = r > config.clamp_radius
            p[far] = p[far] / r[far, None]

        return p

    def attraction_pass(self, q: np.ndarray, edge_start: np.ndarray) -> np.ndarray:
        """
        Positions after the mean edge attraction with update gating.

        Raises:
            EdgeIndexError: On a pointer or endpoint that breaks the adjacency contract
        """
        config = self.config
        edges = self.model.edge_index.edges
        edge_count = len(edges)
        n = len(q)
        k = config.spring_constant * config.edge_attraction

        out = q.copy()
        self.edge_visit_start.fill(-1)
        self.edge_visit_count.fill(0)

        for node in range(n):
            start = int(edge_start[node])
            if start == 0:
                continue

            e = start - 1
            if e >= edge_count or edges[e, 0] != node:
                raise EdgeIndexError(f"Node {node}: first edge pointer {start} is invalid")
            if e > 0 and edges[e - 1, 0] == node:
                raise EdgeIndexError(
                    f"Node {node}: first edge pointer {start} is not at the start of its run")

            force = np.zeros(3)
            count = 0
            while e < edge_count and edges[e, 0] == node:
                n1 = int(edges[e, 1])
                if n1 < 0 or n1 >= n:
                    raise EdgeIndexError(f"Edge {e}: endpoint {n1} outside [0, {n})")

                d = q[node] - q[n1]
                if np.linalg.norm(d) >= config.attraction_epsilon:
                    force -= d * k
                count += 1
                e += 1

            self.edge_visit_start[node] = start - 1
            self.edge_visit_count[node] = count

            force /= count
            if np.linalg.norm(force) < config.max_attraction_force:
                out[node] = q[node] + force

        return out

    def step(self, state_in, state_out):
        """
        Advance the layout by one frame on the host.

        Args:
            state_in: The input state
            state_out: The output state

        Returns:
            state_out
        """
        model = self.model
        self._check_buffers(state_in, state_out)
        if len(self.edge_visit_start) != model.node_count:
            raise ValueError(
                f"Model changed size ({model.node_count} nodes) since the solver was created")

        if model.node_count > 0:
            q = state_in.node_q.numpy().astype(np.float64)
            edge_start = state_in.node_edge_start.numpy()

            q = self.repulsion_pass(q)
            q = self.attraction_pass(q, edge_start)

            temp = wp.array(q.astype(np.float32), dtype=wp.vec3, device=model.device)
            wp.copy(state_out.node_q, temp)
            wp.copy(state_out.node_qd, state_in.node_qd)
            wp.copy(state_out.node_edge_start, state_in.node_edge_start)
            wp.copy(state_out.node_flags, state_in.node_flags)
            wp.copy(state_out.node_density, state_in.node_density)

        state_out.edge_generation = state_in.edge_generation
        self._advance_frame(state_out)

        return state_out

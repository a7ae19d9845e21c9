# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Warp solver for force-directed graph layout

import warp as wp

from ...sim.edge_index import EdgeIndexError
from ..solver import SolverBase
from .kernels_layout import (
    ERROR_EDGE_POINTER,
    ERROR_NODE_INDEX,
    ERROR_NONE,
    eval_attraction_pass,
    eval_repulsion_pass,
)


class SolverForceDirected(SolverBase):
    """
    Spring-electrical layout with two data-parallel passes per frame.

    Pass 1 (repulsion) reads state_in and writes a solver-owned scratch
    buffer. Pass 2 (attraction) reads the scratch buffer and writes
    state_out. The caller swaps buffers between frames.

    Example:
        >>> model = RandomTreeModel(edge_count=200, device='cpu')
        >>> solver = SolverForceDirected(model)
        >>> state_in = model.state()
        >>> state_out = model.state()
        >>>
        >>> for i in range(100):
        >>>     solver.step(state_in, state_out)
        >>>     state_in, state_out = state_out, state_in
    """

    def __init__(self, model, config=None):
        """
        Initialize the force-directed solver.

        Args:
            model: The Model to lay out
            config: LayoutConfig (defaults if None)
        """
        super().__init__(model, config)

        # Intermediate buffer between the passes
        self.scratch = model.state()

        n = model.node_count
        self.edge_visit_start = wp.zeros(n, dtype=int, device=model.device)
        self.edge_visit_count = wp.zeros(n, dtype=int, device=model.device)
        self.error_flag = wp.zeros(1, dtype=int, device=model.device)

    def step(self, state_in, state_out):
        """
        Advance the layout by one frame.

        Args:
            state_in: The input state
            state_out: The output state

        Returns:
            state_out

        Raises:
            ValueError: If the buffers do not match the model
            EdgeIndexError: If state_in predates the model's edge index, or the
                attraction pass hit a broken edge pointer;
                state_out is then incomplete and must not be swapped in
        """
        model = self.model
        config = self.config

        self._check_buffers(state_in, state_out)
        if self.scratch.node_count != model.node_count:
            raise ValueError(
                f"Model changed size ({model.node_count} nodes) since the solver was created")

        # Repulsion + centering
        eval_repulsion_pass(model, state_in, self.scratch, config)

        # Attraction must see every repulsion result
        if config.barrier_between_passes:
            wp.synchronize_device(model.device)

        if config.check_errors:
            self.error_flag.zero_()

        # Edge attraction
        eval_attraction_pass(
            model, self.scratch, state_out, config,
            self.edge_visit_start, self.edge_visit_count, self.error_flag,
        )

        if config.check_errors:
            self._raise_on_error()

        state_out.edge_generation = state_in.edge_generation
        self._advance_frame(state_out)

        return state_out

    def _raise_on_error(self):
        code = int(self.error_flag.numpy()[0])
        if code == ERROR_NONE:
            return
        if code == ERROR_EDGE_POINTER:
            raise EdgeIndexError(
                f"Frame {self.frame}: first edge pointer outside the edge array "
                f"or not at the start of its node's run")
        if code == ERROR_NODE_INDEX:
            raise EdgeIndexError(
                f"Frame {self.frame}: edge endpoint outside [0, {self.model.node_count})")
        raise EdgeIndexError(f"Frame {self.frame}: attraction pass failed with code {code}")

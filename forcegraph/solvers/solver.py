# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Base solver class for force-directed layout

import numpy as np

from ..sim.config import LayoutConfig
from ..sim.edge_index import EdgeIndexError


class SolverBase:
    """
    Generic base class for layout solvers.

    Defines the double-buffered step interface, input buffer validation
    and the adaptive layout extent shared by all solvers.

    Features:
        - step(state_in, state_out) with caller-side buffer swap
        - simulate() helper that runs several frames
        - Adaptive extent scale for camera fitting
    """

    def __init__(self, model, config: LayoutConfig = None):
        """
        Initialize the solver with a model.

        Args:
            model: The Model object containing the graph description
            config: Layout parameters (defaults if None)
        """
        self.model = model
        self.config = (config or LayoutConfig()).validate()

        self.frame = 0

        # Adaptive extent normalization parameters
        self._extent_update_counter = 0
        self._ema_alpha = 0.1  # Exponential moving average smoothing factor

    @property
    def device(self):
        """
        Get the device used by the solver.

        Returns:
            The device used by the solver
        """
        return self.model.device

    def step(self, state_in, state_out):
        """
        Advance the layout by one frame.

        Must be implemented by concrete solver subclasses.

        Args:
            state_in: The input state (read only)
            state_out: The output state (fully overwritten)
        """
        raise NotImplementedError("Concrete solvers must implement step()")

    def simulate(self, state_in, state_out, frames: int):
        """
        Run several frames, swapping buffers after each one.

        Returns:
            The state holding the positions of the last frame
        """
        for _ in range(frames):
            self.step(state_in, state_out)
            state_in, state_out = state_out, state_in
        return state_in

    def _check_buffers(self, state_in, state_out):
        """
        Validate that two states form a usable double buffer for this model.

        Raises:
            ValueError: If the buffers alias or do not match the model size or device
            EdgeIndexError: If state_in carries edge pointers from an older edge index
        """
        if state_in is state_out:
            raise ValueError("state_in and state_out must be different buffers")

        n = self.model.node_count
        for name, state in (("state_in", state_in), ("state_out", state_out)):
            if state.node_count != n:
                raise ValueError(f"{name} holds {state.node_count} nodes, model has {n}")
            if n > 0 and state.node_q.device != self.model.device:
                raise ValueError(
                    f"{name} lives on {state.node_q.device}, model on {self.model.device}")

        if n > 0 and state_in.node_q.ptr == state_out.node_q.ptr:
            raise ValueError("state_in and state_out share position storage")

        if state_in.edge_generation != self.model.edge_generation:
            raise EdgeIndexError(
                f"state_in holds edge pointers from edge index {state_in.edge_generation}, "
                f"model has {self.model.edge_generation}; call model.refresh_state() after set_edges()")

    def _update_extent_normalization(self, state):
        """
        Update the adaptive layout extent from observed node distances.

        Uses the 95th percentile of |position| as the observed extent,
        smoothed with an exponential moving average:

            s(t+1) = α * percentile(|q|, 95) + (1-α) * s(t)

        The percentile ignores a few far-flung nodes so the camera does
        not jump when one node is briefly pushed out.
        """
        model = self.model

        positions = state.node_q.numpy()
        if len(positions) > 0:
            radii = np.linalg.norm(positions, axis=1)
            percentile_95 = np.percentile(radii, 95)

            # Degenerate layouts (everything at the origin)
            if percentile_95 < 1e-6:
                percentile_95 = 1e-3

            current_scale = model.layout_extent_scale.numpy()[0]
            new_scale = self._ema_alpha * percentile_95 + (1 - self._ema_alpha) * current_scale

            model.layout_extent_scale.assign([new_scale])

    def _advance_frame(self, state):
        """Bookkeeping shared by all solvers at the end of step()."""
        self.frame += 1
        self._extent_update_counter += 1
        if self._extent_update_counter >= self.config.extent_update_interval:
            self._update_extent_normalization(state)
            self._extent_update_counter = 0

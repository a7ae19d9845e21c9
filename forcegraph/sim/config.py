# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Simulation parameters for force-directed layout

from dataclasses import dataclass


@dataclass
class LayoutConfig:
    """Parameters shared by all layout solvers."""
    # Pass coefficients
    repulsion: float = 0.2
    edge_attraction: float = 0.2

    # Force law constants
    repulsion_scale: float = 0.1        # Empirical scale on k^2 / |d|^2
    center_attraction: float = 0.012    # Linear spring toward the origin
    spring_constant: float = 0.05       # Hooke constant for edge springs

    # Degeneracy guards
    repulsion_epsilon: float = 1.0e-4   # Squared distance below which a pair is ignored
    attraction_epsilon: float = 1.0e-3  # Distance below which an edge is ignored

    # Stability
    max_attraction_force: float = 1.0   # Attraction update dropped at or above this magnitude
    clamp_radius: float = 10.0          # Positions beyond this radius snap to the unit sphere (<= 0 disables)

    # Dispatch
    barrier_between_passes: bool = True
    check_errors: bool = True
    extent_update_interval: int = 10

    def validate(self):
        """
        Check parameter ranges.

        Raises:
            ValueError: If a coefficient is negative or a guard is not positive
        """
        for name in ("repulsion", "edge_attraction", "repulsion_scale",
                     "center_attraction", "spring_constant"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

        for name in ("repulsion_epsilon", "attraction_epsilon", "max_attraction_force"):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        if self.extent_update_interval < 1:
            raise ValueError(f"extent_update_interval must be >= 1, got {self.extent_update_interval}")

        return self

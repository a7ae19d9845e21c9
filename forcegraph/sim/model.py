# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Model class for force-directed graph layout

import os

import numpy as np
import warp as wp

from .edge_index import EdgeIndex, build_edge_index
from .state import State


class Model:
    """
    Represents the static definition of a graph to lay out.

    Stores the initial node records, the sorted edge array and the
    per-node first edge pointers on a Warp device.

    Key Features:
        - Canonical node record (position, velocity, edge pointer, flag, density)
        - CSR-like adjacency built from an arbitrary edge list
        - Factory for double-buffered State objects
    """

    def __init__(self, device=None):
        """
        Initialize an empty Model.

        Args:
            device: Warp device ('cuda', 'cpu' or None for the default device)
        """
        self.device = wp.get_device(device)

        # Node records
        self.node_q = None                  # Initial positions, shape [node_count], vec3
        self.node_qd = None                 # Initial velocities, shape [node_count], vec3
        self.node_flags = None              # Render tags, shape [node_count], int
        self.node_density = None            # Reserved, shape [node_count], float
        self.node_edge_start = None         # First edge pointers (1-based, 0 = none), shape [node_count], int
        self.node_count = 0

        # Edges
        self.edge_index = None              # Host-side EdgeIndex
        self.edge_indices = None            # Sorted edges [n0_0, n1_0, ...], shape [edge_count*2], int
        self.edge_count = 0
        self.edge_generation = 0            # Bumped on every installed edge index

        # Adaptive layout extent (computed by solver, used for camera fitting)
        self.layout_extent_scale = wp.array([1.0], dtype=float, device=self.device)

    def set_nodes(self, positions, velocities=None, flags=None, density=None):
        """
        Upload node records. Resets edges to an empty index of matching size.

        Args:
            positions: Array of shape (N, 3)
            velocities: Optional array of shape (N, 3), zeros by default
            flags: Optional int array of shape (N,), zeros by default
            density: Optional float array of shape (N,), zeros by default
        """
        pos_np = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        n = len(pos_np)

        vel_np = np.zeros((n, 3), dtype=np.float32) if velocities is None else \
            np.asarray(velocities, dtype=np.float32).reshape(n, 3)
        flags_np = np.zeros(n, dtype=np.int32) if flags is None else \
            np.asarray(flags, dtype=np.int32).reshape(n)
        density_np = np.zeros(n, dtype=np.float32) if density is None else \
            np.asarray(density, dtype=np.float32).reshape(n)

        self.node_count = n
        self.node_q = wp.array(pos_np, dtype=wp.vec3, device=self.device)
        self.node_qd = wp.array(vel_np, dtype=wp.vec3, device=self.device)
        self.node_flags = wp.array(flags_np, dtype=int, device=self.device)
        self.node_density = wp.array(density_np, dtype=float, device=self.device)

        self.set_edges(np.zeros((0, 2), dtype=np.int32))

    def set_edges(self, edges):
        """
        Install a new edge list. Call between frames only.

        Existing State buffers keep their old pointers until refresh_state()
        is called on them.

        Args:
            edges: Sequence of (n0, n1) pairs in any order
        """
        index = build_edge_index(edges, self.node_count).validate()
        self._install_edge_index(index)

    def set_edge_index(self, index: EdgeIndex):
        """Install a prebuilt EdgeIndex after validating it against this model."""
        if index.node_count != self.node_count:
            raise ValueError(
                f"EdgeIndex covers {index.node_count} nodes, model has {self.node_count}")
        self._install_edge_index(index.validate())

    def _install_edge_index(self, index: EdgeIndex):
        self.edge_index = index
        self.edge_generation += 1
        self.edge_count = index.edge_count
        self.edge_indices = wp.array(index.flat(), dtype=int, device=self.device)
        self.node_edge_start = wp.array(index.edge_start, dtype=int, device=self.device)

    def set_flags(self, flags):
        """Replace the render tags used by states created or refreshed afterwards."""
        flags_np = np.asarray(flags, dtype=np.int32).reshape(self.node_count)
        self.node_flags = wp.array(flags_np, dtype=int, device=self.device)

    def state(self) -> State:
        """
        Create and return a new State object for this model.

        The returned state is initialized with the initial node records
        from the model description.

        Returns:
            State: The state object
        """
        s = State()

        if self.node_count > 0:
            s.node_q = wp.clone(self.node_q)
            s.node_qd = wp.clone(self.node_qd)
            s.node_edge_start = wp.clone(self.node_edge_start)
            s.node_flags = wp.clone(self.node_flags)
            s.node_density = wp.clone(self.node_density)

        s.edge_generation = self.edge_generation

        return s

    def refresh_state(self, state: State):
        """Copy the current edge pointers and flags into an existing state and mark it current."""
        if state.node_count != self.node_count:
            raise ValueError(
                f"State holds {state.node_count} nodes, model has {self.node_count}")
        if self.node_count > 0:
            wp.copy(state.node_edge_start, self.node_edge_start)
            wp.copy(state.node_flags, self.node_flags)
        state.edge_generation = self.edge_generation

    @classmethod
    def from_edges(cls, edges, node_count: int = None, positions=None, flags=None,
                   device=None, seed: int = None, spread: float = 1.0):
        """
        Create a model from an edge list.

        Args:
            edges: Sequence of (n0, n1) pairs
            node_count: Number of nodes (defaults to max endpoint + 1)
            positions: Optional initial positions (N, 3); random in a cube otherwise
            flags: Optional per-node render tags
            device: Warp device
            seed: Seed for the random initial positions
            spread: Edge length of the cube random positions are drawn from

        Returns:
            Model: The initialized model
        """
        edges_np = np.asarray(edges, dtype=np.int64).reshape(-1, 2)
        if node_count is None:
            node_count = int(edges_np.max()) + 1 if len(edges_np) > 0 else 0

        if positions is None:
            rng = np.random.default_rng(seed)
            positions = (rng.random((node_count, 3)) - 0.5) * spread

        model = cls(device=device)
        model.set_nodes(positions, flags=flags)
        model.set_edges(edges_np)
        return model

    @classmethod
    def from_json(cls, json_path: str, device=None, seed: int = None):
        """
        Create a model from a JSON graph description.

        Expected keys:
            nodes: Node count, or positions: list of [x, y, z]
            edges: list of [n0, n1]
            flags: optional list of ints

        Args:
            json_path: Path to the JSON file
            device: Warp device
            seed: Seed for random positions when only a node count is given

        Returns:
            Model: The initialized model
        """
        import json

        if not os.path.exists(json_path):
            raise FileNotFoundError(f"Graph file not found: {json_path}")

        with open(json_path, 'r') as f:
            data = json.load(f)

        if 'edges' not in data:
            raise ValueError(f"Graph file {json_path} has no 'edges' entry")

        positions = data.get('positions')
        if positions is not None:
            node_count = len(positions)
        elif 'nodes' in data:
            node_count = int(data['nodes'])
        else:
            node_count = None

        model = cls.from_edges(
            data['edges'],
            node_count=node_count,
            positions=positions,
            flags=data.get('flags'),
            device=device,
            seed=seed,
        )

        print(f"✓ Loaded graph from {json_path}")
        print(f"  - {model.node_count} nodes")
        print(f"  - {model.edge_count} edges")

        return model

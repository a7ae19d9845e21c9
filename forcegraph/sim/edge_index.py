# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Sorted edge list with per-node first edge pointers (CSR-like adjacency)

from typing import Optional

import numpy as np


class EdgeIndexError(ValueError):
    """Raised when an edge list or its first edge pointers break the adjacency contract."""


def _as_edge_array(edges) -> np.ndarray:
    edges_np = np.asarray(edges, dtype=np.int64)
    if edges_np.size == 0:
        return np.zeros((0, 2), dtype=np.int32)
    if edges_np.ndim == 1:
        if len(edges_np) % 2 != 0:
            raise EdgeIndexError(f"Flat edge list must have even length, got {len(edges_np)}")
        edges_np = edges_np.reshape(-1, 2)
    if edges_np.ndim != 2 or edges_np.shape[1] != 2:
        raise EdgeIndexError(f"Edges must have shape (E, 2), got {edges_np.shape}")
    if edges_np.max() > np.iinfo(np.int32).max:
        raise EdgeIndexError("Edge endpoints do not fit in 32-bit indices")
    return edges_np.astype(np.int32)


def _first_edge_pointers(n0: np.ndarray, node_count: int) -> np.ndarray:
    """1-based index of the first edge of each node's run, 0 for nodes without edges."""
    ids = np.arange(node_count)
    first = np.searchsorted(n0, ids, side="left")
    last = np.searchsorted(n0, ids, side="right")
    return np.where(last > first, first + 1, 0).astype(np.int32)


def with_reverse_edges(edges) -> np.ndarray:
    """Append the reversed copy of every edge so both endpoints are attracted."""
    edges_np = _as_edge_array(edges)
    return np.concatenate([edges_np, edges_np[:, ::-1]], axis=0)


def build_edge_index(edges, node_count: int) -> "EdgeIndex":
    """
    Stable-sort an arbitrary edge list by source node and build first edge pointers.

    Args:
        edges: Sequence of (n0, n1) pairs, or a flat [n0, n1, ...] list
        node_count: Number of nodes in the graph

    Returns:
        EdgeIndex: Sorted edges with per-node 1-based first edge pointers

    Raises:
        EdgeIndexError: If an endpoint lies outside [0, node_count)
    """
    if node_count < 0:
        raise EdgeIndexError(f"node_count must be non-negative, got {node_count}")

    edges_np = _as_edge_array(edges)
    if len(edges_np) > 0:
        lo = int(edges_np.min())
        hi = int(edges_np.max())
        if lo < 0 or hi >= node_count:
            raise EdgeIndexError(
                f"Edge endpoints must lie in [0, {node_count}), got range [{lo}, {hi}]")

    order = np.argsort(edges_np[:, 0], kind="stable")
    sorted_edges = np.ascontiguousarray(edges_np[order])
    edge_start = _first_edge_pointers(sorted_edges[:, 0], node_count)

    return EdgeIndex(sorted_edges, edge_start)


class EdgeIndex:
    """
    Edge array sorted by first endpoint plus a first edge pointer per node.

    The device layout keeps the pointer 1-based so that 0 can mean "no
    edges"; host code should go through first_edge() / edge_range()
    instead of decoding the pointer by hand.

    Attributes:
        edges: Sorted edges, shape [edge_count, 2], int32
        edge_start: First edge pointers, shape [node_count], int32
    """

    def __init__(self, edges: np.ndarray, edge_start: np.ndarray):
        self.edges = np.asarray(edges, dtype=np.int32).reshape(-1, 2)
        self.edge_start = np.asarray(edge_start, dtype=np.int32)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    @property
    def node_count(self) -> int:
        return len(self.edge_start)

    def first_edge(self, node: int) -> Optional[int]:
        """0-based index of the node's first edge, or None if it has no edges."""
        start = int(self.edge_start[node])
        if start == 0:
            return None
        return start - 1

    def edge_range(self, node: int) -> range:
        """Indices of the contiguous run of edges leaving node."""
        first = self.first_edge(node)
        if first is None:
            return range(0)
        last = first
        while last < self.edge_count and self.edges[last, 0] == node:
            last += 1
        return range(first, last)

    def degree(self, node: int) -> int:
        return len(self.edge_range(node))

    def neighbors(self, node: int) -> np.ndarray:
        r = self.edge_range(node)
        return self.edges[r.start:r.stop, 1].copy()

    def flat(self) -> np.ndarray:
        """Edges as [n0_0, n1_0, n0_1, n1_1, ...] for upload."""
        return self.edges.reshape(-1).copy()

    def validate(self):
        """
        Check the adjacency contract required by the attraction pass.

        Raises:
            EdgeIndexError: On unsorted edges, out of range endpoints or
                pointers that do not point at the start of their run
        """
        n = self.node_count
        e = self.edge_count

        if e > 0:
            if self.edges.min() < 0 or self.edges.max() >= n:
                raise EdgeIndexError(f"Edge endpoints must lie in [0, {n})")

            # Sorted by n0 implies every run is contiguous
            unsorted = np.nonzero(np.diff(self.edges[:, 0]) < 0)[0]
            if len(unsorted) > 0:
                i = int(unsorted[0])
                raise EdgeIndexError(
                    f"Edges not sorted by source: edge {i} has n0={self.edges[i, 0]}, "
                    f"edge {i + 1} has n0={self.edges[i + 1, 0]}")

        if n > 0 and (self.edge_start.min() < 0 or self.edge_start.max() > e):
            raise EdgeIndexError(f"First edge pointers must lie in [0, {e}]")

        expected = _first_edge_pointers(self.edges[:, 0], n)
        bad = np.nonzero(expected != self.edge_start)[0]
        if len(bad) > 0:
            node = int(bad[0])
            raise EdgeIndexError(
                f"Node {node} has first edge pointer {self.edge_start[node]}, "
                f"expected {expected[node]}")

        return self

    def __repr__(self):
        return f"EdgeIndex(node_count={self.node_count}, edge_count={self.edge_count})"

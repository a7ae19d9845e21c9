# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Barnes-Hut octree for approximate pairwise repulsion

import numpy as np


class _Cell:
    __slots__ = ("center", "half_size", "children", "center_of_mass", "mass")

    def __init__(self, center, half_size):
        self.center = np.asarray(center, dtype=np.float64)
        self.half_size = float(half_size)
        self.children = 0                       # Index of first of 8 children, 0 = leaf
        self.center_of_mass = np.zeros(3)
        self.mass = 0.0

    def is_leaf(self) -> bool:
        return self.children == 0

    def is_empty(self) -> bool:
        return self.mass == 0.0

    def contains(self, point) -> bool:
        return bool(np.all(np.abs(point - self.center) <= self.half_size))

    def octant(self, point) -> int:
        index = 0
        if point[0] > self.center[0]:
            index |= 1
        if point[1] > self.center[1]:
            index |= 2
        if point[2] > self.center[2]:
            index |= 4
        return index

    def child_bounds(self, i: int):
        half = self.half_size * 0.5
        offset = np.array([
            half if i & 1 else -half,
            half if i >> 1 & 1 else -half,
            half if i >> 2 & 1 else -half,
        ])
        return self.center + offset, half


class Octree:
    """
    Octree over point masses, stored as a flat list of cells.

    Children of a cell are 8 consecutive entries starting at cell.children,
    in octant order (bit 0 = +x, bit 1 = +y, bit 2 = +z).

    Usage:
        tree = Octree.from_points(positions)
        f = tree.get_force(positions[i], 1.0, strength, theta=0.5)
    """

    MAX_DEPTH = 48

    def __init__(self, center=(0.0, 0.0, 0.0), half_size: float = 1.0):
        """
        Args:
            center: Center of the root cell
            half_size: Half of the root cell's edge length
        """
        self.center = np.asarray(center, dtype=np.float64)
        self.half_size = float(half_size)
        self.cells = [_Cell(self.center, self.half_size)]

    @classmethod
    def from_points(cls, points, masses=None):
        """Build a tree whose root cell encloses all points, then backpropagate."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(points) == 0:
            return cls()

        lo = points.min(axis=0)
        hi = points.max(axis=0)
        center = (lo + hi) * 0.5
        half_size = max(float(np.max(hi - lo)) * 0.5, 1e-6) * 1.001

        tree = cls(center, half_size)
        if masses is None:
            masses = np.ones(len(points))
        for p, m in zip(points, masses):
            tree.insert(p, float(m))
        tree.backpropagate()
        return tree

    def clear(self):
        self.cells = [_Cell(self.center, self.half_size)]

    def _subdivide(self, cell_index: int) -> int:
        children = len(self.cells)
        cell = self.cells[cell_index]
        for i in range(8):
            center, half = cell.child_bounds(i)
            self.cells.append(_Cell(center, half))
        return children

    def insert(self, position, mass: float):
        """Insert a point mass. Coincident points merge into one leaf."""
        position = np.asarray(position, dtype=np.float64)
        node = 0
        depth = 0

        # Descend to the leaf covering the point
        while not self.cells[node].is_leaf():
            node = self.cells[node].children + self.cells[node].octant(position)
            depth += 1

        leaf = self.cells[node]
        if leaf.is_empty():
            leaf.mass = mass
            leaf.center_of_mass = position.copy()
            return

        p = leaf.center_of_mass
        m = leaf.mass

        if np.array_equal(p, position) or depth >= self.MAX_DEPTH:
            leaf.center_of_mass = (p * m + position * mass) / (m + mass)
            leaf.mass = m + mass
            return

        # Split the leaf and push both points down until they separate
        leaf.center_of_mass = np.zeros(3)
        leaf.mass = 0.0
        while True:
            self.cells[node].children = self._subdivide(node)
            o1 = self.cells[node].octant(position)
            o2 = self.cells[node].octant(p)
            depth += 1

            if o1 == o2 and depth < self.MAX_DEPTH:
                node = self.cells[node].children + o1
                continue

            c = self.cells[node].children
            if o1 == o2:
                merged = self.cells[c + o1]
                merged.mass = m + mass
                merged.center_of_mass = (p * m + position * mass) / (m + mass)
            else:
                self.cells[c + o1].mass = mass
                self.cells[c + o1].center_of_mass = position.copy()
                self.cells[c + o2].mass = m
                self.cells[c + o2].center_of_mass = p
            break

    def backpropagate(self):
        """Accumulate mass and center of mass from leaves to the root."""
        # Children are always appended after their parent
        for cell in reversed(self.cells):
            if cell.is_leaf():
                continue

            children = self.cells[cell.children:cell.children + 8]
            mass = sum(child.mass for child in children)
            cell.mass = mass
            if mass > 0.0:
                cell.center_of_mass = sum(child.center_of_mass * child.mass for child in children) / mass

    @staticmethod
    def _repulsion(p1, m1, p2, m2, strength, epsilon):
        d = p2 - p1
        d2 = float(np.dot(d, d))
        if d2 < epsilon:
            return np.zeros(3)
        return -(d / np.sqrt(d2)) * (m1 * m2 * strength / d2)

    def get_force(self, point, mass: float, strength: float, theta: float = 0.5,
                  epsilon: float = 1.0e-4) -> np.ndarray:
        """
        Approximate inverse-square repulsion on a point from all masses in the tree.

        A cell is opened when half_size / distance > theta or when it contains
        the point; otherwise its aggregate mass is used. theta = 0 gives the
        exact pairwise sum.

        Args:
            point: Query position
            mass: Mass of the query point
            strength: Force coefficient (k^2 * scale)
            theta: Opening angle threshold
            epsilon: Squared distance below which a contribution is ignored

        Returns:
            Force vector, shape (3,)
        """
        point = np.asarray(point, dtype=np.float64)
        force = np.zeros(3)

        stack = [0]
        while stack:
            cell = self.cells[stack.pop()]

            if cell.is_leaf():
                if not cell.is_empty():
                    force += self._repulsion(point, mass, cell.center_of_mass, cell.mass, strength, epsilon)
                continue

            if cell.is_empty():
                continue

            dist = float(np.linalg.norm(cell.center - point))
            if cell.contains(point) or dist == 0.0 or cell.half_size / dist > theta:
                stack.extend(range(cell.children, cell.children + 8))
            else:
                force += self._repulsion(point, mass, cell.center_of_mass, cell.mass, strength, epsilon)

        return force

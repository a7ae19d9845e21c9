"""
Tests for the numpy reference solver and the Barnes-Hut octree.

The reference solver must reproduce the Warp kernels frame for frame,
and the octree must reduce to the exact pairwise sum at theta = 0.
"""

import numpy as np
import pytest
import warp as wp

from forcegraph.models import RandomGraphModel, RandomTreeModel
from forcegraph.sim import EdgeIndexError, LayoutConfig, Model
from forcegraph.solvers import SolverForceDirected, SolverReference
from forcegraph.solvers.reference import Octree

DEVICE = "cpu"


def exact_repulsion(points, strength, epsilon=1.0e-4):
    forces = np.zeros_like(points)
    for i, p in enumerate(points):
        for j, other in enumerate(points):
            if i == j:
                continue
            d = other - p
            d2 = np.dot(d, d)
            if d2 < epsilon:
                continue
            forces[i] -= d / np.sqrt(d2) * strength / d2
    return forces


def run_frames(solver, model, frames):
    state_in = model.state()
    state_out = model.state()
    final = solver.simulate(state_in, state_out, frames)
    return final.node_q.numpy()


# ============================================================================
# Reference solver vs Warp kernels
# ============================================================================

def test_reference_matches_warp_on_random_graph():
    model = RandomGraphModel(node_count=20, edge_count=30, device=DEVICE, seed=3)
    config = LayoutConfig(repulsion=0.05, edge_attraction=0.5)

    warp_q = run_frames(SolverForceDirected(model, config), model, 2)
    ref_q = run_frames(SolverReference(model, config), model, 2)

    np.testing.assert_allclose(warp_q, ref_q, atol=1e-3)


def test_reference_matches_warp_visits():
    model = RandomTreeModel(edge_count=20, node_count=25, device=DEVICE, seed=11)

    warp_solver = SolverForceDirected(model)
    ref_solver = SolverReference(model)
    warp_solver.step(model.state(), model.state())
    ref_solver.step(model.state(), model.state())

    np.testing.assert_array_equal(warp_solver.edge_visit_start.numpy(), ref_solver.edge_visit_start)
    np.testing.assert_array_equal(warp_solver.edge_visit_count.numpy(), ref_solver.edge_visit_count)


def test_reference_gating_and_clamp():
    model = Model.from_edges(
        [(0, 1)], node_count=2,
        positions=[[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]],
        device=DEVICE,
    )
    config = LayoutConfig(repulsion=1.0, spring_constant=1.0, edge_attraction=1.0)
    solver = SolverReference(model, config)

    # Attraction of length 2 exceeds the update limit
    q = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    gated = solver.attraction_pass(q, model.edge_index.edge_start)
    np.testing.assert_array_equal(gated, q)
    assert solver.edge_visit_count.tolist() == [1, 0]

    far = solver.repulsion_pass(np.array([[0.01, 0.0, 0.0], [-0.01, 0.0, 0.0]]))
    np.testing.assert_allclose(np.linalg.norm(far, axis=1), [1.0, 1.0])


def test_reference_rejects_bad_pointer():
    model = Model.from_edges([(0, 1)], node_count=2, positions=np.zeros((2, 3)), device=DEVICE)
    solver = SolverReference(model)

    with pytest.raises(EdgeIndexError):
        solver.attraction_pass(np.zeros((2, 3)), np.array([1, 1]))


def test_reference_rejects_pointer_into_middle_of_run():
    model = Model.from_edges([(0, 1), (0, 2)], node_count=3, device=DEVICE, seed=0)
    solver = SolverReference(model)
    state_in = model.state()
    state_in.node_edge_start = wp.array([2, 0, 0], dtype=int, device=DEVICE)

    with pytest.raises(EdgeIndexError, match="start of its run"):
        solver.step(state_in, model.state())


def test_reference_rejects_resized_model():
    model = Model.from_edges([(0, 1)], node_count=2, device=DEVICE, seed=0)
    solver = SolverReference(model)

    model.set_nodes(np.zeros((3, 3)))

    with pytest.raises(ValueError, match="changed size"):
        solver.step(model.state(), model.state())


def test_reference_barnes_hut_exact_at_zero_theta():
    model = RandomGraphModel(node_count=30, edge_count=20, device=DEVICE, seed=5)
    config = LayoutConfig(repulsion=0.5)

    exact = run_frames(SolverReference(model, config), model, 2)
    tree = SolverReference(model, config, theta=1e-9)
    approx = run_frames(tree, model, 2)

    np.testing.assert_allclose(exact, approx, atol=1e-5)


def test_negative_theta_rejected():
    model = RandomGraphModel(node_count=5, edge_count=2, device=DEVICE, seed=0)
    with pytest.raises(ValueError):
        SolverReference(model, theta=-0.1)


# ============================================================================
# Octree
# ============================================================================

def test_octree_exact_at_zero_theta():
    rng = np.random.default_rng(1)
    points = rng.random((30, 3)) - 0.5
    tree = Octree.from_points(points)

    expected = exact_repulsion(points, strength=0.1)
    for i, p in enumerate(points):
        np.testing.assert_allclose(tree.get_force(p, 1.0, 0.1, theta=0.0), expected[i], atol=1e-9)


def test_octree_aggregates_distant_cluster():
    rng = np.random.default_rng(2)
    cluster = np.array([10.0, 0.0, 0.0]) + (rng.random((10, 3)) - 0.5) * 0.01
    tree = Octree.from_points(cluster)

    origin = np.zeros(3)
    approx = tree.get_force(origin, 1.0, 1.0, theta=0.5)
    exact = exact_repulsion(np.vstack([origin, cluster]), strength=1.0)[0]

    assert np.linalg.norm(approx - exact) < 1e-2 * np.linalg.norm(exact)
    assert approx[0] < 0.0


def test_octree_merges_coincident_points():
    tree = Octree(center=(0.0, 0.0, 0.0), half_size=1.0)
    tree.insert([0.25, 0.25, 0.25], 1.0)
    tree.insert([0.25, 0.25, 0.25], 2.0)

    assert len(tree.cells) == 1
    assert tree.cells[0].mass == 3.0


def test_octree_backpropagates_center_of_mass():
    tree = Octree(center=(0.0, 0.0, 0.0), half_size=1.0)
    tree.insert([0.5, 0.5, 0.5], 1.0)
    tree.insert([-0.5, -0.5, -0.5], 3.0)
    tree.backpropagate()

    root = tree.cells[0]
    assert root.mass == 4.0
    np.testing.assert_allclose(root.center_of_mass, [-0.25, -0.25, -0.25])

    tree.clear()
    assert len(tree.cells) == 1
    assert tree.cells[0].is_empty()

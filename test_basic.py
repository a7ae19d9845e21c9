"""
Basic tests to verify the force-directed layout implementation

Covers the end-to-end frame on a small graph, graph construction from
generators and JSON files, topology changes between frames and the
layout parameter checks. Runs with pytest or as a script.

Author: NBEL
License: Apache-2.0
"""

import json

import numpy as np
import pytest

from forcegraph import (
    EdgeIndexError,
    LayoutConfig,
    Model,
    SolverForceDirected,
    SolverReference,
    build_edge_index,
)
from forcegraph.models import RandomGraphModel, RandomTreeModel

DEVICE = "cpu"


def pairwise_distances(q):
    return np.linalg.norm(q[:, None, :] - q[None, :, :], axis=2)


def test_three_nodes_move_apart():
    """Test that three unconnected nodes spread out in one frame"""
    print("Test 1: Three nodes move apart... ", end="")
    positions = np.array([[1.0, 0.0, 0.0], [-1.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
    model = Model.from_edges([], node_count=3, positions=positions, device=DEVICE)
    config = LayoutConfig(repulsion=1.0)
    solver = SolverForceDirected(model, config)

    state_in = model.state()
    state_out = model.state()
    solver.step(state_in, state_out)

    before = pairwise_distances(positions)
    after = pairwise_distances(state_out.node_q.numpy().astype(np.float64))
    for i, j in ((0, 1), (0, 2), (1, 2)):
        assert after[i, j] > before[i, j], f"Nodes {i} and {j} did not separate"

    assert np.all(np.linalg.norm(state_out.node_q.numpy(), axis=1) <= config.clamp_radius)
    print("✓ PASSED")


def test_random_tree_layout():
    """Test that a generated tree lays out without errors"""
    print("Test 2: Random tree layout... ", end="")
    model = RandomTreeModel(edge_count=50, node_count=60, device=DEVICE, seed=7)

    assert model.node_count == 60
    assert model.edge_count == 100
    assert model.edge_index.degree(55) == 0
    assert model.node_flags.numpy()[0] == 1

    solver = SolverForceDirected(model)
    final = solver.simulate(model.state(), model.state(), 20)

    q = final.node_q.numpy()
    assert np.all(np.isfinite(q))
    assert np.all(np.linalg.norm(q, axis=1) <= solver.config.clamp_radius)
    assert solver.frame == 20
    print("✓ PASSED")


def test_random_graph_drops_self_loops():
    """Test the uniform random graph generator"""
    print("Test 3: Random graph... ", end="")
    model = RandomGraphModel(node_count=30, edge_count=40, device=DEVICE, seed=2)

    edges = model.edge_index.edges
    assert np.all(edges[:, 0] != edges[:, 1])
    assert model.edge_count % 2 == 0
    model.edge_index.validate()
    print("✓ PASSED")


def test_load_from_json(tmp_path):
    """Test loading a graph description from JSON"""
    print("Test 4: JSON loading... ", end="")
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({
        "positions": [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
        "edges": [[2, 0], [0, 1]],
        "flags": [0, 2, 0],
    }))

    model = Model.from_json(str(path), device=DEVICE)

    assert model.node_count == 3
    assert model.edge_index.edges.tolist() == [[0, 1], [2, 0]]
    assert model.node_edge_start.numpy().tolist() == [1, 0, 2]
    assert model.node_flags.numpy().tolist() == [0, 2, 0]

    count_path = tmp_path / "count.json"
    count_path.write_text(json.dumps({"nodes": 5, "edges": [[0, 1]]}))
    assert Model.from_json(str(count_path), device=DEVICE, seed=0).node_count == 5
    print("✓ PASSED")


def test_load_from_json_errors(tmp_path):
    """Test JSON loading failures"""
    print("Test 5: JSON errors... ", end="")
    with pytest.raises(FileNotFoundError):
        Model.from_json(str(tmp_path / "missing.json"), device=DEVICE)

    path = tmp_path / "no_edges.json"
    path.write_text(json.dumps({"nodes": 3}))
    with pytest.raises(ValueError):
        Model.from_json(str(path), device=DEVICE)

    bad = tmp_path / "bad_edges.json"
    bad.write_text(json.dumps({"nodes": 2, "edges": [[0, 4]]}))
    with pytest.raises(EdgeIndexError):
        Model.from_json(str(bad), device=DEVICE)
    print("✓ PASSED")


def test_topology_change_between_frames():
    """Test replacing the edge list between frames"""
    print("Test 6: Topology change... ", end="")
    model = Model.from_edges([(0, 1)], node_count=3, device=DEVICE, seed=4)
    solver = SolverForceDirected(model)
    reference = SolverReference(model)

    state_in = model.state()
    state_out = model.state()
    solver.step(state_in, state_out)
    assert solver.edge_visit_count.numpy().tolist() == [1, 0, 0]
    state_in, state_out = state_out, state_in

    # Node 0 keeps its pointer, node 2 gains a run it has no pointer for
    model.set_edges([(0, 1), (2, 1)])
    assert model.node_edge_start.numpy().tolist() == [1, 0, 2]
    assert state_in.node_edge_start.numpy().tolist() == [1, 0, 0]

    with pytest.raises(EdgeIndexError, match="refresh_state"):
        solver.step(state_in, state_out)
    with pytest.raises(EdgeIndexError):
        reference.step(state_in, state_out)

    model.refresh_state(state_in)
    solver.step(state_in, state_out)
    assert solver.edge_visit_count.numpy().tolist() == [1, 0, 1]
    assert solver.edge_visit_start.numpy().tolist() == [0, -1, 1]

    # The output buffer inherits the refreshed pointers, so the swap keeps stepping
    state_in, state_out = state_out, state_in
    solver.step(state_in, state_out)
    assert solver.edge_visit_count.numpy().tolist() == [1, 0, 1]
    print("✓ PASSED")


def test_prebuilt_edge_index_and_flags():
    """Test installing a prebuilt edge index and replacing flags"""
    print("Test 7: Prebuilt edge index and flags... ", end="")
    model = Model.from_edges([(0, 1)], node_count=3, device=DEVICE, seed=5)
    state_in = model.state()
    state_out = model.state()

    index = build_edge_index([(1, 0), (1, 2), (2, 0)], node_count=3)
    model.set_edge_index(index)
    assert model.edge_index is index
    assert model.edge_count == 3

    model.set_flags([2, 0, 1])
    model.refresh_state(state_in)
    model.refresh_state(state_out)

    solver = SolverForceDirected(model)
    solver.step(state_in, state_out)
    assert solver.edge_visit_start.numpy().tolist() == [-1, 0, 2]
    assert solver.edge_visit_count.numpy().tolist() == [0, 2, 1]
    assert state_out.node_flags.numpy().tolist() == [2, 0, 1]

    with pytest.raises(ValueError, match="covers 2 nodes"):
        model.set_edge_index(build_edge_index([(0, 1)], node_count=2))
    assert model.edge_index is index
    print("✓ PASSED")


def test_layout_config_validation():
    """Test that invalid layout parameters are rejected"""
    print("Test 8: Config validation... ", end="")
    with pytest.raises(ValueError):
        LayoutConfig(repulsion=-1.0).validate()
    with pytest.raises(ValueError):
        LayoutConfig(attraction_epsilon=0.0).validate()
    with pytest.raises(ValueError):
        LayoutConfig(extent_update_interval=0).validate()

    model = Model.from_edges([(0, 1)], device=DEVICE, seed=0)
    with pytest.raises(ValueError):
        SolverForceDirected(model, LayoutConfig(max_attraction_force=-1.0))

    config = LayoutConfig(clamp_radius=0.0)
    assert config.validate() is config
    print("✓ PASSED")


def test_extent_scale_updates():
    """Test the adaptive layout extent"""
    print("Test 9: Extent scale... ", end="")
    model = RandomTreeModel(edge_count=30, device=DEVICE, seed=9)
    solver = SolverForceDirected(model, LayoutConfig(extent_update_interval=2))

    state_in = model.state()
    state_out = model.state()
    solver.step(state_in, state_out)
    assert model.layout_extent_scale.numpy()[0] == 1.0

    solver.step(state_out, state_in)
    radii = np.linalg.norm(state_in.node_q.numpy(), axis=1)
    expected = 0.1 * np.percentile(radii, 95) + 0.9 * 1.0
    np.testing.assert_allclose(model.layout_extent_scale.numpy()[0], expected, rtol=1e-5)
    print("✓ PASSED")


def test_headless_demo(tmp_path):
    """Test the headless demo run and summary plot"""
    print("Test 10: Headless demo... ", end="")
    from demo import DemoConfig, build_model, plot_layout, run_headless

    demo = DemoConfig(graph='tree', nodes=20, edges=15, seed=1, device=DEVICE, render=False)
    model = build_model(demo)
    solver = SolverForceDirected(model)

    state, history = run_headless(solver, model.state(), model.state(), 25)
    assert solver.frame == 25
    assert history['frame'] == [10, 20, 25]

    plot_file = tmp_path / "layout.png"
    plot_layout(history, state.node_q.numpy(), model.edge_index.edges, str(plot_file))
    assert plot_file.exists()

    with pytest.raises(ValueError):
        build_model(DemoConfig(graph='grid'))
    print("✓ PASSED")


def main():
    """Run all tests"""
    import tempfile
    from pathlib import Path

    print("=" * 60)
    print("Force-Directed Layout - Basic Tests")
    print("=" * 60)
    print()

    tests = [
        test_three_nodes_move_apart,
        test_random_tree_layout,
        test_random_graph_drops_self_loops,
        test_load_from_json,
        test_load_from_json_errors,
        test_topology_change_between_frames,
        test_prebuilt_edge_index_and_flags,
        test_layout_config_validation,
        test_extent_scale_updates,
        test_headless_demo,
    ]

    passed = 0
    for test in tests:
        try:
            if test in (test_load_from_json, test_load_from_json_errors, test_headless_demo):
                with tempfile.TemporaryDirectory() as tmp:
                    test(Path(tmp))
            else:
                test()
            passed += 1
        except Exception as e:
            print(f"✗ FAILED: {e}")

    print()
    print("=" * 60)
    print(f"Results: {passed}/{len(tests)} tests passed")
    print("=" * 60)

    return passed == len(tests)


if __name__ == "__main__":
    import sys
    sys.exit(0 if main() else 1)

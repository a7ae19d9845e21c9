#!/usr/bin/env python3
"""
Force-Directed Graph Layout Demo

Runs the Warp layout solver on a generated or loaded graph and renders
the nodes with an orbiting camera.

Usage:
    python demo.py                          # Random tree, pygame window
    python demo.py --graph random --nodes 800 --edges 600
    python demo.py --json graph.json --device cpu
    python demo.py --no-render --frames 500 # Headless, saves layout.png
    python demo.py --no-render --no-plot    # Headless, no plot

Controls:
    SPACE   pause / resume
    UP/DOWN increase / decrease repulsion
    R       reset positions
    ESC     quit

Author: NBEL
License: Apache-2.0
"""

import argparse
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np
import warp as wp

from forcegraph import LayoutConfig, Model, SolverForceDirected, SolverReference
from forcegraph.models import RandomGraphModel, RandomTreeModel


@dataclass
class DemoConfig:
    """Configuration for the layout demo."""
    # Graph
    graph: str = 'tree'
    nodes: int = 1200
    edges: int = 1000
    json_path: Optional[str] = None
    seed: Optional[int] = None

    # Solver
    device: Optional[str] = None
    reference: bool = False
    theta: float = 0.0

    # Display
    window_width: int = 1000
    window_height: int = 700
    camera_distance: float = 3.0
    orbit_speed: float = 0.005
    fps: int = 60

    # Simulation
    frames: int = 0   # 0 = run until closed
    render: bool = True

    # Output (headless only)
    plot: bool = True
    plot_file: str = 'layout.png'


def build_model(config: DemoConfig) -> Model:
    """Create the graph model selected by the demo configuration."""
    if config.json_path:
        return Model.from_json(config.json_path, device=config.device, seed=config.seed)
    if config.graph == 'random':
        return RandomGraphModel(node_count=config.nodes, edge_count=config.edges,
                                device=config.device, seed=config.seed)
    if config.graph == 'tree':
        return RandomTreeModel(edge_count=config.edges, node_count=max(config.nodes, config.edges + 1),
                               device=config.device, seed=config.seed)
    raise ValueError(f"Unknown graph type: {config.graph}")


def run_headless(solver, state_in, state_out, frames: int):
    """Run a fixed number of frames without a window and record the layout extent."""
    from tqdm import tqdm

    print(f"\nRunning {frames} frames headless...")
    start = time.time()

    history = {'frame': [], 'extent': [], 'mean_radius': []}

    pbar = tqdm(range(frames), desc="  Layout", unit="frame", ncols=80)
    for frame in pbar:
        solver.step(state_in, state_out)
        state_in, state_out = state_out, state_in

        if (frame + 1) % 10 == 0 or frame + 1 == frames:
            radii = np.linalg.norm(state_in.node_q.numpy(), axis=1)
            extent = float(solver.model.layout_extent_scale.numpy()[0])
            mean_radius = float(radii.mean()) if len(radii) else 0.0
            history['frame'].append(frame + 1)
            history['extent'].append(extent)
            history['mean_radius'].append(mean_radius)
            pbar.set_postfix({'extent': f'{extent:.3f}'})

    elapsed = time.time() - start
    print(f"✓ {frames} frames in {elapsed:.2f}s ({frames / max(elapsed, 1e-9):.1f} frames/s)")

    return state_in, history


def plot_layout(history, positions, edges, plot_file: str):
    """Save the extent history and an XY projection of the final layout."""
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    fig.suptitle('Force-Directed Layout', fontsize=14)

    axes[0].plot(history['frame'], history['extent'], 'b-', label='Extent (95th pct)', linewidth=1.5)
    axes[0].plot(history['frame'], history['mean_radius'], 'k--', label='Mean radius', linewidth=1)
    axes[0].set_xlabel('Frame')
    axes[0].set_ylabel('Radius')
    axes[0].set_title('Layout Extent')
    axes[0].legend()
    axes[0].grid(True, alpha=0.3)

    # Reverse duplicates plotted once
    for n0, n1 in edges:
        if n1 < n0:
            continue
        axes[1].plot(positions[[n0, n1], 0], positions[[n0, n1], 1], '-',
                     color='steelblue', alpha=0.4, linewidth=0.5)
    axes[1].scatter(positions[:, 0], positions[:, 1], s=4, c='navy')
    axes[1].set_xlabel('X')
    axes[1].set_ylabel('Y')
    axes[1].set_title('Final Layout (XY)')
    axes[1].set_aspect('equal')
    axes[1].grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(plot_file, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"\nPlot saved: {plot_file}")


def run_interactive(solver, state_in, state_out, demo: DemoConfig):
    """Render the layout with pygame until the window is closed."""
    import pygame
    from pygame_renderer import Renderer

    model = solver.model
    renderer = Renderer(window_width=demo.window_width, window_height=demo.window_height)

    pygame.init()
    window = pygame.display.set_mode((demo.window_width, demo.window_height))
    pygame.display.set_caption("Force-Directed Layout")
    clock = pygame.time.Clock()

    edges = model.edge_index.edges
    angle = 0.0
    paused = False
    running = True

    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    paused = not paused
                elif event.key == pygame.K_UP:
                    solver.config.repulsion *= 1.1
                elif event.key == pygame.K_DOWN:
                    solver.config.repulsion /= 1.1
                elif event.key == pygame.K_r:
                    state_in = model.state()
                    state_out = model.state()

        if not paused:
            solver.step(state_in, state_out)
            state_in, state_out = state_out, state_in
            if demo.frames and solver.frame >= demo.frames:
                running = False

        positions = state_in.node_q.numpy()
        flags = state_in.node_flags.numpy()
        extent = float(model.layout_extent_scale.numpy()[0])

        # Keep the layout in view as it expands
        angle += demo.orbit_speed
        view_proj = renderer.orbit_camera(angle, distance=demo.camera_distance * max(extent, 0.3))

        canvas = renderer.create_canvas()
        renderer.draw_edges(canvas, positions, edges, view_proj)
        renderer.draw_nodes(canvas, positions, flags, view_proj)
        renderer.draw_extent_legend(canvas, extent)
        renderer.draw_info_text(canvas, [
            ("Force-Directed Layout", renderer.WHITE),
            (f"Frame: {solver.frame}", renderer.WHITE),
            (f"Nodes: {model.node_count}  Edges: {model.edge_count}", renderer.WHITE),
            (f"Repulsion: {solver.config.repulsion:.3f}", renderer.WHITE),
            ("PAUSED" if paused else f"FPS: {clock.get_fps():.0f}", renderer.GREY),
        ])

        window.blit(canvas, (0, 0))
        pygame.display.flip()
        clock.tick(demo.fps)

    pygame.quit()
    return state_in


def main():
    """Run the force-directed layout demo."""
    parser = argparse.ArgumentParser(description="Force-Directed Graph Layout Demo")
    parser.add_argument('--graph', type=str, default='tree', choices=['tree', 'random'],
                        help='Generated graph type (default: tree)')
    parser.add_argument('--nodes', type=int, default=1200,
                        help='Number of nodes (default: 1200)')
    parser.add_argument('--edges', type=int, default=1000,
                        help='Number of generated edges before reversal (default: 1000)')
    parser.add_argument('--json', type=str, default=None,
                        help='Load the graph from a JSON file instead of generating one')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed')
    parser.add_argument('--frames', type=int, default=0,
                        help='Number of frames (0 = until closed; headless default 1000)')
    parser.add_argument('--repulsion', type=float, default=0.2,
                        help='Repulsion coefficient (default: 0.2)')
    parser.add_argument('--edge-attraction', type=float, default=0.2,
                        help='Edge attraction coefficient (default: 0.2)')
    parser.add_argument('--center-attraction', type=float, default=0.012,
                        help='Pull toward the origin (default: 0.012)')
    parser.add_argument('--clamp-radius', type=float, default=10.0,
                        help='Positions beyond this radius snap back (<= 0 disables, default: 10)')
    parser.add_argument('--reference', action='store_true',
                        help='Use the host-side numpy solver instead of Warp kernels')
    parser.add_argument('--theta', type=float, default=0.0,
                        help='Barnes-Hut opening angle for --reference (0 = exact)')
    parser.add_argument('--device', type=str, default=None,
                        choices=['cuda', 'cpu'], help='Computation device (default: Warp default)')
    parser.add_argument('--no-render', action='store_true',
                        help='Run without visualization')
    parser.add_argument('--no-plot', action='store_true',
                        help='Skip the summary plot after a headless run')
    parser.add_argument('--plot-file', type=str, default='layout.png',
                        help='Summary plot path for headless runs (default: layout.png)')
    parser.add_argument('--window-width', type=int, default=1000,
                        help='Window width in pixels (default: 1000)')
    parser.add_argument('--window-height', type=int, default=700,
                        help='Window height in pixels (default: 700)')
    args = parser.parse_args()

    wp.init()

    demo = DemoConfig(
        graph=args.graph,
        nodes=args.nodes,
        edges=args.edges,
        json_path=args.json,
        seed=args.seed,
        device=args.device,
        reference=args.reference,
        theta=args.theta,
        window_width=args.window_width,
        window_height=args.window_height,
        frames=args.frames,
        render=not args.no_render,
        plot=not args.no_plot,
        plot_file=args.plot_file,
    )
    layout = LayoutConfig(
        repulsion=args.repulsion,
        edge_attraction=args.edge_attraction,
        center_attraction=args.center_attraction,
        clamp_radius=args.clamp_radius,
    )

    print("=" * 60)
    print("Force-Directed Graph Layout")
    print("=" * 60)

    model = build_model(demo)
    print(f"  Device: {model.device}")

    if demo.reference:
        solver = SolverReference(model, layout, theta=demo.theta)
        print(f"  Solver: numpy reference (theta={demo.theta})")
    else:
        solver = SolverForceDirected(model, layout)
        print("  Solver: Warp kernels")

    state_in = model.state()
    state_out = model.state()

    if demo.render:
        state = run_interactive(solver, state_in, state_out, demo)
    else:
        state, history = run_headless(solver, state_in, state_out, demo.frames or 1000)

    positions = state.node_q.numpy() if model.node_count > 0 else np.zeros((0, 3))
    radii = np.linalg.norm(positions, axis=1) if len(positions) else np.zeros(1)
    print(f"\nFinal layout: mean radius {radii.mean():.4f}, max radius {radii.max():.4f}")

    if not demo.render and demo.plot:
        plot_layout(history, positions, model.edge_index.edges, demo.plot_file)


if __name__ == "__main__":
    main()

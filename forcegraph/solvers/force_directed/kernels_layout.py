# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Force-directed layout kernels (repulsion + centering, edge attraction)

import warp as wp


# Error codes written to the solver's error flag by eval_attraction
ERROR_NONE = wp.constant(0)
ERROR_EDGE_POINTER = wp.constant(1)
ERROR_NODE_INDEX = wp.constant(2)


@wp.kernel
def eval_repulsion(
    q_in: wp.array(dtype=wp.vec3),
    qd_in: wp.array(dtype=wp.vec3),
    edge_start_in: wp.array(dtype=int),
    flags_in: wp.array(dtype=int),
    density_in: wp.array(dtype=float),
    node_count: int,
    repulsion: float,
    repulsion_scale: float,
    center_attraction: float,
    epsilon: float,
    clamp_radius: float,
    q_out: wp.array(dtype=wp.vec3),
    qd_out: wp.array(dtype=wp.vec3),
    edge_start_out: wp.array(dtype=int),
    flags_out: wp.array(dtype=int),
    density_out: wp.array(dtype=float),
):
    """
    Pairwise inverse-square repulsion plus a linear pull toward the origin.

    Each thread processes one node against every other node and writes
    only its own output slot.
    """
    tid = wp.tid()

    a = q_in[tid]
    k2 = repulsion * repulsion * repulsion_scale

    force = wp.vec3(0.0, 0.0, 0.0)
    for j in range(node_count):
        if j == tid:
            continue

        d = q_in[j] - a
        d2 = wp.dot(d, d)

        # Coincident pairs contribute nothing
        if d2 < epsilon:
            continue

        force = force - wp.normalize(d) * (k2 / d2)

    # Centering: -normalize(a) * |a| * c
    force = force - a * center_attraction

    p = a + force

    if clamp_radius > 0.0:
        if wp.length(p) > clamp_radius:
            p = wp.normalize(p)

    q_out[tid] = p
    qd_out[tid] = qd_in[tid]
    edge_start_out[tid] = edge_start_in[tid]
    flags_out[tid] = flags_in[tid]
    density_out[tid] = density_in[tid]


@wp.kernel
def eval_attraction(
    q_in: wp.array(dtype=wp.vec3),
    qd_in: wp.array(dtype=wp.vec3),
    edge_start_in: wp.array(dtype=int),
    flags_in: wp.array(dtype=int),
    density_in: wp.array(dtype=float),
    edge_indices: wp.array(dtype=int),
    edge_count: int,
    node_count: int,
    edge_attraction: float,
    spring_constant: float,
    epsilon: float,
    max_force: float,
    q_out: wp.array(dtype=wp.vec3),
    qd_out: wp.array(dtype=wp.vec3),
    edge_start_out: wp.array(dtype=int),
    flags_out: wp.array(dtype=int),
    density_out: wp.array(dtype=float),
    visit_start: wp.array(dtype=int),
    visit_count: wp.array(dtype=int),
    error_flag: wp.array(dtype=int),
):
    """
    Mean Hooke attraction over a node's contiguous run of sorted edges.

    The full record is copied first. The position is only moved when the
    averaged force magnitude is strictly below max_force; larger forces
    are dropped for this frame.
    """
    tid = wp.tid()

    p0 = q_in[tid]
    start = edge_start_in[tid]

    q_out[tid] = p0
    qd_out[tid] = qd_in[tid]
    edge_start_out[tid] = start
    flags_out[tid] = flags_in[tid]
    density_out[tid] = density_in[tid]

    visit_start[tid] = -1
    visit_count[tid] = 0

    if start == 0:
        return

    e = start - 1
    if e < 0 or e >= edge_count:
        wp.atomic_max(error_flag, 0, ERROR_EDGE_POINTER)
        return
    if edge_indices[e * 2] != tid:
        wp.atomic_max(error_flag, 0, ERROR_EDGE_POINTER)
        return

    # Pointer must target the first edge of the run
    if e > 0:
        if edge_indices[(e - 1) * 2] == tid:
            wp.atomic_max(error_flag, 0, ERROR_EDGE_POINTER)
            return

    k = spring_constant * edge_attraction

    force = wp.vec3(0.0, 0.0, 0.0)
    count = int(0)
    while e < edge_count:
        if edge_indices[e * 2] != tid:
            break

        n1 = edge_indices[e * 2 + 1]
        if n1 < 0 or n1 >= node_count:
            wp.atomic_max(error_flag, 0, ERROR_NODE_INDEX)
            return

        d = p0 - q_in[n1]
        l = wp.length(d)

        # -normalize(d) * |d| * k, skipped for coincident endpoints
        if l >= epsilon:
            force = force - d * k

        count = count + 1
        e = e + 1

    visit_start[tid] = start - 1
    visit_count[tid] = count

    force = force / float(count)

    if wp.length(force) < max_force:
        q_out[tid] = p0 + force


# ============================================================================
# High-level wrapper functions
# ============================================================================

def _node_arrays(state):
    return [
        state.node_q,
        state.node_qd,
        state.node_edge_start,
        state.node_flags,
        state.node_density,
    ]


def eval_repulsion_pass(model, state_in, state_out, config):
    """
    Launch the repulsion pass: state_in -> state_out.

    Args:
        model: The Model being laid out
        state_in: State to read
        state_out: State to write (every field of every node)
        config: LayoutConfig with the pass coefficients
    """
    if model.node_count > 0:
        wp.launch(
            kernel=eval_repulsion,
            dim=model.node_count,
            inputs=_node_arrays(state_in) + [
                model.node_count,
                float(config.repulsion),
                float(config.repulsion_scale),
                float(config.center_attraction),
                float(config.repulsion_epsilon),
                float(config.clamp_radius),
            ],
            outputs=_node_arrays(state_out),
            device=model.device,
        )


def eval_attraction_pass(model, state_in, state_out, config,
                         visit_start: wp.array, visit_count: wp.array, error_flag: wp.array):
    """
    Launch the attraction pass: state_in -> state_out.

    Args:
        model: The Model holding the sorted edge array
        state_in: State to read (already updated by the repulsion pass)
        state_out: State to write
        config: LayoutConfig with the pass coefficients
        visit_start: Output, first edge index visited per node (-1 if none)
        visit_count: Output, number of edges visited per node
        error_flag: Output, single-element contract violation code
    """
    if model.node_count > 0:
        wp.launch(
            kernel=eval_attraction,
            dim=model.node_count,
            inputs=_node_arrays(state_in) + [
                model.edge_indices,
                model.edge_count,
                model.node_count,
                float(config.edge_attraction),
                float(config.spring_constant),
                float(config.attraction_epsilon),
                float(config.max_attraction_force),
            ],
            outputs=_node_arrays(state_out) + [visit_start, visit_count, error_flag],
            device=model.device,
        )

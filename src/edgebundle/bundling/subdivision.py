"""
Control-point planning.

Turns each raw edge into a polyline of interior control points spread evenly
along its chord. With adaptive subdivision the number of interior points
follows the chord length, so short edges do not pay for resolution they
cannot show.
"""

import math

import numpy as np

from edgebundle.bundling.state import EdgeState, SimulationArena
from edgebundle.tracer import get_tracer, trace


def interior_count(chord_length, config):
    """
    Number of interior control points for a chord of the given length.

    Non-adaptive planning always returns ``subdivisions``. Adaptive planning
    scales it by ``chord_length / reference_length`` and rounds, which is
    monotone in chord length with a floor of zero.
    """
    subdivisions = config.subdivision.subdivisions
    if subdivisions <= 0 or not _is_bundleable_length(chord_length):
        return 0
    if not config.subdivision.adaptive:
        return subdivisions

    scaled = subdivisions * chord_length / config.subdivision.reference_length
    return max(0, int(math.floor(scaled + 0.5)))


def _is_bundleable_length(chord_length):
    return math.isfinite(chord_length) and chord_length > 0


def _fill(state, source, target):
    count = state.point_count
    t = np.linspace(0.0, 1.0, count)[:, None]
    start = np.array(source, dtype=np.float64)
    end = np.array(target, dtype=np.float64)

    if state.degenerate:
        # no interpolation; NaN endpoints must not smear into the other end
        state.positions[0] = start
        state.positions[-1] = end
    else:
        state.positions[:] = start * (1.0 - t) + end * t
        # exact endpoints regardless of rounding in the interpolation
        state.positions[0] = start
        state.positions[-1] = end

    state.rest[:] = state.positions
    state.velocities[:] = 0.0


def plan(edge, config, arena=None, index=0):
    """
    Plan the control points of a single edge.

    Returns an EdgeState with ``k + 2`` points: the two pinned endpoints and
    ``k`` interior points on the chord. Zero-length and non-finite chords,
    and ``subdivisions <= 0``, give endpoints only and a non-bundling state.
    Never raises for bad geometry.
    """
    chord_length = edge.chord_length
    degenerate = not _is_bundleable_length(chord_length)
    k = interior_count(chord_length, config)

    if arena is None:
        arena = SimulationArena([k + 2])
        index = 0

    rows = arena.rows(index)
    state = EdgeState(
        index=index,
        offset=rows.start,
        positions=arena.positions[rows],
        velocities=arena.velocities[rows],
        rest=arena.rest[rows],
        chord_length=chord_length,
        bundling=(not degenerate) and k > 0,
        degenerate=degenerate,
    )
    _fill(state, edge.source.as_tuple(), edge.target.as_tuple())

    if state.bundling:
        arena.movable[rows.start + 1:rows.stop - 1] = True

    return state


@trace(label="plan_all")
def plan_all(edges, config):
    """
    Plan every edge into one shared arena.

    Returns (arena, states) with states in input order.
    """
    tracer = get_tracer()

    counts = [interior_count(edge.chord_length, config) + 2 for edge in edges]
    arena = SimulationArena(counts)
    states = [plan(edge, config, arena=arena, index=i) for i, edge in enumerate(edges)]

    for state in states:
        if state.degenerate:
            tracer.event("Endpoints only", level="DEBUG", state=state)

    degenerate = sum(1 for s in states if s.degenerate)
    tracer.event(
        f"Planned {arena.total_points} control points for {len(states)} edges "
        f"({degenerate} degenerate)"
    )

    return arena, states

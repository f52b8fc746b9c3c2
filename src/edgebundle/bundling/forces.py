"""
Force-directed relaxation of control points.

Each interior control point of a bundling edge feels two forces:

- a spring pulling it back to its resting place on the edge's own chord,
  scaled by ``stiffness``;
- a bundling pull toward the corresponding point of every compatible
  neighbor, a unit direction scaled by the pair's compatibility and by
  ``s / (s + d)``, where ``d`` is the distance to that point and ``s`` the
  edge's segment spacing, so the pull weakens as the neighbor gets farther.

Forces are integrated with momentum:

    velocity = momentum * velocity + (1 - momentum) * force * step
    position += velocity

All forces of one iteration are computed from the previous positions before
any point moves, so the result does not depend on edge order.
"""

import numpy as np

from edgebundle.tracer import get_tracer, trace

# distances below this count as coincident and exert no pull
COINCIDENT_EPSILON = 1e-9


class ForceSimulator:
    """
    Relaxes the control points of one render in place.

    The (receiver, neighbor sample, weight) triples are resolved once from
    the compatibility table; each iteration is then a handful of flat numpy
    operations over the arena.
    """

    def __init__(self, arena, states, table, config):
        self.arena = arena
        self.states = states
        self.table = table
        self.config = config
        self.movable = np.flatnonzero(arena.movable)
        self._build_gather()

    def _build_gather(self):
        receivers, lower, upper, fractions, weights, spacings = [], [], [], [], [], []

        for state in self.states:
            if not state.bundling:
                continue
            indices, scores = self.table.neighbors(state.index)
            if len(indices) == 0:
                continue

            n = state.point_count
            interior = np.arange(1, n - 1)
            t = interior / (n - 1)
            rows = state.offset + interior

            for j, score in zip(indices.tolist(), scores.tolist()):
                other = self.states[j]
                if other.degenerate:
                    continue

                m = other.point_count
                u = (1.0 - t) if self.table.opposed[state.index, j] else t
                u = u * (m - 1)
                low = np.clip(np.floor(u).astype(np.int64), 0, m - 2)

                receivers.append(rows)
                lower.append(other.offset + low)
                upper.append(other.offset + low + 1)
                fractions.append(u - low)
                weights.append(np.full(len(rows), score))
                spacings.append(np.full(len(rows), state.segment_spacing))

        if receivers:
            self.receivers = np.concatenate(receivers)
            self.lower = np.concatenate(lower)
            self.upper = np.concatenate(upper)
            self.fractions = np.concatenate(fractions)[:, None]
            self.weights = np.concatenate(weights)
            self.spacings = np.concatenate(spacings)
        else:
            self.receivers = np.zeros(0, dtype=np.int64)
            self.lower = np.zeros(0, dtype=np.int64)
            self.upper = np.zeros(0, dtype=np.int64)
            self.fractions = np.zeros((0, 1))
            self.weights = np.zeros(0)
            self.spacings = np.zeros(0)

    @property
    def interaction_count(self):
        """Number of (point, neighbor) interactions evaluated per iteration."""
        return len(self.receivers)

    def bundling_forces(self):
        """Bundling force on every arena row from the current positions."""
        positions = self.arena.positions
        forces = np.zeros_like(positions)
        if len(self.receivers) == 0:
            return forces

        samples = positions[self.lower] * (1.0 - self.fractions) + positions[self.upper] * self.fractions
        pull = samples - positions[self.receivers]
        distance = np.sqrt((pull ** 2).sum(axis=1))

        with np.errstate(divide="ignore", invalid="ignore"):
            factor = self.weights * self.spacings / (distance * (self.spacings + distance))
        factor[distance < COINCIDENT_EPSILON] = 0.0

        np.add.at(forces, self.receivers, pull * factor[:, None])
        return forces

    def spring_forces(self):
        """Pull of every arena row back toward its resting place on the chord."""
        return self.config.forces.stiffness * (self.arena.rest - self.arena.positions)

    def step(self, step_size):
        """Advance one explicit Euler step with momentum."""
        rows = self.movable
        if len(rows) == 0:
            return

        momentum = self.config.forces.momentum
        force = self.spring_forces()[rows] + self.bundling_forces()[rows]

        velocities = self.arena.velocities
        velocities[rows] = momentum * velocities[rows] + (1.0 - momentum) * force * step_size
        self.arena.positions[rows] += velocities[rows]

    def step_size_at(self, iteration):
        forces = self.config.forces
        if not forces.cooling or forces.iterations == 0:
            return forces.step_size
        return forces.step_size * (1.0 - iteration / forces.iterations)


@trace(label="relax")
def relax(arena, states, table, config, smooth=None):
    """
    Run ``config.forces.iterations`` rounds of force relaxation in place.

    ``smooth`` is called with no arguments every ``smoothing.frequency``
    iterations (when positive) and once after the final iteration; a
    periodic pass that would coincide with the final one is skipped.
    Returns the number of smoothing calls made.
    """
    tracer = get_tracer()

    simulator = ForceSimulator(arena, states, table, config)
    iterations = config.forces.iterations
    frequency = config.smoothing.frequency
    passes = 0

    tracer.event(
        f"Relaxing {len(simulator.movable)} control points, "
        f"{simulator.interaction_count} neighbor interactions per iteration",
        iterations=iterations,
    )

    for iteration in range(iterations):
        simulator.step(simulator.step_size_at(iteration))

        done = iteration + 1
        if smooth is not None and frequency > 0 and done % frequency == 0 and done < iterations:
            smooth()
            passes += 1

    if smooth is not None:
        smooth()
        passes += 1

    return passes

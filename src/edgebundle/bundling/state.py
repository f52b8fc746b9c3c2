"""
Per-render simulation state.

All control points of one render live in a single SimulationArena; each
EdgeState holds numpy views into its own rows. Nothing here outlives the
render call that created it.
"""

from dataclasses import dataclass

import numpy as np

from edgebundle.models import ControlPoint, Point


class SimulationArena:
    """
    Contiguous storage for every control point of one render.

    Row ``offsets[i]`` through ``offsets[i] + counts[i] - 1`` belong to edge i.
    """

    def __init__(self, counts):
        self.counts = np.asarray(counts, dtype=np.int64)
        self.offsets = np.zeros(len(self.counts), dtype=np.int64)
        if len(self.counts) > 1:
            self.offsets[1:] = np.cumsum(self.counts)[:-1]

        total = int(self.counts.sum())
        self.positions = np.zeros((total, 2), dtype=np.float64)
        self.velocities = np.zeros((total, 2), dtype=np.float64)
        self.rest = np.zeros((total, 2), dtype=np.float64)
        self.movable = np.zeros(total, dtype=bool)

    @property
    def total_points(self):
        return len(self.positions)

    def rows(self, index):
        start = int(self.offsets[index])
        return slice(start, start + int(self.counts[index]))


@dataclass
class EdgeState:
    """
    One edge during a render.

    positions, velocities and rest are views into the arena, so the
    simulator and smoother mutate the arena through them.
    """
    index: int
    offset: int
    positions: np.ndarray
    velocities: np.ndarray
    rest: np.ndarray
    chord_length: float
    bundling: bool = True
    degenerate: bool = False

    @property
    def point_count(self):
        return len(self.positions)

    @property
    def interior_count(self):
        return max(0, self.point_count - 2)

    @property
    def segment_spacing(self):
        """Distance between neighbouring control points on the chord."""
        if self.point_count < 2 or not np.isfinite(self.chord_length):
            return 0.0
        return self.chord_length / (self.point_count - 1)

    def polyline(self):
        """Control point positions as plain [x, y] lists."""
        return self.positions.tolist()

    def control_points(self):
        """Snapshot of the control points with their velocities."""
        return [
            ControlPoint(position=Point(x=p[0], y=p[1]), velocity=[v[0], v[1]])
            for p, v in zip(self.positions.tolist(), self.velocities.tolist())
        ]

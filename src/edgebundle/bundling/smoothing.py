"""
Control-point smoothing.

Post-processes relaxed polylines to remove high-frequency jitter left by the
force simulation. Three interchangeable strategies:

- Laplacian: each interior point moves halfway toward the mean of its two
  neighbors, ``(prev + 2 * p + next) / 4``. Cheap; can blur sharp bends.
- Gaussian: weighted mean over an index window with a bell-shaped kernel.
- Bilateral: the Gaussian index weight times a weight that decays with the
  neighbor's positional distance, so genuine sharp turns survive.

Endpoints are never moved and velocities are left untouched. Kernel windows
that run past an end see the polyline reflected about the pinned endpoint,
so evenly spaced points on a straight chord stay where they are. Every pass is
a Jacobi update: new positions are computed from the old ones, then written.

References:
- Taubin, G. (1995). A signal processing approach to fair surface design.
- Tomasi, C., & Manduchi, R. (1998). Bilateral filtering for gray and color images.
"""

from abc import ABC, abstractmethod

import numpy as np

from edgebundle.config import parse_smoothing_type
from edgebundle.models import SmoothingType
from edgebundle.tracer import get_tracer


class SmoothingStrategy(ABC):
    """Base class for smoothing strategies."""

    name = "smoother"

    def smooth(self, states, iterations):
        """
        Apply ``iterations`` smoothing passes to every state in place.

        Raises ValueError for a negative or non-integer iteration count.
        States with fewer than three points are left alone.
        """
        if isinstance(iterations, bool) or not isinstance(iterations, (int, np.integer)) or iterations < 0:
            raise ValueError(f"{self.name}: iterations must be a non-negative integer, got {iterations!r}")

        for _ in range(iterations):
            for state in states:
                if state.point_count < 3:
                    continue
                state.positions[1:-1] = self.smooth_interior(state.positions)

    @abstractmethod
    def smooth_interior(self, points):
        """Return new positions for ``points[1:-1]`` computed from ``points``."""


class LaplacianSmoother(SmoothingStrategy):
    """Neighbor averaging with weights 1, 2, 1."""

    name = "laplacian"

    def smooth_interior(self, points):
        return (points[:-2] + 2.0 * points[1:-1] + points[2:]) / 4.0


def _reflect_pad(points, radius):
    """Extend a polyline past both ends by odd reflection about its endpoints."""
    padded = points
    while radius > 0:
        width = min(radius, len(padded) - 1)
        before = 2.0 * padded[0] - padded[width:0:-1]
        after = 2.0 * padded[-1] - padded[-2:-2 - width:-1]
        padded = np.concatenate([before, padded, after])
        radius -= width
    return padded


def _windows(points, radius):
    """Index windows around every interior point, shape (n - 2, 2r + 1, 2)."""
    padded = _reflect_pad(points, radius)
    offsets = np.arange(-radius, radius + 1)
    centers = np.arange(1, len(points) - 1)[:, None] + radius
    return offsets, padded[centers + offsets[None, :]]


class GaussianSmoother(SmoothingStrategy):
    """Gaussian kernel over the index window, reflected at the ends."""

    name = "gaussian"

    def __init__(self, sigma=1.0, kernel_radius=3):
        self.sigma = sigma
        self.kernel_radius = kernel_radius

    def smooth_interior(self, points):
        offsets, gathered = _windows(points, self.kernel_radius)
        kernel = np.exp(-(offsets ** 2) / (2.0 * self.sigma ** 2))
        return (gathered * kernel[None, :, None]).sum(axis=1) / kernel.sum()


class BilateralSmoother(SmoothingStrategy):
    """Edge-preserving smoothing: index kernel times positional kernel."""

    name = "bilateral"

    def __init__(self, spatial_sigma=1.0, intensity_sigma=10.0, kernel_radius=3):
        self.spatial_sigma = spatial_sigma
        self.intensity_sigma = intensity_sigma
        self.kernel_radius = kernel_radius

    def smooth_interior(self, points):
        offsets, gathered = _windows(points, self.kernel_radius)
        spatial = np.exp(-(offsets ** 2) / (2.0 * self.spatial_sigma ** 2))

        deviation = ((gathered - points[1:-1][:, None, :]) ** 2).sum(axis=2)
        intensity = np.exp(-deviation / (2.0 * self.intensity_sigma ** 2))

        weights = spatial[None, :] * intensity
        # the center always contributes weight 1, so the total is positive
        return (gathered * weights[:, :, None]).sum(axis=1) / weights.sum(axis=1)[:, None]


def create_smoothing_strategy(mode, config=None):
    """
    Create a smoothing strategy for a mode name or SmoothingType.

    Kernel parameters come from ``config.smoothing`` when given.
    """
    mode = parse_smoothing_type(mode)
    params = config.smoothing if config is not None else None

    if mode == SmoothingType.GAUSSIAN:
        if params is None:
            return GaussianSmoother()
        return GaussianSmoother(params.sigma, params.kernel_radius)

    if mode == SmoothingType.BILATERAL:
        if params is None:
            return BilateralSmoother()
        return BilateralSmoother(params.spatial_sigma, params.intensity_sigma, params.kernel_radius)

    return LaplacianSmoother()


def smooth(states, mode, iterations, config=None):
    """Smooth every state in place with the named strategy."""
    strategy = create_smoothing_strategy(mode, config)
    strategy.smooth(states, iterations)
    get_tracer().event(f"Smoothed {len(states)} edges", mode=strategy.name, iterations=iterations)

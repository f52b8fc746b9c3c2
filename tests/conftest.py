"""Pytest fixtures for Edge Bundle tests."""

import tempfile

import numpy as np
import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def default_config():
    """Create default bundling configuration."""
    from edgebundle.config import BundlingConfig
    return BundlingConfig()


@pytest.fixture
def parallel_edges():
    """Two horizontal edges of length 100, ten units apart."""
    from edgebundle.models import Edge
    return [
        Edge.from_coords(0, 0, 100, 0),
        Edge.from_coords(0, 10, 100, 10),
    ]


@pytest.fixture
def mixed_edges():
    """Regular, zero-length and non-finite edges together."""
    from edgebundle.models import Edge
    return [
        Edge.from_coords(0, 0, 100, 0),
        Edge.from_coords(50, 50, 50, 50),
        Edge.from_coords(0, 10, 100, 12),
        Edge.from_coords(float("nan"), 0, 10, 10),
        Edge.from_coords(0, 100, 100, 0),
    ]


@pytest.fixture
def random_edges():
    """Fifty random edges in a 500x500 square from a seeded generator."""
    from edgebundle.models import Edge
    rng = np.random.default_rng(42)
    coords = rng.uniform(0, 500, size=(50, 4))
    return [Edge.from_coords(*row) for row in coords.tolist()]


@pytest.fixture
def midpoint_gap():
    """Distance between the middle control points of two geometries."""
    def gap(geometry_a, geometry_b):
        a = np.array(geometry_a.control_points)
        b = np.array(geometry_b.control_points)
        return float(np.linalg.norm(a[len(a) // 2] - b[len(b) // 2]))
    return gap

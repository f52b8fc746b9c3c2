"""Tests for pairwise edge compatibility."""

import math

import numpy as np
import pytest


def _score(edges, config, reporter=None):
    from edgebundle.bundling.compatibility import score_all
    from edgebundle.bundling.subdivision import plan_all

    _, states = plan_all(edges, config)
    return score_all(edges, states, config, reporter)


class TestDefaultScores:
    """Tests for the default geometric compatibility."""

    def test_parallel_edges(self, default_config, parallel_edges):
        """Equal parallel edges score by the position factor alone."""
        table = _score(parallel_edges, default_config)

        assert table.score(0, 1) == pytest.approx(100.0 / 110.0)
        assert table.is_neighbor(0, 1)

    def test_perpendicular_edges(self, default_config):
        """Perpendicular edges have zero angle compatibility."""
        from edgebundle.models import Edge

        edges = [Edge.from_coords(0, 0, 100, 0), Edge.from_coords(50, -50, 50, 50)]
        table = _score(edges, default_config)

        assert table.score(0, 1) == pytest.approx(0.0, abs=1e-12)
        assert not table.is_neighbor(0, 1)

    def test_scale_factor(self, default_config):
        """Collinear overlapping edges of different lengths score by length ratio."""
        from edgebundle.models import Edge

        edges = [Edge.from_coords(0, 0, 100, 0), Edge.from_coords(25, 0, 75, 0)]
        table = _score(edges, default_config)

        assert table.score(0, 1) == pytest.approx(0.5)

    def test_symmetric_with_zero_diagonal(self, default_config, random_edges):
        """Scores are symmetric, in [0, 1] and zero on the diagonal."""
        table = _score(random_edges, default_config)

        assert np.allclose(table.scores, table.scores.T)
        assert table.scores.min() >= 0.0
        assert table.scores.max() <= 1.0
        assert not np.diag(table.scores).any()

    def test_degenerate_edges_score_zero(self, default_config, mixed_edges):
        """Zero-length and non-finite edges are compatible with nothing."""
        table = _score(mixed_edges, default_config)

        assert not table.scores[1].any()
        assert not table.scores[3].any()
        assert np.all(np.isfinite(table.scores))

    def test_visibility_factor(self, default_config):
        """Enabling visibility removes pairs whose boxes do not overlap."""
        from edgebundle.models import Edge

        edges = [Edge.from_coords(0, 0, 100, 10), Edge.from_coords(200, 0, 300, 10)]

        default_config.compatibility.threshold = 0.0
        without = _score(edges, default_config)
        default_config.compatibility.use_visibility = True
        with_visibility = _score(edges, default_config)

        assert without.score(0, 1) > 0
        assert with_visibility.score(0, 1) == 0.0

    def test_opposed_directions(self, default_config):
        """Antiparallel edges are flagged as opposed."""
        from edgebundle.models import Edge

        edges = [Edge.from_coords(0, 0, 100, 0), Edge.from_coords(100, 10, 0, 10)]
        table = _score(edges, default_config)

        assert table.opposed[0, 1]
        assert table.opposed[1, 0]
        assert table.score(0, 1) == pytest.approx(100.0 / 110.0)


class TestPruning:
    """Tests for threshold pruning of neighbor lists."""

    def test_threshold_excludes_pair(self, default_config, parallel_edges):
        """A pair below the threshold is not a neighbor."""
        default_config.compatibility.threshold = 0.95
        table = _score(parallel_edges, default_config)

        indices, _ = table.neighbors(0)
        assert len(indices) == 0
        assert table.kept_pairs == 0
        assert table.pruned_pairs(1) == 1

    def test_threshold_clamped(self):
        """Thresholds outside [0, 1] are clamped."""
        from edgebundle.bundling.compatibility import CompatibilityTable

        scores = np.array([[0.0, 0.3], [0.3, 0.0]])

        assert CompatibilityTable(scores, 5.0).threshold == 1.0
        assert CompatibilityTable(scores, -2.0).threshold == 0.0
        assert not CompatibilityTable(scores, 5.0).is_neighbor(0, 1)
        assert CompatibilityTable(scores, -2.0).is_neighbor(0, 1)

    def test_zero_score_never_neighbor(self):
        """A zero score is pruned even with a zero threshold."""
        from edgebundle.bundling.compatibility import CompatibilityTable

        table = CompatibilityTable(np.zeros((2, 2)), 0.0)

        assert not table.is_neighbor(0, 1)
        assert table.kept_pairs == 0

    def test_neighbor_scores(self, default_config, parallel_edges):
        """neighbors() returns indices with their scores."""
        table = _score(parallel_edges, default_config)

        indices, scores = table.neighbors(1)
        assert indices.tolist() == [0]
        assert scores.tolist() == pytest.approx([100.0 / 110.0])


class TestCustomScores:
    """Tests for caller supplied compatibility functions."""

    def test_called_once_per_pair(self, default_config, random_edges):
        """The function sees every unordered pair exactly once."""
        calls = []

        def compatibility(a, b):
            calls.append((a, b))
            return 1.0

        default_config.compatibility_function = compatibility
        edges = random_edges[:6]
        _score(edges, default_config)

        assert len(calls) == 15

    def test_degenerate_pairs_skipped(self, default_config, mixed_edges):
        """Degenerate edges are never passed to the function."""
        seen = []

        def compatibility(a, b):
            seen.extend([a, b])
            return 1.0

        default_config.compatibility_function = compatibility
        _score(mixed_edges, default_config)

        assert mixed_edges[1] not in seen
        assert mixed_edges[3] not in seen
        assert len(seen) == 6

    def test_results_clamped(self, default_config, parallel_edges):
        """Out of range results are clamped, non-finite ones score zero."""
        default_config.compatibility_function = lambda a, b: 7.5
        assert _score(parallel_edges, default_config).score(0, 1) == 1.0

        default_config.compatibility_function = lambda a, b: -1.0
        assert _score(parallel_edges, default_config).score(0, 1) == 0.0

        default_config.compatibility_function = lambda a, b: math.nan
        assert _score(parallel_edges, default_config).score(0, 1) == 0.0

    def test_failure_scores_zero(self, default_config, parallel_edges):
        """A raising function scores the pair zero and is reported."""
        from edgebundle.errors import ErrorReporter

        def compatibility(a, b):
            raise KeyError("group")

        received = []
        reporter = ErrorReporter(lambda error, context: received.append((error, context)))
        default_config.compatibility_function = compatibility
        table = _score(parallel_edges, default_config, reporter)

        assert table.score(0, 1) == 0.0
        assert len(received) == 1
        assert isinstance(received[0][0], KeyError)
        assert received[0][1]["pair"] == (0, 1)
        assert reporter.count("compatibility_function") == 1

    def test_metadata_available(self, default_config):
        """Edge metadata reaches the function untouched."""
        from edgebundle.models import Edge

        edges = [
            Edge.from_coords(0, 0, 100, 0, metadata={"group": "a"}),
            Edge.from_coords(0, 10, 100, 10, metadata={"group": "a"}),
            Edge.from_coords(0, 20, 100, 20, metadata={"group": "b"}),
        ]

        def same_group(a, b):
            return 1.0 if a.metadata["group"] == b.metadata["group"] else 0.0

        default_config.compatibility_function = same_group
        table = _score(edges, default_config)

        assert table.is_neighbor(0, 1)
        assert not table.is_neighbor(0, 2)
        assert not table.is_neighbor(1, 2)

"""
Pairwise edge compatibility.

Scores every unordered edge pair in [0, 1]: how strongly the two edges
should attract each other during relaxation. The default score is the
product of the standard FDEB factors (angle, scale, position and, when
enabled, visibility), so one poor factor suppresses bundling. A caller
supplied function replaces the default entirely and is wrapped so that a
failing call scores the pair 0 instead of aborting the render.

The table is built once per render and consulted on every iteration.
"""

import math

import numpy as np

from edgebundle.tracer import get_tracer, trace


class CompatibilityTable:
    """
    Symmetric, memoised pair scores plus pruned neighbor lists.

    Pairs scoring below the threshold (or exactly 0) are absent from the
    neighbor lists and never exert bundling force on each other.
    """

    def __init__(self, scores, threshold, opposed=None):
        self.scores = scores
        self.threshold = min(1.0, max(0.0, float(threshold)))
        n = len(scores)
        self.opposed = opposed if opposed is not None else np.zeros((n, n), dtype=bool)

        mask = (scores >= self.threshold) & (scores > 0.0)
        np.fill_diagonal(mask, False)
        self._mask = mask
        self._neighbors = [np.flatnonzero(mask[i]) for i in range(n)]

    def score(self, i, j):
        """Compatibility of edges i and j."""
        return float(self.scores[i, j])

    def neighbors(self, i):
        """Indices and scores of the edges allowed to pull on edge i."""
        indices = self._neighbors[i]
        return indices, self.scores[i, indices]

    def is_neighbor(self, i, j):
        return bool(self._mask[i, j])

    @property
    def kept_pairs(self):
        """Number of unordered pairs that survived pruning."""
        return int(np.count_nonzero(np.triu(self._mask, k=1)))

    def pruned_pairs(self, candidates):
        """Number of unordered candidate pairs removed by pruning."""
        return max(0, candidates - self.kept_pairs)


def chord_arrays(states):
    """Endpoint, length and validity arrays for a list of edge states."""
    sources = np.array([s.positions[0] for s in states], dtype=np.float64).reshape(-1, 2)
    targets = np.array([s.positions[-1] for s in states], dtype=np.float64).reshape(-1, 2)
    lengths = np.array([s.chord_length for s in states], dtype=np.float64)
    valid = np.array([not s.degenerate for s in states], dtype=bool)
    return sources, targets, lengths, valid


def default_scores(sources, targets, lengths, valid, use_visibility=False):
    """
    Vectorised default compatibility for all pairs.

    angle:    |cos| of the angle between chords
    scale:    shorter chord length / longer chord length
    position: L_avg / (L_avg + midpoint distance)
    """
    n = len(lengths)
    if n == 0:
        return np.zeros((0, 0))

    vectors = targets - sources

    with np.errstate(divide="ignore", invalid="ignore"):
        length_products = np.outer(lengths, lengths)
        angle = np.abs(vectors @ vectors.T) / length_products

        shorter = np.minimum.outer(lengths, lengths)
        longer = np.maximum.outer(lengths, lengths)
        scale = shorter / longer

        midpoints = (sources + targets) / 2.0
        offsets = midpoints[:, None, :] - midpoints[None, :, :]
        midpoint_distance = np.sqrt((offsets ** 2).sum(axis=2))
        average_length = (lengths[:, None] + lengths[None, :]) / 2.0
        position = average_length / (average_length + midpoint_distance)

        scores = angle * scale * position

        if use_visibility:
            scores = scores * _visibility(sources, targets, length_products)

    scores = np.clip(np.nan_to_num(scores, nan=0.0, posinf=0.0, neginf=0.0), 0.0, 1.0)
    scores[~valid, :] = 0.0
    scores[:, ~valid] = 0.0
    np.fill_diagonal(scores, 0.0)
    return scores


def _visibility(sources, targets, length_products):
    """Bounding-box overlap of two chords relative to L1 * L2 / 4."""
    lows = np.minimum(sources, targets)
    highs = np.maximum(sources, targets)

    overlap_low_x = np.maximum.outer(lows[:, 0], lows[:, 0])
    overlap_low_y = np.maximum.outer(lows[:, 1], lows[:, 1])
    overlap_high_x = np.minimum.outer(highs[:, 0], highs[:, 0])
    overlap_high_y = np.minimum.outer(highs[:, 1], highs[:, 1])

    width = overlap_high_x - overlap_low_x
    height = overlap_high_y - overlap_low_y
    visible = (width >= 0) & (height >= 0)

    ratio = (width * height) / (length_products / 4.0)
    return np.where(visible, np.minimum(1.0, ratio), 0.0)


def custom_scores(edges, valid, compatibility_function, reporter=None):
    """
    Scores from a caller supplied ``(edge_a, edge_b) -> [0, 1]`` function.

    The function is called once per unordered pair of non-degenerate edges.
    Non-finite results score 0, others are clamped to [0, 1]. A call that
    raises scores 0 and is passed to the reporter.
    """
    n = len(edges)
    scores = np.zeros((n, n), dtype=np.float64)

    for i in range(n):
        if not valid[i]:
            continue
        for j in range(i + 1, n):
            if not valid[j]:
                continue
            try:
                value = float(compatibility_function(edges[i], edges[j]))
            except Exception as e:
                if reporter is not None:
                    reporter.report("compatibility_function", e, pair=(i, j))
                continue

            if not math.isfinite(value):
                continue
            value = min(1.0, max(0.0, value))
            scores[i, j] = value
            scores[j, i] = value

    return scores


@trace(label="score_all")
def score_all(edges, states, config, reporter=None):
    """
    Build the compatibility table for one render.

    Uses config.compatibility_function when set, otherwise the default
    geometric score. Threshold is clamped to [0, 1].
    """
    tracer = get_tracer()

    sources, targets, lengths, valid = chord_arrays(states)

    if config.compatibility_function is not None:
        scores = custom_scores(edges, valid, config.compatibility_function, reporter)
    else:
        scores = default_scores(
            sources, targets, lengths, valid,
            use_visibility=config.compatibility.use_visibility,
        )

    vectors = targets - sources
    opposed = (vectors @ vectors.T) < 0.0

    table = CompatibilityTable(scores, config.compatibility.threshold, opposed)

    candidates = int(valid.sum())
    candidate_pairs = candidates * (candidates - 1) // 2
    tracer.event(
        f"Compatibility: {table.kept_pairs} of {candidate_pairs} pairs kept "
        f"(threshold={table.threshold:.2f})"
    )

    return table

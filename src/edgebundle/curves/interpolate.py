"""
Curve interpolation for bundled edges.

Converts a control-point polyline into portable path commands (M, L, C).
linear emits straight segments; basis, cardinal, catmull-rom and bundle emit
cubic Bezier segments computed from the control points. The spline
constructions follow the usual d3-shape curve definitions.
"""

import numpy as np

from edgebundle.config import parse_curve_type
from edgebundle.models import CurveType, PathCommand

EPSILON = 1e-12


def _command(command, *points):
    return PathCommand(command=command, points=[[float(p[0]), float(p[1])] for p in points])


def _as_points(source):
    """Accept an EdgeState, an (n, 2) array or a list of [x, y]."""
    if hasattr(source, "positions"):
        return np.asarray(source.positions, dtype=np.float64)
    return np.asarray(source, dtype=np.float64).reshape(-1, 2)


def is_degenerate(points):
    """True when the polyline has no extent (all points coincide or are not finite)."""
    if len(points) < 2:
        return True
    if not np.all(np.isfinite(points)):
        return True
    return bool(np.all(points == points[0]))


def degenerate_path(points):
    """A zero-length segment at the first point (or from first to last if they differ)."""
    first = points[0]
    last = points[-1] if len(points) > 1 else points[0]
    return [_command("M", first), _command("L", last)]


def straight_cubic(start, end):
    """A cubic segment with handles at 1/3 and 2/3 of the chord."""
    delta = end - start
    return _command("C", start + delta / 3.0, start + 2.0 * delta / 3.0, end)


def linear_path(points):
    commands = [_command("M", points[0])]
    commands.extend(_command("L", p) for p in points[1:])
    return commands


def basis_path(points):
    """
    Uniform cubic B-spline clamped to the first and last control points.

    Emits M, a short L, one C per control point and a closing L.
    """
    n = len(points)
    if n < 3:
        return [_command("M", points[0]), straight_cubic(points[0], points[-1])]

    commands = [
        _command("M", points[0]),
        _command("L", (5.0 * points[0] + points[1]) / 6.0),
    ]

    for i in range(2, n + 1):
        a = points[i - 2]
        b = points[i - 1]
        c = points[i] if i < n else points[n - 1]
        commands.append(_command(
            "C",
            (2.0 * a + b) / 3.0,
            (a + 2.0 * b) / 3.0,
            (a + 4.0 * b + c) / 6.0,
        ))

    commands.append(_command("L", points[-1]))
    return commands


def cardinal_path(points, tension):
    """
    Cardinal spline through every control point.

    Handle length is ``tension / 6`` of the neighbor chord: 0 gives straight
    chords, 1 gives the full Catmull-Rom curvature.
    """
    k = tension / 6.0
    padded = np.vstack([points[:1], points, points[-1:]])

    commands = [_command("M", points[0])]
    for i in range(len(points) - 1):
        before, start, end, after = padded[i], padded[i + 1], padded[i + 2], padded[i + 3]
        commands.append(_command(
            "C",
            start + k * (end - before),
            end - k * (after - start),
            end,
        ))
    return commands


def catmull_rom_path(points, alpha=0.5):
    """
    Catmull-Rom spline with parameterisation ``alpha`` (0.5 = centripetal).

    Missing neighbors at the ends collapse the corresponding handle onto the
    segment endpoint.
    """
    if alpha <= 0:
        return cardinal_path(points, 1.0)

    n = len(points)
    commands = [_command("M", points[0])]

    def span(p, q):
        d2 = float(((q - p) ** 2).sum())
        return d2 ** (alpha / 2.0), d2 ** alpha

    for i in range(n - 1):
        p1, p2 = points[i], points[i + 1]
        l12_a, l12_2a = span(p1, p2)

        c1 = p1
        if i > 0:
            p0 = points[i - 1]
            l01_a, l01_2a = span(p0, p1)
            if l01_a > EPSILON:
                a = 2.0 * l01_2a + 3.0 * l01_a * l12_a + l12_2a
                m = 3.0 * l01_a * (l01_a + l12_a)
                c1 = (p1 * a - p0 * l12_2a + p2 * l01_2a) / m

        c2 = p2
        if i + 2 < n:
            p3 = points[i + 2]
            l23_a, l23_2a = span(p2, p3)
            if l23_a > EPSILON:
                b = 2.0 * l23_2a + 3.0 * l23_a * l12_a + l12_2a
                m = 3.0 * l23_a * (l23_a + l12_a)
                c2 = (p2 * b + p1 * l23_2a - p3 * l12_2a) / m

        commands.append(_command("C", c1, c2, p2))

    return commands


def bundle_path(points, beta):
    """
    Basis spline over control points straightened toward the chord.

    ``beta`` 1 keeps the control points, 0 collapses them onto the chord.
    """
    n = len(points)
    t = np.linspace(0.0, 1.0, n)[:, None]
    chord = points[0] + t * (points[-1] - points[0])
    return basis_path(beta * points + (1.0 - beta) * chord)


def to_path(source, curve_type=CurveType.BASIS, curve_tension=0.5, alpha=0.5):
    """
    Convert control points into path commands.

    ``source`` is an EdgeState or a sequence of points. Degenerate input
    always yields ``[M p, L p]`` so every edge has a valid path.
    """
    points = _as_points(source)
    curve_type = parse_curve_type(curve_type)

    if len(points) == 0:
        raise ValueError("Cannot build a path from zero control points")

    if getattr(source, "degenerate", False) or is_degenerate(points):
        return degenerate_path(points)

    if curve_type == CurveType.LINEAR:
        return linear_path(points)
    if curve_type == CurveType.CARDINAL:
        return cardinal_path(points, curve_tension)
    if curve_type == CurveType.CATMULL_ROM:
        return catmull_rom_path(points, alpha)
    if curve_type == CurveType.BUNDLE:
        return bundle_path(points, curve_tension)
    return basis_path(points)

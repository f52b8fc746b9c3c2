"""
Render orchestrator for the edge bundling engine.

Runs planning, compatibility scoring, force relaxation with periodic
smoothing, and curve interpolation for one edge list. Every piece of state
is created inside the call and dropped when it returns.
"""

import os
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from edgebundle.bundling.compatibility import score_all
from edgebundle.bundling.forces import relax
from edgebundle.bundling.smoothing import create_smoothing_strategy
from edgebundle.bundling.subdivision import plan_all
from edgebundle.config import BundlingConfig, load_config
from edgebundle.curves.interpolate import to_path
from edgebundle.curves.svg_path import compute_path_bbox, path_to_svg
from edgebundle.errors import ErrorReporter, StyleMismatchError
from edgebundle.export.svg_document import save_bundle_svg
from edgebundle.io.load_edges import coerce_edge, load_edges
from edgebundle.io.save_artifacts import ensure_dir, save_json
from edgebundle.models import BundleResult, EdgeGeometry, RenderStats
from edgebundle.tracer import get_tracer, trace
from edgebundle.validate.report import generate_report
from edgebundle.validate.rules import run_validation


@dataclass
class StyleAccessors:
    """
    Output annotation for each edge.

    Each field is a constant, a callable ``(edge, index) -> value`` or a
    sequence holding one value per edge. None falls back to the configured
    default.
    """
    stroke: Any = None
    stroke_width: Any = None
    stroke_opacity: Any = None


STYLE_FIELDS = ("stroke", "stroke_width", "stroke_opacity")


def _is_per_edge_sequence(value):
    if isinstance(value, (str, bytes)):
        return False
    return isinstance(value, (Sequence, np.ndarray))


def resolve_styles(style, edges, defaults):
    """
    Evaluate style accessors for every edge.

    Returns a list of dicts with stroke, stroke_width and stroke_opacity.
    Raises StyleMismatchError when a per-edge sequence has the wrong length.
    """
    if style is None:
        style = StyleAccessors()
    elif isinstance(style, dict):
        style = StyleAccessors(**style)

    accessors = {}
    for name in STYLE_FIELDS:
        accessor = getattr(style, name)
        if accessor is None:
            accessor = getattr(defaults, name)
        if _is_per_edge_sequence(accessor) and len(accessor) != len(edges):
            raise StyleMismatchError(
                f"Style accessor '{name}' has {len(accessor)} values for {len(edges)} edges"
            )
        accessors[name] = accessor

    resolved = []
    for i, edge in enumerate(edges):
        values = {}
        for name, accessor in accessors.items():
            if callable(accessor):
                values[name] = accessor(edge, i)
            elif _is_per_edge_sequence(accessor):
                values[name] = accessor[i]
            else:
                values[name] = accessor
        resolved.append(_coerce_style(values))
    return resolved


def _coerce_style(values):
    stroke = values["stroke"]
    width = values["stroke_width"]
    opacity = values["stroke_opacity"]
    return {
        "stroke": None if stroke is None else str(stroke),
        "stroke_width": None if width is None else float(width),
        "stroke_opacity": None if opacity is None else min(1.0, max(0.0, float(opacity))),
    }


def build_geometry(state, config, style):
    """Interpolate one relaxed edge state into its output geometry."""
    commands = to_path(state, config.curve.type, config.curve.tension, config.curve.alpha)
    return EdgeGeometry(
        index=state.index,
        path_commands=commands,
        control_points=state.polyline(),
        svg_path=path_to_svg(commands),
        bbox=compute_path_bbox(commands),
        degenerate=state.degenerate,
        **style,
    )


@trace(label="render")
def render(edges, config=None, style=None, error_handler=None):
    """
    Bundle a list of edges into smooth curves.

    Args:
        edges: sequence of Edge models (dicts and coordinate tuples are coerced)
        config: BundlingConfig or dict of flat options; values are normalised
            into their valid ranges
        style: StyleAccessors or dict of stroke/stroke_width/stroke_opacity
        error_handler: optional callable ``(exception, context)`` receiving the
            first recoverable failure of each kind

    Returns:
        BundleResult with exactly one geometry per input edge, in input order.

    Raises:
        StyleMismatchError: a per-edge style sequence has the wrong length.
    """
    tracer = get_tracer()
    started = time.perf_counter()

    if isinstance(config, dict):
        config = BundlingConfig.from_options(**config)
    config = (config or BundlingConfig()).normalized()
    edges = [coerce_edge(edge) for edge in edges]
    styles = resolve_styles(style, edges, config.style)
    reporter = ErrorReporter(error_handler)

    with tracer.span("plan", module="pipeline", edges=len(edges)):
        arena, states = plan_all(edges, config)

    with tracer.span("compatibility", module="pipeline"):
        table = score_all(edges, states, config, reporter)

    strategy = create_smoothing_strategy(config.smoothing.type, config)

    def smooth_pass():
        strategy.smooth(states, config.smoothing.iterations)

    with tracer.span("relax", module="pipeline"):
        passes = relax(arena, states, table, config, smooth=smooth_pass)
        tracer.event(f"Applied {passes} {strategy.name} smoothing passes", positions=arena.positions)

    with tracer.span("interpolate", module="pipeline"):
        geometries = [build_geometry(state, config, styles[i]) for i, state in enumerate(states)]

    reporter.summarize()

    candidates = sum(1 for s in states if not s.degenerate)
    stats = RenderStats(
        edge_count=len(edges),
        degenerate_count=len(states) - candidates,
        bundling_count=sum(1 for s in states if s.bundling),
        neighbor_pairs=table.kept_pairs,
        pruned_pairs=table.pruned_pairs(candidates * (candidates - 1) // 2),
        compatibility_failures=reporter.count("compatibility_function"),
        iterations=config.forces.iterations,
        smoothing_passes=passes,
        elapsed_ms=(time.perf_counter() - started) * 1000,
    )

    tracer.event(f"Rendered {len(geometries)} edges in {stats.elapsed_ms:.0f}ms")

    return BundleResult(geometries=geometries, stats=stats)


class EdgeBundler:
    """
    Reusable bundler holding configuration and style.

    Accepts either a BundlingConfig or flat options
    (``EdgeBundler(subdivisions=10, stepSize=0.1)``). Holds no simulation
    state between renders.
    """

    def __init__(self, config=None, style=None, **options):
        if config is not None and options:
            raise ValueError("Pass either a BundlingConfig or flat options, not both")
        self.config = config if config is not None else BundlingConfig.from_options(**options)
        self.style = style

    def render(self, edges, error_handler=None):
        return render(edges, self.config, style=self.style, error_handler=error_handler)


@trace(label="run_pipeline")
def run_pipeline(input_path, out_dir, config=None, config_path=None, export_svg=True):
    """
    Load edges from a file, bundle them and write the outputs.

    Creates in out_dir:
    - result.json: geometries and render stats
    - bundled.svg: the bundled paths (unless export_svg is False)
    - validation_report.json and validation_summary.txt

    Returns (BundleResult, ValidationReport).
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    edges = load_edges(input_path)
    ensure_dir(out_dir)

    result = render(edges, config)

    with tracer.span("validate", module="pipeline"):
        report = run_validation(edges, result)

    with tracer.span("export", module="pipeline"):
        save_json(result, os.path.join(out_dir, "result.json"))
        if export_svg:
            save_bundle_svg(result, os.path.join(out_dir, "bundled.svg"))
        generate_report(report, out_dir)

    tracer.event(f"Pipeline complete: {len(result.geometries)} geometries, {report.error_count} validation errors")

    return result, report

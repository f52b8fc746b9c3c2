"""
Validation rules for Edge Bundle.

Checks a render result against the guarantees the engine makes to callers.
"""

import math

from edgebundle.models import CheckResult, Severity, ValidationReport
from edgebundle.tracer import get_tracer, trace

ENDPOINT_TOLERANCE = 1e-6


@trace(label="run_validation")
def run_validation(edges, result):
    """
    Run all validation checks on a render result.

    Returns ValidationReport with all check results.
    """
    tracer = get_tracer()

    checks = []

    checks.append(check_cardinality(edges, result))
    checks.append(check_endpoints_pinned(edges, result))
    checks.append(check_finite_geometry(result))
    checks.append(check_degenerate_extent(result))

    report = ValidationReport(checks=checks)

    tracer.event(f"Validation complete: {report.error_count} errors, {report.warning_count} warnings")

    return report


def check_cardinality(edges, result):
    """
    Check that there is exactly one geometry per input edge, in input order.
    """
    indices = [g.index for g in result.geometries]
    expected = list(range(len(edges)))

    if indices == expected:
        return CheckResult(
            rule_id="cardinality",
            severity=Severity.ERROR,
            passed=True,
            message=f"One geometry for each of {len(edges)} edges",
            evidence={"edges": len(edges)},
        )

    return CheckResult(
        rule_id="cardinality",
        severity=Severity.ERROR,
        passed=False,
        message=f"{len(indices)} geometries for {len(edges)} edges",
        evidence={"edges": len(edges), "geometries": len(indices)},
    )


def _same_point(a, b):
    return math.hypot(a[0] - b[0], a[1] - b[1]) <= ENDPOINT_TOLERANCE


def check_endpoints_pinned(edges, result):
    """
    Check that every finite path starts at its source and ends at its target.
    """
    moved = []

    for edge, geometry in zip(edges, result.geometries):
        source = edge.source.as_tuple()
        target = edge.target.as_tuple()
        if not all(math.isfinite(v) for v in source + target):
            continue
        if not geometry.path_commands:
            moved.append(geometry.index)
            continue

        start = geometry.path_commands[0].points[0]
        end = geometry.path_commands[-1].points[-1]
        if not (_same_point(start, source) and _same_point(end, target)):
            moved.append(geometry.index)

    if moved:
        return CheckResult(
            rule_id="endpoints_pinned",
            severity=Severity.ERROR,
            passed=False,
            message=f"{len(moved)} paths do not start and end at their edge endpoints",
            evidence={"edges": moved[:20]},
        )

    return CheckResult(
        rule_id="endpoints_pinned",
        severity=Severity.ERROR,
        passed=True,
        message="All paths start and end at their edge endpoints",
    )


def check_finite_geometry(result):
    """
    Check for geometries carrying non-finite coordinates.

    These come from non-finite input endpoints and are emitted as trivial
    degenerate paths.
    """
    non_finite = [
        g.index for g in result.geometries
        if not all(math.isfinite(v) for p in g.control_points for v in p)
    ]

    if non_finite:
        return CheckResult(
            rule_id="finite_geometry",
            severity=Severity.WARN,
            passed=False,
            message=f"{len(non_finite)} edges have non-finite coordinates",
            evidence={"edges": non_finite[:20]},
        )

    return CheckResult(
        rule_id="finite_geometry",
        severity=Severity.WARN,
        passed=True,
        message="All coordinates are finite",
    )


def check_degenerate_extent(result):
    """
    Report degenerate edges and check that the finite ones have no extent.
    """
    degenerate = [g for g in result.geometries if g.degenerate]
    stretched = [
        g.index for g in degenerate
        if all(math.isfinite(v) for v in g.bbox) and g.extent != (0.0, 0.0)
    ]

    return CheckResult(
        rule_id="degenerate_extent",
        severity=Severity.INFO,
        passed=not stretched,
        message=f"{len(degenerate)} degenerate edges, {len(stretched)} with non-zero extent",
        evidence={"degenerate": [g.index for g in degenerate][:20], "stretched": stretched[:20]},
    )

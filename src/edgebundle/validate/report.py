"""
Validation report generation for Edge Bundle.

Creates JSON and plain-text reports of validation results.
"""

import os

from edgebundle.io.save_artifacts import ensure_dir, save_json
from edgebundle.models import Severity
from edgebundle.tracer import get_tracer, trace

SEVERITY_MARKS = {
    Severity.ERROR: "[ERROR]",
    Severity.WARN: "[WARN]",
    Severity.INFO: "[INFO]",
}


def format_summary(report):
    """Human-readable summary of a ValidationReport."""
    summary_lines = ["Edge Bundle Validation Report", "=" * 40, ""]

    passed = [c for c in report.checks if c.passed]
    failed = [c for c in report.checks if not c.passed]

    summary_lines.append(f"Total checks: {len(report.checks)}")
    summary_lines.append(f"Passed: {len(passed)}")
    summary_lines.append(f"Failed: {len(failed)}")
    summary_lines.append("")

    if failed:
        summary_lines.append("ISSUES:")
        summary_lines.append("-" * 40)
        for check in failed:
            summary_lines.append(f"{SEVERITY_MARKS[check.severity]} {check.rule_id}: {check.message}")
        summary_lines.append("")

    summary_lines.append("ALL CHECKS:")
    summary_lines.append("-" * 40)
    for check in report.checks:
        summary_lines.append(format_check_result(check))

    return "\n".join(summary_lines)


@trace(label="generate_report")
def generate_report(report, out_dir):
    """
    Generate validation report files.

    Creates:
    - validation_report.json: Full check results
    - validation_summary.txt: Human-readable summary
    """
    tracer = get_tracer()

    report_path = os.path.join(out_dir, "validation_report.json")
    save_json(report, report_path)

    summary_path = os.path.join(out_dir, "validation_summary.txt")
    ensure_dir(os.path.dirname(summary_path))
    with open(summary_path, "w", encoding="utf-8") as f:
        f.write(format_summary(report))

    tracer.event(f"Report saved: {len(report.checks)} checks, {report.error_count} errors")

    return report_path, summary_path


def format_check_result(check):
    """Format a single check result for display."""
    status = "PASS" if check.passed else "FAIL"
    severity = check.severity.value.upper()
    return f"[{status}][{severity}] {check.rule_id}: {check.message}"

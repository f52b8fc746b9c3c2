"""
Pydantic data models for the edge bundling engine.

Edges come in and geometries go out through these validated models; the
numeric core works on numpy arrays in between.
"""

import math
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CurveType(str, Enum):
    """Interpolation schemes understood by the curve renderer."""
    LINEAR = "linear"
    BASIS = "basis"
    CARDINAL = "cardinal"
    CATMULL_ROM = "catmull-rom"
    BUNDLE = "bundle"


class SmoothingType(str, Enum):
    """Control-point smoothing modes."""
    LAPLACIAN = "laplacian"
    GAUSSIAN = "gaussian"
    BILATERAL = "bilateral"


class Point(BaseModel):
    """An immutable 2-D point."""
    x: float
    y: float

    model_config = ConfigDict(frozen=True)

    def as_tuple(self):
        return (self.x, self.y)

    def distance_to(self, other):
        return math.hypot(other.x - self.x, other.y - self.y)


class Edge(BaseModel):
    """
    A caller-owned graph edge.

    metadata is opaque to the engine and handed untouched to compatibility
    and style callbacks.
    """
    source: Point
    target: Point
    metadata: Any = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_coords(cls, sx, sy, tx, ty, metadata=None):
        """Build an edge from raw endpoint coordinates."""
        return cls(source=Point(x=sx, y=sy), target=Point(x=tx, y=ty), metadata=metadata)

    @property
    def chord_length(self):
        return self.source.distance_to(self.target)


class ControlPoint(BaseModel):
    """Read-only snapshot of one simulated control point."""
    position: Point
    velocity: List[float] = Field(default_factory=lambda: [0.0, 0.0], min_length=2, max_length=2)


class PathCommand(BaseModel):
    """
    One renderer-agnostic path instruction.

    M and L carry a single point; C carries two Bezier handles and the end
    point.
    """
    command: str = Field(..., pattern="^[MLC]$")
    points: List[List[float]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class EdgeGeometry(BaseModel):
    """Final geometry for one input edge."""
    index: int
    path_commands: List[PathCommand] = Field(default_factory=list)
    control_points: List[List[float]] = Field(default_factory=list)
    svg_path: str = ""
    bbox: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])
    degenerate: bool = False
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    stroke_opacity: Optional[float] = None

    model_config = ConfigDict(extra="forbid")

    @property
    def extent(self):
        """Width and height of the geometry's bounding box."""
        return (self.bbox[2] - self.bbox[0], self.bbox[3] - self.bbox[1])


class RenderStats(BaseModel):
    """Counters collected during one render call."""
    edge_count: int = 0
    degenerate_count: int = 0
    bundling_count: int = 0
    neighbor_pairs: int = 0
    pruned_pairs: int = 0
    compatibility_failures: int = 0
    iterations: int = 0
    smoothing_passes: int = 0
    elapsed_ms: float = 0.0

    model_config = ConfigDict(extra="forbid")


class BundleResult(BaseModel):
    """One geometry per input edge, in input order."""
    geometries: List[EdgeGeometry] = Field(default_factory=list)
    stats: RenderStats = Field(default_factory=RenderStats)

    model_config = ConfigDict(extra="forbid")


class Severity(str, Enum):
    """Severity levels for validation checks."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class CheckResult(BaseModel):
    """Result of a single validation check."""
    rule_id: str
    severity: Severity
    passed: bool
    message: str
    evidence: dict = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ValidationReport(BaseModel):
    """Collection of validation check results."""
    checks: List[CheckResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def has_errors(self):
        return any(c.severity == Severity.ERROR and not c.passed for c in self.checks)

    @property
    def error_count(self):
        return sum(1 for c in self.checks if c.severity == Severity.ERROR and not c.passed)

    @property
    def warning_count(self):
        return sum(1 for c in self.checks if c.severity == Severity.WARN and not c.passed)


def compute_bbox(points):
    """
    Compute bounding box from a list of [x, y] points.

    Returns [min_x, min_y, max_x, max_y].
    """
    if not points:
        return [0.0, 0.0, 0.0, 0.0]

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return [min(xs), min(ys), max(xs), max(ys)]

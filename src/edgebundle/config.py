"""
Configuration management for the edge bundling engine.

Loads YAML configuration with sensible defaults for every stage, accepts the
flat option names used by callers of the bundler, and normalises values into
their valid ranges.
"""

import copy
import math
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Callable, Optional

import yaml

from edgebundle.models import CurveType, SmoothingType


@dataclass
class SubdivisionConfig:
    """Configuration for control-point planning."""
    subdivisions: int = 20
    adaptive: bool = False
    reference_length: float = 100.0  # chord length that receives exactly `subdivisions` points


@dataclass
class CompatibilityConfig:
    """Configuration for pairwise edge compatibility."""
    threshold: float = 0.6
    use_visibility: bool = False


@dataclass
class ForceConfig:
    """Configuration for the force simulation."""
    iterations: int = 90
    step_size: float = 0.04
    stiffness: float = 0.1
    momentum: float = 0.5
    cooling: bool = False


@dataclass
class SmoothingConfig:
    """Configuration for control-point smoothing."""
    type: str = "laplacian"
    iterations: int = 1
    frequency: int = 10
    sigma: float = 1.0
    spatial_sigma: float = 1.0
    intensity_sigma: float = 10.0
    kernel_radius: int = 3


@dataclass
class CurveConfig:
    """Configuration for path interpolation."""
    type: str = "basis"
    tension: float = 0.5
    alpha: float = 0.5  # catmull-rom parameterisation, 0.5 is centripetal


@dataclass
class StyleConfig:
    """Default stroke annotation for output geometries."""
    stroke: str = "#999"
    stroke_width: float = 1.5
    stroke_opacity: float = 0.6


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


SECTIONS = ("subdivision", "compatibility", "forces", "smoothing", "curve", "style", "tracing")

# Flat option name -> (section, field). Both the camelCase option names and
# their snake_case spellings are accepted.
FLAT_OPTIONS = {
    "subdivisions": ("subdivision", "subdivisions"),
    "adaptiveSubdivision": ("subdivision", "adaptive"),
    "adaptive_subdivision": ("subdivision", "adaptive"),
    "compatibilityThreshold": ("compatibility", "threshold"),
    "compatibility_threshold": ("compatibility", "threshold"),
    "iterations": ("forces", "iterations"),
    "stepSize": ("forces", "step_size"),
    "step_size": ("forces", "step_size"),
    "stiffness": ("forces", "stiffness"),
    "momentum": ("forces", "momentum"),
    "curveType": ("curve", "type"),
    "curve_type": ("curve", "type"),
    "curveTension": ("curve", "tension"),
    "curve_tension": ("curve", "tension"),
    "smoothingType": ("smoothing", "type"),
    "smoothing_type": ("smoothing", "type"),
    "smoothingIterations": ("smoothing", "iterations"),
    "smoothing_iterations": ("smoothing", "iterations"),
    "smoothingFrequency": ("smoothing", "frequency"),
    "smoothing_frequency": ("smoothing", "frequency"),
    "stroke": ("style", "stroke"),
    "strokeWidth": ("style", "stroke_width"),
    "stroke_width": ("style", "stroke_width"),
    "strokeOpacity": ("style", "stroke_opacity"),
    "stroke_opacity": ("style", "stroke_opacity"),
}

CURVE_ALIASES = {
    "catmullRom": CurveType.CATMULL_ROM.value,
    "catmull_rom": CurveType.CATMULL_ROM.value,
    "catmullrom": CurveType.CATMULL_ROM.value,
}


@dataclass
class BundlingConfig:
    """Complete engine configuration."""
    subdivision: SubdivisionConfig = field(default_factory=SubdivisionConfig)
    compatibility: CompatibilityConfig = field(default_factory=CompatibilityConfig)
    forces: ForceConfig = field(default_factory=ForceConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    curve: CurveConfig = field(default_factory=CurveConfig)
    style: StyleConfig = field(default_factory=StyleConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    compatibility_function: Optional[Callable] = None

    @classmethod
    def from_options(cls, **options):
        """
        Build a configuration from flat bundler options.

        Accepts both the camelCase names (``stepSize``, ``curveType``...) and
        their snake_case spellings. Raises ValueError on unknown names.
        """
        config = cls()
        for name, value in options.items():
            if name in ("compatibilityFunction", "compatibility_function"):
                config.compatibility_function = value
                continue
            if name not in FLAT_OPTIONS:
                raise ValueError(f"Unknown bundling option: {name}")
            section, key = FLAT_OPTIONS[name]
            setattr(getattr(config, section), key, value)
        return config

    def normalized(self):
        """
        Return a copy with every value coerced into its valid range.

        Counts become non-negative ints (invalid values become 0), unit
        interval parameters are clamped to [0, 1]. Unknown curve or smoothing
        names raise ValueError.
        """
        func = self.compatibility_function
        self.compatibility_function = None
        try:
            config = copy.deepcopy(self)
        finally:
            self.compatibility_function = func
        config.compatibility_function = func

        defaults = BundlingConfig()

        sub = config.subdivision
        sub.subdivisions = _as_count(sub.subdivisions)
        sub.adaptive = bool(sub.adaptive)
        sub.reference_length = _as_positive(sub.reference_length, defaults.subdivision.reference_length)

        comp = config.compatibility
        comp.threshold = _clamp_unit(comp.threshold, defaults.compatibility.threshold)
        comp.use_visibility = bool(comp.use_visibility)

        forces = config.forces
        forces.iterations = _as_count(forces.iterations)
        forces.step_size = max(0.0, _as_float(forces.step_size, defaults.forces.step_size))
        forces.stiffness = _clamp_unit(forces.stiffness, defaults.forces.stiffness)
        forces.momentum = _clamp_unit(forces.momentum, defaults.forces.momentum)
        forces.cooling = bool(forces.cooling)

        smoothing = config.smoothing
        smoothing.type = parse_smoothing_type(smoothing.type).value
        smoothing.iterations = _as_count(smoothing.iterations)
        smoothing.frequency = _as_count(smoothing.frequency)
        smoothing.sigma = _as_positive(smoothing.sigma, defaults.smoothing.sigma)
        smoothing.spatial_sigma = _as_positive(smoothing.spatial_sigma, defaults.smoothing.spatial_sigma)
        smoothing.intensity_sigma = _as_positive(smoothing.intensity_sigma, defaults.smoothing.intensity_sigma)
        smoothing.kernel_radius = max(1, _as_count(smoothing.kernel_radius))

        curve = config.curve
        curve.type = parse_curve_type(curve.type).value
        curve.tension = _clamp_unit(curve.tension, defaults.curve.tension)
        curve.alpha = _clamp_unit(curve.alpha, defaults.curve.alpha)

        config.style.stroke_opacity = _clamp_unit(config.style.stroke_opacity, defaults.style.stroke_opacity)

        return config


def parse_curve_type(value):
    """Resolve a curve type name (or alias) to a CurveType."""
    if isinstance(value, CurveType):
        return value
    name = CURVE_ALIASES.get(str(value), str(value))
    try:
        return CurveType(name.lower())
    except ValueError:
        valid = ", ".join(c.value for c in CurveType)
        raise ValueError(f"Unknown curve type {value!r}, expected one of: {valid}") from None


def parse_smoothing_type(value):
    """Resolve a smoothing mode name to a SmoothingType."""
    if isinstance(value, SmoothingType):
        return value
    try:
        return SmoothingType(str(value).lower())
    except ValueError:
        valid = ", ".join(s.value for s in SmoothingType)
        raise ValueError(f"Unknown smoothing type {value!r}, expected one of: {valid}") from None


def _as_float(value, default):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def _as_count(value):
    """Coerce to a non-negative int; anything unusable becomes 0."""
    value = _as_float(value, 0.0)
    return max(0, int(value))


def _as_positive(value, default):
    value = _as_float(value, default)
    return value if value > 0 else default


def _clamp_unit(value, default):
    return min(1.0, max(0.0, _as_float(value, default)))


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = BundlingConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass. Unknown keys are ignored."""
    for section in SECTIONS:
        values = yaml_data.get(section)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)

    # flat bundler options are accepted at the top level too
    for name, value in yaml_data.items():
        if name in FLAT_OPTIONS:
            section, key = FLAT_OPTIONS[name]
            setattr(getattr(config, section), key, value)

    return config


def config_to_dict(config):
    """Serialisable view of a configuration (the callback is omitted)."""
    return {
        section: asdict(getattr(config, section))
        for section in SECTIONS
    }


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = config_to_dict(BundlingConfig())
    yaml_data["tracing"] = {
        f.name: yaml_data["tracing"][f.name]
        for f in fields(TracingConfig)
        if f.name in ("enabled", "level")
    }

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)

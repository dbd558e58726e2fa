"""Engine thresholds, sampling limits and layer fallbacks.

Every heuristic constant used by the analyzers lives here so it can be tuned
from a YAML file without touching call sites.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Literal

import yaml

# Shape classification
DEFAULT_STAR_MIN_POINTS = 5
DEFAULT_STAR_MAX_INNER_RATIO = 0.8  # inner radius / outer radius
DEFAULT_TRIANGLE_ANGLE_TOLERANCE = 25.0  # degrees from 60
DEFAULT_ARROW_MIN_ASPECT = 1.4
DEFAULT_ARROW_TIP_MAX_RATIO = 0.2  # tip width / widest cross-section
DEFAULT_ARROW_TAIL_MIN_RATIO = 0.3  # tail width / widest cross-section
DEFAULT_ARROW_END_BAND = 0.05  # fraction of length treated as an end
DEFAULT_SIMPLIFY_TOLERANCE = 0.02  # fraction of the bbox diagonal
DEFAULT_MIN_CENTROID_OFFSET_RATIO = 0.02  # fraction of max bbox extent
DEFAULT_GENERIC_CONFIDENCE = 0.9
DEFAULT_DEGENERATE_CONFIDENCE = 0.3

# ViewBox fit
DEFAULT_CENTERED_TOLERANCE = 0.02  # fraction of viewBox extent
DEFAULT_MAJOR_OFFSET_RATIO = 0.15
DEFAULT_MIN_FILL_RATIO = 0.5

# Sampling limits
DEFAULT_CURVE_SAMPLES = 16
DEFAULT_MAX_SEGMENT_SAMPLES = 64
DEFAULT_ARC_STEP_DEGREES = 11.25
DEFAULT_MAX_POINTS = 20000

# Layer fallbacks
DEFAULT_FONT_COLOR = "#ffffff"
DEFAULT_FONT_SIZE = 16.0
DEFAULT_FONT_WEIGHT = 400
DEFAULT_STROKE_WIDTH = 0.0
DEFAULT_STROKE_COLOR = "#000000"
DEFAULT_STROKE_LINEJOIN = "round"
DEFAULT_SHAPE_FILL = "none"
DEFAULT_LINE_HEIGHT = 1.2

ClipMode = Literal["clip-path", "mask"]
CLIP_MODES: tuple[ClipMode, ...] = ("clip-path", "mask")


@dataclass(frozen=True)
class GeometryThresholds:
    """Shape archetype and centroid thresholds."""

    star_min_points: int = DEFAULT_STAR_MIN_POINTS
    star_max_inner_ratio: float = DEFAULT_STAR_MAX_INNER_RATIO
    triangle_angle_tolerance: float = DEFAULT_TRIANGLE_ANGLE_TOLERANCE
    arrow_min_aspect: float = DEFAULT_ARROW_MIN_ASPECT
    arrow_tip_max_ratio: float = DEFAULT_ARROW_TIP_MAX_RATIO
    arrow_tail_min_ratio: float = DEFAULT_ARROW_TAIL_MIN_RATIO
    arrow_end_band: float = DEFAULT_ARROW_END_BAND
    simplify_tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE
    min_centroid_offset_ratio: float = DEFAULT_MIN_CENTROID_OFFSET_RATIO
    generic_confidence: float = DEFAULT_GENERIC_CONFIDENCE
    degenerate_confidence: float = DEFAULT_DEGENERATE_CONFIDENCE


@dataclass(frozen=True)
class ViewBoxThresholds:
    """ViewBox centering and fit thresholds."""

    centered_tolerance: float = DEFAULT_CENTERED_TOLERANCE
    major_offset_ratio: float = DEFAULT_MAJOR_OFFSET_RATIO
    min_fill_ratio: float = DEFAULT_MIN_FILL_RATIO


@dataclass(frozen=True)
class SamplingLimits:
    """Caps that bound path flattening work."""

    curve_samples: int = DEFAULT_CURVE_SAMPLES
    max_segment_samples: int = DEFAULT_MAX_SEGMENT_SAMPLES
    arc_step_degrees: float = DEFAULT_ARC_STEP_DEGREES
    max_points: int = DEFAULT_MAX_POINTS


@dataclass(frozen=True)
class LayerDefaults:
    """Engine fallbacks used when neither override nor template sets a field."""

    font_color: str = DEFAULT_FONT_COLOR
    font_size: float = DEFAULT_FONT_SIZE
    font_weight: int = DEFAULT_FONT_WEIGHT
    font_family: str | None = None
    stroke_width: float = DEFAULT_STROKE_WIDTH
    stroke_color: str = DEFAULT_STROKE_COLOR
    stroke_linejoin: str = DEFAULT_STROKE_LINEJOIN
    shape_fill: str = DEFAULT_SHAPE_FILL
    line_height: float = DEFAULT_LINE_HEIGHT


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""

    geometry: GeometryThresholds = field(default_factory=GeometryThresholds)
    viewbox: ViewBoxThresholds = field(default_factory=ViewBoxThresholds)
    sampling: SamplingLimits = field(default_factory=SamplingLimits)
    defaults: LayerDefaults = field(default_factory=LayerDefaults)
    clip_mode: ClipMode = "clip-path"


DEFAULT_CONFIG = EngineConfig()


def _parse_section(section: str, data: Any, base: Any) -> Any:
    """Overlay a YAML mapping onto a frozen dataclass instance.

    Values are coerced to the type of the existing field value.

    Raises:
        ValueError: If the section is not a mapping, names an unknown key,
            or holds a value of the wrong type.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Config section '{section}' must be a mapping")

    known = {f.name for f in fields(base)}
    changes: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise ValueError(f"Unknown key in '{section}': {key}")

        current = getattr(base, key)
        try:
            if isinstance(current, bool):
                changes[key] = bool(value)
            elif isinstance(current, int):
                changes[key] = int(value)
            elif isinstance(current, float):
                changes[key] = float(value)
            elif value is None:
                changes[key] = None
            else:
                changes[key] = str(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value for '{section}.{key}': {value!r}")

    return replace(base, **changes)


def _validate_config(config: EngineConfig) -> None:
    """Reject values that would make the analyzers meaningless.

    Raises:
        ValueError: If a threshold is out of range.
    """
    geometry = config.geometry
    if geometry.star_min_points < 3:
        raise ValueError("geometry.star_min_points must be at least 3")
    if not 0 < geometry.star_max_inner_ratio < 1:
        raise ValueError("geometry.star_max_inner_ratio must be between 0 and 1")
    if geometry.arrow_min_aspect < 1:
        raise ValueError("geometry.arrow_min_aspect must be at least 1")
    for name in ("generic_confidence", "degenerate_confidence"):
        value = getattr(geometry, name)
        if not 0 <= value <= 1:
            raise ValueError(f"geometry.{name} must be between 0 and 1")

    viewbox = config.viewbox
    if viewbox.centered_tolerance < 0:
        raise ValueError("viewbox.centered_tolerance must not be negative")
    if viewbox.major_offset_ratio < viewbox.centered_tolerance:
        raise ValueError(
            "viewbox.major_offset_ratio must not be below viewbox.centered_tolerance"
        )

    sampling = config.sampling
    if sampling.curve_samples < 1 or sampling.max_segment_samples < 1:
        raise ValueError("sampling counts must be positive")
    if sampling.curve_samples > sampling.max_segment_samples:
        raise ValueError("sampling.curve_samples exceeds sampling.max_segment_samples")
    if sampling.arc_step_degrees <= 0:
        raise ValueError("sampling.arc_step_degrees must be positive")
    if sampling.max_points < 2:
        raise ValueError("sampling.max_points must be at least 2")

    if config.defaults.line_height <= 0:
        raise ValueError("defaults.line_height must be positive")


def parse_config_data(data: Any) -> EngineConfig:
    """Build an EngineConfig from already-loaded YAML data.

    Args:
        data: Mapping with optional sections geometry, viewbox, sampling,
            defaults and key clip_mode. None yields the defaults.

    Returns:
        Parsed and validated EngineConfig.

    Raises:
        ValueError: If the format is invalid.
    """
    if data is None:
        return DEFAULT_CONFIG
    if not isinstance(data, dict):
        raise ValueError("Config file must be a YAML dictionary")

    unknown = set(data) - {"geometry", "viewbox", "sampling", "defaults", "clip_mode"}
    if unknown:
        raise ValueError(f"Unknown config sections: {', '.join(sorted(unknown))}")

    config = DEFAULT_CONFIG
    if "geometry" in data:
        config = replace(
            config, geometry=_parse_section("geometry", data["geometry"], config.geometry)
        )
    if "viewbox" in data:
        config = replace(
            config, viewbox=_parse_section("viewbox", data["viewbox"], config.viewbox)
        )
    if "sampling" in data:
        config = replace(
            config, sampling=_parse_section("sampling", data["sampling"], config.sampling)
        )
    if "defaults" in data:
        config = replace(
            config, defaults=_parse_section("defaults", data["defaults"], config.defaults)
        )
    if "clip_mode" in data:
        clip_mode = data["clip_mode"]
        if clip_mode not in CLIP_MODES:
            raise ValueError(
                f"Invalid clip_mode: {clip_mode}. Must be 'clip-path' or 'mask'"
            )
        config = replace(config, clip_mode=clip_mode)

    _validate_config(config)
    return config


def parse_config_file(config_path: Path) -> EngineConfig:
    """Parse a YAML engine configuration file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        Parsed EngineConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the configuration format is invalid.
    """
    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return parse_config_data(data)

"""ViewBox parsing and content fit analysis.

Uploaded SVG files are frequently authored with content drifting away from
the viewBox center or overflowing it. The fit analysis reports by how much
and recommends a re-centered viewBox of the same size.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Literal
from xml.etree import ElementTree as ET

from .config import DEFAULT_CONFIG, EngineConfig, ViewBoxThresholds
from .errors import ViewBoxError
from .geometry import analyze_svg_content
from .utils import BoundingBox, Point, format_number, parse_svg_markup

logger = logging.getLogger(__name__)

Severity = Literal["none", "minor", "major"]

_SEPARATOR_RE = re.compile(r"[\s,]+")


@dataclass(frozen=True)
class ViewBox:
    """An SVG viewBox: origin and size in user units."""

    min_x: float
    min_y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        """Center point of the viewBox."""
        return Point(self.min_x + self.width / 2, self.min_y + self.height / 2)

    @property
    def bounds(self) -> BoundingBox:
        """The viewBox as a bounding box."""
        return BoundingBox(self.min_x, self.min_y, self.width, self.height)

    def __str__(self) -> str:
        return format_viewbox(self)


def parse_viewbox(value: str) -> ViewBox:
    """Parse a viewBox attribute.

    Args:
        value: Four numbers separated by whitespace and/or commas.

    Returns:
        Parsed ViewBox.

    Raises:
        ViewBoxError: If the value does not hold four finite numbers or the
            width or height is not positive.

    Example:
        >>> parse_viewbox("0 0 24 24")
        ViewBox(min_x=0.0, min_y=0.0, width=24.0, height=24.0)
    """
    if value is None:
        raise ViewBoxError("viewBox is missing")
    parts = [p for p in _SEPARATOR_RE.split(str(value).strip()) if p]
    if len(parts) != 4:
        raise ViewBoxError(f"viewBox needs 4 numbers, got {len(parts)}: {value!r}")

    try:
        min_x, min_y, width, height = (float(p) for p in parts)
    except ValueError:
        raise ViewBoxError(f"Invalid viewBox: {value!r}")

    if not all(math.isfinite(v) for v in (min_x, min_y, width, height)):
        raise ViewBoxError(f"Invalid viewBox: {value!r}")
    if width <= 0 or height <= 0:
        raise ViewBoxError(f"viewBox size must be positive: {value!r}")

    return ViewBox(min_x, min_y, width, height)


def format_viewbox(viewbox: ViewBox) -> str:
    """Format a ViewBox as an attribute value.

    Example:
        >>> format_viewbox(ViewBox(0, 0, 100, 50.5))
        '0 0 100 50.5'
    """
    return " ".join(
        format_number(v)
        for v in (viewbox.min_x, viewbox.min_y, viewbox.width, viewbox.height)
    )


def read_svg_viewbox(svg_content: str) -> ViewBox | None:
    """Read the root viewBox of an SVG markup string.

    Returns:
        ViewBox, or None when the markup or its viewBox cannot be read.
    """
    try:
        raw = parse_svg_markup(svg_content).get("viewBox")
        if raw is None:
            return None
        return parse_viewbox(raw)
    except (ET.ParseError, ValueError) as e:
        logger.debug("No usable viewBox in SVG content: %s", e)
        return None


@dataclass(frozen=True)
class ViewBoxFitAnalysis:
    """How well a viewBox frames its content."""

    current_viewbox: ViewBox | None
    recommended_viewbox: ViewBox | None
    offset: Point
    severity: Severity
    is_centered: bool
    is_properly_fitted: bool
    issues: tuple[str, ...] = field(default_factory=tuple)
    analyzable: bool = True

    @property
    def needs_adjustment(self) -> bool:
        """Check if the viewBox should be replaced by the recommendation."""
        return self.severity != "none"

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        current = self.current_viewbox
        recommended = self.recommended_viewbox
        return {
            "analyzable": self.analyzable,
            "current_viewbox": str(current) if current is not None else None,
            "recommended_viewbox": (
                str(recommended) if recommended is not None else None
            ),
            "offset": list(self.offset),
            "severity": self.severity,
            "is_centered": self.is_centered,
            "is_properly_fitted": self.is_properly_fitted,
            "issues": list(self.issues),
        }


def not_analyzable(
    viewbox: ViewBox | None = None, issue: str | None = None
) -> ViewBoxFitAnalysis:
    """Fit result for input that cannot be analyzed."""
    return ViewBoxFitAnalysis(
        current_viewbox=viewbox,
        recommended_viewbox=None,
        offset=Point(0.0, 0.0),
        severity="none",
        is_centered=False,
        is_properly_fitted=False,
        issues=(issue,) if issue else (),
        analyzable=False,
    )


def _clipped_sides(viewbox: ViewBox, box: BoundingBox) -> list[str]:
    epsilon = 1e-6 * max(viewbox.width, viewbox.height)
    bounds = viewbox.bounds
    sides = []
    if box.x < bounds.x - epsilon:
        sides.append("left")
    if box.y < bounds.y - epsilon:
        sides.append("top")
    if box.x_max > bounds.x_max + epsilon:
        sides.append("right")
    if box.y_max > bounds.y_max + epsilon:
        sides.append("bottom")
    return sides


def analyze_viewbox_fit(
    viewbox: ViewBox | str | None,
    bounding_box: BoundingBox | None,
    thresholds: ViewBoxThresholds | None = None,
) -> ViewBoxFitAnalysis:
    """Compare a viewBox with the bounding box of its content.

    Severity is major when the content center is offset by more than
    major_offset_ratio of the viewBox extent on either axis, or when content
    is clipped. It is minor when content is off-center or only excessively
    padded, and none otherwise.

    Args:
        viewbox: ViewBox or its attribute string. None means missing.
        bounding_box: Content bounds in viewBox coordinates.
        thresholds: Fit thresholds (default: engine defaults).

    Returns:
        ViewBoxFitAnalysis. A missing or malformed viewBox yields a
        not-analyzable result with severity "none".
    """
    if thresholds is None:
        thresholds = DEFAULT_CONFIG.viewbox

    if viewbox is None:
        return not_analyzable()
    if isinstance(viewbox, str):
        try:
            viewbox = parse_viewbox(viewbox)
        except ViewBoxError as e:
            logger.warning("Cannot analyze viewBox fit: %s", e)
            return not_analyzable(issue=str(e))
    if bounding_box is None:
        return not_analyzable(viewbox)

    center = viewbox.center
    offset = Point(
        bounding_box.center_x - center.x,
        bounding_box.center_y - center.y,
    )
    ratio_x = abs(offset.x) / viewbox.width
    ratio_y = abs(offset.y) / viewbox.height
    off_x = ratio_x > thresholds.centered_tolerance
    off_y = ratio_y > thresholds.centered_tolerance
    is_centered = not (off_x or off_y)

    clipped = _clipped_sides(viewbox, bounding_box)
    fill = max(
        bounding_box.width / viewbox.width,
        bounding_box.height / viewbox.height,
    )
    padded = fill < thresholds.min_fill_ratio
    is_properly_fitted = not clipped and not padded

    issues: list[str] = []
    if off_x:
        issues.append(
            f"content is {format_number(round(abs(offset.x), 2))} px "
            "off-center horizontally"
        )
    if off_y:
        issues.append(
            f"content is {format_number(round(abs(offset.y), 2))} px "
            "off-center vertically"
        )
    if clipped:
        issues.append(f"content is clipped by the viewBox ({', '.join(clipped)})")
    if padded:
        issues.append(
            f"viewBox is much larger than content (content fills {fill:.0%})"
        )

    if clipped or max(ratio_x, ratio_y) > thresholds.major_offset_ratio:
        severity: Severity = "major"
    elif not is_centered or padded:
        severity = "minor"
    else:
        severity = "none"

    recommended = ViewBox(
        bounding_box.center_x - viewbox.width / 2,
        bounding_box.center_y - viewbox.height / 2,
        viewbox.width,
        viewbox.height,
    )

    return ViewBoxFitAnalysis(
        current_viewbox=viewbox,
        recommended_viewbox=recommended,
        offset=offset,
        severity=severity,
        is_centered=is_centered,
        is_properly_fitted=is_properly_fitted,
        issues=tuple(issues),
    )


def analyze_svg_viewbox_fit(
    svg_content: str, config: EngineConfig | None = None
) -> ViewBoxFitAnalysis:
    """Analyze the viewBox fit of an SVG markup string.

    Args:
        svg_content: SVG markup.
        config: Engine configuration (default: DEFAULT_CONFIG).

    Returns:
        ViewBoxFitAnalysis; not analyzable when the markup, its viewBox or
        its geometry cannot be read.
    """
    if config is None:
        config = DEFAULT_CONFIG

    try:
        root = parse_svg_markup(svg_content)
    except (ET.ParseError, ValueError) as e:
        logger.warning("Cannot analyze viewBox fit: %s", e)
        return not_analyzable(issue="SVG content cannot be parsed")

    raw = root.get("viewBox")
    if raw is None:
        return not_analyzable()
    try:
        viewbox = parse_viewbox(raw)
    except ViewBoxError as e:
        logger.warning("Cannot analyze viewBox fit: %s", e)
        return not_analyzable(issue=str(e))

    geometry = analyze_svg_content(svg_content, config)
    if geometry.confidence == 0:
        return not_analyzable(viewbox, "content geometry cannot be measured")

    return analyze_viewbox_fit(viewbox, geometry.bounding_box, config.viewbox)


def format_fit_report(analysis: ViewBoxFitAnalysis) -> str:
    """Format a viewBox fit analysis as text.

    Args:
        analysis: Fit analysis.

    Returns:
        Formatted text.
    """
    lines: list[str] = []
    current = analysis.current_viewbox
    lines.append(f"ViewBox: {current if current is not None else '(none)'}")
    if not analysis.analyzable:
        lines.append("Fit: not analyzable")
    else:
        lines.append(f"Severity: {analysis.severity}")
        lines.append(f"Centered: {'yes' if analysis.is_centered else 'no'}")
        lines.append(
            f"Properly fitted: {'yes' if analysis.is_properly_fitted else 'no'}"
        )
        lines.append(
            f"Offset: ({analysis.offset.x:.2f}, {analysis.offset.y:.2f})"
        )
        if analysis.needs_adjustment and analysis.recommended_viewbox is not None:
            lines.append(f"Recommended viewBox: {analysis.recommended_viewbox}")

    for issue in analysis.issues:
        lines.append(f"  - {issue}")
    return "\n".join(lines)

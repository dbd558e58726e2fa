"""Visual centroid detection and shape classification for path geometry.

Asymmetric shapes such as stars, triangles and arrows look off-balance when
rotated or scaled around their bounding-box center. The analyzer finds the
area-weighted centroid, classifies the outline, and decides whether the
centroid is worth using as a transform origin.
"""

import logging
import math
from dataclasses import dataclass
from statistics import mean, pstdev
from typing import Literal
from xml.etree import ElementTree as ET

from .config import DEFAULT_CONFIG, EngineConfig, GeometryThresholds
from .path_data import FlattenedPath, parse_and_flatten
from .shapes import element_to_path
from .utils import BoundingBox, Point, iter_shape_elements, parse_svg_markup

logger = logging.getLogger(__name__)

ShapeType = Literal["star", "triangle", "arrow", "generic"]

# Relative area below which an outline is treated as having no interior
_DEGENERATE_AREA = 1e-9

# Confidence multiplier when flattening hit the point cap
_TRUNCATED_PENALTY = 0.5

# Cross-section samples along an arrow's main axis
_ARROW_SCAN_STEPS = 40


@dataclass(frozen=True)
class GeometryAnalysis:
    """Result of analyzing path geometry."""

    bounding_box_center: Point
    centroid_center: Point
    shape_type: ShapeType
    use_centroid: bool
    confidence: float
    bounding_box: BoundingBox
    vertex_count: int = 0

    @property
    def transform_origin(self) -> Point:
        """Preferred rotation/scale origin for this geometry."""
        if self.use_centroid:
            return self.centroid_center
        return self.bounding_box_center

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        box = self.bounding_box
        return {
            "shape_type": self.shape_type,
            "confidence": self.confidence,
            "use_centroid": self.use_centroid,
            "bounding_box": {
                "x": box.x,
                "y": box.y,
                "width": box.width,
                "height": box.height,
            },
            "bounding_box_center": list(self.bounding_box_center),
            "centroid_center": list(self.centroid_center),
            "vertex_count": self.vertex_count,
        }


def fallback_analysis(box: BoundingBox | None = None) -> GeometryAnalysis:
    """Analysis used when geometry could not be measured.

    Uses the bounding-box center for both centers with zero confidence.
    """
    if box is None:
        box = BoundingBox(0.0, 0.0, 0.0, 0.0)
    return GeometryAnalysis(
        bounding_box_center=box.center,
        centroid_center=box.center,
        shape_type="generic",
        use_centroid=False,
        confidence=0.0,
        bounding_box=box,
    )


def _ring(points: list[Point]) -> list[Point]:
    """Drop consecutive duplicates and the closing duplicate of a polygon."""
    ring: list[Point] = []
    for p in points:
        if not ring or p != ring[-1]:
            ring.append(p)
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()
    return ring


def signed_area(points: list[Point]) -> float:
    """Shoelace signed area of an implicitly closed polygon.

    Positive for clockwise winding in SVG's y-down coordinates.
    """
    n = len(points)
    total = 0.0
    for i in range(n):
        a = points[i]
        b = points[(i + 1) % n]
        total += a.x * b.y - b.x * a.y
    return total / 2


def _average(points: list[Point]) -> Point:
    return Point(mean(p.x for p in points), mean(p.y for p in points))


def _area_centroid(points: list[Point]) -> tuple[float, Point | None]:
    """Signed area and shoelace centroid, or None for a degenerate area."""
    n = len(points)
    if n < 3:
        return 0.0, None

    area = 0.0
    cx = 0.0
    cy = 0.0
    for i in range(n):
        a = points[i]
        b = points[(i + 1) % n]
        cross = a.x * b.y - b.x * a.y
        area += cross
        cx += (a.x + b.x) * cross
        cy += (a.y + b.y) * cross
    area /= 2

    box = BoundingBox.from_points(points)
    if abs(area) <= _DEGENERATE_AREA * max(1.0, box.width * box.height):
        return 0.0, None
    return area, Point(cx / (6 * area), cy / (6 * area))


def polygon_centroid(points: list[Point]) -> Point:
    """Area-weighted centroid of a polygon.

    Falls back to the vertex average when the polygon has no area.

    Args:
        points: Polygon vertices, implicitly closed.

    Returns:
        Centroid point.

    Raises:
        ValueError: If points is empty.

    Example:
        >>> polygon_centroid([Point(0, 0), Point(4, 0), Point(4, 2), Point(0, 2)])
        Point(x=2.0, y=1.0)
    """
    if not points:
        raise ValueError("Cannot compute the centroid of no points")
    ring = _ring(points) or list(points[:1])
    _, centroid = _area_centroid(ring)
    if centroid is None:
        return _average(ring)
    return centroid


def _combined_centroid(rings: list[list[Point]]) -> Point | None:
    """Area-weighted centroid over several subpaths.

    A subpath enclosed by a larger one of opposite winding is a hole and
    subtracts its area.
    """
    parts: list[tuple[float, Point, BoundingBox]] = []
    for ring in rings:
        area, centroid = _area_centroid(ring)
        if centroid is not None:
            parts.append((area, centroid, BoundingBox.from_points(ring)))

    total = 0.0
    sum_x = 0.0
    sum_y = 0.0
    for i, (area, centroid, box) in enumerate(parts):
        weight = abs(area)
        for j, (other_area, _, other_box) in enumerate(parts):
            if (
                j != i
                and abs(other_area) > abs(area)
                and other_area * area < 0
                and other_box.contains(box)
            ):
                weight = -weight
                break
        total += weight
        sum_x += weight * centroid.x
        sum_y += weight * centroid.y

    if total <= 0:
        return None
    return Point(sum_x / total, sum_y / total)


def _segment_distance(p: Point, a: Point, b: Point) -> float:
    """Distance from p to the segment a-b."""
    dx = b.x - a.x
    dy = b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return p.distance_to(a)
    t = ((p.x - a.x) * dx + (p.y - a.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return p.distance_to(Point(a.x + t * dx, a.y + t * dy))


def _simplify_open(points: list[Point], tolerance: float) -> list[Point]:
    """Ramer-Douglas-Peucker on an open polyline (iterative)."""
    n = len(points)
    if n < 3:
        return list(points)

    keep = [False] * n
    keep[0] = keep[-1] = True
    stack = [(0, n - 1)]
    while stack:
        start, end = stack.pop()
        index = -1
        max_distance = -1.0
        for i in range(start + 1, end):
            distance = _segment_distance(points[i], points[start], points[end])
            if distance > max_distance:
                index = i
                max_distance = distance
        if index >= 0 and max_distance > tolerance:
            keep[index] = True
            stack.append((start, index))
            stack.append((index, end))

    return [p for p, kept in zip(points, keep) if kept]


def simplify_polygon(points: list[Point], tolerance: float) -> list[Point]:
    """Simplify a closed polygon to its dominant vertices.

    Splits the ring at the vertex farthest from the first one, simplifies
    both halves with Ramer-Douglas-Peucker, then removes any remaining
    vertex (including the split anchor) that lies on the line between its
    neighbors within tolerance.

    Args:
        points: Polygon vertices, implicitly closed.
        tolerance: Maximum deviation in user units.

    Returns:
        Simplified vertices, never fewer than 3 when the input had 3.
    """
    ring = _ring(points)
    if len(ring) <= 3:
        return ring

    far = max(range(len(ring)), key=lambda i: ring[0].distance_to(ring[i]))
    first = _simplify_open(ring[: far + 1], tolerance)
    second = _simplify_open(ring[far:] + [ring[0]], tolerance)
    simplified = first[:-1] + second[:-1]

    changed = True
    while changed and len(simplified) > 3:
        changed = False
        for i in range(len(simplified)):
            prev = simplified[i - 1]
            nxt = simplified[(i + 1) % len(simplified)]
            if _segment_distance(simplified[i], prev, nxt) <= tolerance:
                del simplified[i]
                changed = True
                break

    return simplified


def _variation(values: list[float]) -> float:
    """Coefficient of variation."""
    avg = mean(values)
    if avg == 0:
        return 1.0
    return pstdev(values) / avg


def _star_score(polygon: list[Point], thresholds: GeometryThresholds) -> float | None:
    """Score alternating outer/inner radii around the centroid."""
    n = len(polygon)
    if n % 2 or n < 2 * thresholds.star_min_points:
        return None

    center = polygon_centroid(polygon)
    radii = [center.distance_to(p) for p in polygon]
    even = radii[0::2]
    odd = radii[1::2]
    outer, inner = (even, odd) if mean(even) >= mean(odd) else (odd, even)

    if min(outer) <= max(inner):
        return None
    if mean(inner) / mean(outer) > thresholds.star_max_inner_ratio:
        return None

    spread = (_variation(outer) + _variation(inner)) / 2
    return max(0.0, min(1.0, 1.0 - spread))


def _interior_angle(prev: Point, vertex: Point, nxt: Point) -> float | None:
    ax = prev.x - vertex.x
    ay = prev.y - vertex.y
    bx = nxt.x - vertex.x
    by = nxt.y - vertex.y
    norm = math.hypot(ax, ay) * math.hypot(bx, by)
    if norm == 0:
        return None
    cosine = max(-1.0, min(1.0, (ax * bx + ay * by) / norm))
    return math.degrees(math.acos(cosine))


def _triangle_score(
    polygon: list[Point], thresholds: GeometryThresholds
) -> float | None:
    """Score how close a three-vertex outline is to equilateral."""
    if len(polygon) != 3:
        return None

    deviations = []
    for i in range(3):
        angle = _interior_angle(polygon[i - 1], polygon[i], polygon[(i + 1) % 3])
        if angle is None:
            return None
        deviations.append(abs(angle - 60.0))

    worst = max(deviations)
    if worst > thresholds.triangle_angle_tolerance:
        return None
    return 1.0 - worst / (2 * thresholds.triangle_angle_tolerance)


def _cross_width(points: list[Point], u: float) -> float:
    """Extent of the polygon's cross-section at x == u."""
    hits: list[float] = []
    n = len(points)
    for i in range(n):
        a = points[i]
        b = points[(i + 1) % n]
        if a.x == b.x:
            if a.x == u:
                hits.extend((a.y, b.y))
            continue
        if (a.x - u) * (b.x - u) <= 0:
            t = (u - a.x) / (b.x - a.x)
            hits.append(a.y + t * (b.y - a.y))
    if not hits:
        return 0.0
    return max(hits) - min(hits)


def _arrow_score(polygon: list[Point], thresholds: GeometryThresholds) -> float | None:
    """Score an elongated outline with one pointed end and a wide tail."""
    if len(polygon) < 5:
        return None

    box = BoundingBox.from_points(polygon)
    if box.width >= box.height:
        points = polygon
        start = box.x
        length = box.width
        breadth = box.height
    else:
        # Swap axes so the main axis is always x
        points = [Point(p.y, p.x) for p in polygon]
        start = box.y
        length = box.height
        breadth = box.width
    if breadth <= 0:
        return None

    aspect = length / breadth
    if aspect < thresholds.arrow_min_aspect:
        return None

    positions = [start + length * k / _ARROW_SCAN_STEPS for k in range(1, _ARROW_SCAN_STEPS)]
    positions.extend(p.x for p in points if start < p.x < start + length)
    widest = max(_cross_width(points, u) for u in positions)
    if widest <= 0:
        return None

    band = thresholds.arrow_end_band * length
    near = _cross_width(points, start + band) / widest
    far = _cross_width(points, start + length - band) / widest
    tip, tail = sorted((near, far))
    if tip > thresholds.arrow_tip_max_ratio or tail < thresholds.arrow_tail_min_ratio:
        return None

    sharpness = 1.0 - tip / thresholds.arrow_tip_max_ratio
    if thresholds.arrow_min_aspect > 1:
        elongation = min(1.0, (aspect - 1) / (2 * (thresholds.arrow_min_aspect - 1)))
    else:
        elongation = 1.0
    return 0.5 + 0.25 * (sharpness + elongation)


def classify_shape(
    polygon: list[Point], thresholds: GeometryThresholds | None = None
) -> tuple[ShapeType, float]:
    """Classify a simplified outline into a shape archetype.

    Candidates are tried in order star, triangle, arrow; the first match
    wins.

    Args:
        polygon: Simplified polygon vertices.
        thresholds: Classification thresholds (default: engine defaults).

    Returns:
        Tuple of (shape_type, confidence).
    """
    if thresholds is None:
        thresholds = DEFAULT_CONFIG.geometry

    for shape_type, scorer in (
        ("star", _star_score),
        ("triangle", _triangle_score),
        ("arrow", _arrow_score),
    ):
        score = scorer(polygon, thresholds)
        if score is not None:
            return shape_type, score
    return "generic", thresholds.generic_confidence


def analyze_flattened(
    flat: FlattenedPath, thresholds: GeometryThresholds | None = None
) -> GeometryAnalysis:
    """Analyze already flattened geometry.

    Args:
        flat: Flattened subpaths and curve extrema.
        thresholds: Classification thresholds (default: engine defaults).

    Returns:
        GeometryAnalysis.
    """
    if thresholds is None:
        thresholds = DEFAULT_CONFIG.geometry

    points = flat.points
    if not points:
        return fallback_analysis()

    box = BoundingBox.from_points(points + flat.extrema)
    rings = [ring for ring in (_ring(s) for s in flat.subpaths) if len(ring) >= 2]
    penalty = _TRUNCATED_PENALTY if flat.truncated else 1.0

    centroid = _combined_centroid(rings)
    if centroid is None:
        # Lines and zero-area outlines
        return GeometryAnalysis(
            bounding_box_center=box.center,
            centroid_center=_average(points),
            shape_type="generic",
            use_centroid=False,
            confidence=thresholds.degenerate_confidence * penalty,
            bounding_box=box,
            vertex_count=len(_ring(points)),
        )

    dominant = max(rings, key=lambda r: abs(signed_area(r)))
    tolerance = thresholds.simplify_tolerance * math.hypot(box.width, box.height)
    polygon = simplify_polygon(dominant, tolerance)
    shape_type, confidence = classify_shape(polygon, thresholds)

    offset = box.center.distance_to(centroid)
    use_centroid = (
        shape_type != "generic"
        and offset > thresholds.min_centroid_offset_ratio * box.max_extent
    )

    return GeometryAnalysis(
        bounding_box_center=box.center,
        centroid_center=centroid,
        shape_type=shape_type,
        use_centroid=use_centroid,
        confidence=confidence * penalty,
        bounding_box=box,
        vertex_count=len(polygon),
    )


def _partial_box(paths: list[str], config: EngineConfig) -> BoundingBox | None:
    """Bounding box of whatever parsed before the first error."""
    points: list[Point] = []
    for d in paths:
        try:
            flat = parse_and_flatten(d, config.sampling, strict=False)
        except (ValueError, IndexError):
            continue
        points.extend(flat.points)
        points.extend(flat.extrema)
    if not points:
        return None
    return BoundingBox.from_points(points)


def analyze_paths(
    paths: list[str], config: EngineConfig | None = None
) -> GeometryAnalysis:
    """Analyze several paths as one combined shape.

    Paths that fail to parse are skipped and scale down the confidence.
    When none parse, the result is the bounding-box fallback with zero
    confidence.

    Args:
        paths: Path data strings.
        config: Engine configuration (default: DEFAULT_CONFIG).

    Returns:
        GeometryAnalysis. Never raises for malformed path data.
    """
    if config is None:
        config = DEFAULT_CONFIG

    combined = FlattenedPath()
    failed: list[str] = []
    for d in paths:
        try:
            combined.extend(parse_and_flatten(d, config.sampling))
        except (ValueError, IndexError) as e:
            logger.warning("Skipping unparsable path data: %s", e)
            failed.append(d)

    if not combined.subpaths:
        return fallback_analysis(_partial_box(failed, config))

    analysis = analyze_flattened(combined, config.geometry)
    if failed:
        parsed_share = (len(paths) - len(failed)) / len(paths)
        return GeometryAnalysis(
            bounding_box_center=analysis.bounding_box_center,
            centroid_center=analysis.centroid_center,
            shape_type=analysis.shape_type,
            use_centroid=analysis.use_centroid,
            confidence=analysis.confidence * parsed_share,
            bounding_box=analysis.bounding_box,
            vertex_count=analysis.vertex_count,
        )
    return analysis


def analyze_path(d: str, config: EngineConfig | None = None) -> GeometryAnalysis:
    """Analyze a single path.

    Args:
        d: Path data string.
        config: Engine configuration (default: DEFAULT_CONFIG).

    Returns:
        GeometryAnalysis. Malformed data degrades to the bounding-box
        center with confidence 0.

    Example:
        >>> analyze_path("M10,50 A40,40 0 1,0 90,50 A40,40 0 1,0 10,50 Z").shape_type
        'generic'
    """
    return analyze_paths([d], config)


def analyze_svg_content(
    svg_content: str, config: EngineConfig | None = None
) -> GeometryAnalysis:
    """Analyze every painted shape in an SVG markup string.

    Element transforms are not applied; shapes are measured in the
    coordinates they are written in.

    Args:
        svg_content: SVG markup.
        config: Engine configuration (default: DEFAULT_CONFIG).

    Returns:
        GeometryAnalysis, or the zero-confidence fallback when the markup
        cannot be parsed or holds no measurable shapes.
    """
    try:
        root = parse_svg_markup(svg_content)
    except (ET.ParseError, ValueError) as e:
        logger.warning("Cannot analyze SVG content: %s", e)
        return fallback_analysis()

    paths = []
    for element in iter_shape_elements(root):
        d = element_to_path(element)
        if d is None:
            logger.debug("Skipping unreadable <%s> element", element.tag)
            continue
        paths.append(d)

    if not paths:
        logger.debug("SVG content has no measurable shapes")
        return fallback_analysis()

    return analyze_paths(paths, config)


def format_geometry_report(analysis: GeometryAnalysis) -> str:
    """Format a geometry analysis as text.

    Args:
        analysis: Geometry analysis.

    Returns:
        Formatted text.
    """
    box = analysis.bounding_box
    lines: list[str] = []
    lines.append(f"Shape type: {analysis.shape_type}")
    lines.append(f"Confidence: {analysis.confidence:.2f}")
    lines.append(
        f"Bounding box: x={box.x:.2f}, y={box.y:.2f}, "
        f"width={box.width:.2f}, height={box.height:.2f}"
    )
    lines.append(
        f"Bounding box center: ({analysis.bounding_box_center.x:.2f}, "
        f"{analysis.bounding_box_center.y:.2f})"
    )
    lines.append(
        f"Centroid: ({analysis.centroid_center.x:.2f}, "
        f"{analysis.centroid_center.y:.2f})"
    )
    lines.append(f"Vertices: {analysis.vertex_count}")
    origin = "centroid" if analysis.use_centroid else "bounding box center"
    lines.append(f"Transform origin: {origin}")
    return "\n".join(lines)

"""SVG path data parsing and flattening.

The parser normalizes every path command to absolute M, L, C, Q, A and Z
segments. The flattener turns segments into polylines for centroid and
bounds work, with sample counts capped by SamplingLimits.
"""

import logging
import math
import re
from dataclasses import dataclass, field

from .config import DEFAULT_CONFIG, SamplingLimits
from .errors import PathParseError
from .utils import Point

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"[MmLlHhVvCcSsQqTtAaZz]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
)

# Parameters consumed per command repetition
PARAM_COUNTS = {
    "M": 2,
    "L": 2,
    "H": 1,
    "V": 1,
    "C": 6,
    "S": 4,
    "Q": 4,
    "T": 2,
    "A": 7,
    "Z": 0,
}


@dataclass(frozen=True)
class ArcParams:
    """Elliptical arc parameters as written in path data."""

    rx: float
    ry: float
    rotation: float
    large_arc: bool
    sweep: bool


@dataclass(frozen=True)
class PathSegment:
    """One absolute path segment.

    command is one of M, L, C, Q, A, Z. For C the controls hold two points,
    for Q one point; A carries ArcParams.
    """

    command: str
    start: Point
    end: Point
    controls: tuple[Point, ...] = ()
    arc: ArcParams | None = None


@dataclass
class FlattenedPath:
    """Polyline approximation of a path."""

    subpaths: list[list[Point]] = field(default_factory=list)
    closed: list[bool] = field(default_factory=list)
    extrema: list[Point] = field(default_factory=list)
    truncated: bool = False

    @property
    def points(self) -> list[Point]:
        """All flattened points in order."""
        return [p for subpath in self.subpaths for p in subpath]

    @property
    def point_count(self) -> int:
        return sum(len(subpath) for subpath in self.subpaths)

    def extend(self, other: "FlattenedPath") -> None:
        """Append another flattened path's subpaths."""
        self.subpaths.extend(other.subpaths)
        self.closed.extend(other.closed)
        self.extrema.extend(other.extrema)
        self.truncated = self.truncated or other.truncated


def _is_command(token: str) -> bool:
    return token[0].isalpha() and token[0] not in "eE"


def _read_flag(token: str) -> bool:
    if token not in ("0", "1"):
        raise PathParseError(f"Invalid arc flag: {token}")
    return token == "1"


def _split_arc_flags(tokens: list[str], start: int) -> None:
    """Separate arc flags packed against the next number.

    Flags are single characters, so "1090" at the large-arc position reads
    as large-arc 1, sweep 0, x 90.
    """
    for j in (start + 3, start + 4):
        if j >= len(tokens):
            return
        token = tokens[j]
        if len(token) > 1 and token[0] in "01" and token[1] not in "eE":
            tokens[j:j + 1] = [token[0], token[1:]]


def parse_path_data(d: str, strict: bool = True) -> list[PathSegment]:
    """Parse path data into absolute segments.

    Supports M, L, H, V, C, S, Q, T, A and Z, absolute and relative, with
    implicit command repetition. H/V become L, S becomes C and T becomes Q.

    Args:
        d: Path data string.
        strict: If False, stop at the first error and return the segments
            parsed so far instead of raising.

    Returns:
        List of PathSegment.

    Raises:
        PathParseError: If strict and the path data is malformed.
    """
    segments: list[PathSegment] = []
    try:
        _parse_into(d, segments)
    except PathParseError:
        if strict:
            raise
        logger.debug("Partial path parse kept %d segments", len(segments))
    return segments


def _parse_into(d: str, segments: list[PathSegment]) -> None:
    if not d or not d.strip():
        raise PathParseError("Path data is empty")

    leftover = _TOKEN_RE.sub(" ", d).replace(",", " ").strip()
    if leftover:
        raise PathParseError(f"Unexpected characters in path data: {leftover[:20]!r}")

    tokens = _TOKEN_RE.findall(d)
    if tokens[0] not in ("M", "m"):
        raise PathParseError("Path data must start with a moveto command")

    current = Point(0.0, 0.0)
    subpath_start = current
    last_cubic_control: Point | None = None
    last_quad_control: Point | None = None
    command: str | None = None

    i = 0
    while i < len(tokens):
        token = tokens[i]
        if _is_command(token):
            command = token
            i += 1
            if command in ("Z", "z"):
                segments.append(PathSegment("Z", current, subpath_start))
                current = subpath_start
                last_cubic_control = None
                last_quad_control = None
                continue
        elif command is None or command in ("Z", "z"):
            raise PathParseError(f"Number without command: {token}")

        upper = command.upper()
        relative = command.islower()
        count = PARAM_COUNTS[upper]
        if upper == "A":
            _split_arc_flags(tokens, i)
        raw = tokens[i:i + count]
        if len(raw) < count or any(_is_command(t) for t in raw):
            raise PathParseError(f"Command {command} expects {count} parameters")
        i += count

        if upper == "A":
            large_arc = _read_flag(raw[3])
            sweep = _read_flag(raw[4])
        values = [float(t) for t in raw]

        if any(not math.isfinite(v) for v in values):
            raise PathParseError(f"Non-finite value in command {command}")

        dx = current.x if relative else 0.0
        dy = current.y if relative else 0.0
        next_cubic: Point | None = None
        next_quad: Point | None = None

        if upper == "M":
            end = Point(values[0] + dx, values[1] + dy)
            segments.append(PathSegment("M", current, end))
            subpath_start = end
            # Extra coordinate pairs after a moveto are implicit linetos
            command = "l" if relative else "L"

        elif upper == "L":
            end = Point(values[0] + dx, values[1] + dy)
            segments.append(PathSegment("L", current, end))

        elif upper == "H":
            end = Point(values[0] + dx, current.y)
            segments.append(PathSegment("L", current, end))

        elif upper == "V":
            end = Point(current.x, values[0] + dy)
            segments.append(PathSegment("L", current, end))

        elif upper == "C":
            c1 = Point(values[0] + dx, values[1] + dy)
            c2 = Point(values[2] + dx, values[3] + dy)
            end = Point(values[4] + dx, values[5] + dy)
            segments.append(PathSegment("C", current, end, (c1, c2)))
            next_cubic = c2

        elif upper == "S":
            if last_cubic_control is not None:
                c1 = Point(2 * current.x - last_cubic_control.x,
                           2 * current.y - last_cubic_control.y)
            else:
                c1 = current
            c2 = Point(values[0] + dx, values[1] + dy)
            end = Point(values[2] + dx, values[3] + dy)
            segments.append(PathSegment("C", current, end, (c1, c2)))
            next_cubic = c2

        elif upper == "Q":
            c = Point(values[0] + dx, values[1] + dy)
            end = Point(values[2] + dx, values[3] + dy)
            segments.append(PathSegment("Q", current, end, (c,)))
            next_quad = c

        elif upper == "T":
            if last_quad_control is not None:
                c = Point(2 * current.x - last_quad_control.x,
                          2 * current.y - last_quad_control.y)
            else:
                c = current
            end = Point(values[0] + dx, values[1] + dy)
            segments.append(PathSegment("Q", current, end, (c,)))
            next_quad = c

        else:  # A
            end = Point(values[5] + dx, values[6] + dy)
            arc = ArcParams(
                rx=values[0],
                ry=values[1],
                rotation=values[2],
                large_arc=large_arc,
                sweep=sweep,
            )
            segments.append(PathSegment("A", current, end, arc=arc))

        current = end
        last_cubic_control = next_cubic
        last_quad_control = next_quad


def cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    """Evaluate a cubic Bézier at t."""
    mt = 1 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return Point(
        a * p0.x + b * p1.x + c * p2.x + d * p3.x,
        a * p0.y + b * p1.y + c * p2.y + d * p3.y,
    )


def quadratic_point(p0: Point, p1: Point, p2: Point, t: float) -> Point:
    """Evaluate a quadratic Bézier at t."""
    mt = 1 - t
    return Point(
        mt * mt * p0.x + 2 * mt * t * p1.x + t * t * p2.x,
        mt * mt * p0.y + 2 * mt * t * p1.y + t * t * p2.y,
    )


def _quadratic_roots(a: float, b: float, c: float) -> list[float]:
    """Real roots of a*t^2 + b*t + c inside the open interval (0, 1)."""
    if abs(a) < 1e-12:
        if abs(b) < 1e-12:
            return []
        roots = [-c / b]
    else:
        disc = b * b - 4 * a * c
        if disc < 0:
            return []
        sqrt_disc = math.sqrt(disc)
        roots = [(-b + sqrt_disc) / (2 * a), (-b - sqrt_disc) / (2 * a)]
    return [t for t in roots if 0 < t < 1]


def cubic_extrema(p0: Point, p1: Point, p2: Point, p3: Point) -> list[Point]:
    """Points where a cubic Bézier reaches an axis-aligned extreme."""
    result: list[Point] = []
    for axis in (0, 1):
        v0, v1, v2, v3 = p0[axis], p1[axis], p2[axis], p3[axis]
        a = 3 * (-v0 + 3 * v1 - 3 * v2 + v3)
        b = 6 * (v0 - 2 * v1 + v2)
        c = 3 * (v1 - v0)
        for t in _quadratic_roots(a, b, c):
            result.append(cubic_point(p0, p1, p2, p3, t))
    return result


def quadratic_extrema(p0: Point, p1: Point, p2: Point) -> list[Point]:
    """Points where a quadratic Bézier reaches an axis-aligned extreme."""
    result: list[Point] = []
    for axis in (0, 1):
        denom = p0[axis] - 2 * p1[axis] + p2[axis]
        if abs(denom) < 1e-12:
            continue
        t = (p0[axis] - p1[axis]) / denom
        if 0 < t < 1:
            result.append(quadratic_point(p0, p1, p2, t))
    return result


def _vector_angle(ux: float, uy: float, vx: float, vy: float) -> float:
    return math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)


def arc_points(
    start: Point, end: Point, arc: ArcParams, limits: SamplingLimits
) -> list[Point]:
    """Flatten an elliptical arc using the endpoint-to-center conversion.

    Returns the sampled points after start, ending exactly at end. Arcs with
    a zero radius degrade to a straight line.
    """
    if start == end:
        return []
    rx = abs(arc.rx)
    ry = abs(arc.ry)
    if rx == 0 or ry == 0:
        return [end]

    phi = math.radians(arc.rotation % 360)
    cos_phi = math.cos(phi)
    sin_phi = math.sin(phi)

    half_dx = (start.x - end.x) / 2
    half_dy = (start.y - end.y) / 2
    x1p = cos_phi * half_dx + sin_phi * half_dy
    y1p = -sin_phi * half_dx + cos_phi * half_dy

    # Scale radii up when they cannot span the endpoints
    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1:
        scale = math.sqrt(lam)
        rx *= scale
        ry *= scale

    num = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
    den = rx * rx * y1p * y1p + ry * ry * x1p * x1p
    coef = math.sqrt(max(0.0, num / den)) if den > 0 else 0.0
    if arc.large_arc == arc.sweep:
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx

    cx = cos_phi * cxp - sin_phi * cyp + (start.x + end.x) / 2
    cy = sin_phi * cxp + cos_phi * cyp + (start.y + end.y) / 2

    ux = (x1p - cxp) / rx
    uy = (y1p - cyp) / ry
    vx = (-x1p - cxp) / rx
    vy = (-y1p - cyp) / ry
    theta1 = math.atan2(uy, ux)
    delta = _vector_angle(ux, uy, vx, vy)
    if not arc.sweep and delta > 0:
        delta -= 2 * math.pi
    elif arc.sweep and delta < 0:
        delta += 2 * math.pi

    steps = math.ceil(abs(math.degrees(delta)) / limits.arc_step_degrees)
    steps = max(1, min(steps, limits.max_segment_samples))

    points: list[Point] = []
    for k in range(1, steps):
        theta = theta1 + delta * k / steps
        cos_t = math.cos(theta)
        sin_t = math.sin(theta)
        points.append(
            Point(
                cx + rx * cos_phi * cos_t - ry * sin_phi * sin_t,
                cy + rx * sin_phi * cos_t + ry * cos_phi * sin_t,
            )
        )
    points.append(end)
    return points


def flatten_path(
    segments: list[PathSegment], limits: SamplingLimits | None = None
) -> FlattenedPath:
    """Convert parsed segments into polylines.

    Single-point subpaths (a bare moveto) paint nothing and are dropped.
    Flattening stops once limits.max_points is reached and the result is
    marked truncated.

    Args:
        segments: Output of parse_path_data.
        limits: Sampling caps (default: engine defaults).

    Returns:
        FlattenedPath with one polyline per subpath.
    """
    if limits is None:
        limits = DEFAULT_CONFIG.sampling

    result = FlattenedPath()
    samples = min(limits.curve_samples, limits.max_segment_samples)
    current: list[Point] = []
    closed = False
    total = 0

    def finish() -> None:
        if len(current) > 1:
            result.subpaths.append(current)
            result.closed.append(closed)

    for segment in segments:
        if segment.command == "M":
            finish()
            current = [segment.end]
            closed = False
            total += 1
            continue

        if not current or closed:
            # Drawing after closepath continues from the subpath start
            finish()
            current = [segment.start]
            closed = False
            total += 1

        if segment.command in ("L", "Z"):
            new_points = [segment.end]
            if segment.command == "Z":
                closed = True
                if segment.start == segment.end:
                    new_points = []
        elif segment.command == "C":
            c1, c2 = segment.controls
            new_points = [
                cubic_point(segment.start, c1, c2, segment.end, k / samples)
                for k in range(1, samples + 1)
            ]
            result.extrema.extend(cubic_extrema(segment.start, c1, c2, segment.end))
        elif segment.command == "Q":
            (c,) = segment.controls
            new_points = [
                quadratic_point(segment.start, c, segment.end, k / samples)
                for k in range(1, samples + 1)
            ]
            result.extrema.extend(quadratic_extrema(segment.start, c, segment.end))
        else:  # A
            new_points = arc_points(segment.start, segment.end, segment.arc, limits)

        room = limits.max_points - total
        if len(new_points) > room:
            current.extend(new_points[:max(room, 0)])
            result.truncated = True
            logger.debug("Path flattening stopped at %d points", limits.max_points)
            break
        current.extend(new_points)
        total += len(new_points)

    finish()
    return result


def parse_and_flatten(
    d: str, limits: SamplingLimits | None = None, strict: bool = True
) -> FlattenedPath:
    """Parse path data and flatten it in one step.

    Raises:
        PathParseError: If strict and the path data is malformed.
    """
    return flatten_path(parse_path_data(d, strict=strict), limits)

"""Conversion of basic SVG shapes to path data.

Rects, circles, ellipses, polygons, polylines and lines are expressed as
path data so that geometry analysis and clipping work on a single format.
"""

import re
from xml.etree import ElementTree as ET

from .utils import Point, format_number, get_local_name, parse_float

_POINTS_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def _pair(x: float, y: float) -> str:
    return f"{format_number(x)} {format_number(y)}"


def rect_to_path(
    x: float,
    y: float,
    width: float,
    height: float,
    rx: float | None = None,
    ry: float | None = None,
) -> str:
    """Convert a rectangle to path data.

    Corner radii follow SVG rect rules: a missing radius takes the other
    one's value, and radii are clamped to half the side length.

    Args:
        x: Left edge.
        y: Top edge.
        width: Rectangle width.
        height: Rectangle height.
        rx: Horizontal corner radius.
        ry: Vertical corner radius.

    Returns:
        Closed path data.

    Raises:
        ValueError: If width or height is negative.
    """
    if width < 0 or height < 0:
        raise ValueError(f"Negative rect size: {width}x{height}")

    if rx is None and ry is None:
        rx = ry = 0.0
    elif rx is None:
        rx = ry
    elif ry is None:
        ry = rx
    rx = min(abs(rx), width / 2)
    ry = min(abs(ry), height / 2)

    right = x + width
    bottom = y + height

    if rx == 0 or ry == 0:
        return (
            f"M{_pair(x, y)} L{_pair(right, y)} L{_pair(right, bottom)} "
            f"L{_pair(x, bottom)} Z"
        )

    arc = f"A{_pair(rx, ry)} 0 0 1"
    return (
        f"M{_pair(x + rx, y)} L{_pair(right - rx, y)} "
        f"{arc} {_pair(right, y + ry)} L{_pair(right, bottom - ry)} "
        f"{arc} {_pair(right - rx, bottom)} L{_pair(x + rx, bottom)} "
        f"{arc} {_pair(x, bottom - ry)} L{_pair(x, y + ry)} "
        f"{arc} {_pair(x + rx, y)} Z"
    )


def ellipse_to_path(cx: float, cy: float, rx: float, ry: float) -> str:
    """Convert an ellipse to two half-ellipse arcs.

    Raises:
        ValueError: If a radius is negative.
    """
    if rx < 0 or ry < 0:
        raise ValueError(f"Negative ellipse radius: {rx}, {ry}")
    radii = _pair(rx, ry)
    return (
        f"M{_pair(cx - rx, cy)} "
        f"A{radii} 0 1 0 {_pair(cx + rx, cy)} "
        f"A{radii} 0 1 0 {_pair(cx - rx, cy)} Z"
    )


def circle_to_path(cx: float, cy: float, r: float) -> str:
    """Convert a circle to path data.

    Example:
        >>> circle_to_path(50, 50, 40)
        'M10 50 A40 40 0 1 0 90 50 A40 40 0 1 0 10 50 Z'
    """
    return ellipse_to_path(cx, cy, r, r)


def parse_points(points: str) -> list[Point]:
    """Parse a polygon/polyline points attribute.

    Raises:
        ValueError: If the attribute holds an odd number of coordinates.
    """
    values = [float(v) for v in _POINTS_RE.findall(points or "")]
    if len(values) % 2:
        raise ValueError(f"Odd number of coordinates in points: {points!r}")
    return [Point(values[i], values[i + 1]) for i in range(0, len(values), 2)]


def polygon_to_path(points: list[Point], closed: bool = True) -> str:
    """Convert a point list to path data.

    Raises:
        ValueError: If fewer than two points are given.
    """
    if len(points) < 2:
        raise ValueError("A polygon needs at least two points")
    parts = [f"M{_pair(*points[0])}"]
    parts.extend(f"L{_pair(*p)}" for p in points[1:])
    if closed:
        parts.append("Z")
    return " ".join(parts)


def line_to_path(x1: float, y1: float, x2: float, y2: float) -> str:
    """Convert a line segment to path data."""
    return f"M{_pair(x1, y1)} L{_pair(x2, y2)}"


def element_to_path(element: ET.Element) -> str | None:
    """Convert a shape element to path data.

    Args:
        element: A namespace-free SVG shape element.

    Returns:
        Path data, or None if the element is not a supported shape or its
        attributes cannot be read.
    """
    name = get_local_name(element.tag)
    get = element.get

    try:
        if name == "path":
            d = get("d", "").strip()
            return d or None
        if name == "rect":
            rx = get("rx")
            ry = get("ry")
            return rect_to_path(
                parse_float(get("x")),
                parse_float(get("y")),
                parse_float(get("width")),
                parse_float(get("height")),
                parse_float(rx) if rx is not None else None,
                parse_float(ry) if ry is not None else None,
            )
        if name == "circle":
            return circle_to_path(
                parse_float(get("cx")), parse_float(get("cy")), parse_float(get("r"))
            )
        if name == "ellipse":
            return ellipse_to_path(
                parse_float(get("cx")),
                parse_float(get("cy")),
                parse_float(get("rx")),
                parse_float(get("ry")),
            )
        if name in ("polygon", "polyline"):
            return polygon_to_path(parse_points(get("points", "")), name == "polygon")
        if name == "line":
            return line_to_path(
                parse_float(get("x1")),
                parse_float(get("y1")),
                parse_float(get("x2")),
                parse_float(get("y2")),
            )
    except (ValueError, TypeError):
        return None

    return None

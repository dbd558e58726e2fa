"""Shared SVG helpers: namespaces, markup parsing, number formatting."""

import math
import re
from dataclasses import dataclass
from typing import Iterator, NamedTuple
from xml.etree import ElementTree as ET

# SVG namespace mappings
SVG_NAMESPACES = {
    "svg": "http://www.w3.org/2000/svg",
    "xlink": "http://www.w3.org/1999/xlink",
}

# Elements whose outline contributes to visual geometry
SHAPE_ELEMENTS = frozenset(
    [
        "path",
        "polygon",
        "polyline",
        "rect",
        "circle",
        "ellipse",
        "line",
    ]
)

# Containers whose children are never painted directly
NON_RENDERED_CONTAINERS = frozenset(
    ["defs", "clipPath", "mask", "symbol", "marker", "pattern"]
)

# Decimal places kept when writing numbers into markup
NUMBER_PRECISION = 6

_XML_DECLARATION_RE = re.compile(r"<\?xml[^?]*\?>\s*", re.IGNORECASE)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>\s*", re.IGNORECASE)
_LEADING_COMMENT_RE = re.compile(r"^\s*<!--.*?-->\s*", re.DOTALL)


class Point(NamedTuple):
    """A 2D point in user space."""

    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        """X coordinate of the center."""
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        """Y coordinate of the center."""
        return self.y + self.height / 2

    @property
    def center(self) -> Point:
        """Center point (x, y)."""
        return Point(self.center_x, self.center_y)

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.height

    @property
    def max_extent(self) -> float:
        """Larger of width and height."""
        return max(self.width, self.height)

    def contains(self, other: "BoundingBox", tolerance: float = 1e-9) -> bool:
        """Check whether another box lies entirely inside this one."""
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.x_max <= self.x_max + tolerance
            and other.y_max <= self.y_max + tolerance
        )

    @classmethod
    def from_points(cls, points: "list[Point]") -> "BoundingBox":
        """Build the tightest box around a non-empty list of points.

        Raises:
            ValueError: If points is empty.
        """
        if not points:
            raise ValueError("Cannot build a bounding box from no points")
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        x_min = min(xs)
        y_min = min(ys)
        return cls(x_min, y_min, max(xs) - x_min, max(ys) - y_min)


def register_namespaces() -> None:
    """Register SVG namespaces to preserve prefixes when writing."""
    for prefix, uri in SVG_NAMESPACES.items():
        if prefix != "svg":
            ET.register_namespace(prefix, uri)


def get_local_name(tag: str) -> str:
    """Extract local name from a namespaced tag.

    Args:
        tag: Full tag name, possibly with namespace.

    Returns:
        Local name without namespace prefix.

    Example:
        >>> get_local_name("{http://www.w3.org/2000/svg}rect")
        'rect'
    """
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def sanitize_svg_content(svg_content: str) -> str:
    """Remove the XML declaration, DOCTYPE and leading comments.

    Uploaded SVG files often carry these, but they are invalid once the
    markup is embedded inside another document.
    """
    if not svg_content:
        return ""
    sanitized = _XML_DECLARATION_RE.sub("", svg_content)
    sanitized = _DOCTYPE_RE.sub("", sanitized)
    sanitized = _LEADING_COMMENT_RE.sub("", sanitized)
    return sanitized.strip()


def strip_svg_namespace(element: ET.Element) -> ET.Element:
    """Rewrite SVG-namespaced tags in a tree to plain local names (in place).

    Tags from other namespaces are left untouched.
    """
    prefix = f"{{{SVG_NAMESPACES['svg']}}}"
    for elem in element.iter():
        if isinstance(elem.tag, str) and elem.tag.startswith(prefix):
            elem.tag = elem.tag[len(prefix):]
    return element


def parse_svg_markup(svg_content: str) -> ET.Element:
    """Parse an SVG markup string into a namespace-free element tree.

    Args:
        svg_content: SVG markup, possibly with declaration and DOCTYPE.

    Returns:
        Root element with SVG tags reduced to local names.

    Raises:
        ET.ParseError: If the markup is not well-formed XML.
        ValueError: If the content is empty.
    """
    sanitized = sanitize_svg_content(svg_content)
    if not sanitized:
        raise ValueError("SVG content is empty")
    register_namespaces()
    return strip_svg_namespace(ET.fromstring(sanitized))


def iter_shape_elements(root: ET.Element) -> Iterator[ET.Element]:
    """Iterate over painted shape elements in document order.

    Children of defs, clipPath, mask and similar containers are skipped.

    Args:
        root: Root element to search.

    Yields:
        Each shape element.
    """
    local_name = get_local_name(root.tag) if isinstance(root.tag, str) else ""
    if local_name in NON_RENDERED_CONTAINERS:
        return
    if local_name in SHAPE_ELEMENTS:
        yield root
    for child in root:
        yield from iter_shape_elements(child)


def format_number(value: float) -> str:
    """Format a number for markup output.

    Rounds to NUMBER_PRECISION decimals and strips trailing zeros, so the
    same value always produces the same text.

    Example:
        >>> format_number(12.50)
        '12.5'
        >>> format_number(-0.0000001)
        '0'
    """
    text = f"{value:.{NUMBER_PRECISION}f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def parse_float(value: str | float | int | None, default: float = 0.0) -> float:
    """Parse a numeric attribute, tolerating a trailing 'px' unit.

    Raises:
        ValueError: If the value is not numeric.
    """
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    text = value.strip()
    if text.endswith("px"):
        text = text[:-2]
    return float(text)

"""Percentage-based layer positioning.

Template layers anchor their center in 0-100 percent space relative to the
template extent. Absolute coordinates are derived here and never stored.
"""

from dataclasses import dataclass

from .utils import Point


@dataclass(frozen=True)
class Position:
    """A layer anchor in percent of the template width and height."""

    x: float = 50.0
    y: float = 50.0


def resolve(percent: float, extent: float) -> float:
    """Convert a percentage of an extent into an absolute coordinate.

    Values outside 0-100 extrapolate linearly; templates may anchor elements
    off-canvas on purpose.

    Args:
        percent: Position in percent.
        extent: Template width or height.

    Returns:
        Absolute coordinate.

    Example:
        >>> resolve(25, 400)
        100.0
    """
    return (percent / 100) * extent


def parse_percentage(value: float | int | str) -> float:
    """Read a percent value given as a number or a "NN%" string.

    Raises:
        ValueError: If the value is not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid percentage: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text.endswith("%"):
        text = text[:-1]
    return float(text)


def resolve_coordinate(
    value: float | int | str, extent: float, origin: float = 0.0
) -> float:
    """Resolve a percent value (number or "NN%") to an absolute coordinate.

    Args:
        value: Percent as a number or string.
        extent: Template width or height.
        origin: Offset of the coordinate system (viewBox x or y).

    Returns:
        Absolute coordinate. Unparsable strings resolve to origin.
    """
    try:
        percent = parse_percentage(value)
    except ValueError:
        return origin
    return origin + resolve(percent, extent)


def resolve_position(position: Position, width: float, height: float) -> Point:
    """Resolve a percent anchor to absolute template coordinates."""
    return Point(resolve(position.x, width), resolve(position.y, height))

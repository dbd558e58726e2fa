"""Transform classification and transform string building.

Embedded SVG images are placed by their center. Depending on which of scale,
rotation and transform origin are set, the image is transformed around its
own center or around a geometry-derived origin inside it.
"""

import math
from dataclasses import dataclass
from typing import Literal, Union

from .geometry import GeometryAnalysis
from .utils import Point, format_number
from .viewbox import ViewBox

TransformCase = Literal["scale-with-origin", "scale-only", "rotation-only", "none"]

# "auto" derives the origin from the image geometry; a point is in viewBox units
TransformOrigin = Union[Point, Literal["auto"], None]


def has_scale(scale: float | None) -> bool:
    """Check if a scale factor is set."""
    return scale is not None and math.isfinite(scale)


def has_rotation(rotation: float | None) -> bool:
    """Check if a rotation in degrees is set."""
    return rotation is not None and math.isfinite(rotation)


def classify_transform(
    scale: float | None,
    rotation: float | None,
    transform_origin: TransformOrigin,
) -> TransformCase:
    """Pick the transform case for an embedded image.

    | scale | rotation | origin | case              |
    |-------|----------|--------|-------------------|
    | yes   | any      | yes    | scale-with-origin |
    | yes   | any      | no     | scale-only        |
    | no    | yes      | any    | rotation-only     |
    | no    | no       | any    | none              |

    Args:
        scale: Scale factor; None or non-finite means unscaled. A scale of 1
            still counts as set.
        rotation: Clockwise rotation in degrees; None or non-finite means
            unrotated. A rotation of 0 still counts as set.
        transform_origin: "auto", an explicit point, or None.

    Returns:
        The transform case.

    Example:
        >>> classify_transform(1.5, None, "auto")
        'scale-with-origin'
        >>> classify_transform(None, 45, "auto")
        'rotation-only'
        >>> classify_transform(1, 45, "auto")
        'scale-with-origin'
    """
    if has_scale(scale):
        if transform_origin is not None:
            return "scale-with-origin"
        return "scale-only"
    if has_rotation(rotation):
        return "rotation-only"
    return "none"


def map_to_image_box(
    point: Point, viewbox: ViewBox | None, width: float, height: float
) -> Point:
    """Map a point from viewBox space into the rendered image box.

    Uses the default preserveAspectRatio of xMidYMid meet: uniform scale
    to fit, centered on the free axis.

    Args:
        point: Point in the embedded SVG's user space.
        viewbox: The embedded SVG's viewBox; None means user space already
            matches the image box.
        width: Rendered image width.
        height: Rendered image height.

    Returns:
        Point relative to the image box's top-left corner.
    """
    if viewbox is None:
        return point
    s = min(width / viewbox.width, height / viewbox.height)
    offset_x = (width - viewbox.width * s) / 2
    offset_y = (height - viewbox.height * s) / 2
    return Point(
        offset_x + (point.x - viewbox.min_x) * s,
        offset_y + (point.y - viewbox.min_y) * s,
    )


def select_transform_origin(
    analysis: GeometryAnalysis | None,
    transform_origin: TransformOrigin,
    viewbox: ViewBox | None,
    width: float,
    height: float,
) -> Point:
    """Resolve the transform origin inside the image box.

    An explicit point is read in the embedded SVG's viewBox units and mapped
    into the image box like any other content point. For "auto" the geometry
    decides: the centroid when use_centroid is set, else the bounding-box
    center.
    Unmeasurable geometry (confidence 0) falls back to the image center.

    Args:
        analysis: Geometry analysis of the image content.
        transform_origin: "auto", an explicit point, or None.
        viewbox: The embedded SVG's viewBox.
        width: Rendered image width.
        height: Rendered image height.

    Returns:
        Origin relative to the image box's top-left corner.
    """
    if isinstance(transform_origin, tuple):
        return map_to_image_box(Point(*transform_origin), viewbox, width, height)
    if analysis is None or analysis.confidence == 0:
        return Point(width / 2, height / 2)
    return map_to_image_box(analysis.transform_origin, viewbox, width, height)


def _translate(x: float, y: float) -> str:
    return f"translate({format_number(x)}, {format_number(y)})"


def _scale(scale: float) -> str:
    return f"scale({format_number(scale)})"


def _rotate(rotation: float) -> str:
    return f"rotate({format_number(rotation)})"


@dataclass(frozen=True)
class SvgImageTransform:
    """Transform chain for an embedded image.

    transforms are applied as nested groups, outermost first.
    """

    case: TransformCase
    transforms: tuple[str, ...]
    origin: Point | None = None


def build_svg_image_transform(
    x: float,
    y: float,
    width: float,
    height: float,
    scale: float | None = None,
    rotation: float | None = None,
    origin: Point | None = None,
) -> SvgImageTransform:
    """Build the nested transforms that place an embedded image.

    The outermost transform puts the image center at (x, y). For
    scale-with-origin the inner transform scales and rotates around origin
    (translate to origin, scale, rotate, translate back); the other cases
    transform around the image center.

    Args:
        x: Resolved center x.
        y: Resolved center y.
        width: Rendered image width.
        height: Rendered image height.
        scale: Scale factor.
        rotation: Clockwise rotation in degrees.
        origin: Origin inside the image box; selects scale-with-origin when
            the image is scaled.

    Returns:
        SvgImageTransform.
    """
    case = classify_transform(scale, rotation, origin)
    to_corner = _translate(-width / 2, -height / 2)
    place = _translate(x, y)

    if case == "scale-with-origin":
        ops = [_translate(origin.x, origin.y), _scale(scale)]
        if has_rotation(rotation):
            ops.append(_rotate(rotation))
        ops.append(_translate(-origin.x, -origin.y))
        return SvgImageTransform(
            case, (f"{place} {to_corner}", " ".join(ops)), origin
        )

    ops = [place]
    if case == "scale-only":
        ops.append(_scale(scale))
    if has_rotation(rotation):
        ops.append(_rotate(rotation))
    ops.append(to_corner)
    return SvgImageTransform(case, (" ".join(ops),))


def build_text_transform(x: float, y: float, rotation: float | None = None) -> str:
    """Transform that anchors text at (x, y) and rotates it about that point.

    Example:
        >>> build_text_transform(100, 50, 15)
        'translate(100, 50) rotate(15)'
    """
    transform = _translate(x, y)
    if rotation and math.isfinite(rotation) and rotation % 360 != 0:
        transform = f"{transform} {_rotate(rotation)}"
    return transform

"""Template and override model.

Templates are immutable: frozen dataclasses with tuple fields. Style fields
left as None fall through to the engine fallbacks at composition time.
parse_template_data/parse_template_file adapt YAML dictionaries into the
model and fail loudly on structurally broken input.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, ClassVar, Literal, Union

import yaml

from .errors import TemplateError, ViewBoxError
from .positioning import Position, parse_percentage, resolve_coordinate
from .shapes import (
    ellipse_to_path,
    line_to_path,
    parse_points,
    polygon_to_path,
    rect_to_path,
)
from .transforms import TransformOrigin
from .utils import Point
from .viewbox import ViewBox, parse_viewbox

LayerType = Literal["shape", "text", "svg_image"]
ShapeSubtype = Literal["path", "rect", "circle", "ellipse", "polygon", "line"]
SHAPE_SUBTYPES: tuple[ShapeSubtype, ...] = (
    "path",
    "rect",
    "circle",
    "ellipse",
    "polygon",
    "line",
)


@dataclass(frozen=True)
class ShapeLayer:
    """A filled/stroked outline, also usable as a clip source."""

    type: ClassVar[LayerType] = "shape"

    id: str
    path: str
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None
    stroke_linejoin: str | None = None
    opacity: float | None = None
    z_index: int = 0


@dataclass(frozen=True)
class TextLayer:
    """A text element anchored at its center."""

    type: ClassVar[LayerType] = "text"

    id: str
    text: str = ""
    position: Position = field(default_factory=Position)
    rotation: float = 0.0
    font_family: str | None = None
    font_size: float | None = None
    font_weight: int | None = None
    font_color: str | None = None
    stroke_color: str | None = None
    stroke_width: float | None = None
    stroke_opacity: float | None = None
    stroke_linejoin: str | None = None
    clip: str | None = None


@dataclass(frozen=True)
class SvgImageLayer:
    """An embedded SVG image placed by its center."""

    type: ClassVar[LayerType] = "svg_image"

    id: str
    svg_content: str = ""
    position: Position = field(default_factory=Position)
    width: float = 0.0
    height: float = 0.0
    transform_origin: TransformOrigin = None
    scale: float | None = None
    rotation: float | None = None
    clip: str | None = None
    color: str | None = None
    stroke_color: str | None = None
    stroke_width: float | None = None
    stroke_linejoin: str | None = None


Layer = Union[ShapeLayer, TextLayer, SvgImageLayer]


@dataclass(frozen=True)
class Template:
    """A badge template. Layers paint in tuple order, first at the back."""

    id: str
    width: float
    height: float
    viewbox: ViewBox
    layers: tuple[Layer, ...] = ()

    @property
    def shape_layers(self) -> list[ShapeLayer]:
        """Shape layers in declaration order."""
        return [layer for layer in self.layers if isinstance(layer, ShapeLayer)]

    def get_layer(self, layer_id: str) -> Layer | None:
        """Find a layer by id."""
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None


@dataclass(frozen=True)
class LayerOverride:
    """Per-layer user edits. None leaves the template value in place."""

    text: str | None = None
    position: Position | None = None
    rotation: float | None = None
    font_family: str | None = None
    font_size: float | None = None
    font_weight: int | None = None
    font_color: str | None = None
    stroke_color: str | None = None
    stroke_width: float | None = None
    stroke_opacity: float | None = None
    stroke_linejoin: str | None = None
    fill: str | None = None
    stroke: str | None = None
    opacity: float | None = None
    svg_content: str | None = None
    color: str | None = None
    scale: float | None = None
    transform_origin: TransformOrigin = None


# Override fields and how their values are read
_FLOAT_FIELDS = frozenset(
    [
        "rotation",
        "font_size",
        "stroke_width",
        "stroke_opacity",
        "opacity",
        "scale",
        "width",
        "height",
    ]
)
_INT_FIELDS = frozenset(["font_weight", "z_index"])
_STR_FIELDS = frozenset(
    [
        "text",
        "font_family",
        "font_color",
        "stroke_color",
        "stroke_linejoin",
        "fill",
        "stroke",
        "svg_content",
        "color",
        "clip",
        "path",
    ]
)


def _read_value(context: str, key: str, value: Any) -> Any:
    """Coerce a raw YAML value for a known layer or override field.

    Raises:
        TemplateError: If the value has the wrong type.
    """
    if value is None:
        return None
    try:
        if key in _FLOAT_FIELDS:
            if isinstance(value, bool):
                raise ValueError(value)
            return float(value)
        if key in _INT_FIELDS:
            if isinstance(value, bool):
                raise ValueError(value)
            return int(value)
        if key in _STR_FIELDS:
            return str(value)
        if key == "position":
            return parse_position(value)
        if key == "transform_origin":
            return parse_transform_origin(value)
    except (TypeError, ValueError):
        raise TemplateError(f"{context}: invalid value for '{key}': {value!r}")
    return value


def parse_position(value: Any) -> Position:
    """Read a percent position from {x, y} or [x, y].

    Values may be numbers or "NN%" strings.

    Raises:
        ValueError: If the value is not a valid position.
    """
    if isinstance(value, Position):
        return value
    if isinstance(value, dict):
        return Position(
            parse_percentage(value.get("x", 50)),
            parse_percentage(value.get("y", 50)),
        )
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Position(parse_percentage(value[0]), parse_percentage(value[1]))
    raise ValueError(f"Invalid position: {value!r}")


def parse_transform_origin(value: Any) -> TransformOrigin:
    """Read a transform origin: "auto", {x, y}, [x, y] or None.

    Raises:
        ValueError: If the value is not a valid origin.
    """
    if value is None or value == "auto":
        return value
    if isinstance(value, dict) and set(value) == {"x", "y"}:
        return Point(float(value["x"]), float(value["y"]))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Point(float(value[0]), float(value[1]))
    raise ValueError(f"Invalid transform origin: {value!r}")


def _shape_path(context: str, data: dict, viewbox: ViewBox) -> str:
    """Build path data for a shape layer from a path or a primitive.

    Primitive positions are percentages of the viewBox; sizes are in
    viewBox units. A circle's width is its diameter.
    """
    subtype = data.get("subtype", "path")
    if subtype not in SHAPE_SUBTYPES:
        raise TemplateError(f"{context}: unknown shape subtype '{subtype}'")

    if subtype == "path":
        path = data.get("path")
        if not path:
            raise TemplateError(f"{context}: shape layer requires 'path'")
        return str(path)

    try:
        if subtype == "polygon":
            return polygon_to_path(parse_points(str(data.get("points", ""))))

        position = data.get("position", {})
        if not isinstance(position, dict):
            raise ValueError("position must be a mapping")

        if subtype == "line":
            return line_to_path(
                resolve_coordinate(position.get("x1", 0), viewbox.width, viewbox.min_x),
                resolve_coordinate(position.get("y1", 0), viewbox.height, viewbox.min_y),
                resolve_coordinate(position.get("x2", 0), viewbox.width, viewbox.min_x),
                resolve_coordinate(position.get("y2", 0), viewbox.height, viewbox.min_y),
            )

        cx = resolve_coordinate(position.get("x", 50), viewbox.width, viewbox.min_x)
        cy = resolve_coordinate(position.get("y", 50), viewbox.height, viewbox.min_y)
        width = float(data["width"])

        if subtype == "circle":
            return ellipse_to_path(cx, cy, width / 2, width / 2)

        height = float(data["height"])
        if subtype == "ellipse":
            return ellipse_to_path(cx, cy, width / 2, height / 2)

        rx = data.get("rx")
        ry = data.get("ry")
        return rect_to_path(
            cx - width / 2,
            cy - height / 2,
            width,
            height,
            float(rx) if rx is not None else None,
            float(ry) if ry is not None else None,
        )
    except KeyError as e:
        raise TemplateError(f"{context}: {subtype} requires '{e.args[0]}'")
    except (TypeError, ValueError) as e:
        raise TemplateError(f"{context}: invalid {subtype} geometry: {e}")


# Keys accepted per layer type in template files
_LAYER_KEYS: dict[str, frozenset[str]] = {
    "shape": frozenset(
        {f.name for f in fields(ShapeLayer)}
        | {"type", "subtype", "position", "width", "height", "rx", "ry", "points"}
    ),
    "text": frozenset({f.name for f in fields(TextLayer)} | {"type"}),
    "svg_image": frozenset({f.name for f in fields(SvgImageLayer)} | {"type"}),
}


def parse_layer(data: Any, index: int, viewbox: ViewBox) -> Layer:
    """Build one layer from a YAML mapping.

    Raises:
        TemplateError: If the layer is structurally invalid.
    """
    context = f"layers[{index}]"
    if not isinstance(data, dict):
        raise TemplateError(f"{context}: layer must be a mapping")

    layer_type = data.get("type")
    if layer_type not in _LAYER_KEYS:
        raise TemplateError(f"{context}: unknown layer type '{layer_type}'")

    layer_id = data.get("id")
    if not layer_id:
        raise TemplateError(f"{context}: layer requires 'id'")
    context = f"layer '{layer_id}'"

    unknown = set(data) - _LAYER_KEYS[layer_type]
    if unknown:
        raise TemplateError(f"{context}: unknown fields: {', '.join(sorted(unknown))}")

    if layer_type == "shape":
        values = {
            key: _read_value(context, key, data[key])
            for key in ("fill", "stroke", "stroke_width", "stroke_linejoin", "opacity")
            if key in data
        }
        if "z_index" in data:
            values["z_index"] = _read_value(context, "z_index", data["z_index"]) or 0
        return ShapeLayer(
            id=str(layer_id), path=_shape_path(context, data, viewbox), **values
        )

    values = {
        key: _read_value(context, key, value)
        for key, value in data.items()
        if key not in ("type", "id") and value is not None
    }
    if layer_type == "text":
        return TextLayer(id=str(layer_id), **values)

    if not values.get("width") or not values.get("height"):
        raise TemplateError(f"{context}: svg_image requires positive 'width' and 'height'")
    return SvgImageLayer(id=str(layer_id), **values)


def parse_template_data(data: Any) -> Template:
    """Build a Template from already-loaded YAML data.

    Expected format:
        id: name-badge
        width: 400
        height: 400
        viewbox: "0 0 400 400"   # optional, defaults to 0 0 width height
        layers:
          - type: shape
            id: background
            subtype: circle
            position: {x: 50, y: 50}
            width: 380
            fill: "#1e3a8a"
          - type: text
            id: name
            text: "Hello"
            position: {x: 50, y: 50}
            clip: background

    Args:
        data: Parsed YAML mapping.

    Returns:
        Template.

    Raises:
        TemplateError: If the template is structurally invalid.
    """
    if not isinstance(data, dict):
        raise TemplateError("Template must be a YAML dictionary")

    for key in ("id", "width", "height"):
        if key not in data:
            raise TemplateError(f"Template requires '{key}'")

    try:
        width = float(data["width"])
        height = float(data["height"])
    except (TypeError, ValueError):
        raise TemplateError("Template width and height must be numbers")
    if width <= 0 or height <= 0:
        raise TemplateError("Template width and height must be positive")

    raw_viewbox = data.get("viewbox")
    if raw_viewbox is None:
        viewbox = ViewBox(0.0, 0.0, width, height)
    else:
        try:
            viewbox = parse_viewbox(raw_viewbox)
        except ViewBoxError as e:
            raise TemplateError(f"Template viewbox: {e}")

    raw_layers = data.get("layers", [])
    if not isinstance(raw_layers, list):
        raise TemplateError("Template 'layers' must be a list")

    layers = tuple(parse_layer(item, i, viewbox) for i, item in enumerate(raw_layers))
    validate_template_layers(layers)

    return Template(
        id=str(data["id"]),
        width=width,
        height=height,
        viewbox=viewbox,
        layers=layers,
    )


def validate_template_layers(layers: tuple[Layer, ...]) -> None:
    """Check structural layer invariants.

    Raises:
        TemplateError: On duplicate layer ids or unknown layer kinds.
    """
    seen: set[str] = set()
    for layer in layers:
        if not isinstance(layer, (ShapeLayer, TextLayer, SvgImageLayer)):
            raise TemplateError(f"Unknown layer kind: {type(layer).__name__}")
        if layer.id in seen:
            raise TemplateError(f"Duplicate layer id: {layer.id}")
        seen.add(layer.id)


def parse_template_file(template_path: Path) -> Template:
    """Parse a YAML template file.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        TemplateError: If the template is structurally invalid.
    """
    with open(template_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return parse_template_data(data)


_OVERRIDE_KEYS = frozenset(f.name for f in fields(LayerOverride))


def parse_override(data: Any, context: str = "override") -> LayerOverride:
    """Build a LayerOverride from a mapping.

    Raises:
        TemplateError: If the mapping has unknown fields or bad values.
    """
    if isinstance(data, LayerOverride):
        return data
    if not isinstance(data, dict):
        raise TemplateError(f"{context}: override must be a mapping")

    unknown = set(data) - _OVERRIDE_KEYS
    if unknown:
        raise TemplateError(f"{context}: unknown fields: {', '.join(sorted(unknown))}")

    return LayerOverride(
        **{key: _read_value(context, key, value) for key, value in data.items()}
    )


def parse_overrides(data: Any) -> dict[str, LayerOverride]:
    """Build the per-layer override mapping.

    Args:
        data: Mapping of layer id to override mapping. None means no
            overrides.

    Returns:
        Dictionary of layer id to LayerOverride.

    Raises:
        TemplateError: If the format is invalid.
    """
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TemplateError("Overrides must be a dictionary keyed by layer id")
    return {
        str(layer_id): parse_override(value, f"override '{layer_id}'")
        for layer_id, value in data.items()
    }


def parse_overrides_file(overrides_path: Path) -> dict[str, LayerOverride]:
    """Parse a YAML overrides file.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        TemplateError: If the format is invalid.
    """
    with open(overrides_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return parse_overrides(data)

"""Layer composition: merge overrides, resolve geometry, attach clips.

compose() turns a Template plus per-layer user overrides into an ordered
list of render-ready layers. Field values are taken from the override first,
then the template, then the engine fallbacks in LayerDefaults.
"""

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, ClassVar, Mapping, Sequence, TypeVar, Union

from .clipping import (
    DEFAULT_RENDER_SCOPE,
    ClipDefinition,
    generate_clip_definitions,
    normalize_scope,
)
from .config import DEFAULT_CONFIG, EngineConfig
from .errors import TemplateError
from .geometry import GeometryAnalysis, analyze_paths, analyze_svg_content, fallback_analysis
from .positioning import Position, resolve
from .template import (
    Layer,
    LayerOverride,
    LayerType,
    ShapeLayer,
    SvgImageLayer,
    Template,
    TextLayer,
    parse_override,
    validate_template_layers,
)
from .transforms import (
    SvgImageTransform,
    build_svg_image_transform,
    build_text_transform,
    has_scale,
    select_transform_origin,
)
from .utils import Point
from .viewbox import (
    ViewBox,
    ViewBoxFitAnalysis,
    analyze_viewbox_fit,
    not_analyzable,
    read_svg_viewbox,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RenderedShape:
    """A shape layer with all styling resolved."""

    type: ClassVar[LayerType] = "shape"

    id: str
    path: str
    fill: str
    stroke: str | None
    stroke_width: float
    stroke_linejoin: str
    opacity: float | None = None
    z_index: int = 0


@dataclass(frozen=True)
class RenderedText:
    """A text layer with position, transform and styling resolved.

    stroke_color is None when the stroke width is zero, so no stroke is
    written at all.
    """

    type: ClassVar[LayerType] = "text"

    id: str
    lines: tuple[str, ...]
    x: float
    y: float
    rotation: float
    transform: str
    font_family: str | None
    font_size: float
    font_weight: int
    font_color: str
    stroke_color: str | None
    stroke_width: float
    stroke_opacity: float | None
    stroke_linejoin: str | None
    line_height: float
    clip: ClipDefinition | None = None

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class RenderedSvgImage:
    """An embedded SVG image with its transform chain resolved."""

    type: ClassVar[LayerType] = "svg_image"

    id: str
    svg_content: str
    x: float
    y: float
    width: float
    height: float
    transform: SvgImageTransform
    color: str | None
    stroke_color: str | None
    stroke_width: float
    stroke_linejoin: str | None
    clip: ClipDefinition | None = None
    analysis: GeometryAnalysis | None = None


RenderedLayer = Union[RenderedShape, RenderedText, RenderedSvgImage]


@dataclass(frozen=True)
class Composition:
    """Render-ready layers in paint order plus the clip definitions they use."""

    template_id: str
    width: float
    height: float
    viewbox: ViewBox
    layers: tuple[RenderedLayer, ...]
    clip_definitions: tuple[ClipDefinition, ...]
    scope: str = DEFAULT_RENDER_SCOPE

    def get_layer(self, layer_id: str) -> RenderedLayer | None:
        """Find a rendered layer by id."""
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None


def _first(*values: T | None) -> T | None:
    """First value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def _positive(value: float | None, fallback: float, name: str, layer_id: str) -> float:
    if value is None:
        return fallback
    if value <= 0:
        logger.warning(
            "Layer '%s': %s must be positive, got %s; using %s",
            layer_id,
            name,
            value,
            fallback,
        )
        return fallback
    return value


def _non_negative(value: float | None, fallback: float, name: str, layer_id: str) -> float:
    if value is None:
        return fallback
    if value < 0:
        logger.warning(
            "Layer '%s': %s must not be negative, got %s; using %s",
            layer_id,
            name,
            value,
            fallback,
        )
        return fallback
    return value


def apply_override(layer: Layer, override: LayerOverride | None) -> Layer:
    """Return the layer with every set override field applied.

    Override fields the layer kind does not have are ignored.
    """
    if override is None:
        return layer
    layer_fields = {f.name for f in fields(layer)}
    changes: dict[str, Any] = {}
    for f in fields(override):
        value = getattr(override, f.name)
        if value is None:
            continue
        if f.name in layer_fields:
            changes[f.name] = value
        else:
            logger.debug(
                "Layer '%s': override field '%s' does not apply to %s layers",
                layer.id,
                f.name,
                layer.type,
            )
    return replace(layer, **changes) if changes else layer


def _resolve_center(position: Position, viewbox: ViewBox) -> Point:
    """Resolve a percent position in the template's drawing coordinates.

    Percentages are taken against the template viewBox extent and offset by
    its origin, not against the template width and height. The two agree
    for the default viewBox of "0 0 width height"; when a template declares
    another viewBox, layers stay where the viewBox puts them.
    """
    return Point(
        viewbox.min_x + resolve(position.x, viewbox.width),
        viewbox.min_y + resolve(position.y, viewbox.height),
    )


def _compose_shape(layer: ShapeLayer, config: EngineConfig) -> RenderedShape:
    defaults = config.defaults
    stroke_width = _non_negative(
        layer.stroke_width, defaults.stroke_width, "stroke_width", layer.id
    )
    return RenderedShape(
        id=layer.id,
        path=layer.path,
        fill=_first(layer.fill, defaults.shape_fill),
        stroke=layer.stroke if stroke_width > 0 else None,
        stroke_width=stroke_width,
        stroke_linejoin=_first(layer.stroke_linejoin, defaults.stroke_linejoin),
        opacity=layer.opacity,
        z_index=layer.z_index,
    )


def _compose_text(
    layer: TextLayer,
    viewbox: ViewBox,
    config: EngineConfig,
    clip: ClipDefinition | None,
) -> RenderedText:
    defaults = config.defaults
    center = _resolve_center(layer.position, viewbox)
    rotation = layer.rotation or 0.0
    stroke_width = _non_negative(
        layer.stroke_width, defaults.stroke_width, "stroke_width", layer.id
    )
    stroked = stroke_width > 0

    return RenderedText(
        id=layer.id,
        lines=tuple(layer.text.split("\n")),
        x=center.x,
        y=center.y,
        rotation=rotation,
        transform=build_text_transform(center.x, center.y, rotation),
        font_family=_first(layer.font_family, defaults.font_family),
        font_size=_positive(layer.font_size, defaults.font_size, "font_size", layer.id),
        font_weight=_first(layer.font_weight, defaults.font_weight),
        font_color=_first(layer.font_color, defaults.font_color),
        stroke_color=_first(layer.stroke_color, defaults.stroke_color) if stroked else None,
        stroke_width=stroke_width,
        stroke_opacity=layer.stroke_opacity if stroked else None,
        stroke_linejoin=(
            _first(layer.stroke_linejoin, defaults.stroke_linejoin) if stroked else None
        ),
        line_height=defaults.line_height,
        clip=clip,
    )


def _compose_svg_image(
    layer: SvgImageLayer,
    viewbox: ViewBox,
    config: EngineConfig,
    clip: ClipDefinition | None,
) -> RenderedSvgImage:
    defaults = config.defaults
    center = _resolve_center(layer.position, viewbox)

    analysis = None
    origin = None
    if has_scale(layer.scale) and layer.transform_origin is not None:
        if layer.transform_origin == "auto":
            analysis = analyze_svg_content(layer.svg_content, config)
        origin = select_transform_origin(
            analysis,
            layer.transform_origin,
            read_svg_viewbox(layer.svg_content),
            layer.width,
            layer.height,
        )

    stroke_width = _non_negative(
        layer.stroke_width, defaults.stroke_width, "stroke_width", layer.id
    )
    stroked = stroke_width > 0

    return RenderedSvgImage(
        id=layer.id,
        svg_content=layer.svg_content,
        x=center.x,
        y=center.y,
        width=layer.width,
        height=layer.height,
        transform=build_svg_image_transform(
            center.x,
            center.y,
            layer.width,
            layer.height,
            scale=layer.scale,
            rotation=layer.rotation,
            origin=origin,
        ),
        color=layer.color,
        stroke_color=_first(layer.stroke_color, defaults.stroke_color) if stroked else None,
        stroke_width=stroke_width,
        stroke_linejoin=(
            _first(layer.stroke_linejoin, defaults.stroke_linejoin) if stroked else None
        ),
        clip=clip,
        analysis=analysis,
    )


def compose_layer(
    layer: Layer,
    viewbox: ViewBox,
    config: EngineConfig | None = None,
    clips: Mapping[str, ClipDefinition] | None = None,
) -> RenderedLayer:
    """Resolve one (already overridden) layer.

    Args:
        layer: Template layer with overrides applied.
        viewbox: Template viewBox that percent positions refer to.
        config: Engine configuration (default: DEFAULT_CONFIG).
        clips: Clip definitions keyed by source shape id. A clip reference
            missing from the mapping leaves the layer unclipped.

    Returns:
        Render-ready layer.

    Raises:
        TemplateError: If the layer kind is unknown.
    """
    if config is None:
        config = DEFAULT_CONFIG
    if clips is None:
        clips = {}

    if isinstance(layer, ShapeLayer):
        return _compose_shape(layer, config)
    if not isinstance(layer, (TextLayer, SvgImageLayer)):
        raise TemplateError(f"Unknown layer kind: {type(layer).__name__}")

    clip = clips.get(layer.clip) if layer.clip else None
    if isinstance(layer, TextLayer):
        return _compose_text(layer, viewbox, config, clip)
    return _compose_svg_image(layer, viewbox, config, clip)


def _normalize_overrides(
    overrides: Mapping[str, LayerOverride | Mapping[str, Any]] | None,
) -> dict[str, LayerOverride]:
    if not overrides:
        return {}
    return {
        layer_id: parse_override(value, f"override '{layer_id}'")
        for layer_id, value in overrides.items()
    }


def compose(
    template: Template,
    overrides: Mapping[str, LayerOverride | Mapping[str, Any]] | None = None,
    scope: str | None = DEFAULT_RENDER_SCOPE,
    config: EngineConfig | None = None,
) -> Composition:
    """Compose a template with user overrides into render-ready layers.

    Args:
        template: Immutable template.
        overrides: Per-layer overrides keyed by layer id, as LayerOverride
            objects or plain mappings.
        scope: Render scope suffixed onto clip ids.
        config: Engine configuration (default: DEFAULT_CONFIG).

    Returns:
        Composition with layers in template order.

    Raises:
        TemplateError: If the template is structurally broken or an
            override has unknown fields.
    """
    if config is None:
        config = DEFAULT_CONFIG
    scope = normalize_scope(scope)

    validate_template_layers(template.layers)
    by_layer = _normalize_overrides(overrides)

    known_ids = {layer.id for layer in template.layers}
    for layer_id in by_layer:
        if layer_id not in known_ids:
            logger.warning("Override for unknown layer '%s' ignored", layer_id)

    layers = [apply_override(layer, by_layer.get(layer.id)) for layer in template.layers]
    shapes = [layer for layer in layers if isinstance(layer, ShapeLayer)]
    references = [
        layer.clip for layer in layers if not isinstance(layer, ShapeLayer)
    ]
    definitions = generate_clip_definitions(shapes, references, scope, config.clip_mode)
    clips = {definition.source_id: definition for definition in definitions}

    rendered = tuple(
        compose_layer(layer, template.viewbox, config, clips) for layer in layers
    )

    return Composition(
        template_id=template.id,
        width=template.width,
        height=template.height,
        viewbox=template.viewbox,
        layers=rendered,
        clip_definitions=tuple(definitions),
        scope=scope,
    )


def shapes_by_z_index(layers: Sequence[Layer]) -> list[ShapeLayer]:
    """Shape layers sorted by z_index; ties keep declaration order."""
    shapes = [layer for layer in layers if isinstance(layer, ShapeLayer)]
    return sorted(shapes, key=lambda shape: shape.z_index)


def analyze_template_shapes(
    template: Template, config: EngineConfig | None = None
) -> GeometryAnalysis:
    """Analyze all shape layers of a template as one combined shape."""
    paths = [shape.path for shape in shapes_by_z_index(template.layers)]
    if not paths:
        return fallback_analysis()
    return analyze_paths(paths, config)


def analyze_template_fit(
    template: Template, config: EngineConfig | None = None
) -> ViewBoxFitAnalysis:
    """Check how well the template viewBox frames its shape layers."""
    if config is None:
        config = DEFAULT_CONFIG
    geometry = analyze_template_shapes(template, config)
    if geometry.confidence == 0:
        return not_analyzable(template.viewbox, "template shapes cannot be measured")
    return analyze_viewbox_fit(template.viewbox, geometry.bounding_box, config.viewbox)

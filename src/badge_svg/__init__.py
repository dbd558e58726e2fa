"""Badge SVG - Layered SVG composition and geometric transform engine."""

__version__ = "0.1.0"

from .errors import (
    CompositionError,
    PathParseError,
    TemplateError,
    ViewBoxError,
)
from .config import (
    DEFAULT_CONFIG,
    EngineConfig,
    parse_config_file,
)
from .positioning import (
    Position,
    resolve,
    resolve_coordinate,
    resolve_position,
)
from .geometry import (
    GeometryAnalysis,
    analyze_path,
    analyze_paths,
    analyze_svg_content,
    classify_shape,
    polygon_centroid,
)
from .viewbox import (
    ViewBox,
    ViewBoxFitAnalysis,
    analyze_svg_viewbox_fit,
    analyze_viewbox_fit,
    parse_viewbox,
)
from .transforms import (
    classify_transform,
    build_svg_image_transform,
    select_transform_origin,
)
from .clipping import (
    ClipDefinition,
    generate_clip_definitions,
    new_render_scope,
)
from .template import (
    LayerOverride,
    ShapeLayer,
    SvgImageLayer,
    Template,
    TextLayer,
    parse_overrides,
    parse_template_data,
    parse_template_file,
)
from .compositor import (
    Composition,
    compose,
    compose_layer,
    shapes_by_z_index,
)
from .svg_writer import (
    export_svg_document,
    render_fragment,
)

__all__ = [
    # Errors
    "CompositionError",
    "PathParseError",
    "TemplateError",
    "ViewBoxError",
    # Configuration
    "DEFAULT_CONFIG",
    "EngineConfig",
    "parse_config_file",
    # Positioning
    "Position",
    "resolve",
    "resolve_coordinate",
    "resolve_position",
    # Geometry
    "GeometryAnalysis",
    "analyze_path",
    "analyze_paths",
    "analyze_svg_content",
    "classify_shape",
    "polygon_centroid",
    # ViewBox fit
    "ViewBox",
    "ViewBoxFitAnalysis",
    "analyze_svg_viewbox_fit",
    "analyze_viewbox_fit",
    "parse_viewbox",
    # Transforms
    "classify_transform",
    "build_svg_image_transform",
    "select_transform_origin",
    # Clipping
    "ClipDefinition",
    "generate_clip_definitions",
    "new_render_scope",
    # Templates
    "LayerOverride",
    "ShapeLayer",
    "SvgImageLayer",
    "Template",
    "TextLayer",
    "parse_overrides",
    "parse_template_data",
    "parse_template_file",
    # Composition
    "Composition",
    "compose",
    "compose_layer",
    "shapes_by_z_index",
    # Output
    "export_svg_document",
    "render_fragment",
]

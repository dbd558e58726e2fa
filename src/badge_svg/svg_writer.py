"""SVG serialization of a Composition.

The live preview fragment and the standalone export document are built from
the same per-layer strings, so attribute values never differ between them.
Tags are written without a namespace; the export document declares the SVG
namespace once on its root.
"""

import logging
from xml.etree import ElementTree as ET

from .clipping import ClipDefinition
from .compositor import (
    Composition,
    RenderedLayer,
    RenderedShape,
    RenderedSvgImage,
    RenderedText,
)
from .utils import SVG_NAMESPACES, format_number, parse_svg_markup, register_namespaces
from .viewbox import format_viewbox

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# Attribute carrying the template layer id; element ids are left to clips
LAYER_ID_ATTRIBUTE = "data-layer-id"


def _to_string(element: ET.Element) -> str:
    return ET.tostring(element, encoding="unicode")


def _apply_clip(element: ET.Element, clip: ClipDefinition | None) -> None:
    if clip is None:
        return
    attribute = "mask" if clip.kind == "mask" else "clip-path"
    element.set(attribute, clip.reference)


def build_clip_element(definition: ClipDefinition) -> ET.Element:
    """Create a clipPath, or a mask with a white-filled path."""
    if definition.kind == "mask":
        elem = ET.Element("mask")
        elem.set("id", definition.id)
        path = ET.SubElement(elem, "path")
        path.set("d", definition.path)
        path.set("fill", "white")
        return elem

    elem = ET.Element("clipPath")
    elem.set("id", definition.id)
    path = ET.SubElement(elem, "path")
    path.set("d", definition.path)
    return elem


def render_defs(definitions: tuple[ClipDefinition, ...] | list[ClipDefinition]) -> str:
    """Serialize clip definitions into a defs block ("" when there are none)."""
    if not definitions:
        return ""
    defs = ET.Element("defs")
    for definition in definitions:
        defs.append(build_clip_element(definition))
    return _to_string(defs)


def build_shape_element(layer: RenderedShape) -> ET.Element:
    """Create the path element for a shape layer."""
    elem = ET.Element("path")
    elem.set(LAYER_ID_ATTRIBUTE, layer.id)
    elem.set("d", layer.path)
    elem.set("fill", layer.fill)
    if layer.stroke is not None:
        elem.set("stroke", layer.stroke)
        elem.set("stroke-width", format_number(layer.stroke_width))
        elem.set("stroke-linejoin", layer.stroke_linejoin)
    if layer.opacity is not None:
        elem.set("opacity", format_number(layer.opacity))
    return elem


def build_text_element(layer: RenderedText) -> ET.Element:
    """Create the group structure for a text layer.

    The outer group carries the clip in template space; the inner group
    positions and rotates the text, which is centered on its anchor. Lines
    of multi-line text are stacked around the anchor with tspans.
    """
    group = ET.Element("g")
    group.set(LAYER_ID_ATTRIBUTE, layer.id)
    _apply_clip(group, layer.clip)

    placed = ET.SubElement(group, "g")
    placed.set("transform", layer.transform)

    text = ET.SubElement(placed, "text")
    text.set("x", "0")
    text.set("y", "0")
    text.set("text-anchor", "middle")
    text.set("dominant-baseline", "central")
    if layer.font_family:
        text.set("font-family", layer.font_family)
    text.set("font-size", format_number(layer.font_size))
    text.set("font-weight", str(layer.font_weight))
    text.set("fill", layer.font_color)
    if layer.stroke_color is not None:
        text.set("stroke", layer.stroke_color)
        text.set("stroke-width", format_number(layer.stroke_width))
        if layer.stroke_opacity is not None:
            text.set("stroke-opacity", format_number(layer.stroke_opacity))
        if layer.stroke_linejoin:
            text.set("stroke-linejoin", layer.stroke_linejoin)
        text.set("paint-order", "stroke")

    if len(layer.lines) == 1:
        text.text = layer.lines[0]
        return group

    step = layer.font_size * layer.line_height
    first_dy = -(len(layer.lines) - 1) * step / 2
    for i, line in enumerate(layer.lines):
        tspan = ET.SubElement(text, "tspan")
        tspan.set("x", "0")
        tspan.set("dy", format_number(first_dy if i == 0 else step))
        tspan.text = line
    return group


def prepare_embedded_svg(layer: RenderedSvgImage) -> ET.Element | None:
    """Parse embedded SVG content and apply rendering attributes to its root.

    Returns:
        The prepared svg element, or None if the content cannot be parsed.
    """
    try:
        root = parse_svg_markup(layer.svg_content)
    except (ET.ParseError, ValueError) as e:
        logger.warning("Layer '%s': cannot embed SVG content: %s", layer.id, e)
        return None

    root.set("width", format_number(layer.width))
    root.set("height", format_number(layer.height))
    root.set("overflow", "visible")
    if layer.color is not None:
        root.set("fill", layer.color)
    if layer.stroke_color is not None:
        root.set("stroke", layer.stroke_color)
        root.set("stroke-width", format_number(layer.stroke_width))
        if layer.stroke_linejoin:
            root.set("stroke-linejoin", layer.stroke_linejoin)
    return root


def build_svg_image_element(layer: RenderedSvgImage) -> ET.Element:
    """Create the nested group structure for an embedded SVG image."""
    group = ET.Element("g")
    group.set(LAYER_ID_ATTRIBUTE, layer.id)
    _apply_clip(group, layer.clip)

    parent = group
    for transform in layer.transform.transforms:
        parent = ET.SubElement(parent, "g")
        parent.set("transform", transform)

    content = prepare_embedded_svg(layer)
    if content is not None:
        parent.append(content)
    return group


def render_layer(layer: RenderedLayer) -> str:
    """Serialize one rendered layer.

    Raises:
        TypeError: If the layer is not a rendered layer type.
    """
    if isinstance(layer, RenderedShape):
        return _to_string(build_shape_element(layer))
    if isinstance(layer, RenderedText):
        return _to_string(build_text_element(layer))
    if isinstance(layer, RenderedSvgImage):
        return _to_string(build_svg_image_element(layer))
    raise TypeError(f"Cannot render {type(layer).__name__}")


def render_layers(composition: Composition) -> list[str]:
    """Serialize every layer in paint order."""
    register_namespaces()
    return [render_layer(layer) for layer in composition.layers]


def render_fragment(composition: Composition) -> str:
    """Defs and layer markup for embedding in a live preview svg."""
    return render_defs(composition.clip_definitions) + "".join(
        render_layers(composition)
    )


def export_svg_document(composition: Composition) -> str:
    """Standalone SVG document for download.

    Example output:
        <?xml version="1.0" encoding="UTF-8"?>
        <svg xmlns="http://www.w3.org/2000/svg" width="400" height="400"
             viewBox="0 0 400 400"><defs>...</defs>...</svg>
    """
    root = (
        f'<svg xmlns="{SVG_NAMESPACES["svg"]}" '
        f'width="{format_number(composition.width)}" '
        f'height="{format_number(composition.height)}" '
        f'viewBox="{format_viewbox(composition.viewbox)}">'
    )
    return f"{XML_DECLARATION}\n{root}{render_fragment(composition)}</svg>\n"

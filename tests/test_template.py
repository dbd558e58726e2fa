"""Tests for badge_svg.template module."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from badge_svg.errors import TemplateError
from badge_svg.positioning import Position
from badge_svg.shapes import circle_to_path
from badge_svg.template import (
    LayerOverride,
    ShapeLayer,
    SvgImageLayer,
    Template,
    TextLayer,
    parse_override,
    parse_overrides,
    parse_overrides_file,
    parse_position,
    parse_template_data,
    parse_template_file,
    parse_transform_origin,
    validate_template_layers,
)
from badge_svg.utils import Point
from badge_svg.viewbox import ViewBox


class TestParseTemplateFile:
    """Tests for parse_template_file function."""

    @pytest.fixture
    def template_file(self, tmp_path) -> Path:
        """Create a badge template file."""
        path = tmp_path / "badge.yaml"
        path.write_text(
            """
id: name-badge
width: 400
height: 400
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
    position: {x: "50%", y: 40}
    font_size: 32
    font_color: "#fbbf24"
    clip: background
  - type: svg_image
    id: icon
    svg_content: '<svg viewBox="0 0 24 24"><path d="M12 2 L22 22 L2 22 Z"/></svg>'
    position: [50, 75]
    width: 64
    height: 64
    scale: 1.5
    transform_origin: auto
    clip: background
"""
        )
        return path

    def test_parses_all_layer_kinds(self, template_file):
        template = parse_template_file(template_file)
        assert template.id == "name-badge"
        assert template.viewbox == ViewBox(0, 0, 400, 400)
        assert [layer.type for layer in template.layers] == ["shape", "text", "svg_image"]

    def test_circle_primitive(self, template_file):
        background = parse_template_file(template_file).get_layer("background")
        assert isinstance(background, ShapeLayer)
        assert background.path == circle_to_path(200, 200, 190)
        assert background.fill == "#1e3a8a"

    def test_text_layer(self, template_file):
        name = parse_template_file(template_file).get_layer("name")
        assert isinstance(name, TextLayer)
        assert name.position == Position(50, 40)
        assert name.font_size == 32.0
        assert name.font_weight is None
        assert name.clip == "background"

    def test_svg_image_layer(self, template_file):
        icon = parse_template_file(template_file).get_layer("icon")
        assert isinstance(icon, SvgImageLayer)
        assert icon.position == Position(50, 75)
        assert icon.transform_origin == "auto"
        assert icon.scale == 1.5

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_template_file(tmp_path / "missing.yaml")


class TestParseTemplateData:
    """Tests for parse_template_data function."""

    def test_explicit_viewbox(self):
        template = parse_template_data(
            {"id": "t", "width": 200, "height": 100, "viewbox": "0 0 400 200"}
        )
        assert template.viewbox == ViewBox(0, 0, 400, 200)
        assert template.layers == ()

    def test_rect_primitive_uses_viewbox(self):
        template = parse_template_data(
            {
                "id": "t",
                "width": 100,
                "height": 100,
                "viewbox": "-50 -50 100 100",
                "layers": [
                    {
                        "type": "shape",
                        "id": "box",
                        "subtype": "rect",
                        "position": {"x": 50, "y": 50},
                        "width": 20,
                        "height": 10,
                    }
                ],
            }
        )
        assert template.layers[0].path == "M-10 -5 L10 -5 L10 5 L-10 5 Z"

    def test_line_primitive(self):
        template = parse_template_data(
            {
                "id": "t",
                "width": 200,
                "height": 100,
                "layers": [
                    {
                        "type": "shape",
                        "id": "rule",
                        "subtype": "line",
                        "position": {"x1": 10, "y1": 50, "x2": 90, "y2": 50},
                        "stroke": "#000",
                        "stroke_width": 2,
                    }
                ],
            }
        )
        assert template.layers[0].path == "M20 50 L180 50"
        assert template.layers[0].stroke_width == 2.0

    def test_polygon_primitive(self):
        template = parse_template_data(
            {
                "id": "t",
                "width": 10,
                "height": 10,
                "layers": [
                    {"type": "shape", "id": "tri", "subtype": "polygon", "points": "0,0 10,0 5,8"}
                ],
            }
        )
        assert template.layers[0].path == "M0 0 L10 0 L5 8 Z"

    def test_layers_are_immutable(self):
        template = parse_template_data(
            {
                "id": "t",
                "width": 10,
                "height": 10,
                "layers": [{"type": "text", "id": "label", "text": "A"}],
            }
        )
        assert isinstance(template.layers, tuple)
        with pytest.raises(AttributeError):
            template.layers[0].text = "B"

    def test_missing_required_key(self):
        with pytest.raises(TemplateError, match="requires 'height'"):
            parse_template_data({"id": "t", "width": 10})

    def test_non_positive_size(self):
        with pytest.raises(TemplateError):
            parse_template_data({"id": "t", "width": 0, "height": 10})

    def test_bad_viewbox(self):
        with pytest.raises(TemplateError, match="viewbox"):
            parse_template_data({"id": "t", "width": 10, "height": 10, "viewbox": "0 0 10"})

    def test_not_a_mapping(self):
        with pytest.raises(TemplateError):
            parse_template_data(["id", "t"])

    def test_unknown_layer_type(self):
        with pytest.raises(TemplateError, match="unknown layer type"):
            parse_template_data(
                {"id": "t", "width": 10, "height": 10, "layers": [{"type": "image", "id": "x"}]}
            )

    def test_unknown_layer_field(self):
        with pytest.raises(TemplateError, match="unknown fields: colour"):
            parse_template_data(
                {
                    "id": "t",
                    "width": 10,
                    "height": 10,
                    "layers": [{"type": "text", "id": "x", "colour": "red"}],
                }
            )

    def test_duplicate_ids(self):
        with pytest.raises(TemplateError, match="Duplicate layer id"):
            parse_template_data(
                {
                    "id": "t",
                    "width": 10,
                    "height": 10,
                    "layers": [
                        {"type": "text", "id": "x"},
                        {"type": "text", "id": "x"},
                    ],
                }
            )

    def test_circle_requires_width(self):
        with pytest.raises(TemplateError, match="requires 'width'"):
            parse_template_data(
                {
                    "id": "t",
                    "width": 10,
                    "height": 10,
                    "layers": [{"type": "shape", "id": "c", "subtype": "circle"}],
                }
            )

    def test_path_shape_requires_path(self):
        with pytest.raises(TemplateError):
            parse_template_data(
                {"id": "t", "width": 10, "height": 10, "layers": [{"type": "shape", "id": "s"}]}
            )

    def test_svg_image_requires_size(self):
        with pytest.raises(TemplateError, match="width"):
            parse_template_data(
                {
                    "id": "t",
                    "width": 10,
                    "height": 10,
                    "layers": [{"type": "svg_image", "id": "i", "svg_content": "<svg/>"}],
                }
            )

    def test_bad_field_value(self):
        with pytest.raises(TemplateError, match="font_size"):
            parse_template_data(
                {
                    "id": "t",
                    "width": 10,
                    "height": 10,
                    "layers": [{"type": "text", "id": "x", "font_size": "large"}],
                }
            )


class TestValidateTemplateLayers:
    """Tests for validate_template_layers function."""

    def test_unknown_kind(self):
        with pytest.raises(TemplateError, match="Unknown layer kind"):
            validate_template_layers((TextLayer(id="a"), "not a layer"))

    def test_valid(self):
        validate_template_layers((TextLayer(id="a"), ShapeLayer(id="b", path="M0 0 L1 1")))


class TestParsePositionAndOrigin:
    """Tests for parse_position and parse_transform_origin functions."""

    def test_position_forms(self):
        assert parse_position({"x": 25, "y": "75%"}) == Position(25, 75)
        assert parse_position([10, 20]) == Position(10, 20)
        assert parse_position({}) == Position(50, 50)

    def test_position_invalid(self):
        with pytest.raises(ValueError):
            parse_position("center")

    def test_origin_forms(self):
        assert parse_transform_origin("auto") == "auto"
        assert parse_transform_origin(None) is None
        assert parse_transform_origin({"x": 1, "y": 2}) == Point(1, 2)
        assert parse_transform_origin([3, 4]) == Point(3, 4)

    def test_origin_invalid(self):
        with pytest.raises(ValueError):
            parse_transform_origin("center")


class TestParseOverrides:
    """Tests for parse_override, parse_overrides and parse_overrides_file."""

    @pytest.fixture
    def overrides_file(self, tmp_path) -> Path:
        """Create an overrides file."""
        path = tmp_path / "overrides.yaml"
        path.write_text(
            """
name:
  text: "Ada"
  font_color: "#ff0000"
  position: {x: 50, y: 45}
icon:
  scale: 2
"""
        )
        return path

    def test_file(self, overrides_file):
        overrides = parse_overrides_file(overrides_file)
        assert overrides["name"] == LayerOverride(
            text="Ada", font_color="#ff0000", position=Position(50, 45)
        )
        assert overrides["icon"].scale == 2.0

    def test_none_is_empty(self):
        assert parse_overrides(None) == {}

    def test_not_a_mapping(self):
        with pytest.raises(TemplateError):
            parse_overrides(["name"])

    def test_unknown_field(self):
        with pytest.raises(TemplateError, match="unknown fields"):
            parse_override({"font_colour": "red"})

    def test_passthrough(self):
        override = LayerOverride(text="x")
        assert parse_override(override) is override


class TestTemplate:
    """Tests for the Template model."""

    def test_shape_layers_and_lookup(self):
        shape = ShapeLayer(id="bg", path="M0 0 L1 0 L1 1 Z")
        text = TextLayer(id="label", text="A")
        template = Template(
            id="t", width=10, height=10, viewbox=ViewBox(0, 0, 10, 10), layers=(shape, text)
        )
        assert template.shape_layers == [shape]
        assert template.get_layer("label") is text
        assert template.get_layer("missing") is None

"""Tests for badge_svg.compositor module."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from badge_svg.config import EngineConfig, LayerDefaults
from badge_svg.compositor import (
    RenderedShape,
    RenderedSvgImage,
    RenderedText,
    analyze_template_fit,
    analyze_template_shapes,
    apply_override,
    compose,
    compose_layer,
    shapes_by_z_index,
)
from badge_svg.errors import TemplateError
from badge_svg.positioning import Position
from badge_svg.shapes import circle_to_path, rect_to_path
from badge_svg.template import (
    LayerOverride,
    ShapeLayer,
    SvgImageLayer,
    Template,
    TextLayer,
)
from badge_svg.utils import Point
from badge_svg.viewbox import ViewBox

STAR_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">'
    '<path d="M50 10 L59.4 37.1 L88 37.6 L65.2 55 L73.5 82.4 L50 66 '
    'L26.5 82.4 L34.8 55 L12 37.6 L40.6 37.1 Z"/></svg>'
)


def make_template(*layers, width: float = 400, height: float = 400) -> Template:
    return Template(
        id="badge",
        width=width,
        height=height,
        viewbox=ViewBox(0, 0, width, height),
        layers=tuple(layers),
    )


@pytest.fixture
def badge() -> Template:
    """Circle badge with two clipped text layers and a star icon."""
    return make_template(
        ShapeLayer(id="circle", path=circle_to_path(200, 200, 190), fill="#1e3a8a"),
        TextLayer(id="title", text="HELLO", position=Position(50, 30), clip="circle"),
        TextLayer(
            id="name",
            text="Ada",
            position=Position(50, 50),
            font_color="#fbbf24",
            clip="circle",
        ),
        SvgImageLayer(
            id="icon",
            svg_content=STAR_SVG,
            position=Position(50, 75),
            width=100,
            height=100,
        ),
    )


class TestCompose:
    """Tests for compose function."""

    def test_layer_order_preserved(self, badge):
        composition = compose(badge)
        assert [layer.id for layer in composition.layers] == ["circle", "title", "name", "icon"]
        assert isinstance(composition.layers[0], RenderedShape)
        assert isinstance(composition.layers[1], RenderedText)
        assert isinstance(composition.layers[3], RenderedSvgImage)

    def test_shared_clip_defined_once(self, badge):
        composition = compose(badge)
        assert len(composition.clip_definitions) == 1
        definition = composition.clip_definitions[0]
        assert definition.id == "circle-main"
        assert composition.get_layer("title").clip == definition
        assert composition.get_layer("name").clip == definition
        assert composition.get_layer("icon").clip is None

    def test_scope_in_clip_ids(self, badge):
        composition = compose(badge, scope="preview-7")
        assert composition.scope == "preview-7"
        assert composition.clip_definitions[0].id == "circle-preview-7"

    def test_mask_mode(self, badge):
        composition = compose(badge, config=EngineConfig(clip_mode="mask"))
        assert composition.clip_definitions[0].kind == "mask"

    def test_font_color_precedence(self, badge):
        composition = compose(badge, {"name": LayerOverride(font_color="#ff0000")})
        # override, then template, then engine fallback
        assert composition.get_layer("name").font_color == "#ff0000"
        assert compose(badge).get_layer("name").font_color == "#fbbf24"
        assert composition.get_layer("title").font_color == "#ffffff"

    def test_configured_fallback(self, badge):
        config = EngineConfig(defaults=LayerDefaults(font_color="#000000", font_size=20))
        title = compose(badge, config=config).get_layer("title")
        assert title.font_color == "#000000"
        assert title.font_size == 20

    def test_mapping_overrides(self, badge):
        composition = compose(badge, {"title": {"text": "HI", "position": {"x": 25, "y": 75}}})
        title = composition.get_layer("title")
        assert title.text == "HI"
        assert (title.x, title.y) == (100, 300)

    def test_override_with_unknown_field(self, badge):
        with pytest.raises(TemplateError):
            compose(badge, {"title": {"colour": "red"}})

    def test_override_for_unknown_layer_ignored(self, badge, caplog):
        composition = compose(badge, {"ghost": LayerOverride(text="boo")})
        assert len(composition.layers) == 4
        assert "ghost" in caplog.text

    def test_template_not_mutated(self, badge):
        compose(badge, {"name": LayerOverride(text="Grace", font_size=40)})
        name = badge.get_layer("name")
        assert name.text == "Ada"
        assert name.font_size is None

    def test_text_position_and_transform(self, badge):
        title = compose(badge, {"title": LayerOverride(rotation=15)}).get_layer("title")
        assert (title.x, title.y) == (200, 120)
        assert title.transform == "translate(200, 120) rotate(15)"

    def test_position_relative_to_viewbox(self):
        template = Template(
            id="t",
            width=200,
            height=200,
            viewbox=ViewBox(-50, -50, 100, 100),
            layers=(TextLayer(id="label", text="A", position=Position(50, 50)),),
        )
        label = compose(template).get_layer("label")
        assert (label.x, label.y) == (0, 0)

    def test_no_stroke_without_width(self, badge):
        title = compose(badge, {"title": LayerOverride(stroke_color="#000000")}).get_layer("title")
        assert title.stroke_color is None
        assert title.stroke_linejoin is None

    def test_stroke_with_width(self, badge):
        title = compose(badge, {"title": LayerOverride(stroke_width=2)}).get_layer("title")
        assert title.stroke_color == "#000000"
        assert title.stroke_width == 2
        assert title.stroke_linejoin == "round"

    def test_invalid_font_size_falls_back(self, badge, caplog):
        title = compose(badge, {"title": LayerOverride(font_size=-4)}).get_layer("title")
        assert title.font_size == 16
        assert "font_size" in caplog.text

    def test_multiline_text(self, badge):
        title = compose(badge, {"title": LayerOverride(text="ONE\nTWO")}).get_layer("title")
        assert title.lines == ("ONE", "TWO")

    def test_dangling_clip_is_unclipped(self):
        template = make_template(TextLayer(id="label", text="A", clip="nowhere"))
        composition = compose(template)
        assert composition.clip_definitions == ()
        assert composition.get_layer("label").clip is None

    def test_duplicate_ids_rejected(self):
        template = make_template(TextLayer(id="a"), TextLayer(id="a"))
        with pytest.raises(TemplateError):
            compose(template)


class TestComposeSvgImage:
    """Tests for embedded SVG image composition."""

    def test_untransformed(self, badge):
        icon = compose(badge).get_layer("icon")
        assert icon.transform.case == "none"
        assert icon.transform.transforms == ("translate(200, 300) translate(-50, -50)",)
        assert icon.analysis is None

    def test_scale_with_auto_origin_uses_centroid(self, badge):
        icon = compose(
            badge, {"icon": LayerOverride(scale=2, transform_origin="auto")}
        ).get_layer("icon")
        assert icon.transform.case == "scale-with-origin"
        assert icon.analysis.shape_type == "star"
        origin = icon.transform.origin
        assert origin.x == pytest.approx(icon.analysis.centroid_center.x)
        assert origin.y == pytest.approx(icon.analysis.centroid_center.y)
        assert origin.y > icon.analysis.bounding_box_center.y

    def test_scale_with_explicit_origin(self, badge):
        icon = compose(
            badge, {"icon": LayerOverride(scale=2, transform_origin=Point(10, 20))}
        ).get_layer("icon")
        assert icon.transform.origin == Point(10, 20)
        assert icon.transform.transforms[1] == "translate(10, 20) scale(2) translate(-10, -20)"
        assert icon.analysis is None

    def test_scale_only(self, badge):
        icon = compose(badge, {"icon": LayerOverride(scale=0.5)}).get_layer("icon")
        assert icon.transform.case == "scale-only"

    def test_rotation_only_ignores_origin(self):
        template = make_template(
            SvgImageLayer(
                id="icon",
                svg_content=STAR_SVG,
                width=100,
                height=100,
                rotation=90,
                transform_origin="auto",
            )
        )
        icon = compose(template).get_layer("icon")
        assert icon.transform.case == "rotation-only"
        assert icon.analysis is None

    def test_unparsable_content_uses_image_center(self):
        template = make_template(
            SvgImageLayer(
                id="icon",
                svg_content="<svg><path",
                width=60,
                height=40,
                scale=2,
                transform_origin="auto",
            )
        )
        icon = compose(template).get_layer("icon")
        assert icon.transform.origin == Point(30, 20)

    @pytest.mark.parametrize(
        "element",
        [
            '<circle cx="50" cy="50" r="40"/>',
            '<ellipse cx="50" cy="50" rx="40" ry="20"/>',
            '<rect x="10" y="20" width="80" height="60" rx="10"/>',
            '<path d="M10 50a40 40 0 1080 0a40 40 0 10-80 0z"/>',
        ],
    )
    def test_scale_with_auto_origin_over_curves(self, element):
        template = make_template(
            SvgImageLayer(
                id="icon",
                svg_content=f'<svg viewBox="0 0 100 100">{element}</svg>',
                position=Position(50, 50),
                width=100,
                height=100,
                scale=2,
                transform_origin="auto",
            )
        )
        icon = compose(template).get_layer("icon")
        assert icon.transform.case == "scale-with-origin"
        assert icon.analysis.confidence > 0
        assert icon.transform.origin.x == pytest.approx(50, abs=0.5)
        assert icon.transform.origin.y == pytest.approx(50, abs=0.5)

    def test_circle_content_is_generic(self):
        template = make_template(
            SvgImageLayer(
                id="icon",
                svg_content='<svg viewBox="0 0 100 100"><circle cx="50" cy="50" r="40"/></svg>',
                width=100,
                height=100,
                scale=2,
                transform_origin="auto",
            )
        )
        analysis = compose(template).get_layer("icon").analysis
        assert analysis.shape_type == "generic"
        assert analysis.confidence == pytest.approx(0.9)

    def test_unit_scale_with_rotation_uses_origin(self):
        template = make_template(
            SvgImageLayer(
                id="icon",
                svg_content=STAR_SVG,
                width=100,
                height=100,
                scale=1,
                rotation=45,
                transform_origin="auto",
            )
        )
        icon = compose(template).get_layer("icon")
        assert icon.transform.case == "scale-with-origin"
        assert icon.analysis.shape_type == "star"
        assert "scale(1) rotate(45)" in icon.transform.transforms[1]

    def test_color_applied(self, badge):
        icon = compose(badge, {"icon": LayerOverride(color="#ff0000")}).get_layer("icon")
        assert icon.color == "#ff0000"


class TestApplyOverride:
    """Tests for apply_override function."""

    def test_inapplicable_field_ignored(self):
        layer = TextLayer(id="label", text="A")
        assert apply_override(layer, LayerOverride(fill="#fff")) is layer

    def test_none_fields_keep_template(self):
        layer = TextLayer(id="label", text="A", font_size=12)
        updated = apply_override(layer, LayerOverride(text="B"))
        assert updated.text == "B"
        assert updated.font_size == 12

    def test_no_override(self):
        layer = ShapeLayer(id="s", path="M0 0 L1 1")
        assert apply_override(layer, None) is layer


class TestComposeLayer:
    """Tests for compose_layer function."""

    def test_shape_defaults(self):
        shape = compose_layer(ShapeLayer(id="s", path="M0 0 L1 1"), ViewBox(0, 0, 10, 10))
        assert shape.fill == "none"
        assert shape.stroke is None

    def test_shape_stroke(self):
        shape = compose_layer(
            ShapeLayer(id="s", path="M0 0 L1 1", stroke="#000", stroke_width=3),
            ViewBox(0, 0, 10, 10),
        )
        assert shape.stroke == "#000"
        assert shape.stroke_linejoin == "round"

    def test_unknown_kind(self):
        with pytest.raises(TemplateError):
            compose_layer("text", ViewBox(0, 0, 10, 10))


class TestTemplateAnalysis:
    """Tests for shapes_by_z_index and template analysis helpers."""

    def test_z_index_order_is_stable(self):
        a = ShapeLayer(id="a", path="M0 0 L1 1", z_index=1)
        b = ShapeLayer(id="b", path="M0 0 L1 1")
        c = ShapeLayer(id="c", path="M0 0 L1 1", z_index=1)
        assert [s.id for s in shapes_by_z_index([a, TextLayer(id="t"), b, c])] == ["b", "a", "c"]

    def test_centered_template_fits(self, badge):
        assert analyze_template_fit(badge).severity == "none"

    def test_off_center_template(self):
        template = make_template(
            ShapeLayer(id="box", path=rect_to_path(250, 50, 100, 100)),
            width=400,
            height=400,
        )
        fit = analyze_template_fit(template)
        assert fit.severity == "major"
        assert fit.recommended_viewbox.center == Point(300, 100)

    def test_no_shapes(self):
        template = make_template(TextLayer(id="t"))
        assert analyze_template_shapes(template).confidence == 0
        assert analyze_template_fit(template).analyzable is False

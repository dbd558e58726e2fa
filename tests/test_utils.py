"""Tests for badge_svg.utils module."""

import pytest
from pathlib import Path
from xml.etree import ElementTree as ET

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from badge_svg.utils import (
    BoundingBox,
    Point,
    format_number,
    get_local_name,
    iter_shape_elements,
    parse_float,
    parse_svg_markup,
    sanitize_svg_content,
)


class TestGetLocalName:
    """Tests for get_local_name function."""

    def test_namespaced_tag(self):
        assert get_local_name("{http://www.w3.org/2000/svg}rect") == "rect"

    def test_plain_tag(self):
        assert get_local_name("rect") == "rect"


class TestPoint:
    """Tests for Point named tuple."""

    def test_distance(self):
        assert Point(0, 0).distance_to(Point(3, 4)) == pytest.approx(5.0)

    def test_unpacks_like_tuple(self):
        x, y = Point(1.5, 2.5)
        assert (x, y) == (1.5, 2.5)


class TestBoundingBox:
    """Tests for BoundingBox dataclass."""

    def test_center(self):
        box = BoundingBox(10, 20, 30, 40)
        assert box.center == Point(25, 40)
        assert box.x_max == 40
        assert box.y_max == 60
        assert box.max_extent == 40

    def test_from_points(self):
        box = BoundingBox.from_points([Point(5, 1), Point(-1, 4), Point(3, -2)])
        assert box == BoundingBox(-1, -2, 6, 6)

    def test_from_no_points_raises(self):
        with pytest.raises(ValueError):
            BoundingBox.from_points([])

    def test_contains(self):
        outer = BoundingBox(0, 0, 100, 100)
        assert outer.contains(BoundingBox(10, 10, 20, 20))
        assert outer.contains(outer)
        assert not outer.contains(BoundingBox(90, 90, 20, 20))


class TestSanitizeSvgContent:
    """Tests for sanitize_svg_content function."""

    def test_strips_declaration_doctype_and_comment(self):
        content = (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 1.1//EN" '
            '"http://www.w3.org/Graphics/SVG/1.1/DTD/svg11.dtd">\n'
            "<!-- Generator: Illustrator -->\n"
            '<svg viewBox="0 0 10 10"/>'
        )
        assert sanitize_svg_content(content) == '<svg viewBox="0 0 10 10"/>'

    def test_empty(self):
        assert sanitize_svg_content("") == ""


class TestParseSvgMarkup:
    """Tests for parse_svg_markup function."""

    def test_strips_svg_namespace(self):
        root = parse_svg_markup(
            '<svg xmlns="http://www.w3.org/2000/svg"><g><path d="M0 0"/></g></svg>'
        )
        assert root.tag == "svg"
        assert [child.tag for child in root.iter()] == ["svg", "g", "path"]

    def test_invalid_markup_raises(self):
        with pytest.raises(ET.ParseError):
            parse_svg_markup("<svg><path></svg>")

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            parse_svg_markup("   ")


class TestIterShapeElements:
    """Tests for iter_shape_elements function."""

    def test_skips_defs_and_clip_paths(self):
        root = parse_svg_markup(
            "<svg>"
            "<defs><rect width='1' height='1'/></defs>"
            "<clipPath id='c'><circle r='3'/></clipPath>"
            "<g><path d='M0 0 L1 1'/><text>hi</text></g>"
            "<ellipse rx='1' ry='2'/>"
            "</svg>"
        )
        names = [elem.tag for elem in iter_shape_elements(root)]
        assert names == ["path", "ellipse"]


class TestFormatNumber:
    """Tests for format_number function."""

    def test_integer_value(self):
        assert format_number(12.0) == "12"

    def test_strips_trailing_zeros(self):
        assert format_number(12.5) == "12.5"

    def test_rounds_to_six_places(self):
        assert format_number(1 / 3) == "0.333333"

    def test_negative_zero(self):
        assert format_number(-0.0) == "0"
        assert format_number(-0.0000001) == "0"

    def test_negative(self):
        assert format_number(-2.25) == "-2.25"


class TestParseFloat:
    """Tests for parse_float function."""

    def test_px_suffix(self):
        assert parse_float("12.5px") == 12.5

    def test_none_uses_default(self):
        assert parse_float(None, 3.0) == 3.0

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            parse_float("abc")

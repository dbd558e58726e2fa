"""Tests for badge_svg.config module."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from badge_svg.config import (
    DEFAULT_CONFIG,
    DEFAULT_FONT_COLOR,
    DEFAULT_STAR_MIN_POINTS,
    EngineConfig,
    GeometryThresholds,
    parse_config_data,
    parse_config_file,
)


class TestDefaults:
    """Tests for default configuration."""

    def test_default_config(self):
        config = EngineConfig()
        assert config == DEFAULT_CONFIG
        assert config.geometry.star_min_points == DEFAULT_STAR_MIN_POINTS
        assert config.defaults.font_color == DEFAULT_FONT_COLOR == "#ffffff"
        assert config.defaults.stroke_width == 0
        assert config.defaults.font_size == 16
        assert config.defaults.font_weight == 400
        assert config.clip_mode == "clip-path"

    def test_config_is_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_CONFIG.geometry.star_min_points = 7


class TestParseConfigData:
    """Tests for parse_config_data function."""

    def test_none_gives_defaults(self):
        assert parse_config_data(None) is DEFAULT_CONFIG

    def test_overlay_sections(self):
        config = parse_config_data(
            {
                "geometry": {"star_min_points": 6, "triangle_angle_tolerance": 10},
                "viewbox": {"major_offset_ratio": 0.2},
                "defaults": {"font_color": "#123456", "font_family": "Roboto"},
                "clip_mode": "mask",
            }
        )
        assert config.geometry.star_min_points == 6
        assert config.geometry.triangle_angle_tolerance == 10.0
        assert isinstance(config.geometry.triangle_angle_tolerance, float)
        # Untouched values keep their defaults
        assert config.geometry.arrow_min_aspect == GeometryThresholds().arrow_min_aspect
        assert config.viewbox.major_offset_ratio == 0.2
        assert config.defaults.font_color == "#123456"
        assert config.defaults.font_family == "Roboto"
        assert config.clip_mode == "mask"

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="Unknown config sections"):
            parse_config_data({"colors": {}})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown key"):
            parse_config_data({"geometry": {"star_points": 5}})

    def test_invalid_value(self):
        with pytest.raises(ValueError, match="Invalid value"):
            parse_config_data({"sampling": {"curve_samples": "many"}})

    def test_invalid_clip_mode(self):
        with pytest.raises(ValueError, match="clip_mode"):
            parse_config_data({"clip_mode": "stencil"})

    def test_out_of_range_threshold(self):
        with pytest.raises(ValueError):
            parse_config_data({"geometry": {"star_max_inner_ratio": 1.5}})

    def test_samples_above_segment_cap(self):
        with pytest.raises(ValueError):
            parse_config_data(
                {"sampling": {"curve_samples": 100, "max_segment_samples": 10}}
            )

    def test_not_a_mapping(self):
        with pytest.raises(ValueError):
            parse_config_data(["geometry"])


class TestParseConfigFile:
    """Tests for parse_config_file function."""

    @pytest.fixture
    def config_file(self, tmp_path) -> Path:
        """Create a config file."""
        content = """
geometry:
  min_centroid_offset_ratio: 0.05
sampling:
  max_points: 5000
clip_mode: mask
"""
        config_file = tmp_path / "engine.yaml"
        config_file.write_text(content)
        return config_file

    def test_parse_file(self, config_file):
        config = parse_config_file(config_file)
        assert config.geometry.min_centroid_offset_ratio == 0.05
        assert config.sampling.max_points == 5000
        assert config.clip_mode == "mask"

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert parse_config_file(config_file) == DEFAULT_CONFIG

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_config_file(tmp_path / "missing.yaml")

"""Tests for per-image layout computation."""
import pytest
from conftest import make_image_config, make_text_config

from watermark_core.exceptions import InvalidProportionsError
from watermark_core.layout import TileLayout, WatermarkLayout, compute_layout
from watermark_core.models import (
    AnchorPosition,
    FullscreenMode,
    FullscreenStyle,
    OriginX,
    OriginY,
    PositionConfig,
    PositionMode,
    ProportionData,
    TextStyle,
    WatermarkConfig,
    WatermarkType,
)

pytestmark = pytest.mark.unit


def test_text_bottom_right_uses_scaled_margin(text_config):
    layout = compute_layout(text_config, (1920, 1080))
    assert isinstance(layout, WatermarkLayout)
    assert layout.anchor == AnchorPosition(1862, 1022)
    assert (layout.origin.origin_x, layout.origin.origin_y) == (OriginX.RIGHT, OriginY.BOTTOM)
    assert (layout.width, layout.height, layout.font_size) == (194, 54, 54)
    assert layout.top_left == (1668, 968)


def test_image_is_edge_aligned():
    config = make_image_config(scale_ratio=0.05)
    layout = compute_layout(config, (1000, 800), (200, 100))
    assert layout.anchor == AnchorPosition(1000, 800)
    assert layout.top_left == (960, 780)


def test_percentage_offsets_shift_anchor():
    config = make_image_config(position=PositionConfig(position="top-left", offset_x=10, offset_y=5))
    layout = compute_layout(config, (1000, 800), (200, 100))
    assert layout.anchor.anchor_x == pytest.approx(100)
    assert layout.anchor.anchor_y == pytest.approx(40)


def test_custom_position_uses_raw_coordinates(text_config):
    config = text_config.replace(position=PositionConfig(position="custom", x=15, y=25))
    layout = compute_layout(config, (800, 600))
    assert layout.anchor == AnchorPosition(15, 25)
    assert layout.top_left == (15, 25)


def test_proportion_mode_text():
    config = make_text_config(position=PositionConfig(mode=PositionMode.PROPORTION, position="top-left",
                                                      proportions=ProportionData(0.2, 0.1, 0, 0)))
    layout = compute_layout(config, (1000, 500))
    assert layout.anchor == AnchorPosition(30, 30)
    # the font keeps its adaptive size, proportions only place the anchor
    assert layout.font_size == layout.scaling.font_size == 25
    assert (layout.width, layout.height) == (layout.scaling.width, layout.scaling.height)


def test_proportion_mode_image_is_edge_aligned():
    config = make_image_config(position=PositionConfig(mode=PositionMode.PROPORTION, position="bottom-right",
                                                       proportions=ProportionData(0.1, 0.1, 0, 0)))
    layout = compute_layout(config, (1000, 500), (200, 100))
    assert layout.anchor == AnchorPosition(1000, 500)
    assert (layout.width, layout.height) == (100, 50)


def test_proportion_mode_without_proportions_raises(text_config):
    config = text_config.replace(position=PositionConfig(mode=PositionMode.PROPORTION))
    with pytest.raises(InvalidProportionsError):
        compute_layout(config, (1000, 500))


def test_rotation_and_opacity_carried(text_config):
    config = text_config.replace(style=TextStyle(content="x", rotation=30, opacity=0.7))
    layout = compute_layout(config, (800, 600))
    assert layout.rotation == 30
    assert layout.opacity == 0.7


class TestFullscreen:
    def test_returns_tile_layout(self):
        config = WatermarkConfig(type=WatermarkType.FULLSCREEN, style=FullscreenStyle(content="WM"))
        layout = compute_layout(config, (1000, 800))
        assert isinstance(layout, TileLayout)
        assert layout.type is WatermarkType.FULLSCREEN
        assert layout.rotation == -45
        assert layout.grid.total_tiles > 0

    def test_image_tiles_use_supplied_size(self):
        style = FullscreenStyle(mode=FullscreenMode.IMAGE, image_scale=0.5)
        config = WatermarkConfig(type=WatermarkType.FULLSCREEN, style=style)
        layout = compute_layout(config, (1000, 800), (300, 100))
        assert (layout.drawable.width, layout.drawable.height) == (150, 50)

    def test_recorded_original_size_wins(self):
        style = FullscreenStyle(mode=FullscreenMode.IMAGE, image_scale=1,
                                image_original_width=40, image_original_height=20)
        config = WatermarkConfig(type=WatermarkType.FULLSCREEN, style=style)
        layout = compute_layout(config, (1000, 800), (300, 100))
        assert (layout.drawable.width, layout.drawable.height) == (40, 20)

"""Tests for pixel/proportion conversion."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from watermark_core.exceptions import InvalidProportionsError
from watermark_core.models import (
    AnchorPosition,
    OriginX,
    OriginY,
    PositionConfig,
    PositionMode,
    ProportionData,
    WatermarkPosition,
)
from watermark_core.positioning import calculate_anchor_position
from watermark_core.proportions import (
    apply_proportions,
    calculate_proportion_position,
    calculate_proportional_font_size,
    calculate_proportions,
    calculate_unified_scale,
    convert_pixel_to_proportion,
    convert_proportion_to_pixel,
    create_default_proportions,
    validate_proportions,
)

pytestmark = pytest.mark.unit

valid_proportions = st.builds(
    ProportionData,
    scale_x_percent=st.floats(min_value=0.01, max_value=1),
    scale_y_percent=st.floats(min_value=0.01, max_value=1),
    offset_x_percent=st.floats(min_value=-1, max_value=1),
    offset_y_percent=st.floats(min_value=-1, max_value=1),
)


def test_calculate_proportions_converts_percentage_offsets():
    position = PositionConfig(offset_x=10, offset_y=-5)
    p = calculate_proportions(position, 1000, 500, 200, 50)
    assert p.scale_x_percent == pytest.approx(0.2)
    assert p.scale_y_percent == pytest.approx(0.1)
    assert p.offset_x_percent == pytest.approx(0.1)
    assert p.offset_y_percent == pytest.approx(-0.05)


def test_apply_proportions():
    pixels = apply_proportions(ProportionData(0.2, 0.1, 0.1, 0), 1920, 1080)
    assert (pixels.width, pixels.height) == (384, 108)
    assert pixels.font_size == 86
    assert (pixels.offset_x, pixels.offset_y) == (192, 0)
    assert (pixels.x, pixels.y) == (0, 0)


@given(valid_proportions, st.integers(min_value=1000, max_value=8000), st.integers(min_value=1000, max_value=8000))
def test_proportion_round_trip(p, width, height):
    pixels = apply_proportions(p, width, height)
    recovered = calculate_proportions(PositionConfig(), width, height, pixels.width, pixels.height)
    assert recovered.scale_x_percent == pytest.approx(p.scale_x_percent, abs=1e-3)
    assert recovered.scale_y_percent == pytest.approx(p.scale_y_percent, abs=1e-3)


@pytest.mark.parametrize(
    "proportions,valid",
    [
        (ProportionData(), True),
        (ProportionData(1, 1, -1, 1), True),
        (ProportionData(0, 0.1, 0, 0), False),
        (ProportionData(1.5, 0.1, 0, 0), False),
        (ProportionData(0.2, 0.1, 1.2, 0), False),
        (ProportionData(0.2, 0.1, 0, -1.01), False),
        (None, False),
    ],
)
def test_validate_proportions(proportions, valid):
    assert validate_proportions(proportions) is valid


def test_default_proportions():
    assert create_default_proportions() == ProportionData(0.2, 0.1, 0, 0)


def test_convert_pixel_to_proportion():
    position = convert_pixel_to_proportion(PositionConfig(), (1000, 500), (200, 50))
    assert position.mode is PositionMode.PROPORTION
    assert position.position is WatermarkPosition.BOTTOM_RIGHT
    assert position.proportions.scale_x_percent == pytest.approx(0.2)
    assert position.proportions.scale_y_percent == pytest.approx(0.1)


def test_convert_proportion_to_pixel():
    position = PositionConfig(mode=PositionMode.PROPORTION, position="top-left",
                              proportions=ProportionData(0.2, 0.1, 0.05, 0))
    pixel = convert_proportion_to_pixel(position, (800, 600))
    assert pixel.mode is PositionMode.PIXEL
    assert pixel.position is WatermarkPosition.TOP_LEFT
    assert pixel.offset_x == pytest.approx(5)
    assert pixel.offset_y == 0
    assert (pixel.margin_x, pixel.margin_y) == (20, 20)
    assert pixel.proportions is None


def test_convert_invalid_proportions_raises():
    position = PositionConfig(mode=PositionMode.PROPORTION, proportions=ProportionData(2, 0.1, 0, 0))
    with pytest.raises(InvalidProportionsError):
        convert_proportion_to_pixel(position, (800, 600))
    with pytest.raises(InvalidProportionsError):
        calculate_proportion_position(PositionConfig(mode=PositionMode.PROPORTION), 800, 600)


def test_proportion_position_reuses_grid_anchor():
    position = PositionConfig(mode=PositionMode.PROPORTION, position="bottom-right",
                              proportions=ProportionData(0.2, 0.1, 0.1, 0))
    placed = calculate_proportion_position(position, 800, 600, margin=20)
    assert placed.anchor.anchor_x == pytest.approx(860)
    assert placed.anchor.anchor_y == pytest.approx(580)
    assert (placed.origin.origin_x, placed.origin.origin_y) == (OriginX.RIGHT, OriginY.BOTTOM)
    assert (placed.pixels.width, placed.pixels.height) == (160, 60)


def test_proportion_position_custom_uses_raw_coordinates():
    position = PositionConfig(mode=PositionMode.PROPORTION, position="custom", x=33, y=44,
                              proportions=ProportionData())
    placed = calculate_proportion_position(position, 800, 600)
    assert placed.anchor == AnchorPosition(33, 44)


def test_unified_scale_and_font_size():
    assert calculate_unified_scale(1000, 500, 500, 500) == 0.5
    assert calculate_proportional_font_size(1000, 2000, 24) == 48


def test_offset_round_trip_keeps_canvas_percentages():
    # offsets are percentages of the canvas in both position modes
    position = PositionConfig(position="top-left", offset_x=10, offset_y=-5)
    proportions = calculate_proportions(position, 800, 600, 160, 60)
    assert proportions.offset_x_percent == pytest.approx(0.1)
    assert proportions.offset_y_percent == pytest.approx(-0.05)

    as_proportion = PositionConfig(mode=PositionMode.PROPORTION, position="top-left", proportions=proportions)
    back = convert_proportion_to_pixel(as_proportion, (1600, 1200))
    assert back.offset_x == pytest.approx(10)
    assert back.offset_y == pytest.approx(-5)

    # both modes shift the anchor by the same number of pixels
    pixel_anchor = calculate_anchor_position(800, 600, "top-left", 20, 10, -5)
    placed = calculate_proportion_position(as_proportion, 800, 600, margin=20)
    assert placed.anchor.anchor_x == pytest.approx(pixel_anchor.anchor_x)
    assert placed.anchor.anchor_y == pytest.approx(pixel_anchor.anchor_y)
    assert (pixel_anchor.anchor_x, pixel_anchor.anchor_y) == (pytest.approx(100), pytest.approx(-10))


@given(
    offset_x=st.floats(min_value=-100, max_value=100),
    offset_y=st.floats(min_value=-100, max_value=100),
    width=st.integers(min_value=10, max_value=5000),
    height=st.integers(min_value=10, max_value=5000),
)
def test_offset_round_trip_any_canvas(offset_x, offset_y, width, height):
    position = PositionConfig(offset_x=offset_x, offset_y=offset_y)
    proportions = calculate_proportions(position, width, height, 10, 10)
    back = convert_proportion_to_pixel(
        PositionConfig(mode=PositionMode.PROPORTION, proportions=proportions), (width, height))
    assert back.offset_x == pytest.approx(offset_x, abs=1e-9)
    assert back.offset_y == pytest.approx(offset_y, abs=1e-9)

# watermark_core/proportions.py
"""
像素 ↔ 比例 换算

比例模式下水印的尺寸与偏移都记录为相对画布宽/高的比例, 同一份
ProportionData 应用到任意尺寸的图片上都能得到相同的相对位置。
"""
import dataclasses
from dataclasses import dataclass

from .defaults import DEFAULTS, round_half_up
from .exceptions import InvalidProportionsError
from .models import (
    AnchorPosition,
    ImageDimensions,
    OriginAlignment,
    PixelData,
    PositionConfig,
    PositionMode,
    ProportionData,
    Size,
)
from .positioning import calculate_anchor_position, get_origin_from_position


@dataclass(frozen=True)
class ProportionPosition:
    anchor: AnchorPosition
    origin: OriginAlignment
    pixels: PixelData


def calculate_proportions(position, canvas_width, canvas_height, watermark_width, watermark_height):
    """
    从当前像素配置计算相对比例

    position.offset_x / offset_y 是画布百分比, 先换算成像素偏移再除以画布尺寸。
    """
    dims = ImageDimensions(canvas_width, canvas_height)
    pixel_offset_x = (position.offset_x or 0) / 100 * dims.width
    pixel_offset_y = (position.offset_y or 0) / 100 * dims.height
    return ProportionData(
        scale_x_percent=watermark_width / dims.width,
        scale_y_percent=watermark_height / dims.height,
        offset_x_percent=pixel_offset_x / dims.width,
        offset_y_percent=pixel_offset_y / dims.height,
    )


def apply_proportions(proportions, new_width, new_height):
    """把比例应用到新尺寸的图片, 返回像素数据; x/y 留给位置计算确定"""
    dims = ImageDimensions(new_width, new_height)
    return PixelData(
        x=0,
        y=0,
        width=round_half_up(dims.width * proportions.scale_x_percent),
        height=round_half_up(dims.height * proportions.scale_y_percent),
        # 字号按高度比例推算, 0.8 是经验系数
        font_size=round_half_up(dims.height * proportions.scale_y_percent
                                * DEFAULTS["proportion_font_factor"]),
        offset_x=round_half_up(dims.width * proportions.offset_x_percent),
        offset_y=round_half_up(dims.height * proportions.offset_y_percent),
    )


def validate_proportions(proportions):
    """scale 必须在 (0, 1], offset 必须在 [-1, 1]; 不合法的数据不能被应用"""
    if proportions is None:
        return False
    return (
        0 < proportions.scale_x_percent <= 1
        and 0 < proportions.scale_y_percent <= 1
        and abs(proportions.offset_x_percent) <= 1
        and abs(proportions.offset_y_percent) <= 1
    )


def create_default_proportions():
    """默认占画布宽 20%、高 10%, 无偏移"""
    return ProportionData()


def convert_pixel_to_proportion(position, reference_size, watermark_size):
    """像素模式位置配置 → 比例模式位置配置"""
    reference = Size.of(reference_size)
    watermark = Size.of(watermark_size)
    proportions = calculate_proportions(position, reference.width, reference.height,
                                        watermark.width, watermark.height)
    return dataclasses.replace(position, mode=PositionMode.PROPORTION, proportions=proportions)


def convert_proportion_to_pixel(position, target_size):
    """比例模式位置配置 → 像素模式位置配置(边距恢复为默认值)"""
    if not validate_proportions(position.proportions):
        raise InvalidProportionsError(position.proportions)
    target = Size.of(target_size)
    pixels = apply_proportions(position.proportions, target.width, target.height)
    defaults = PositionConfig()
    return PositionConfig(
        mode=PositionMode.PIXEL,
        position=position.position,
        x=pixels.x,
        y=pixels.y,
        margin_x=defaults.margin_x,
        margin_y=defaults.margin_y,
        margin_percent=defaults.margin_percent,
        offset_x=position.proportions.offset_x_percent * 100,
        offset_y=position.proportions.offset_y_percent * 100,
    )


def calculate_proportion_position(position, canvas_width, canvas_height,
                                  margin=DEFAULTS["anchor_margin"]):
    """
    比例模式下的实际位置, 复用九宫格锚点逻辑

    返回:
        ProportionPosition(锚点, 对齐方式, 像素数据)
    """
    proportions = position.proportions
    if not validate_proportions(proportions):
        raise InvalidProportionsError(proportions)
    pixels = apply_proportions(proportions, canvas_width, canvas_height)
    anchor = calculate_anchor_position(
        canvas_width, canvas_height, position.position, margin,
        proportions.offset_x_percent * 100, proportions.offset_y_percent * 100,
        position.x, position.y,
    )
    return ProportionPosition(anchor, get_origin_from_position(position.position), pixels)


def calculate_unified_scale(source_width, source_height, target_width, target_height):
    """等比缩放系数, 取宽高缩放中较小者"""
    return min(target_width / source_width, target_height / source_height)


def calculate_proportional_font_size(base_height, target_height, base_font_size):
    """按画布高度比例换算字号"""
    return round_half_up(base_font_size * target_height / base_height)

# watermark_core/scaling.py
"""
自适应尺寸计算

根据缩放模式把水印配置 + 图片尺寸换算成具体的像素尺寸
(字号或宽高, 以及边距)。percentage 与 adaptive 是同一算法的两个名字。
"""
import logging

from .defaults import DEFAULTS, clamp, default_if_unset, round_half_up
from .models import (
    ImageDimensions,
    ScaleMode,
    ScalingResult,
    Size,
    WatermarkType,
)
from .readability import resolve_base_dimension, resolve_size_limits

logger = logging.getLogger(__name__)


def calculate_adaptive_watermark_size(config, image_dimensions, original_watermark_size=None):
    """
    计算水印在指定图片上的最终尺寸

    参数:
        config: WatermarkConfig
        image_dimensions: ImageDimensions 或 (w, h)
        original_watermark_size: 图片水印的原始尺寸, 文字水印可省略

    返回:
        ScalingResult
    """
    dims = ImageDimensions.of(image_dimensions)
    original = Size.of(original_watermark_size)

    if config.scale_mode == ScaleMode.FIXED:
        result = _calculate_fixed_scaling(config, dims, original)
    else:
        result = _calculate_percentage_scaling(config, dims, original)

    if result.is_fallback:
        logger.warning(
            "using fallback watermark size %sx%s for %s watermark on %sx%s image "
            "(original size given: %s)",
            result.width, result.height, config.type.value,
            dims.width, dims.height, original is not None,
        )
    else:
        logger.debug("scaled %s watermark on %sx%s image: %s",
                     config.type.value, dims.width, dims.height, result)
    return result


def _percentage_margins(dims, margin_ratio):
    return (round_half_up(dims.width * margin_ratio),
            round_half_up(dims.height * margin_ratio))


def _calculate_percentage_scaling(config, dims, original):
    adaptive = config.adaptive
    scale_ratio = default_if_unset(adaptive.scale_ratio, "scale_ratio")
    margin_ratio = default_if_unset(adaptive.margin_ratio, "margin_ratio")

    base_dimension = resolve_base_dimension(dims.width, dims.height, adaptive.base_on)
    margin_x, margin_y = _percentage_margins(dims, margin_ratio)

    if config.type == WatermarkType.TEXT:
        min_size, max_size = resolve_size_limits(adaptive, dims.width, dims.height)
        font_size = round_half_up(base_dimension * scale_ratio)
        # 先保证下限再截断上限, 小图上限低于下限时以上限为准
        font_size = clamp(font_size, min_size, max_size)

        text_length = config.style.text_length
        return ScalingResult(
            font_size=font_size,
            width=round_half_up(font_size * text_length * DEFAULTS["char_width_factor"]),
            height=font_size,
            scale_x=1,
            scale_y=1,
            margin_x=margin_x,
            margin_y=margin_y,
        )

    if config.type == WatermarkType.IMAGE and original is not None:
        target_width = base_dimension * scale_ratio
        scale = target_width / original.width
        return ScalingResult(
            width=round_half_up(original.width * scale),
            height=round_half_up(original.height * scale),
            scale_x=scale,
            scale_y=scale,
            margin_x=margin_x,
            margin_y=margin_y,
        )

    fallback = round_half_up(base_dimension * scale_ratio)
    return ScalingResult(
        width=fallback,
        height=fallback,
        scale_x=1,
        scale_y=1,
        margin_x=margin_x,
        margin_y=margin_y,
        is_fallback=True,
    )


def _fixed_margins(dims, margin_ratio):
    if margin_ratio:
        return _percentage_margins(dims, margin_ratio)
    return DEFAULTS["fixed_margin"], DEFAULTS["fixed_margin"]


def _calculate_fixed_scaling(config, dims, original):
    margin_x, margin_y = _fixed_margins(dims, config.adaptive.margin_ratio)

    if config.type == WatermarkType.TEXT:
        style = config.style
        font_size = style.font_size
        return ScalingResult(
            font_size=font_size,
            width=round_half_up(font_size * style.text_length * DEFAULTS["char_width_factor"]),
            height=font_size,
            scale_x=1,
            scale_y=1,
            margin_x=margin_x,
            margin_y=margin_y,
        )

    if config.type == WatermarkType.IMAGE and original is not None:
        style = config.style
        return ScalingResult(
            width=style.width,
            height=style.height,
            scale_x=style.width / original.width,
            scale_y=style.height / original.height,
            margin_x=margin_x,
            margin_y=margin_y,
        )

    width, height = DEFAULTS["fixed_fallback_size"]
    return ScalingResult(
        width=width,
        height=height,
        scale_x=1,
        scale_y=1,
        margin_x=DEFAULTS["fixed_margin"],
        margin_y=DEFAULTS["fixed_margin"],
        is_fallback=True,
    )


def calculate_relative_position(absolute_position, image_dimensions):
    """像素坐标 (x, y) → 相对画布的比例 (x_percent, y_percent)"""
    dims = ImageDimensions.of(image_dimensions)
    x, y = absolute_position
    return x / dims.width, y / dims.height


def calculate_absolute_position(relative_position, image_dimensions):
    """相对比例 → 像素坐标(取整)"""
    dims = ImageDimensions.of(image_dimensions)
    x_percent, y_percent = relative_position
    return round_half_up(x_percent * dims.width), round_half_up(y_percent * dims.height)

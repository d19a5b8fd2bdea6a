# watermark_core/readability.py
"""
可读性与缩放基准选择

根据图片宽高比选择缩放基准边, 根据图片面积给出字号上下限,
保证水印在不同尺寸的图片上都清晰可读。
"""
import math

from .defaults import DEFAULTS, round_half_up
from .models import BaseOn, ImageDimensions


def choose_base_dimension(width, height):
    """
    智能基准选择

    超宽图(宽高比 > 1.8)基于高度, 避免水印因图片太宽而过大;
    超高图(宽高比 < 0.6)基于宽度; 其余基于短边。
    """
    dims = ImageDimensions(width, height)
    ratio = dims.aspect_ratio
    if ratio > DEFAULTS["wide_aspect_ratio"]:
        return BaseOn.HEIGHT
    if ratio < DEFAULTS["tall_aspect_ratio"]:
        return BaseOn.WIDTH
    return BaseOn.SHORTER_EDGE


def readability_limits(width, height):
    """
    按图片面积计算字号上下限

    返回:
        (min_size, max_size)
    """
    dims = ImageDimensions(width, height)
    # 面积的平方根作为归一化因子
    scale_factor = math.sqrt(dims.area) / 1000
    min_size = max(DEFAULTS["readability_min_floor"],
                   round_half_up(scale_factor * DEFAULTS["readability_min_factor"]))
    max_size = min(DEFAULTS["readability_max_ceiling"],
                   round_half_up(scale_factor * DEFAULTS["readability_max_factor"]))
    return min_size, max_size


def resolve_base_dimension(width, height, base_on=None):
    """返回作为缩放基准的像素值; base_on 为空时使用智能选择"""
    if base_on is None:
        base_on = choose_base_dimension(width, height)
    if base_on == BaseOn.HEIGHT:
        return height
    if base_on == BaseOn.WIDTH:
        return width
    return min(width, height)


def resolve_size_limits(adaptive, width, height):
    """显式设置(> 0)的 min_size/max_size 优先, 否则使用可读性限制"""
    dynamic_min, dynamic_max = readability_limits(width, height)
    min_size = adaptive.min_size if adaptive.min_size and adaptive.min_size > 0 else dynamic_min
    max_size = adaptive.max_size if adaptive.max_size and adaptive.max_size > 0 else dynamic_max
    return min_size, max_size

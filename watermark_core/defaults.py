# watermark_core/defaults.py
"""
集中管理的默认值表

所有"未设置时使用 X"的规则都在这里登记一次, 各计算模块只通过
DEFAULTS 读取, 不在调用处散落 `or 20`、`?? 0.05` 之类的字面量。
"""
import math

DEFAULTS = {
    # 自适应缩放
    "scale_ratio": 0.05,            # 水印尺寸占基准边的比例
    "margin_ratio": 0.03,           # 边距占图片宽/高的比例
    "fixed_margin": 20,             # 固定模式下未设置边距比例时的像素边距
    "anchor_margin": 20,            # 锚点计算的默认边距
    "text_length": 4,               # 文字内容为空时的估算长度
    "char_width_factor": 0.6,       # 单字符宽度 ≈ 字号 * 0.6
    "fixed_fallback_size": (200, 60),

    # 可读性限制
    "wide_aspect_ratio": 1.8,       # 宽高比大于此值视为超宽图
    "tall_aspect_ratio": 0.6,       # 宽高比小于此值视为超高图
    "readability_min_floor": 12,
    "readability_max_ceiling": 200,
    "readability_min_factor": 8,
    "readability_max_factor": 60,

    # 比例模式
    "proportion_font_factor": 0.8,  # 字号 ≈ 水印框高度 * 0.8
    "default_proportions": (0.2, 0.1, 0.0, 0.0),

    # 全屏平铺
    "tile_spacing": 200,
    "tile_density": 0.5,
    "tile_font_size": 16,
    "tile_line_height_factor": 1.2,
    "tile_image_size": 100,
    "tile_image_scale": 1.0,
    "rotated_extra_spacing": 0.5,   # 旋转时额外增加 50% 间距

    # 批处理策略
    "adaptive_area_ratio": 10,
    "proportional_area_ratio": 3,
    "proportion_tolerance": 0.01,
}


def round_half_up(value):
    """四舍五入到整数, .5 一律向正无穷方向进位"""
    return int(math.floor(value + 0.5))


def clamp(value, lower, upper):
    return min(upper, max(lower, value))


def default_if_unset(value, key):
    """value 为 None 时返回默认值表中的 key"""
    return DEFAULTS[key] if value is None else value


def default_if_falsy(value, key):
    """value 为 None 或 0 时返回默认值表中的 key"""
    return value if value else DEFAULTS[key]


def normalize_config(raw):
    """
    把外部传入的配置规范化为 WatermarkConfig。

    参数:
        raw: WatermarkConfig 实例或 dict(例如从模板 JSON 读取)

    返回:
        WatermarkConfig, 所有缺失字段均已按默认值补齐
    """
    from .models import WatermarkConfig

    if isinstance(raw, WatermarkConfig):
        return raw
    return WatermarkConfig.from_dict(raw or {})

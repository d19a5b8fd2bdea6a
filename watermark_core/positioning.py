# watermark_core/positioning.py
"""
九宫格锚点与对齐方式计算

锚点(anchor)是水印参考点在画布上的坐标, 对齐方式(origin)说明水印
包围盒的哪个部位与锚点重合。两者与具体渲染库无关, 由渲染适配层
(见 watermark.py)换算为左上角坐标。
"""
from .defaults import DEFAULTS
from .exceptions import ConfigurationError
from .models import (
    AnchorPosition,
    ImageDimensions,
    OriginAlignment,
    OriginX,
    OriginY,
    WatermarkPosition,
    coerce_enum,
)

# 九宫格位置(按行排列)
POSITION_GRID = (
    WatermarkPosition.TOP_LEFT, WatermarkPosition.TOP_CENTER, WatermarkPosition.TOP_RIGHT,
    WatermarkPosition.MIDDLE_LEFT, WatermarkPosition.MIDDLE_CENTER, WatermarkPosition.MIDDLE_RIGHT,
    WatermarkPosition.BOTTOM_LEFT, WatermarkPosition.BOTTOM_CENTER, WatermarkPosition.BOTTOM_RIGHT,
)

POSITION_LABELS = {
    WatermarkPosition.TOP_LEFT: "左上",
    WatermarkPosition.TOP_CENTER: "上中",
    WatermarkPosition.TOP_RIGHT: "右上",
    WatermarkPosition.MIDDLE_LEFT: "左中",
    WatermarkPosition.MIDDLE_CENTER: "中心",
    WatermarkPosition.MIDDLE_RIGHT: "右中",
    WatermarkPosition.BOTTOM_LEFT: "左下",
    WatermarkPosition.BOTTOM_CENTER: "下中",
    WatermarkPosition.BOTTOM_RIGHT: "右下",
    WatermarkPosition.CUSTOM: "自定义",
}

_ORIGIN_MAP = {
    WatermarkPosition.TOP_LEFT: (OriginX.LEFT, OriginY.TOP),
    WatermarkPosition.TOP_CENTER: (OriginX.CENTER, OriginY.TOP),
    WatermarkPosition.TOP_RIGHT: (OriginX.RIGHT, OriginY.TOP),
    WatermarkPosition.MIDDLE_LEFT: (OriginX.LEFT, OriginY.CENTER),
    WatermarkPosition.MIDDLE_CENTER: (OriginX.CENTER, OriginY.CENTER),
    WatermarkPosition.MIDDLE_RIGHT: (OriginX.RIGHT, OriginY.CENTER),
    WatermarkPosition.BOTTOM_LEFT: (OriginX.LEFT, OriginY.BOTTOM),
    WatermarkPosition.BOTTOM_CENTER: (OriginX.CENTER, OriginY.BOTTOM),
    WatermarkPosition.BOTTOM_RIGHT: (OriginX.RIGHT, OriginY.BOTTOM),
    WatermarkPosition.CUSTOM: (OriginX.LEFT, OriginY.TOP),
}


def is_valid_grid_position(position):
    try:
        coerce_enum(WatermarkPosition, position, "position")
    except ConfigurationError:
        return False
    return True


def get_origin_from_position(position):
    """九宫格位置 → 对齐方式, custom 默认左上"""
    position = coerce_enum(WatermarkPosition, position, "position")
    origin_x, origin_y = _ORIGIN_MAP[position]
    return OriginAlignment(origin_x, origin_y)


def is_edge_position(position):
    """
    所有九宫格位置都完全贴边, 不附带默认边距;
    需要间距时通过百分比偏移量自行调整。
    """
    position = coerce_enum(WatermarkPosition, position, "position")
    return position is not WatermarkPosition.CUSTOM


def calculate_anchor_position(canvas_width, canvas_height, position,
                              margin=DEFAULTS["anchor_margin"],
                              offset_x=0, offset_y=0, x=0, y=0):
    """
    计算九宫格锚点

    参数:
        canvas_width, canvas_height: 画布尺寸
        position: 九宫格位置
        margin: 边距(像素)
        offset_x, offset_y: 偏移量, 单位是画布宽/高的百分比
        x, y: custom 位置使用的原始像素坐标

    返回:
        AnchorPosition
    """
    dims = ImageDimensions(canvas_width, canvas_height)
    position = coerce_enum(WatermarkPosition, position, "position")

    if position is WatermarkPosition.CUSTOM:
        return AnchorPosition(x, y)

    # 百分比偏移转换为像素
    pixel_offset_x = (offset_x / 100) * dims.width
    pixel_offset_y = (offset_y / 100) * dims.height

    column = position.value.split("-")[1]
    if column == "left":
        anchor_x = margin + pixel_offset_x
    elif column == "center":
        anchor_x = dims.width / 2 + pixel_offset_x
    else:
        anchor_x = dims.width - margin + pixel_offset_x

    row = position.value.split("-")[0]
    if row == "top":
        anchor_y = margin + pixel_offset_y
    elif row == "middle":
        anchor_y = dims.height / 2 + pixel_offset_y
    else:
        anchor_y = dims.height - margin + pixel_offset_y

    return AnchorPosition(anchor_x, anchor_y)


def calculate_edge_aligned_anchor_position(canvas_width, canvas_height, position,
                                           margin=DEFAULTS["anchor_margin"],
                                           offset_x=0, offset_y=0, x=0, y=0):
    """与 calculate_anchor_position 相同, 但边缘位置强制 margin=0, 精确贴边"""
    effective_margin = 0 if is_edge_position(position) else margin
    return calculate_anchor_position(canvas_width, canvas_height, position,
                                     effective_margin, offset_x, offset_y, x, y)


def calculate_grid_position_info(canvas_width, canvas_height, position,
                                 margin=DEFAULTS["anchor_margin"], offset_x=0, offset_y=0):
    """锚点 + 对齐方式 + 输入参数, 合并为一个 dict"""
    anchor = calculate_anchor_position(canvas_width, canvas_height, position,
                                       margin, offset_x, offset_y)
    origin = get_origin_from_position(position)
    return {
        "anchor_x": anchor.anchor_x,
        "anchor_y": anchor.anchor_y,
        "origin_x": origin.origin_x,
        "origin_y": origin.origin_y,
        "position": coerce_enum(WatermarkPosition, position, "position"),
        "margin": margin,
        "offset_x": offset_x,
        "offset_y": offset_y,
    }


def origin_to_top_left(anchor, origin, width, height):
    """
    把锚点 + 对齐方式换算为包围盒左上角坐标

    返回:
        (left, top)
    """
    left = anchor.anchor_x
    if origin.origin_x is OriginX.CENTER:
        left -= width / 2
    elif origin.origin_x is OriginX.RIGHT:
        left -= width

    top = anchor.anchor_y
    if origin.origin_y is OriginY.CENTER:
        top -= height / 2
    elif origin.origin_y is OriginY.BOTTOM:
        top -= height
    return left, top


def calculate_stroke_settings(stroke, scale=1.0, render_mode="canvas",
                              scaled_font_size=None, base_font_size=None):
    """
    计算描边宽度, 保证预览与导出一致

    优先级:
        1. 描边宽度与原始字号的比例 * 缩放后字号
        2. stroke.width_ratio * 缩放后字号
        3. stroke.width * 显示缩放比例

    render_mode 为 "canvas" 时返回双倍线宽(描边一半被填充覆盖, 实现向外描边);
    为 "object" 时返回原始宽度, 由渲染对象先画描边再画填充。
    """
    effective = None
    if scaled_font_size and base_font_size and base_font_size > 0:
        effective = stroke.width / base_font_size * scaled_font_size
    if not effective and stroke.width_ratio and scaled_font_size:
        effective = stroke.width_ratio * scaled_font_size
    base = effective if effective is not None else stroke.width * scale

    if render_mode == "canvas":
        return {"line_width": base * 2, "stroke_style": stroke.color}
    return {"stroke_width": base, "stroke": stroke.color, "paint_first": "stroke"}

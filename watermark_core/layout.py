# watermark_core/layout.py
"""
单张图片的水印布局

把缩放、锚点、比例、平铺几个计算模块串起来, 为渲染层给出
"在哪里、以多大尺寸、如何对齐"地绘制水印。
"""
import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional

from .exceptions import InvalidProportionsError
from .models import (
    AnchorPosition,
    FullscreenMode,
    ImageDimensions,
    OriginAlignment,
    PositionMode,
    ScalingResult,
    Size,
    WatermarkPosition,
    WatermarkType,
)
from .positioning import (
    calculate_anchor_position,
    calculate_edge_aligned_anchor_position,
    get_origin_from_position,
    origin_to_top_left,
)
from .proportions import calculate_proportion_position, validate_proportions
from .scaling import calculate_adaptive_watermark_size
from .tiling import TileGrid, calculate_drawable_size, calculate_tile_grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WatermarkLayout:
    """文字/图片水印的布局"""
    type: WatermarkType
    canvas: ImageDimensions
    width: float
    height: float
    anchor: AnchorPosition
    origin: OriginAlignment
    rotation: float
    opacity: float
    scaling: ScalingResult
    font_size: Optional[int] = None

    @property
    def top_left(self):
        return origin_to_top_left(self.anchor, self.origin, self.width, self.height)


@dataclass(frozen=True)
class TileLayout:
    """全屏平铺水印的布局"""
    canvas: ImageDimensions
    grid: TileGrid
    drawable: Size
    rotation: float
    opacity: float

    type = WatermarkType.FULLSCREEN


def compute_layout(config, image_dimensions, original_watermark_size=None):
    """
    计算水印在一张图片上的布局

    参数:
        config: WatermarkConfig
        image_dimensions: ImageDimensions 或 (w, h)
        original_watermark_size: 图片水印的原始尺寸

    返回:
        WatermarkLayout 或 TileLayout(全屏水印)
    """
    dims = ImageDimensions.of(image_dimensions)

    if config.type == WatermarkType.FULLSCREEN:
        style = config.style
        original = Size.of(original_watermark_size)
        if style.mode == FullscreenMode.IMAGE and original is not None \
                and not (style.image_original_width and style.image_original_height):
            # 样式中未记录原图尺寸时, 用实际载入的水印图片尺寸
            style = dataclasses.replace(style, image_original_width=original.width,
                                        image_original_height=original.height)
        return TileLayout(
            canvas=dims,
            grid=calculate_tile_grid(style, dims.width, dims.height),
            drawable=calculate_drawable_size(style),
            rotation=style.rotation or 0,
            opacity=style.opacity,
        )

    scaling = calculate_adaptive_watermark_size(config, dims, original_watermark_size)
    position = config.position
    width, height, font_size = scaling.width, scaling.height, scaling.font_size
    # 图片水印对边缘对齐更敏感, 始终精确贴边
    edge_aligned = config.type == WatermarkType.IMAGE

    if position.mode is PositionMode.PROPORTION:
        if not validate_proportions(position.proportions):
            raise InvalidProportionsError(position.proportions)
        placed = calculate_proportion_position(
            position, dims.width, dims.height,
            margin=0 if edge_aligned else scaling.margin_x,
        )
        anchor, origin = placed.anchor, placed.origin
        # 文字保持自适应字号, 比例只决定锚点; 图片水印按比例取宽高
        if config.type != WatermarkType.TEXT:
            width, height = placed.pixels.width, placed.pixels.height
    elif position.position is WatermarkPosition.CUSTOM:
        anchor = AnchorPosition(position.x, position.y)
        origin = get_origin_from_position(position.position)
    else:
        anchor_fn = calculate_edge_aligned_anchor_position if edge_aligned else calculate_anchor_position
        anchor = anchor_fn(dims.width, dims.height, position.position,
                           scaling.margin_x, position.offset_x, position.offset_y)
        origin = get_origin_from_position(position.position)

    layout = WatermarkLayout(
        type=config.type,
        canvas=dims,
        width=width,
        height=height,
        anchor=anchor,
        origin=origin,
        rotation=config.rotation or 0,
        opacity=config.opacity,
        scaling=scaling,
        font_size=font_size,
    )
    logger.debug("layout for %sx%s: %s", dims.width, dims.height, layout)
    return layout

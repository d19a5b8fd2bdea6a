# watermark_core/tiling.py
"""
全屏平铺几何

计算平铺单元尺寸(含旋转后的包围盒扩展)、覆盖画布所需的行列数,
以及对角线模式下的错位偏移。
"""
import logging
import math
from dataclasses import dataclass

from .defaults import DEFAULTS, default_if_falsy
from .models import FullscreenMode, ImageDimensions, Size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileGrid:
    tile_width: float
    tile_height: float
    rows: int
    cols: int
    offset_x: float
    offset_y: float

    @property
    def total_tiles(self):
        return self.rows * self.cols


def calculate_rotated_bounds(width, height, angle):
    """旋转 angle 度后的轴对齐包围盒尺寸"""
    radians = math.radians(angle)
    cos = abs(math.cos(radians))
    sin = abs(math.sin(radians))
    return Size(width * cos + height * sin, width * sin + height * cos)


def calculate_drawable_size(style):
    """
    单个平铺水印(未旋转)的尺寸

    图片模式: 原图尺寸 * image_scale; 文字模式按字号与字数估算。
    """
    if style.mode == FullscreenMode.IMAGE:
        original_width = default_if_falsy(style.image_original_width, "tile_image_size")
        original_height = default_if_falsy(style.image_original_height, "tile_image_size")
        scale = default_if_falsy(style.image_scale, "tile_image_scale")
        return Size(original_width * scale, original_height * scale)

    font_size = default_if_falsy(style.font_size, "tile_font_size")
    length = len(style.content) if style.content else DEFAULTS["text_length"]
    return Size(font_size * length * DEFAULTS["char_width_factor"],
                font_size * DEFAULTS["tile_line_height_factor"])


def calculate_tile_size(style, canvas_width, canvas_height):
    """
    计算平铺单元尺寸

    有旋转时使用旋转后的包围盒, 并额外增加 50% 间距, 避免相邻水印互相遮挡。
    """
    ImageDimensions(canvas_width, canvas_height)
    density = default_if_falsy(style.tile_density, "tile_density")
    spacing = default_if_falsy(style.tile_spacing, "tile_spacing")
    rotation = style.rotation or 0

    base = calculate_drawable_size(style)
    if rotation != 0:
        base = calculate_rotated_bounds(base.width, base.height, rotation)

    extra_spacing = spacing * DEFAULTS["rotated_extra_spacing"] if rotation != 0 else 0
    width = max(base.width + spacing + extra_spacing, spacing * density)
    height = max(base.height + spacing * 0.5 + extra_spacing, spacing * density * 0.5)
    return Size(width, height)


def calculate_diagonal_offset(tile_size, diagonal_mode):
    """对角线模式: 每隔一行错开半个单元宽度"""
    if not diagonal_mode:
        return 0, 0
    return tile_size.width / 2, 0


def calculate_tile_grid(style, canvas_width, canvas_height):
    """覆盖整张画布的平铺网格, 行列各多一格保证边缘不被截短"""
    tile = calculate_tile_size(style, canvas_width, canvas_height)
    offset_x, offset_y = calculate_diagonal_offset(tile, style.diagonal_mode)
    grid = TileGrid(
        tile_width=tile.width,
        tile_height=tile.height,
        rows=math.ceil(canvas_height / tile.height) + 1,
        cols=math.ceil(canvas_width / tile.width) + 1,
        offset_x=offset_x,
        offset_y=offset_y,
    )
    logger.debug("tile grid for %sx%s canvas: %s", canvas_width, canvas_height, grid)
    return grid


def fit_tile_grid(grid, estimated, measured, canvas_width, canvas_height):
    """
    按实际绘制尺寸修正平铺网格

    参数:
        grid: calculate_tile_grid 给出的网格
        estimated: 估算的绘制尺寸(已含旋转)
        measured: 实际渲染出的绘制尺寸(已含旋转)

    返回:
        实际尺寸不超过估算时原样返回 grid; 否则单元宽高按超出部分放大,
        原有间距保持不变, 行列数与错位偏移重新计算。
    """
    grow_x = max(0, measured.width - estimated.width)
    grow_y = max(0, measured.height - estimated.height)
    if not grow_x and not grow_y:
        return grid

    tile_width = grid.tile_width + grow_x
    tile_height = grid.tile_height + grow_y
    fitted = TileGrid(
        tile_width=tile_width,
        tile_height=tile_height,
        rows=math.ceil(canvas_height / tile_height) + 1,
        cols=math.ceil(canvas_width / tile_width) + 1,
        offset_x=tile_width / 2 if grid.offset_x else 0,
        offset_y=grid.offset_y,
    )
    logger.debug("rendered tile %sx%s exceeds estimate %sx%s, grid widened to %s",
                 measured.width, measured.height, estimated.width, estimated.height, fitted)
    return fitted


def iter_tile_origins(grid):
    """
    依次给出每个平铺单元的左上角坐标

    奇数行错位时整体左移一个单元宽度, 保证画布左边缘仍被覆盖。
    """
    for row in range(grid.rows):
        start_x = 0
        if row % 2 == 1 and grid.offset_x:
            start_x = grid.offset_x - grid.tile_width
        y = row * grid.tile_height + grid.offset_y
        for col in range(grid.cols):
            yield start_x + col * grid.tile_width, y

# watermark_core/watermark.py
from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont
import logging
import math

from .exceptions import RenderError
from .layout import TileLayout, compute_layout
from .defaults import default_if_falsy
from .models import AnchorPosition, FullscreenMode, OriginAlignment, OriginX, OriginY, Size, WatermarkType
from .positioning import calculate_stroke_settings, origin_to_top_left
from .tiling import calculate_rotated_bounds, fit_tile_grid, iter_tile_origins

logger = logging.getLogger(__name__)

DEFAULT_FONT_FILE = "DejaVuSans.ttf"


def load_font(font_path, font_size):
    """
    载入字体

    font_path 为空时尝试系统中的 DejaVuSans, 找不到则使用 Pillow 内置字体。
    显式指定的字体文件无法读取时抛出 RenderError。
    """
    font_size = max(1, int(round(font_size)))
    if font_path:
        try:
            return ImageFont.truetype(font_path, font_size)
        except OSError as e:
            raise RenderError(f"cannot load font {font_path}", e) from e
    try:
        return ImageFont.truetype(DEFAULT_FONT_FILE, font_size)
    except OSError:
        return ImageFont.load_default(size=font_size)


def to_rgba(color, alpha=255):
    """'#RRGGBB' 或 RGB/RGBA 元组 → RGBA 元组"""
    if isinstance(color, str):
        color = ImageColor.getrgb(color)
    return (*color[:3], alpha)


def apply_opacity(img, opacity):
    """按 opacity(0..1) 缩放 alpha 通道"""
    img = img.convert("RGBA")
    if opacity >= 1:
        return img
    alpha = img.getchannel("A").point(lambda a: int(a * max(0.0, opacity)))
    img.putalpha(alpha)
    return img


def rotate_drawable(img, rotation):
    """顺时针旋转 rotation 度, 画布扩展以容纳整个水印"""
    if not rotation:
        return img
    # PIL 的正角度是逆时针
    return img.rotate(-rotation, expand=True, resample=Image.BICUBIC)


def create_text_watermark_image(
    text,
    font_path=None,
    font_size=64,
    color=(255, 255, 255, 255),
    opacity=1.0,        # 0..1
    stroke_width=0,
    stroke_fill=(0, 0, 0, 255),
    shadow_offset=(0, 0),
    shadow_blur=0,
    shadow_color=(0, 0, 0, 255),
    bold=False,
):
    """
    返回一个透明背景的 RGBA Image, 包含绘制好的文字(含描边和阴影)。
    font_path: 指向 ttf 文件的路径(若 None, 使用默认字体)
    color, stroke_fill, shadow_color: '#RRGGBB' 或 RGB/RGBA 元组
    opacity: 整个水印的不透明度(0..1)
    """
    font = load_font(font_path, font_size)
    stroke_width = max(0, int(math.ceil(stroke_width)))

    # 临时画板测量
    dummy = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
    draw = ImageDraw.Draw(dummy)
    bbox = draw.multiline_textbbox((0, 0), text, font=font, stroke_width=stroke_width)
    w = bbox[2] - bbox[0]
    h = bbox[3] - bbox[1]
    pad = stroke_width + int(math.ceil(shadow_blur)) * 2
    canvas_w = max(1, w + abs(int(shadow_offset[0])) + pad * 2)
    canvas_h = max(1, h + abs(int(shadow_offset[1])) + pad * 2)

    canvas = Image.new("RGBA", (canvas_w, canvas_h), (0, 0, 0, 0))
    # 文字包围盒的左上角对齐到 pad, 阴影向负方向偏移时整体右移/下移
    x = pad - bbox[0] + max(0, -int(shadow_offset[0]))
    y = pad - bbox[1] + max(0, -int(shadow_offset[1]))

    fill_color = to_rgba(color)
    stroke_color = to_rgba(stroke_fill)

    # 绘制阴影
    if shadow_blur > 0 or any(shadow_offset):
        shadow_layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        sd = ImageDraw.Draw(shadow_layer)
        sd.multiline_text((x + shadow_offset[0], y + shadow_offset[1]), text, font=font,
                          fill=to_rgba(shadow_color, int(255 * 0.7)))
        if shadow_blur > 0:
            shadow_layer = shadow_layer.filter(ImageFilter.GaussianBlur(radius=shadow_blur))
        canvas = Image.alpha_composite(canvas, shadow_layer)

    draw = ImageDraw.Draw(canvas)
    if bold:
        # 模拟粗体: 在 1px 邻域内重复绘制
        for dx in range(-1, 2):
            for dy in range(-1, 2):
                draw.multiline_text((x + dx, y + dy), text, font=font, fill=fill_color,
                                    stroke_width=stroke_width, stroke_fill=stroke_color)
    else:
        draw.multiline_text((x, y), text, font=font, fill=fill_color,
                            stroke_width=stroke_width, stroke_fill=stroke_color)

    return apply_opacity(canvas, opacity)  # RGBA image


def text_drawable_for(style, font_size):
    """按 TextStyle 和计算后的字号生成文字水印图"""
    stroke_width = 0
    stroke_fill = (0, 0, 0, 255)
    if style.stroke:
        settings = calculate_stroke_settings(
            style.stroke, render_mode="object",
            scaled_font_size=font_size, base_font_size=style.font_size,
        )
        stroke_width = settings["stroke_width"]
        stroke_fill = style.stroke.color

    shadow = style.shadow
    return create_text_watermark_image(
        style.content,
        font_path=style.font_path,
        font_size=font_size,
        color=style.color,
        opacity=style.opacity,
        stroke_width=stroke_width,
        stroke_fill=stroke_fill,
        shadow_offset=(shadow.offset_x, shadow.offset_y) if shadow else (0, 0),
        shadow_blur=shadow.blur if shadow else 0,
        shadow_color=shadow.color if shadow else (0, 0, 0, 255),
        bold=style.font_weight in ("bold", "700", "800", "900"),
    )


def image_drawable_for(watermark_img, width, height, opacity):
    """把水印图片缩放到布局给出的尺寸并应用不透明度"""
    if watermark_img is None:
        raise RenderError("image watermark requires a watermark image")
    size = (max(1, int(round(width))), max(1, int(round(height))))
    resized = watermark_img.convert("RGBA").resize(size, Image.LANCZOS)
    return apply_opacity(resized, opacity)


def _paste(layer, drawable, left, top):
    """按 alpha 合成到 layer, 超出左/上边界的部分裁掉"""
    left, top = int(round(left)), int(round(top))
    source = (max(0, -left), max(0, -top))
    dest = (max(0, left), max(0, top))
    if source[0] >= drawable.width or source[1] >= drawable.height:
        return
    if dest[0] >= layer.width or dest[1] >= layer.height:
        return
    layer.alpha_composite(drawable, dest=dest, source=source)


def _render_single(layer, config, layout, watermark_img):
    if config.type == WatermarkType.TEXT:
        drawable = text_drawable_for(config.style, layout.font_size or config.style.font_size)
    else:
        drawable = image_drawable_for(watermark_img, layout.width, layout.height, layout.opacity)
    drawable = rotate_drawable(drawable, layout.rotation)

    # 用实际绘制出的尺寸换算左上角, 保证贴边位置不越界
    left, top = origin_to_top_left(layout.anchor, layout.origin, drawable.width, drawable.height)
    _paste(layer, drawable, left, top)


def tile_cell_for(config, layout, watermark_img=None):
    """
    生成一个平铺单元图, 水印居中放置

    返回:
        (cell, grid): 实际渲染的水印比估算的更宽/更高时(宽字形、中日韩文字),
        grid 按实际尺寸放大, cell 与 grid 的单元同尺寸, 水印不会被裁切。
    """
    style = config.style
    if style.mode == FullscreenMode.IMAGE:
        drawable = image_drawable_for(watermark_img, layout.drawable.width,
                                      layout.drawable.height, style.opacity)
    else:
        drawable = create_text_watermark_image(
            style.content, font_path=style.font_path, font_size=default_if_falsy(style.font_size, "tile_font_size"),
            color=style.color, opacity=style.opacity,
        )
    drawable = rotate_drawable(drawable, layout.rotation)

    estimated = calculate_rotated_bounds(layout.drawable.width, layout.drawable.height, layout.rotation)
    grid = fit_tile_grid(layout.grid, estimated, Size(drawable.width, drawable.height),
                         layout.canvas.width, layout.canvas.height)
    cell = Image.new("RGBA", (int(math.ceil(grid.tile_width)), int(math.ceil(grid.tile_height))), (0, 0, 0, 0))
    centered = OriginAlignment(OriginX.CENTER, OriginY.CENTER)
    left, top = origin_to_top_left(AnchorPosition(cell.width / 2, cell.height / 2), centered,
                                   drawable.width, drawable.height)
    _paste(cell, drawable, left, top)
    return cell, grid


def _render_tiles(layer, config, layout, watermark_img):
    cell, grid = tile_cell_for(config, layout, watermark_img)
    count = 0
    for x, y in iter_tile_origins(grid):
        _paste(layer, cell, x, y)
        count += 1
    logger.debug("rendered %d tiles of %sx%s", count, cell.width, cell.height)


def render_watermark(base_img, config, layout=None, watermark_img=None):
    """
    把水印合成到 base_img 上, 返回新的 RGBA 图像(不修改 base_img)。

    layout 为空时按 base_img 的尺寸计算; 图片水印/图片平铺需要 watermark_img,
    为空时尝试从样式中的 image_path 读取。
    """
    if watermark_img is None:
        image_path = getattr(config.style, "image_path", None)
        if image_path:
            try:
                watermark_img = Image.open(image_path)
            except OSError as e:
                raise RenderError(f"cannot open watermark image {image_path}", e) from e

    if layout is None:
        original = watermark_img.size if watermark_img is not None else None
        layout = compute_layout(config, base_img.size, original)

    base = base_img.convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    if isinstance(layout, TileLayout):
        _render_tiles(layer, config, layout, watermark_img)
    else:
        _render_single(layer, config, layout, watermark_img)
    return Image.alpha_composite(base, layer)

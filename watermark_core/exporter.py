# watermark_core/exporter.py
from PIL import Image
import logging

from .image_io import open_image_fix_orientation
from .layout import compute_layout
from .watermark import render_watermark

logger = logging.getLogger(__name__)


def compose_watermark_on_image(
    src_path,
    dst_path,
    config,               # WatermarkConfig, 已按批处理策略调整
    watermark_img=None,   # 图片水印/图片平铺使用的 PIL.Image
    output_format='png',  # 'png' or 'jpeg'
    jpeg_quality=90,
    resize_to=None        # (w,h) 或 None
):
    """
    按 config 计算布局, 把水印合成到 src_path 上并保存。
    布局基于(可能缩放后的)输出图片尺寸计算, 因此同一配置在不同分辨率的
    图片上保持一致的视觉效果。

    返回:
        (dst_path, layout)
    """
    img = open_image_fix_orientation(src_path).convert('RGBA')

    if resize_to:
        img = img.resize(resize_to, Image.LANCZOS)

    original = watermark_img.size if watermark_img is not None else None
    layout = compute_layout(config, img.size, original)
    composed = render_watermark(img, config, layout, watermark_img)

    if output_format.lower() in ('jpg', 'jpeg'):
        rgb = composed.convert('RGB')
        rgb.save(dst_path, 'JPEG', quality=jpeg_quality, optimize=True)
    else:
        composed.save(dst_path, 'PNG', compress_level=6)

    logger.debug("saved %s (%sx%s)", dst_path, img.width, img.height)
    return dst_path, layout

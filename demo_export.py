# demo_export.py
import argparse
import logging
import pathlib

from PIL import Image

from watermark_core.batch_worker import run_batch
from watermark_core.logging_utils import configure_logging
from watermark_core.models import (
    PositionConfig,
    StrokeConfig,
    TextStyle,
    WatermarkConfig,
    WatermarkPosition,
    WatermarkType,
)

logger = logging.getLogger(__name__)

# 尺寸差异较大的一组示例图片
DEMO_SIZES = [(640, 480), (1920, 1080), (1080, 1920), (4000, 3000)]


def make_demo_images(src_dir, sizes=DEMO_SIZES):
    src_dir = pathlib.Path(src_dir)
    src_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for i, (w, h) in enumerate(sizes):
        path = src_dir / f"demo_{w}x{h}.png"
        Image.new("RGB", (w, h), (40 + i * 40, 90, 140)).save(path)
        paths.append(str(path))
    return paths


def demo(out_dir="out", text="© 2024", log_level="INFO", sizes=DEMO_SIZES, name_template=None):
    configure_logging(log_level)
    out = pathlib.Path(out_dir)
    paths = make_demo_images(out / "src", sizes)

    config = WatermarkConfig(
        type=WatermarkType.TEXT,
        style=TextStyle(
            content=text,
            color="#FFFFFF",
            opacity=0.8,
            stroke=StrokeConfig(color="#000000", width_ratio=0.05),
        ),
        position=PositionConfig(position=WatermarkPosition.BOTTOM_RIGHT),
    )

    def progress(done, total, success, message):
        logger.info("[%d/%d] %s %s", done, total, "ok" if success else "failed", message)

    results, strategy = run_batch(config, paths, out / "watermarked", progress_callback=progress,
                                  name_template=name_template)
    for r in results:
        print("Saved:" if r.success else "Failed:", r.dst_path or r.image.name)
    return results, strategy


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="批量添加自适应水印示例")
    parser.add_argument("--out", default="out")
    parser.add_argument("--text", default="© 2024")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--name-template", default=None, help="输出文件名模板, 如 {name}_{index:3}")
    args = parser.parse_args()
    demo(args.out, args.text, args.log_level, name_template=args.name_template)

# watermark_core/batch_worker.py
import concurrent.futures
import logging
import os
import pathlib
from dataclasses import dataclass
from typing import Optional

from .batch import adjust_watermark_for_image, optimize_batch_configuration
from .exceptions import BatchError, WatermarkError
from .exporter import compose_watermark_on_image
from .image_io import read_image_info
from .models import ImageDimensions, ImageInfo
from .renaming import check_template, parse_filename_template

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    image: ImageInfo
    success: bool
    dst_path: Optional[str] = None
    message: str = ''


def ensure_output_path(src_path, out_dir, prefix='', suffix='', ext=None,
                       name_template=None, index=1, reserved=()):
    """
    生成不与已有文件(及 reserved 中已分配的路径)重名的输出路径

    name_template 非空时按模板生成文件名(见 renaming.py), 忽略 prefix/suffix。
    """
    src = pathlib.Path(src_path)
    ext = ext or src.suffix
    if not ext.startswith('.'):
        ext = '.' + ext
    if name_template:
        stem = parse_filename_template(name_template, src.stem, index)
    else:
        stem = f"{prefix}{src.stem}{suffix}"
    dst = pathlib.Path(out_dir) / f"{stem}{ext}"
    # 如果文件存在或已被本批次占用，追加序号
    i = 1
    while dst.exists() or str(dst) in reserved:
        dst = pathlib.Path(out_dir) / f"{stem}_{i}{ext}"
        i += 1
    return str(dst)


def _as_image_info(item, validate=False):
    if isinstance(item, ImageInfo):
        # 尺寸不合法时尽早失败
        ImageDimensions.of(item)
        return item
    return read_image_info(item, validate=validate)


def run_batch(
    config,
    images,
    out_dir,
    watermark_img=None,
    max_workers=2,
    progress_callback=None,
    output_format='png',
    cancel_event=None,
    prefix='',
    suffix='_wm',
    name_template=None,
    validate=False,
):
    """
    images: ImageInfo 列表或图片路径列表(ImageInfo 需带 path)
    progress_callback(done, total, success, message)
    cancel_event: threading.Event, 置位后尚未开始的图片不再处理
    name_template: 输出文件名模板, 如 "{name}_{index:3}", {index} 为输入中的序号(从 1 开始)
    validate: 为 True 时路径输入先做文件校验(格式、大小、像素尺寸)

    无法读取的图片记为失败结果, 不影响其余图片; 缩放策略只按可读取的图片选择。
    返回 (BatchResult 列表(与 images 顺序一致), 使用的缩放策略; 没有可读取的图片时为 None)
    """
    images = list(images)
    if not images:
        raise BatchError("batch contains no images")
    if name_template:
        check_template(name_template)

    total = len(images)
    results = [None] * total
    readable = []
    for idx, item in enumerate(images):
        try:
            readable.append((idx, _as_image_info(item, validate=validate)))
        except (WatermarkError, OSError, ValueError) as e:
            logger.error("cannot read %s: %s", item, e)
            if not isinstance(item, ImageInfo):
                item = ImageInfo(name=os.path.basename(str(item)), width=0, height=0, path=str(item))
            results[idx] = BatchResult(item, False, None, str(e))

    done = 0

    def report(result):
        nonlocal done
        done += 1
        if progress_callback:
            progress_callback(done, total, result.success, result.message)

    for result in results:
        if result is not None:
            report(result)

    if not readable:
        logger.error("batch finished: none of %d images could be read", total)
        return results, None

    optimization = optimize_batch_configuration(config, [info for _, info in readable])
    scaled = optimization.optimized_config
    ext = '.jpg' if output_format.lower() in ('jpg', 'jpeg') else '.png'
    out = pathlib.Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    # 先在主线程里分配好输出路径, 避免并发时重名
    tasks = []
    reserved = set()
    for idx, info in readable:
        dst = ensure_output_path(info.path or info.name, out, prefix, suffix, ext,
                                 name_template=name_template, index=idx + 1, reserved=reserved)
        reserved.add(dst)
        tasks.append((idx, info, dst))

    def worker(info, dst):
        if cancel_event is not None and cancel_event.is_set():
            return BatchResult(info, False, None, 'cancelled')
        if not info.path:
            return BatchResult(info, False, None, 'image has no source path')
        try:
            image_config = adjust_watermark_for_image(scaled, info)
            compose_watermark_on_image(
                info.path, dst, image_config,
                watermark_img=watermark_img,
                output_format=output_format,
            )
            return BatchResult(info, True, dst, '')
        except (WatermarkError, OSError, ValueError) as e:
            logger.error("failed to watermark %s: %s", info.path, e)
            return BatchResult(info, False, None, str(e))

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as ex:
        futures = {ex.submit(worker, info, dst): idx for idx, info, dst in tasks}
        for f in concurrent.futures.as_completed(futures):
            result = f.result()
            results[futures[f]] = result
            report(result)

    ok = sum(1 for r in results if r.success)
    logger.info("batch finished: %d/%d succeeded (%s scaling)", ok, total, optimization.strategy.value)
    return results, optimization.strategy

# watermark_core/image_io.py
from PIL import Image, ImageOps
from dataclasses import dataclass, field
from typing import List
import logging
import os

from .exceptions import InvalidDimensionsError, InvalidImageFileError
from .models import ImageInfo

logger = logging.getLogger(__name__)

SUPPORTED_EXTS = {'.jpg', '.jpeg', '.png', '.bmp', '.tif', '.tiff', '.webp'}

# 输入校验限制
MAX_FILE_SIZE = 50 * 1024 * 1024
MIN_FILE_SIZE = 1024
LARGE_FILE_SIZE = 10 * 1024 * 1024      # 超过时只给出警告
MAX_IMAGE_DIMENSION = 8000
MIN_IMAGE_DIMENSION = 10
HIGH_RESOLUTION_PIXELS = 16000000       # 16MP, 超过时只给出警告


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self):
        return not self.errors

    def extend(self, other):
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


def is_image_file(path):
    _, ext = os.path.splitext(str(path).lower())
    return ext in SUPPORTED_EXTS


def format_file_size(size):
    """字节数 → 便于阅读的字符串, 如 1.5 MB"""
    if size == 0:
        return "0 B"
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{round(value, 2):g} {unit}"
        value /= 1024
    return f"{round(value, 2):g} GB"


def validate_file_size(size):
    result = ValidationResult()
    if size > MAX_FILE_SIZE:
        result.errors.append(f"文件过大: {format_file_size(size)}, 最大支持 {format_file_size(MAX_FILE_SIZE)}")
    if size < MIN_FILE_SIZE:
        result.errors.append(f"文件过小: {format_file_size(size)}, 最小需要 {format_file_size(MIN_FILE_SIZE)}")
    if size > LARGE_FILE_SIZE:
        result.warnings.append(f"文件较大 ({format_file_size(size)}), 处理可能需要更长时间")
    return result


def validate_image_dimensions(width, height):
    result = ValidationResult()
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        result.errors.append(
            f"图片尺寸过大: {width}x{height}, 最大支持 {MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}")
    if width < MIN_IMAGE_DIMENSION or height < MIN_IMAGE_DIMENSION:
        result.errors.append(
            f"图片尺寸过小: {width}x{height}, 最小需要 {MIN_IMAGE_DIMENSION}x{MIN_IMAGE_DIMENSION}")
    if width * height > HIGH_RESOLUTION_PIXELS:
        result.warnings.append(f"图片分辨率很高 ({width}x{height}), 处理可能消耗较多资源")
    return result


def validate_image_file(path):
    """
    综合校验输入图片: 扩展名、文件大小, 通过后再读取像素尺寸。

    参数:
        path: 图片路径

    返回:
        ValidationResult, 错误和警告均为可直接展示的中文描述
    """
    result = ValidationResult()
    if not is_image_file(path):
        _, ext = os.path.splitext(str(path))
        result.errors.append(f"不支持的文件扩展名: {ext or '(无)'}")
    try:
        size = os.path.getsize(path)
    except OSError as e:
        result.errors.append(f"无法读取文件: {e}")
        return result
    result.extend(validate_file_size(size))
    if result.errors:
        return result

    try:
        with Image.open(path) as img:
            width, height = ImageOps.exif_transpose(img).size
    except (OSError, ValueError):
        result.errors.append("无法读取图片信息, 可能文件已损坏")
        return result
    result.extend(validate_image_dimensions(width, height))
    return result


def open_image_fix_orientation(path):
    img = Image.open(path)
    img = ImageOps.exif_transpose(img)  # 修正 EXIF 方向
    return img


def read_image_info(path, validate=False):
    """
    读取图片的(方向修正后的)尺寸, 生成 ImageInfo; 不保留像素数据。
    validate=True 时先做输入校验, 不通过抛出 InvalidImageFileError。
    """
    if validate:
        result = validate_image_file(path)
        if not result.is_valid:
            raise InvalidImageFileError(str(path), result.errors)
        for warning in result.warnings:
            logger.warning("%s: %s", path, warning)
    img = open_image_fix_orientation(path)
    width, height = img.size
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(width, height)
    return ImageInfo(name=os.path.basename(str(path)), width=width, height=height, path=str(path))


def scan_images(paths, validate=False):
    """
    过滤出支持的图片文件并读取信息, 保持输入顺序
    validate=True 时跳过未通过校验的文件并记录警告
    """
    infos = []
    for p in paths:
        if not is_image_file(p):
            continue
        try:
            infos.append(read_image_info(p, validate=validate))
        except InvalidImageFileError as e:
            logger.warning("skipping %s", e.message)
    return infos


def load_watermark_image(path):
    """载入图片水印, 统一为 RGBA"""
    return Image.open(path).convert('RGBA')


def generate_thumbnail(path, max_size=1024):
    img = open_image_fix_orientation(path)
    img.thumbnail((max_size, max_size), Image.LANCZOS)
    return img  # PIL.Image instance

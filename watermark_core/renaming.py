# watermark_core/renaming.py
"""
输出文件名模板

支持的变量(不区分大小写):
    {name}      原始文件名(不含扩展名)
    {index}     序号, 从 1 开始
    {index:N}   序号, 补零到 N 位
    {date}      当前日期 YYYY-MM-DD
    {time}      当前时间 HH-MM-SS
    {datetime}  日期时间 YYYY-MM-DD_HH-MM-SS
"""
import datetime
import re

from .exceptions import ConfigurationError

DEFAULT_FILENAME_TEMPLATE = "watermarked-{name}"

# Windows 和 Unix 文件名都不允许的字符
_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*]')
_PADDED_INDEX = re.compile(r"\{index:(\d+)\}", re.IGNORECASE)


def _replace(template, key, value):
    return re.sub(r"\{" + key + r"\}", lambda _: value, template, flags=re.IGNORECASE)


def sanitize_filename(name):
    return _ILLEGAL_CHARS.sub("_", name)


def parse_filename_template(template, original_name, index, now=None):
    """
    解析文件名模板

    参数:
        template: 模板字符串, 如 "{name}_{index:3}"
        original_name: 原始文件名(不含扩展名)
        index: 序号(从 1 开始)
        now: 用于 {date}/{time} 的时间, 默认当前时间

    返回:
        不含扩展名、已清理非法字符的文件名
    """
    now = now or datetime.datetime.now()
    date = now.strftime("%Y-%m-%d")
    time = now.strftime("%H-%M-%S")

    result = _replace(template, "name", original_name)
    result = _PADDED_INDEX.sub(lambda m: str(index).zfill(int(m.group(1))), result)
    result = _replace(result, "index", str(index))
    result = _replace(result, "datetime", f"{date}_{time}")
    result = _replace(result, "date", date)
    result = _replace(result, "time", time)
    return sanitize_filename(result)


def preview_filename(template, sample_name="example"):
    """用示例文件名预览模板效果"""
    return parse_filename_template(template, sample_name, 1)


def is_valid_template(template):
    """模板非空、大括号成对, 且解析结果非空"""
    if not template or not template.strip():
        return False
    if template.count("{") != template.count("}"):
        return False
    return bool(preview_filename(template).strip())


def check_template(template):
    """无效模板抛出 ConfigurationError"""
    if not is_valid_template(template):
        raise ConfigurationError(f"invalid filename template {template!r}")
    return template

# watermark_core/logging_utils.py
"""脚本入口共用的日志配置"""
import logging
import sys


def configure_logging(log_level, log_file=None, trace_mode=False):
    """
    配置根 logger 的输出

    参数:
        log_level: 数值级别或名称(如 "INFO")
        log_file: 额外写入的日志文件路径
        trace_mode: 为 True 时输出时间戳和 logger 名称

    返回:
        根 logger
    """
    if isinstance(log_level, int):
        resolved_level = log_level
    else:
        resolved_level = getattr(logging, str(log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    if trace_mode:
        formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
                                      datefmt="%Y-%m-%d %H:%M:%S")
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as exc:
            root_logger.warning("无法创建日志文件 %s: %s", log_file, exc)
        else:
            file_handler.setLevel(resolved_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.info("日志写入文件: %s", log_file)

    return root_logger

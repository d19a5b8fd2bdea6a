# watermark_core/exceptions.py
"""
水印引擎的异常类型

层级:
    WatermarkError
        ConfigurationError      配置不合法(类型与样式不匹配、未知枚举值)
        InvalidDimensionsError  图片尺寸为 0、负数或非有限值
        InvalidProportionsError 比例数据超出有效范围
        BatchError              批处理输入不合法(如空图片列表)
        RenderError             渲染适配层失败(字体、水印图片缺失等)
        InvalidImageFileError   输入图片文件未通过校验
"""


class WatermarkError(Exception):
    """所有水印引擎异常的基类"""

    def __init__(self, message, original_error=None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ConfigurationError(WatermarkError):
    """水印配置无法被解释"""


class InvalidDimensionsError(WatermarkError, ValueError):
    """图片或画布尺寸不合法"""

    def __init__(self, width, height):
        super().__init__(f"invalid image dimensions: {width}x{height}")
        self.width = width
        self.height = height


class InvalidProportionsError(WatermarkError, ValueError):
    """比例数据不满足 scale∈(0,1]、offset∈[-1,1]"""

    def __init__(self, proportions):
        super().__init__(f"invalid proportion data: {proportions!r}")
        self.proportions = proportions


class BatchError(WatermarkError):
    """批处理级别的输入错误"""


class RenderError(WatermarkError):
    """渲染适配层错误"""


class InvalidImageFileError(WatermarkError, ValueError):
    """输入图片文件未通过校验(格式、文件大小、像素尺寸)"""

    def __init__(self, path, errors):
        super().__init__(f"invalid image file {path}: " + "; ".join(errors))
        self.path = path
        self.errors = list(errors)

# watermark_core/models.py
"""
数据模型定义

配置类都是不可变的 dataclass; 字符串型的枚举继承 str, 可以直接写入 JSON。
WatermarkConfig 的样式字段是一个按 type 区分的联合类型:
text → TextStyle, image → ImageStyle, fullscreen → FullscreenStyle。
"""
from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from .defaults import DEFAULTS
from .exceptions import ConfigurationError, InvalidDimensionsError


class WatermarkType(str, Enum):
    """水印类型"""
    TEXT = "text"
    IMAGE = "image"
    FULLSCREEN = "fullscreen"


class ScaleMode(str, Enum):
    """缩放模式, adaptive 与 percentage 走同一套算法"""
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    ADAPTIVE = "adaptive"


class PositionMode(str, Enum):
    """位置模式: 像素 / 比例"""
    PIXEL = "pixel"
    PROPORTION = "proportion"


class WatermarkPosition(str, Enum):
    """九宫格位置"""
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_CENTER = "middle-center"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"
    CUSTOM = "custom"


class BaseOn(str, Enum):
    """缩放基准边"""
    WIDTH = "width"
    HEIGHT = "height"
    SHORTER_EDGE = "shorter-edge"


class OriginX(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class OriginY(str, Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class ScalingStrategy(str, Enum):
    """批处理缩放策略"""
    ADAPTIVE = "adaptive"
    PROPORTIONAL = "proportional"
    FIXED = "fixed"


class FullscreenMode(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class BlendMode(str, Enum):
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    SOFT_LIGHT = "soft-light"
    HARD_LIGHT = "hard-light"


def coerce_enum(enum_cls, value, field_name="value"):
    """把字符串转换为枚举成员, 无法识别时抛出 ConfigurationError"""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"unknown {field_name} {value!r}, expected one of: {allowed}", e) from e


def _set(obj, name, value):
    # frozen dataclass 只能在 __post_init__ 中通过 object.__setattr__ 赋值
    object.__setattr__(obj, name, value)


def _to_plain(value):
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


def _known_fields(cls, raw: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in dataclasses.fields(cls)}
    return {k: v for k, v in raw.items() if k in names}


class _DictMixin:
    """to_dict / from_dict, 未知字段忽略, 缺失字段使用默认值"""

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(self)

    @classmethod
    def from_dict(cls, raw):
        if raw is None:
            return cls()
        if isinstance(raw, cls):
            return raw
        return cls(**_known_fields(cls, raw))


# ---------------------------------------------------------------------------
# 尺寸与几何结果

def _check_dimensions(width, height):
    for v in (width, height):
        if isinstance(v, bool) or not isinstance(v, (int, float)) \
                or not math.isfinite(v) or v <= 0:
            raise InvalidDimensionsError(width, height)


@dataclass(frozen=True)
class ImageDimensions:
    """图片像素尺寸, 创建后不可修改"""
    width: float
    height: float

    def __post_init__(self):
        _check_dimensions(self.width, self.height)

    @property
    def area(self):
        return self.width * self.height

    @property
    def aspect_ratio(self):
        return self.width / self.height

    @classmethod
    def of(cls, value) -> "ImageDimensions":
        """接受 ImageDimensions、(w, h)、dict 或带 width/height 属性的对象"""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls(value.get("width"), value.get("height"))
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(value[0], value[1])
        if hasattr(value, "width") and hasattr(value, "height"):
            return cls(value.width, value.height)
        raise InvalidDimensionsError(getattr(value, "width", None), getattr(value, "height", None))


@dataclass(frozen=True)
class Size:
    """
    计算得到的宽高(绘制尺寸、旋转外接框等), 构造时不做校验。
    外部传入的尺寸一律经过 Size.of, 在那里校验。
    """
    width: float
    height: float

    @classmethod
    def of(cls, value) -> Optional["Size"]:
        """接受 Size、(w, h)、dict 或带 width/height 属性的对象; 宽高必须为正的有限数"""
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, dict):
            width, height = value.get("width"), value.get("height")
        elif isinstance(value, (tuple, list)) and len(value) == 2:
            width, height = value
        else:
            width, height = getattr(value, "width", None), getattr(value, "height", None)
        _check_dimensions(width, height)
        return cls(width, height)


@dataclass(frozen=True)
class ScalingResult:
    width: float
    height: float
    scale_x: float
    scale_y: float
    margin_x: int
    margin_y: int
    font_size: Optional[int] = None
    # 为 True 时表示输入不完整, 返回的是兜底估算值
    is_fallback: bool = False


@dataclass(frozen=True)
class ProportionData(_DictMixin):
    """与分辨率无关的比例数据, scale∈(0,1], offset∈[-1,1]"""
    scale_x_percent: float = DEFAULTS["default_proportions"][0]
    scale_y_percent: float = DEFAULTS["default_proportions"][1]
    offset_x_percent: float = DEFAULTS["default_proportions"][2]
    offset_y_percent: float = DEFAULTS["default_proportions"][3]


@dataclass(frozen=True)
class PixelData:
    x: float
    y: float
    width: int
    height: int
    font_size: int
    offset_x: int
    offset_y: int


@dataclass(frozen=True)
class AnchorPosition:
    anchor_x: float
    anchor_y: float


@dataclass(frozen=True)
class OriginAlignment:
    origin_x: OriginX
    origin_y: OriginY


# ---------------------------------------------------------------------------
# 配置

@dataclass(frozen=True)
class PositionConfig(_DictMixin):
    """
    位置配置

    offset_x / offset_y 是相对画布宽/高的百分比偏移(正值向右/向下),
    custom 位置使用 x / y 原始像素坐标。
    """
    mode: PositionMode = PositionMode.PIXEL
    position: WatermarkPosition = WatermarkPosition.BOTTOM_RIGHT
    x: float = 0
    y: float = 0
    margin_x: float = DEFAULTS["anchor_margin"]
    margin_y: float = DEFAULTS["anchor_margin"]
    margin_percent: float = 5
    offset_x: float = 0
    offset_y: float = 0
    proportions: Optional[ProportionData] = None

    def __post_init__(self):
        _set(self, "mode", coerce_enum(PositionMode, self.mode or PositionMode.PIXEL, "position mode"))
        _set(self, "position", coerce_enum(WatermarkPosition, self.position, "position"))
        if isinstance(self.proportions, dict):
            _set(self, "proportions", ProportionData.from_dict(self.proportions))


@dataclass(frozen=True)
class AdaptiveConfig(_DictMixin):
    """
    自适应配置

    min_size / max_size <= 0 视为未设置, 改用按图片面积计算的可读性限制;
    scale_ratio / margin_ratio / base_on 为 None 时视为未设置。
    """
    enable_auto_scale: bool = True
    min_size: float = 0
    max_size: float = 0
    scale_ratio: Optional[float] = None
    margin_ratio: Optional[float] = None
    base_on: Optional[BaseOn] = None

    def __post_init__(self):
        _set(self, "base_on", coerce_enum(BaseOn, self.base_on, "base_on"))


@dataclass(frozen=True)
class StrokeConfig(_DictMixin):
    color: str = "#FFFFFF"
    width: float = 0
    # 相对字号的比例, 优先于 width 使用
    width_ratio: Optional[float] = None


@dataclass(frozen=True)
class ShadowConfig(_DictMixin):
    color: str = "#000000"
    blur: float = 0
    offset_x: float = 0
    offset_y: float = 0


@dataclass(frozen=True)
class TextStyle(_DictMixin):
    content: str = ""
    font_family: str = "Arial"
    font_path: Optional[str] = None
    font_size: int = 24
    font_weight: str = "normal"
    color: str = "#000000"
    opacity: float = 0.5
    rotation: float = 0
    stroke: Optional[StrokeConfig] = None
    shadow: Optional[ShadowConfig] = None

    def __post_init__(self):
        if isinstance(self.stroke, dict):
            _set(self, "stroke", StrokeConfig.from_dict(self.stroke))
        if isinstance(self.shadow, dict):
            _set(self, "shadow", ShadowConfig.from_dict(self.shadow))

    @property
    def text_length(self):
        return len(self.content) if self.content else DEFAULTS["text_length"]


@dataclass(frozen=True)
class ImageStyle(_DictMixin):
    image_path: Optional[str] = None
    width: float = 100
    height: float = 100
    scale: float = 1.0
    opacity: float = 0.8
    rotation: float = 0
    blend_mode: BlendMode = BlendMode.NORMAL
    maintain_aspect_ratio: bool = True

    def __post_init__(self):
        _set(self, "blend_mode", coerce_enum(BlendMode, self.blend_mode, "blend mode"))


@dataclass(frozen=True)
class FullscreenStyle(_DictMixin):
    """
    全屏平铺样式

    数值字段为 0 或 None 时按默认值表处理(tile_spacing、tile_density、
    font_size、image_scale、image_original_width/height)。
    """
    mode: FullscreenMode = FullscreenMode.TEXT
    content: str = ""
    font_family: str = "Arial"
    font_path: Optional[str] = None
    font_size: float = 48
    color: str = "#000000"
    image_path: Optional[str] = None
    image_scale: Optional[float] = 1.0
    image_original_width: Optional[float] = None
    image_original_height: Optional[float] = None
    opacity: float = 0.1
    rotation: float = -45
    tile_spacing: float = DEFAULTS["tile_spacing"]
    tile_density: float = DEFAULTS["tile_density"]
    diagonal_mode: bool = True

    def __post_init__(self):
        _set(self, "mode", coerce_enum(FullscreenMode, self.mode, "fullscreen mode"))


Style = Union[TextStyle, ImageStyle, FullscreenStyle]

STYLE_BY_TYPE = {
    WatermarkType.TEXT: TextStyle,
    WatermarkType.IMAGE: ImageStyle,
    WatermarkType.FULLSCREEN: FullscreenStyle,
}


@dataclass(frozen=True)
class WatermarkConfig:
    """
    一次渲染调用中不可变的水印配置

    style 必须与 type 对应, 否则在构造时抛出 ConfigurationError。
    需要修改时使用 replace() 生成新对象。
    """
    type: WatermarkType
    style: Style
    scale_mode: ScaleMode = ScaleMode.ADAPTIVE
    position: PositionConfig = field(default_factory=PositionConfig)
    adaptive: AdaptiveConfig = field(default_factory=AdaptiveConfig)
    id: str = ""
    enabled: bool = True

    def __post_init__(self):
        _set(self, "type", coerce_enum(WatermarkType, self.type, "watermark type"))
        _set(self, "scale_mode", coerce_enum(ScaleMode, self.scale_mode or ScaleMode.ADAPTIVE, "scale mode"))
        expected = STYLE_BY_TYPE[self.type]
        if not isinstance(self.style, expected):
            raise ConfigurationError(
                f"{self.type.value} watermark requires {expected.__name__}, "
                f"got {type(self.style).__name__}"
            )

    @property
    def text_style(self) -> Optional[TextStyle]:
        return self.style if self.type is WatermarkType.TEXT else None

    @property
    def image_style(self) -> Optional[ImageStyle]:
        return self.style if self.type is WatermarkType.IMAGE else None

    @property
    def fullscreen_style(self) -> Optional[FullscreenStyle]:
        return self.style if self.type is WatermarkType.FULLSCREEN else None

    @property
    def rotation(self):
        return self.style.rotation

    @property
    def opacity(self):
        return self.style.opacity

    def replace(self, **changes) -> "WatermarkConfig":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "WatermarkConfig":
        wm_type = coerce_enum(WatermarkType, raw.get("type", WatermarkType.TEXT.value), "watermark type")
        style_cls = STYLE_BY_TYPE[wm_type]
        return cls(
            type=wm_type,
            style=style_cls.from_dict(raw.get("style")),
            scale_mode=raw.get("scale_mode", ScaleMode.ADAPTIVE),
            position=PositionConfig.from_dict(raw.get("position")),
            adaptive=AdaptiveConfig.from_dict(raw.get("adaptive")),
            id=raw.get("id", ""),
            enabled=raw.get("enabled", True),
        )


# ---------------------------------------------------------------------------
# 图片与批处理

@dataclass(frozen=True)
class ImageInfo:
    """图片存储提供的只读记录"""
    name: str
    width: float
    height: float
    path: Optional[str] = None

    @property
    def dimensions(self) -> ImageDimensions:
        return ImageDimensions(self.width, self.height)

    @property
    def area(self):
        return self.width * self.height


@dataclass(frozen=True)
class BatchScalingContext:
    """一个批次内共享的只读缩放上下文"""
    scaling_mode: ScalingStrategy
    reference_image: Optional[ImageInfo] = None
    reference_dimensions: Optional[ImageDimensions] = None
    base_proportions: Optional[ProportionData] = None


@dataclass(frozen=True)
class ScaledWatermarkConfig:
    """原始配置 + 批处理上下文"""
    config: WatermarkConfig
    scaling_context: Optional[BatchScalingContext] = None

# watermark_core/__init__.py
"""自适应水印几何与缩放计算"""
from .batch import (
    adjust_watermark_for_image,
    generate_batch_report,
    optimize_batch_configuration,
    prepare_batch_watermark_config,
    validate_batch_consistency,
)
from .defaults import DEFAULTS, normalize_config
from .exceptions import (
    BatchError,
    ConfigurationError,
    InvalidDimensionsError,
    InvalidImageFileError,
    InvalidProportionsError,
    RenderError,
    WatermarkError,
)
from .layout import compute_layout
from .models import (
    AdaptiveConfig,
    ImageDimensions,
    ImageInfo,
    ImageStyle,
    FullscreenStyle,
    PositionConfig,
    ProportionData,
    TextStyle,
    WatermarkConfig,
    WatermarkPosition,
    WatermarkType,
)
from .positioning import calculate_anchor_position, get_origin_from_position
from .proportions import apply_proportions, calculate_proportions, validate_proportions
from .readability import choose_base_dimension, readability_limits
from .renaming import is_valid_template, parse_filename_template
from .scaling import calculate_adaptive_watermark_size
from .tiling import calculate_tile_size, fit_tile_grid

__version__ = "0.1.0"

# watermark_core/batch.py
"""
批处理缩放一致性

根据一批图片的尺寸差异选择缩放策略(adaptive / proportional / fixed),
选出参考图片, 并为每张图片调整水印配置。
"""
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import List

from .defaults import DEFAULTS
from .exceptions import BatchError
from .models import (
    BatchScalingContext,
    ImageDimensions,
    PositionMode,
    ProportionData,
    ScaleMode,
    ScaledWatermarkConfig,
    ScalingStrategy,
    WatermarkConfig,
    coerce_enum,
)
from .proportions import calculate_proportions, validate_proportions
from .scaling import calculate_adaptive_watermark_size

logger = logging.getLogger(__name__)

_STRATEGY_REASONS = {
    ScalingStrategy.ADAPTIVE: "图片尺寸差异较大, 使用自适应缩放确保在所有尺寸上都有合适的视觉效果",
    ScalingStrategy.PROPORTIONAL: "图片尺寸有一定差异, 使用比例缩放保持相对一致的视觉比例",
    ScalingStrategy.FIXED: "图片尺寸相近, 使用固定尺寸确保完全一致的水印大小",
}
_PROPORTION_FALLBACK_REASON = "参考图片上的水印超出画布比例范围, 无法使用比例缩放, 改用自适应缩放"


@dataclass(frozen=True)
class BatchOptimization:
    optimized_config: ScaledWatermarkConfig
    strategy: ScalingStrategy
    reason: str


@dataclass
class ConsistencyReport:
    is_consistent: bool
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


def _area_ratio(images):
    if not images:
        raise BatchError("batch contains no images")
    areas = [img.dimensions.area for img in images]
    return max(areas) / min(areas)


def select_reference_image(images):
    """按面积排序后取中位数图片, 避免最大/最小图片带来的偏差"""
    if not images:
        raise BatchError("batch contains no images")
    if len(images) == 1:
        return images[0]
    ordered = sorted(images, key=lambda img: img.area)
    return ordered[len(ordered) // 2]


def prepare_batch_watermark_config(config, images, strategy=ScalingStrategy.ADAPTIVE):
    """
    为批处理准备水印配置

    proportional 策略下, 以参考图片上的缩放结果推导出所有图片共享的比例。
    推导出的比例无效(水印比参考图片还大)时记录警告并改用 adaptive 策略,
    返回的 scaling_context.scaling_mode 即实际使用的策略。
    """
    strategy = coerce_enum(ScalingStrategy, strategy, "scaling strategy")
    if not images:
        return ScaledWatermarkConfig(config)

    reference = select_reference_image(images)
    reference_dims = reference.dimensions

    base_proportions = None
    if strategy is ScalingStrategy.PROPORTIONAL:
        scaling = calculate_adaptive_watermark_size(config, reference_dims)
        base_proportions = calculate_proportions(
            config.position, reference_dims.width, reference_dims.height,
            scaling.width, scaling.height,
        )
        if not validate_proportions(base_proportions):
            logger.warning(
                "watermark %sx%s does not fit reference image %s (%sx%s), "
                "falling back to adaptive scaling: %r",
                scaling.width, scaling.height, reference.name,
                reference_dims.width, reference_dims.height, base_proportions,
            )
            strategy = ScalingStrategy.ADAPTIVE
            base_proportions = None

    context = BatchScalingContext(
        scaling_mode=strategy,
        reference_image=reference,
        reference_dimensions=reference_dims,
        base_proportions=base_proportions,
    )
    return ScaledWatermarkConfig(config, context)


def adjust_watermark_for_image(scaled_config, target_image):
    """
    基于批处理上下文为某张图片调整水印配置

    proportional: 位置切换为比例模式并附上共享比例;
    fixed: 强制固定尺寸缩放;
    adaptive: 原样返回, 由每张图片独立计算。
    """
    config = scaled_config.config
    context = scaled_config.scaling_context
    if context is None:
        return config

    # 目标图片尺寸不合法时尽早失败
    ImageDimensions.of(target_image)

    if context.scaling_mode is ScalingStrategy.PROPORTIONAL:
        position = dataclasses.replace(
            config.position,
            mode=PositionMode.PROPORTION,
            proportions=context.base_proportions,
        )
        return config.replace(position=position)
    if context.scaling_mode is ScalingStrategy.FIXED:
        return config.replace(scale_mode=ScaleMode.FIXED)
    return config


def optimize_batch_configuration(config, images):
    """
    根据图片面积差异自动选择缩放策略

    面积比 > 10 → adaptive; 3 < 比 ≤ 10 → proportional; 否则 fixed。
    """
    ratio = _area_ratio(images)
    if ratio > DEFAULTS["adaptive_area_ratio"]:
        strategy = ScalingStrategy.ADAPTIVE
    elif ratio > DEFAULTS["proportional_area_ratio"]:
        strategy = ScalingStrategy.PROPORTIONAL
    else:
        strategy = ScalingStrategy.FIXED

    optimized = prepare_batch_watermark_config(config, images, strategy)
    reason = _STRATEGY_REASONS[strategy]
    if optimized.scaling_context.scaling_mode is not strategy:
        strategy = optimized.scaling_context.scaling_mode
        reason = _PROPORTION_FALLBACK_REASON

    logger.info("batch of %d images, area ratio %.2f: using %s scaling",
                len(images), ratio, strategy.value)
    return BatchOptimization(
        optimized_config=optimized,
        strategy=strategy,
        reason=reason,
    )


def _proportions_match(a: ProportionData, b: ProportionData):
    tolerance = DEFAULTS["proportion_tolerance"]
    return (abs(a.scale_x_percent - b.scale_x_percent) < tolerance
            and abs(a.scale_y_percent - b.scale_y_percent) < tolerance)


def validate_batch_consistency(configs: List[WatermarkConfig], images):
    """
    检查一批配置能否产生视觉一致的结果

    发现的问题只作为警告返回, 不阻止批处理继续。
    """
    report = ConsistencyReport(is_consistent=True)

    if len(configs) != len(images):
        report.issues.append("配置数量与图片数量不匹配")
        report.is_consistent = False
        return report

    if len({c.scale_mode for c in configs}) > 1:
        report.issues.append("不同图片使用了不同的缩放模式")
        report.recommendations.append("建议所有图片使用相同的缩放模式")

    position_modes = {c.position.mode for c in configs}
    if len(position_modes) > 1:
        report.issues.append("不同图片使用了不同的位置模式")
        report.recommendations.append("建议所有图片使用相同的位置模式")

    if len({c.type for c in configs}) > 1:
        report.issues.append("不同图片使用了不同的水印类型")
        report.recommendations.append("建议所有图片使用相同的水印类型")

    if PositionMode.PROPORTION in position_modes:
        proportions = [c.position.proportions for c in configs
                       if c.position.mode is PositionMode.PROPORTION and c.position.proportions]
        if proportions and not all(_proportions_match(p, proportions[0]) for p in proportions):
            report.issues.append("比例模式下不同图片的缩放比例不一致")
            report.recommendations.append("建议使用统一的比例配置")

    if images and _area_ratio(images) > DEFAULTS["adaptive_area_ratio"]:
        report.recommendations.append("图片尺寸差异较大, 建议使用自适应缩放模式")

    report.is_consistent = not report.issues
    for issue in report.issues:
        logger.warning("batch consistency: %s", issue)
    return report


def generate_batch_report(configs, images, scaling_context):
    """生成批处理报告: 摘要 + 参考图片、缩放模式、尺寸范围与一致性检查结果"""
    consistency = validate_batch_consistency(configs, images)
    total = len(images)
    mode = scaling_context.scaling_mode.value

    if consistency.is_consistent:
        summary = f"批量处理 {total} 张图片, 使用 {mode} 缩放模式。配置一致性良好。"
    else:
        summary = f"批量处理 {total} 张图片, 使用 {mode} 缩放模式。发现 {len(consistency.issues)} 个一致性问题。"

    size_range = ""
    if images:
        smallest = min(images, key=lambda img: img.area)
        largest = max(images, key=lambda img: img.area)
        size_range = f"{smallest.width}×{smallest.height} 到 {largest.width}×{largest.height}"

    reference = scaling_context.reference_image
    return {
        "summary": summary,
        "details": {
            "reference_image": reference.name if reference else "未知",
            "scaling_mode": mode,
            "total_images": total,
            "size_range": size_range,
            "consistency": consistency,
        },
    }

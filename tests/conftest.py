"""Shared fixtures and Hypothesis profiles for the watermark_core test suite."""
import logging
import os

import pytest
from hypothesis import Verbosity, settings
from PIL import Image

from watermark_core.models import (
    AdaptiveConfig,
    BaseOn,
    ImageInfo,
    ImageStyle,
    PositionConfig,
    ScaleMode,
    TextStyle,
    WatermarkConfig,
    WatermarkType,
)

settings.register_profile("ci", max_examples=200, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=50)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast, isolated geometry tests")
    config.addinivalue_line("markers", "integration: tests that read and write image files")


def make_text_config(content="© 2024", scale_mode=ScaleMode.PERCENTAGE, position=None, **adaptive):
    """Text watermark config; keyword arguments go to AdaptiveConfig."""
    return WatermarkConfig(
        type=WatermarkType.TEXT,
        style=TextStyle(content=content),
        scale_mode=scale_mode,
        position=position or PositionConfig(),
        adaptive=AdaptiveConfig(**adaptive),
    )


def make_image_config(scale_mode=ScaleMode.PERCENTAGE, position=None, style=None, **adaptive):
    return WatermarkConfig(
        type=WatermarkType.IMAGE,
        style=style or ImageStyle(),
        scale_mode=scale_mode,
        position=position or PositionConfig(),
        adaptive=AdaptiveConfig(**adaptive),
    )


@pytest.fixture
def text_config():
    return make_text_config(scale_ratio=0.05, base_on=BaseOn.SHORTER_EDGE)


@pytest.fixture
def image_factory(tmp_path):
    """Write a solid-color image into tmp_path and return its path."""

    def _make(name, size, color=(0, 0, 0), mode="RGB"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color).save(path)
        return str(path)

    return _make


@pytest.fixture
def batch_images():
    def _make(*sizes):
        return [ImageInfo(name=f"img{i}.png", width=w, height=h) for i, (w, h) in enumerate(sizes)]

    return _make


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = set(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)

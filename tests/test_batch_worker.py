"""Tests for the threaded batch runner."""
import os
import pathlib
import threading

import pytest
from conftest import make_text_config
from PIL import Image

from watermark_core.batch_worker import ensure_output_path, run_batch
from watermark_core.exceptions import BatchError, ConfigurationError
from watermark_core.models import ImageInfo, ScalingStrategy

pytestmark = pytest.mark.integration


def test_ensure_output_path_adds_counter(tmp_path):
    (tmp_path / "photo_wm.png").write_bytes(b"")
    (tmp_path / "photo_wm_1.png").write_bytes(b"")
    dst = ensure_output_path("/src/photo.png", tmp_path, suffix="_wm")
    assert pathlib.Path(dst).name == "photo_wm_2.png"


def test_ensure_output_path_changes_extension(tmp_path):
    dst = ensure_output_path("/src/photo.png", tmp_path, prefix="wm_", ext="jpg")
    assert pathlib.Path(dst).name == "wm_photo.jpg"


def test_run_batch_writes_every_image(image_factory, tmp_path):
    paths = [
        image_factory("a.png", (100, 100)),
        image_factory("b.png", (100, 100)),
        image_factory("c.png", (120, 100)),
    ]
    calls = []
    results, strategy = run_batch(make_text_config(), paths, tmp_path / "out",
                                  progress_callback=lambda *args: calls.append(args))

    assert strategy is ScalingStrategy.FIXED
    assert [r.image.name for r in results] == ["a.png", "b.png", "c.png"]
    assert all(r.success for r in results)
    assert all(pathlib.Path(r.dst_path).exists() for r in results)
    assert len(calls) == 3
    assert calls[-1][:2] == (3, 3)


def test_run_batch_proportional_jpeg(image_factory, tmp_path):
    paths = [
        image_factory("small.png", (100, 100)),
        image_factory("large.png", (200, 200)),
        image_factory("mid.png", (120, 120)),
    ]
    results, strategy = run_batch(make_text_config(), paths, tmp_path / "out", output_format="jpeg")
    assert strategy is ScalingStrategy.PROPORTIONAL
    assert all(r.success and r.dst_path.endswith(".jpg") for r in results)


def test_same_names_get_distinct_outputs(image_factory, tmp_path):
    paths = [image_factory("one/img.png", (100, 100)), image_factory("two/img.png", (100, 100))]
    results, _ = run_batch(make_text_config(), paths, tmp_path / "out")
    names = sorted(pathlib.Path(r.dst_path).name for r in results)
    assert names == ["img_wm.png", "img_wm_1.png"]


def test_failure_is_reported_not_raised(image_factory, tmp_path):
    good = image_factory("good.png", (100, 100))
    missing = ImageInfo(name="missing.png", width=100, height=100, path=str(tmp_path / "missing.png"))
    results, _ = run_batch(make_text_config(), [good, missing], tmp_path / "out")
    assert results[0].success
    assert not results[1].success
    assert results[1].message


def test_cancelled_batch(image_factory, tmp_path):
    cancel = threading.Event()
    cancel.set()
    paths = [image_factory("a.png", (100, 100)), image_factory("b.png", (100, 100))]
    results, _ = run_batch(make_text_config(), paths, tmp_path / "out", cancel_event=cancel)
    assert [r.message for r in results] == ["cancelled", "cancelled"]
    assert not any(r.success for r in results)


def test_empty_batch(tmp_path):
    with pytest.raises(BatchError):
        run_batch(make_text_config(), [], tmp_path / "out")


def test_unreadable_file_does_not_abort_batch(image_factory, tmp_path):
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"definitely not a png" * 64)
    paths = [image_factory("a.png", (100, 100)), str(broken), image_factory("b.png", (110, 100))]
    calls = []
    results, strategy = run_batch(make_text_config(), paths, tmp_path / "out",
                                  progress_callback=lambda *args: calls.append(args))

    assert strategy is ScalingStrategy.FIXED
    assert [r.success for r in results] == [True, False, True]
    assert results[1].image.name == "broken.png"
    assert results[1].message
    assert len(calls) == 3


def test_batch_with_no_readable_images(tmp_path):
    missing = str(tmp_path / "missing.png")
    results, strategy = run_batch(make_text_config(), [missing], tmp_path / "out")
    assert strategy is None
    assert not results[0].success


def test_reserved_names_skip_existing_files(image_factory, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    (out / "img_wm_1.png").write_bytes(b"keep")
    paths = [image_factory("one/img.png", (100, 100)), image_factory("two/img.png", (100, 100))]
    results, _ = run_batch(make_text_config(), paths, out)
    names = sorted(pathlib.Path(r.dst_path).name for r in results)
    assert names == ["img_wm.png", "img_wm_2.png"]
    assert (out / "img_wm_1.png").read_bytes() == b"keep"


def test_ensure_output_path_skips_reserved(tmp_path):
    reserved = {str(tmp_path / "photo_wm.png")}
    dst = ensure_output_path("/src/photo.png", tmp_path, suffix="_wm", reserved=reserved)
    assert pathlib.Path(dst).name == "photo_wm_1.png"


def test_ensure_output_path_with_template(tmp_path):
    dst = ensure_output_path("/src/photo.png", tmp_path, prefix="ignored_", name_template="{name}_{index:3}",
                             index=4)
    assert pathlib.Path(dst).name == "photo_004.png"


def test_run_batch_name_template(image_factory, tmp_path):
    paths = [image_factory("a.png", (100, 100)), image_factory("b.png", (100, 100))]
    results, _ = run_batch(make_text_config(), paths, tmp_path / "out", name_template="wm-{name}-{index:2}")
    assert [pathlib.Path(r.dst_path).name for r in results] == ["wm-a-01.png", "wm-b-02.png"]


def test_run_batch_rejects_invalid_template(image_factory, tmp_path):
    paths = [image_factory("a.png", (100, 100))]
    with pytest.raises(ConfigurationError):
        run_batch(make_text_config(), paths, tmp_path / "out", name_template="{name")


def test_run_batch_validates_inputs(image_factory, tmp_path):
    noisy = tmp_path / "noisy.png"
    Image.frombytes("RGB", (100, 100), os.urandom(100 * 100 * 3)).save(noisy)
    flat = image_factory("flat.png", (100, 100))
    results, _ = run_batch(make_text_config(), [str(noisy), flat], tmp_path / "out", validate=True)
    assert results[0].success
    assert not results[1].success
    assert "文件过小" in results[1].message

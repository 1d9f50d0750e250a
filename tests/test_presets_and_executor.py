"""预设展开、命名规则、几何策略与单文件执行。"""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from image_munger.core.config import Configuration, ImageFormat, PackageKind, Preset
from image_munger.core.models import TransformPlan
from image_munger.packaging.base import FolderAdapter
from image_munger.processing.executor import process_file
from image_munger.processing.imaging import apply_plan_geometry, open_image
from image_munger.processing.naming import base_name, change_suffix, destination_name
from image_munger.processing.presets import compile_plans


def _config(tmp_path: Path, **kwargs) -> Configuration:
    kwargs.setdefault("source", tmp_path / "input")
    kwargs.setdefault("destination", tmp_path / "output")
    return Configuration(**kwargs)


@pytest.mark.parametrize(
    ("preset", "size"),
    [(Preset.SMALL_STICKER, 300), (Preset.MEDIUM_STICKER, 408), (Preset.LARGE_STICKER, 618)],
)
def test_sticker_presets_force_png(tmp_path: Path, preset: Preset, size: int) -> None:
    config = _config(tmp_path, preset=preset, output_format=ImageFormat.JPEG, output_package=PackageKind.STICKER_PACK)

    plans = compile_plans(config)

    assert plans == [
        TransformPlan(box_width=size, box_height=size, output_format=ImageFormat.PNG, output_package=PackageKind.STICKER_PACK)
    ]


def test_thumbnail_preset_inherits_format(tmp_path: Path) -> None:
    plans = compile_plans(_config(tmp_path, preset=Preset.THUMB_256, output_format=ImageFormat.JPEG))

    assert len(plans) == 1
    assert (plans[0].box_width, plans[0].box_height) == (256, 256)
    assert plans[0].output_format is ImageFormat.JPEG


def test_image_set_preset_expands_three_variants(tmp_path: Path) -> None:
    plans = compile_plans(_config(tmp_path, preset=Preset.IMAGE_SET, output_package=PackageKind.IMAGE_SET))

    assert [plan.scale for plan in plans] == [1.0, 2.0 / 3.0, 1.0 / 3.0]
    assert all(plan.required_suffix == "@3x" for plan in plans)
    assert [(plan.remove_suffix, plan.add_suffix) for plan in plans] == [("", ""), ("@3x", "@2x"), ("@3x", "")]
    assert all(plan.output_package is PackageKind.IMAGE_SET for plan in plans)


def test_large_sticker_with_image_set_preset(tmp_path: Path) -> None:
    plans = compile_plans(_config(tmp_path, preset=Preset.LARGE_STICKER_WITH_IMAGE_SET))

    assert [(plan.box_width, plan.add_suffix) for plan in plans] == [(206, "@1x"), (618, "@3x")]
    assert all(plan.output_format is ImageFormat.PNG for plan in plans)


def test_no_preset_uses_scalar_settings(tmp_path: Path) -> None:
    plans = compile_plans(_config(tmp_path, max_width=100, output_format=ImageFormat.GIF))

    assert plans == [TransformPlan(box_width=100, output_format=ImageFormat.GIF)]


def test_destination_name_rewrites_extension_then_suffix() -> None:
    plan = TransformPlan(output_format=ImageFormat.PNG, remove_suffix="@3x", add_suffix="@2x")

    assert destination_name("photo@3x.jpg", plan) == "photo@2x.png"
    assert destination_name("photo.jpg", TransformPlan()) == "photo.jpg"
    assert change_suffix("photo.png", "@3x", "@1x") == "photo@1x.png"
    assert base_name(Path("dir/photo@2x.png")) == "photo"


def test_geometry_priority() -> None:
    image = Image.new("RGB", (100, 50), "red")

    assert apply_plan_geometry(image, TransformPlan(scale=1.0)) is image
    assert apply_plan_geometry(image, TransformPlan()) is image
    assert apply_plan_geometry(image, TransformPlan(scale=0.5)).size == (50, 25)
    assert apply_plan_geometry(image, TransformPlan(box_width=40, box_height=40)).size == (40, 20)
    assert apply_plan_geometry(image, TransformPlan(box_width=30)).size == (30, 15)
    assert apply_plan_geometry(image, TransformPlan(box_height=10)).size == (20, 10)


def test_process_file_writes_into_folder(tmp_path: Path) -> None:
    source_dir = tmp_path / "input"
    source_dir.mkdir()
    source = source_dir / "photo.png"
    Image.new("RGBA", (200, 100), (0, 0, 255, 128)).save(source)

    config = _config(tmp_path, preset=Preset.THUMB_256, output_format=ImageFormat.JPEG)
    adapter = FolderAdapter(config)
    adapter.prepare([source])

    results = process_file(source, compile_plans(config), config, adapter)

    assert [result.status for result in results] == ["processed"]
    destination = tmp_path / "output" / "photo.jpg"
    assert results[0].destination == destination
    with Image.open(destination) as img:
        assert img.size == (256, 128)
        assert img.mode == "RGB"


def test_process_file_skips_plans_without_required_suffix(tmp_path: Path) -> None:
    source_dir = tmp_path / "input"
    source_dir.mkdir()
    source = source_dir / "plain.png"
    Image.new("RGB", (30, 30), "green").save(source)

    config = _config(tmp_path, preset=Preset.IMAGE_SET)
    adapter = FolderAdapter(config)
    adapter.prepare([source])

    results = process_file(source, compile_plans(config), config, adapter)

    assert [result.status for result in results] == ["skipped", "skipped", "skipped"]
    assert not any(result.fatal for result in results)
    assert list((tmp_path / "output").iterdir()) == []


def test_process_file_rejects_unsupported_format(tmp_path: Path) -> None:
    source_dir = tmp_path / "input"
    source_dir.mkdir()
    source = source_dir / "photo.bmp"
    Image.new("RGB", (10, 10)).save(source, format="BMP")

    config = _config(tmp_path)
    results = process_file(source, compile_plans(config), config, FolderAdapter(config))

    assert len(results) == 1
    assert results[0].status == "error-format"
    assert results[0].fatal


def test_process_file_reports_unreadable_image(tmp_path: Path) -> None:
    source_dir = tmp_path / "input"
    source_dir.mkdir()
    source = source_dir / "broken.png"
    source.write_text("not an image")

    config = _config(tmp_path, preset=Preset.LARGE_STICKER_WITH_IMAGE_SET)
    adapter = FolderAdapter(config)
    adapter.prepare([source])

    results = process_file(source, compile_plans(config), config, adapter)

    # 打开失败后放弃剩余计划
    assert [result.status for result in results] == ["error-open"]
    assert results[0].is_error


def test_open_image_normalizes_palette_mode(tmp_path: Path) -> None:
    path = tmp_path / "palette.gif"
    Image.new("P", (8, 8)).save(path)

    image = open_image(path)

    assert image.mode in {"RGB", "RGBA"}

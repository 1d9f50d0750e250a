"""打包适配器：Contents.json 与磁盘内容保持一致。"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest
from PIL import Image

from image_munger.core.config import Configuration, ImageFormat, PackageKind, Preset
from image_munger.core.exceptions import ImageWriteError, PackagingError
from image_munger.core.models import TransformPlan
from image_munger.packaging.catalog import MAX_STICKER_BYTES, CatalogAdapter, check_sticker_size
from image_munger.packaging.factory import create_adapter
from image_munger.packaging.icns import IcnsAdapter
from image_munger.packaging.icon_set import IconSetAdapter
from image_munger.packaging.image_set import ImageSetAdapter
from image_munger.packaging.sticker_pack import StickerPackAdapter
from image_munger.processing.executor import process_file
from image_munger.processing.presets import compile_plans


def _make_source(tmp_path: Path, name: str, size: tuple[int, int] = (100, 50)) -> Path:
    source_dir = tmp_path / "input"
    source_dir.mkdir(exist_ok=True)
    path = source_dir / name
    Image.new("RGB", size, "orange").save(path)
    return path


def _read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def _run(source: Path, config: Configuration):
    adapter = create_adapter(config)
    adapter.prepare([source])
    return process_file(source, compile_plans(config), config, adapter)


def _sticker_config(tmp_path: Path, *, replace: bool = False) -> Configuration:
    return Configuration(
        source=tmp_path / "input",
        destination=tmp_path / "Stickers.stickerpack",
        preset=Preset.LARGE_STICKER,
        output_package=PackageKind.STICKER_PACK,
        replace=replace,
    )


def test_factory_picks_adapter_by_kind(tmp_path: Path) -> None:
    config = _sticker_config(tmp_path)

    assert isinstance(create_adapter(config), StickerPackAdapter)
    assert isinstance(
        create_adapter(Configuration(destination=tmp_path, output_package=PackageKind.IMAGE_SET)), ImageSetAdapter
    )


def test_sticker_pack_registers_each_sticker_once(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "cat.jpg")
    config = _sticker_config(tmp_path)

    results = _run(source, config)
    _run(source, config)

    pack = tmp_path / "Stickers.stickerpack"
    assert [result.status for result in results] == ["processed"]
    assert results[0].destination == pack / "cat.sticker" / "cat.png"

    contents = _read_json(pack / "Contents.json")
    assert contents["stickers"] == [{"filename": "cat.sticker"}]
    assert contents["properties"] == {"grid-size": "large"}
    assert contents["info"] == {"version": 1, "author": "xcode"}

    sticker = _read_json(pack / "cat.sticker" / "Contents.json")
    assert sticker["properties"] == {"filename": "cat.png"}
    with Image.open(pack / "cat.sticker" / "cat.png") as img:
        assert img.size == (618, 309)


def test_sticker_pack_replace_removes_previous_stickers(tmp_path: Path) -> None:
    for name in ("cat.jpg", "owl.jpg", "fox.jpg"):
        _run(_make_source(tmp_path, name), _sticker_config(tmp_path))

    pack = tmp_path / "Stickers.stickerpack"
    assert len(_read_json(pack / "Contents.json")["stickers"]) == 3

    StickerPackAdapter(_sticker_config(tmp_path, replace=True)).prepare([])

    assert _read_json(pack / "Contents.json")["stickers"] == []
    for name in ("cat.sticker", "owl.sticker", "fox.sticker"):
        assert not (pack / name).exists()
    assert [path.name for path in pack.iterdir()] == ["Contents.json"]

    second = _make_source(tmp_path, "dog.png")
    _run(second, _sticker_config(tmp_path, replace=True))

    assert _read_json(pack / "Contents.json")["stickers"] == [{"filename": "dog.sticker"}]
    assert sorted(path.name for path in pack.iterdir()) == ["Contents.json", "dog.sticker"]


def test_sticker_pack_requires_suffix(tmp_path: Path) -> None:
    config = Configuration(destination=tmp_path / "Stickers", output_package=PackageKind.STICKER_PACK)

    with pytest.raises(PackagingError):
        StickerPackAdapter(config).prepare([])


def test_failed_save_withdraws_sticker_record(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = _make_source(tmp_path, "cat.jpg")

    def failing_save(image, destination):
        raise ImageWriteError(f"写入文件失败: {destination}")

    monkeypatch.setattr("image_munger.processing.executor.save_image", failing_save)
    results = _run(source, _sticker_config(tmp_path))

    pack = tmp_path / "Stickers.stickerpack"
    assert [result.status for result in results] == ["error-save"]
    assert _read_json(pack / "Contents.json")["stickers"] == []
    assert not (pack / "cat.sticker").exists()


def test_image_set_builds_scaled_variants(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "icon@3x.png", size=(90, 90))
    config = Configuration(
        source=tmp_path / "input",
        destination=tmp_path / "output",
        preset=Preset.IMAGE_SET,
        output_package=PackageKind.IMAGE_SET,
    )

    results = _run(source, config)

    image_set = tmp_path / "output" / "icon.imageset"
    assert [result.status for result in results] == ["processed"] * 3
    contents = _read_json(image_set / "Contents.json")
    assert contents["images"] == [
        {"filename": "icon@3x.png", "idiom": "universal", "scale": "3x"},
        {"filename": "icon@2x.png", "idiom": "universal", "scale": "2x"},
        {"filename": "icon.png", "idiom": "universal", "scale": "1x"},
    ]
    sizes = {}
    for name in ("icon@3x.png", "icon@2x.png", "icon.png"):
        with Image.open(image_set / name) as img:
            sizes[name] = img.size
    assert sizes == {"icon@3x.png": (90, 90), "icon@2x.png": (60, 60), "icon.png": (30, 30)}


def test_image_set_rerun_resets_previous_records(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "icon@3x.png", size=(90, 90))
    config = Configuration(
        source=tmp_path / "input",
        destination=tmp_path / "output",
        preset=Preset.IMAGE_SET,
        output_package=PackageKind.IMAGE_SET,
    )
    image_set = tmp_path / "output" / "icon.imageset"
    image_set.mkdir(parents=True)
    (image_set / "stale.png").write_bytes(b"x")

    _run(source, config)
    _run(source, config)

    assert len(_read_json(image_set / "Contents.json")["images"]) == 3
    assert not (image_set / "stale.png").exists()


def test_image_set_replace_clears_destination(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "one@3x.png", size=(90, 90))
    output = tmp_path / "output"
    (output / "stale.imageset").mkdir(parents=True)
    (output / "notes.txt").write_text("old")
    config = Configuration(
        source=tmp_path / "input",
        destination=output,
        preset=Preset.IMAGE_SET,
        output_package=PackageKind.IMAGE_SET,
        replace=True,
    )

    _run(source, config)

    assert [path.name for path in output.iterdir()] == ["one.imageset"]


def test_image_set_without_replace_keeps_other_sets(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "one@3x.png", size=(90, 90))
    output = tmp_path / "output"
    (output / "other.imageset").mkdir(parents=True)
    config = Configuration(
        source=tmp_path / "input",
        destination=output,
        preset=Preset.IMAGE_SET,
        output_package=PackageKind.IMAGE_SET,
    )

    _run(source, config)

    assert sorted(path.name for path in output.iterdir()) == ["one.imageset", "other.imageset"]


def _write_icon_contents(folder: Path, images: list[dict]) -> None:
    folder.mkdir(parents=True)
    (folder / "Contents.json").write_text(
        json.dumps({"images": images, "info": {"version": 1, "author": "xcode"}}), encoding="utf-8"
    )


def test_icon_set_fulfils_declared_entries(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "logo.png", size=(64, 32))
    icon_set = tmp_path / "AppIcon.appiconset"
    _write_icon_contents(
        icon_set,
        [
            {"idiom": "mac", "size": "16x16", "scale": "1x"},
            {"idiom": "mac", "size": "16x16", "scale": "2x", "filename": "old.png"},
        ],
    )
    (icon_set / "old.png").write_bytes(b"x")
    config = Configuration(destination=icon_set, output_package=PackageKind.ICON_SET)

    adapter = IconSetAdapter(config)
    adapter.prepare([source])
    results = adapter.render(source, TransformPlan())

    assert [result.status for result in results] == ["processed", "processed"]
    assert not (icon_set / "old.png").exists()
    images = _read_json(icon_set / "Contents.json")["images"]
    assert [image["filename"] for image in images] == ["logo-16x16-1x.png", "logo-16x16-2x.png"]
    assert all(image["idiom"] == "mac" for image in images)
    with Image.open(icon_set / "logo-16x16-2x.png") as img:
        assert img.size == (32, 32)


def test_icon_set_entry_without_scale_writes_nothing(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "logo.png")
    icon_set = tmp_path / "Stickers.stickersiconset"
    _write_icon_contents(
        icon_set,
        [
            {"idiom": "ios", "size": "29x29", "scale": "2x"},
            {"idiom": "ios", "size": "60x45"},
        ],
    )
    config = Configuration(destination=icon_set, output_package=PackageKind.ICON_SET)

    results = IconSetAdapter(config).render(source, TransformPlan())

    assert len(results) == 1
    assert results[0].status == "error-package" and results[0].fatal
    assert [path.name for path in icon_set.iterdir()] == ["Contents.json"]


def test_icon_set_requires_single_source(tmp_path: Path) -> None:
    config = Configuration(destination=tmp_path / "AppIcon.appiconset", output_package=PackageKind.ICON_SET)

    with pytest.raises(PackagingError):
        IconSetAdapter(config).prepare([tmp_path / "a.png", tmp_path / "b.png"])
    with pytest.raises(PackagingError):
        IconSetAdapter(Configuration(destination=tmp_path / "Icons")).prepare([tmp_path / "a.png"])


def test_generic_iconset_writes_fixed_variants(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "logo.png", size=(64, 64))
    config = Configuration(destination=tmp_path / "Logo.iconset", output_package=PackageKind.ICON_SET)

    adapter = IconSetAdapter(config)
    adapter.prepare([source])
    results = adapter.render(source, TransformPlan(output_format=ImageFormat.PNG))

    assert len(results) == 10
    names = sorted(path.name for path in (tmp_path / "Logo.iconset").iterdir())
    assert "icon_16x16.png" in names and "icon_512x512@2x.png" in names
    assert "Contents.json" not in names
    with Image.open(tmp_path / "Logo.iconset" / "icon_32x32@2x.png") as img:
        assert img.size == (64, 64)


def test_icns_converts_and_removes_temporary_folder(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = _make_source(tmp_path, "logo.png", size=(64, 64))
    output = tmp_path / "dist" / "Logo.icns"
    calls: list[list[str]] = []
    seen_files: list[str] = []

    def fake_run(command, **kwargs):
        calls.append(command)
        seen_files.extend(sorted(path.name for path in Path(command[-1]).iterdir()))
        Path(command[4]).write_bytes(b"icns")
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setattr("image_munger.packaging.icns.subprocess.run", fake_run)
    adapter = IcnsAdapter(Configuration(destination=output, output_package=PackageKind.ICNS))
    adapter.prepare([source])
    results = adapter.render(source, TransformPlan())

    assert len(calls) == 1
    assert calls[0][:5] == ["iconutil", "--convert", "icns", "--output", str(output)]
    assert len(seen_files) == 10
    assert all(result.status == "processed" for result in results)
    assert results[-1].destination == output
    assert output.read_bytes() == b"icns"
    assert not (tmp_path / "dist" / "Logo.iconset").exists()


def test_icns_conversion_failure_is_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = _make_source(tmp_path, "logo.png", size=(64, 64))
    output = tmp_path / "Logo.icns"

    def fake_run(command, **kwargs):
        return subprocess.CompletedProcess(command, 1, "", "invalid iconset")

    monkeypatch.setattr("image_munger.packaging.icns.subprocess.run", fake_run)
    adapter = IcnsAdapter(Configuration(destination=output, output_package=PackageKind.ICNS))
    results = adapter.render(source, TransformPlan())

    assert results[-1].status == "error-convert"
    assert "invalid iconset" in (results[-1].message or "")
    assert not (tmp_path / "Logo.iconset").exists()
    assert not output.exists()


def _catalog_config(tmp_path: Path, **kwargs) -> Configuration:
    kwargs.setdefault("preset", Preset.IMAGE_SET_FOR_LARGE_STICKER)
    return Configuration(
        source=tmp_path / "input",
        destination=tmp_path / "Stickers.xcassets",
        output_package=PackageKind.CATALOG,
        **kwargs,
    )


def test_catalog_builds_placeholder_image_set(tmp_path: Path) -> None:
    source = _make_source(tmp_path, "cat.jpg")
    config = _catalog_config(tmp_path)

    results = _run(source, config)

    catalog = tmp_path / "Stickers.xcassets"
    image_set = catalog / "cat.imageset"
    assert [result.status for result in results] == ["processed"] * 3
    assert _read_json(catalog / "Contents.json") == {"info": {"version": 1, "author": "xcode"}}
    assert _read_json(image_set / "Contents.json")["images"] == [
        {"filename": "cat.png", "idiom": "universal", "scale": "1x"},
        {"filename": "cat@2x.png", "idiom": "universal", "scale": "2x"},
        {"filename": "cat@3x.png", "idiom": "universal", "scale": "3x"},
    ]
    sizes = {}
    for name in ("cat.png", "cat@2x.png", "cat@3x.png"):
        with Image.open(image_set / name) as img:
            sizes[name] = img.size
    assert sizes == {"cat.png": (206, 206), "cat@2x.png": (412, 206), "cat@3x.png": (412, 412)}


def test_catalog_replace_clears_members(tmp_path: Path) -> None:
    catalog = tmp_path / "Stickers.xcassets"
    (catalog / "old.imageset").mkdir(parents=True)
    source = _make_source(tmp_path, "cat.jpg")

    _run(source, _catalog_config(tmp_path, replace=True))

    assert sorted(path.name for path in catalog.iterdir()) == ["Contents.json", "cat.imageset"]


def test_catalog_requires_matching_preset(tmp_path: Path) -> None:
    with pytest.raises(PackagingError):
        CatalogAdapter(_catalog_config(tmp_path, preset=Preset.LARGE_STICKER)).prepare([])
    with pytest.raises(PackagingError):
        CatalogAdapter(
            Configuration(
                destination=tmp_path / "Stickers",
                preset=Preset.IMAGE_SET_FOR_LARGE_STICKER,
                output_package=PackageKind.CATALOG,
            )
        ).prepare([])


def test_check_sticker_size_warns_when_too_large(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    small = tmp_path / "small.png"
    small.write_bytes(b"x" * 10)
    large = tmp_path / "large.png"
    large.write_bytes(b"x" * (MAX_STICKER_BYTES + 1))

    with caplog.at_level("WARNING"):
        assert check_sticker_size(small, "small.png") is True
        assert check_sticker_size(large, "large.png") is False

    assert "large.png" in caplog.text

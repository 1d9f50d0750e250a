"""源文件收集：扩展名过滤、单文件源与清单子集的全有或全无。"""

from __future__ import annotations

from pathlib import Path

import pytest

from image_munger.core.config import make_valid_extensions
from image_munger.core.exceptions import CollectionError
from image_munger.core.scanner import collect_source_files


@pytest.fixture()
def source_dir(tmp_path: Path) -> Path:
    source = tmp_path / "input"
    source.mkdir()
    for name in ("b.jpg", "a.png", "c.txt", "d.JPG", "e.jpeg"):
        (source / name).write_bytes(b"x")
    nested = source / "nested"
    nested.mkdir()
    (nested / "f.png").write_bytes(b"x")
    return source


def test_collects_allowed_files_non_recursively(source_dir: Path) -> None:
    files = collect_source_files(source_dir)

    # 扩展名区分大小写，子目录不递归
    assert [path.name for path in files] == ["a.png", "b.jpg", "e.jpeg"]


def test_restricts_to_valid_extensions(source_dir: Path) -> None:
    files = collect_source_files(source_dir, make_valid_extensions(["jpg"]))

    assert [path.name for path in files] == ["b.jpg", "e.jpeg"]


def test_manifest_subset_keeps_requested_order(source_dir: Path) -> None:
    files = collect_source_files(source_dir, None, ["b.jpg", "a.png"])

    assert files == [source_dir / "b.jpg", source_dir / "a.png"]


def test_manifest_subset_is_all_or_nothing(source_dir: Path) -> None:
    with pytest.raises(CollectionError) as excinfo:
        collect_source_files(source_dir, None, ["a.png", "missing.png"])
    assert "missing.png" in str(excinfo.value)

    with pytest.raises(CollectionError):
        collect_source_files(source_dir, None, ["c.txt"])


def test_single_file_source_becomes_subset(source_dir: Path) -> None:
    files = collect_source_files(source_dir / "a.png")

    assert files == [source_dir / "a.png"]


def test_missing_source_raises(tmp_path: Path) -> None:
    with pytest.raises(CollectionError):
        collect_source_files(tmp_path / "nope")

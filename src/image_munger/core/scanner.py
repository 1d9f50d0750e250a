"""源文件收集与筛选逻辑。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence

from image_munger.core.config import make_valid_extensions
from image_munger.core.exceptions import CollectionError

LOGGER = logging.getLogger(__name__)


def _iter_directory_names(directory: Path) -> Iterator[str]:
    """列出目录下直接包含的文件名（不递归）。"""

    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise CollectionError(f"无法读取源目录: {directory}") from exc

    for candidate in entries:
        if candidate.is_file():
            yield candidate.name


def _extension_of(name: str) -> str:
    suffix = Path(name).suffix
    return suffix[1:] if len(suffix) > 1 else ""


def collect_source_files(
    source: Path,
    valid_extensions: Optional[Sequence[str]] = None,
    manifest_files: Optional[Sequence[str]] = None,
) -> list[Path]:
    """根据源路径、扩展名与可选的清单子集返回待处理文件。

    ``source`` 为单个文件时，其父目录作为源目录，文件本身并入清单子集。
    给定清单子集时采用全有或全无：任何一个文件缺失或扩展名不允许都会
    抛出 CollectionError，不会返回部分结果。
    """

    extensions = set(valid_extensions or make_valid_extensions(None))
    requested = list(manifest_files or ())

    if source.is_dir():
        directory = source
    elif source.is_file():
        directory = source.parent
        requested.append(source.name)
    else:
        raise CollectionError(f"源路径不存在: {source}")

    available = list(_iter_directory_names(directory))

    if not requested:
        return [directory / name for name in available if _extension_of(name) in extensions]

    available_set = set(available)
    collected = [
        directory / name
        for name in requested
        if name in available_set and _extension_of(name) in extensions
    ]
    if len(collected) != len(requested):
        missing = [name for name in requested if directory / name not in collected]
        LOGGER.debug("清单中缺失或不允许的文件: %s", missing)
        raise CollectionError(f"源目录缺少清单中列出的文件: {', '.join(missing)}")
    return collected

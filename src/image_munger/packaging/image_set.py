"""图片集（.imageset）适配器。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from image_munger.core.config import PackageKind
from image_munger.core.exceptions import PackagingError
from image_munger.packaging.base import ContainerState, PackageAdapter, clear_folder, remove_path
from image_munger.packaging.contents import ImageRecord, ImageSetContents, read_contents, write_contents
from image_munger.processing.naming import has_suffix, strip_suffixes

LOGGER = logging.getLogger(__name__)

IMAGE_SET_SUFFIX = ".imageset"
IMAGE_IDIOM = "universal"


def image_set_path(image_path: Path) -> Path:
    """``dst/photo@2x.png`` → ``dst/photo.imageset``。"""

    stem = strip_suffixes(image_path.stem)
    return image_path.with_name(stem + IMAGE_SET_SUFFIX)


def scale_for_name(filename: str) -> str:
    if has_suffix(filename, "@2x"):
        return "2x"
    if has_suffix(filename, "@3x"):
        return "3x"
    return "1x"


def reset_image_set(set_path: Path) -> None:
    """删除并重建图片集目录，写入空的 Contents.json。"""

    if set_path.exists():
        remove_path(set_path)
    try:
        set_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PackagingError(f"无法创建图片集: {set_path}") from exc
    write_contents(set_path, ImageSetContents())


def insert_image_record(set_path: Path, filename: str, *, scale: str | None = None) -> Path:
    """向图片集登记一张图片，返回其在图片集内的路径。"""

    contents = read_contents(set_path, ImageSetContents)
    contents.images = [image for image in contents.images if image.filename != filename]
    contents.images.append(ImageRecord(filename=filename, idiom=IMAGE_IDIOM, scale=scale or scale_for_name(filename)))
    write_contents(set_path, contents)
    return set_path / filename


class ImageSetAdapter(PackageAdapter):
    """同一源文件的各倍率输出写入同一个 ``.imageset``。

    每个源文件第一次登记时重建图片集，之后的计划只追加记录。
    """

    kind = PackageKind.IMAGE_SET

    def prepare(self, sources: Sequence[Path]) -> None:
        try:
            self.container.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackagingError(f"无法创建输出目录: {self.container}") from exc
        if self.config.replace:
            LOGGER.info("清空输出目录: %s", self.container)
            clear_folder(self.container)

    def place(self, destination: Path, state: ContainerState) -> Path:
        set_path = image_set_path(destination)
        if not state.initialized:
            reset_image_set(set_path)
            state.initialized = True
        return insert_image_record(set_path, destination.name)

    def withdraw(self, final_path: Path) -> None:
        set_path = final_path.parent
        try:
            contents = read_contents(set_path, ImageSetContents)
            contents.images = [image for image in contents.images if image.filename != final_path.name]
            write_contents(set_path, contents)
        except PackagingError as exc:
            LOGGER.warning("撤销图片集记录失败 %s: %s", final_path, exc)
        remove_path(final_path)

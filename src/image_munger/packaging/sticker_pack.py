"""贴纸包（.stickerpack）适配器。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from image_munger.core.config import PackageKind
from image_munger.core.exceptions import PackagingError
from image_munger.packaging.base import ContainerState, PackageAdapter, clear_folder, remove_path
from image_munger.packaging.contents import (
    StickerContents,
    StickerPackContents,
    contents_path,
    read_contents,
    write_contents,
)

LOGGER = logging.getLogger(__name__)

STICKER_PACK_SUFFIX = ".stickerpack"
STICKER_SUFFIX = ".sticker"


def clear_sticker_pack(pack: Path) -> StickerPackContents:
    """删除 Contents.json 列出的所有 .sticker 目录并清空列表。"""

    contents = read_contents(pack, StickerPackContents)
    for name in contents.stickers:
        remove_path(pack / name)
    contents.stickers = []
    write_contents(pack, contents)
    return contents


class StickerPackAdapter(PackageAdapter):
    """每张输出图片放入独立的 ``<name>.sticker`` 子目录并登记到贴纸包。"""

    kind = PackageKind.STICKER_PACK

    def prepare(self, sources: Sequence[Path]) -> None:
        self._require_suffix(STICKER_PACK_SUFFIX)
        try:
            self.container.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackagingError(f"无法创建贴纸包: {self.container}") from exc

        if not contents_path(self.container).exists():
            LOGGER.info("创建空的贴纸包 Contents.json: %s", self.container)
            write_contents(self.container, StickerPackContents())

        if self.config.replace:
            LOGGER.info("清空贴纸包: %s", self.container)
            contents = clear_sticker_pack(self.container)
        else:
            contents = read_contents(self.container, StickerPackContents)

        contents.grid_size = self.config.preset.sticker_grid_size
        write_contents(self.container, contents)

    def place(self, destination: Path, state: ContainerState) -> Path:
        pack = destination.parent
        filename = destination.name
        sticker_name = Path(filename).stem + STICKER_SUFFIX
        sticker_dir = pack / sticker_name

        contents = read_contents(pack, StickerPackContents)
        try:
            sticker_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackagingError(f"无法创建贴纸目录: {sticker_dir}") from exc
        clear_folder(sticker_dir)
        write_contents(sticker_dir, StickerContents(filename=filename))

        if sticker_name not in contents.stickers:
            contents.stickers.append(sticker_name)
            write_contents(pack, contents)

        return sticker_dir / filename

    def withdraw(self, final_path: Path) -> None:
        sticker_dir = final_path.parent
        pack = sticker_dir.parent
        try:
            contents = read_contents(pack, StickerPackContents)
            if sticker_dir.name in contents.stickers:
                contents.stickers.remove(sticker_dir.name)
                write_contents(pack, contents)
        except PackagingError as exc:
            LOGGER.warning("撤销贴纸记录失败 %s: %s", sticker_dir, exc)
        remove_path(sticker_dir)

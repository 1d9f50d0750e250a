"""打包适配器的公共接口与普通目录输出。"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from image_munger.core.config import Configuration, PackageKind
from image_munger.core.exceptions import PackagingError
from image_munger.core.models import ProcessResult, TransformPlan
from image_munger.processing.naming import base_name

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ContainerState:
    """单个源文件处理期间的容器状态，由执行器在各计划之间传递。"""

    initialized: bool = False


def remove_path(path: Path) -> bool:
    """尽力删除文件或目录，失败只记录日志。"""

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
    except OSError as exc:
        LOGGER.warning("删除失败 %s: %s", path, exc)
        return False
    return True


def clear_folder(folder: Path) -> None:
    """删除目录下的所有直接子项。"""

    if not folder.is_dir():
        return
    for child in sorted(folder.iterdir()):
        remove_path(child)


class PackageAdapter:
    """打包适配器。

    执行器对每个输出调用 ``place``，在写入图片前改写目标路径；
    ``owns_rendering`` 为真的适配器自行完成整张源图的渲染（``render``）。
    """

    kind = PackageKind.NONE
    owns_rendering = False

    def __init__(self, config: Configuration) -> None:
        if config.destination is None:
            raise PackagingError("缺少输出路径")
        self.config = config
        self.container = config.destination

    def prepare(self, sources: Sequence[Path]) -> None:
        """运行开始前校验并准备容器，失败抛出 PackagingError。"""

    def place(self, destination: Path, state: ContainerState) -> Path:
        """登记即将写入的图片，返回最终写入路径。"""

        return destination

    def withdraw(self, final_path: Path) -> None:
        """写入失败时撤销 ``place`` 登记的记录。"""

    def member_name(self, source: Path) -> str:
        """源文件在输出清单中的名字：去掉扩展名与倍率后缀。"""

        return base_name(source)

    def render(self, source: Path, plan: TransformPlan) -> list[ProcessResult]:
        raise NotImplementedError

    def _require_suffix(self, *suffixes: str) -> None:
        if not any(self.container.name.endswith(suffix) for suffix in suffixes):
            expected = " 或 ".join(suffixes)
            raise PackagingError(f"输出路径 ({self.container}) 不是 {expected} 目录")

    def _require_single_source(self, sources: Sequence[Path]) -> None:
        if len(sources) != 1:
            raise PackagingError(f"{self.kind.value} 打包只允许 1 张源图，实际为 {len(sources)} 张")


class FolderAdapter(PackageAdapter):
    """不打包，直接写入输出目录。"""

    def prepare(self, sources: Sequence[Path]) -> None:
        try:
            self.container.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackagingError(f"无法创建输出目录: {self.container}") from exc
        if self.config.replace:
            LOGGER.info("清空输出目录: %s", self.container)
            clear_folder(self.container)

"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from image_munger.core.config import ImageFormat, PackageKind


@dataclass(slots=True)
class ManifestSetting:
    """清单中的一行 ``= key, value[, value...]``。"""

    key: str
    values: list[str]


@dataclass(slots=True)
class ManifestBlock:
    """清单中以 ``--`` 分隔的一个块：文件列表与覆盖设置。"""

    files: list[str] = field(default_factory=list)
    settings: list[ManifestSetting] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TransformPlan:
    """对单张源图执行的一次几何、格式与打包方案。"""

    scale: float = 0.0
    box_width: int = 0
    box_height: int = 0
    output_format: ImageFormat = ImageFormat.UNCHANGED
    output_package: PackageKind = PackageKind.NONE
    required_suffix: str = ""
    remove_suffix: str = ""
    add_suffix: str = ""


@dataclass(slots=True)
class ProcessResult:
    """记录单个（源文件, 计划）的处理结果。"""

    source_path: Path
    status: str
    destination: Optional[Path] = None
    fatal: bool = False
    message: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status.startswith("error")


@dataclass(slots=True)
class BatchResult:
    """一次运行的全部产出。"""

    results: list[ProcessResult] = field(default_factory=list)
    block_errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ProcessResult]:
        return [item for item in self.results if item.status == "processed"]

    @property
    def skipped(self) -> list[ProcessResult]:
        return [item for item in self.results if item.status == "skipped"]

    @property
    def failed(self) -> list[ProcessResult]:
        return [item for item in self.results if item.is_error]

"""图标变体表与 .icns 打包适配器。"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from image_munger.core.config import ImageFormat, PackageKind
from image_munger.core.exceptions import ImageLoadingError, ImageWriteError, PackagingError
from image_munger.core.models import ProcessResult, TransformPlan
from image_munger.packaging.base import PackageAdapter, remove_path
from image_munger.processing.imaging import fill, open_image, save_image
from image_munger.processing.naming import has_suffix

LOGGER = logging.getLogger(__name__)

ICNS_SUFFIX = ".icns"
ICONSET_SUFFIX = ".iconset"
ICON_CONVERTER = "iconutil"

# (点尺寸, 倍率)，与 iconutil 要求的文件名一一对应。
ICON_VARIANTS: tuple[tuple[int, int], ...] = (
    (16, 1),
    (16, 2),
    (32, 1),
    (32, 2),
    (128, 1),
    (128, 2),
    (256, 1),
    (256, 2),
    (512, 1),
    (512, 2),
)


def variant_filename(size: int, scale: int, extension: str) -> str:
    suffix = "@2x" if scale == 2 else ""
    return f"icon_{size}x{size}{suffix}{extension}"


def render_icon_variants(source: Path, plan: TransformPlan, folder: Path) -> list[ProcessResult]:
    """把源图按固定变体表居中裁剪填充写入 ``folder``，不生成 Contents.json。"""

    if plan.required_suffix and not has_suffix(source, plan.required_suffix):
        LOGGER.info("%s 缺少必需的后缀 %s，跳过", source.name, plan.required_suffix)
        return [ProcessResult(source, "skipped", message=f"缺少必需的后缀: {plan.required_suffix}")]

    source_format = ImageFormat.for_path(source)
    if source_format is ImageFormat.UNCHANGED:
        return [ProcessResult(source, "error-format", fatal=True, message="不支持的源图片格式")]
    extension = plan.output_format.extension or source.suffix

    try:
        image = open_image(source)
    except ImageLoadingError as exc:
        return [ProcessResult(source, "error-open", fatal=True, message=str(exc))]

    results: list[ProcessResult] = []
    for size, scale in ICON_VARIANTS:
        pixels = size * scale
        destination = folder / variant_filename(size, scale, extension)
        try:
            save_image(fill(image, pixels, pixels), destination)
        except ImageWriteError as exc:
            results.append(ProcessResult(source, "error-save", destination=destination, fatal=True, message=str(exc)))
            break
        results.append(ProcessResult(source, "processed", destination=destination))
    return results


def convert_iconset(folder: Path, output: Path) -> None:
    """调用 iconutil 把 .iconset 目录压缩为单个 .icns 文件。"""

    command = [ICON_CONVERTER, "--convert", "icns", "--output", str(output), str(folder)]
    LOGGER.debug("执行: %s", " ".join(command))
    try:
        completed = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise PackagingError(f"无法执行 {ICON_CONVERTER}: {exc}") from exc
    if completed.returncode != 0:
        detail = (completed.stderr or completed.stdout or "").strip()
        raise PackagingError(f"{ICON_CONVERTER} 转换失败 (退出码 {completed.returncode}): {detail}")


class IcnsAdapter(PackageAdapter):
    """先在临时 .iconset 目录生成 10 个变体，再转换为 .icns。"""

    kind = PackageKind.ICNS
    owns_rendering = True

    def prepare(self, sources: Sequence[Path]) -> None:
        self._require_suffix(ICNS_SUFFIX)
        self._require_single_source(sources)
        try:
            self.container.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackagingError(f"无法创建输出目录: {self.container.parent}") from exc

    @property
    def working_folder(self) -> Path:
        return self.container.with_suffix(ICONSET_SUFFIX)

    def render(self, source: Path, plan: TransformPlan) -> list[ProcessResult]:
        folder = self.working_folder
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return [ProcessResult(source, "error-package", fatal=True, message=f"无法创建 {folder}: {exc}")]

        try:
            results = render_icon_variants(source, plan, folder)
            if any(item.status != "processed" for item in results):
                return results
            try:
                convert_iconset(folder, self.container)
            except PackagingError as exc:
                results.append(
                    ProcessResult(source, "error-convert", destination=self.container, fatal=True, message=str(exc))
                )
            else:
                results.append(ProcessResult(source, "processed", destination=self.container))
            return results
        finally:
            remove_path(folder)

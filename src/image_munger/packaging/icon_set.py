"""图标集（.appiconset / .stickersiconset / .iconset）适配器。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, Tuple

from image_munger.core.config import ImageFormat, PackageKind
from image_munger.core.exceptions import ImageLoadingError, ImageWriteError, PackagingError
from image_munger.core.models import ProcessResult, TransformPlan
from image_munger.packaging.base import PackageAdapter, remove_path
from image_munger.packaging.contents import ImageRecord, ImageSetContents, read_contents, write_contents
from image_munger.packaging.icns import ICONSET_SUFFIX, render_icon_variants
from image_munger.processing.imaging import fill, open_image, save_image
from image_munger.processing.naming import change_extension_for_format, change_suffix, has_suffix

LOGGER = logging.getLogger(__name__)

ICON_SET_SUFFIXES = (".stickersiconset", ".appiconset")


def required_pixels(record: ImageRecord) -> Tuple[int, int]:
    """``size="32x32"`` 与 ``scale="2x"`` → ``(64, 64)``。"""

    try:
        width_text, height_text = record.size.split("x", 1)
        scale = float(record.scale.split("x", 1)[0])
        width = float(width_text)
        height = float(height_text)
    except (AttributeError, ValueError) as exc:
        raise PackagingError(f"无法解析 size={record.size!r} scale={record.scale!r}") from exc
    return int(width * scale), int(height * scale)


class IconSetAdapter(PackageAdapter):
    """按已有 Contents.json 声明的 size/scale 生成图标，不新增条目。

    目标为普通 ``.iconset`` 目录时改为写入固定的 10 个变体，不使用 Contents.json。
    """

    kind = PackageKind.ICON_SET
    owns_rendering = True

    @property
    def is_generic(self) -> bool:
        return self.container.name.endswith(ICONSET_SUFFIX)

    def prepare(self, sources: Sequence[Path]) -> None:
        self._require_suffix(*ICON_SET_SUFFIXES, ICONSET_SUFFIX)
        self._require_single_source(sources)
        if self.is_generic:
            try:
                self.container.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise PackagingError(f"无法创建图标集: {self.container}") from exc

    def render(self, source: Path, plan: TransformPlan) -> list[ProcessResult]:
        if self.is_generic:
            return render_icon_variants(source, plan, self.container)

        try:
            contents = read_contents(self.container, ImageSetContents)
        except PackagingError as exc:
            return [ProcessResult(source, "error-package", fatal=True, message=str(exc))]

        # 先整体检查，缺 size/scale 时不触碰任何文件。
        for record in contents.images:
            if not record.size:
                return [ProcessResult(source, "error-package", fatal=True, message="图标条目缺少 size")]
            if not record.scale:
                return [ProcessResult(source, "error-package", fatal=True, message="图标条目缺少 scale")]

        if plan.required_suffix and not has_suffix(source, plan.required_suffix):
            LOGGER.info("%s 缺少必需的后缀 %s，跳过", source.name, plan.required_suffix)
            return [ProcessResult(source, "skipped", message=f"缺少必需的后缀: {plan.required_suffix}")]
        if ImageFormat.for_path(source) is ImageFormat.UNCHANGED:
            return [ProcessResult(source, "error-format", fatal=True, message="不支持的源图片格式")]

        try:
            image = open_image(source)
        except ImageLoadingError as exc:
            return [ProcessResult(source, "error-open", fatal=True, message=str(exc))]

        results: list[ProcessResult] = []
        base_name = change_extension_for_format(source.name, plan.output_format)
        for record in contents.images:
            try:
                width, height = required_pixels(record)
            except PackagingError as exc:
                results.append(ProcessResult(source, "error-package", fatal=True, message=str(exc)))
                break

            if record.filename:
                remove_path(self.container / record.filename)
                record.filename = None

            filename = change_suffix(base_name, "", f"-{record.size}-{record.scale}")
            destination = self.container / filename
            try:
                save_image(fill(image, width, height), destination)
            except ImageWriteError as exc:
                results.append(ProcessResult(source, "error-save", destination=destination, fatal=True, message=str(exc)))
                break

            record.filename = filename
            results.append(ProcessResult(source, "processed", destination=destination))

        try:
            write_contents(self.container, contents)
        except PackagingError as exc:
            results.append(ProcessResult(source, "error-package", fatal=True, message=str(exc)))
        return results

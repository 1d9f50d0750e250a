"""资源目录（.xcassets）适配器：为大贴纸生成带占位图的图片集。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from image_munger.core.config import Preset, PackageKind
from image_munger.core.exceptions import ImageLoadingError, ImageWriteError, PackagingError
from image_munger.core.models import ProcessResult, TransformPlan
from image_munger.packaging.base import PackageAdapter, clear_folder
from image_munger.packaging.contents import (
    CatalogContents,
    ImageRecord,
    ImageSetContents,
    contents_path,
    write_contents,
)
from image_munger.packaging.image_set import IMAGE_IDIOM, IMAGE_SET_SUFFIX, reset_image_set
from image_munger.processing.imaging import blank_image, fit, open_image, save_image
from image_munger.processing.naming import change_extension_for_format, change_suffix
from image_munger.processing.presets import STICKER_IMAGE_SET_1X_PX

LOGGER = logging.getLogger(__name__)

CATALOG_SUFFIX = ".xcassets"
STICKER_IMAGE_SET_2X_PX = 412
MAX_STICKER_BYTES = 512000


def check_sticker_size(path: Path, label: str) -> bool:
    """贴纸文件超过大小上限时记录警告，返回是否在上限内。"""

    try:
        size = path.stat().st_size
    except OSError:
        return True
    if size > MAX_STICKER_BYTES:
        LOGGER.warning("%s 贴纸图片过大 (%d > %d)", label, size, MAX_STICKER_BYTES)
        return False
    return True


class CatalogAdapter(PackageAdapter):
    """每张源图生成 ``<name>.imageset``：1x 与 3x 为透明占位图，2x 为真实图片。"""

    kind = PackageKind.CATALOG
    owns_rendering = True

    def prepare(self, sources: Sequence[Path]) -> None:
        self._require_suffix(CATALOG_SUFFIX)
        if self.config.preset is not Preset.IMAGE_SET_FOR_LARGE_STICKER:
            raise PackagingError(f"catalog 打包只能与 {Preset.IMAGE_SET_FOR_LARGE_STICKER.value} 预设一起使用")
        try:
            self.container.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackagingError(f"无法创建资源目录: {self.container}") from exc

        if self.config.replace:
            LOGGER.info("清空资源目录: %s", self.container)
            clear_folder(self.container)
            write_contents(self.container, CatalogContents())
        elif not contents_path(self.container).exists():
            write_contents(self.container, CatalogContents())

    def member_name(self, source: Path) -> str:
        return source.stem

    def render(self, source: Path, plan: TransformPlan) -> list[ProcessResult]:
        """文件名沿用源文件名，扩展名按计划的输出格式改写（该预设为 png）。"""

        set_path = self.container / (self.member_name(source) + IMAGE_SET_SUFFIX)
        try:
            reset_image_set(set_path)
        except PackagingError as exc:
            return [ProcessResult(source, "error-package", fatal=True, message=str(exc))]

        base = set_path / change_extension_for_format(source.name, plan.output_format)
        contents = ImageSetContents()
        results: list[ProcessResult] = []

        variants = (
            ("1x", base, None, STICKER_IMAGE_SET_1X_PX),
            ("2x", Path(change_suffix(str(base), "", "@2x")), source, STICKER_IMAGE_SET_2X_PX),
            ("3x", Path(change_suffix(str(base), "", "@3x")), None, STICKER_IMAGE_SET_2X_PX),
        )
        completed = True
        for scale, destination, real_source, box in variants:
            if real_source is None:
                image = blank_image()
            else:
                try:
                    image = open_image(real_source)
                except ImageLoadingError as exc:
                    results.append(
                        ProcessResult(source, "error-open", destination=destination, fatal=True, message=str(exc))
                    )
                    completed = False
                    break
            try:
                save_image(fit(image, box, box), destination)
            except ImageWriteError as exc:
                results.append(ProcessResult(source, "error-save", destination=destination, fatal=True, message=str(exc)))
                completed = False
                break
            contents.images.append(ImageRecord(filename=destination.name, idiom=IMAGE_IDIOM, scale=scale))
            results.append(ProcessResult(source, "processed", destination=destination))

        try:
            write_contents(set_path, contents)
        except PackagingError as exc:
            results.append(ProcessResult(source, "error-package", fatal=True, message=str(exc)))
            return results

        if completed:
            check_sticker_size(variants[-1][1], source.name)
        return results

"""对单个源文件依次执行变换计划。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image

from image_munger.core.config import Configuration, ImageFormat
from image_munger.core.exceptions import ImageLoadingError, ImageWriteError, PackagingError
from image_munger.core.models import ProcessResult, TransformPlan
from image_munger.packaging.base import ContainerState, PackageAdapter
from image_munger.processing.imaging import apply_plan_geometry, open_image, save_image
from image_munger.processing.naming import destination_name, has_suffix

LOGGER = logging.getLogger(__name__)


def process_file(
    source: Path,
    plans: Sequence[TransformPlan],
    config: Configuration,
    adapter: PackageAdapter,
) -> list[ProcessResult]:
    """按顺序执行 ``plans``，返回每个计划的结果。

    缺少必需后缀的计划记为 skipped 并继续下一个计划；打开、保存或登记失败
    记为致命错误并放弃该文件剩余的计划。
    """

    LOGGER.info("处理: %s", source.name)

    if adapter.owns_rendering:
        results = adapter.render(source, plans[0])
        _log_failures(results)
        return results

    if ImageFormat.for_path(source) is ImageFormat.UNCHANGED:
        result = ProcessResult(source, "error-format", fatal=True, message=f"不支持的源图片格式: {source.suffix}")
        _log_failures([result])
        return [result]

    assert config.destination is not None
    state = ContainerState()
    image: Optional[Image.Image] = None
    results: list[ProcessResult] = []

    for plan in plans:
        if plan.required_suffix and not has_suffix(source, plan.required_suffix):
            LOGGER.info("%s 缺少必需的后缀 %s，跳过", source.name, plan.required_suffix)
            results.append(ProcessResult(source, "skipped", message=f"缺少必需的后缀: {plan.required_suffix}"))
            continue

        if image is None:
            try:
                image = open_image(source)
            except ImageLoadingError as exc:
                results.append(ProcessResult(source, "error-open", fatal=True, message=str(exc)))
                break

        destination = config.destination / destination_name(source.name, plan)
        output = apply_plan_geometry(image, plan)

        try:
            destination = adapter.place(destination, state)
        except PackagingError as exc:
            results.append(ProcessResult(source, "error-package", destination=destination, fatal=True, message=str(exc)))
            break

        try:
            save_image(output, destination)
        except ImageWriteError as exc:
            adapter.withdraw(destination)
            results.append(ProcessResult(source, "error-save", destination=destination, fatal=True, message=str(exc)))
            break

        LOGGER.debug("写入 %s (%dx%d)", destination, *output.size)
        results.append(ProcessResult(source, "processed", destination=destination))

    if image is not None:
        image.close()
    _log_failures(results)
    return results


def _log_failures(results: Sequence[ProcessResult]) -> None:
    for result in results:
        if result.is_error:
            LOGGER.error("%s 处理失败 (%s): %s", result.source_path.name, result.status, result.message)

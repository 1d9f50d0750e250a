"""处理流水线：解析清单、逐块收集文件、执行计划并汇总结果。"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from image_munger.core.config import Configuration, validate_configuration
from image_munger.core.exceptions import ImageMungerError
from image_munger.core.manifest import parse_manifest
from image_munger.core.models import BatchResult, ManifestBlock, ProcessResult
from image_munger.core.progress import ProgressUpdate
from image_munger.core.resolver import apply_manifest_settings
from image_munger.core.scanner import collect_source_files
from image_munger.packaging.factory import create_adapter
from image_munger.processing.executor import process_file
from image_munger.processing.naming import base_name
from image_munger.processing.presets import compile_plans

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


def run_job(base: Configuration, progress_callback: ProgressCallback = None) -> BatchResult:
    """运行入口：有清单时逐块处理，否则把基础配置当作唯一的块。

    单个块的配置、收集或打包准备失败只放弃该块，记录到 ``block_errors``。
    清单文件本身无法读取时抛出 InvalidConfigurationError。
    """

    if base.manifest_path is not None:
        blocks = parse_manifest(base.manifest_path)
    else:
        blocks = [ManifestBlock()]

    batch = BatchResult()
    for index, block in enumerate(blocks, start=1):
        config = apply_manifest_settings(base, block)
        try:
            results = process_block(index, config, block.files, progress_callback)
        except ImageMungerError as exc:
            message = f"块 {index}: {exc}"
            LOGGER.error("%s", message)
            batch.block_errors.append(message)
            continue
        batch.results.extend(results)
    return batch


def process_block(
    index: int,
    config: Configuration,
    manifest_files: Sequence[str] = (),
    progress_callback: ProgressCallback = None,
) -> list[ProcessResult]:
    """处理单个块：校验配置、收集文件、准备打包容器并逐个执行。"""

    validate_configuration(config)
    assert config.source is not None

    sources = collect_source_files(config.source, config.valid_extensions, manifest_files)
    total = len(sources)
    LOGGER.info("块 %d: 发现 %d 个待处理文件", index, total)
    if total == 0:
        _emit_progress(progress_callback, index, 0, 0, "没有需要处理的图片")
        return []

    plans = compile_plans(config)
    adapter = create_adapter(config)
    adapter.prepare(sources)

    results: list[ProcessResult] = []
    _emit_progress(progress_callback, index, total, 0)
    for completed, source in enumerate(sources, start=1):
        results.extend(process_file(source, plans, config, adapter))
        _emit_progress(progress_callback, index, total, completed, f"完成 {source.name}")

    if config.out_manifest is not None:
        _write_out_manifest(config.out_manifest, processed_names(results, adapter.member_name))
    return results


def processed_names(
    results: Sequence[ProcessResult],
    name_for: Callable[[Path], str] = base_name,
) -> list[str]:
    """至少有一个成功输出的源文件名，保持处理顺序。

    ``name_for`` 由打包适配器决定，默认去掉扩展名与倍率后缀。
    """

    names: list[str] = []
    for result in results:
        if result.status != "processed":
            continue
        name = name_for(result.source_path)
        if name not in names:
            names.append(name)
    return names


def _write_out_manifest(path: Path, names: Sequence[str]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(names, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        LOGGER.error("写入输出清单失败 %s: %s", path, exc)
        return
    LOGGER.info("已写入输出清单: %s (%d 项)", path, len(names))


def _emit_progress(
    callback: ProgressCallback,
    block: int,
    total: int,
    completed: int,
    message: Optional[str] = None,
) -> None:
    if not callback:
        return
    callback(ProgressUpdate(block=block, total=total, completed=completed, message=message))

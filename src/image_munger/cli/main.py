"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from image_munger.core.config import ImageFormat, PackageKind, Preset, configuration_from_options
from image_munger.core.exceptions import InvalidConfigurationError
from image_munger.core.manifest import write_sample_manifest
from image_munger.core.progress import ProgressUpdate
from image_munger.core.report import format_error_lines, write_csv_report
from image_munger.processing.pipeline import run_job
from image_munger.utils.logging import setup_logging

app = typer.Typer(help="批量缩放、转换图片并打包为贴纸包、图片集或图标。")

LOGGER = logging.getLogger(__name__)


def _build_progress_callback(progress: Progress):
    task_ids: Dict[int, int] = {}

    def callback(update: ProgressUpdate) -> None:
        if update.total == 0:
            return
        task_id = task_ids.get(update.block)
        if task_id is None:
            task_id = progress.add_task(f"块 {update.block}", total=update.total)
            task_ids[update.block] = task_id
        progress.update(task_id, completed=update.completed)

    return callback


@app.command("run")
def run_cli(  # noqa: PLR0913
    source: Optional[Path] = typer.Option(None, "--src", help="源目录或单个源文件"),
    destination: Optional[Path] = typer.Option(None, "--dst", help="输出目录或打包容器"),
    manifest: Optional[Path] = typer.Option(None, "--manifest", help="清单文件"),
    preset: Preset = typer.Option(Preset.NONE, "--preset", help="预设"),
    valid_format: Optional[List[str]] = typer.Option(None, "--valid-format", help="允许的源扩展名，可重复指定"),
    out_format: ImageFormat = typer.Option(ImageFormat.UNCHANGED, "--out-format", help="输出格式"),
    out_package: PackageKind = typer.Option(PackageKind.NONE, "--out-package", help="打包方式"),
    replace: bool = typer.Option(False, "--out-package-replace", help="处理前清空已有的打包内容"),
    scale: float = typer.Option(0.0, "--scale", help="按比例缩放，与 max-* 互斥"),
    max_px: int = typer.Option(0, "--max-px", help="同时限制宽与高"),
    max_width_px: int = typer.Option(0, "--max-width-px", help="最大宽度"),
    max_height_px: int = typer.Option(0, "--max-height-px", help="最大高度"),
    report: Optional[Path] = typer.Option(None, "--report", help="把处理结果写入 CSV 报告"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """执行批量处理。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)
    LOGGER.debug("CLI 参数解析完成")

    try:
        config = configuration_from_options(
            source=source,
            destination=destination,
            manifest=manifest,
            preset=preset,
            valid_formats=valid_format or (),
            out_format=out_format,
            out_package=out_package,
            replace=replace,
            scale=scale,
            max_px=max_px,
            max_width_px=max_width_px,
            max_height_px=max_height_px,
        )
    except InvalidConfigurationError as exc:
        typer.echo(f"参数错误: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
    )

    try:
        with progress:
            result = run_job(config, progress_callback=_build_progress_callback(progress))
    except InvalidConfigurationError as exc:
        typer.echo(f"参数错误: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    for message in result.block_errors:
        typer.echo(f"错误 ({message})")
    for line in format_error_lines(result.results):
        typer.echo(line)

    typer.echo(
        f"处理完成：成功 {len(result.succeeded)} 项，跳过 {len(result.skipped)} 项，失败 {len(result.failed)} 项。"
    )
    if report is not None:
        report_path = write_csv_report(result.results, report.expanduser())
        typer.echo(f"报告文件：{report_path}")


@app.command("sample-manifest")
def sample_manifest_cli(
    path: Path = typer.Argument(..., help="示例清单的输出路径"),
) -> None:
    """写出带注释的示例清单。"""

    written = write_sample_manifest(path.expanduser())
    typer.echo(f"示例清单已写入：{written}")


if __name__ == "__main__":
    app()

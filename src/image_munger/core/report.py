"""处理结果汇总与报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Iterator

from image_munger.core.models import ProcessResult

HEADER = ["source_path", "output_path", "status", "fatal", "message"]


def format_error_lines(results: Iterable[ProcessResult]) -> Iterator[str]:
    """为每条错误结果生成一行，包含错误信息与源路径。"""

    for record in results:
        if record.is_error:
            yield f"错误 ({record.message}) 文件 ({record.source_path})"


def write_csv_report(results: Iterable[ProcessResult], report_path: Path) -> Path:
    """将处理结果写入 CSV 报告。"""

    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for record in results:
            writer.writerow(
                [
                    str(record.source_path),
                    str(record.destination) if record.destination else "",
                    record.status,
                    "1" if record.fatal else "0",
                    record.message or "",
                ]
            )
    return report_path

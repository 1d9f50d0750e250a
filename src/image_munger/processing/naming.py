"""输出文件名的后缀与扩展名改写规则。

这里的“后缀”指文件名去掉扩展名后的结尾，例如 ``photo@3x.png`` 的后缀 ``@3x``。
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from image_munger.core.config import ImageFormat
from image_munger.core.models import TransformPlan

SCALE_SUFFIXES = ("@1x", "@2x", "@3x")


def has_suffix(path: Path | str, suffix: str) -> bool:
    return Path(path).stem.endswith(suffix)


def change_suffix(name: str, remove: str, add: str) -> str:
    """去掉文件名末尾的 ``remove``（若存在）后追加 ``add``，保留扩展名。"""

    path = Path(name)
    stem = path.stem
    if remove and stem.endswith(remove):
        stem = stem[: -len(remove)]
    return str(path.with_name(f"{stem}{add}{path.suffix}"))


def change_extension(name: str, extension: str) -> str:
    """替换扩展名，``extension`` 需带点号，传空字符串表示去掉扩展名。"""

    path = Path(name)
    return str(path.with_name(f"{path.stem}{extension}"))


def change_extension_for_format(name: str, image_format: ImageFormat) -> str:
    if image_format is ImageFormat.UNCHANGED:
        return name
    return change_extension(name, image_format.extension)


def strip_suffixes(stem: str, suffixes: Iterable[str] = SCALE_SUFFIXES) -> str:
    for suffix in suffixes:
        if stem.endswith(suffix):
            return stem[: -len(suffix)]
    return stem


def destination_name(source_name: str, plan: TransformPlan) -> str:
    """由源文件名推导输出文件名：先按计划格式换扩展名，再改写后缀。"""

    name = change_extension_for_format(source_name, plan.output_format)
    if plan.remove_suffix or plan.add_suffix:
        name = change_suffix(name, plan.remove_suffix, plan.add_suffix)
    return name


def base_name(path: Path) -> str:
    """去掉扩展名与倍率后缀后的名字，用于输出清单。"""

    return strip_suffixes(path.stem)

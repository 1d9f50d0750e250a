"""把清单块的设置叠加到基础配置上。"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from image_munger.core.config import (
    Configuration,
    ImageFormat,
    PackageKind,
    Preset,
    make_valid_extensions,
)
from image_munger.core.models import ManifestBlock, ManifestSetting

LOGGER = logging.getLogger(__name__)

MANIFEST_RELATIVE_PREFIX = "~~"

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


def resolve_manifest_path(value: str, manifest_path: Optional[Path]) -> Path:
    """解析路径型设置。

    ``~~`` 开头表示相对清单文件所在目录，``~`` 开头表示用户主目录，
    其他路径原样保留。
    """

    if value.startswith(MANIFEST_RELATIVE_PREFIX):
        relative = "." + value[len(MANIFEST_RELATIVE_PREFIX):]
        root = manifest_path.parent if manifest_path else Path(".")
        return Path(root, relative)
    return Path(value).expanduser()


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"无法解析布尔值: {value}")


def apply_manifest_settings(base: Configuration, block: ManifestBlock) -> Configuration:
    """按文件顺序应用块内设置，每条只覆盖对应字段。

    未知键或格式错误的值会记录警告并忽略，不会中断处理。
    """

    config = base
    for setting in block.settings:
        handler = _HANDLERS.get(setting.key)
        if handler is None:
            LOGGER.warning("忽略未知的清单设置: %s", setting.key)
            continue
        if not setting.values or not setting.values[0]:
            LOGGER.warning("清单设置缺少取值: %s", setting.key)
            continue
        try:
            overrides = handler(setting, config)
        except ValueError as exc:
            LOGGER.warning("忽略格式错误的清单设置 %s=%s: %s", setting.key, ", ".join(setting.values), exc)
            continue
        if overrides:
            config = replace(config, **overrides)
    return config


def _path_setting(field_name: str) -> Callable[[ManifestSetting, Configuration], Dict[str, Any]]:
    def handler(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
        return {field_name: resolve_manifest_path(setting.values[0], config.manifest_path)}

    return handler


def _preset(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    preset = Preset.from_string(setting.values[0])
    if preset is None:
        raise ValueError("未知的预设")
    return {"preset": preset}


def _valid_format(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    return {"valid_extensions": make_valid_extensions(setting.values)}


def _out_format(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    image_format = ImageFormat.from_string(setting.values[0])
    if image_format is None:
        raise ValueError("未知的输出格式")
    return {"output_format": image_format}


def _out_package(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    package = PackageKind.from_string(setting.values[0])
    if package is None:
        raise ValueError("未知的打包方式")
    return {"output_package": package}


def _out_package_replace(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    return {"replace": parse_bool(setting.values[0])}


def _scale(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    return {"scale": float(setting.values[0])}


def _max_px(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    value = int(setting.values[0])
    return {"max_width": value, "max_height": value}


def _max_width_px(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    return {"max_width": int(setting.values[0])}


def _max_height_px(setting: ManifestSetting, config: Configuration) -> Dict[str, Any]:
    return {"max_height": int(setting.values[0])}


_HANDLERS: Dict[str, Callable[[ManifestSetting, Configuration], Dict[str, Any]]] = {
    "src": _path_setting("source"),
    "dst": _path_setting("destination"),
    "preset": _preset,
    "valid-format": _valid_format,
    "out-manifest": _path_setting("out_manifest"),
    "out-format": _out_format,
    "out-package": _out_package,
    "out-package-replace": _out_package_replace,
    "scale": _scale,
    "max-px": _max_px,
    "max-width-px": _max_width_px,
    "max-height-px": _max_height_px,
}

"""处理任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from image_munger.core.exceptions import InvalidConfigurationError

DEFAULT_EXTENSIONS: Tuple[str, ...] = ("jpg", "jpeg", "png", "gif", "tif", "tiff")

# 选择 jpg / tif 时隐式允许的同义扩展名，反向不成立。
_IMPLIED_EXTENSIONS = {"jpg": "jpeg", "tif": "tiff"}


class ImageFormat(str, Enum):
    """输出图片格式，UNCHANGED 表示沿用源格式。"""

    UNCHANGED = "unchanged"
    JPEG = "jpg"
    PNG = "png"
    GIF = "gif"
    TIFF = "tif"

    @classmethod
    def from_string(cls, value: str) -> Optional["ImageFormat"]:
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def for_path(cls, path: Path | str) -> "ImageFormat":
        """根据扩展名推断格式（区分大小写），无法识别时返回 UNCHANGED。"""

        suffix = Path(path).suffix
        return _FORMAT_BY_SUFFIX.get(suffix, cls.UNCHANGED)

    @property
    def extension(self) -> str:
        return "" if self is ImageFormat.UNCHANGED else f".{self.value}"

    @property
    def pillow_format(self) -> Optional[str]:
        return _PILLOW_FORMATS.get(self)


_FORMAT_BY_SUFFIX = {
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
    ".png": ImageFormat.PNG,
    ".gif": ImageFormat.GIF,
    ".tif": ImageFormat.TIFF,
    ".tiff": ImageFormat.TIFF,
}

_PILLOW_FORMATS = {
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
    ImageFormat.GIF: "GIF",
    ImageFormat.TIFF: "TIFF",
}


class PackageKind(str, Enum):
    """输出打包方式。"""

    NONE = "none"
    STICKER_PACK = "stickerpack"
    IMAGE_SET = "imageset"
    ICON_SET = "iconset"
    ICNS = "icns"
    CATALOG = "catalog"

    @classmethod
    def from_string(cls, value: str) -> Optional["PackageKind"]:
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class Preset(str, Enum):
    """预设名称，展开为一个或多个变换计划。"""

    NONE = "none"
    SMALL_STICKER = "smallSticker"
    MEDIUM_STICKER = "mediumSticker"
    LARGE_STICKER = "largeSticker"
    THUMB_256 = "thumb256"
    IMAGE_SET = "imageSet"
    IMAGE_SET_FOR_LARGE_STICKER = "imageSetForLargeSticker"
    LARGE_STICKER_WITH_IMAGE_SET = "largeStickerWithImageSet"

    @classmethod
    def from_string(cls, value: str) -> Optional["Preset"]:
        try:
            return cls(value.strip())
        except ValueError:
            return None

    @property
    def sticker_grid_size(self) -> str:
        """贴纸包 Contents.json 中的 grid-size。"""

        if self is Preset.SMALL_STICKER:
            return "small"
        if self is Preset.LARGE_STICKER:
            return "large"
        return "regular"


@dataclass(frozen=True, slots=True)
class Configuration:
    """单个任务（一个清单块或无清单运行）解析后的配置，校验后不再修改。"""

    source: Optional[Path] = None
    destination: Optional[Path] = None
    manifest_path: Optional[Path] = None
    preset: Preset = Preset.NONE
    valid_extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    out_manifest: Optional[Path] = None
    output_format: ImageFormat = ImageFormat.UNCHANGED
    output_package: PackageKind = PackageKind.NONE
    replace: bool = False
    scale: float = 0.0
    max_width: int = 0
    max_height: int = 0


def make_valid_extensions(selected: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """生成允许的源扩展名列表；未选择时使用默认集合。"""

    chosen = [item.strip().lstrip(".") for item in (selected or ()) if item.strip()]
    if not chosen:
        return DEFAULT_EXTENSIONS

    allowed: list[str] = []
    for value in chosen:
        if value not in allowed:
            allowed.append(value)
    for value in chosen:
        implied = _IMPLIED_EXTENSIONS.get(value)
        if implied and implied not in allowed:
            allowed.append(implied)
    return tuple(allowed)


def validate_configuration(config: Configuration) -> Configuration:
    """校验单个任务配置，失败时抛出 InvalidConfigurationError。"""

    if config.source is None or not str(config.source):
        raise InvalidConfigurationError("缺少 src。")
    if config.destination is None or not str(config.destination):
        raise InvalidConfigurationError("缺少 dst。")
    if config.scale != 0 and (config.max_width != 0 or config.max_height != 0):
        raise InvalidConfigurationError("不能同时指定 scale 与 max-width / max-height。")
    return config


def configuration_from_options(  # noqa: PLR0913
    *,
    source: Optional[Path] = None,
    destination: Optional[Path] = None,
    manifest: Optional[Path] = None,
    preset: Preset = Preset.NONE,
    valid_formats: Sequence[str] = (),
    out_format: ImageFormat = ImageFormat.UNCHANGED,
    out_package: PackageKind = PackageKind.NONE,
    replace: bool = False,
    scale: float = 0.0,
    max_px: int = 0,
    max_width_px: int = 0,
    max_height_px: int = 0,
) -> Configuration:
    """把命令行参数转换为基础配置。

    只检查参数之间的互斥关系；src / dst 是否齐全留给每个清单块校验，
    因为它们可以由清单补充。
    """

    if scale != 0:
        if max_px != 0 or max_width_px != 0 or max_height_px != 0:
            raise InvalidConfigurationError("不能同时指定 scale 与 max-px、max-width-px、max-height-px 中的任意一个。")
    elif max_px != 0 and (max_width_px != 0 or max_height_px != 0):
        raise InvalidConfigurationError("不能同时指定 max-px 与 max-width-px、max-height-px。")

    max_width = max_px
    max_height = max_px
    if max_width_px != 0:
        max_width = max_width_px
    if max_height_px != 0:
        max_height = max_height_px

    return Configuration(
        source=source.expanduser() if source else None,
        destination=destination.expanduser() if destination else None,
        manifest_path=manifest.expanduser().resolve() if manifest else None,
        preset=preset,
        valid_extensions=make_valid_extensions(valid_formats),
        output_format=out_format,
        output_package=out_package,
        replace=replace,
        scale=scale,
        max_width=max_width,
        max_height=max_height,
    )

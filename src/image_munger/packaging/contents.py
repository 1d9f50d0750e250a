"""各类包容器的 Contents.json 文档模型与读写。"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from image_munger.core.exceptions import PackagingError

CONTENTS_FILENAME = "Contents.json"
CONTENTS_AUTHOR = "xcode"
CONTENTS_VERSION = 1

_IMAGE_FIELDS = ("filename", "idiom", "scale", "platform", "size", "role", "subtype")


@dataclass(slots=True)
class ContentsInfo:
    version: int = CONTENTS_VERSION
    author: str = CONTENTS_AUTHOR

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "author": self.author}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ContentsInfo":
        data = data or {}
        return cls(version=data.get("version", CONTENTS_VERSION), author=data.get("author", CONTENTS_AUTHOR))


@dataclass(slots=True)
class StickerPackContents:
    """``.stickerpack/Contents.json``：贴纸目录列表与网格尺寸。"""

    stickers: List[str] = field(default_factory=list)
    grid_size: str = "regular"
    info: ContentsInfo = field(default_factory=ContentsInfo)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stickers": [{"filename": name} for name in self.stickers],
            "info": self.info.to_dict(),
            "properties": {"grid-size": self.grid_size},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StickerPackContents":
        stickers = [item.get("filename", "") for item in data.get("stickers") or []]
        properties = data.get("properties") or {}
        return cls(
            stickers=[name for name in stickers if name],
            grid_size=properties.get("grid-size", "regular"),
            info=ContentsInfo.from_dict(data.get("info")),
        )


@dataclass(slots=True)
class StickerContents:
    """``.sticker/Contents.json``：单个贴纸引用的图片文件。"""

    filename: str
    info: ContentsInfo = field(default_factory=ContentsInfo)

    def to_dict(self) -> Dict[str, Any]:
        return {"info": self.info.to_dict(), "properties": {"filename": self.filename}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StickerContents":
        properties = data.get("properties") or {}
        return cls(filename=properties.get("filename", ""), info=ContentsInfo.from_dict(data.get("info")))


@dataclass(slots=True)
class ImageRecord:
    """图片集 / 图标集中的一条图片记录，保留未识别的字段。"""

    filename: Optional[str] = None
    idiom: Optional[str] = None
    scale: Optional[str] = None
    platform: Optional[str] = None
    size: Optional[str] = None
    role: Optional[str] = None
    subtype: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in _IMAGE_FIELDS if getattr(self, name)}
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageRecord":
        known = {name: data.get(name) for name in _IMAGE_FIELDS}
        extra = {key: value for key, value in data.items() if key not in _IMAGE_FIELDS}
        return cls(**known, extra=extra)


@dataclass(slots=True)
class ImageSetContents:
    """``.imageset`` / ``.appiconset`` / ``.stickersiconset`` 的 Contents.json。"""

    images: List[ImageRecord] = field(default_factory=list)
    info: ContentsInfo = field(default_factory=ContentsInfo)

    def to_dict(self) -> Dict[str, Any]:
        return {"images": [image.to_dict() for image in self.images], "info": self.info.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageSetContents":
        return cls(
            images=[ImageRecord.from_dict(item) for item in data.get("images") or []],
            info=ContentsInfo.from_dict(data.get("info")),
        )


@dataclass(slots=True)
class CatalogContents:
    """``.xcassets/Contents.json``，只包含 info。"""

    info: ContentsInfo = field(default_factory=ContentsInfo)

    def to_dict(self) -> Dict[str, Any]:
        return {"info": self.info.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogContents":
        return cls(info=ContentsInfo.from_dict(data.get("info")))


ContentsT = TypeVar("ContentsT", StickerPackContents, StickerContents, ImageSetContents, CatalogContents)


def contents_path(container: Path) -> Path:
    return container / CONTENTS_FILENAME


def read_contents(container: Path, contents_type: Type[ContentsT]) -> ContentsT:
    """读取容器内的 Contents.json。"""

    path = contents_path(container)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise PackagingError(f"无法读取 {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise PackagingError(f"{path} 不是 JSON 对象")
    return contents_type.from_dict(data)


def write_contents(container: Path, contents: Any) -> Path:
    """整体重写容器内的 Contents.json。"""

    path = contents_path(container)
    try:
        with path.open("w", encoding="utf-8") as handle:
            json.dump(contents.to_dict(), handle, ensure_ascii=False, indent=2)
            handle.write("\n")
    except OSError as exc:
        raise PackagingError(f"无法写入 {path}: {exc}") from exc
    return path

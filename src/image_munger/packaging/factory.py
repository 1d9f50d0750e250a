"""按打包方式选择适配器。"""

from __future__ import annotations

from typing import Dict, Type

from image_munger.core.config import Configuration, PackageKind
from image_munger.packaging.base import FolderAdapter, PackageAdapter
from image_munger.packaging.catalog import CatalogAdapter
from image_munger.packaging.icns import IcnsAdapter
from image_munger.packaging.icon_set import IconSetAdapter
from image_munger.packaging.image_set import ImageSetAdapter
from image_munger.packaging.sticker_pack import StickerPackAdapter

_ADAPTERS: Dict[PackageKind, Type[PackageAdapter]] = {
    PackageKind.NONE: FolderAdapter,
    PackageKind.STICKER_PACK: StickerPackAdapter,
    PackageKind.IMAGE_SET: ImageSetAdapter,
    PackageKind.ICON_SET: IconSetAdapter,
    PackageKind.ICNS: IcnsAdapter,
    PackageKind.CATALOG: CatalogAdapter,
}


def create_adapter(config: Configuration) -> PackageAdapter:
    return _ADAPTERS.get(config.output_package, FolderAdapter)(config)

"""清单文件解析。

清单是逐行的 UTF-8 文本：

* ``# `` 开头为注释；
* ``= key, v1[, v2...]`` 为设置，字段少于 2 个时记录并跳过；
* ``--`` 开头结束当前块并开始新块；
* 其他非空行是当前块的文件名。

输入结束时总会追加最后一个块（即使为空）。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from image_munger.core.exceptions import InvalidConfigurationError
from image_munger.core.models import ManifestBlock, ManifestSetting

LOGGER = logging.getLogger(__name__)

COMMENT_PREFIX = "# "
SETTING_PREFIX = "= "
BLOCK_SEPARATOR = "--"

SAMPLE_MANIFEST = """\
# imgx 清单示例。以 "# " 开头的行是注释，空行会被忽略。
# 设置行格式为 "= 键, 值[, 值...]"，会覆盖命令行传入的同名参数。
# = src, ~~/images          源目录或单个文件；~~ 表示相对清单所在目录，~ 表示用户主目录
# = dst, ~~/out             输出目录或打包容器（.stickerpack/.appiconset/.icns/.xcassets）
# = preset, imageSet        smallSticker/mediumSticker/largeSticker/thumb256/imageSet/
#                           imageSetForLargeSticker/largeStickerWithImageSet
# = valid-format, jpg, png  允许的源扩展名（jpg 隐含 jpeg，tif 隐含 tiff）
# = out-manifest, ~~/names.json   把处理过的图片名写成 JSON 数组
# = out-format, png         jpg/png/gif/tif
# = out-package, imageset   none/stickerpack/imageset/iconset/icns/catalog
# = out-package-replace, true
# = scale, 0.5              与 max-* 互斥
# = max-px, 512             同时限制宽与高
# = max-width-px, 512
# = max-height-px, 512
# 其余非空行是文件名；不列文件时处理源目录下所有允许的文件。
# 以 "--" 开头的行开始一个新的块，每个块独立处理。

= src, ~~/images
= dst, ~~/out
= preset, thumb256
photo-1.jpg
photo-2.jpg
--
= src, ~~/icons
= dst, ~~/Stickers.stickerpack
= preset, largeSticker
= out-package, stickerpack
= out-package-replace, true
"""


def parse_manifest_lines(lines: Iterable[str]) -> list[ManifestBlock]:
    """把清单文本行解析为块列表。"""

    blocks: list[ManifestBlock] = []
    current = ManifestBlock()

    for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        if not line.strip():
            continue
        if line.startswith(COMMENT_PREFIX):
            continue
        if line.startswith(SETTING_PREFIX):
            parts = [part.strip() for part in line[len(SETTING_PREFIX):].split(",")]
            if len(parts) < 2:
                LOGGER.warning("清单中的设置无效: %s", line)
                continue
            current.settings.append(ManifestSetting(key=parts[0], values=parts[1:]))
        elif line.startswith(BLOCK_SEPARATOR):
            blocks.append(current)
            current = ManifestBlock()
        else:
            current.files.append(line)

    blocks.append(current)
    return blocks


def parse_manifest(path: Path) -> list[ManifestBlock]:
    """读取并解析清单文件。"""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidConfigurationError(f"无法读取清单文件: {path}") from exc

    blocks = parse_manifest_lines(text.splitlines())
    LOGGER.debug("从 %s 读取到 %d 个清单块", path, len(blocks))
    return blocks


def write_sample_manifest(path: Path) -> Path:
    """写出带注释的示例清单。"""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SAMPLE_MANIFEST, encoding="utf-8")
    return path

"""图片加载、几何变换与保存。"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from image_munger.core.config import ImageFormat
from image_munger.core.exceptions import ImageLoadingError, ImageWriteError
from image_munger.core.models import TransformPlan

LOGGER = logging.getLogger(__name__)

_RESAMPLING = getattr(Image, "Resampling", Image)
LANCZOS = _RESAMPLING.LANCZOS


def open_image(path: Path) -> Image.Image:
    """加载单张图片并执行 EXIF 旋转与模式归一化。

    有透明通道的图片统一为 RGBA，其余为 RGB。返回值为新的 Image 对象。
    """

    try:
        with Image.open(path) as img:
            img.load()

            # EXIF Orientation 校正
            img = ImageOps.exif_transpose(img)

            if img.mode not in {"RGB", "RGBA"}:
                img = _normalize_mode(img)

            return img.copy()
    except (UnidentifiedImageError, OSError) as exc:
        LOGGER.debug("无法识别图像文件 %s: %s", path, exc)
        raise ImageLoadingError(f"无法加载图像: {path}") from exc


def _normalize_mode(img: Image.Image) -> Image.Image:
    if img.mode in {"LA", "PA"} or (img.mode == "P" and "transparency" in img.info):
        return img.convert("RGBA")
    return img.convert("RGB")


def blank_image(width: int = 1, height: int = 1) -> Image.Image:
    """生成全透明的占位图。"""

    return Image.new("RGBA", (width, height), (0, 0, 0, 0))


def fit(image: Image.Image, width: int, height: int) -> Image.Image:
    """保持宽高比缩放到盒子内，不裁剪。"""

    return ImageOps.contain(image, (max(width, 1), max(height, 1)), LANCZOS)


def fill(image: Image.Image, width: int, height: int) -> Image.Image:
    """保持宽高比缩放并居中裁剪，使结果恰好为 width x height。"""

    return ImageOps.fit(image, (max(width, 1), max(height, 1)), LANCZOS, centering=(0.5, 0.5))


def resize(image: Image.Image, width: int, height: int) -> Image.Image:
    """缩放到指定尺寸；某一边为 0 时按另一边等比计算。"""

    if width == 0 and height == 0:
        return image.copy()
    src_w, src_h = image.size
    if width == 0:
        width = round(src_w * height / src_h)
    elif height == 0:
        height = round(src_h * width / src_w)
    return image.resize((max(width, 1), max(height, 1)), LANCZOS)


def apply_plan_geometry(image: Image.Image, plan: TransformPlan) -> Image.Image:
    """按计划的几何策略变换图片。

    优先级：非 1 的 scale 按比例缩放后放入对应盒子；scale 恰为 1 时原样输出；
    盒子两边都为 0 时原样输出；只有一边为 0 时单轴等比缩放；否则放入盒子。
    """

    if plan.scale != 0:
        if plan.scale == 1:
            return image
        src_w, src_h = image.size
        new_w = max(round(src_w * plan.scale), 1)
        new_h = max(round(src_h * plan.scale), 1)
        return fit(image, new_w, new_h)

    if plan.box_width == 0 and plan.box_height == 0:
        return image
    if plan.box_width == 0 or plan.box_height == 0:
        return resize(image, plan.box_width, plan.box_height)
    return fit(image, plan.box_width, plan.box_height)


def save_image(image: Image.Image, destination: Path) -> None:
    """按目标扩展名选择编码格式并保存。"""

    image_format = ImageFormat.for_path(destination).pillow_format
    if not image_format:
        raise ImageWriteError(f"不支持的输出格式: {destination.suffix}")

    save_params: dict = {}
    image_to_save = image
    if image_format == "JPEG":
        save_params.update(quality=95, subsampling=1, optimize=True)
        if image.mode != "RGB":
            image_to_save = _flatten_alpha(image)
    elif image_format == "PNG":
        save_params.update(optimize=True)

    try:
        image_to_save.save(destination, format=image_format, **save_params)
    except (OSError, ValueError) as exc:
        raise ImageWriteError(f"写入文件失败: {destination}") from exc


def _flatten_alpha(img: Image.Image) -> Image.Image:
    """JPEG 不支持透明度，通过白色背景混合生成 RGB。"""

    if img.mode in {"RGBA", "LA"}:
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img.convert("RGBA"), mask=img.convert("RGBA").split()[-1])
        return background
    return img.convert("RGB")

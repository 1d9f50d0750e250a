"""预设到变换计划的展开。"""

from __future__ import annotations

from image_munger.core.config import Configuration, ImageFormat, Preset
from image_munger.core.models import TransformPlan

SMALL_STICKER_PX = 300
MEDIUM_STICKER_PX = 408
LARGE_STICKER_PX = 618
THUMBNAIL_PX = 256
STICKER_IMAGE_SET_1X_PX = 206

IMAGE_SET_SOURCE_SUFFIX = "@3x"


def base_plan(config: Configuration) -> TransformPlan:
    """由配置中的标量设置组成的计划，无预设时原样使用。"""

    return TransformPlan(
        scale=config.scale,
        box_width=config.max_width,
        box_height=config.max_height,
        output_format=config.output_format,
        output_package=config.output_package,
    )


def _square(size: int, plan: TransformPlan, **kwargs) -> TransformPlan:
    kwargs.setdefault("output_format", ImageFormat.PNG)
    return TransformPlan(box_width=size, box_height=size, output_package=plan.output_package, **kwargs)


def plan_preset(plan: TransformPlan, preset: Preset) -> list[TransformPlan]:
    """把预设展开为有序的计划列表。

    ``plan`` 提供需要沿用的输出格式与打包方式；未知或 NONE 预设返回 ``[plan]``。
    """

    if preset is Preset.SMALL_STICKER:
        return [_square(SMALL_STICKER_PX, plan)]
    if preset is Preset.MEDIUM_STICKER:
        return [_square(MEDIUM_STICKER_PX, plan)]
    if preset is Preset.LARGE_STICKER:
        return [_square(LARGE_STICKER_PX, plan)]
    if preset is Preset.THUMB_256:
        return [_square(THUMBNAIL_PX, plan, output_format=plan.output_format)]
    if preset is Preset.IMAGE_SET:
        common = {
            "output_format": plan.output_format,
            "output_package": plan.output_package,
            "required_suffix": IMAGE_SET_SOURCE_SUFFIX,
        }
        return [
            TransformPlan(scale=1.0, **common),
            TransformPlan(scale=2.0 / 3.0, remove_suffix=IMAGE_SET_SOURCE_SUFFIX, add_suffix="@2x", **common),
            TransformPlan(scale=1.0 / 3.0, remove_suffix=IMAGE_SET_SOURCE_SUFFIX, add_suffix="", **common),
        ]
    if preset is Preset.IMAGE_SET_FOR_LARGE_STICKER:
        return [_square(LARGE_STICKER_PX, plan)]
    if preset is Preset.LARGE_STICKER_WITH_IMAGE_SET:
        return [
            _square(STICKER_IMAGE_SET_1X_PX, plan, add_suffix="@1x"),
            _square(LARGE_STICKER_PX, plan, add_suffix="@3x"),
        ]
    return [plan]


def compile_plans(config: Configuration) -> list[TransformPlan]:
    return plan_preset(base_plan(config), config.preset)

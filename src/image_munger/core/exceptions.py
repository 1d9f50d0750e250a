"""项目内使用的自定义异常定义。"""


class ImageMungerError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ImageMungerError):
    """配置缺失或互相矛盾时抛出，仅终止当前清单块。"""


class CollectionError(ImageMungerError):
    """源文件收集失败（源路径不存在或清单列出的文件缺失）。"""


class PackagingError(ImageMungerError):
    """打包目标不合法或 Contents.json 读写失败。"""


class ImageLoadingError(ImageMungerError):
    """图片加载失败。"""


class ImageWriteError(ImageMungerError):
    """输出写入失败。"""

"""壁纸生成错误类型.

对外只暴露简短的错误信息，内部保留具体的错误类型，便于日志排查和测试断言。
"""
from typing import Optional

GENERIC_FAILURE_MESSAGE = "generate wallpaper failed"


class WallpaperError(Exception):
    """壁纸生成错误基类."""

    code: str = "GENERATION_FAILED"
    message: str = GENERIC_FAILURE_MESSAGE
    status_code: int = 500

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.message
        super().__init__(self.detail)


class Unauthenticated(WallpaperError):
    """未登录或缺少已验证的邮箱."""

    code = "UNAUTHENTICATED"
    message = "no auth"
    status_code = 401


class InvalidArgument(WallpaperError):
    """请求参数错误."""

    code = "INVALID_ARGUMENT"
    message = "invalid params"
    status_code = 400


class InsufficientCredits(WallpaperError):
    """积分不足."""

    code = "INSUFFICIENT_CREDITS"
    message = "credits not enough"
    status_code = 402


class GenerationFailed(WallpaperError):
    """生成服务调用失败，或返回内容中没有图片地址."""

    code = "GENERATION_FAILED"


class StorageFailed(WallpaperError):
    """图片下载或写入失败."""

    code = "STORAGE_FAILED"


class PersistenceFailed(WallpaperError):
    """壁纸记录写入数据库失败."""

    code = "PERSISTENCE_FAILED"

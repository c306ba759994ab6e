"""API 依赖项模块."""
from functools import lru_cache
from typing import Optional
from fastapi import Depends, Request
from app.core.config import settings
from app.core.database import Database
from app.core.security import verify_api_key
from app.services.credit_service import CreditLedger
from app.services.dify_service import DifyClient
from app.services.identity_service import HeaderIdentityProvider
from app.services.image_storage import LocalImageStorage
from app.services.user_service import UserStore
from app.services.wallpaper_service import WallpaperService
from app.services.wallpaper_store import WallpaperStore


async def get_api_key(api_key: Optional[str] = Depends(verify_api_key)) -> Optional[str]:
    """获取验证后的 API Key."""
    return api_key


async def get_identity_provider(request: Request) -> HeaderIdentityProvider:
    """获取当前请求的身份提供者."""
    return HeaderIdentityProvider(request)


@lru_cache
def get_database() -> Database:
    return Database(settings.DATABASE_PATH)


def get_wallpaper_store() -> WallpaperStore:
    return WallpaperStore(get_database())


@lru_cache
def get_wallpaper_service() -> WallpaperService:
    """按配置组装壁纸生成服务（进程内只创建一次）."""
    db = get_database()
    return WallpaperService(
        dify_client=DifyClient(
            api_key=settings.DIFY_API_KEY,
            base_url=settings.DIFY_BASE_URL,
            timeout=settings.TIMEOUT
        ),
        image_storage=LocalImageStorage(
            root_dir=settings.WALLPAPER_DIR,
            public_base_url=settings.WALLPAPER_PUBLIC_URL,
            timeout=settings.TIMEOUT
        ),
        user_store=UserStore(db),
        credit_ledger=CreditLedger(db),
        wallpaper_store=WallpaperStore(db),
        image_size=settings.WALLPAPER_IMAGE_SIZE,
        trim_url_punctuation=settings.URL_TRIM_PUNCTUATION
    )

"""壁纸生成 API 端点."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from app.core.exceptions import WallpaperError, Unauthenticated
from app.models.wallpaper import WallpaperRequest, WallpaperResponse, WallpaperListResponse
from app.services.identity_service import HeaderIdentityProvider
from app.services.wallpaper_service import WallpaperService
from app.services.wallpaper_store import WallpaperStore
from app.apis.deps import (
    get_api_key,
    get_identity_provider,
    get_wallpaper_service,
    get_wallpaper_store
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(error: WallpaperError) -> JSONResponse:
    """构建统一的错误响应，不暴露内部错误详情."""
    return JSONResponse(
        status_code=error.status_code,
        content=WallpaperResponse(success=False, error=error.message).model_dump()
    )


@router.post(
    "/generate",
    response_model=WallpaperResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": WallpaperRequest.model_json_schema()}}
        }
    }
)
async def generate_wallpaper(
    request: Request,
    identity: HeaderIdentityProvider = Depends(get_identity_provider),
    service: WallpaperService = Depends(get_wallpaper_service),
    api_key: str = Depends(get_api_key)
):
    """
    生成壁纸接口.

    Args:
        request: 原始请求，请求体为 {"description": str}
        identity: 当前请求的身份提供者
        service: 壁纸生成服务
        api_key: API 密钥（通过依赖注入）

    Returns:
        WallpaperResponse: 成功时 data 为壁纸记录，失败时 error 为错误信息
    """
    # 请求体不经 FastAPI 校验，解析失败或字段类型错误都交给编排服务在认证之后处理
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    description = payload.get("description") if isinstance(payload, dict) else None

    try:
        record = await service.generate(identity, description)
    except WallpaperError as e:
        logger.error(f"生成壁纸失败 [{e.code}]: {e.detail}")
        return _error_response(e)

    return WallpaperResponse(success=True, data=record)


@router.get("/mine", response_model=WallpaperListResponse)
async def list_my_wallpapers(
    limit: int = 50,
    identity: HeaderIdentityProvider = Depends(get_identity_provider),
    store: WallpaperStore = Depends(get_wallpaper_store),
    api_key: str = Depends(get_api_key)
):
    """
    获取当前用户的壁纸列表.

    Args:
        limit: 返回条数上限
        identity: 当前请求的身份提供者
        store: 壁纸记录存储
        api_key: API 密钥（通过依赖注入）
    """
    caller = await identity.current_caller()
    if caller is None:
        return _error_response(Unauthenticated())

    limit = min(max(limit, 1), 200)
    return WallpaperListResponse(success=True, data=store.list_by_user(caller.email, limit))

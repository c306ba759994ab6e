"""FastAPI 应用主入口."""
import sys
from pathlib import Path

# 添加项目根目录到 Python 路径，确保可以直接运行此文件
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from app.core.config import settings
from app.apis.v1 import endpoint_wallpaper
import logging

# 配置日志
logging.basicConfig(
    level=logging.INFO,  # 始终使用 INFO 级别，以便记录 API 请求信息
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

# 创建 FastAPI 应用实例（生产环境禁用 API 文档，防止信息泄露）
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Megumi Wallpaper Service - 基于 Dify 的桌面壁纸生成服务",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

# 配置 CORS（生产环境必须限制具体域名）
origins = []
if settings.ALLOW_ORIGINS and settings.ALLOW_ORIGINS != "*":
    origins = [origin.strip() for origin in settings.ALLOW_ORIGINS.split(",")]
elif settings.DEBUG:
    # 开发环境允许所有来源
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 添加安全响应头中间件
@app.middleware("http")
async def add_security_headers(request, call_next):
    """添加安全响应头."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    if not settings.DEBUG:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response

# 注册 API 路由
app.include_router(
    endpoint_wallpaper.router,
    prefix=f"{settings.API_V1_PREFIX}/wallpaper",
    tags=["壁纸"]
)

# 本地壁纸静态文件服务
wallpaper_dir = Path(settings.WALLPAPER_DIR)
wallpaper_dir.mkdir(parents=True, exist_ok=True)
app.mount("/wallpapers", StaticFiles(directory=str(wallpaper_dir)), name="wallpapers")


@app.get("/")
async def root():
    """根路径."""
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """健康检查接口."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    # reload 模式需要模块路径字符串，非 reload 模式可以直接传递 app 对象
    if settings.DEBUG:
        uvicorn.run(
            "app.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=True,
            timeout_keep_alive=300  # 阻塞模式生成耗时较长
        )
    else:
        uvicorn.run(
            app,
            host=settings.HOST,
            port=settings.PORT,
            reload=False,
            timeout_keep_alive=300
        )

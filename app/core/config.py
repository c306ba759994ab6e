"""应用配置管理 - 环境变量和 API Keys."""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """应用配置类 - 从环境变量加载配置."""

    # 应用基础配置
    APP_NAME: str = "Megumi Wallpaper Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # API 服务配置
    API_V1_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOW_ORIGINS: str = "*"

    # 网关认证配置
    GATEWAY_API_KEY: Optional[str] = None  # 用于验证来自网关的请求

    # Dify 配置
    DIFY_API_KEY: Optional[str] = None
    DIFY_BASE_URL: Optional[str] = None

    # 壁纸生成配置
    WALLPAPER_DIR: str = "./wallpapers"  # 本地壁纸存储目录
    WALLPAPER_PUBLIC_URL: str = "http://localhost:8000/wallpapers"  # 壁纸对外访问地址前缀
    WALLPAPER_IMAGE_SIZE: str = "1792x1024"
    URL_TRIM_PUNCTUATION: bool = False  # 是否裁剪 URL 末尾的标点

    # 数据库配置
    DATABASE_PATH: str = "./data/wallpaper.db"

    # 其他配置
    TIMEOUT: int = 120  # 请求超时时间（秒），阻塞模式下生成较慢

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True
    }


# 创建全局配置实例
settings = Settings()

"""壁纸生成相关的 Pydantic 数据模型."""
from pydantic import BaseModel, Field
from typing import Optional, List


class WallpaperRequest(BaseModel):
    """壁纸生成请求模型.

    仅用于接口文档，请求体由编排服务在认证之后再校验。
    """
    description: Optional[str] = Field(default=None, description="壁纸描述")


class UserProfile(BaseModel):
    """用户信息模型."""
    email: str = Field(..., description="用户邮箱（唯一标识）")
    nickname: str = Field(default="", description="用户昵称")
    avatar_url: Optional[str] = Field(default=None, description="头像地址")


class CreditBalance(BaseModel):
    """用户积分余额."""
    user_email: str = Field(..., description="用户邮箱")
    remaining_credits: int = Field(..., description="剩余积分", ge=0)


class WallpaperRecord(BaseModel):
    """壁纸记录模型，写入后不再修改."""
    user_email: str = Field(..., description="用户邮箱")
    description: str = Field(..., description="壁纸描述")
    image_size: str = Field(..., description="图片尺寸，如 1792x1024")
    image_url: str = Field(..., description="本地存储后的图片访问地址")
    generator_name: str = Field(..., description="生成服务名称")
    generator_params: str = Field(..., description="生成参数（JSON 字符串）")
    created_at: str = Field(..., description="创建时间（ISO 8601）")


class WallpaperResponse(BaseModel):
    """壁纸生成响应模型."""
    success: bool = Field(..., description="是否成功")
    data: Optional[WallpaperRecord] = Field(default=None, description="壁纸记录")
    error: Optional[str] = Field(default=None, description="错误信息")


class WallpaperListResponse(BaseModel):
    """壁纸列表响应模型."""
    success: bool = Field(..., description="是否成功")
    data: List[WallpaperRecord] = Field(default_factory=list, description="壁纸记录列表")
    error: Optional[str] = Field(default=None, description="错误信息")

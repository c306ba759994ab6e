"""Dify 接口相关的数据模型."""
from pydantic import BaseModel, Field
from typing import Optional, Literal
from enum import Enum


class ResponseMode(str, Enum):
    """Dify 响应模式枚举."""
    STREAMING = "streaming"
    BLOCKING = "blocking"


class DifyFile(BaseModel):
    """对话消息附带的文件."""
    type: str = Field(default="image", description="文件类型")
    transfer_method: Literal["remote_url", "local_file"] = Field(..., description="传递方式")
    url: Optional[str] = Field(default=None, description="远程地址（remote_url）")
    upload_file_id: Optional[str] = Field(default=None, description="上传文件 ID（local_file）")

"""身份服务 - 从网关转发的请求头中读取当前登录用户."""
from typing import Optional
from fastapi import Request
from app.models.wallpaper import UserProfile

EMAIL_HEADER = "X-User-Email"
NAME_HEADER = "X-User-Name"
AVATAR_HEADER = "X-User-Avatar"


class HeaderIdentityProvider:
    """基于请求头的身份提供者.

    网关完成登录校验后，把已验证的邮箱、昵称和头像写入请求头。
    """

    def __init__(self, request: Request):
        self.request = request

    async def current_caller(self) -> Optional[UserProfile]:
        """
        获取当前用户.

        Returns:
            Optional[UserProfile]: 当前用户，未登录或缺少邮箱时返回 None
        """
        headers = self.request.headers
        email = (headers.get(EMAIL_HEADER) or "").strip()
        if not email:
            return None
        return UserProfile(
            email=email,
            nickname=(headers.get(NAME_HEADER) or "").strip(),
            avatar_url=headers.get(AVATAR_HEADER) or None
        )

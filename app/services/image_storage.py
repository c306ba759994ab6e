"""壁纸图片本地存储 - 下载生成服务返回的图片并保存到本地目录."""
import hashlib
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from app.core.exceptions import StorageFailed

logger = logging.getLogger(__name__)

# 文件名中编码后描述部分的最大长度，加上摘要和扩展名后低于 255 字节的文件名上限
MAX_ENCODED_NAME_BYTES = 200


class LocalImageStorage:
    """本地图片存储."""

    def __init__(
        self,
        root_dir: str,
        public_base_url: str,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        初始化本地存储.

        Args:
            root_dir: 图片保存目录
            public_base_url: 图片对外访问地址前缀
            timeout: 下载超时时间（秒）
            transport: 可选的 httpx 传输层（测试时注入）
        """
        self.root_dir = Path(root_dir)
        self.public_base_url = public_base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.root_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def build_key(description: str, user_email: str, timestamp: str) -> str:
        """
        生成存储文件名.

        文件名由编码后的描述加上请求相关的摘要组成，相同描述的并发请求不会互相覆盖。

        Args:
            description: 壁纸描述
            user_email: 用户邮箱
            timestamp: 请求时间戳

        Returns:
            str: 文件名，例如 a%20calm%20ocean-1a2b3c4d5e6f.png
        """
        # 按字符截断，编码后的 %XX 序列不会被截断
        parts = []
        length = 0
        for ch in description:
            encoded = quote(ch, safe="")
            if length + len(encoded) > MAX_ENCODED_NAME_BYTES:
                break
            parts.append(encoded)
            length += len(encoded)
        name = "".join(parts)
        digest = hashlib.sha256(f"{user_email}|{description}|{timestamp}".encode("utf-8")).hexdigest()[:12]
        return f"{name}-{digest}.png"

    def public_url(self, key: str) -> str:
        # 文件名本身含有 %，需要再编码一次才能被静态文件服务正确解析
        return f"{self.public_base_url}/{quote(key, safe='')}"

    async def save_from_url(self, url: str, key: str) -> str:
        """
        下载图片并写入本地.

        Args:
            url: 图片源地址
            key: 存储文件名

        Returns:
            str: 图片对外访问地址

        Raises:
            StorageFailed: 下载或写入失败，已写入的部分文件会被删除
        """
        destination = self.root_dir / key
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    with open(destination, "wb") as f:
                        async for chunk in response.aiter_bytes():
                            f.write(chunk)
        except Exception as e:
            logger.error(f"图片保存失败: {url} -> {destination}: {e}")
            destination.unlink(missing_ok=True)
            raise StorageFailed(f"图片保存失败: {e}") from e

        logger.info(f"图片已保存: {destination}")
        return self.public_url(key)

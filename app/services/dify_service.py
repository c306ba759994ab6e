"""Dify 服务 - 与 Dify 对话型应用 API 通信."""
from typing import Dict, Any, Optional, List, Union
from app.models.dify import DifyFile, ResponseMode
import httpx
import logging

logger = logging.getLogger(__name__)

FileContent = Union[bytes, tuple]


class DifyClient:
    """Dify API 客户端，每个方法对应一个 REST 接口."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str],
        timeout: float = 120,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        初始化 Dify 客户端.

        Args:
            api_key: Dify 应用的 API Key
            base_url: Dify API 地址，例如 https://api.dify.ai/v1
            timeout: 请求超时时间（秒）
            transport: 可选的 httpx 传输层（测试时注入）
        """
        self.api_key = api_key
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self.api_key or not self.base_url:
            raise ValueError("Dify API URL 或 API Key 未配置")
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            transport=self.transport
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        raw: bool = False
    ) -> Any:
        """发送请求并返回解析后的 JSON，raw=True 时返回原始字节."""
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        async with self._client() as client:
            response = await client.request(
                method,
                path,
                json=json,
                params=params,
                data=data,
                files=files
            )
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError:
                logger.error(f"Dify 请求失败: {method} {path} status={response.status_code} body={response.text[:500]}")
                raise

            if raw:
                return response.content
            if not response.content:
                return {}
            return response.json()

    async def send_message(
        self,
        query: str,
        user: str,
        inputs: Optional[Dict[str, Any]] = None,
        response_mode: Union[ResponseMode, str] = ResponseMode.STREAMING,
        conversation_id: str = "",
        files: Optional[List[DifyFile]] = None,
        auto_generate_name: bool = True
    ) -> Dict[str, Any]:
        """
        发送对话消息.

        仅在 blocking 模式下返回完整结果；streaming 模式返回的事件流不在此解析。

        Args:
            query: 用户输入
            user: 用户标识
            inputs: 应用变量
            response_mode: 响应模式
            conversation_id: 会话 ID，为空时新建会话
            files: 附带的文件列表
            auto_generate_name: 是否自动生成会话标题

        Returns:
            Dict[str, Any]: Dify 响应，answer 字段为回答文本
        """
        payload = {
            "query": query,
            "inputs": inputs or {},
            "response_mode": ResponseMode(response_mode).value,
            "user": user,
            "conversation_id": conversation_id,
            "files": [f.model_dump(exclude_none=True) for f in files or []],
            "auto_generate_name": auto_generate_name
        }
        return await self._request("POST", "/chat-messages", json=payload)

    async def upload_file(self, file: FileContent, user: str) -> Dict[str, Any]:
        """
        上传文件（用于图文对话）.

        Args:
            file: 文件内容，或 (文件名, 内容, MIME 类型) 元组
            user: 用户标识
        """
        return await self._request(
            "POST",
            "/files/upload",
            data={"user": user},
            files={"file": file}
        )

    async def stop_response(self, task_id: str, user: str) -> Dict[str, Any]:
        """停止流式响应."""
        return await self._request("POST", f"/chat-messages/{task_id}/stop", json={"user": user})

    async def send_feedback(self, message_id: str, rating: Optional[str], user: str) -> Dict[str, Any]:
        """
        消息反馈.

        Args:
            message_id: 消息 ID
            rating: like / dislike，None 表示撤销
            user: 用户标识
        """
        if rating not in ("like", "dislike", None):
            raise ValueError(f"无效的反馈类型: {rating}")
        return await self._request(
            "POST",
            f"/messages/{message_id}/feedbacks",
            json={"rating": rating, "user": user}
        )

    async def get_suggested_questions(self, message_id: str, user: str) -> Dict[str, Any]:
        """获取下一轮建议问题列表."""
        return await self._request("GET", f"/messages/{message_id}/suggested", params={"user": user})

    async def get_conversation_messages(
        self,
        conversation_id: str,
        user: str,
        first_id: Optional[str] = None,
        limit: int = 20
    ) -> Dict[str, Any]:
        """获取会话历史消息."""
        return await self._request(
            "GET",
            "/messages",
            params={
                "conversation_id": conversation_id,
                "user": user,
                "first_id": first_id,
                "limit": limit
            }
        )

    async def get_conversations(
        self,
        user: str,
        last_id: Optional[str] = None,
        limit: int = 20,
        sort_by: str = "-updated_at"
    ) -> Dict[str, Any]:
        """获取会话列表."""
        return await self._request(
            "GET",
            "/conversations",
            params={
                "user": user,
                "last_id": last_id,
                "limit": limit,
                "sort_by": sort_by
            }
        )

    async def delete_conversation(self, conversation_id: str, user: str) -> Dict[str, Any]:
        """删除会话."""
        return await self._request("DELETE", f"/conversations/{conversation_id}", json={"user": user})

    async def rename_conversation(
        self,
        conversation_id: str,
        user: str,
        name: str = "",
        auto_generate: bool = False
    ) -> Dict[str, Any]:
        """会话重命名."""
        return await self._request(
            "POST",
            f"/conversations/{conversation_id}/name",
            json={
                "name": name,
                "auto_generate": auto_generate,
                "user": user
            }
        )

    async def audio_to_text(self, file: FileContent, user: str) -> Dict[str, Any]:
        """语音转文字."""
        return await self._request(
            "POST",
            "/audio-to-text",
            data={"user": user},
            files={"file": file}
        )

    async def text_to_audio(
        self,
        user: str,
        text: Optional[str] = None,
        message_id: Optional[str] = None
    ) -> bytes:
        """文字转语音，text 与 message_id 至少提供一个，返回音频字节."""
        if not text and not message_id:
            raise ValueError("text 和 message_id 不能同时为空")
        payload = {"user": user}
        if text:
            payload["text"] = text
        if message_id:
            payload["message_id"] = message_id
        return await self._request("POST", "/text-to-audio", json=payload, raw=True)

    async def get_app_info(self, user: str) -> Dict[str, Any]:
        """获取应用基本信息."""
        return await self._request("GET", "/info", params={"user": user})

    async def get_app_parameters(self, user: str) -> Dict[str, Any]:
        """获取应用参数."""
        return await self._request("GET", "/parameters", params={"user": user})

    async def get_app_meta(self, user: str) -> Dict[str, Any]:
        """获取应用 Meta 信息."""
        return await self._request("GET", "/meta", params={"user": user})

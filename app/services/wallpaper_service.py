"""壁纸生成服务 - 使用 LangGraph 编排生成流程.

流程为单向线性图：

    authenticate -> validate -> sync_profile -> check_credits
        -> invoke_generator -> extract_url -> materialize -> persist

任一节点抛出异常即终止整个流程，后续节点不会执行。
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TypedDict

from langgraph.graph import StateGraph, END

from app.core.exceptions import (
    WallpaperError,
    Unauthenticated,
    InvalidArgument,
    InsufficientCredits,
    GenerationFailed,
    StorageFailed,
    PersistenceFailed,
)
from app.core.logger import jinfo, jwarn, jerror
from app.models.dify import ResponseMode
from app.models.wallpaper import UserProfile, WallpaperRecord
from app.services.url_extractor import extract_first_url

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = "generate desktop wallpaper image about {description}"
GENERATOR_NAME = "dify"


class WallpaperState(TypedDict):
    identity: Any
    description: Any
    created_at: str
    caller: Optional[UserProfile]
    profile_synced: bool
    remaining_credits: int
    generator_params: Dict[str, Any]
    answer: str
    source_url: Optional[str]
    image_url: Optional[str]
    record: Optional[WallpaperRecord]


class WallpaperService:
    """壁纸生成服务类 - 使用 LangGraph."""

    def __init__(
        self,
        dify_client: Any,
        image_storage: Any,
        user_store: Any,
        credit_ledger: Any,
        wallpaper_store: Any,
        image_size: str = "1792x1024",
        trim_url_punctuation: bool = False
    ):
        """
        初始化壁纸生成服务.

        Args:
            dify_client: 生成服务客户端，需提供 send_message
            image_storage: 图片存储，需提供 build_key / save_from_url
            user_store: 用户存储，需提供 upsert_profile
            credit_ledger: 积分账本，需提供 get_balance
            wallpaper_store: 壁纸记录存储，需提供 insert
            image_size: 生成图片的固定尺寸
            trim_url_punctuation: 提取地址时是否裁剪末尾标点
        """
        self.dify_client = dify_client
        self.image_storage = image_storage
        self.user_store = user_store
        self.credit_ledger = credit_ledger
        self.wallpaper_store = wallpaper_store
        self.image_size = image_size
        self.trim_url_punctuation = trim_url_punctuation
        self.graph = self._build_graph()

    def _build_graph(self):
        """
        构建 LangGraph 状态图.

        Returns:
            编译后的状态图
        """
        workflow = StateGraph(WallpaperState)

        steps = [
            ("authenticate", self._authenticate),
            ("validate", self._validate),
            ("sync_profile", self._sync_profile),
            ("check_credits", self._check_credits),
            ("invoke_generator", self._invoke_generator),
            ("extract_url", self._extract_url),
            ("materialize", self._materialize),
            ("persist", self._persist),
        ]
        for name, node in steps:
            workflow.add_node(name, node)

        workflow.set_entry_point(steps[0][0])
        for (current, _), (following, _) in zip(steps, steps[1:]):
            workflow.add_edge(current, following)
        workflow.add_edge(steps[-1][0], END)

        return workflow.compile()

    async def _authenticate(self, state: WallpaperState) -> Dict[str, Any]:
        caller = await state["identity"].current_caller()
        if caller is None or not caller.email:
            jwarn(logger, "未登录用户请求生成壁纸", 节点="authenticate")
            raise Unauthenticated()
        jinfo(logger, "用户认证通过", 节点="authenticate", 用户=caller.email)
        return {"caller": caller}

    async def _validate(self, state: WallpaperState) -> Dict[str, Any]:
        description = state.get("description")
        if not isinstance(description, str) or not description:
            raise InvalidArgument("description 必须是非空字符串")
        return {"description": description}

    async def _sync_profile(self, state: WallpaperState) -> Dict[str, Any]:
        # sqlite 为同步调用，放到线程中执行，避免阻塞事件循环
        await asyncio.to_thread(self.user_store.upsert_profile, state["caller"])
        return {"profile_synced": True}

    async def _check_credits(self, state: WallpaperState) -> Dict[str, Any]:
        email = state["caller"].email
        balance = await asyncio.to_thread(self.credit_ledger.get_balance, email)
        if balance is None or balance.remaining_credits < 1:
            jwarn(logger, "积分不足", 节点="check_credits", 用户=email,
                  剩余积分=balance.remaining_credits if balance else None)
            raise InsufficientCredits()
        # 只检查不扣减
        return {"remaining_credits": balance.remaining_credits}

    async def _invoke_generator(self, state: WallpaperState) -> Dict[str, Any]:
        email = state["caller"].email
        params = {
            "prompt": PROMPT_TEMPLATE.format(description=state["description"]),
            "size": self.image_size,
        }
        jinfo(logger, "调用生成服务", 节点="invoke_generator", 用户=email, 提示词=params["prompt"])
        try:
            res = await self.dify_client.send_message(
                query=params["prompt"],
                response_mode=ResponseMode.BLOCKING,
                user=email
            )
        except Exception as e:
            jerror(logger, "生成服务调用失败", 节点="invoke_generator", 错误=str(e))
            raise GenerationFailed(f"生成服务调用失败: {e}") from e

        answer = (res or {}).get("answer") or ""
        return {"generator_params": params, "answer": answer}

    async def _extract_url(self, state: WallpaperState) -> Dict[str, Any]:
        source_url = extract_first_url(state["answer"], trim_punctuation=self.trim_url_punctuation)
        if not source_url:
            jwarn(logger, "回答中没有图片地址", 节点="extract_url", 回答=state["answer"][:200])
            raise GenerationFailed("回答中没有图片地址")
        jinfo(logger, "提取到图片地址", 节点="extract_url", 地址=source_url)
        return {"source_url": source_url}

    async def _materialize(self, state: WallpaperState) -> Dict[str, Any]:
        key = self.image_storage.build_key(
            state["description"],
            state["caller"].email,
            state["created_at"]
        )
        try:
            image_url = await self.image_storage.save_from_url(state["source_url"], key)
        except StorageFailed:
            raise
        except Exception as e:
            raise StorageFailed(f"图片保存失败: {e}") from e
        return {"image_url": image_url}

    async def _persist(self, state: WallpaperState) -> Dict[str, Any]:
        record = WallpaperRecord(
            user_email=state["caller"].email,
            description=state["description"],
            image_size=self.image_size,
            image_url=state["image_url"],
            generator_name=GENERATOR_NAME,
            generator_params=json.dumps(state["generator_params"], ensure_ascii=False),
            created_at=state["created_at"]
        )
        try:
            await asyncio.to_thread(self.wallpaper_store.insert, record)
        except Exception as e:
            jerror(logger, "壁纸记录保存失败", 节点="persist", 错误=str(e))
            raise PersistenceFailed(f"壁纸记录保存失败: {e}") from e
        return {"record": record}

    async def generate(self, identity: Any, description: Any) -> WallpaperRecord:
        """
        生成壁纸.

        Args:
            identity: 身份提供者，需提供 current_caller
            description: 请求中的壁纸描述，未经校验，可能不是字符串

        Returns:
            WallpaperRecord: 已保存的壁纸记录

        Raises:
            WallpaperError: 各步骤的失败，未分类的异常统一转换为 GenerationFailed
        """
        initial_state: WallpaperState = {
            "identity": identity,
            "description": description,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "caller": None,
            "profile_synced": False,
            "remaining_credits": 0,
            "generator_params": {},
            "answer": "",
            "source_url": None,
            "image_url": None,
            "record": None
        }

        try:
            result = await self.graph.ainvoke(initial_state)
        except WallpaperError:
            raise
        except Exception as e:
            logger.error(f"壁纸生成失败: {e}", exc_info=True)
            raise GenerationFailed(str(e)) from e

        return result["record"]

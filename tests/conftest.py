"""测试共享 fixtures.

所有外部协作方（身份、用户、积分、生成服务、存储、壁纸记录）都使用内存替身，
通过构造函数注入到 WallpaperService 中。
"""
import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

# 在导入 app 之前把运行目录指向临时目录，避免测试在工作目录下创建文件
_RUNTIME_DIR = tempfile.mkdtemp(prefix="wallpaper-tests-")
os.environ.setdefault("WALLPAPER_DIR", os.path.join(_RUNTIME_DIR, "wallpapers"))
os.environ.setdefault("DATABASE_PATH", os.path.join(_RUNTIME_DIR, "wallpaper.db"))

import httpx
import pytest

from app.core.database import Database
from app.models.wallpaper import CreditBalance, UserProfile, WallpaperRecord
from app.services.image_storage import LocalImageStorage
from app.services.wallpaper_service import WallpaperService

PUBLIC_BASE_URL = "http://localhost:8000/wallpapers"
CDN_URL = "https://cdn.example/img123.png"
IMAGE_BYTES = b"\x89PNG\r\n\x1a\nfake-image-bytes"


class FakeIdentity:
    def __init__(self, caller: Optional[UserProfile]):
        self.caller = caller
        self.calls = 0

    async def current_caller(self) -> Optional[UserProfile]:
        self.calls += 1
        return self.caller


class FakeUserStore:
    def __init__(self):
        self.profiles: List[UserProfile] = []

    def upsert_profile(self, profile: UserProfile) -> None:
        self.profiles.append(profile)


class FakeCreditLedger:
    def __init__(self, balances: Optional[dict] = None):
        self.balances = balances or {}
        self.lookups: List[str] = []

    def get_balance(self, email: str) -> Optional[CreditBalance]:
        self.lookups.append(email)
        if email not in self.balances:
            return None
        return CreditBalance(user_email=email, remaining_credits=self.balances[email])


class FakeDifyClient:
    def __init__(self, answer: str = "", error: Optional[Exception] = None):
        self.answer = answer
        self.error = error
        self.calls: List[dict] = []

    async def send_message(self, **kwargs) -> dict:
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return {"event": "message", "answer": self.answer}


class FakeImageStorage:
    build_key = staticmethod(LocalImageStorage.build_key)

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.saved: List[tuple] = []

    async def save_from_url(self, url: str, key: str) -> str:
        if self.error:
            raise self.error
        self.saved.append((url, key))
        return f"{PUBLIC_BASE_URL}/{key}"


class FakeWallpaperStore:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.records: List[WallpaperRecord] = []

    def insert(self, record: WallpaperRecord) -> None:
        if self.error:
            raise self.error
        self.records.append(record)

    def list_by_user(self, email: str, limit: int = 50) -> List[WallpaperRecord]:
        return [r for r in self.records if r.user_email == email][:limit]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """创建临时目录，测试结束后删除."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def database(temp_dir: Path) -> Database:
    return Database(str(temp_dir / "test.db"))


@pytest.fixture
def caller() -> UserProfile:
    return UserProfile(email="a@b.com", nickname="Alice", avatar_url="https://img.example/a.png")


@pytest.fixture
def image_transport() -> httpx.MockTransport:
    """模拟 CDN：CDN_URL 返回图片，其余地址返回 404."""
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == CDN_URL:
            return httpx.Response(200, content=IMAGE_BYTES, headers={"content-type": "image/png"})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def fakes(caller: UserProfile) -> dict:
    """一组默认成功的协作方替身."""
    return {
        "identity": FakeIdentity(caller),
        "dify_client": FakeDifyClient(answer=f"Here you go: {CDN_URL} enjoy!"),
        "image_storage": FakeImageStorage(),
        "user_store": FakeUserStore(),
        "credit_ledger": FakeCreditLedger({caller.email: 5}),
        "wallpaper_store": FakeWallpaperStore(),
    }


def build_service(fakes: dict, **kwargs) -> WallpaperService:
    return WallpaperService(
        dify_client=fakes["dify_client"],
        image_storage=fakes["image_storage"],
        user_store=fakes["user_store"],
        credit_ledger=fakes["credit_ledger"],
        wallpaper_store=fakes["wallpaper_store"],
        **kwargs
    )

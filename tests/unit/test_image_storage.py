"""本地图片存储测试."""
from pathlib import Path
from urllib.parse import unquote

import httpx
import pytest

from app.core.exceptions import StorageFailed
from app.services.image_storage import LocalImageStorage
from conftest import CDN_URL, IMAGE_BYTES, PUBLIC_BASE_URL


def _storage(root: Path, transport: httpx.AsyncBaseTransport) -> LocalImageStorage:
    return LocalImageStorage(root_dir=str(root), public_base_url=f"{PUBLIC_BASE_URL}/", transport=transport)


class TestBuildKey:

    def test_percent_encodes_description(self):
        key = LocalImageStorage.build_key("a calm ocean/sunset", "a@b.com", "2026-01-01T00:00:00")
        assert key.startswith("a%20calm%20ocean%2Fsunset-")
        assert key.endswith(".png")

    def test_deterministic_for_same_inputs(self):
        args = ("forest", "a@b.com", "2026-01-01T00:00:00")
        assert LocalImageStorage.build_key(*args) == LocalImageStorage.build_key(*args)

    def test_differs_by_caller_and_time(self):
        base = LocalImageStorage.build_key("forest", "a@b.com", "2026-01-01T00:00:00")
        assert base != LocalImageStorage.build_key("forest", "c@d.com", "2026-01-01T00:00:00")
        assert base != LocalImageStorage.build_key("forest", "a@b.com", "2026-01-01T00:00:01")

    def test_long_description_is_truncated(self):
        key = LocalImageStorage.build_key("x" * 500, "a@b.com", "t")
        assert len(key) < 255

    @pytest.mark.parametrize("description", [
        "夕阳下平静的海面" * 20,
        "🌊🌅" * 100,
        "a" * 150 + "海" * 30,
    ])
    def test_non_ascii_description_fits_filename_limit(self, description):
        key = LocalImageStorage.build_key(description, "a@b.com", "2026-01-01T00:00:00")

        assert len(key.encode("utf-8")) <= 255
        # 截断发生在字符边界，前缀可以完整解码为原描述的开头
        prefix = unquote(key.rsplit("-", 1)[0], errors="strict")
        assert prefix
        assert description.startswith(prefix)

    async def test_long_chinese_key_can_be_saved(self, temp_dir, image_transport):
        storage = _storage(temp_dir, image_transport)
        key = LocalImageStorage.build_key("夕阳下平静的海面" * 20, "a@b.com", "2026-01-01T00:00:00")

        await storage.save_from_url(CDN_URL, key)

        assert (temp_dir / key).read_bytes() == IMAGE_BYTES


class TestSaveFromUrl:

    async def test_saves_bytes_and_returns_public_url(self, temp_dir, image_transport):
        storage = _storage(temp_dir, image_transport)
        key = "a%20calm%20ocean-abc123.png"

        url = await storage.save_from_url(CDN_URL, key)

        assert (temp_dir / key).read_bytes() == IMAGE_BYTES
        # % 需要再编码一次，静态文件服务解码后才能找到文件
        assert url == f"{PUBLIC_BASE_URL}/a%2520calm%2520ocean-abc123.png"

    async def test_http_error_raises_storage_failed(self, temp_dir, image_transport):
        storage = _storage(temp_dir, image_transport)

        with pytest.raises(StorageFailed):
            await storage.save_from_url("https://cdn.example/missing.png", "missing.png")

        assert not (temp_dir / "missing.png").exists()

    async def test_interrupted_download_removes_partial_file(self, temp_dir):
        async def broken_stream():
            yield b"partial-bytes"
            raise httpx.ReadError("connection reset")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=broken_stream())

        storage = _storage(temp_dir, httpx.MockTransport(handler))

        with pytest.raises(StorageFailed):
            await storage.save_from_url(CDN_URL, "partial.png")

        assert not (temp_dir / "partial.png").exists()

    async def test_connect_error_raises_storage_failed(self, temp_dir):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        storage = _storage(temp_dir, httpx.MockTransport(handler))

        with pytest.raises(StorageFailed):
            await storage.save_from_url(CDN_URL, "refused.png")

        assert list(temp_dir.iterdir()) == []

    def test_creates_root_dir(self, temp_dir, image_transport):
        root = temp_dir / "nested" / "wallpapers"
        _storage(root, image_transport)
        assert root.is_dir()

    async def test_non_http_stream_error_removes_partial_file(self, temp_dir):
        async def closed_stream():
            yield b"partial-bytes"
            raise httpx.StreamClosed()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=closed_stream())

        storage = _storage(temp_dir, httpx.MockTransport(handler))

        with pytest.raises(StorageFailed):
            await storage.save_from_url(CDN_URL, "closed.png")

        assert not (temp_dir / "closed.png").exists()

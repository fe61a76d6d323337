import gzip
import os
from typing import Generator

import httpx
import pytest
from fastapi.testclient import TestClient

# Set test environment before the settings object is created
os.environ["ENV"] = "local"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BOT_TOKEN"] = "123456:TEST"
os.environ["CHANNEL_ID"] = "-1001234567890"
os.environ["TELEGRAM_API_BASE"] = "https://bot.test"
os.environ["LARGE_FILE_SERVICE_URL"] = "https://relay.test"
os.environ["KV_PROVIDER"] = "memory"
os.environ["SIGNED_URL_TTL_SECONDS"] = "3600"

from videovault.platform.adapters.kv_memory import MemoryKeyValueStore
from videovault.platform.provider_registry import registry
from videovault.modules.videos.repository import VideoRepository

from tests.utils import BOT_HOST, RELAY_HOST, FILE_PATH


class FakeUpstream:
    """
    Stand-in for the Bot API and the relay service behind one MockTransport.

    Byte endpoints answer 206 with a fixed Content-Range when asked for a
    range other than ``bytes=0-``, and 200 with the whole body otherwise.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.body = bytes(range(100))
        self.total_size = 5000
        self.get_file_ok = True
        self.file_status: int | None = None
        self.relay_status: int | None = None
        self.delete_ok = True
        self.compress = False
        self.video = {
            "file_id": "BAACAgQAAxkDAAIBZ",
            "file_unique_id": "AgADxx",
            "duration": 12,
            "width": 1280,
            "height": 720,
            "file_size": 1000,
            "mime_type": "video/mp4",
            "thumbnail": {"file_id": "AAMCBAADGQMAAgFn"},
        }

    def requests_to(self, host: str, path_suffix: str = "") -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host and r.url.path.endswith(path_suffix)]

    def _bytes(self, request: httpx.Request, forced_status: int | None) -> httpx.Response:
        headers = {"Content-Type": "application/octet-stream", "Server": "upstream-origin/1.0", "X-Upstream-Id": "dc4"}
        if forced_status is not None and forced_status >= 400:
            return httpx.Response(forced_status, text="upstream says no")
        if self.compress and "gzip" in request.headers.get("accept-encoding", ""):
            packed = gzip.compress(self.body)
            headers.update({"Content-Encoding": "gzip", "Content-Length": str(len(packed))})
            return httpx.Response(200, headers=headers, stream=httpx.ByteStream(packed))
        rng = request.headers.get("range", "bytes=0-")
        if rng == "bytes=0-" and forced_status != 206:
            headers["Content-Length"] = str(len(self.body))
            return httpx.Response(200, headers=headers, stream=httpx.ByteStream(self.body))
        headers["Content-Length"] = str(len(self.body))
        headers["Content-Range"] = f"bytes 100-199/{self.total_size}"
        return httpx.Response(206, headers=headers, stream=httpx.ByteStream(self.body))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host, path = request.url.host, request.url.path
        if host == BOT_HOST:
            if path.endswith("/sendVideo"):
                return httpx.Response(200, json={"ok": True, "result": {"message_id": 77, "video": self.video}})
            if path.endswith("/getFile"):
                if not self.get_file_ok:
                    return httpx.Response(400, json={"ok": False, "description": "Bad Request: file is too big"})
                return httpx.Response(200, json={"ok": True, "result": {"file_id": request.url.params.get("file_id"), "file_path": FILE_PATH}})
            if path.endswith("/deleteMessage"):
                if not self.delete_ok:
                    return httpx.Response(400, json={"ok": False, "description": "Bad Request: message to delete not found"})
                return httpx.Response(200, json={"ok": True, "result": True})
            if path.startswith("/file/bot"):
                return self._bytes(request, self.file_status)
        if host == RELAY_HOST and path.startswith("/stream-from-message/"):
            return self._bytes(request, self.relay_status)
        return httpx.Response(404, json={"ok": False})


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def repo(store) -> VideoRepository:
    return VideoRepository(store)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(store, upstream) -> Generator[TestClient, None, None]:
    """TestClient wired to the memory store and the fake upstreams."""
    from videovault.main import app

    registry.configure(kv_store=store, http_client=httpx.AsyncClient(transport=httpx.MockTransport(upstream)))
    with TestClient(app) as c:
        yield c


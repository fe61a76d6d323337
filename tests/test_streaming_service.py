"""Streaming router: authorization, origin selection and relay semantics."""

import httpx
import pytest

from videovault.core import signing
from videovault.core.config import settings
from videovault.core.errors import Forbidden, NotFound, StoreFailure, UpstreamFailure
from videovault.modules.streaming.service import StreamingService
from videovault.modules.videos.schemas import VideoRecord
from videovault.platform.adapters.kv_memory import MemoryKeyValueStore
from videovault.modules.videos.repository import VideoRepository
from tests.utils import record_payload

THRESHOLD = 20 * 1024 * 1024


class FakeOrigin:
    def __init__(self, name: str, status: int = 206, headers: dict | None = None, body: bytes = b"0123456789"):
        self.name = name
        self.status = status
        self.headers = headers if headers is not None else {"Content-Range": "bytes 0-9/10", "Content-Length": "10"}
        self.body = body
        self.calls: list[tuple[str, str]] = []
        self.closed = 0

    async def open_stream(self, ref: str, range_header: str) -> httpx.Response:
        self.calls.append((ref, range_header))
        response = httpx.Response(self.status, headers=self.headers, stream=httpx.ByteStream(self.body))
        origin = self

        async def aclose():
            origin.closed += 1

        response.aclose = aclose
        return response


class FailingPutStore(MemoryKeyValueStore):
    async def put(self, key: str, value: str) -> None:
        raise StoreFailure("Store unavailable: read-only replica")


def token_for(video_id: str) -> dict:
    t = signing.mint(video_id, settings.SECRET_KEY, 60)
    return {"signature": t.signature, "expires": t.expires}


async def drain(result) -> bytes:
    return b"".join([chunk async for chunk in result.body])


@pytest.fixture
def small():
    return FakeOrigin("bot_api")


@pytest.fixture
def large():
    return FakeOrigin("relay")


@pytest.fixture
def service(repo, small, large) -> StreamingService:
    return StreamingService(repo, small, large, settings)


async def seed(repo, video_id="abc123", size=1000, **extra) -> VideoRecord:
    record = VideoRecord.model_validate(record_payload(video_id, size=size, **extra))
    await repo.put(record)
    return record


@pytest.mark.asyncio
async def test_bad_token_is_forbidden_before_lookup(service, small):
    with pytest.raises(Forbidden):
        await service.open("abc123", signature="x" * 32, expires="9999999999999", range_header=None)
    assert small.calls == []


@pytest.mark.asyncio
async def test_unknown_video_is_not_found(service):
    with pytest.raises(NotFound):
        await service.open("missing", **token_for("missing"), range_header=None)


@pytest.mark.asyncio
@pytest.mark.parametrize("size, expected", [(THRESHOLD, "bot_api"), (THRESHOLD + 1, "relay"), (0, "bot_api")])
async def test_origin_selection_boundary(service, repo, size, expected):
    await seed(repo, size=size)
    result = await service.open("abc123", **token_for("abc123"), range_header="bytes=0-")
    await drain(result)
    assert result.origin == expected


@pytest.mark.asyncio
async def test_small_origin_keyed_by_file_id_and_large_by_message_id(service, repo, small, large):
    await seed(repo, "small", size=10)
    await seed(repo, "large", size=THRESHOLD + 1, messageId=9001)

    await drain(await service.open("small", **token_for("small"), range_header="bytes=5-"))
    await drain(await service.open("large", **token_for("large"), range_header="bytes=5-"))

    assert small.calls == [("file-small", "bytes=5-")]
    assert large.calls == [("9001", "bytes=5-")]


@pytest.mark.asyncio
async def test_missing_range_defaults_to_whole_file(service, repo, small):
    await seed(repo)
    await drain(await service.open("abc123", **token_for("abc123"), range_header=None))
    assert small.calls == [("file-abc123", "bytes=0-")]


@pytest.mark.asyncio
async def test_partial_content_headers_are_rewritten(service, repo, small):
    small.headers = {
        "Content-Range": "bytes 100-199/5000",
        "Content-Length": "100",
        "Content-Type": "application/octet-stream",
        "Server": "nginx",
        "Set-Cookie": "stel=1",
    }
    await seed(repo)

    result = await service.open("abc123", **token_for("abc123"), range_header="bytes=100-199")

    assert result.status_code == 206
    assert result.headers == {
        "Content-Type": "video/mp4",
        "Accept-Ranges": "bytes",
        "Cache-Control": "public, max-age=3600",
        "Content-Range": "bytes 100-199/5000",
        "Content-Length": "100",
    }
    assert await drain(result) == b"0123456789"


@pytest.mark.asyncio
async def test_full_body_normalized_to_200(service, repo, small):
    small.status = 200
    small.headers = {"Content-Length": "10"}
    await seed(repo)

    result = await service.open("abc123", **token_for("abc123"), range_header=None)

    assert result.status_code == 200
    assert "Content-Range" not in result.headers


@pytest.mark.asyncio
async def test_content_range_without_206_still_reports_partial(service, repo, small):
    small.status = 200
    small.headers = {"Content-Range": "bytes 0-9/10"}
    await seed(repo)

    result = await service.open("abc123", **token_for("abc123"), range_header=None)

    assert result.status_code == 206


@pytest.mark.asyncio
async def test_upstream_error_status_is_embedded(service, repo, large):
    large.status = 502
    await seed(repo, size=THRESHOLD + 1)

    with pytest.raises(UpstreamFailure) as exc_info:
        await service.open("abc123", **token_for("abc123"), range_header=None)

    assert exc_info.value.upstream_status == 502
    assert exc_info.value.to_dict()["status"] == 502
    assert large.closed == 1


@pytest.mark.asyncio
async def test_sequential_streams_count_every_view(service, repo):
    await seed(repo)
    for _ in range(5):
        await drain(await service.open("abc123", **token_for("abc123"), range_header=None))
    assert (await repo.get("abc123")).views == 5


@pytest.mark.asyncio
async def test_view_count_failure_does_not_fail_stream(small, large):
    store = FailingPutStore()
    await MemoryKeyValueStore.put(store, "video:abc123", VideoRecord.model_validate(record_payload()).to_json())
    service = StreamingService(VideoRepository(store), small, large, settings)

    result = await service.open("abc123", **token_for("abc123"), range_header=None)

    assert await drain(result) == b"0123456789"


@pytest.mark.asyncio
async def test_body_iterator_releases_upstream(service, repo, small):
    await seed(repo)
    result = await service.open("abc123", **token_for("abc123"), range_header=None)
    await drain(result)
    assert small.closed >= 1


@pytest.mark.asyncio
async def test_small_video_without_file_id_is_upstream_failure(service, repo):
    await seed(repo, fileId=None)
    with pytest.raises(UpstreamFailure):
        await service.open("abc123", **token_for("abc123"), range_header=None)


@pytest.mark.asyncio
async def test_view_count_does_not_resurrect_deleted_record(service, repo, store):
    record = await seed(repo)
    # delete commits between the stream's lookup and its view update
    await repo.delete("abc123")

    await service._count_view(record)

    assert "video:abc123" not in store._data
    assert await repo.scan_ids() == []

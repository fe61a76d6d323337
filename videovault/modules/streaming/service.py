import contextlib
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable
import httpx
from videovault.core.config import Settings
from videovault.core.errors import AppError, Forbidden, NotFound, UpstreamFailure
from videovault.core import signing
from videovault.platform.ports.video_origin import VideoOriginPort
from videovault.modules.videos.repository import VideoRepository
from videovault.modules.videos.schemas import VideoRecord

log = logging.getLogger(__name__)

DEFAULT_RANGE = "bytes=0-"
PASSTHROUGH_HEADERS = ("content-range", "content-length")

@dataclass
class StreamResult:
    status_code: int
    headers: dict[str, str]
    body: AsyncIterator[bytes]
    close: Callable[[], Awaitable[None]]
    origin: str

class StreamingService:
    """
    Authorizes a stream request and relays the bytes from the right origin.

    Files up to ``LARGE_FILE_THRESHOLD`` are fetched through the Bot API
    (resolve ``file_id`` to a download path, then GET it); larger ones are
    pulled from the relay service by channel message id. The client's Range
    header goes upstream unchanged and the body comes back unbuffered.
    """

    def __init__(self, repo: VideoRepository, small_origin: VideoOriginPort, large_origin: VideoOriginPort, settings: Settings):
        self.repo = repo
        self.small_origin = small_origin
        self.large_origin = large_origin
        self.settings = settings

    def select_origin(self, record: VideoRecord) -> tuple[VideoOriginPort, str]:
        if record.file_size > self.settings.LARGE_FILE_THRESHOLD:
            if record.message_id is None:
                raise UpstreamFailure("Large video has no message reference")
            return self.large_origin, str(record.message_id)
        if not record.file_id:
            raise UpstreamFailure("Video has no file reference")
        return self.small_origin, record.file_id

    async def _count_view(self, record: VideoRecord) -> None:
        # read-modify-write without versioning; concurrent streams may under-count.
        # Re-read first so a delete that committed meanwhile is not undone.
        try:
            current = await self.repo.get(record.id)
            if current is None:
                log.info(f"Video {record.id} deleted while opening stream, view not counted")
                return
            await self.repo.put(current.model_copy(update={"views": current.views + 1}))
        except AppError as e:
            log.warning(f"View count for video {record.id} not persisted: {e.message}")

    async def open(self, video_id: str, *, signature: str | None, expires: str | None, range_header: str | None) -> StreamResult:
        if not signing.verify(video_id, signature, expires, self.settings.SECRET_KEY):
            raise Forbidden("Invalid or expired signature")

        record = await self.repo.get(video_id)
        if record is None:
            raise NotFound("Video not found")

        await self._count_view(record)

        origin, ref = self.select_origin(record)
        log.info(f"Streaming video {video_id} ({record.file_size} bytes) via {origin.name}")
        upstream = await origin.open_stream(ref, range_header or DEFAULT_RANGE)

        if not upstream.is_success:
            status = upstream.status_code
            await upstream.aclose()
            log.error(f"Origin {origin.name} answered {status} for video {video_id}")
            raise UpstreamFailure(f"Failed to stream from {origin.name} origin", upstream_status=status)

        return StreamResult(
            status_code=self.relay_status(upstream),
            headers=self.relay_headers(upstream),
            body=self._relay_body(upstream),
            close=upstream.aclose,
            origin=origin.name,
        )

    @staticmethod
    def relay_status(upstream: httpx.Response) -> int:
        if upstream.status_code == 206 or "content-range" in upstream.headers:
            return 206
        return 200

    def relay_headers(self, upstream: httpx.Response) -> dict[str, str]:
        # only what the player needs; nothing that names the upstream
        headers = {
            "Content-Type": "video/mp4",
            "Accept-Ranges": "bytes",
            "Cache-Control": self.settings.STREAM_CACHE_CONTROL,
        }
        for name in PASSTHROUGH_HEADERS:
            value = upstream.headers.get(name)
            if value is not None:
                headers[name.title()] = value
        return headers

    @staticmethod
    async def _relay_body(upstream: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
        finally:
            with contextlib.suppress(httpx.HTTPError):
                await upstream.aclose()

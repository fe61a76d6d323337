import logging
from typing import Any
from urllib.parse import quote
from fastapi import UploadFile
from pydantic import ValidationError
from videovault.core.config import Settings
from videovault.core.errors import BadRequest, NotFound, UpstreamFailure
from videovault.core import signing
from videovault.platform.adapters.telegram_bot import TelegramBotClient
from videovault.modules.videos.index import IndexMaintainer
from videovault.modules.videos.repository import VideoRepository
from videovault.modules.videos.schemas import VideoRecord, VideoSummaryOut, VideoDetailOut, UploadOut

log = logging.getLogger(__name__)

class VideoService:
    def __init__(self, repo: VideoRepository, index: IndexMaintainer, bot: TelegramBotClient, settings: Settings):
        self.repo = repo
        self.index = index
        self.bot = bot
        self.settings = settings

    def is_large(self, size_bytes: int) -> bool:
        return size_bytes > self.settings.LARGE_FILE_THRESHOLD

    async def upload(self, *, title: str | None, description: str | None, file: UploadFile | None) -> UploadOut:
        if file is None or not file.filename:
            raise BadRequest("No video file")
        if file.size is not None and file.size > self.settings.MAX_UPLOAD_BYTES:
            raise BadRequest("File too large. Max 2GB (4GB with Premium)")

        # Read file fully; the Bot API takes the whole multipart body anyway
        data = await file.read()
        if len(data) > self.settings.MAX_UPLOAD_BYTES:
            raise BadRequest("File too large. Max 2GB (4GB with Premium)")

        message = await self.bot.send_video(
            data,
            filename=file.filename,
            content_type=file.content_type or "video/mp4",
            caption=f"{title or ''}\n\n{description or ''}",
        )
        record = VideoRecord.from_telegram_message(message, title=title, description=description)
        if not record.file_id:
            raise UpstreamFailure("Bot API response carried no video file")
        record = await self.index.on_create(record)
        log.info(f"Uploaded video {record.id} ({record.file_size} bytes, message {record.message_id})")
        return UploadOut(
            videoId=record.id,
            title=record.title,
            duration=record.duration,
            fileSize=record.file_size,
            isLarge=self.is_large(record.file_size),
        )

    async def save_metadata(self, payload: Any) -> VideoRecord:
        if not isinstance(payload, dict) or not payload.get("id"):
            raise BadRequest("Invalid metadata")
        try:
            record = VideoRecord.model_validate(payload)
        except ValidationError as e:
            raise BadRequest(f"Invalid metadata: {e.errors()[0].get('msg')}") from e
        log.info(f"Saving metadata for video: {record.id}")
        return await self.index.on_create(record)

    async def list_videos(self) -> list[VideoSummaryOut]:
        out: list[VideoSummaryOut] = []
        for video_id in await self.index.list_ids():
            record = await self.repo.get(video_id)
            if record is None:
                # orphan id left by an interrupted delete
                log.debug(f"Index entry {video_id} has no record, skipping")
                continue
            out.append(VideoSummaryOut.from_record(record))
        return out

    async def get(self, video_id: str) -> VideoDetailOut:
        record = await self.repo.get(video_id)
        if record is None:
            raise NotFound("Video not found")
        token = signing.mint(video_id, self.settings.SECRET_KEY, self.settings.SIGNED_URL_TTL_SECONDS)
        stream_url = (
            f"{self.settings.API_PREFIX}/video/{quote(video_id, safe='')}/stream"
            f"?signature={token.signature}&expires={token.expires}"
        )
        summary = VideoSummaryOut.from_record(record)
        return VideoDetailOut(
            **summary.model_dump(),
            width=record.width,
            height=record.height,
            mime_type=record.mime_type,
            stream_url=stream_url,
        )

    async def delete(self, video_id: str) -> None:
        record = await self.repo.get(video_id)
        if record is None:
            raise NotFound("Video not found")
        if record.message_id is not None:
            try:
                await self.bot.delete_message(record.message_id)
            except UpstreamFailure as e:
                # the channel message may already be gone; the catalog entry still has to go
                log.warning(f"deleteMessage for video {video_id} failed: {e.message}")
        await self.index.on_delete(video_id)

import secrets
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator

# suffix of the index key; no record may take it as an id
INDEX_KEY_SUFFIX = "list"
VIDEO_ID_PATTERN = r"^[A-Za-z0-9_-]+$"

def new_video_id() -> str:
    return secrets.token_hex(16)

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

# ---- Stored record ----

class VideoRecord(BaseModel):
    # stored and exchanged with camelCase keys; unknown keys from save-metadata are kept
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1, max_length=128, pattern=VIDEO_ID_PATTERN)
    title: str | None = None
    description: str | None = None

    file_id: str | None = Field(default=None, alias="fileId")
    file_unique_id: str | None = Field(default=None, alias="fileUniqueId")
    message_id: int | str | None = Field(default=None, alias="messageId")
    thumbnail_file_id: str | None = Field(default=None, alias="thumbnailFileId")

    file_size: int = Field(default=0, alias="fileSize", ge=0)
    duration: int | float | None = None
    width: int | None = None
    height: int | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")

    upload_date: str = Field(default_factory=utc_now_iso, alias="uploadDate")
    views: int = Field(default=0, ge=0)
    pending: bool = False

    @field_validator("id")
    @classmethod
    def _not_reserved(cls, v: str) -> str:
        if v == INDEX_KEY_SUFFIX:
            raise ValueError(f"id '{v}' is reserved")
        return v

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "VideoRecord":
        return cls.model_validate_json(raw)

    @classmethod
    def from_telegram_message(cls, message: dict, *, title: str | None, description: str | None) -> "VideoRecord":
        video = message.get("video") or message.get("document") or {}
        thumb = video.get("thumbnail") or video.get("thumb") or {}
        return cls(
            id=new_video_id(),
            title=title,
            description=description,
            file_id=video.get("file_id"),
            file_unique_id=video.get("file_unique_id"),
            message_id=message.get("message_id"),
            thumbnail_file_id=thumb.get("file_id"),
            file_size=video.get("file_size") or 0,
            duration=video.get("duration"),
            width=video.get("width"),
            height=video.get("height"),
            mime_type=video.get("mime_type"),
        )

# ---- API payloads ----

class VideoSummaryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str | None
    description: str | None
    duration: int | float | None
    views: int
    upload_date: str = Field(alias="uploadDate")
    file_size: int = Field(alias="fileSize")

    @classmethod
    def from_record(cls, r: VideoRecord) -> "VideoSummaryOut":
        return cls(
            id=r.id, title=r.title, description=r.description, duration=r.duration,
            views=r.views, upload_date=r.upload_date, file_size=r.file_size,
        )

class VideoDetailOut(VideoSummaryOut):
    width: int | None = None
    height: int | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")
    stream_url: str = Field(alias="streamUrl")

class UploadOut(BaseModel):
    success: bool = True
    videoId: str
    title: str | None
    duration: int | float | None
    fileSize: int
    isLarge: bool

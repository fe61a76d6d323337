import json
import logging
from pydantic import ValidationError
from videovault.core.errors import StoreFailure
from videovault.platform.ports.kv_store import KeyValueStorePort
from videovault.modules.videos.schemas import INDEX_KEY_SUFFIX, VideoRecord

log = logging.getLogger(__name__)

class VideoRepository:
    """Records live at ``{prefix}{id}``, the catalog order at ``{prefix}list``."""

    def __init__(self, store: KeyValueStorePort, prefix: str = "video:"):
        self.store = store
        self.prefix = prefix

    def _record_key(self, video_id: str) -> str:
        return f"{self.prefix}{video_id}"

    @property
    def list_key(self) -> str:
        return f"{self.prefix}{INDEX_KEY_SUFFIX}"

    async def get(self, video_id: str) -> VideoRecord | None:
        if video_id == INDEX_KEY_SUFFIX:
            return None
        raw = await self.store.get(self._record_key(video_id))
        if raw is None:
            return None
        try:
            return VideoRecord.from_json(raw)
        except ValidationError as e:
            raise StoreFailure(f"Corrupt record for video {video_id}") from e

    async def put(self, record: VideoRecord) -> None:
        await self.store.put(self._record_key(record.id), record.to_json())

    async def delete(self, video_id: str) -> None:
        await self.store.delete(self._record_key(video_id))

    async def get_list(self) -> list[str]:
        raw = await self.store.get(self.list_key)
        if not raw:
            return []
        try:
            ids = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreFailure("Corrupt video index") from e
        return [str(i) for i in ids] if isinstance(ids, list) else []

    async def put_list(self, ids: list[str]) -> None:
        await self.store.put(self.list_key, json.dumps(ids))

    async def scan_ids(self) -> list[str]:
        keys = await self.store.list_keys(self.prefix)
        return [k[len(self.prefix):] for k in keys if k != self.list_key]

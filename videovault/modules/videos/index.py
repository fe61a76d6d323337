import asyncio
import logging
from videovault.modules.videos.repository import VideoRepository
from videovault.modules.videos.schemas import VideoRecord

log = logging.getLogger(__name__)

class IndexMaintainer:
    """
    Keeps the newest-first id list in step with the stored records.

    The record and the list are separate keys with no transaction between
    them. A create writes the record with ``pending=True`` first, so a create
    that dies before the list write is visible to ``rebuild()``.
    """

    def __init__(self, repo: VideoRepository, lock: asyncio.Lock | None = None):
        self.repo = repo
        # serializes list read-modify-write within one process only; rebuild() repairs cross-process races
        self.lock = lock or asyncio.Lock()

    async def on_create(self, record: VideoRecord) -> VideoRecord:
        record = record.model_copy(update={"pending": True})
        await self.repo.put(record)
        async with self.lock:
            ids = await self.repo.get_list()
            ids = [record.id] + [i for i in ids if i != record.id]
            await self.repo.put_list(ids)
        record = record.model_copy(update={"pending": False})
        await self.repo.put(record)
        log.info(f"Indexed video {record.id} (catalog size {len(ids)})")
        return record

    async def on_delete(self, video_id: str) -> None:
        async with self.lock:
            ids = await self.repo.get_list()
            await self.repo.put_list([i for i in ids if i != video_id])
        await self.repo.delete(video_id)
        log.info(f"Removed video {video_id} from catalog")

    async def list_ids(self) -> list[str]:
        return await self.repo.get_list()

    async def rebuild(self) -> list[str]:
        records: list[VideoRecord] = []
        for video_id in await self.repo.scan_ids():
            r = await self.repo.get(video_id)
            if r is None:
                continue
            if r.pending:
                r = r.model_copy(update={"pending": False})
                await self.repo.put(r)
                log.warning(f"Completed interrupted create for video {r.id}")
            records.append(r)

        async with self.lock:
            current = await self.repo.get_list()
            known = {r.id for r in records}
            # keep existing order for ids that still have records, then add the missing ones newest-first
            ordered = [i for i in dict.fromkeys(current) if i in known]
            seen = set(ordered)
            missing = sorted((r for r in records if r.id not in seen), key=lambda r: r.upload_date, reverse=True)
            ids = [r.id for r in missing] + ordered
            await self.repo.put_list(ids)

        dropped = len(current) - len([i for i in current if i in known])
        log.info(f"Rebuilt video index: {len(ids)} entries, {len(missing)} restored, {dropped} orphans dropped")
        return ids

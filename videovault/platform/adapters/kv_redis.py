import logging
from redis import asyncio as aioredis
from redis.exceptions import RedisError
from videovault.core.config import settings
from videovault.core.errors import StoreFailure
from videovault.platform.ports.kv_store import KeyValueStorePort

log = logging.getLogger("kv.redis")

class RedisKeyValueStore(KeyValueStorePort):
    def __init__(self, url: str | None = None):
        url = url or settings.REDIS_URL
        if not url:
            raise RuntimeError("REDIS_URL not configured")
        self.redis = aioredis.from_url(url, encoding="utf-8", decode_responses=True)

    async def get(self, key: str) -> str | None:
        try:
            return await self.redis.get(key)
        except RedisError as e:
            log.error(f"[REDIS KV] GET {key} failed: {e}")
            raise StoreFailure(f"Store unavailable: {e}") from e

    async def put(self, key: str, value: str) -> None:
        try:
            await self.redis.set(key, value)
        except RedisError as e:
            log.error(f"[REDIS KV] SET {key} failed: {e}")
            raise StoreFailure(f"Store unavailable: {e}") from e
        log.debug(f"[REDIS KV] SET key={key}")

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            log.error(f"[REDIS KV] DEL {key} failed: {e}")
            raise StoreFailure(f"Store unavailable: {e}") from e

    async def list_keys(self, prefix: str) -> list[str]:
        try:
            return sorted([k async for k in self.redis.scan_iter(match=f"{prefix}*")])
        except RedisError as e:
            log.error(f"[REDIS KV] SCAN {prefix}* failed: {e}")
            raise StoreFailure(f"Store unavailable: {e}") from e

    async def close(self) -> None:
        await self.redis.aclose()

import asyncio
import logging
import httpx
from videovault.core.config import settings
from videovault.platform.ports.kv_store import KeyValueStorePort
from videovault.platform.ports.video_origin import VideoOriginPort
from videovault.platform.adapters.kv_memory import MemoryKeyValueStore
from videovault.platform.adapters.kv_redis import RedisKeyValueStore
from videovault.platform.adapters.origin_relay import RelayOrigin
from videovault.platform.adapters.telegram_bot import TelegramBotClient

log = logging.getLogger("provider.registry")

class ProviderRegistry:
    _kv_store: KeyValueStorePort | None = None
    _http_client: httpx.AsyncClient | None = None
    _bot: TelegramBotClient | None = None
    _relay: VideoOriginPort | None = None
    _index_lock: asyncio.Lock | None = None

    @classmethod
    def kv_store(cls) -> KeyValueStorePort:
        if cls._kv_store is None:
            prov = (settings.KV_PROVIDER or "memory").lower()
            if prov == "redis":
                cls._kv_store = RedisKeyValueStore(settings.REDIS_URL)
            else:
                cls._kv_store = MemoryKeyValueStore()
            log.info("Key-value store provider: %s", cls._kv_store.__class__.__name__)
        return cls._kv_store

    @classmethod
    def http_client(cls) -> httpx.AsyncClient:
        if cls._http_client is None:
            # read timeout stays open-ended: a paused player may hold the relay for a long time
            timeout = httpx.Timeout(settings.UPSTREAM_TIMEOUT_SECONDS, read=None)
            cls._http_client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        return cls._http_client

    @classmethod
    def bot(cls) -> TelegramBotClient:
        if cls._bot is None:
            cls._bot = TelegramBotClient(
                cls.http_client(), settings.BOT_TOKEN, settings.CHANNEL_ID, settings.TELEGRAM_API_BASE
            )
        return cls._bot

    @classmethod
    def relay(cls) -> VideoOriginPort:
        if cls._relay is None:
            cls._relay = RelayOrigin(cls.http_client(), settings.LARGE_FILE_SERVICE_URL)
        return cls._relay

    @classmethod
    def index_lock(cls) -> asyncio.Lock:
        if cls._index_lock is None:
            cls._index_lock = asyncio.Lock()
        return cls._index_lock

    @classmethod
    def configure(cls, *, kv_store: KeyValueStorePort | None = None, http_client: httpx.AsyncClient | None = None) -> None:
        """Swap providers (tests, embedding). Origins are rebuilt lazily around the new client."""
        if kv_store is not None:
            cls._kv_store = kv_store
        if http_client is not None:
            cls._http_client = http_client
            cls._bot = None
            cls._relay = None

    @classmethod
    async def shutdown(cls) -> None:
        if cls._http_client is not None:
            await cls._http_client.aclose()
        if cls._kv_store is not None:
            await cls._kv_store.close()
        cls._kv_store = None
        cls._http_client = None
        cls._bot = None
        cls._relay = None
        cls._index_lock = None

registry = ProviderRegistry()

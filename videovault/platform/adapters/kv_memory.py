import logging
from videovault.platform.ports.kv_store import KeyValueStorePort

log = logging.getLogger("kv.memory")

class MemoryKeyValueStore(KeyValueStorePort):
    """
    Process-local dict store for local runs and tests.
    State is lost on restart and is not shared between workers.
    """
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value
        log.debug(f"[MEMORY KV] put key={key} bytes={len(value)}")

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list_keys(self, prefix: str) -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    async def close(self) -> None:
        return None

from typing import Protocol, runtime_checkable

@runtime_checkable
class KeyValueStorePort(Protocol):
    async def get(self, key: str) -> str | None: ...
    async def put(self, key: str, value: str) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def list_keys(self, prefix: str) -> list[str]: ...
    async def close(self) -> None: ...

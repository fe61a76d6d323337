from typing import Protocol, runtime_checkable
import httpx

@runtime_checkable
class VideoOriginPort(Protocol):
    """
    A range-capable source of video bytes.

    ``open_stream`` returns an httpx response whose body has not been read yet;
    the caller owns it and must ``aclose()`` it. Non-success statuses are the
    caller's to interpret.
    """
    name: str

    async def open_stream(self, ref: str, range_header: str) -> httpx.Response: ...

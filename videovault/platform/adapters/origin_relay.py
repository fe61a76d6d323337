import logging
import httpx
from urllib.parse import quote
from videovault.core.errors import UpstreamFailure
from videovault.platform.ports.video_origin import VideoOriginPort

log = logging.getLogger("origin.relay")

class RelayOrigin(VideoOriginPort):
    """Large-file delivery service, addressed by the channel message id."""
    name = "relay"

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self.client = client
        self.base_url = base_url.rstrip("/")

    def url_for(self, message_id: str) -> str:
        return f"{self.base_url}/stream-from-message/{quote(str(message_id))}"

    async def open_stream(self, ref: str, range_header: str) -> httpx.Response:
        url = self.url_for(ref)
        log.info(f"Proxying to relay origin: {url} range={range_header}")
        req = self.client.build_request("GET", url, headers={"Range": range_header, "Accept-Encoding": "identity"})
        try:
            return await self.client.send(req, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Failed to reach relay origin: {e}") from e

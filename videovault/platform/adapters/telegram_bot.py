import logging
import httpx
from videovault.core.errors import UpstreamFailure
from videovault.platform.ports.video_origin import VideoOriginPort

log = logging.getLogger("telegram.bot")

class TelegramBotClient(VideoOriginPort):
    """
    Thin client over the Telegram Bot API.

    Used for three things: storing an uploaded video as a channel message
    (``sendVideo``), serving small files (``getFile`` + file download) and
    removing the channel message when a video is deleted.
    Files above the Bot API download limit go through the relay origin instead.
    """
    name = "bot_api"

    def __init__(self, client: httpx.AsyncClient, token: str, chat_id: str, api_base: str = "https://api.telegram.org"):
        self.client = client
        self.token = token
        self.chat_id = chat_id
        self.api_base = api_base.rstrip("/")

    def _method_url(self, method: str) -> str:
        return f"{self.api_base}/bot{self.token}/{method}"

    def file_url(self, file_path: str) -> str:
        return f"{self.api_base}/file/bot{self.token}/{file_path}"

    async def _call(self, verb: str, method: str, **kwargs) -> tuple[int, dict]:
        try:
            resp = await self.client.request(verb, self._method_url(method), **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Bot API {method} unreachable: {e}") from e
        try:
            body = resp.json()
        except ValueError:
            body = {"ok": False, "description": resp.text[:200]}
        if not isinstance(body, dict):
            body = {"ok": False}
        return resp.status_code, body

    async def send_video(self, data: bytes, *, filename: str, content_type: str, caption: str) -> dict:
        status, body = await self._call(
            "POST", "sendVideo",
            data={"chat_id": self.chat_id, "caption": caption, "supports_streaming": "true"},
            files={"video": (filename, data, content_type)},
        )
        if not body.get("ok"):
            log.error(f"sendVideo failed status={status} description={body.get('description')}")
            raise UpstreamFailure(body.get("description") or "Upload failed", upstream_status=status)
        return body["result"]

    async def get_file_path(self, file_id: str) -> str:
        status, body = await self._call("GET", "getFile", params={"file_id": file_id})
        if status >= 400 or not body.get("ok"):
            raise UpstreamFailure(
                "Failed to get file from Telegram",
                upstream_status=status,
                details={"details": body.get("description")},
            )
        return body["result"]["file_path"]

    async def open_stream(self, ref: str, range_header: str) -> httpx.Response:
        file_path = await self.get_file_path(ref)
        req = self.client.build_request("GET", self.file_url(file_path), headers={"Range": range_header, "Accept-Encoding": "identity"})
        try:
            return await self.client.send(req, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Failed to reach Bot API file endpoint: {e}") from e

    async def delete_message(self, message_id: int | str) -> None:
        status, body = await self._call("POST", "deleteMessage", json={"chat_id": self.chat_id, "message_id": message_id})
        if not body.get("ok"):
            raise UpstreamFailure(body.get("description") or "deleteMessage failed", upstream_status=status)

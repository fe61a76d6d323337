"""Shared helpers for the test suite."""

BOT_HOST = "bot.test"
RELAY_HOST = "relay.test"
FILE_PATH = "videos/file_7.mp4"


def record_payload(video_id: str = "abc123", size: int = 1000, **extra) -> dict:
    """A complete save-metadata body, camelCase as clients send it."""
    payload = {
        "id": video_id,
        "title": "Sunset",
        "description": "Filmed from the pier",
        "fileId": f"file-{video_id}",
        "fileUniqueId": f"uniq-{video_id}",
        "messageId": 501,
        "fileSize": size,
        "duration": 42,
        "width": 1920,
        "height": 1080,
        "mimeType": "video/mp4",
        "uploadDate": "2025-01-01T00:00:00Z",
        "views": 0,
    }
    payload.update(extra)
    return payload


def stream_path(client, video_id: str) -> str:
    """Fetch the video and return the signed stream URL it advertises."""
    response = client.get(f"/api/video/{video_id}")
    assert response.status_code == 200, response.text
    return response.json()["video"]["streamUrl"]

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from videovault.core.config import settings
from videovault.platform.provider_registry import registry
from videovault.modules.videos.router import get_repo
from videovault.modules.videos.repository import VideoRepository
from videovault.modules.streaming.service import StreamingService

router = APIRouter()

def svc(repo: VideoRepository = Depends(get_repo)) -> StreamingService:
    return StreamingService(repo, registry.bot(), registry.relay(), settings)

@router.get("/video/{video_id}/stream")
async def stream_video(
    video_id: str,
    request: Request,
    signature: str | None = None,
    expires: str | None = None,
    service: StreamingService = Depends(svc),
):
    result = await service.open(
        video_id,
        signature=signature,
        expires=expires,
        range_header=request.headers.get("range"),
    )
    # upstream is released when the body finishes or the client goes away
    return StreamingResponse(
        result.body,
        status_code=result.status_code,
        headers=result.headers,
        background=BackgroundTask(result.close),
    )

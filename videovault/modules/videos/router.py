from typing import Any
from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from videovault.core.config import settings
from videovault.platform.provider_registry import registry
from videovault.modules.videos.index import IndexMaintainer
from videovault.modules.videos.repository import VideoRepository
from videovault.modules.videos.service import VideoService

router = APIRouter()

def get_repo() -> VideoRepository:
    return VideoRepository(registry.kv_store(), prefix=settings.KV_KEY_PREFIX)

def get_index(repo: VideoRepository = Depends(get_repo)) -> IndexMaintainer:
    return IndexMaintainer(repo, lock=registry.index_lock())

def svc(repo: VideoRepository = Depends(get_repo), index: IndexMaintainer = Depends(get_index)) -> VideoService:
    return VideoService(repo, index, registry.bot(), settings)

@router.post("/upload")
async def upload_video(
    title: str | None = Form(None),
    description: str | None = Form(None),
    video: UploadFile | None = File(None),
    service: VideoService = Depends(svc),
):
    out = await service.upload(title=title, description=description, file=video)
    return out.model_dump()

@router.post("/save-metadata")
async def save_metadata(payload: Any = Body(None), service: VideoService = Depends(svc)):
    record = await service.save_metadata(payload)
    return {"success": True, "videoId": record.id}

@router.get("/videos")
async def list_videos(service: VideoService = Depends(svc)):
    videos = await service.list_videos()
    return {"success": True, "videos": [v.model_dump(by_alias=True) for v in videos]}

@router.get("/video/{video_id}")
async def get_video(video_id: str, service: VideoService = Depends(svc)):
    video = await service.get(video_id)
    return {"success": True, "video": video.model_dump(by_alias=True)}

@router.delete("/video/{video_id}")
async def delete_video(video_id: str, service: VideoService = Depends(svc)):
    await service.delete(video_id)
    return {"success": True, "message": "Video deleted"}

@router.post("/index/rebuild")
async def rebuild_index(index: IndexMaintainer = Depends(get_index)):
    ids = await index.rebuild()
    return {"success": True, "count": len(ids)}

from datetime import datetime, timezone
from fastapi import APIRouter
from videovault.modules.videos.router import router as videos_router
from videovault.modules.streaming.router import router as streaming_router

api_router = APIRouter()
api_router.include_router(streaming_router, tags=["streaming"])
api_router.include_router(videos_router, tags=["videos"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")}

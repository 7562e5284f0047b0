from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.websockets.hub import SignalingHub, get_hub

router = APIRouter()


@router.get("/api/health")
async def health_check(hub: SignalingHub = Depends(get_hub)):
    """Application health check endpoint"""
    stats = hub.stats()
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc),
        "service": settings.app_name,
        "connections": stats["connections"],
        "rooms": stats["rooms"],
        "messages": stats["messages"],
    }


@router.get("/health/live")
async def liveness_check():
    """Kubernetes liveness probe endpoint"""
    return {"status": "alive", "timestamp": datetime.now(timezone.utc)}

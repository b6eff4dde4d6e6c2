"""Health check endpoints."""
from fastapi import APIRouter
import logging

from ..core.config import settings
from ..core.database import health_check_db
from ..services.chat.broker import room_broker

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])

@router.get("/")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "MentorChat API",
        "version": settings.app_version,
        "realtime_backend": settings.realtime_backend
    }

@router.get("/db")
async def database_health():
    """Database health check"""
    db_healthy = await health_check_db()
    return {
        "status": "healthy" if db_healthy else "unhealthy",
        "database": "healthy" if db_healthy else "unhealthy",
        "rooms_with_viewers": len(room_broker.room_subscriptions)
    }

"""Liveness and index routes."""
from fastapi import APIRouter

from app.core.config import settings
from app.models.user import utcnow


router = APIRouter(tags=["System"])


@router.get("/api/health")
def health():
    return {
        "success": True,
        "message": f"{settings.APP_NAME} is running",
        "timestamp": utcnow().isoformat(),
    }


@router.get("/")
def index():
    return {
        "success": True,
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "endpoints": {
            "health": "/api/health",
            "auth": "/api/auth",
            "healthData": "/api/health",
        },
    }

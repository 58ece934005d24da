from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from authgate.core.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
def root():
    return "API running"


@router.get("/api/health")
def health_check(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }

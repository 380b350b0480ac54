"""
Health check endpoints.
"""

import shutil

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
import redis.asyncio as redis

from config import settings

router = APIRouter()


def _tool_status() -> dict:
    return {
        "yt_dlp": "available" if shutil.which(settings.YT_DLP_BINARY) else "missing",
        "ffmpeg": "available" if shutil.which(settings.FFMPEG_BINARY) else "missing",
    }


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Reports database, Redis, media tooling and OpenAI key status.
    """
    health_status = {
        "status": "ok",
        "api": "up",
        "database": "unknown",
        "redis": "unknown",
        "openai_api_key": "configured" if settings.OPENAI_API_KEY else "missing",
        **_tool_status(),
    }

    try:
        from database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["database"] = "up"
    except Exception as e:
        health_status["database"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    # Redis only backs rate limiting, so it being down does not degrade the API
    try:
        r = redis.from_url(settings.REDIS_URL)
        await r.ping()
        await r.aclose()
        health_status["redis"] = "up"
    except Exception as e:
        health_status["redis"] = f"down: {str(e)}"

    return health_status


@router.get("/health/ready")
async def readiness_check():
    """Ready when the OpenAI key is set and yt-dlp/ffmpeg are on PATH."""
    missing = []
    if not settings.OPENAI_API_KEY:
        missing.append("OPENAI_API_KEY")
    for tool, status in _tool_status().items():
        if status == "missing":
            missing.append(tool)

    if missing:
        return JSONResponse(
            status_code=503,
            content={"ready": False, "missing": missing},
        )
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    return {"alive": True}

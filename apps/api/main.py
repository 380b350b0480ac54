"""
Reel Insights - FastAPI Backend
Main application entry point: reel analysis, saved reel browsing and health checks.
"""

import asyncio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from config import settings
from database import init_db
import models  # noqa: F401
from multimodal.scratch import sweep_stale_scratch_files
from routers import (
    health,
    reels,
)


async def _periodic_scratch_sweep() -> None:
    interval_minutes = max(int(settings.SCRATCH_SWEEP_INTERVAL_MINUTES), 0)
    if interval_minutes <= 0:
        return
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            removed = await asyncio.to_thread(sweep_stale_scratch_files)
            if removed:
                print(f"🧹 Scratch sweep removed {removed} stale files.")
        except Exception as exc:
            print(f"⚠️ Scratch sweep tick failed: {exc}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Reel Insights API...")
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            await init_db()
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    try:
        removed = await asyncio.to_thread(sweep_stale_scratch_files)
        if removed:
            print(f"🧹 Removed {removed} stale scratch files after startup.")
    except Exception as exc:
        print(f"⚠️ Startup scratch sweep skipped: {exc}")
    sweep_task = None
    if int(settings.SCRATCH_SWEEP_INTERVAL_MINUTES) > 0:
        sweep_task = asyncio.create_task(_periodic_scratch_sweep())
        print(
            "📅 Scratch sweep loop enabled "
            f"(every {int(settings.SCRATCH_SWEEP_INTERVAL_MINUTES)} min)."
        )
    yield
    # Shutdown
    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
    print("👋 Shutting down API...")


app = FastAPI(
    title="Reel Insights API",
    description="Transcribe short-form videos and save topic-tagged summaries",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware: dashboard dev servers and the browser extension
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX or None,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(reels.router, tags=["Reels"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Reel Insights API",
        "version": "0.1.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)

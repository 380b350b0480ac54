"""Analyze-by-URL and analyze-by-upload flows with dedup and scratch cleanup."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional, Tuple

from models.reel import Reel
from multimodal.audio import extract_audio
from multimodal.llm import ReelIntelligence
from multimodal.models import AnalyzeMediaResult
from multimodal.scratch import ScratchFiles
from multimodal.video import MediaDownloadConfig, download_reel_media
from services.pipeline import analyze_media
from services.reel_store import ReelStore

logger = logging.getLogger(__name__)

# Per-URL locks so concurrent first-time requests do the external work once.
_inflight_locks: Dict[str, asyncio.Lock] = {}
_inflight_waiters: Dict[str, int] = {}


@asynccontextmanager
async def reel_url_guard(reel_url: str) -> AsyncIterator[None]:
    lock = _inflight_locks.setdefault(reel_url, asyncio.Lock())
    _inflight_waiters[reel_url] = _inflight_waiters.get(reel_url, 0) + 1
    try:
        async with lock:
            yield
    finally:
        _inflight_waiters[reel_url] -= 1
        if _inflight_waiters[reel_url] <= 0:
            _inflight_waiters.pop(reel_url, None)
            _inflight_locks.pop(reel_url, None)


async def analyze_reel_url(
    reel_url: str,
    *,
    store: ReelStore,
    intelligence_factory: Callable[[], ReelIntelligence],
    download_config: MediaDownloadConfig,
    collection: Optional[str] = None,
) -> Tuple[Reel, bool]:
    """
    Return the stored analysis for reel_url, running the pipeline on a miss.

    The analysis backend is only built on a miss, so stored reels are served
    even when transcription is not configured.

    Returns (reel, cached). Downloaded media and extracted audio are removed
    before returning, whether the run succeeded or not.
    """
    existing = await store.find_by_url(reel_url)
    if existing:
        logger.info("Reel %s already analyzed as %s", reel_url, existing.id)
        return existing, True

    async with reel_url_guard(reel_url):
        existing = await store.find_by_url(reel_url)
        if existing:
            logger.info("Reel %s analyzed by a concurrent request", reel_url)
            return existing, True

        intelligence = intelligence_factory()
        async with ScratchFiles() as scratch:
            media_path = scratch.track(await download_reel_media(reel_url, download_config))
            audio_path = scratch.track(await extract_audio(media_path, download_config.scratch_dir))
            result = await analyze_media(audio_path, intelligence)

        reel = await store.insert(
            reel_url=reel_url,
            title=result.title,
            collection=collection,
            transcript=result.transcript,
            summary=result.summary,
            topics=result.topics,
        )
    logger.info("Saved reel %s as %s with topics %s", reel_url, reel.id, reel.topics)
    return reel, False


async def analyze_uploaded_media(
    video_path: str,
    *,
    intelligence_factory: Callable[[], ReelIntelligence],
    scratch_dir: Optional[str] = None,
) -> AnalyzeMediaResult:
    """Analyze an uploaded video already written to scratch. Nothing is persisted."""
    async with ScratchFiles() as scratch:
        scratch.track(video_path)
        intelligence = intelligence_factory()
        audio_path = scratch.track(await extract_audio(video_path, scratch_dir))
        return await analyze_media(audio_path, intelligence)

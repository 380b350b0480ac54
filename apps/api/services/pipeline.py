"""Transcribe-then-summarize pipeline for extracted reel audio."""

from __future__ import annotations

import logging
from typing import Optional

from multimodal.errors import ReelErrorKind, ReelProcessingError
from multimodal.llm import ReelIntelligence
from multimodal.models import AnalyzeMediaResult

logger = logging.getLogger(__name__)


async def analyze_media(audio_path: Optional[str], intelligence: ReelIntelligence) -> AnalyzeMediaResult:
    """
    Run speech-to-text and summarization on an extracted audio file.

    A missing audio path is a MEDIA_NOT_AVAILABLE failure raised before any
    remote call. Failures from the two stages propagate unchanged.
    """
    if not audio_path:
        raise ReelProcessingError(ReelErrorKind.MEDIA_NOT_AVAILABLE, "Audio path is required for analysis")

    transcript = await intelligence.transcribe(audio_path)
    logger.info("Transcribed %s (%d chars)", audio_path, len(transcript))
    analysis = await intelligence.summarize(transcript)

    return AnalyzeMediaResult(
        title=analysis.title,
        transcript=transcript,
        summary=analysis.summary,
        topics=analysis.topics,
    )

import asyncio
import json
import logging
import re
from typing import Optional, Protocol

from openai import OpenAI

from config import require_openai_api_key, settings
from .audio import transcribe_audio
from .errors import ReelErrorKind, ReelProcessingError
from .models import TranscriptAnalysis
from .topics import CANONICAL_TOPICS, MAX_TOPICS, normalize_topics

logger = logging.getLogger(__name__)

MAX_TRANSCRIPT_CHARS = 8000

ANALYSIS_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "title": {"type": "string"},
        "summary": {"type": "string"},
        "topics": {
            "type": "array",
            "items": {"type": "string"},
            "description": f"Between 1 and {MAX_TOPICS} topic labels",
        },
    },
    "required": ["title", "summary", "topics"],
}


class ReelIntelligence(Protocol):
    """Speech-to-text and summarization capability used by the pipeline."""

    async def transcribe(self, audio_path: str) -> str: ...

    async def summarize(self, transcript: str) -> TranscriptAnalysis: ...


def get_openai_client(api_key: Optional[str] = None) -> OpenAI:
    """Build an OpenAI client with explicit timeout and retry budget."""
    return OpenAI(
        api_key=api_key or require_openai_api_key(),
        timeout=settings.OPENAI_TIMEOUT_SECONDS,
        max_retries=settings.OPENAI_MAX_RETRIES,
    )


def prepare_transcript(transcript: str, limit: int = MAX_TRANSCRIPT_CHARS) -> str:
    """Collapse whitespace and cap prompt size."""
    return re.sub(r"\s+", " ", transcript or "").strip()[:limit]


def clean_title(title: str) -> str:
    return re.sub(r"[.?!]+$", "", (title or "").strip()).strip()


def _system_prompt() -> str:
    topic_list = ", ".join(CANONICAL_TOPICS)
    return f"""
    You summarize transcripts of short-form social videos.

    Return a JSON object with:
    - "title": a short human-readable label (max 8 words, no trailing punctuation)
    - "summary": 2-3 sentences describing what the video teaches or claims
    - "topics": 1-{MAX_TOPICS} topics

    Pick topics from this list whenever one fits: {topic_list}.
    Only invent a new topic when none of the listed ones fit. New topics must be
    broad, reusable across many videos, and at most 3 words.
    """


def analyze_transcript(transcript: str, client: OpenAI, model: Optional[str] = None) -> TranscriptAnalysis:
    """
    Turn a raw transcript into a title, summary and normalized topics.

    Args:
        transcript: Speech-to-text output, any length
        client: OpenAI client
        model: Chat model override, defaults to OPENAI_SUMMARY_MODEL
    """
    transcript_text = prepare_transcript(transcript)

    response = client.chat.completions.create(
        model=model or settings.OPENAI_SUMMARY_MODEL,
        messages=[
            {"role": "system", "content": _system_prompt()},
            {"role": "user", "content": f"Transcript:\n{transcript_text}"},
        ],
        response_format={
            "type": "json_schema",
            "json_schema": {"name": "reel_analysis", "strict": True, "schema": ANALYSIS_SCHEMA},
        },
    )

    choices = getattr(response, "choices", None) or []
    content = choices[0].message.content if choices else None
    if not content:
        raise ReelProcessingError(ReelErrorKind.UPSTREAM_FAILED, "Summarization returned an empty response")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ReelProcessingError(
            ReelErrorKind.UPSTREAM_FAILED,
            "Summarization returned invalid JSON",
            detail=content[:500],
        ) from exc
    if not isinstance(data, dict):
        raise ReelProcessingError(
            ReelErrorKind.UPSTREAM_FAILED,
            "Summarization returned an unexpected payload",
            detail=content[:500],
        )

    raw_topics = data.get("topics")
    topics = normalize_topics(raw_topics if isinstance(raw_topics, list) else [])
    if not topics:
        raise ReelProcessingError(
            ReelErrorKind.UPSTREAM_FAILED,
            "Summarization returned no usable topics",
            detail=content[:500],
        )

    return TranscriptAnalysis(
        title=clean_title(str(data.get("title") or "")),
        summary=str(data.get("summary") or "").strip(),
        topics=topics,
    )


class OpenAIReelIntelligence:
    """ReelIntelligence backed by the OpenAI translations and chat APIs."""

    def __init__(self, client: OpenAI):
        self.client = client

    async def transcribe(self, audio_path: str) -> str:
        return await asyncio.to_thread(transcribe_audio, audio_path, self.client)

    async def summarize(self, transcript: str) -> TranscriptAnalysis:
        return await asyncio.to_thread(analyze_transcript, transcript, self.client)

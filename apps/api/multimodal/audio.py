import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import ffmpeg
from openai import OpenAI

from config import settings
from multimodal.errors import ReelErrorKind, ReelProcessingError
from multimodal.process import run_process
from multimodal.scratch import discard_path, new_scratch_path

logger = logging.getLogger(__name__)

SAMPLE_RATE_HZ = 16000


def build_extract_audio_command(media_path: str, output_path: str, binary: str = "ffmpeg") -> List[str]:
    # ffmpeg -i media -vn -acodec pcm_s16le -ar 16000 -ac 1 out.wav -y
    return (
        ffmpeg
        .input(media_path)
        .output(output_path, vn=None, acodec="pcm_s16le", ar=SAMPLE_RATE_HZ, ac=1)
        .overwrite_output()
        .compile(cmd=binary)
    )


async def extract_audio(media_path: str, output_dir: Optional[str] = None) -> str:
    """
    Extract mono 16kHz 16-bit PCM WAV audio suitable for speech-to-text.
    Returns path to audio file in the scratch directory; the caller owns it.
    """
    output_path = new_scratch_path(".wav", output_dir)
    cmd = build_extract_audio_command(media_path, str(output_path), settings.FFMPEG_BINARY)

    try:
        returncode, _, stderr = await run_process(cmd, timeout=settings.AUDIO_EXTRACTION_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as exc:
        await discard_path(output_path)
        raise ReelProcessingError(
            ReelErrorKind.EXTRACTION_FAILED,
            f"FFmpeg timed out after {settings.AUDIO_EXTRACTION_TIMEOUT_SECONDS:.0f}s",
        ) from exc
    except OSError as exc:
        raise ReelProcessingError(
            ReelErrorKind.EXTRACTION_FAILED,
            "FFmpeg failed to start",
            detail=str(exc),
        ) from exc

    if returncode != 0:
        await discard_path(output_path)
        logger.error("Error extracting audio from %s: %s", media_path, stderr.strip()[-2000:])
        raise ReelProcessingError(
            ReelErrorKind.EXTRACTION_FAILED,
            f"FFmpeg exited with code {returncode}",
            detail=stderr.strip()[-2000:],
        )

    return str(output_path)


def transcribe_audio(audio_path: str, client: OpenAI, model: Optional[str] = None) -> str:
    """
    Transcribe audio with the OpenAI translations endpoint.
    The whole file goes up in one request and the text comes back in English
    regardless of the spoken language.
    """
    with Path(audio_path).open("rb") as audio_file:
        response = client.audio.translations.create(
            model=model or settings.OPENAI_TRANSCRIPTION_MODEL,
            file=audio_file,
        )
    return str(getattr(response, "text", "") or "").strip()

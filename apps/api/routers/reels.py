"""
Reel analysis router: analyze by URL or upload, browse and delete saved reels.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, NoReturn, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.reel import Reel
from multimodal.errors import ReelErrorKind, ReelProcessingError
from multimodal.llm import OpenAIReelIntelligence, ReelIntelligence, get_openai_client
from multimodal.scratch import discard_path, new_scratch_path
from multimodal.video import MediaDownloadConfig
from routers.rate_limit import rate_limit
from services.reel_analysis import analyze_reel_url, analyze_uploaded_media
from services.reel_store import ReelStore

router = APIRouter()
logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_EXTENSIONS = {".mp4", ".mov", ".webm"}
UPLOAD_CHUNK_BYTES = 1024 * 1024
GENERIC_FAILURE_MESSAGE = "Failed to analyze reel"

# kind -> (status, user-facing message); None means use the error's own message
ERROR_RESPONSES = {
    ReelErrorKind.MEDIA_NOT_AVAILABLE: (400, None),
    ReelErrorKind.DUPLICATE_REEL: (409, "This reel was saved by another request. Refresh to see it."),
    ReelErrorKind.DEPENDENCY_MISSING: (500, GENERIC_FAILURE_MESSAGE),
    ReelErrorKind.DOWNLOAD_FAILED: (500, GENERIC_FAILURE_MESSAGE),
    ReelErrorKind.EXTRACTION_FAILED: (500, GENERIC_FAILURE_MESSAGE),
    ReelErrorKind.UPSTREAM_FAILED: (500, GENERIC_FAILURE_MESSAGE),
}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _validate_reel_url(value: str) -> str:
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("reelUrl must be an absolute http(s) URL")
    return value


class AnalyzeReelRequest(CamelModel):
    reel_url: str = Field(min_length=8, max_length=2000)
    collection: Optional[str] = Field(default=None, max_length=200)

    @field_validator("reel_url")
    @classmethod
    def _absolute_http_url(cls, value: str) -> str:
        return _validate_reel_url(value)


class AnalyzeReelResponse(CamelModel):
    summary: str
    topics: List[str]
    transcript: str


class ReelSummaryResponse(CamelModel):
    id: str
    reel_url: Optional[str] = None
    title: Optional[str] = None
    collection: str
    summary: str
    topics: List[str]
    created_at: Optional[str] = None


class ReelDetailResponse(ReelSummaryResponse):
    transcript: str


class DeleteReelResponse(CamelModel):
    success: bool


async def get_reel_store(db: AsyncSession = Depends(get_db)) -> ReelStore:
    return ReelStore(db)


def build_reel_intelligence() -> ReelIntelligence:
    return OpenAIReelIntelligence(get_openai_client())


def get_intelligence_factory() -> Callable[[], ReelIntelligence]:
    """Built on demand so stored reels are served without an OpenAI key."""
    return build_reel_intelligence


def get_download_config() -> MediaDownloadConfig:
    return MediaDownloadConfig.from_settings(settings)


def _isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite drops tzinfo; stored values are UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _serialize_summary(reel: Reel) -> ReelSummaryResponse:
    return ReelSummaryResponse(
        id=reel.id,
        reel_url=reel.reel_url,
        title=reel.title,
        collection=reel.collection,
        summary=reel.summary or "",
        topics=list(reel.topics or []),
        created_at=_isoformat_utc(reel.created_at),
    )


def _serialize_detail(reel: Reel) -> ReelDetailResponse:
    return ReelDetailResponse(
        **_serialize_summary(reel).model_dump(),
        transcript=reel.transcript or "",
    )


def _raise_http_error(exc: Exception, context: str) -> NoReturn:
    """Map a pipeline failure to an HTTP response; full detail stays in the logs."""
    if isinstance(exc, ReelProcessingError):
        status_code, message = ERROR_RESPONSES.get(exc.kind, (500, GENERIC_FAILURE_MESSAGE))
        if status_code >= 500:
            logger.error("%s failed [%s]: %s", context, exc.kind.value, exc, exc_info=exc)
        else:
            logger.info("%s rejected [%s]: %s", context, exc.kind.value, exc.message)
        raise HTTPException(status_code=status_code, detail=message or exc.message) from exc

    logger.error("%s failed: %s", context, exc, exc_info=exc)
    raise HTTPException(status_code=500, detail=GENERIC_FAILURE_MESSAGE) from exc


@router.post("/analyze-reel", response_model=AnalyzeReelResponse)
async def analyze_reel(
    request: AnalyzeReelRequest,
    _rate_limit: None = Depends(rate_limit("analyze_reel", lambda: settings.ANALYZE_RATE_LIMIT_PER_HOUR)),
    store: ReelStore = Depends(get_reel_store),
    download_config: MediaDownloadConfig = Depends(get_download_config),
    intelligence_factory: Callable[[], ReelIntelligence] = Depends(get_intelligence_factory),
):
    """Analyze a reel by URL, returning the saved analysis when one exists."""
    try:
        reel, _cached = await analyze_reel_url(
            request.reel_url,
            store=store,
            intelligence_factory=intelligence_factory,
            download_config=download_config,
            collection=request.collection,
        )
    except Exception as exc:
        _raise_http_error(exc, f"Analyze {request.reel_url}")

    return AnalyzeReelResponse(
        summary=reel.summary or "",
        topics=list(reel.topics or []),
        transcript=reel.transcript or "",
    )


@router.post("/analyze-upload", response_model=AnalyzeReelResponse)
async def analyze_upload(
    video: UploadFile = File(...),
    _rate_limit: None = Depends(rate_limit("analyze_upload", lambda: settings.ANALYZE_RATE_LIMIT_PER_HOUR)),
    intelligence_factory: Callable[[], ReelIntelligence] = Depends(get_intelligence_factory),
):
    """Analyze an uploaded video file. Upload results are not saved."""
    suffix = Path(video.filename or "").suffix.lower()
    if suffix not in ALLOWED_UPLOAD_EXTENSIONS:
        await video.close()
        raise HTTPException(
            status_code=422,
            detail="Unsupported file type. Upload an mp4, mov or webm video.",
        )

    max_bytes = int(settings.MAX_UPLOAD_BYTES)
    destination = new_scratch_path(suffix)
    total_size = 0
    try:
        with destination.open("wb") as out:
            while True:
                chunk = await video.read(UPLOAD_CHUNK_BYTES)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > max_bytes:
                    raise HTTPException(
                        status_code=413,
                        detail=f"File too large. Max upload size is {max_bytes // (1024 * 1024)}MB.",
                    )
                out.write(chunk)
    except Exception:
        await discard_path(destination)
        raise
    finally:
        await video.close()

    try:
        result = await analyze_uploaded_media(str(destination), intelligence_factory=intelligence_factory)
    except Exception as exc:
        _raise_http_error(exc, f"Analyze upload {video.filename}")

    return AnalyzeReelResponse(
        summary=result.summary,
        topics=result.topics,
        transcript=result.transcript,
    )


@router.get("/reels", response_model=List[ReelSummaryResponse])
async def list_reels(
    reel_url: Optional[str] = Query(default=None, alias="reelUrl"),
    store: ReelStore = Depends(get_reel_store),
):
    """List saved reels newest first, or look up a single reel by URL."""
    if reel_url is not None:
        try:
            reel_url = _validate_reel_url(reel_url)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid query") from exc
        reel = await store.find_by_url(reel_url)
        return [_serialize_summary(reel)] if reel else []
    return [_serialize_summary(reel) for reel in await store.list()]


@router.get("/reels/{reel_id}", response_model=ReelDetailResponse)
async def get_reel(reel_id: str, store: ReelStore = Depends(get_reel_store)):
    """Get a saved reel including its transcript."""
    reel = await store.find_by_id(reel_id)
    if not reel:
        raise HTTPException(status_code=404, detail="Reel not found")
    return _serialize_detail(reel)


@router.delete("/reels/{reel_id}", response_model=DeleteReelResponse)
async def delete_reel(reel_id: str, store: ReelStore = Depends(get_reel_store)):
    """Permanently delete a saved reel."""
    reel = await store.find_by_id(reel_id)
    if not reel:
        raise HTTPException(status_code=404, detail="Reel not found")
    await store.delete(reel_id)
    return DeleteReelResponse(success=True)

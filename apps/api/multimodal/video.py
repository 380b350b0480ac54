import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from config import Settings
from multimodal.errors import ReelErrorKind, ReelProcessingError
from multimodal.process import run_process
from multimodal.scratch import discard_path, new_scratch_name, scratch_root

logger = logging.getLogger(__name__)

# yt-dlp leaves these behind for interrupted downloads
PARTIAL_SUFFIXES = (".part", ".ytdl")


@dataclass(frozen=True)
class MediaDownloadConfig:
    """Everything media acquisition needs, passed in rather than read from settings."""

    scratch_dir: str
    binary: str = "yt-dlp"
    timeout_seconds: float = 180.0
    cookies_path: Optional[str] = None
    cookies_browser: Optional[str] = None
    clear_cookies_after_use: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "MediaDownloadConfig":
        return cls(
            scratch_dir=settings.SCRATCH_DIR,
            binary=settings.YT_DLP_BINARY,
            timeout_seconds=settings.DOWNLOAD_TIMEOUT_SECONDS,
            cookies_path=(settings.INSTAGRAM_COOKIES_PATH or "").strip() or None,
            cookies_browser=(settings.INSTAGRAM_COOKIES_BROWSER or "").strip() or None,
            clear_cookies_after_use=settings.INSTAGRAM_COOKIES_CLEAR,
        )


def build_download_command(url: str, output_template: str, config: MediaDownloadConfig) -> List[str]:
    """yt-dlp invocation: single item, best audio else best media, mtime left at download time."""
    cmd = [
        config.binary,
        "--no-playlist",
        "--no-mtime",
        "-f",
        "bestaudio/best",
        "-o",
        output_template,
    ]
    if config.cookies_path:
        cmd.extend(["--cookies", config.cookies_path])
    elif config.cookies_browser:
        cmd.extend(["--cookies-from-browser", config.cookies_browser])
    cmd.append(url)
    return cmd


def _matching_files(directory: Path, prefix: str) -> List[Path]:
    return [path for path in directory.iterdir() if path.is_file() and path.name.startswith(prefix)]


def find_latest_download(directory: Path, prefix: str) -> Optional[Path]:
    """Newest finished file named <prefix>*; yt-dlp picks the extension."""
    candidates = [
        path for path in _matching_files(directory, prefix)
        if not path.name.endswith(PARTIAL_SUFFIXES)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda path: path.stat().st_mtime)


async def _discard_partial_downloads(directory: Path, prefix: str) -> None:
    for path in _matching_files(directory, prefix):
        await discard_path(path)


async def download_reel_media(url: str, config: MediaDownloadConfig) -> str:
    """
    Download a reel with yt-dlp into the scratch directory.
    Returns the absolute path of the downloaded file; the caller owns it.

    Raises ReelProcessingError with kind DEPENDENCY_MISSING when yt-dlp is not
    installed and DOWNLOAD_FAILED when it ran but produced nothing usable.
    """
    directory = scratch_root(config.scratch_dir).resolve()
    base_name = new_scratch_name()
    prefix = f"{base_name}."
    output_template = os.path.join(str(directory), f"{base_name}.%(ext)s")
    cmd = build_download_command(url, output_template, config)

    try:
        returncode, _, stderr = await run_process(cmd, timeout=config.timeout_seconds)
    except FileNotFoundError as exc:
        raise ReelProcessingError(
            ReelErrorKind.DEPENDENCY_MISSING,
            f"{config.binary} is not installed or not on PATH",
            detail=str(exc),
        ) from exc
    except asyncio.TimeoutError as exc:
        await _discard_partial_downloads(directory, prefix)
        raise ReelProcessingError(
            ReelErrorKind.DOWNLOAD_FAILED,
            f"{config.binary} timed out after {config.timeout_seconds:.0f}s",
        ) from exc
    except OSError as exc:
        raise ReelProcessingError(
            ReelErrorKind.DOWNLOAD_FAILED,
            f"Failed to start {config.binary}",
            detail=str(exc),
        ) from exc

    if returncode != 0:
        await _discard_partial_downloads(directory, prefix)
        raise ReelProcessingError(
            ReelErrorKind.DOWNLOAD_FAILED,
            f"{config.binary} exited with code {returncode}",
            detail=stderr.strip()[-2000:],
        )

    downloaded = find_latest_download(directory, prefix)
    if downloaded is None:
        await _discard_partial_downloads(directory, prefix)
        raise ReelProcessingError(ReelErrorKind.DOWNLOAD_FAILED, "Downloaded media file not found")

    if config.cookies_path and config.clear_cookies_after_use:
        if await discard_path(config.cookies_path):
            logger.info("Cleared cookie file %s after successful download", config.cookies_path)

    logger.info("Downloaded %s to %s", url, downloaded.name)
    return str(downloaded)

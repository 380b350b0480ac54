"""Scratch directory ownership for downloaded and extracted media."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Union

from config import settings

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def scratch_root(directory: Optional[PathLike] = None) -> Path:
    root = Path(directory or settings.SCRATCH_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root


def new_scratch_name() -> str:
    """Collision-resistant base name shared by concurrent requests."""
    return uuid.uuid4().hex


def new_scratch_path(suffix: str, directory: Optional[PathLike] = None) -> Path:
    return scratch_root(directory) / f"{new_scratch_name()}{suffix}"


def _unlink(path: Path) -> None:
    path.unlink(missing_ok=True)


async def discard_path(path: Optional[PathLike]) -> bool:
    """
    Best-effort removal of a file.

    Never raises: failures are logged and reported as False so callers can
    use it on cleanup paths without masking the original outcome.
    """
    if not path:
        return True
    try:
        await asyncio.to_thread(_unlink, Path(path))
        return True
    except Exception as exc:
        logger.warning("Could not remove %s: %s", path, exc)
        return False


class ScratchFiles:
    """
    Async context manager owning temporary media paths.

    Every tracked path is removed when the block exits, whatever the outcome.

        async with ScratchFiles() as scratch:
            media = scratch.track(await download_reel_media(url, config))
    """

    def __init__(self) -> None:
        self._paths: List[Path] = []

    def track(self, path: Optional[PathLike]) -> Optional[str]:
        """Take ownership of path and hand it back as a string. Empty paths are ignored."""
        if not path:
            return None
        self._paths.append(Path(path))
        return str(path)

    @property
    def paths(self) -> List[Path]:
        return list(self._paths)

    async def release(self) -> None:
        while self._paths:
            await discard_path(self._paths.pop())

    async def __aenter__(self) -> "ScratchFiles":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()


def sweep_stale_scratch_files(
    directory: Optional[PathLike] = None,
    retention_hours: Optional[int] = None,
) -> int:
    """Remove scratch files left behind by crashed requests. Returns the count removed."""
    root = Path(directory or settings.SCRATCH_DIR)
    if not root.exists():
        return 0

    hours = max(int(retention_hours if retention_hours is not None else settings.SCRATCH_RETENTION_HOURS), 1)
    cutoff = datetime.now(timezone.utc) - timedelta(hours=hours)
    removed = 0
    for path in root.iterdir():
        if not path.is_file():
            continue
        try:
            mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            if mtime < cutoff:
                path.unlink(missing_ok=True)
                removed += 1
        except Exception as exc:
            logger.warning("Could not cleanup stale scratch file %s: %s", path, exc)
    return removed

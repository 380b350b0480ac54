"""URL-keyed persistence for completed reel analyses."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.reel import Reel, UNCATEGORIZED_COLLECTION
from multimodal.errors import ReelErrorKind, ReelProcessingError

logger = logging.getLogger(__name__)


class ReelStore:
    """Reads and writes Reel rows through one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_url(self, reel_url: str) -> Optional[Reel]:
        result = await self.db.execute(select(Reel).where(Reel.reel_url == reel_url))
        return result.scalar_one_or_none()

    async def find_by_id(self, reel_id: str) -> Optional[Reel]:
        result = await self.db.execute(select(Reel).where(Reel.id == reel_id))
        return result.scalar_one_or_none()

    async def list(self) -> List[Reel]:
        result = await self.db.execute(select(Reel).order_by(Reel.created_at.desc()))
        return list(result.scalars().all())

    async def insert(
        self,
        *,
        reel_url: Optional[str],
        transcript: str,
        summary: str,
        topics: Sequence[str],
        title: Optional[str] = None,
        collection: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Reel:
        """
        Persist a finished analysis in a single commit.

        Raises ReelProcessingError(DUPLICATE_REEL) when reel_url is already
        stored; callers should check find_by_url first.
        """
        reel = Reel(
            id=str(uuid.uuid4()),
            reel_url=reel_url,
            title=title,
            collection=(collection or "").strip() or UNCATEGORIZED_COLLECTION,
            transcript=transcript,
            summary=summary,
            topics=list(topics),
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.db.add(reel)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.warning("Duplicate reel insert for %s", reel_url)
            raise ReelProcessingError(
                ReelErrorKind.DUPLICATE_REEL,
                "A reel with this URL has already been saved",
                detail=str(exc.orig) if exc.orig else None,
            ) from exc
        return reel

    async def delete(self, reel_id: str) -> bool:
        """Hard delete. Returns False when nothing matched."""
        result = await self.db.execute(delete(Reel).where(Reel.id == reel_id))
        await self.db.commit()
        return bool(result.rowcount)

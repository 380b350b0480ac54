"""Reel analysis model."""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text, JSON
import uuid

from database import Base

UNCATEGORIZED_COLLECTION = "Uncategorized"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Reel(Base):
    """Completed analysis of a short-form video, unique per source URL."""

    __tablename__ = "reels"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    reel_url = Column(String, unique=True, nullable=True)
    title = Column(String, nullable=True)
    collection = Column(String, nullable=False, default=UNCATEGORIZED_COLLECTION)
    transcript = Column(Text, nullable=False, default="")
    summary = Column(Text, nullable=False, default="")
    topics = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

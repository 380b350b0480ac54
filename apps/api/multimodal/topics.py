"""Canonical topic vocabulary and normalization."""

import re
from typing import Iterable, List

MAX_TOPICS = 3

CANONICAL_TOPICS = [
    "AI tools",
    "Productivity",
    "Pricing",
    "Marketing",
    "Content creation",
    "Entrepreneurship",
    "Startups",
    "Career growth",
    "Personal finance",
    "Investing",
    "Sales",
    "Leadership",
    "Design",
    "Technology",
    "Health & fitness",
    "Mindset",
    "Education",
    "Cooking",
    "Travel",
]

TOPIC_ALIASES = {
    "chatgpt": "AI tools",
    "gpt tools": "AI tools",
    "artificial intelligence": "AI tools",
    "ai": "AI tools",
    "note taking": "Productivity",
    "productivity tools": "Productivity",
    "time management": "Productivity",
    "pricing strategy": "Pricing",
    "business pricing": "Pricing",
    "content marketing": "Marketing",
    "social media": "Marketing",
    "creator economy": "Content creation",
    "video editing": "Content creation",
    "side hustles": "Entrepreneurship",
    "startup growth": "Startups",
    "career advice": "Career growth",
}

_CANONICAL_BY_LOWER = {topic.lower(): topic for topic in CANONICAL_TOPICS}

_LEADING_MARKERS = re.compile(r"^[\s\-–—•*#>]+")
_TRAILING_PUNCTUATION = re.compile(r"[\s.,;:!?]+$")


def normalize_topic(topic: str) -> str:
    """Map a free-text topic onto the canonical vocabulary.

    Unknown topics are returned trimmed with their original casing.
    """
    trimmed = (topic or "").strip()
    lowered = trimmed.lower()
    if not lowered:
        return ""
    alias = TOPIC_ALIASES.get(lowered)
    if alias:
        return alias
    canonical = _CANONICAL_BY_LOWER.get(lowered)
    if canonical:
        return canonical
    return trimmed


def clean_topic_label(raw: str) -> str:
    label = _LEADING_MARKERS.sub("", str(raw or ""))
    return _TRAILING_PUNCTUATION.sub("", label).strip()


def normalize_topics(raw_topics: Iterable[str], limit: int = MAX_TOPICS) -> List[str]:
    """Clean, normalize, dedupe (case-insensitive) and cap model topics."""
    topics: List[str] = []
    seen = set()
    for raw in raw_topics or []:
        topic = normalize_topic(clean_topic_label(raw))
        key = topic.lower()
        if not topic or key in seen:
            continue
        seen.add(key)
        topics.append(topic)
        if len(topics) >= limit:
            break
    return topics

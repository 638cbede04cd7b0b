"""Shared data models for newsreel."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


@dataclass(frozen=True)
class Source:
    """A configured publisher feed."""

    id: str
    name: str
    url: str


@dataclass
class FeedItem:
    """Normalized article record produced by every feed parser."""

    id: str
    source_id: str
    source_name: str
    title: str
    summary: str
    link: str
    published_at: str
    image_url: Optional[str] = None

    @property
    def published(self) -> Optional[datetime]:
        """Parsed publish date, or None when the feed gave nothing usable."""
        from .parsers import parse_published

        return parse_published(self.published_at)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sourceId": self.source_id,
            "source": self.source_name,
            "title": self.title,
            "summary": self.summary,
            "imageUrl": self.image_url,
            "link": self.link,
            "publishedAt": self.published_at,
        }


@dataclass
class SourceWarning:
    """A source that could not be loaded during a refresh."""

    source: str
    message: str


@dataclass
class LoadResult:
    """Merged outcome of one refresh over all sources."""

    items: List[FeedItem]
    warnings: List[SourceWarning] = field(default_factory=list)
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def all_failed(self) -> bool:
        return not self.items

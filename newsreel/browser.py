"""Browsing state behind the two-pane view: filters, selection and refreshes."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Set

from .models import FeedItem, LoadResult, Source, SourceWarning

logger = logging.getLogger(__name__)

ALL_FAILED_MESSAGE = "Could not load any source."


class FeedBrowser:
    """In-memory view state over the latest LoadResult.

    Every refresh replaces the item collection wholesale. The selected item
    survives a refresh only while its id is still present; otherwise the first
    item of the new batch is selected.
    """

    def __init__(self, sources: Sequence[Source]):
        self.sources = tuple(sources)
        self.items: List[FeedItem] = []
        self.warnings: List[SourceWarning] = []
        self.error: Optional[str] = None
        self.loading = False
        self.last_updated: Optional[datetime] = None
        self.query = ""
        self.enabled_sources: Set[str] = {source.id for source in self.sources}
        self._selected_id: Optional[str] = None
        self._generation = 0

    @property
    def selected(self) -> Optional[FeedItem]:
        if self._selected_id is None:
            return None
        return self._find(self._selected_id)

    @property
    def visible_items(self) -> List[FeedItem]:
        query = self.query.strip().lower()
        return [
            item
            for item in self.items
            if item.source_id in self.enabled_sources
            and (not query or query in item.title.lower())
        ]

    def _find(self, item_id: str) -> Optional[FeedItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def set_query(self, query: str) -> None:
        self.query = query or ""

    def toggle_source(self, source_id: str) -> bool:
        """Flip a source filter; returns whether the source is now enabled."""
        if source_id in self.enabled_sources:
            self.enabled_sources.discard(source_id)
            return False
        self.enabled_sources.add(source_id)
        return True

    def select(self, item_id: str) -> bool:
        if self._find(item_id) is None:
            return False
        self._selected_id = item_id
        return True

    def begin_refresh(self) -> int:
        """Start a refresh and return the token its result must be applied with."""
        self._generation += 1
        self.loading = True
        self.error = None
        self.warnings = []
        return self._generation

    def apply(self, token: int, result: LoadResult) -> bool:
        """Install ``result`` unless a newer refresh has started since ``token``."""
        if token != self._generation:
            logger.debug(
                "Discarding stale refresh %d (current %d)", token, self._generation
            )
            return False

        self.items = list(result.items)
        self.warnings = list(result.warnings)
        self.error = ALL_FAILED_MESSAGE if not self.items else None
        self.last_updated = result.loaded_at
        self.loading = False

        if self._selected_id is None or self._find(self._selected_id) is None:
            self._selected_id = self.items[0].id if self.items else None
        return True

    def fail(self, token: int, message: str) -> bool:
        """Record a refresh that could not produce any result at all."""
        if token != self._generation:
            return False
        self.error = message
        self.loading = False
        return True

    def refresh(self, loader: Callable[[], LoadResult]) -> bool:
        token = self.begin_refresh()
        try:
            result = loader()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Refresh failed")
            self.fail(token, str(exc) or "Loading error")
            return False
        return self.apply(token, result)

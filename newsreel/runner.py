"""High-level orchestration for the newsreel application."""

from __future__ import annotations

import concurrent.futures
import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .browser import FeedBrowser
from .config import SOURCES, get_source
from .feeds import DEFAULT_TIMEOUT, fetch_source
from .models import FeedItem, LoadResult, Source, SourceWarning
from .renderers import build_items_json, build_listing_text, build_page_html
from .text import DEFAULT_SUMMARY_LENGTH

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Source is temporarily unavailable"

Fetcher = Callable[[Source], List[FeedItem]]


def _sort_key(item: FeedItem) -> float:
    published = item.published
    if published is None:
        return float("-inf")
    return published.timestamp()


def sort_items(items: Iterable[FeedItem]) -> List[FeedItem]:
    """Order items newest first; undated items go last in their given order."""
    return sorted(items, key=_sort_key, reverse=True)


def load_all(
    sources: Sequence[Source] = SOURCES,
    fetcher: Fetcher = fetch_source,
    concurrency: Optional[int] = None,
) -> LoadResult:
    """Fetch every source concurrently and merge the successful ones."""
    if not sources:
        return LoadResult(items=[])

    outcomes: Dict[int, object] = {}
    workers = concurrency or len(sources)

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_index = {
            executor.submit(fetcher, source): index
            for index, source in enumerate(sources)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            index = future_to_index[future]
            try:
                outcomes[index] = future.result()
            except Exception as exc:  # noqa: BLE001 - one source never fails the batch
                outcomes[index] = exc

    merged: List[FeedItem] = []
    warnings: List[SourceWarning] = []
    for index, source in enumerate(sources):
        outcome = outcomes[index]
        if isinstance(outcome, Exception):
            message = str(outcome) or UNAVAILABLE_MESSAGE
            logger.warning("Source '%s' failed: %s", source.name, message)
            warnings.append(SourceWarning(source=source.name, message=message))
        else:
            merged.extend(outcome)

    items = sort_items(merged)
    if not items:
        logger.error("No items were retrieved from %d sources", len(sources))
    else:
        logger.info(
            "Merged %d items from %d of %d sources",
            len(items),
            len(sources) - len(warnings),
            len(sources),
        )
    return LoadResult(items=items, warnings=warnings)


@dataclass
class RunConfig:
    """Runtime options for executing the application."""

    output_format: str = "text"
    output_path: Optional[str] = None
    source_ids: List[str] = field(default_factory=list)
    query: str = ""
    selected_id: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    concurrency: Optional[int] = None
    summary_length: int = DEFAULT_SUMMARY_LENGTH


@dataclass
class RunResult:
    """Returned data after executing the app."""

    output_text: str
    browser: FeedBrowser

    @property
    def failed(self) -> bool:
        return self.browser.error is not None


def _render(browser: FeedBrowser, output_format: str) -> str:
    if output_format == "html":
        return build_page_html(browser)
    if output_format == "json":
        return build_items_json(browser)
    if output_format == "text":
        return build_listing_text(browser)
    raise ValueError(f"Unsupported output format: {output_format}")


def _write_output(path: str, text: str) -> None:
    location = Path(path)
    if location.parent and not location.parent.exists():
        location.parent.mkdir(parents=True, exist_ok=True)
    location.write_text(text, encoding="utf-8")
    logger.info("Wrote output to %s", location)


def execute(config: RunConfig, sources: Sequence[Source] = SOURCES) -> RunResult:
    """Load all sources once and render the browsing view."""
    browser = FeedBrowser(sources)
    if config.source_ids:
        browser.enabled_sources = {get_source(sid).id for sid in config.source_ids}
    browser.set_query(config.query)

    fetcher = functools.partial(
        fetch_source, timeout=config.timeout, summary_length=config.summary_length
    )
    browser.refresh(
        lambda: load_all(sources, fetcher=fetcher, concurrency=config.concurrency)
    )

    if config.selected_id:
        if not browser.select(config.selected_id):
            logger.warning("Item %s is not in the loaded feed", config.selected_id)

    output_text = _render(browser, config.output_format)
    if config.output_path:
        _write_output(config.output_path, output_text)

    return RunResult(output_text=output_text, browser=browser)

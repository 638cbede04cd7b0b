"""Proxy strategies and per-source fetching with fallback."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence
from urllib.parse import quote

import requests

from .models import FeedItem, Source
from .parsers import FeedParseError, parse_json_item, parse_xml_feed
from .text import DEFAULT_SUMMARY_LENGTH

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "newsreel/0.1"


class FetchError(RuntimeError):
    """Raised when a source cannot be loaded through any proxy strategy."""


class ProxyStrategy:
    """One third-party path for retrieving a feed.

    Subclasses build the proxy URL and turn the HTTP response into FeedItems,
    raising FetchError whenever the next strategy should be tried instead.
    """

    id = ""
    name = ""
    endpoint = ""

    def build_url(self, feed_url: str) -> str:
        return self.endpoint + quote(feed_url, safe="!~*'()")

    def fetch(
        self,
        source: Source,
        timeout: float = DEFAULT_TIMEOUT,
        summary_length: int = DEFAULT_SUMMARY_LENGTH,
    ) -> List[FeedItem]:
        url = self.build_url(source.url)
        logger.debug("Requesting %s via %s: %s", source.name, self.name, url)
        try:
            response = requests.get(
                url, timeout=timeout, headers={"User-Agent": USER_AGENT}
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = getattr(exc.response, "status_code", None)
            raise FetchError(
                f"Failed to load {source.name} (HTTP {status})"
            ) from exc
        except requests.RequestException as exc:
            raise FetchError(f"Failed to load {source.name}: {exc}") from exc
        return self.parse_response(response, source, summary_length)

    def parse_response(
        self, response: requests.Response, source: Source, summary_length: int
    ) -> List[FeedItem]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class JsonProxyStrategy(ProxyStrategy):
    """rss2json: returns the feed wrapped in a JSON envelope."""

    id = "rss2json"
    name = "rss2json"
    endpoint = "https://api.rss2json.com/v1/api.json?rss_url="

    def parse_response(
        self, response: requests.Response, source: Source, summary_length: int
    ) -> List[FeedItem]:
        try:
            envelope = response.json()
        except ValueError as exc:
            raise FetchError(
                f"Failed to load {source.name}: invalid JSON response"
            ) from exc
        if not isinstance(envelope, dict):
            raise FetchError(f"Failed to load {source.name}: unexpected JSON payload")

        status = envelope.get("status")
        if status and status != "ok":
            message = envelope.get("message") or f"Failed to load {source.name}"
            raise FetchError(str(message))

        raw_items = envelope.get("items") or []
        if not isinstance(raw_items, list):
            raw_items = []

        items = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                logger.debug("Skipping non-object item from %s", source.name)
                continue
            items.append(parse_json_item(raw, source, summary_length))
        # The envelope is taken at face value even when it carries no items.
        return items


class XmlProxyStrategy(ProxyStrategy):
    """AllOrigins: passes the origin feed bytes through unchanged."""

    id = "allorigins"
    name = "AllOrigins"
    endpoint = "https://api.allorigins.win/raw?url="

    def parse_response(
        self, response: requests.Response, source: Source, summary_length: int
    ) -> List[FeedItem]:
        try:
            items = parse_xml_feed(response.content, source, summary_length)
        except FeedParseError as exc:
            raise FetchError(str(exc)) from exc
        if not items:
            raise FetchError(f"Empty response from {source.name}")
        return items


DEFAULT_STRATEGIES: Sequence[ProxyStrategy] = (
    JsonProxyStrategy(),
    XmlProxyStrategy(),
)


def fetch_source(
    source: Source,
    strategies: Sequence[ProxyStrategy] = DEFAULT_STRATEGIES,
    timeout: float = DEFAULT_TIMEOUT,
    summary_length: int = DEFAULT_SUMMARY_LENGTH,
) -> List[FeedItem]:
    """Fetch one source, trying each proxy strategy in order."""
    logger.info("Fetching source '%s' (%s)", source.name, source.url)
    last_error: Optional[FetchError] = None

    for strategy in strategies:
        try:
            items = strategy.fetch(
                source, timeout=timeout, summary_length=summary_length
            )
        except FetchError as exc:
            logger.warning(
                "Proxy %s failed for source '%s': %s", strategy.name, source.name, exc
            )
            last_error = exc
            continue

        logger.info(
            "Collected %d items from source '%s' via %s",
            len(items),
            source.name,
            strategy.name,
        )
        return items

    if last_error is not None and str(last_error):
        raise last_error
    raise FetchError(f"Source {source.name} is unreachable")

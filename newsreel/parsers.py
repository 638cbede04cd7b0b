"""Normalization of JSON, RSS and Atom feed payloads into FeedItems."""

from __future__ import annotations

import calendar
import logging
import time
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Union

from feedparser.datetimes import _parse_date
from lxml import etree

from .models import FeedItem, Source
from .text import (
    DEFAULT_SUMMARY_LENGTH,
    element_text,
    extract_image_from_html,
    find_all,
    find_first,
    first_non_empty_attr,
    first_non_empty_text,
    strip_html,
    truncate,
)

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"
NO_LINK = "#"
NO_DATE = "No date"

RSS_SUMMARY_TAGS = ("content:encoded", "description", "content", "summary")
RSS_DATE_TAGS = ("pubDate", "published", "updated", "dc:date")
RSS_IMAGE_TAGS = ("media:content", "media:thumbnail", "enclosure")
ATOM_SUMMARY_TAGS = ("content", "summary")
ATOM_DATE_TAGS = ("published", "updated")
ATOM_IMAGE_TAGS = ("media:content", "media:thumbnail")
JSON_SUMMARY_FIELDS = ("description", "content", "contentSnippet")


class FeedParseError(ValueError):
    """Raised when a feed payload is not well-formed XML."""


def make_item_id(source: Source, *tokens: str) -> str:
    """Build a stable item id from the first non-empty token."""
    token = next((value for value in tokens if value), "")
    return f"{source.id}-{token}"


def _summarise(raw_summary: str, limit: int) -> str:
    return truncate(strip_html(raw_summary).strip(), limit)


def _json_text(item: Mapping[str, Any], key: str) -> str:
    value = item.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return ""
    return value.strip()


def _json_image(item: Mapping[str, Any]) -> Optional[str]:
    thumbnail = _json_text(item, "thumbnail")
    if thumbnail:
        return thumbnail
    enclosure = item.get("enclosure")
    if isinstance(enclosure, Mapping):
        link = _json_text(enclosure, "link")
        if link:
            return link
    return None


def parse_json_item(
    item: Mapping[str, Any],
    source: Source,
    summary_length: int = DEFAULT_SUMMARY_LENGTH,
) -> FeedItem:
    """Map one item of a JSON proxy envelope onto a FeedItem."""
    title = _json_text(item, "title") or UNTITLED
    candidates = (_json_text(item, name) for name in JSON_SUMMARY_FIELDS)
    raw_summary = next((value for value in candidates if value), "")
    link = _json_text(item, "link")

    return FeedItem(
        id=make_item_id(source, _json_text(item, "guid"), link, title),
        source_id=source.id,
        source_name=source.name,
        title=title,
        summary=_summarise(raw_summary, summary_length),
        image_url=_json_image(item),
        link=link or NO_LINK,
        published_at=_json_text(item, "pubDate"),
    )


def parse_rss_items(
    root: etree._Element,
    source: Source,
    summary_length: int = DEFAULT_SUMMARY_LENGTH,
) -> List[FeedItem]:
    """Normalize every RSS ``<item>`` below ``root``."""
    items: List[FeedItem] = []
    for node in find_all(root, "item", include_self=True):
        title = first_non_empty_text(node, ["title"]) or UNTITLED
        raw_summary = first_non_empty_text(node, RSS_SUMMARY_TAGS)
        link = first_non_empty_text(node, ["link"])
        image_url = first_non_empty_attr(
            node, RSS_IMAGE_TAGS, "url"
        ) or extract_image_from_html(raw_summary)

        items.append(
            FeedItem(
                id=make_item_id(
                    source, first_non_empty_text(node, ["guid"]), link, title
                ),
                source_id=source.id,
                source_name=source.name,
                title=title,
                summary=_summarise(raw_summary, summary_length),
                image_url=image_url,
                link=link or NO_LINK,
                published_at=first_non_empty_text(node, RSS_DATE_TAGS),
            )
        )
    return items


def _atom_link(entry: etree._Element) -> str:
    link_node = None
    for candidate in find_all(entry, "link"):
        if candidate.get("rel") == "alternate":
            link_node = candidate
            break
    if link_node is None:
        link_node = find_first(entry, "link")
    if link_node is None:
        return ""
    return (link_node.get("href") or "").strip() or element_text(link_node)


def parse_atom_entries(
    root: etree._Element,
    source: Source,
    summary_length: int = DEFAULT_SUMMARY_LENGTH,
) -> List[FeedItem]:
    """Normalize every Atom ``<entry>`` below ``root``."""
    items: List[FeedItem] = []
    for node in find_all(root, "entry", include_self=True):
        title = first_non_empty_text(node, ["title"]) or UNTITLED
        link = _atom_link(node)
        raw_summary = first_non_empty_text(node, ATOM_SUMMARY_TAGS)
        image_url = first_non_empty_attr(
            node, ATOM_IMAGE_TAGS, "url"
        ) or extract_image_from_html(raw_summary)

        items.append(
            FeedItem(
                id=make_item_id(
                    source, first_non_empty_text(node, ["id"]), link, title
                ),
                source_id=source.id,
                source_name=source.name,
                title=title,
                summary=_summarise(raw_summary, summary_length),
                image_url=image_url,
                link=link or NO_LINK,
                published_at=first_non_empty_text(node, ATOM_DATE_TAGS),
            )
        )
    return items


def _parse_document(payload: Union[bytes, str]) -> etree._Element:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    if not payload.strip():
        raise FeedParseError("Empty XML document")
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        return etree.fromstring(payload, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise FeedParseError(str(exc) or "Malformed XML") from exc


def parse_xml_feed(
    payload: Union[bytes, str],
    source: Source,
    summary_length: int = DEFAULT_SUMMARY_LENGTH,
) -> List[FeedItem]:
    """Detect RSS or Atom in ``payload`` and normalize its items.

    Returns an empty list for a well-formed document with neither ``<item>``
    nor ``<entry>`` elements; raises FeedParseError for malformed XML.
    """
    try:
        root = _parse_document(payload)
    except FeedParseError as exc:
        raise FeedParseError(f"Could not parse feed {source.name}: {exc}") from exc

    if find_first(root, "item", include_self=True) is not None:
        items = parse_rss_items(root, source, summary_length)
        logger.debug("Parsed %d RSS items for '%s'", len(items), source.name)
        return items

    if find_first(root, "entry", include_self=True) is not None:
        items = parse_atom_entries(root, source, summary_length)
        logger.debug("Parsed %d Atom entries for '%s'", len(items), source.name)
        return items

    logger.debug("Feed document for '%s' has no items or entries", source.name)
    return []


def to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert feedparser UTC timestamps to timezone-aware datetimes."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return None


def parse_published(value: Optional[str]) -> Optional[datetime]:
    """Parse a raw feed date string; None when blank or unrecognised."""
    if not value or not value.strip():
        return None
    try:
        parsed = _parse_date(value.strip())
    except (TypeError, ValueError, OverflowError):
        logger.debug("Date handlers rejected %r", value)
        return None
    return to_datetime(parsed)


def format_published(value: Optional[str]) -> str:
    """Render a raw feed date for display."""
    published = parse_published(value)
    if published is None:
        return NO_DATE
    return published.strftime("%d %b, %H:%M")

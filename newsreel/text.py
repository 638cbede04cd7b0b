"""Text and markup extraction helpers shared by the feed parsers."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from bs4 import BeautifulSoup
from lxml import etree

ELLIPSIS = "…"
DEFAULT_SUMMARY_LENGTH = 160


def strip_html(raw_value: Optional[str]) -> str:
    """Return text content extracted from HTML fragments."""
    if not raw_value:
        return ""
    soup = BeautifulSoup(raw_value, "html.parser")
    return " ".join(soup.get_text().split())


def truncate(value: str, limit: int = DEFAULT_SUMMARY_LENGTH) -> str:
    """Limit text to ``limit`` characters, marking the cut with an ellipsis."""
    if len(value) <= limit:
        return value
    return value[: limit - 1].rstrip() + ELLIPSIS


def extract_image_from_html(raw_value: Optional[str]) -> Optional[str]:
    """Return the ``src`` of the first image in an HTML fragment."""
    if not raw_value:
        return None
    soup = BeautifulSoup(raw_value, "html.parser")
    image = soup.find("img")
    if image is None:
        return None
    src = image.get("src") or ""
    if isinstance(src, list):
        src = " ".join(src)
    return src.strip() or None


def _matches(element: etree._Element, candidate: str) -> bool:
    # "prefix:local" must match the qualified name, a bare name matches the
    # local name in any namespace.
    local = etree.QName(element).localname
    if ":" in candidate:
        return bool(element.prefix) and f"{element.prefix}:{local}" == candidate
    return local == candidate


def _descendants(
    node: etree._Element, include_self: bool = False
) -> Iterator[etree._Element]:
    elements = node.iter() if include_self else node.iterdescendants()
    for element in elements:
        if isinstance(element.tag, str):
            yield element


def find_first(
    node: etree._Element, candidate: str, include_self: bool = False
) -> Optional[etree._Element]:
    """Return the first descendant of ``node`` in document order named ``candidate``."""
    for element in _descendants(node, include_self):
        if _matches(element, candidate):
            return element
    return None


def find_all(
    node: etree._Element, candidate: str, include_self: bool = False
) -> List[etree._Element]:
    return [
        element
        for element in _descendants(node, include_self)
        if _matches(element, candidate)
    ]


def element_text(element: etree._Element) -> str:
    return "".join(element.itertext()).strip()


def first_non_empty_text(node: etree._Element, candidates: Iterable[str]) -> str:
    """Return the text of the first candidate element carrying any."""
    for candidate in candidates:
        element = find_first(node, candidate)
        if element is None:
            continue
        value = element_text(element)
        if value:
            return value
    return ""


def first_non_empty_attr(
    node: etree._Element, candidates: Iterable[str], attr: str
) -> str:
    """Return ``attr`` of the first candidate element where it is non-empty."""
    for candidate in candidates:
        element = find_first(node, candidate)
        if element is None:
            continue
        value = (element.get(attr) or "").strip()
        if value:
            return value
    return ""

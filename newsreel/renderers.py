"""Rendering helpers for the browsing view."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from .templating import get_environment

if TYPE_CHECKING:
    from .browser import FeedBrowser


def _context(browser: "FeedBrowser") -> dict:
    visible = browser.visible_items
    visible_ids = {item.id for item in visible}
    return {
        "sources": browser.sources,
        "enabled_sources": browser.enabled_sources,
        "items": browser.items,
        "visible": visible,
        "visible_ids": visible_ids,
        "warnings": browser.warnings,
        "error": browser.error,
        "loading": browser.loading,
        "query": browser.query,
        "selected": browser.selected,
        "last_updated": (
            browser.last_updated.strftime("%H:%M") if browser.last_updated else None
        ),
    }


def build_page_html(browser: "FeedBrowser") -> str:
    """Render the two-pane HTML page using the Jinja2 template."""
    template = get_environment().get_template("page.html.j2")
    return template.render(**_context(browser))


def build_listing_text(browser: "FeedBrowser") -> str:
    """Render the plain-text listing using the Jinja2 template."""
    template = get_environment().get_template("listing.txt.j2")
    return template.render(**_context(browser))


def build_items_json(browser: "FeedBrowser") -> str:
    """Serialise the visible items and source warnings."""
    selected = browser.selected
    payload = {
        "items": [item.to_dict() for item in browser.visible_items],
        "warnings": [
            {"source": warning.source, "message": warning.message}
            for warning in browser.warnings
        ],
        "error": browser.error,
        "selected": selected.id if selected else None,
        "lastUpdated": (
            browser.last_updated.isoformat() if browser.last_updated else None
        ),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)

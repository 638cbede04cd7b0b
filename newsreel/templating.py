"""Jinja2 environment for newsreel templates."""

from __future__ import annotations

from importlib import resources

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from .parsers import format_published

_ENV: Environment | None = None


def _highlight(value: str | None, query: str | None) -> Markup:
    """Wrap case-insensitive matches of ``query`` in <mark> while escaping HTML."""
    if not value:
        return Markup("")
    needle = (query or "").strip().lower()
    if not needle:
        return escape(value)

    parts = []
    position = 0
    lowered = value.lower()
    while True:
        index = lowered.find(needle, position)
        if index < 0:
            break
        parts.append(escape(value[position:index]))
        parts.append(
            Markup("<mark>%s</mark>") % value[index : index + len(needle)]
        )
        position = index + len(needle)
    parts.append(escape(value[position:]))
    return Markup("").join(parts)


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["published"] = format_published
        _ENV.filters["highlight"] = _highlight
    return _ENV

"""Configuration: the compiled-in sources and the optional XML app config."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple
from xml.etree import ElementTree as ET

from .feeds import DEFAULT_TIMEOUT
from .models import Source
from .text import DEFAULT_SUMMARY_LENGTH

logger = logging.getLogger(__name__)

SOURCES: Tuple[Source, ...] = (
    Source(id="techcrunch", name="TechCrunch", url="https://techcrunch.com/feed/"),
    Source(
        id="verge", name="The Verge", url="https://www.theverge.com/rss/index.xml"
    ),
    Source(
        id="reuters",
        name="Reuters",
        url="https://feeds.reuters.com/reuters/topNews",
    ),
    Source(id="therundown", name="The Rundown", url="https://www.therundown.ai/rss"),
)

OUTPUT_FORMATS = ("text", "json", "html")


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = len(SOURCES)
    summary_length: int = DEFAULT_SUMMARY_LENGTH
    output_format: str = "text"
    output: Optional[str] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_source(source_id: str) -> Source:
    """Look up a configured source by id."""
    for source in SOURCES:
        if source.id == source_id:
            return source
    known = ", ".join(source.id for source in SOURCES)
    raise ValueError(f"Unknown source '{source_id}' (expected one of: {known})")


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _positive(name: str, raw: str, cast):
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ValueError(f"Config <{name}> is not a valid number: {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"Config <{name}> must be positive.")
    return value


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    try:
        tree = ET.parse(config_path)
    except ET.ParseError as exc:
        raise ValueError(f"Config file is not valid XML: {exc}") from exc
    root = tree.getroot()

    config = AppConfig()

    timeout = root.findtext("timeout")
    if timeout:
        config.timeout = _positive("timeout", timeout.strip(), float)

    concurrency = root.findtext("concurrency")
    if concurrency:
        config.concurrency = _positive("concurrency", concurrency.strip(), int)

    summary_length = root.findtext("summary-length")
    if summary_length:
        config.summary_length = _positive(
            "summary-length", summary_length.strip(), int
        )

    output_format = root.findtext("format")
    if output_format:
        output_format = output_format.strip().lower()
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {output_format}")
        config.output_format = output_format

    output = root.findtext("output")
    if output and output.strip():
        config.output = _resolve_path(config_path, output.strip())

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", "INFO").strip()
        log_file = log_node.findtext("file")
        if log_file and log_file.strip():
            config.logging.file = _resolve_path(config_path, log_file.strip())

    return config

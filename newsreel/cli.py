"""Command-line interface for the newsreel application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
from pathlib import Path
from typing import List, Optional

from .config import OUTPUT_FORMATS, SOURCES, AppConfig, parse_app_config
from .runner import RunConfig, execute

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Fetch and browse the latest stories from the built-in news sources."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional path to the application configuration XML file.",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format. Overrides config (default: text).",
    )
    parser.add_argument(
        "--output",
        metavar="PATH",
        default=None,
        help="Write the rendered output to PATH instead of stdout.",
    )
    parser.add_argument(
        "--source",
        dest="sources",
        action="append",
        choices=[source.id for source in SOURCES],
        default=None,
        help="Show only this source (repeatable). All sources are shown by default.",
    )
    parser.add_argument(
        "--query",
        default="",
        help="Only show stories whose title contains this text.",
    )
    parser.add_argument(
        "--select",
        metavar="ITEM_ID",
        default=None,
        help="Item id to open in the preview pane.",
    )

    # Overrides for logging/debugging
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        # CLI overrides config
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        config = RunConfig(
            output_format=args.format or app_config.output_format,
            output_path=args.output or app_config.output,
            source_ids=args.sources or [],
            query=args.query,
            selected_id=args.select,
            timeout=app_config.timeout,
            concurrency=app_config.concurrency,
            summary_length=app_config.summary_length,
        )
        logger.info(
            "Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(config))
        )

        result = execute(config)
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    if not config.output_path:
        print(result.output_text.rstrip("\n"))

    if result.failed:
        logger.error("%s", result.browser.error)
        return 1
    return 0

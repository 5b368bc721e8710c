"""
Logging setup for codesense.

Every module logs through a child of the ``codesense`` logger obtained
with ``get_logger``. Hosts call ``setup_logging`` once; the CLI renders
records through rich so they interleave cleanly with its console output.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

_PACKAGE = "codesense"
_root_logger = logging.getLogger(_PACKAGE)

# SDK loggers that log every request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "google_genai")


def setup_logging(
    level: str | int = "INFO",
    format: str | None = None,
    stream: TextIO | None = None,
    file: str | None = None,
    rich: bool = True,
) -> None:
    """
    Configure the ``codesense`` logger.

    Args:
        level: Log level name or number
        format: Format string for plain handlers
        stream: Output stream (defaults to stderr)
        file: Also append records to this file
        rich: Render console records with ``rich.logging.RichHandler``

    Example:
        setup_logging("DEBUG")
        setup_logging("INFO", file="codesense.log", rich=False)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    _root_logger.setLevel(level)
    _root_logger.handlers.clear()

    formatter = logging.Formatter(format or "%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    console_handler: logging.Handler
    if rich:
        console_handler = RichHandler(
            console=Console(file=stream or sys.stderr),
            show_path=False,
            rich_tracebacks=True,
        )
    else:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    _root_logger.addHandler(console_handler)

    if file:
        file_handler = logging.FileHandler(file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        _root_logger.addHandler(file_handler)

    # Provider SDKs stay at WARNING unless we are debugging
    sdk_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)


def get_logger(name: str) -> logging.Logger:
    """Child logger for a submodule, e.g. ``get_logger("tools.write_file")``."""
    if name == _PACKAGE or name.startswith(f"{_PACKAGE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_PACKAGE}.{name}")

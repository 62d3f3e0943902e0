"""Logging for larkslim.

Console records go through rich on stderr so stdout stays free for CLI output
such as image keys. Every logger handed out by ``get_logger`` carries a
``RedactingFilter``: request and response bodies are logged at debug level,
and credentials or tokens inside them are masked before any handler sees them.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from .config import LoggingConfig

FILTERED = "[filtered]"

# JSON fields whose values never reach a log handler
SENSITIVE_FIELDS = (
    "app_secret",
    "tenant_access_token",
    "app_access_token",
    "encrypt_key",
    "token",
)

_FIELD_PATTERN = re.compile(r'("(?:%s)"\s*:\s*")[^"]*(")' % "|".join(SENSITIVE_FIELDS))
_BEARER_PATTERN = re.compile(r"(Bearer\s+)[^\s\"',]+")

console = Console(stderr=True)

_loggers: dict[str, logging.Logger] = {}
_current_level: int = logging.INFO


def redact(text: str) -> str:
    """Mask sensitive JSON string fields and bearer tokens in ``text``."""
    text = _FIELD_PATTERN.sub(rf"\g<1>{FILTERED}\g<2>", text)
    return _BEARER_PATTERN.sub(rf"\g<1>{FILTERED}", text)


class RedactingFilter(logging.Filter):
    """Rewrite a record's message with sensitive values masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


_redacting_filter = RedactingFilter()


def _console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    return handler


def _file_handler(config: LoggingConfig, level: int) -> logging.Handler:
    path = Path(config.log_file or "")
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
        delay=True,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(config.format))
    return handler


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Route log records to the rich console and, optionally, a rotating file.

    Replaces any handlers already installed on the root logger, so calling it
    again (for example after ``--debug``) reconfigures rather than duplicates.
    """
    global _current_level

    config = config or LoggingConfig()
    level = getattr(logging, config.level)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(level)
    root.addHandler(_console_handler(level))
    if config.log_file:
        root.addHandler(_file_handler(config, level))

    _current_level = level
    logging.getLogger("larkslim").setLevel(level)
    for known in _loggers.values():
        known.setLevel(level)

    get_logger("setup").debug("Logging configured: level=%s file=%s", config.level, config.log_file)


def get_logger(name: str) -> logging.Logger:
    """Return the ``larkslim.<name>`` logger with redaction attached."""
    if name not in _loggers:
        logger = logging.getLogger(f"larkslim.{name}")
        logger.setLevel(_current_level)
        logger.addFilter(_redacting_filter)
        _loggers[name] = logger
    return _loggers[name]

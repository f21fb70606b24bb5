"""Centralized logging configuration for luasnap.

Library modules only ever call ``logging.getLogger(__name__)``. Handlers are
installed by the application (the CLI does it once at startup):

    from luasnap.core.logging_config import configure_logging

    configure_logging(level="DEBUG")

Records carry the thread name, so lines written by a session's worker
thread (``luasnap-<session name>``) are distinguishable from the event loop.

Environment Variables:
    LUASNAP_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    LUASNAP_LOG_FORMAT: Output format ("text" or "json")
    LUASNAP_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s.%(msecs)03d - %(threadName)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord has; anything else was passed through extra=
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys() | {"message", "taskName"}
)

_configured = False


@dataclass
class LogConfig:
    """Resolved logging settings.

    Attributes:
        level: Log level name.
        format: "text" or "json".
        file_path: Optional file to log to in addition to stderr.
    """

    level: str = "WARNING"
    format: Literal["text", "json"] = "text"
    file_path: str | None = None

    @classmethod
    def from_env(
        cls,
        level: str | None = None,
        format: str | None = None,
        file_path: str | None = None,
    ) -> LogConfig:
        level = (level or os.environ.get("LUASNAP_LOG_LEVEL") or "WARNING").upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {level!r}")

        format = (format or os.environ.get("LUASNAP_LOG_FORMAT") or "text").lower()
        if format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {format!r}")

        return cls(
            level=level,
            format=format,  # type: ignore[arg-type]
            file_path=file_path or os.environ.get("LUASNAP_LOG_FILE"),
        )


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    {
        "timestamp": "2026-10-16T14:30:00.123000",
        "level": "DEBUG",
        "logger": "luasnap.core.session.session",
        "thread": "luasnap-default",
        "message": "evaluation_done: session=default success=True",
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def build_formatter(format: Literal["text", "json"]) -> logging.Formatter:
    if format == "json":
        return JsonFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    force: bool = False,
) -> LogConfig:
    """Install handlers on the ``luasnap`` logger.

    Called once at application startup; later calls are ignored unless
    force=True. Only the ``luasnap`` logger tree is touched, so embedding
    applications keep their own root configuration.

    Args:
        level: Log level. Defaults to LUASNAP_LOG_LEVEL or "WARNING".
        format: Output format. Defaults to LUASNAP_LOG_FORMAT or "text".
        file_path: Optional log file. Defaults to LUASNAP_LOG_FILE.
        force: Reconfigure even if already configured.

    Returns:
        The settings that were applied.
    """
    global _configured
    config = LogConfig.from_env(level=level, format=format, file_path=file_path)
    if _configured and not force:
        return config

    set_level(config.level)
    logger = logging.getLogger("luasnap")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = build_formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.file_path:
        file_handler = logging.FileHandler(config.file_path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    _configured = True
    return config


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)


def set_level(level: str, logger_name: str = "luasnap") -> None:
    """Set the log level of a logger, by default the ``luasnap`` tree.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        logger_name: Logger name, e.g. "luasnap.core.session".

    Raises:
        ValueError: If level is not a known level name.
    """
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    logging.getLogger(logger_name).setLevel(value)

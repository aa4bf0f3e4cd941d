"""Logging configuration for batchorg."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from batchorg.config.models import LoggingSettings

PACKAGE_LOGGER = "batchorg"
_NOISY_LOGGERS = ("dspy", "LiteLLM", "litellm", "httpx", "httpcore", "openai")
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    settings: LoggingSettings,
    *,
    log_path: Path | None = None,
    verbose: bool = False,
) -> logging.Logger:
    """Attach console and rotating file handlers to the package logger.

    Repeated calls replace the handlers installed by earlier calls.

    Args:
        settings: Logging configuration section.
        log_path: Optional log file; rotated according to ``settings``.
        verbose: Force DEBUG level regardless of ``settings.level``.

    Returns:
        logging.Logger: The configured package logger.
    """
    level = logging.DEBUG if verbose else logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in [h for h in logger.handlers if getattr(h, "_batchorg", False)]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    console_handler.setLevel(level)
    console_handler._batchorg = True  # type: ignore[attr-defined]
    logger.addHandler(console_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max(settings.max_size_mb, 1) * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(min(level, logging.INFO))
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler._batchorg = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)
        logger.setLevel(min(level, logging.INFO))

    configure_dspy_logging()
    return logger


def configure_dspy_logging() -> None:
    """Clamp DSPy, LiteLLM and HTTP client loggers to WARNING."""
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["PACKAGE_LOGGER", "configure_dspy_logging", "configure_logging"]

"""Logging initialization helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from logging.handlers import RotatingFileHandler
from pathlib import Path

from clinscribe.config import REQUIRED_CREDENTIALS, Settings

REDACTED = "***"


class SecretRedactingFilter(logging.Filter):
    """Mask credential values in formatted log messages."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        # Longest first so a key that contains another is masked whole.
        self.secrets = sorted({s for s in secrets if s and len(s) >= 4}, key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = message
        for secret in self.secrets:
            redacted = redacted.replace(secret, REDACTED)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _configured_secrets(settings: Settings) -> list[str]:
    secrets: list[str] = []
    for group in REQUIRED_CREDENTIALS:
        section = getattr(settings, group)
        value = str(getattr(section, "api_key", "") or "").strip()
        if value:
            secrets.append(value)
    return secrets


def setup_logging(settings: Settings) -> None:
    """Configure the ``clinscribe`` logger (and its children) from Settings.

    Third-party loggers are left untouched. API keys from the settings are
    masked on every handler.
    """
    logger = logging.getLogger("clinscribe")
    if getattr(logger, "_clinscribe_configured", False):
        return

    level_name = str(settings.logging.level or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter(
        fmt=str(settings.logging.format),
        datefmt=str(settings.logging.datefmt),
    )
    redactor = SecretRedactingFilter(_configured_secrets(settings))

    handlers: list[logging.Handler] = []
    if settings.logging.console:
        handlers.append(logging.StreamHandler())

    if settings.logging.file:
        file_path = Path(str(settings.logging.file))
        if not file_path.is_absolute():
            file_path = Path(settings.log_dir) / file_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=int(settings.logging.max_bytes),
                backupCount=int(settings.logging.backup_count),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(redactor)

    logger.setLevel(level)
    logger.handlers = handlers
    logger.propagate = False
    setattr(logger, "_clinscribe_configured", True)

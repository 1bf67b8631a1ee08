"""Persisted doctor phone number."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from clinscribe.services.messaging import normalize_phone

logger = logging.getLogger(__name__)


class PhoneNumberStore:
    """Remembers the last valid phone number in a small JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> str | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("ignoring corrupt phone cache (path=%s, error=%s)", self.path, exc)
            return None
        if not isinstance(data, dict):
            return None
        return normalize_phone(data.get("phone"))

    def save(self, number: str) -> bool:
        """Store *number* if it is a valid 10-digit number."""
        digits = normalize_phone(number)
        if digits is None:
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps({"phone": digits}), encoding="utf-8")
        os.replace(tmp, self.path)
        return True

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

"""Structured clinical intake record."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

NOT_MENTIONED = "Not mentioned"


@dataclass
class ClinicalRecord:
    patient_name: str = NOT_MENTIONED
    symptoms: str = NOT_MENTIONED
    medical_history: str = NOT_MENTIONED
    medications: str = NOT_MENTIONED
    medical_summary: str = NOT_MENTIONED
    timestamp: str = ""
    transcript: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

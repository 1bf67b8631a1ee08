"""Pipeline context typing.

Stages share one context dict; this module names the keys they read and write.
"""

from __future__ import annotations

from typing import TypedDict

from clinscribe.models.audio import CapturedAudio, PcmContainer
from clinscribe.models.record import ClinicalRecord


class IntakeContext(TypedDict, total=False):
    session_id: str
    language: str

    captured_audio: CapturedAudio
    containers: list[PcmContainer]

    asr_provider: str
    transcript: str

    record: ClinicalRecord

"""Data models."""

from clinscribe.models.audio import (
    AudioChunk,
    CaptureFormat,
    CapturedAudio,
    PcmContainer,
    RawAudioBuffer,
    SessionHandle,
)
from clinscribe.models.record import NOT_MENTIONED, ClinicalRecord

__all__ = [
    "AudioChunk",
    "CaptureFormat",
    "CapturedAudio",
    "ClinicalRecord",
    "NOT_MENTIONED",
    "PcmContainer",
    "RawAudioBuffer",
    "SessionHandle",
]

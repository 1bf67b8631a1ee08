"""Capture backend abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence

from clinscribe.models.audio import AudioChunk, CaptureFormat

ChunkCallback = Callable[[AudioChunk], None]


class CaptureStream(ABC):
    """An opened hardware input stream owned by one capture session."""

    @abstractmethod
    def start(self) -> None:
        """Begin delivering chunks to the callback."""

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing after flushing pending frames to the callback."""

    @abstractmethod
    def close(self) -> None:
        """Release the input device. Safe to call more than once."""


class CaptureBackend(ABC):
    """Platform audio input capability."""

    name: str

    @abstractmethod
    def probe(self, candidates: Sequence[CaptureFormat]) -> list[CaptureFormat]:
        """Return the candidates the input device accepts, preserving order.

        Raises:
            DeviceUnavailableError: no input device is present or accessible.
        """

    @abstractmethod
    def open(self, capture_format: CaptureFormat, on_chunk: ChunkCallback, *, chunk_ms: int) -> CaptureStream:
        """Open (but do not start) an input stream in *capture_format*."""


def candidate_formats(
    sample_rates: Iterable[int],
    sample_formats: Iterable[str],
    channels: int = 1,
) -> list[CaptureFormat]:
    """Expand preferences into an ordered candidate list (rate-major)."""
    formats = [str(f).strip().lower() for f in sample_formats if str(f).strip()]
    out: list[CaptureFormat] = []
    for rate in sample_rates:
        for sample_format in formats:
            fmt = CaptureFormat(sample_rate=int(rate), channels=int(channels), sample_format=sample_format)
            if fmt not in out:
                out.append(fmt)
    return out

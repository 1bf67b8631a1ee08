"""Audio data models shared by capture, decoding and encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import numpy as np

from clinscribe.exceptions import EncodeError
from clinscribe.utils.media_types import SAMPLE_FORMATS, format_raw_media_type

WAV_MEDIA_TYPE = "audio/wav"


@dataclass(frozen=True)
class AudioChunk:
    """A timestamped fragment emitted by a capture stream."""

    data: bytes
    timestamp: float
    frames: int = 0


def _as_channel(samples: object) -> np.ndarray:
    arr = np.array(samples, dtype=np.float32, copy=True)
    if arr.ndim != 1:
        raise EncodeError(f"channel samples must be one-dimensional (got shape={arr.shape})")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class RawAudioBuffer:
    """Decoded planar float samples of a finished recording.

    Samples are nominally in [-1.0, 1.0]; out-of-range values are kept and
    clipped when the buffer is encoded.
    """

    sample_rate: int
    channels: tuple[np.ndarray, ...] = field(repr=False)

    def __post_init__(self) -> None:
        if int(self.sample_rate) <= 0:
            raise EncodeError(f"sample_rate must be positive (got {self.sample_rate})")
        object.__setattr__(self, "sample_rate", int(self.sample_rate))
        channels = tuple(_as_channel(ch) for ch in self.channels)
        lengths = {len(ch) for ch in channels}
        if len(lengths) > 1:
            raise EncodeError(f"channel lengths differ: {sorted(lengths)}")
        object.__setattr__(self, "channels", channels)

    @classmethod
    def from_interleaved(cls, samples: np.ndarray, sample_rate: int, channels: int) -> "RawAudioBuffer":
        """Build a buffer from frame-major samples (shape ``(frames, channels)`` or flat)."""
        arr = np.asarray(samples, dtype=np.float32)
        if channels <= 0:
            raise EncodeError(f"channels must be positive (got {channels})")
        if arr.ndim == 1:
            if arr.size % channels:
                raise EncodeError(f"{arr.size} samples do not divide into {channels} channels")
            arr = arr.reshape(-1, channels)
        if arr.ndim != 2 or arr.shape[1] != channels:
            raise EncodeError(f"unexpected interleaved shape {arr.shape} for {channels} channels")
        return cls(sample_rate=sample_rate, channels=tuple(arr[:, i] for i in range(channels)))

    @classmethod
    def empty(cls, sample_rate: int, channels: int = 1) -> "RawAudioBuffer":
        return cls(sample_rate=sample_rate, channels=tuple(np.zeros(0, dtype=np.float32) for _ in range(channels)))

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    @property
    def frame_count(self) -> int:
        return len(self.channels[0]) if self.channels else 0

    @property
    def duration_s(self) -> float:
        return self.frame_count / float(self.sample_rate)

    def interleaved(self) -> np.ndarray:
        """Return samples as a ``(frames, channels)`` array."""
        if not self.channels:
            return np.zeros((0, 0), dtype=np.float32)
        return np.stack(self.channels, axis=1)

    def slice(self, start: int, stop: int) -> "RawAudioBuffer":
        start = max(0, int(start))
        stop = min(self.frame_count, int(stop))
        if stop < start:
            stop = start
        return RawAudioBuffer(sample_rate=self.sample_rate, channels=tuple(ch[start:stop] for ch in self.channels))


@dataclass(frozen=True)
class PcmContainer:
    """A 16-bit linear PCM WAV file held in memory."""

    data: bytes = field(repr=False)
    sample_rate: int
    channel_count: int
    data_length: int
    bits_per_sample: int = 16

    @property
    def block_align(self) -> int:
        return self.channel_count * (self.bits_per_sample // 8)

    @property
    def frame_count(self) -> int:
        if self.block_align <= 0:
            return 0
        return self.data_length // self.block_align

    @property
    def duration_s(self) -> float:
        return self.frame_count / float(self.sample_rate) if self.sample_rate else 0.0

    @property
    def media_type(self) -> str:
        return WAV_MEDIA_TYPE

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CaptureFormat:
    """A capture encoding negotiated with an input device."""

    sample_rate: int
    channels: int
    sample_format: str = "f32le"

    @property
    def media_type(self) -> str:
        return format_raw_media_type(self.sample_format, self.sample_rate, self.channels)

    @property
    def bytes_per_frame(self) -> int:
        return SAMPLE_FORMATS[self.sample_format][1] * self.channels


@dataclass(frozen=True)
class SessionHandle:
    session_id: str
    started_at: datetime
    capture_format: CaptureFormat


@dataclass(frozen=True)
class CapturedAudio:
    """Concatenated bytes of a finished capture session."""

    data: bytes = field(repr=False)
    media_type: str
    session_id: str
    chunk_count: int
    started_at: datetime
    stopped_at: datetime
    capture_format: CaptureFormat | None = None

    @property
    def duration_s(self) -> float | None:
        fmt = self.capture_format
        if fmt is None or fmt.bytes_per_frame <= 0:
            return None
        return len(self.data) / fmt.bytes_per_frame / float(fmt.sample_rate)

"""Split decoded audio into bounded-duration segments."""

from __future__ import annotations

import math

from clinscribe.models.audio import RawAudioBuffer


def segment_frames(max_duration_s: float, sample_rate: int) -> int:
    """Number of frames in a full segment of *max_duration_s* seconds."""
    frames = int(math.floor(round(float(max_duration_s) * int(sample_rate), 6)))
    if frames < 1:
        raise ValueError(
            f"max_duration_s={max_duration_s} is shorter than one frame at {sample_rate} Hz"
        )
    return frames


def segment_buffer(buffer: RawAudioBuffer, max_duration_s: float) -> list[RawAudioBuffer]:
    """Split *buffer* into chronological, non-overlapping segments.

    All segments but the last hold exactly ``floor(max_duration_s * rate)``
    frames; the last holds the remainder. An empty buffer yields no segments.
    """
    size = segment_frames(max_duration_s, buffer.sample_rate)
    total = buffer.frame_count
    return [buffer.slice(start, min(start + size, total)) for start in range(0, total, size)]

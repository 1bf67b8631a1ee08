"""In-process decoder for uncontainered PCM capture payloads."""

from __future__ import annotations

import logging

import numpy as np

from clinscribe.exceptions import DecodeError, EncodeError
from clinscribe.models.audio import RawAudioBuffer
from clinscribe.providers.decoder.base import AudioDecoder
from clinscribe.utils.media_types import RawPcmSpec, parse_raw_media_type

logger = logging.getLogger(__name__)


def decode_raw_pcm(data: bytes, spec: RawPcmSpec) -> RawAudioBuffer:
    frame_bytes = spec.bytes_per_frame
    usable = len(data) - (len(data) % frame_bytes)
    if usable != len(data):
        logger.warning("dropping %s trailing bytes of a partial frame", len(data) - usable)

    sample_bytes = frame_bytes // spec.channels
    values = np.frombuffer(data, dtype=spec.dtype, count=usable // sample_bytes)
    if spec.sample_format == "s16le":
        floats = values.astype(np.float32) / 32768.0
    else:
        floats = values.astype(np.float32)
    try:
        return RawAudioBuffer.from_interleaved(floats, sample_rate=spec.sample_rate, channels=spec.channels)
    except EncodeError as exc:
        raise DecodeError(str(exc)) from exc


class RawPcmDecoder(AudioDecoder):
    name = "raw"

    async def decode(self, data: bytes, media_type: str | None = None) -> RawAudioBuffer:
        spec = parse_raw_media_type(media_type)
        if spec is None:
            raise DecodeError(f"not a raw PCM media type: {media_type!r}")
        return decode_raw_pcm(bytes(data), spec)

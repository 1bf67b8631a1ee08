"""libsndfile-backed decoder (WAV, FLAC, OGG/Vorbis/Opus, MP3)."""

from __future__ import annotations

import asyncio
import io
import logging

import soundfile as sf

from clinscribe.exceptions import DecodeError
from clinscribe.models.audio import RawAudioBuffer
from clinscribe.providers.decoder.base import AudioDecoder

logger = logging.getLogger(__name__)


class SoundFileDecoder(AudioDecoder):
    name = "soundfile"

    def _decode_sync(self, data: bytes) -> RawAudioBuffer:
        try:
            samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except (RuntimeError, ValueError) as exc:
            raise DecodeError(f"soundfile could not decode audio: {exc}") from exc
        return RawAudioBuffer.from_interleaved(samples, sample_rate=int(sample_rate), channels=int(samples.shape[1]))

    async def decode(self, data: bytes, media_type: str | None = None) -> RawAudioBuffer:
        if not data:
            raise DecodeError("empty audio payload")
        buffer = await asyncio.to_thread(self._decode_sync, bytes(data))
        logger.debug(
            "decoded with soundfile (media_type=%s, rate=%s, channels=%s, frames=%s)",
            media_type,
            buffer.sample_rate,
            buffer.channel_count,
            buffer.frame_count,
        )
        return buffer

"""Normalize captured audio into 16-bit WAV containers for upload."""

from __future__ import annotations

import logging

from clinscribe.audio.segmenter import segment_buffer
from clinscribe.audio.wav import container_from_wav, encode_wav, is_wav, read_wav
from clinscribe.exceptions import DecodeError
from clinscribe.models.audio import PcmContainer, RawAudioBuffer
from clinscribe.providers.decoder.base import AudioDecoder

logger = logging.getLogger(__name__)


class AudioPipeline:
    """Decode-if-needed, encode and segment stages of one recording.

    Stages run sequentially and are never retried here; a failure surfaces as
    the stage's own error (``DecodeError`` / ``EncodeError``).
    """

    def __init__(self, decoder: AudioDecoder) -> None:
        self.decoder = decoder

    async def decode(self, data: bytes, media_type: str | None = None) -> RawAudioBuffer:
        """Decode *data* to float samples, reading 16-bit WAV in-process."""
        if is_wav(data, media_type):
            try:
                return read_wav(data)
            except DecodeError as exc:
                logger.debug("in-process WAV read failed, using decoder (error=%s)", exc)
        return await self.decoder.decode(data, media_type)

    async def encode_if_needed(self, data: bytes, media_type: str | None = None) -> PcmContainer:
        """Return *data* as a WAV container, transcoding only when it is not one already."""
        if is_wav(data, media_type):
            container = container_from_wav(data)
            logger.info(
                "audio already WAV (media_type=%s, bytes=%s, rate=%s, channels=%s)",
                media_type,
                len(data),
                container.sample_rate,
                container.channel_count,
            )
            return container

        buffer = await self.decoder.decode(data, media_type)
        container = encode_wav(buffer)
        logger.info(
            "audio encoded to WAV (media_type=%s, bytes_in=%s, bytes_out=%s, duration_s=%.2f)",
            media_type,
            len(data),
            len(container.data),
            container.duration_s,
        )
        return container

    def segment_and_encode(self, buffer: RawAudioBuffer, max_duration_s: float) -> list[PcmContainer]:
        """Encode *buffer* as consecutive containers of at most *max_duration_s* each."""
        containers = [encode_wav(segment) for segment in segment_buffer(buffer, max_duration_s)]
        logger.info(
            "audio segmented (duration_s=%.2f, max_segment_s=%s, segments=%s)",
            buffer.duration_s,
            max_duration_s,
            len(containers),
        )
        return containers

    async def decode_and_segment(
        self,
        data: bytes,
        media_type: str | None,
        max_duration_s: float,
    ) -> list[PcmContainer]:
        buffer = await self.decode(data, media_type)
        return self.segment_and_encode(buffer, max_duration_s)

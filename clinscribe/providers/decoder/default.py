"""Default decoder: raw PCM in-process, libsndfile first, ffmpeg as fallback."""

from __future__ import annotations

import logging

from clinscribe.exceptions import DecodeError
from clinscribe.models.audio import RawAudioBuffer
from clinscribe.providers.decoder.base import AudioDecoder
from clinscribe.providers.decoder.ffmpeg import FFmpegDecoder
from clinscribe.providers.decoder.raw import RawPcmDecoder
from clinscribe.providers.decoder.soundfile_decoder import SoundFileDecoder
from clinscribe.utils.media_types import parse_raw_media_type

logger = logging.getLogger(__name__)


class DefaultAudioDecoder(AudioDecoder):
    name = "auto"

    def __init__(
        self,
        *,
        raw: AudioDecoder | None = None,
        soundfile: AudioDecoder | None = None,
        ffmpeg: AudioDecoder | None = None,
        ffmpeg_bin: str = "ffmpeg",
        timeout_s: float = 120.0,
    ) -> None:
        self._raw = raw or RawPcmDecoder()
        self._soundfile = soundfile or SoundFileDecoder()
        self._ffmpeg = ffmpeg or FFmpegDecoder(ffmpeg_bin=ffmpeg_bin, timeout_s=timeout_s)

    async def decode(self, data: bytes, media_type: str | None = None) -> RawAudioBuffer:
        if parse_raw_media_type(media_type) is not None:
            return await self._raw.decode(data, media_type)
        try:
            return await self._soundfile.decode(data, media_type)
        except DecodeError as exc:
            logger.info("soundfile decode failed, trying ffmpeg (media_type=%s, error=%s)", media_type, exc)
        return await self._ffmpeg.decode(data, media_type)

"""Audio decoder capability."""

from clinscribe.providers.decoder.base import AudioDecoder
from clinscribe.providers.decoder.default import DefaultAudioDecoder
from clinscribe.providers.decoder.ffmpeg import FFmpegDecoder
from clinscribe.providers.decoder.raw import RawPcmDecoder
from clinscribe.providers.decoder.soundfile_decoder import SoundFileDecoder

__all__ = ["AudioDecoder", "DefaultAudioDecoder", "FFmpegDecoder", "RawPcmDecoder", "SoundFileDecoder"]

"""FFmpeg-backed decoder for containers libsndfile cannot read (WebM, MP4/AAC...)."""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

from clinscribe.exceptions import ConfigurationError, DecodeError
from clinscribe.models.audio import RawAudioBuffer
from clinscribe.providers.decoder.base import AudioDecoder
from clinscribe.providers.decoder.soundfile_decoder import SoundFileDecoder
from clinscribe.utils.media_types import base_media_type, parse_raw_media_type

logger = logging.getLogger(__name__)

_SUFFIXES = {
    "audio/webm": ".webm",
    "video/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/mp4": ".m4a",
    "video/mp4": ".mp4",
    "audio/aac": ".aac",
    "audio/mpeg": ".mp3",
    "audio/flac": ".flac",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/x-raw": ".raw",
}


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str:
    """Resolve an ffmpeg executable: explicit path, PATH lookup, then imageio-ffmpeg."""
    ffmpeg_bin = (ffmpeg_bin or "ffmpeg").strip()
    if Path(ffmpeg_bin).exists():
        return ffmpeg_bin

    found = shutil.which(ffmpeg_bin)
    if found:
        return found

    try:
        import imageio_ffmpeg

        return str(imageio_ffmpeg.get_ffmpeg_exe())
    except Exception as exc:
        logger.warning("no bundled ffmpeg available (%s); using %r as given", exc, ffmpeg_bin)
        return ffmpeg_bin


class FFmpegDecoder(AudioDecoder):
    """Transcode to a float WAV with ffmpeg, then read it back with libsndfile."""

    name = "ffmpeg"

    def __init__(self, ffmpeg_bin: str = "ffmpeg", timeout_s: float = 120.0) -> None:
        self.ffmpeg_bin = resolve_ffmpeg_bin(ffmpeg_bin)
        self.timeout_s = float(timeout_s)
        self._reader = SoundFileDecoder()

    def build_command(self, src: Path, dst: Path, media_type: str | None) -> list[str]:
        args = [self.ffmpeg_bin, "-nostdin", "-hide_banner", "-loglevel", "error", "-y"]
        raw = parse_raw_media_type(media_type)
        if raw is not None:
            args += ["-f", raw.sample_format, "-ar", str(raw.sample_rate), "-ac", str(raw.channels)]
        args += ["-i", str(src), "-vn", "-acodec", "pcm_f32le", "-f", "wav", str(dst)]
        return args

    async def _run(self, args: list[str]) -> None:
        try:
            cp = await asyncio.to_thread(
                subprocess.run,
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout_s,
            )
        except FileNotFoundError as exc:
            raise ConfigurationError(
                f"ffmpeg binary not found: {self.ffmpeg_bin}. "
                "Install ffmpeg, install `imageio-ffmpeg`, or set DECODER_FFMPEG_BIN."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise DecodeError(f"ffmpeg timed out after {self.timeout_s}s") from exc
        if cp.returncode != 0:
            stderr = (cp.stderr or b"").decode(errors="ignore").strip()
            raise DecodeError(f"ffmpeg failed (code={cp.returncode}): {stderr[-2000:]}")

    async def decode(self, data: bytes, media_type: str | None = None) -> RawAudioBuffer:
        if not data:
            raise DecodeError("empty audio payload")
        suffix = _SUFFIXES.get(base_media_type(media_type), ".bin")
        with tempfile.TemporaryDirectory(prefix="clinscribe-") as tmp:
            src = Path(tmp) / f"input{suffix}"
            dst = Path(tmp) / "decoded.wav"
            src.write_bytes(data)
            await self._run(self.build_command(src, dst, media_type))
            decoded = dst.read_bytes()
        logger.debug("decoded with ffmpeg (media_type=%s, bytes_in=%s)", media_type, len(data))
        return await self._reader.decode(decoded, "audio/wav")

"""RIFF/WAVE container encoding, detection and reading.

Canonical layout written by :func:`encode_wav` (all integers little-endian)::

    0   "RIFF"          4   u32 36 + data_length
    8   "WAVE"          12  "fmt "
    16  u32 16          20  u16 format tag (1 = linear PCM)
    22  u16 channels    24  u32 sample rate
    28  u32 byte rate   32  u16 block align
    34  u16 bits (16)   36  "data"
    40  u32 data_length 44  interleaved int16 samples
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

import numpy as np

from clinscribe.exceptions import DecodeError, EncodeError
from clinscribe.models.audio import WAV_MEDIA_TYPE, PcmContainer, RawAudioBuffer
from clinscribe.utils.media_types import base_media_type

logger = logging.getLogger(__name__)

RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FMT_ID = b"fmt "
DATA_ID = b"data"

PCM_FORMAT_TAG = 1
EXTENSIBLE_FORMAT_TAG = 0xFFFE
BITS_PER_SAMPLE = 16
FMT_CHUNK_SIZE = 16

_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")
_CHUNK_STRUCT = struct.Struct("<4sI")
_FMT_STRUCT = struct.Struct("<HHIIHH")

HEADER_SIZE = _HEADER_STRUCT.size
_MAX_DATA_LENGTH = 0xFFFFFFFF - (HEADER_SIZE - 8)

_POS_SCALE = 0x7FFF
_NEG_SCALE = 0x8000


@dataclass(frozen=True)
class WavInfo:
    format_tag: int
    channels: int
    sample_rate: int
    bits_per_sample: int
    data_offset: int
    data_length: int

    @property
    def block_align(self) -> int:
        return self.channels * (self.bits_per_sample // 8)


def is_wav(data: bytes, media_type: str | None = None) -> bool:
    """Return True if *data* starts with the RIFF/WAVE magic markers.

    The declared media type is not trusted; capture backends disagree on it.
    """
    view = memoryview(data)
    result = len(view) >= 12 and bytes(view[0:4]) == RIFF_ID and bytes(view[8:12]) == WAVE_ID
    declared = base_media_type(media_type)
    if declared and (declared in {"audio/wav", "audio/x-wav", "audio/wave"}) != result:
        logger.debug("declared media type disagrees with content (declared=%s, is_wav=%s)", declared, result)
    return result


def quantize_pcm16(samples: object) -> np.ndarray:
    """Clip float samples to [-1, 1] and truncate to little-endian int16."""
    arr = np.asarray(samples, dtype=np.float64)
    if np.isnan(arr).any():
        raise EncodeError("sample data contains NaN")
    clipped = np.clip(arr, -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * _NEG_SCALE, clipped * _POS_SCALE)
    return np.trunc(scaled).astype("<i2")


def encode_wav(buffer: RawAudioBuffer) -> PcmContainer:
    """Serialize *buffer* into a 16-bit linear PCM WAV container.

    Either returns a complete container or raises :class:`EncodeError`.
    """
    channels = buffer.channel_count
    lengths = {len(ch) for ch in buffer.channels}
    if len(lengths) > 1:
        raise EncodeError(f"channel lengths differ: {sorted(lengths)}")

    frames = buffer.frame_count
    block_align = channels * (BITS_PER_SAMPLE // 8)
    data_length = frames * block_align
    if data_length > _MAX_DATA_LENGTH:
        raise EncodeError(f"payload too large for a WAV container ({data_length} bytes)")

    if channels and frames:
        interleaved = np.stack([quantize_pcm16(ch) for ch in buffer.channels], axis=1)
        payload = interleaved.astype("<i2", copy=False).tobytes()
    else:
        payload = b""

    try:
        header = _HEADER_STRUCT.pack(
            RIFF_ID,
            (HEADER_SIZE - 8) + data_length,
            WAVE_ID,
            FMT_ID,
            FMT_CHUNK_SIZE,
            PCM_FORMAT_TAG,
            channels,
            buffer.sample_rate,
            buffer.sample_rate * block_align,
            block_align,
            BITS_PER_SAMPLE,
            DATA_ID,
            data_length,
        )
    except struct.error as exc:
        raise EncodeError(f"cannot pack WAV header: {exc}") from exc

    out = header + payload
    if len(out) != HEADER_SIZE + data_length:
        raise EncodeError(f"container length mismatch (expected={HEADER_SIZE + data_length}, got={len(out)})")

    return PcmContainer(
        data=out,
        sample_rate=buffer.sample_rate,
        channel_count=channels,
        data_length=data_length,
        bits_per_sample=BITS_PER_SAMPLE,
    )


def parse_wav_info(data: bytes) -> WavInfo:
    """Walk the RIFF chunks of *data* and return its format and payload location."""
    raw = memoryview(data)
    if not is_wav(data):
        raise DecodeError("not a RIFF/WAVE container")

    fmt: tuple[int, int, int, int, int, int] | None = None
    offset = 12
    while offset + _CHUNK_STRUCT.size <= len(raw):
        chunk_id, size = _CHUNK_STRUCT.unpack_from(raw, offset)
        body = offset + _CHUNK_STRUCT.size
        if chunk_id == FMT_ID:
            if size < _FMT_STRUCT.size or body + _FMT_STRUCT.size > len(raw):
                raise DecodeError("truncated fmt chunk")
            fmt = _FMT_STRUCT.unpack_from(raw, body)
            if fmt[0] == EXTENSIBLE_FORMAT_TAG and size >= 26 and body + 26 <= len(raw):
                # WAVE_FORMAT_EXTENSIBLE: the real tag leads the sub-format GUID.
                (sub_tag,) = struct.unpack_from("<H", raw, body + 24)
                fmt = (sub_tag,) + fmt[1:]
        elif chunk_id == DATA_ID:
            if fmt is None:
                raise DecodeError("data chunk precedes fmt chunk")
            format_tag, channels, sample_rate, _byte_rate, _block_align, bits = fmt
            # Streamed writers leave the size at 0 or 0xFFFFFFFF; trust the bytes present.
            available = len(raw) - body
            length = available if size == 0 or size > available else size
            return WavInfo(
                format_tag=format_tag,
                channels=channels,
                sample_rate=sample_rate,
                bits_per_sample=bits,
                data_offset=body,
                data_length=length,
            )
        offset = body + size + (size & 1)

    raise DecodeError("missing fmt or data chunk")


def read_wav(data: bytes) -> RawAudioBuffer:
    """Decode a 16-bit linear PCM WAV container into float samples."""
    info = parse_wav_info(data)
    if info.format_tag != PCM_FORMAT_TAG or info.bits_per_sample != BITS_PER_SAMPLE:
        raise DecodeError(
            f"unsupported WAV encoding (format_tag={info.format_tag}, bits={info.bits_per_sample})"
        )
    if info.channels <= 0 or info.sample_rate <= 0:
        raise DecodeError(f"invalid WAV format (channels={info.channels}, rate={info.sample_rate})")

    usable = info.data_length - (info.data_length % info.block_align)
    ints = np.frombuffer(data, dtype="<i2", count=usable // 2, offset=info.data_offset).astype(np.float64)
    floats = np.where(ints < 0, ints / _NEG_SCALE, ints / _POS_SCALE)
    try:
        return RawAudioBuffer.from_interleaved(floats, sample_rate=info.sample_rate, channels=info.channels)
    except EncodeError as exc:
        raise DecodeError(str(exc)) from exc


def container_from_wav(data: bytes) -> PcmContainer:
    """Wrap existing WAV bytes as a :class:`PcmContainer` without re-encoding."""
    info = parse_wav_info(data)
    return PcmContainer(
        data=bytes(data),
        sample_rate=info.sample_rate,
        channel_count=info.channels,
        data_length=info.data_length,
        bits_per_sample=info.bits_per_sample,
    )


__all__ = [
    "HEADER_SIZE",
    "WAV_MEDIA_TYPE",
    "WavInfo",
    "container_from_wav",
    "encode_wav",
    "is_wav",
    "parse_wav_info",
    "quantize_pcm16",
    "read_wav",
]

"""Media type helpers for raw PCM capture payloads.

Capture backends that hand out uncontainered PCM declare it as
``audio/x-raw;format=<fmt>;rate=<hz>;channels=<n>``. Anything else is treated
as an opaque container that a decoder has to sniff.
"""

from __future__ import annotations

from dataclasses import dataclass

from clinscribe.exceptions import DecodeError

RAW_MEDIA_TYPE = "audio/x-raw"

# sample format -> (numpy dtype string, bytes per sample)
SAMPLE_FORMATS: dict[str, tuple[str, int]] = {
    "f32le": ("<f4", 4),
    "s16le": ("<i2", 2),
}


@dataclass(frozen=True)
class RawPcmSpec:
    sample_format: str
    sample_rate: int
    channels: int

    @property
    def dtype(self) -> str:
        return SAMPLE_FORMATS[self.sample_format][0]

    @property
    def bytes_per_frame(self) -> int:
        return SAMPLE_FORMATS[self.sample_format][1] * self.channels


def base_media_type(media_type: str | None) -> str:
    return str(media_type or "").split(";", 1)[0].strip().lower()


def format_raw_media_type(sample_format: str, sample_rate: int, channels: int) -> str:
    if sample_format not in SAMPLE_FORMATS:
        raise ValueError(f"Unknown sample format: {sample_format!r}")
    return f"{RAW_MEDIA_TYPE};format={sample_format};rate={int(sample_rate)};channels={int(channels)}"


def parse_raw_media_type(media_type: str | None) -> RawPcmSpec | None:
    """Parse a raw PCM media type; return None for any other media type."""
    if base_media_type(media_type) != RAW_MEDIA_TYPE:
        return None

    params: dict[str, str] = {}
    for part in str(media_type).split(";")[1:]:
        key, sep, value = part.partition("=")
        if sep:
            params[key.strip().lower()] = value.strip().strip('"')

    sample_format = params.get("format", "").lower()
    if sample_format not in SAMPLE_FORMATS:
        raise DecodeError(f"unsupported raw sample format: {sample_format!r}")
    try:
        sample_rate = int(params["rate"])
        channels = int(params.get("channels", "1"))
    except (KeyError, ValueError) as exc:
        raise DecodeError(f"invalid raw media type: {media_type!r}") from exc
    if sample_rate <= 0 or channels <= 0:
        raise DecodeError(f"invalid raw media type: {media_type!r}")
    return RawPcmSpec(sample_format=sample_format, sample_rate=sample_rate, channels=channels)

"""PortAudio capture backend (python-sounddevice)."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any

from clinscribe.exceptions import DeviceUnavailableError, UnsupportedFormatError
from clinscribe.models.audio import AudioChunk, CaptureFormat
from clinscribe.providers.capture.base import CaptureBackend, CaptureStream, ChunkCallback

logger = logging.getLogger(__name__)

_DTYPES = {"f32le": "float32", "s16le": "int16"}


def _load_sounddevice() -> Any:
    try:
        import sounddevice as sd
    except OSError as exc:
        # Raised when the PortAudio shared library cannot be loaded.
        raise DeviceUnavailableError(f"PortAudio is not available: {exc}") from exc
    return sd


class _SoundDeviceStream(CaptureStream):
    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self._closed = False

    def start(self) -> None:
        self._stream.start()

    def stop(self) -> None:
        if not self._closed and self._stream.active:
            self._stream.stop()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stream.close(ignore_errors=True)
        logger.debug("input stream released")


class SoundDeviceBackend(CaptureBackend):
    """Capture raw interleaved PCM from a PortAudio input device."""

    name = "sounddevice"

    def __init__(self, device: int | str | None = None) -> None:
        self.device = device

    def probe(self, candidates: Sequence[CaptureFormat]) -> list[CaptureFormat]:
        sd = _load_sounddevice()
        try:
            info = sd.query_devices(self.device, kind="input")
        except (ValueError, sd.PortAudioError) as exc:
            raise DeviceUnavailableError(f"no input device available: {exc}") from exc

        max_channels = int(info.get("max_input_channels", 0) or 0)
        if max_channels < 1:
            raise DeviceUnavailableError(f"device {info.get('name')!r} has no input channels")
        logger.info(
            "input device (name=%s, max_channels=%s, default_rate=%s)",
            info.get("name"),
            max_channels,
            info.get("default_samplerate"),
        )

        supported: list[CaptureFormat] = []
        for fmt in candidates:
            dtype = _DTYPES.get(fmt.sample_format)
            if dtype is None or fmt.channels > max_channels:
                continue
            try:
                sd.check_input_settings(
                    device=self.device,
                    channels=fmt.channels,
                    dtype=dtype,
                    samplerate=fmt.sample_rate,
                )
            except (ValueError, sd.PortAudioError) as exc:
                logger.debug("capture format rejected (format=%s, reason=%s)", fmt, exc)
                continue
            supported.append(fmt)
        return supported

    def open(self, capture_format: CaptureFormat, on_chunk: ChunkCallback, *, chunk_ms: int) -> CaptureStream:
        sd = _load_sounddevice()
        dtype = _DTYPES.get(capture_format.sample_format)
        if dtype is None:
            raise UnsupportedFormatError(f"unsupported sample format: {capture_format.sample_format!r}")
        blocksize = max(1, capture_format.sample_rate * int(chunk_ms) // 1000)

        def _callback(indata: Any, frames: int, time_info: Any, status: Any) -> None:  # noqa: ARG001
            if status:
                logger.warning("capture status: %s", status)
            on_chunk(AudioChunk(data=bytes(indata), timestamp=time.time(), frames=int(frames)))

        try:
            stream = sd.RawInputStream(
                samplerate=capture_format.sample_rate,
                channels=capture_format.channels,
                dtype=dtype,
                blocksize=blocksize,
                device=self.device,
                callback=_callback,
            )
        except sd.PortAudioError as exc:
            raise DeviceUnavailableError(f"cannot open input stream: {exc}") from exc
        return _SoundDeviceStream(stream)

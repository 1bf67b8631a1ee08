"""Recording session lifecycle: Idle -> Recording -> Stopping -> Idle."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from enum import Enum

from clinscribe.exceptions import InvalidStateError, UnsupportedFormatError
from clinscribe.models.audio import AudioChunk, CaptureFormat, CapturedAudio, SessionHandle
from clinscribe.providers.capture.base import CaptureBackend, CaptureStream

logger = logging.getLogger(__name__)


class CaptureState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"


class CaptureSession:
    """Owns one input stream at a time and collects its chunks.

    Chunks may arrive on a driver thread; they are appended in arrival order
    and concatenated once when the session stops.
    """

    def __init__(
        self,
        backend: CaptureBackend,
        *,
        formats: Sequence[CaptureFormat],
        chunk_ms: int = 1000,
    ) -> None:
        if not formats:
            raise ValueError("at least one candidate capture format is required")
        self.backend = backend
        self.formats = list(formats)
        self.chunk_ms = int(chunk_ms)

        self._state = CaptureState.IDLE
        self._state_lock = threading.Lock()
        self._chunks_lock = threading.Lock()
        self._chunks: list[AudioChunk] = []
        self._stream: CaptureStream | None = None
        self._handle: SessionHandle | None = None

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is CaptureState.RECORDING

    @property
    def handle(self) -> SessionHandle | None:
        return self._handle

    def negotiate(self) -> CaptureFormat:
        """Pick the first preferred format the backend supports."""
        supported = self.backend.probe(self.formats)
        if not supported:
            raise UnsupportedFormatError(
                f"none of the candidate formats is supported by {self.backend.name}: "
                + ", ".join(f.media_type for f in self.formats)
            )
        return supported[0]

    def start(self) -> SessionHandle:
        with self._state_lock:
            if self._state is not CaptureState.IDLE:
                raise InvalidStateError(f"cannot start capture while {self._state.value}")

            capture_format = self.negotiate()
            handle = SessionHandle(
                session_id=uuid.uuid4().hex,
                started_at=datetime.now(timezone.utc),
                capture_format=capture_format,
            )
            with self._chunks_lock:
                self._chunks = []
                self._handle = handle

            try:
                stream = self.backend.open(
                    capture_format,
                    lambda chunk: self._on_chunk(handle.session_id, chunk),
                    chunk_ms=self.chunk_ms,
                )
                try:
                    stream.start()
                except BaseException:
                    stream.close()
                    raise
            except BaseException:
                with self._chunks_lock:
                    self._handle = None
                raise

            self._stream = stream
            self._state = CaptureState.RECORDING

        logger.info(
            "capture started (session_id=%s, media_type=%s)",
            handle.session_id,
            capture_format.media_type,
        )
        return handle

    def _on_chunk(self, session_id: str, chunk: AudioChunk) -> None:
        with self._chunks_lock:
            handle = self._handle
            if handle is None or handle.session_id != session_id:
                logger.debug("dropping chunk from finished session (session_id=%s)", session_id)
                return
            self._chunks.append(chunk)

    def stop(self, handle: SessionHandle | None = None) -> CapturedAudio | None:
        """Stop recording and return the concatenated capture.

        Stopping an idle session is a no-op and returns None.
        """
        with self._state_lock:
            if self._state is not CaptureState.RECORDING:
                logger.debug("stop ignored (state=%s)", self._state.value)
                return None
            active = self._handle
            stream = self._stream
            assert active is not None and stream is not None
            if handle is not None and handle.session_id != active.session_id:
                raise InvalidStateError(f"session {handle.session_id} is not the active session")
            self._state = CaptureState.STOPPING

        try:
            try:
                stream.stop()
            finally:
                stream.close()

            with self._chunks_lock:
                chunks = self._chunks
                self._chunks = []
                self._handle = None
        finally:
            with self._state_lock:
                self._stream = None
                self._handle = None
                self._state = CaptureState.IDLE

        data = b"".join(chunk.data for chunk in chunks)
        captured = CapturedAudio(
            data=data,
            media_type=active.capture_format.media_type,
            session_id=active.session_id,
            chunk_count=len(chunks),
            started_at=active.started_at,
            stopped_at=datetime.now(timezone.utc),
            capture_format=active.capture_format,
        )
        logger.info(
            "capture stopped (session_id=%s, chunks=%s, bytes=%s)",
            active.session_id,
            len(chunks),
            len(data),
        )
        return captured

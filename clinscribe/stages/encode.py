"""Audio encode stage: captured bytes -> 16-bit WAV container(s)."""

from __future__ import annotations

import logging
from typing import cast

from clinscribe.audio.pipeline import AudioPipeline
from clinscribe.config import Settings
from clinscribe.exceptions import StageExecutionError
from clinscribe.pipeline.context import IntakeContext
from clinscribe.providers import get_decoder
from clinscribe.providers.decoder.base import AudioDecoder
from clinscribe.stages.base import Stage

logger = logging.getLogger(__name__)


class AudioEncodeStage(Stage):
    """Stage 1: encode the capture for upload.

    Languages served by a duration-limited recognizer are decoded and split
    into segments of at most ``asr.max_segment_s``; everything else becomes a
    single container (WAV input passes through unchanged).

    Inputs:
      - captured_audio
      - language (optional)

    Outputs:
      - containers
    """

    name = "audio_encode"

    def __init__(self, settings: Settings, *, decoder: AudioDecoder | None = None) -> None:
        self.settings = settings
        self.decoder = decoder or get_decoder(settings)
        self.audio = AudioPipeline(self.decoder)

    def validate_input(self, context: IntakeContext) -> bool:
        captured = context.get("captured_audio")
        return captured is not None and bool(captured.data)

    def _needs_segments(self, language: str) -> bool:
        code = language.split("-")[0].lower()
        return code in {c.lower() for c in self.settings.asr.segment_languages}

    async def execute(self, context: IntakeContext) -> IntakeContext:
        context = cast(IntakeContext, dict(context))
        captured = context["captured_audio"]
        language = context.get("language") or self.settings.asr.default_language

        if self._needs_segments(language):
            containers = await self.audio.decode_and_segment(
                captured.data,
                captured.media_type,
                self.settings.asr.max_segment_s,
            )
        else:
            containers = [await self.audio.encode_if_needed(captured.data, captured.media_type)]

        if not containers or all(c.frame_count == 0 for c in containers):
            raise StageExecutionError(
                self.name,
                "recording contains no audio frames",
                session_id=context.get("session_id"),
            )

        context["containers"] = containers
        return context

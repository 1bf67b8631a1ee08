"""Pipeline factories."""

from __future__ import annotations

from collections.abc import Mapping

from clinscribe.config import Settings
from clinscribe.pipeline.executor import PipelineExecutor
from clinscribe.providers.asr.base import ASRProvider
from clinscribe.providers.decoder.base import AudioDecoder
from clinscribe.providers.llm.base import LLMProvider
from clinscribe.stages import AudioEncodeStage, ExtractionStage, TranscriptionStage


def build_intake_pipeline(
    settings: Settings,
    *,
    decoder: AudioDecoder | None = None,
    asr_providers: Mapping[str, ASRProvider] | None = None,
    llm: LLMProvider | None = None,
) -> PipelineExecutor:
    """Encode -> transcribe -> extract."""
    stages = [
        AudioEncodeStage(settings, decoder=decoder),
        TranscriptionStage(settings, providers=asr_providers),
        ExtractionStage(settings, llm=llm),
    ]
    return PipelineExecutor(stages)

"""Processing stages."""

from clinscribe.stages.asr import TranscriptionStage
from clinscribe.stages.base import Stage
from clinscribe.stages.encode import AudioEncodeStage
from clinscribe.stages.extraction import ExtractionStage

__all__ = ["AudioEncodeStage", "ExtractionStage", "Stage", "TranscriptionStage"]

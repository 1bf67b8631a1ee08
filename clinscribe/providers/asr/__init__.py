"""ASR providers."""

from clinscribe.providers.asr.base import ASRProvider
from clinscribe.providers.asr.deepgram import DeepgramProvider
from clinscribe.providers.asr.sarvam import SarvamProvider

__all__ = ["ASRProvider", "DeepgramProvider", "SarvamProvider"]

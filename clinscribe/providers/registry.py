"""Provider factory and registry."""

from __future__ import annotations

from clinscribe.config import Settings
from clinscribe.exceptions import ConfigurationError
from clinscribe.models.audio import CaptureFormat
from clinscribe.providers.asr.base import ASRProvider
from clinscribe.providers.capture.base import CaptureBackend, candidate_formats
from clinscribe.providers.decoder.base import AudioDecoder
from clinscribe.providers.llm.base import LLMProvider


def get_capture_backend(settings: Settings) -> CaptureBackend:
    """Get capture backend based on configuration."""
    backend_type = str(settings.capture.backend or "sounddevice").strip().lower()

    match backend_type:
        case "sounddevice" | "portaudio":
            from clinscribe.providers.capture.sounddevice_backend import SoundDeviceBackend

            device: int | str | None = settings.capture.device
            if isinstance(device, str) and device.isdigit():
                device = int(device)
            return SoundDeviceBackend(device=device)
        case _:
            raise ConfigurationError(f"Unknown capture backend: {backend_type}")


def get_capture_formats(settings: Settings) -> list[CaptureFormat]:
    return candidate_formats(
        settings.capture.preferred_sample_rates,
        settings.capture.preferred_sample_formats,
        channels=settings.capture.channels,
    )


def get_decoder(settings: Settings) -> AudioDecoder:
    """Get audio decoder based on configuration."""
    provider_type = str(settings.decoder.provider or "auto").strip().lower()
    ffmpeg_bin = str(settings.decoder.ffmpeg_bin or "ffmpeg")
    timeout_s = float(settings.decoder.timeout_s)

    match provider_type:
        case "auto" | "default":
            from clinscribe.providers.decoder.default import DefaultAudioDecoder

            return DefaultAudioDecoder(ffmpeg_bin=ffmpeg_bin, timeout_s=timeout_s)
        case "raw":
            from clinscribe.providers.decoder.raw import RawPcmDecoder

            return RawPcmDecoder()
        case "soundfile":
            from clinscribe.providers.decoder.soundfile_decoder import SoundFileDecoder

            return SoundFileDecoder()
        case "ffmpeg":
            from clinscribe.providers.decoder.ffmpeg import FFmpegDecoder

            return FFmpegDecoder(ffmpeg_bin=ffmpeg_bin, timeout_s=timeout_s)
        case _:
            raise ConfigurationError(f"Unknown decoder provider: {provider_type}")


def provider_for_language(language: str | None, settings: Settings) -> str:
    """Name of the ASR provider that handles *language*."""
    code = str(language or settings.asr.default_language).strip().lower()
    if code.split("-")[0] in {c.lower() for c in settings.asr.segment_languages}:
        return "sarvam"
    return "deepgram"


def get_asr_provider(name: str, settings: Settings) -> ASRProvider:
    """Get ASR provider by name."""
    provider_type = str(name or "").strip().lower()

    match provider_type:
        case "deepgram":
            from clinscribe.providers.asr.deepgram import DeepgramProvider

            settings.require_credentials("deepgram")
            cfg = settings.deepgram
            return DeepgramProvider(
                api_key=cfg.api_key,
                model=cfg.model,
                base_url=cfg.base_url,
                timeout=float(cfg.timeout),
            )
        case "sarvam":
            from clinscribe.providers.asr.sarvam import SarvamProvider

            settings.require_credentials("sarvam")
            cfg = settings.sarvam
            return SarvamProvider(
                api_key=cfg.api_key,
                model=cfg.model,
                base_url=cfg.base_url,
                timeout=float(cfg.timeout),
            )
        case _:
            raise ConfigurationError(f"Unknown ASR provider: {provider_type}")


def get_llm_provider(settings: Settings, name: str = "gemini") -> LLMProvider:
    """Get LLM provider based on configuration."""
    provider_type = str(name or "gemini").strip().lower()

    match provider_type:
        case "gemini":
            from clinscribe.providers.llm.gemini import GeminiProvider

            settings.require_credentials("gemini")
            cfg = settings.gemini
            model = str(cfg.model or "").strip()
            if not model:
                raise ConfigurationError("Gemini provider requires a model")
            return GeminiProvider(
                api_key=cfg.api_key,
                model=model,
                base_url=cfg.base_url,
                temperature=cfg.temperature,
                top_p=cfg.top_p,
                top_k=cfg.top_k,
            )
        case _:
            raise ConfigurationError(f"Unknown LLM provider: {provider_type}")

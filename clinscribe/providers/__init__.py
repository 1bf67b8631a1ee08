"""Provider abstractions for devices and external services."""

from clinscribe.providers.registry import (
    get_asr_provider,
    get_capture_backend,
    get_capture_formats,
    get_decoder,
    get_llm_provider,
    provider_for_language,
)

__all__ = [
    "get_asr_provider",
    "get_capture_backend",
    "get_capture_formats",
    "get_decoder",
    "get_llm_provider",
    "provider_for_language",
]

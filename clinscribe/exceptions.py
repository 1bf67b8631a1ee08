"""ClinScribe exception hierarchy."""

from __future__ import annotations

from clinscribe.error_codes import ErrorCode


class ClinScribeError(Exception):
    """Base error for ClinScribe."""


class ConfigurationError(ClinScribeError):
    """Raised when configuration or inputs are invalid."""


class AudioPipelineError(ClinScribeError):
    """Terminal failure of an audio capture/decode/encode stage."""

    error_code: ErrorCode = ErrorCode.UNKNOWN


class DeviceUnavailableError(AudioPipelineError):
    """No capturable input device, or access was denied."""

    error_code = ErrorCode.DEVICE_UNAVAILABLE


class UnsupportedFormatError(AudioPipelineError):
    """No capture encoding could be negotiated with the device."""

    error_code = ErrorCode.UNSUPPORTED_FORMAT


class InvalidStateError(AudioPipelineError):
    """Operation not valid in the current session state."""

    error_code = ErrorCode.INVALID_STATE


class DecodeError(AudioPipelineError):
    """Input bytes could not be decoded as audio."""

    error_code = ErrorCode.DECODE_FAILED


class EncodeError(AudioPipelineError):
    """Sample data is malformed and cannot be serialized."""

    error_code = ErrorCode.ENCODE_FAILED


class ProviderError(ClinScribeError):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code


class ExtractionError(ProviderError):
    """Raised when LLM output cannot be turned into a clinical record."""


class StageExecutionError(ClinScribeError):
    """Raised when a pipeline stage fails."""

    def __init__(
        self,
        stage: str,
        message: str,
        *,
        session_id: str | None = None,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        prefix = f"{stage}"
        if session_id:
            prefix = f"{prefix} (session_id={session_id})"
        super().__init__(f"{prefix}: {message}")
        self.stage = stage
        self.session_id = session_id
        self.message = message
        self.error_code = error_code

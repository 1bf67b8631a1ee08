"""Configuration management using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinscribe.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env")


class CaptureConfig(BaseSettings):
    """Microphone capture configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CAPTURE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: str = "sounddevice"
    device: str | None = None
    channels: int = Field(default=1, ge=1)
    # Probed in order; the first combination the device accepts wins.
    preferred_sample_rates: list[int] = Field(default_factory=lambda: [48000, 44100, 16000])
    preferred_sample_formats: list[str] = Field(default_factory=lambda: ["f32le", "s16le"])
    chunk_ms: int = Field(default=1000, ge=10)


class DecoderConfig(BaseSettings):
    """Audio decoding configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DECODER_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "auto"
    ffmpeg_bin: str = "ffmpeg"
    timeout_s: float = Field(default=120.0, gt=0)


class ASRConfig(BaseSettings):
    """Transcription routing configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ASR_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_language: str = "en"
    # Languages routed to a provider with an input duration ceiling.
    segment_languages: list[str] = Field(default_factory=lambda: ["kn"])
    max_segment_s: float = Field(default=30.0, gt=0)


class DeepgramConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DEEPGRAM_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str = ""
    base_url: str = "https://api.deepgram.com/v1"
    model: str = "nova-2"
    timeout: float = 120.0


class SarvamConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SARVAM_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str = ""
    base_url: str = "https://api.sarvam.ai"
    model: str = "saarika:v1"
    timeout: float = 120.0


class GeminiConfig(BaseSettings):
    """LLM used for structured field extraction."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str = ""
    model: str = "gemini-1.5-flash"
    base_url: str | None = None
    temperature: float = Field(default=0.3, ge=0)
    top_p: float = Field(default=0.8, gt=0, le=1)
    top_k: int = Field(default=40, ge=1)


class AirtableConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AIRTABLE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str = ""
    base_id: str = ""
    table: str = "Table 1"
    base_url: str = "https://api.airtable.com/v0"
    doctor_name: str = ""
    timeout: float = 30.0


class MessagingConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MESSAGING_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    country_code: str = "91"
    base_url: str = "https://wa.me"

    @field_validator("country_code")
    @classmethod
    def _digits_only(cls, value: str) -> str:
        digits = "".join(ch for ch in str(value or "") if ch.isdigit())
        if not digits:
            raise ConfigurationError("MESSAGING_COUNTRY_CODE must contain digits")
        return digits


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)


# Credential fields each external collaborator cannot run without.
REQUIRED_CREDENTIALS: dict[str, tuple[str, ...]] = {
    "deepgram": ("api_key",),
    "sarvam": ("api_key",),
    "gemini": ("api_key",),
    "airtable": ("api_key", "base_id"),
}


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLINSCRIBE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: str = "./data"
    log_dir: str = "./logs"

    capture: CaptureConfig = CaptureConfig()
    decoder: DecoderConfig = DecoderConfig()
    asr: ASRConfig = ASRConfig()

    deepgram: DeepgramConfig = DeepgramConfig()
    sarvam: SarvamConfig = SarvamConfig()
    gemini: GeminiConfig = GeminiConfig()
    airtable: AirtableConfig = AirtableConfig()
    messaging: MessagingConfig = MessagingConfig()

    logging: LoggingSettings = LoggingSettings()

    def model_post_init(self, __context: Any) -> None:
        def _abs_dir(p: str) -> str:
            out = Path(p).expanduser().resolve()
            out.mkdir(parents=True, exist_ok=True)
            return str(out)

        self.data_dir = _abs_dir(self.data_dir)
        self.log_dir = _abs_dir(self.log_dir)

    @property
    def phone_cache_path(self) -> Path:
        return Path(self.data_dir) / "doctor_phone.json"

    def missing_credentials(self, *groups: str) -> list[str]:
        """Return env-style names of required credentials that are empty."""
        names = groups or tuple(REQUIRED_CREDENTIALS)
        missing: list[str] = []
        for group in names:
            fields = REQUIRED_CREDENTIALS.get(group)
            if fields is None:
                raise ConfigurationError(f"Unknown credential group: {group!r}")
            section = getattr(self, group)
            for field in fields:
                if not str(getattr(section, field, "") or "").strip():
                    missing.append(f"{group.upper()}_{field.upper()}")
        return missing

    def require_credentials(self, *groups: str) -> None:
        """Fail fast when any credential needed by *groups* is absent."""
        missing = self.missing_credentials(*groups)
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

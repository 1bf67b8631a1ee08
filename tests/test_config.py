from __future__ import annotations

import logging
from pathlib import Path

import pytest

from clinscribe.config import AirtableConfig, DeepgramConfig, MessagingConfig, Settings
from clinscribe.exceptions import ConfigurationError
from clinscribe.utils.logging_setup import SecretRedactingFilter, setup_logging


def test_defaults(settings: Settings) -> None:
    assert settings.capture.preferred_sample_rates == [48000, 44100, 16000]
    assert settings.capture.preferred_sample_formats == ["f32le", "s16le"]
    assert settings.asr.segment_languages == ["kn"]
    assert settings.asr.max_segment_s == 30.0
    assert settings.gemini.model == "gemini-1.5-flash"
    assert settings.airtable.table == "Table 1"
    assert settings.messaging.country_code == "91"


def test_directories_are_created(settings: Settings) -> None:
    assert Path(settings.data_dir).is_dir()
    assert Path(settings.log_dir).is_dir()
    assert settings.phone_cache_path == Path(settings.data_dir) / "doctor_phone.json"


def test_missing_credentials_lists_env_names(settings: Settings) -> None:
    assert settings.missing_credentials() == []
    settings = settings.model_copy(
        update={
            "deepgram": DeepgramConfig(api_key=""),
            "airtable": AirtableConfig(api_key="k", base_id=" "),
        }
    )
    assert settings.missing_credentials() == ["DEEPGRAM_API_KEY", "AIRTABLE_BASE_ID"]
    assert settings.missing_credentials("sarvam") == []


def test_require_credentials_fails_fast(settings: Settings) -> None:
    settings = settings.model_copy(update={"airtable": AirtableConfig(api_key="", base_id="")})
    with pytest.raises(ConfigurationError, match="AIRTABLE_API_KEY, AIRTABLE_BASE_ID"):
        settings.require_credentials("airtable")
    settings.require_credentials("gemini")


def test_unknown_credential_group(settings: Settings) -> None:
    with pytest.raises(ConfigurationError):
        settings.missing_credentials("openai")


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("DEEPGRAM_API_KEY", "from-env")
    monkeypatch.setenv("DEEPGRAM_MODEL", "nova-3")
    cfg = DeepgramConfig()
    assert cfg.api_key == "from-env"
    assert cfg.model == "nova-3"


def test_country_code_keeps_digits() -> None:
    assert MessagingConfig(country_code="+91").country_code == "91"
    with pytest.raises(ConfigurationError):
        MessagingConfig(country_code="+")


def test_setup_logging_is_idempotent(settings: Settings, monkeypatch) -> None:
    logger = logging.getLogger("clinscribe")
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setattr(logger, "propagate", True)
    monkeypatch.setattr(logger, "_clinscribe_configured", False, raising=False)

    settings.logging.file = "clinscribe.log"
    try:
        setup_logging(settings)
        handlers = list(logger.handlers)
        setup_logging(settings)
    finally:
        for handler in logger.handlers:
            handler.close()

    assert logger.handlers == handlers
    assert len(handlers) == 2
    assert logger.propagate is False
    assert (Path(settings.log_dir) / "clinscribe.log").exists()


def test_secret_filter_masks_api_keys() -> None:
    record = logging.LogRecord(
        "clinscribe.test",
        logging.WARNING,
        __file__,
        1,
        "request failed (url=%s)",
        ("https://api.example.com/?key=sk-live-123456",),
        None,
    )
    assert SecretRedactingFilter(["sk-live-123456", ""]).filter(record)
    assert record.getMessage() == "request failed (url=https://api.example.com/?key=***)"


def test_secret_filter_leaves_clean_messages_alone() -> None:
    record = logging.LogRecord("clinscribe.test", logging.INFO, __file__, 1, "frames=%s", (10,), None)
    SecretRedactingFilter(["sk-live-123456"]).filter(record)
    assert record.args == (10,)
    assert record.getMessage() == "frames=10"

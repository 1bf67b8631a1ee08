from __future__ import annotations

import numpy as np
import pytest
from tenacity import wait_none

from clinscribe.config import AirtableConfig, DeepgramConfig, GeminiConfig, SarvamConfig, Settings
from clinscribe.models.audio import RawAudioBuffer


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=str(tmp_path / "data"),
        log_dir=str(tmp_path / "logs"),
        deepgram=DeepgramConfig(api_key="dg-key"),
        sarvam=SarvamConfig(api_key="sv-key"),
        gemini=GeminiConfig(api_key="gm-key"),
        airtable=AirtableConfig(api_key="at-key", base_id="app123"),
    )


@pytest.fixture()
def no_retry_wait(monkeypatch) -> None:
    monkeypatch.setattr("clinscribe.providers._http._WAIT_NORMAL", wait_none())
    monkeypatch.setattr("clinscribe.providers._http._WAIT_RATE_LIMIT", wait_none())


def sine_buffer(seconds: float, sample_rate: int = 16000, channels: int = 1, freq: float = 440.0) -> RawAudioBuffer:
    frames = int(round(seconds * sample_rate))
    t = np.arange(frames, dtype=np.float64) / sample_rate
    tone = 0.5 * np.sin(2 * np.pi * freq * t)
    return RawAudioBuffer(sample_rate=sample_rate, channels=tuple(tone for _ in range(channels)))


def raw_f32(samples: list[float] | np.ndarray) -> bytes:
    return np.asarray(samples, dtype="<f4").tobytes()

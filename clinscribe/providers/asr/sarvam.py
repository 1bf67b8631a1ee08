"""Sarvam AI speech-to-text provider for Indic languages."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from clinscribe.error_codes import ErrorCode
from clinscribe.exceptions import ProviderError
from clinscribe.models.audio import PcmContainer
from clinscribe.providers._http import (
    MAX_ATTEMPTS,
    RetryableProviderError,
    json_body,
    log_retry,
    raise_for_response,
    wait_retry,
)
from clinscribe.providers.asr.base import ASRProvider, audio_payload

logger = logging.getLogger(__name__)

_REGION_SUFFIX = "-IN"


def sarvam_language_code(language: str | None, default: str = "kn-IN") -> str:
    """Map a bare language code (``kn``) to Sarvam's regional form (``kn-IN``)."""
    code = str(language or "").strip()
    if not code:
        return default
    if "-" in code:
        return code
    return f"{code.lower()}{_REGION_SUFFIX}"


class SarvamProvider(ASRProvider):
    """Sarvam ``/speech-to-text`` provider.

    The endpoint only accepts WAV uploads of limited duration; callers pass
    segmented 16-bit containers.
    """

    name = "sarvam"

    def __init__(
        self,
        api_key: str,
        model: str = "saarika:v1",
        base_url: str = "https://api.sarvam.ai",
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = str(api_key or "")
        if not self.api_key:
            raise ValueError("SarvamProvider requires api_key")
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    @retry(
        retry=retry_if_exception_type(RetryableProviderError),
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_retry,
        before_sleep=log_retry(logger),
        reraise=True,
    )
    async def _post(self, data: dict[str, str], payload: bytes, content_type: str) -> dict[str, Any]:
        client = await self._get_client()
        files = {"file": ("audio.wav", payload, content_type)}
        try:
            response = await client.post(
                f"{self.base_url}/speech-to-text",
                headers={"api-subscription-key": self.api_key},
                files=files,
                data=data,
            )
        except httpx.TransportError as exc:
            raise RetryableProviderError(self.name, str(exc), error_code=ErrorCode.ASR_FAILED) from exc
        raise_for_response(self.name, response, ErrorCode.ASR_FAILED)
        return json_body(self.name, response, ErrorCode.ASR_FAILED)

    async def transcribe(
        self,
        audio: PcmContainer | bytes,
        language: str | None = None,
        *,
        media_type: str | None = None,
    ) -> str:
        payload, content_type = audio_payload(audio, media_type)
        data = {
            "model": self.model,
            "language_code": sarvam_language_code(language),
            "with_timestamps": "false",
        }

        started = time.perf_counter()
        result = await self._post(data, payload, content_type)
        if "transcript" not in result and "text" not in result:
            raise ProviderError(
                self.name,
                "response has neither 'transcript' nor 'text'",
                error_code=ErrorCode.ASR_FAILED,
            )
        # A silent segment comes back as an empty transcript.
        transcript = result.get("transcript") or result.get("text") or ""

        logger.info(
            "asr call (provider=%s, model=%s, language_code=%s, bytes=%s, latency_ms=%s)",
            self.name,
            self.model,
            data["language_code"],
            len(payload),
            int((time.perf_counter() - started) * 1000),
        )
        return str(transcript).strip()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

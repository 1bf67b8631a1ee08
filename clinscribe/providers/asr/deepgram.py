"""Deepgram pre-recorded transcription provider."""

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


class DeepgramProvider(ASRProvider):
    """Deepgram ``/listen`` API provider."""

    name = "deepgram"

    def __init__(
        self,
        api_key: str,
        model: str = "nova-2",
        base_url: str = "https://api.deepgram.com/v1",
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = str(api_key or "")
        if not self.api_key:
            raise ValueError("DeepgramProvider requires api_key")
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
    async def _post(self, params: dict[str, str], payload: bytes, content_type: str) -> dict[str, Any]:
        client = await self._get_client()
        headers = {"Authorization": f"Token {self.api_key}", "Content-Type": content_type}
        try:
            response = await client.post(
                f"{self.base_url}/listen",
                params=params,
                headers=headers,
                content=payload,
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
        params = {"model": self.model}
        if language:
            params["language"] = language

        started = time.perf_counter()
        result = await self._post(params, payload, content_type)
        try:
            transcript = result["results"]["channels"][0]["alternatives"][0]["transcript"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(
                self.name,
                f"unexpected response shape: missing {exc}",
                error_code=ErrorCode.ASR_FAILED,
            ) from exc

        logger.info(
            "asr call (provider=%s, model=%s, language=%s, bytes=%s, latency_ms=%s)",
            self.name,
            self.model,
            language,
            len(payload),
            int((time.perf_counter() - started) * 1000),
        )
        return str(transcript or "").strip()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

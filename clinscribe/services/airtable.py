"""Airtable record submission."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from clinscribe.error_codes import ErrorCode
from clinscribe.exceptions import ProviderError
from clinscribe.models.record import ClinicalRecord
from clinscribe.providers._http import (
    MAX_ATTEMPTS,
    RetryableProviderError,
    json_body,
    log_retry,
    raise_for_response,
    wait_retry,
)

logger = logging.getLogger(__name__)


def record_fields(record: ClinicalRecord, doctor_name: str = "") -> dict[str, str]:
    """Airtable column -> value mapping for one intake record."""
    return {
        "Doctor Name": doctor_name,
        "Patient Name": record.patient_name,
        "Symptoms": record.symptoms,
        "Medical History": record.medical_history,
        "Medications": record.medications,
        "Medical Summary": record.medical_summary,
    }


class AirtableClient:
    name = "airtable"

    def __init__(
        self,
        api_key: str,
        base_id: str,
        table: str = "Table 1",
        base_url: str = "https://api.airtable.com/v0",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = str(api_key or "")
        self.base_id = str(base_id or "")
        if not self.api_key or not self.base_id:
            raise ValueError("AirtableClient requires api_key and base_id")
        self.table = table
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/{self.base_id}/{quote(self.table, safe='')}"

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
    async def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.post(
                self.table_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=body,
            )
        except httpx.TransportError as exc:
            raise RetryableProviderError(self.name, str(exc), error_code=ErrorCode.SUBMIT_FAILED) from exc
        raise_for_response(self.name, response, ErrorCode.SUBMIT_FAILED)
        return json_body(self.name, response, ErrorCode.SUBMIT_FAILED)

    async def submit(self, record: ClinicalRecord, *, doctor_name: str = "") -> list[str]:
        """Create one row for *record* and return the created record ids."""
        body = {"records": [{"fields": record_fields(record, doctor_name)}]}
        result = await self._post(body)
        records = result.get("records")
        if not isinstance(records, list) or not records:
            raise ProviderError(self.name, "response contains no records", error_code=ErrorCode.SUBMIT_FAILED)
        ids = [str(r.get("id")) for r in records if isinstance(r, dict) and r.get("id")]
        logger.info("airtable submit ok (table=%s, records=%s)", self.table, ids)
        return ids

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AirtableClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

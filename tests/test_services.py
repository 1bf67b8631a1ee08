from __future__ import annotations

import json
from urllib.parse import unquote

import httpx
import pytest

from clinscribe.error_codes import ErrorCode
from clinscribe.exceptions import ProviderError
from clinscribe.models.record import ClinicalRecord
from clinscribe.services.airtable import AirtableClient
from clinscribe.services.messaging import build_whatsapp_url, format_report, normalize_phone
from clinscribe.services.phone_store import PhoneNumberStore


def _record() -> ClinicalRecord:
    return ClinicalRecord(
        patient_name="Asha Rao",
        symptoms="• Headache",
        medical_history="Type 2 diabetes",
        medications="Metformin 500 mg",
        medical_summary="Viral fever & dehydration",
        timestamp="2024-03-05 14:30:00",
    )


def _airtable(handler) -> AirtableClient:
    return AirtableClient(
        api_key="at-key",
        base_id="app123",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_airtable_submit_posts_record_fields() -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"records": [{"id": "rec001", "fields": {}}]})

    async with _airtable(_handler) as client:
        ids = await client.submit(_record(), doctor_name="Dr. Saurabh")

    assert ids == ["rec001"]
    request = seen[0]
    assert request.url.raw_path == b"/v0/app123/Table%201"
    assert request.headers["authorization"] == "Bearer at-key"
    body = json.loads(request.content)
    assert body == {
        "records": [
            {
                "fields": {
                    "Doctor Name": "Dr. Saurabh",
                    "Patient Name": "Asha Rao",
                    "Symptoms": "• Headache",
                    "Medical History": "Type 2 diabetes",
                    "Medications": "Metformin 500 mg",
                    "Medical Summary": "Viral fever & dehydration",
                }
            }
        ]
    }


@pytest.mark.asyncio
async def test_airtable_rejection_is_submit_failure() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"error": {"type": "UNKNOWN_FIELD_NAME"}})

    async with _airtable(_handler) as client:
        with pytest.raises(ProviderError) as excinfo:
            await client.submit(_record())
    assert excinfo.value.error_code == ErrorCode.SUBMIT_FAILED
    assert "UNKNOWN_FIELD_NAME" in str(excinfo.value)


def test_airtable_requires_credentials() -> None:
    with pytest.raises(ValueError):
        AirtableClient(api_key="k", base_id="")


def test_format_report_sections() -> None:
    report = format_report(_record())
    assert report.startswith("*Medical Report for Asha Rao*\n")
    assert "*Symptoms:*\n• Headache\n" in report
    assert "*Medications:*\nMetformin 500 mg\n" in report
    assert report.endswith("*Timestamp:* 2024-03-05 14:30:00")


def test_build_whatsapp_url() -> None:
    url = build_whatsapp_url("98765-43210", _record())
    prefix = "https://wa.me/919876543210?text="
    assert url.startswith(prefix)
    text = url[len(prefix):]
    assert " " not in text and "&" not in text
    assert unquote(text) == format_report(_record())


def test_build_whatsapp_url_custom_country_code() -> None:
    url = build_whatsapp_url("9876543210", _record(), country_code="+1")
    assert url.startswith("https://wa.me/19876543210?text=")


@pytest.mark.parametrize("phone", ["", "12345", "98765432101", "abcdefghij"])
def test_build_whatsapp_url_rejects_invalid_numbers(phone: str) -> None:
    with pytest.raises(ValueError):
        build_whatsapp_url(phone, _record())


def test_normalize_phone() -> None:
    assert normalize_phone("(987) 654-3210") == "9876543210"
    assert normalize_phone(None) is None


def test_phone_store_round_trip(tmp_path) -> None:
    store = PhoneNumberStore(tmp_path / "cache" / "doctor_phone.json")
    assert store.load() is None

    assert not store.save("123")
    assert store.load() is None

    assert store.save("98765 43210")
    assert store.load() == "9876543210"

    store.clear()
    assert store.load() is None
    store.clear()


def test_phone_store_ignores_corrupt_file(tmp_path) -> None:
    path = tmp_path / "doctor_phone.json"
    path.write_text("{not json", encoding="utf-8")
    assert PhoneNumberStore(path).load() is None

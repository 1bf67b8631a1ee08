from __future__ import annotations

import json
from datetime import datetime

import pytest

from clinscribe.exceptions import ExtractionError
from clinscribe.extraction import (
    IntakeExtractor,
    build_intake_prompt,
    format_medical_text,
    parse_intake_response,
)
from clinscribe.models.record import NOT_MENTIONED
from clinscribe.providers.llm.base import LLMProvider, Message
from clinscribe.providers.llm.gemini import GeminiProvider, _split_system_instruction, _to_gemini_contents
from clinscribe.utils.llm_json import parse_llm_json

_NOW = datetime(2024, 3, 5, 14, 30, 0)


class FakeLLM(LLMProvider):
    name = "fake"

    def __init__(self, response: str) -> None:
        self.response = response
        self.calls: list[list[Message]] = []

    async def complete(self, messages, temperature=None, max_tokens=None) -> str:
        self.calls.append(list(messages))
        return self.response


def _response(**fields) -> str:
    payload = {
        "patientName": "Asha Rao",
        "symptoms": "- Headache for 3 days\n- Mild fever",
        "medicalHistory": "Type 2 diabetes",
        "medications": "Metformin 500 mg twice daily",
        "medicalSummary": "Likely viral fever.\n\n\n\nReview in 3 days.",
    }
    payload.update(fields)
    return "```json\n" + json.dumps(payload) + "\n```"


def test_parse_intake_response_maps_and_formats_fields() -> None:
    record = parse_intake_response(_response(), now=_NOW, transcript="t")

    assert record.patient_name == "Asha Rao"
    assert record.symptoms == "• Headache for 3 days\n• Mild fever"
    assert record.medical_history == "Type 2 diabetes"
    assert record.medications == "Metformin 500 mg twice daily"
    assert record.medical_summary == "Likely viral fever.\n\nReview in 3 days."
    assert record.timestamp == "2024-03-05 14:30:00"
    assert record.transcript == "t"


def test_missing_or_empty_fields_read_not_mentioned() -> None:
    record = parse_intake_response(json.dumps({"symptoms": "", "medications": None}), now=_NOW)
    assert record.patient_name == NOT_MENTIONED
    assert record.symptoms == NOT_MENTIONED
    assert record.medications == NOT_MENTIONED
    assert record.medical_history == NOT_MENTIONED
    assert record.medical_summary == NOT_MENTIONED


def test_list_fields_become_bullets() -> None:
    record = parse_intake_response(json.dumps({"medications": ["Paracetamol 650 mg", "ORS"]}), now=_NOW)
    assert record.medications == "• Paracetamol 650 mg\n• ORS"


def test_non_json_response_is_extraction_error() -> None:
    with pytest.raises(ExtractionError):
        parse_intake_response("Sorry, I cannot help with that.")


def test_json_array_response_is_extraction_error() -> None:
    with pytest.raises(ExtractionError):
        parse_intake_response('[{"patientName": "x"}]')


def test_format_medical_text() -> None:
    assert format_medical_text(None) == NOT_MENTIONED
    assert format_medical_text("   ") == NOT_MENTIONED
    assert format_medical_text("a\n- b\n-c") == "a\n• b\n-c"
    assert format_medical_text("a\n\n\n\n\nb") == "a\n\nb"


def test_parse_llm_json_variants() -> None:
    assert parse_llm_json('{"a": 1}') == {"a": 1}
    assert parse_llm_json('```\n{"a": 2}\n```') == {"a": 2}
    assert parse_llm_json('Here you go:\n{"a": 3}\nThanks!') == {"a": 3}
    assert parse_llm_json("<think>hmm</think>[1, 2]") == [1, 2]
    with pytest.raises(json.JSONDecodeError):
        parse_llm_json("no json here")


def test_intake_prompt_embeds_transcript_and_keys() -> None:
    prompt = build_intake_prompt("Doctor: what brings you in?")
    assert 'Transcript to analyze: "Doctor: what brings you in?"' in prompt
    for key in ("patientName", "symptoms", "medicalHistory", "medications", "medicalSummary"):
        assert f'"{key}"' in prompt


@pytest.mark.asyncio
async def test_extractor_sends_prompt_and_parses_record() -> None:
    llm = FakeLLM(_response())
    record = await IntakeExtractor(llm).extract("  Patient Asha has a headache.  ", now=_NOW)

    assert record.patient_name == "Asha Rao"
    assert record.transcript == "Patient Asha has a headache."
    (messages,) = llm.calls
    assert messages[0].role == "user"
    assert "Patient Asha has a headache." in messages[0].content


@pytest.mark.asyncio
async def test_extractor_rejects_empty_transcript() -> None:
    llm = FakeLLM(_response())
    with pytest.raises(ExtractionError):
        await IntakeExtractor(llm).extract("   ")
    assert llm.calls == []


def test_gemini_generation_config_defaults() -> None:
    provider = GeminiProvider(api_key="k", model="gemini-1.5-flash")
    assert provider.build_generation_config(None, None) == {"temperature": 0.3, "top_p": 0.8, "top_k": 40}
    assert provider.build_generation_config(0.0, 256)["max_output_tokens"] == 256


def test_gemini_requires_api_key() -> None:
    with pytest.raises(ValueError):
        GeminiProvider(api_key="", model="gemini-1.5-flash")


def test_gemini_message_conversion() -> None:
    system, rest = _split_system_instruction(
        [
            Message(role="system", content="be precise"),
            Message(role="user", content="hi"),
            Message(role="assistant", content="hello"),
        ]
    )
    assert system == "be precise"
    assert _to_gemini_contents(rest) == [
        {"role": "user", "parts": [{"text": "hi"}]},
        {"role": "model", "parts": [{"text": "hello"}]},
    ]

"""Structured clinical field extraction from a consultation transcript."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any

from clinscribe.error_codes import ErrorCode
from clinscribe.exceptions import ExtractionError
from clinscribe.models.record import NOT_MENTIONED, ClinicalRecord
from clinscribe.providers.llm.base import LLMProvider, Message
from clinscribe.utils.llm_json import parse_llm_json

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Response key -> ClinicalRecord attribute.
RESPONSE_FIELDS: dict[str, str] = {
    "patientName": "patient_name",
    "symptoms": "symptoms",
    "medicalHistory": "medical_history",
    "medications": "medications",
    "medicalSummary": "medical_summary",
}

_DASH_BULLET_RE = re.compile(r"^- ", re.MULTILINE)
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

_INTAKE_PROMPT = """As a medical documentation assistant, analyze this clinical conversation transcript and extract detailed medical information. This is being used in a healthcare setting, so pay special attention to medical terminology, lab values, and clinical findings.

Please analyze and structure the following information with high attention to medical accuracy:

1. Patient Information:
   - Full name (if mentioned)
   - Age and gender (if mentioned)
   - Any demographic details provided

2. Chief Complaints and Symptoms:
   - Primary complaints
   - Associated symptoms
   - Onset, duration, and severity
   - Aggravating/alleviating factors
   - Pattern and progression of symptoms

3. Medical History:
   - Past medical conditions
   - Surgical history
   - Family history of diseases
   - Current medical conditions
   - Allergies and reactions
   - Previous hospitalizations
   - Immunization status

4. Medications:
   - Current medications with dosages
   - Recent medication changes
   - Over-the-counter medications
   - Supplements and herbal remedies
   - Medication allergies
   - Medication compliance

5. Clinical Assessment:
   - Vital signs if mentioned
   - Physical examination findings
   - Lab test results and values
   - Imaging or diagnostic test results
   - Differential diagnoses discussed
   - Treatment plan modifications

Medical Summary:
Create a comprehensive yet concise summary that includes:
- Key clinical findings
- Primary concerns
- Treatment decisions
- Follow-up plans
- Critical medical instructions
- Any urgent care instructions
- Referrals or specialist consultations

Transcript to analyze: "{transcript}"

Return the response in this exact JSON format:
{{
    "patientName": "Full name or 'Not provided'",
    "symptoms": "Detailed list of symptoms with characteristics",
    "medicalHistory": "Comprehensive medical history including conditions, surgeries, and family history",
    "medications": "Complete medication list with dosages and recent changes",
    "medicalSummary": "Detailed clinical summary with key findings and plan"
}}

Important notes:
1. Maintain medical terminology where used
2. Include numerical values for lab results exactly as stated
3. Preserve dosage information precisely
4. Note any critical or abnormal findings
5. Highlight any urgent follow-up requirements
6. If information is not mentioned, state 'Not discussed in conversation'
7. Flag any concerning symptoms or values that require immediate attention"""


def build_intake_prompt(transcript: str) -> str:
    return _INTAKE_PROMPT.format(transcript=transcript)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(f"- {str(item).strip()}" for item in value if str(item).strip())
    if isinstance(value, dict):
        return "\n".join(f"- {k}: {v}" for k, v in value.items())
    return str(value).strip()


def format_medical_text(value: Any) -> str:
    """Normalize an extracted field for display.

    Leading ``- `` list markers become ``• `` bullets and runs of three or
    more newlines collapse to one blank line. Empty values read "Not mentioned".
    """
    text = _as_text(value)
    if not text:
        return NOT_MENTIONED
    text = _DASH_BULLET_RE.sub("• ", text)
    return _EXCESS_NEWLINES_RE.sub("\n\n", text)


def parse_intake_response(
    text: str,
    *,
    now: datetime | None = None,
    transcript: str = "",
) -> ClinicalRecord:
    """Turn a model response into a :class:`ClinicalRecord`."""
    try:
        data = parse_llm_json(text)
    except json.JSONDecodeError as exc:
        logger.warning("unparseable extraction response (chars=%s, error=%s)", len(text or ""), exc)
        raise ExtractionError(
            "extraction",
            f"response is not valid JSON: {exc}",
            error_code=ErrorCode.LLM_FAILED,
        ) from exc
    if not isinstance(data, dict):
        raise ExtractionError(
            "extraction",
            f"expected a JSON object, got {type(data).__name__}",
            error_code=ErrorCode.LLM_FAILED,
        )

    fields: dict[str, str] = {}
    for key, attr in RESPONSE_FIELDS.items():
        if attr == "patient_name":
            fields[attr] = _as_text(data.get(key)) or NOT_MENTIONED
        else:
            fields[attr] = format_medical_text(data.get(key))

    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return ClinicalRecord(**fields, timestamp=stamp, transcript=transcript)


class IntakeExtractor:
    """Ask an LLM for the intake fields of one transcript."""

    def __init__(self, llm: LLMProvider, *, temperature: float | None = None) -> None:
        self.llm = llm
        self.temperature = temperature

    async def extract(self, transcript: str, *, now: datetime | None = None) -> ClinicalRecord:
        transcript = (transcript or "").strip()
        if not transcript:
            raise ExtractionError("extraction", "transcript is empty", error_code=ErrorCode.LLM_FAILED)

        messages = [Message(role="user", content=build_intake_prompt(transcript))]
        text = await self.llm.complete(messages, temperature=self.temperature)
        record = parse_intake_response(text, now=now, transcript=transcript)
        logger.info(
            "intake extracted (transcript_chars=%s, patient_named=%s)",
            len(transcript),
            record.patient_name != NOT_MENTIONED,
        )
        return record

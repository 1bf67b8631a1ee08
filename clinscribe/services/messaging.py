"""WhatsApp hand-off of a finished intake report."""

from __future__ import annotations

from urllib.parse import quote

from clinscribe.models.record import ClinicalRecord

PHONE_DIGITS = 10


def normalize_phone(number: str | None) -> str | None:
    """Return the bare 10-digit number, or None if *number* is not one."""
    digits = "".join(ch for ch in str(number or "") if ch.isdigit())
    if len(digits) != PHONE_DIGITS:
        return None
    return digits


def format_report(record: ClinicalRecord) -> str:
    return (
        f"*Medical Report for {record.patient_name}*\n"
        "\n"
        "*Symptoms:*\n"
        f"{record.symptoms}\n"
        "\n"
        "*Medical History:*\n"
        f"{record.medical_history}\n"
        "\n"
        "*Medications:*\n"
        f"{record.medications}\n"
        "\n"
        "*Medical Summary:*\n"
        f"{record.medical_summary}\n"
        "\n"
        f"*Timestamp:* {record.timestamp}"
    )


def build_whatsapp_url(
    phone: str,
    record: ClinicalRecord,
    *,
    country_code: str = "91",
    base_url: str = "https://wa.me",
) -> str:
    """Build a click-to-chat link carrying the formatted report.

    Raises:
        ValueError: If *phone* is not a 10-digit number.
    """
    digits = normalize_phone(phone)
    if digits is None:
        raise ValueError(f"expected a {PHONE_DIGITS}-digit phone number, got {phone!r}")
    cc = "".join(ch for ch in str(country_code) if ch.isdigit())
    text = quote(format_report(record), safe="")
    return f"{base_url.rstrip('/')}/{cc}{digits}?text={text}"

"""Downstream services: record submission, messaging, local preferences."""

from clinscribe.services.airtable import AirtableClient, record_fields
from clinscribe.services.messaging import build_whatsapp_url, format_report, normalize_phone
from clinscribe.services.phone_store import PhoneNumberStore

__all__ = [
    "AirtableClient",
    "PhoneNumberStore",
    "build_whatsapp_url",
    "format_report",
    "normalize_phone",
    "record_fields",
]

"""Canonical error codes surfaced to the CLI and callers."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"

    DEVICE_UNAVAILABLE = "DEVICE_UNAVAILABLE"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    INVALID_STATE = "INVALID_STATE"
    DECODE_FAILED = "DECODE_FAILED"
    ENCODE_FAILED = "ENCODE_FAILED"

    ASR_FAILED = "ASR_FAILED"
    LLM_FAILED = "LLM_FAILED"
    SUBMIT_FAILED = "SUBMIT_FAILED"

    PROVIDER_FAILED = "PROVIDER_FAILED"

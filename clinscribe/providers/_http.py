"""Shared HTTP error handling and retry policy for provider clients."""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
from tenacity import RetryCallState, wait_exponential

from clinscribe.error_codes import ErrorCode
from clinscribe.exceptions import ProviderError

_WAIT_NORMAL = wait_exponential(min=1, max=10)
_WAIT_RATE_LIMIT = wait_exponential(min=2, max=30)

MAX_ATTEMPTS = 3


class RetryableProviderError(ProviderError):
    """Transient provider failure (transport error, 429, 5xx)."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        rate_limited: bool = False,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(provider, message, error_code=error_code)
        self.rate_limited = bool(rate_limited)


def wait_retry(state: RetryCallState) -> float:
    exc = state.outcome.exception() if state.outcome else None
    if isinstance(exc, RetryableProviderError) and exc.rate_limited:
        return _WAIT_RATE_LIMIT(state)
    return _WAIT_NORMAL(state)


def log_retry(logger: logging.Logger) -> Callable[[RetryCallState], None]:
    def _log(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        provider = "http"
        if state.args:
            provider = getattr(state.args[0], "name", provider)
        wait_s = state.next_action.sleep if state.next_action else None
        logger.warning(
            "provider retrying (provider=%s, attempt=%s, wait_s=%s, error=%s)",
            provider,
            state.attempt_number,
            wait_s,
            exc,
        )

    return _log


def format_http_error(response: httpx.Response) -> str:
    status = response.status_code
    reason = response.reason_phrase
    detail = ""
    try:
        detail = response.text.strip()
    except Exception:
        detail = repr(response.content)
    if detail:
        if len(detail) > 2000:
            detail = detail[:2000] + "…"
        return f"HTTP {status} {reason}: {detail}"
    return f"HTTP {status} {reason}"


def raise_for_response(provider: str, response: httpx.Response, error_code: ErrorCode) -> None:
    """Map an HTTP error status onto retryable / terminal provider errors."""
    status = response.status_code
    if status < 400:
        return
    message = format_http_error(response)
    if status == 429 or status >= 500:
        raise RetryableProviderError(provider, message, rate_limited=status == 429, error_code=error_code)
    raise ProviderError(provider, message, error_code=error_code)


def json_body(provider: str, response: httpx.Response, error_code: ErrorCode) -> dict:
    try:
        data = response.json()
    except ValueError as exc:
        raise ProviderError(provider, f"invalid JSON response: {exc}", error_code=error_code) from exc
    if not isinstance(data, dict):
        raise ProviderError(provider, f"expected JSON object, got {type(data).__name__}", error_code=error_code)
    return data

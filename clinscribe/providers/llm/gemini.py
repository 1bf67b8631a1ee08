"""Google Gemini LLM Provider implementation (google-generativeai SDK)."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, TypedDict

from clinscribe.error_codes import ErrorCode
from clinscribe.exceptions import ProviderError
from clinscribe.providers.llm.base import LLMCompletionResult, LLMProvider, LLMUsage, Message

logger = logging.getLogger(__name__)


class _GeminiPart(TypedDict):
    text: str


class _GeminiContent(TypedDict):
    role: str
    parts: list[_GeminiPart]


# genai.configure() mutates module-global client state.
_GENAI_LOCK = threading.Lock()


def _coerce_usage(value: Any) -> int | None:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _parse_usage_metadata(obj: object) -> LLMUsage | None:
    usage_obj: object | None = getattr(obj, "usage_metadata", None)
    if usage_obj is None and isinstance(obj, dict):
        usage_obj = obj.get("usage_metadata")
    if usage_obj is None:
        return None

    def _get(field: str) -> int | None:
        if isinstance(usage_obj, dict):
            return _coerce_usage(usage_obj.get(field))
        return _coerce_usage(getattr(usage_obj, field, None))

    prompt = _get("prompt_token_count")
    completion = _get("candidates_token_count")
    total = _get("total_token_count")
    if prompt is None and completion is None and total is None:
        return None
    return LLMUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


def _split_system_instruction(messages: list[Message]) -> tuple[str | None, list[Message]]:
    system_chunks: list[str] = []
    non_system: list[Message] = []
    for m in messages:
        if str(m.role or "").strip().lower() == "system":
            if m.content:
                system_chunks.append(m.content)
            continue
        non_system.append(m)
    system_instruction = "\n\n".join(system_chunks).strip()
    return system_instruction or None, non_system


def _to_gemini_contents(messages: list[Message]) -> list[_GeminiContent]:
    contents: list[_GeminiContent] = []
    for m in messages:
        role = str(m.role or "").strip().lower()
        role = "model" if role in {"assistant", "model"} else "user"
        contents.append({"role": role, "parts": [{"text": str(m.content)}]})
    return contents


def _response_text(response: object) -> str:
    try:
        text = str(getattr(response, "text", "") or "").strip()
    except ValueError:
        # .text raises when the candidate was blocked or has no parts.
        text = ""
    if text:
        return text
    candidates = getattr(response, "candidates", None)
    if candidates:
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None)
        if parts:
            return str(getattr(parts[0], "text", "") or "").strip()
    return ""


class GeminiProvider(LLMProvider):
    """Google Gemini API provider (Google AI Studio / compatible endpoints)."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        *,
        temperature: float = 0.3,
        top_p: float | None = 0.8,
        top_k: int | None = 40,
    ) -> None:
        self.api_key = str(api_key or "")
        self.model = str(model or "").strip()
        self.base_url = str(base_url or "").strip() or None
        if not self.api_key:
            raise ValueError("GeminiProvider requires api_key")
        if not self.model:
            raise ValueError("GeminiProvider requires model")
        self.temperature = float(temperature)
        self.top_p = top_p
        self.top_k = top_k

    def build_generation_config(self, temperature: float | None, max_tokens: int | None) -> dict[str, Any]:
        cfg: dict[str, Any] = {
            "temperature": float(self.temperature if temperature is None else temperature),
        }
        if self.top_p is not None:
            cfg["top_p"] = float(self.top_p)
        if self.top_k is not None:
            cfg["top_k"] = int(self.top_k)
        if max_tokens is not None:
            cfg["max_output_tokens"] = int(max_tokens)
        return cfg

    def _generate_sync(
        self,
        contents: list[_GeminiContent],
        *,
        system_instruction: str | None,
        generation_config: dict[str, Any],
    ) -> object:
        import google.generativeai as genai  # type: ignore[import-not-found]

        kwargs: dict[str, Any] = {"api_key": self.api_key}
        if self.base_url:
            kwargs["client_options"] = {"api_endpoint": self.base_url}

        with _GENAI_LOCK:
            genai.configure(**kwargs)
            model_kwargs: dict[str, Any] = {"model_name": self.model}
            if system_instruction:
                model_kwargs["system_instruction"] = system_instruction
            model = genai.GenerativeModel(**model_kwargs)
            return model.generate_content(
                contents,
                generation_config=genai.types.GenerationConfig(**generation_config),
            )

    async def _generate(
        self,
        messages: list[Message],
        *,
        temperature: float | None,
        max_tokens: int | None,
    ) -> tuple[str, LLMUsage | None]:
        system_instruction, non_system = _split_system_instruction(messages)
        contents = _to_gemini_contents(non_system)
        generation_config = self.build_generation_config(temperature, max_tokens)
        started = time.perf_counter()
        try:
            response = await asyncio.to_thread(
                self._generate_sync,
                contents,
                system_instruction=system_instruction,
                generation_config=generation_config,
            )
        except Exception as exc:
            logger.warning("llm request failed: %s", exc)
            raise ProviderError(self.name, str(exc), error_code=ErrorCode.LLM_FAILED) from exc

        latency_ms = int((time.perf_counter() - started) * 1000)
        usage = _parse_usage_metadata(response)
        logger.info(
            "llm call (provider=%s, model=%s, latency_ms=%s, prompt_tokens=%s, completion_tokens=%s, total_tokens=%s)",
            self.name,
            self.model,
            latency_ms,
            getattr(usage, "prompt_tokens", None),
            getattr(usage, "completion_tokens", None),
            getattr(usage, "total_tokens", None),
        )
        return _response_text(response), usage

    async def complete(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        text, _usage = await self._generate(messages, temperature=temperature, max_tokens=max_tokens)
        return text

    async def complete_with_usage(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMCompletionResult:
        text, usage = await self._generate(messages, temperature=temperature, max_tokens=max_tokens)
        return LLMCompletionResult(text=text, usage=usage)

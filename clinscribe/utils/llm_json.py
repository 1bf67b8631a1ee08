"""LLM JSON parsing with Markdown code block support."""

from __future__ import annotations

import json
import re
from typing import Any, cast

_THINK_BLOCK_RE = re.compile(r"^\s*<think>[\s\S]*?</think>\s*", re.IGNORECASE)
_CODE_BLOCK_PATTERNS = (
    re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE),
    re.compile(r"```\s*([\s\S]*?)\s*```"),
)

JSONData = dict[str, Any] | list[Any]


def parse_llm_json(text: str) -> JSONData:
    """Parse JSON from LLM output, supporting Markdown code blocks.

    Handles plain JSON, ```json fenced blocks, bare ``` fences and JSON
    surrounded by prose (the outermost ``{...}`` / ``[...]`` is tried last).

    Raises:
        json.JSONDecodeError: If no JSON object or array can be recovered.
    """
    text = _THINK_BLOCK_RE.sub("", (text or "").strip()).strip()

    for pattern in _CODE_BLOCK_PATTERNS:
        match = pattern.search(text)
        if match:
            text = match.group(1).strip()
            break

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        first_error = exc
    else:
        if isinstance(data, (dict, list)):
            return cast(JSONData, data)
        raise json.JSONDecodeError("Expected a JSON object/array", text, 0)

    starts = [(idx, ch) for ch in ("{", "[") if (idx := text.find(ch)) != -1]
    if not starts:
        raise first_error

    start_idx, start_ch = min(starts)
    end_idx = text.rfind("}" if start_ch == "{" else "]")
    if end_idx <= start_idx:
        raise first_error

    candidate = text[start_idx : end_idx + 1]
    data = json.loads(candidate)
    if isinstance(data, (dict, list)):
        return cast(JSONData, data)
    raise json.JSONDecodeError("Expected a JSON object/array", candidate, 0)

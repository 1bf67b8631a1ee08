"""LLM Provider base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class Message:
    """A chat message."""

    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass
class LLMUsage:
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


@dataclass
class LLMCompletionResult:
    text: str
    usage: LLMUsage | None = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name: str

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Generate a completion.

        Args:
            messages: List of chat messages.
            temperature: Sampling temperature; provider default when None.
            max_tokens: Maximum tokens to generate.

        Returns:
            Generated text.
        """
        ...

    async def complete_with_usage(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMCompletionResult:
        text = await self.complete(messages, temperature=temperature, max_tokens=max_tokens)
        return LLMCompletionResult(text=text, usage=None)

    async def close(self) -> None:
        """Close any underlying resources (optional)."""
        return None

"""ASR Provider base class."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence

from clinscribe.models.audio import WAV_MEDIA_TYPE, PcmContainer


def audio_payload(audio: PcmContainer | bytes, media_type: str | None) -> tuple[bytes, str]:
    """Return request body bytes and content type for *audio*."""
    if isinstance(audio, PcmContainer):
        return audio.data, media_type or audio.media_type
    return bytes(audio), media_type or WAV_MEDIA_TYPE


class ASRProvider(ABC):
    """Abstract base class for ASR providers."""

    name: str
    max_concurrent: int = 4

    @abstractmethod
    async def transcribe(
        self,
        audio: PcmContainer | bytes,
        language: str | None = None,
        *,
        media_type: str | None = None,
    ) -> str:
        """Transcribe one audio payload.

        Args:
            audio: WAV container or raw file bytes.
            language: Optional language hint (e.g. ``en``, ``kn``).
            media_type: Content type of *audio* when passing bytes.

        Returns:
            Transcribed text.
        """
        ...

    async def transcribe_many(
        self,
        containers: Sequence[PcmContainer],
        language: str | None = None,
    ) -> str:
        """Transcribe consecutive segments and join them in order."""
        semaphore = asyncio.Semaphore(max(1, int(self.max_concurrent)))

        async def _one(container: PcmContainer) -> str:
            async with semaphore:
                return (await self.transcribe(container, language)).strip()

        # Siblings are cancelled as soon as one segment fails.
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(_one(c)) for c in containers]
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None
        texts = [task.result() for task in tasks]
        return " ".join(t for t in texts if t)

    async def close(self) -> None:  # pragma: no cover
        return None

    async def __aenter__(self) -> "ASRProvider":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

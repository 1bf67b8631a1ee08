"""Audio decoder abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod

from clinscribe.models.audio import RawAudioBuffer


class AudioDecoder(ABC):
    """Decode an encoded or containerized byte buffer into float PCM."""

    name: str

    @abstractmethod
    async def decode(self, data: bytes, media_type: str | None = None) -> RawAudioBuffer:
        """Decode *data*.

        Args:
            data: Encoded audio bytes.
            media_type: Declared media type; a hint only, except for raw PCM
                where it carries the sample layout.

        Raises:
            DecodeError: the bytes are not a decodable audio format.
        """
        ...

    async def close(self) -> None:  # pragma: no cover
        return None

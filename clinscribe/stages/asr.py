"""Transcription stage."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import cast

from clinscribe.config import Settings
from clinscribe.pipeline.context import IntakeContext
from clinscribe.providers import get_asr_provider, provider_for_language
from clinscribe.providers.asr.base import ASRProvider
from clinscribe.stages.base import Stage

logger = logging.getLogger(__name__)


class TranscriptionStage(Stage):
    """Stage 2: route containers to the recognizer for the session language.

    Providers are created on first use so only the credentials of the routed
    provider are required.
    """

    name = "transcription"

    def __init__(
        self,
        settings: Settings,
        *,
        providers: Mapping[str, ASRProvider] | None = None,
    ) -> None:
        self.settings = settings
        self._providers: dict[str, ASRProvider] = dict(providers or {})

    def _provider(self, name: str) -> ASRProvider:
        provider = self._providers.get(name)
        if provider is None:
            provider = get_asr_provider(name, self.settings)
            self._providers[name] = provider
        return provider

    def validate_input(self, context: IntakeContext) -> bool:
        return bool(context.get("containers"))

    async def execute(self, context: IntakeContext) -> IntakeContext:
        context = cast(IntakeContext, dict(context))
        language = context.get("language") or self.settings.asr.default_language
        name = provider_for_language(language, self.settings)
        containers = context["containers"]

        transcript = await self._provider(name).transcribe_many(containers, language)
        logger.info(
            "transcription done (provider=%s, language=%s, segments=%s, chars=%s)",
            name,
            language,
            len(containers),
            len(transcript),
        )
        context["asr_provider"] = name
        context["transcript"] = transcript
        return context

    async def close(self) -> None:
        for provider in self._providers.values():
            await provider.close()

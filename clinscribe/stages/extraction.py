"""Structured extraction stage."""

from __future__ import annotations

from typing import cast

from clinscribe.config import Settings
from clinscribe.extraction import IntakeExtractor
from clinscribe.pipeline.context import IntakeContext
from clinscribe.providers import get_llm_provider
from clinscribe.providers.llm.base import LLMProvider
from clinscribe.stages.base import Stage


class ExtractionStage(Stage):
    name = "extraction"

    def __init__(self, settings: Settings, *, llm: LLMProvider | None = None) -> None:
        self.settings = settings
        self.llm = llm or get_llm_provider(settings)
        self.extractor = IntakeExtractor(self.llm)

    def validate_input(self, context: IntakeContext) -> bool:
        return bool(str(context.get("transcript") or "").strip())

    async def execute(self, context: IntakeContext) -> IntakeContext:
        context = cast(IntakeContext, dict(context))
        context["record"] = await self.extractor.extract(context["transcript"])
        return context

    async def close(self) -> None:
        await self.llm.close()

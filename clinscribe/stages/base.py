"""Stage abstractions for pipeline execution."""

from __future__ import annotations

from abc import ABC, abstractmethod

from clinscribe.pipeline.context import IntakeContext


class Stage(ABC):
    """One step of the intake pipeline."""

    name: str

    @abstractmethod
    async def execute(self, context: IntakeContext) -> IntakeContext:
        """Run the stage and return the updated context."""

    @abstractmethod
    def validate_input(self, context: IntakeContext) -> bool:
        """Return True if *context* carries what this stage needs."""

    async def close(self) -> None:
        return None

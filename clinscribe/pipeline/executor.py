"""Pipeline executor."""

from __future__ import annotations

import logging
import time
from typing import cast

from clinscribe.exceptions import ClinScribeError, StageExecutionError
from clinscribe.pipeline.context import IntakeContext
from clinscribe.stages.base import Stage

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """Runs stages in order over a shared context."""

    def __init__(self, stages: list[Stage]):
        self.stages = stages

    async def run(self, initial_context: IntakeContext) -> IntakeContext:
        context = cast(IntakeContext, dict(initial_context))
        session_id = context.get("session_id")
        for stage in self.stages:
            if not stage.validate_input(context):
                raise StageExecutionError(stage.name, "input validation failed", session_id=session_id)
            started = time.perf_counter()
            try:
                context = await stage.execute(context)
            except StageExecutionError:
                raise
            except ClinScribeError as exc:
                logger.warning("stage failed (stage=%s, session_id=%s, error=%s)", stage.name, session_id, exc)
                raise StageExecutionError(
                    stage.name,
                    str(exc),
                    session_id=session_id,
                    error_code=getattr(exc, "error_code", None),
                ) from exc
            logger.info(
                "stage done (stage=%s, session_id=%s, elapsed_ms=%s)",
                stage.name,
                session_id,
                int((time.perf_counter() - started) * 1000),
            )
        return context

    async def close(self) -> None:
        for stage in self.stages:
            await stage.close()

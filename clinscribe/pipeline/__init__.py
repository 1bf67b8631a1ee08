"""Pipeline orchestration.

Stages import `clinscribe.pipeline.context` for type hints; keep these imports
lazy to avoid a circular import with `clinscribe.stages`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from clinscribe.pipeline.executor import PipelineExecutor
    from clinscribe.pipeline.factory import build_intake_pipeline

__all__ = ["PipelineExecutor", "build_intake_pipeline"]


def __getattr__(name: str) -> Any:
    if name == "PipelineExecutor":
        from clinscribe.pipeline.executor import PipelineExecutor

        return PipelineExecutor
    if name == "build_intake_pipeline":
        from clinscribe.pipeline.factory import build_intake_pipeline

        return build_intake_pipeline
    raise AttributeError(name)

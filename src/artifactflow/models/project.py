"""Project mode and persisted pipeline state."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ProjectMode(StrEnum):
    STANDARD = "STANDARD"
    QUICK = "QUICK"


class PipelineState(BaseModel):
    """Coarse pipeline pointer: active mode and current stage."""

    model_config = ConfigDict(extra="ignore")

    mode: ProjectMode
    pipeline_stage: str
    threshold_percent: float | None = Field(default=None, ge=0, le=100, strict=True)


class ProjectState(BaseModel):
    """The pipeline pointer persisted 1:1 per project (upserted by project id)."""

    project_id: str
    state: PipelineState
    updated_at: datetime = Field(default_factory=_utcnow)

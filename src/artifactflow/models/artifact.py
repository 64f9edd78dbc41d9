"""Artifact, artifact version and artifact type models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, Field

PREVIEW_ID_PREFIX = "preview-"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid4())


class ArtifactType(StrEnum):
    """Deliverable types, declared in standard pipeline order."""

    PHASE_1_CONTRACT = "phase_1_contract"
    DISCOVERY_REPORT = "discovery_report"
    LEARNER_PERSONA = "learner_persona"
    DESIGN_STRATEGY = "design_strategy"
    DESIGN_BLUEPRINT = "design_blueprint"
    SCENARIO_BANK = "scenario_bank"
    ASSESSMENT_KIT = "assessment_kit"
    FINAL_AUDIT = "final_audit"
    PERFORMANCE_RECOMMENDATION_REPORT = "performance_recommendation_report"


ARTIFACT_LABELS: dict[ArtifactType, str] = {
    ArtifactType.PHASE_1_CONTRACT: "Phase 1 Contract",
    ArtifactType.DISCOVERY_REPORT: "Discovery Report",
    ArtifactType.LEARNER_PERSONA: "Learner Persona",
    ArtifactType.DESIGN_STRATEGY: "Design Strategy",
    ArtifactType.DESIGN_BLUEPRINT: "Design Blueprint",
    ArtifactType.SCENARIO_BANK: "Scenario Bank",
    ArtifactType.ASSESSMENT_KIT: "Assessment Kit",
    ArtifactType.FINAL_AUDIT: "Final Audit",
    ArtifactType.PERFORMANCE_RECOMMENDATION_REPORT: "Performance Report",
}


class ArtifactStatus(StrEnum):
    DRAFT = "draft"
    APPROVED = "approved"
    STALE = "stale"


class Artifact(BaseModel):
    """A versioned deliverable tied to one pipeline phase of a project.

    ``is_preview`` is only ever set on records synthesized from a partial
    stream; such records carry an id starting with ``PREVIEW_ID_PREFIX`` and
    are never written to storage.
    """

    id: str = Field(default_factory=_new_id)
    project_id: str
    artifact_type: ArtifactType
    content: str
    status: ArtifactStatus = ArtifactStatus.DRAFT
    version: int = Field(default=1, ge=1)
    stale_reason: str | None = None
    approved_at: datetime | None = None
    approved_by: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    is_preview: bool = False

    @property
    def label(self) -> str:
        return ARTIFACT_LABELS[self.artifact_type]


class ArtifactVersion(BaseModel):
    """Immutable snapshot of an artifact's content before it was overwritten."""

    id: str = Field(default_factory=_new_id)
    artifact_id: str
    project_id: str
    artifact_type: ArtifactType
    content: str
    version: int
    created_at: datetime = Field(default_factory=_utcnow)


def is_preview_artifact(artifact: Artifact) -> bool:
    """Return True for ephemeral records built from a partial stream."""
    return artifact.is_preview or artifact.id.startswith(PREVIEW_ID_PREFIX)


def preview_id(artifact_type: ArtifactType) -> str:
    return f"{PREVIEW_ID_PREFIX}{artifact_type.value}"

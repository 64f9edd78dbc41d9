"""Pydantic domain models for artifactflow."""

from artifactflow.models.artifact import (
    ARTIFACT_LABELS,
    PREVIEW_ID_PREFIX,
    Artifact,
    ArtifactStatus,
    ArtifactType,
    ArtifactVersion,
    is_preview_artifact,
)
from artifactflow.models.errors import FieldError, ValidationResult
from artifactflow.models.project import PipelineState, ProjectMode, ProjectState
from artifactflow.models.response import (
    MIN_CONTENT_LENGTH,
    DraftStatus,
    ParsedArtifact,
    ParsedResponse,
)

__all__ = [
    "ARTIFACT_LABELS",
    "MIN_CONTENT_LENGTH",
    "PREVIEW_ID_PREFIX",
    "Artifact",
    "ArtifactStatus",
    "ArtifactType",
    "ArtifactVersion",
    "DraftStatus",
    "FieldError",
    "ParsedArtifact",
    "ParsedResponse",
    "PipelineState",
    "ProjectMode",
    "ProjectState",
    "ValidationResult",
    "is_preview_artifact",
]

"""API request/response Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from artifactflow.models.artifact import Artifact, ArtifactType, ArtifactVersion
from artifactflow.models.project import PipelineState, ProjectMode
from artifactflow.models.response import ParsedResponse


class ParseRequest(BaseModel):
    """Request body for POST /parse."""

    raw_text: str = Field(description="Raw assistant output to parse")


class ParseResponseBody(BaseModel):
    """Response body for POST /parse."""

    success: bool
    data: ParsedResponse | None = None
    error: str | None = None
    raw_content: str | None = None
    strategy: str | None = None


class SchemaPromptResponse(BaseModel):
    """Response body for GET /parse/schema."""

    prompt: str


class WorkspaceOpenRequest(BaseModel):
    """Request body for POST /projects."""

    project_id: str = Field(min_length=1)
    mode: ProjectMode = ProjectMode.STANDARD


class WorkspaceResponse(BaseModel):
    """An open project workspace."""

    project_id: str
    mode: ProjectMode
    opened_at: datetime
    last_accessed_at: datetime
    artifact_count: int
    loading: bool


class WorkspaceListResponse(BaseModel):
    workspaces: list[WorkspaceResponse] = []


class ArtifactListResponse(BaseModel):
    artifacts: list[Artifact] = []


class TurnRequest(BaseModel):
    """Request body for POST /projects/{id}/responses."""

    raw_text: str


class TurnResponse(BaseModel):
    """Outcome of processing one complete assistant turn."""

    success: bool
    message: str | None = None
    artifact: Artifact | None = None
    state: PipelineState | None = None
    next_actions: list[str] = []
    error: str | None = None
    artifact_error: str | None = None
    raw_content: str | None = None


class PreviewRequest(BaseModel):
    """Request body for POST /projects/{id}/preview."""

    partial_text: str


class ApprovalResponse(BaseModel):
    artifact_id: str
    approved_ids: list[str] = []


class VersionListResponse(BaseModel):
    versions: list[ArtifactVersion] = []


class StateResponse(BaseModel):
    project_id: str
    state: PipelineState | None = None


class PipelineStep(BaseModel):
    position: int
    artifact_type: ArtifactType
    label: str


class PipelineResponse(BaseModel):
    """Response for GET /pipeline/{mode}."""

    mode: ProjectMode
    steps: list[PipelineStep] = []


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""

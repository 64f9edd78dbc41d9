"""Project-scoped endpoints: artifacts, turns, preview, approval and state."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, HTTPException

from artifactflow.api.deps import get_registry
from artifactflow.api.schemas import (
    ApprovalResponse,
    ArtifactListResponse,
    PreviewRequest,
    StateResponse,
    TurnRequest,
    TurnResponse,
    VersionListResponse,
    WorkspaceListResponse,
    WorkspaceOpenRequest,
    WorkspaceResponse,
)
from artifactflow.service.approval import ApprovalOutcome
from artifactflow.service.engine import ArtifactEngine
from artifactflow.service.workspace_registry import (
    WorkspaceInfo,
    WorkspaceNotFoundError,
    WorkspaceRegistry,
)

router = APIRouter()

_APPROVAL_STATUS = {
    ApprovalOutcome.NO_APPROVER: 401,
    ApprovalOutcome.NOT_FOUND: 404,
    ApprovalOutcome.PREVIEW: 409,
    ApprovalOutcome.PERSISTENCE_FAILED: 502,
}


# -- helpers -----------------------------------------------------------------


def _get_engine(project_id: str, registry: WorkspaceRegistry) -> ArtifactEngine:
    """Resolve project_id to its engine, raise 404 if not open/expired."""
    try:
        return registry.get(project_id)
    except WorkspaceNotFoundError:
        raise HTTPException(
            status_code=404, detail=f"Workspace '{project_id}' not found"
        ) from None


def _workspace_response(info: WorkspaceInfo) -> WorkspaceResponse:
    return WorkspaceResponse(**asdict(info))


# -- workspaces --------------------------------------------------------------


@router.post("", response_model=WorkspaceResponse, status_code=201)
async def open_workspace(
    body: WorkspaceOpenRequest,
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> WorkspaceResponse:
    """Open (or re-open) a project workspace and load its persisted artifacts."""
    engine, created = registry.open(body.project_id, body.mode)
    if created and not await engine.load():
        registry.close(body.project_id)
        raise HTTPException(status_code=502, detail="Failed to load project artifacts")
    return _workspace_response(registry.get_info(body.project_id))


@router.get("", response_model=WorkspaceListResponse)
async def list_workspaces(
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> WorkspaceListResponse:
    return WorkspaceListResponse(
        workspaces=[_workspace_response(i) for i in registry.list_workspaces()]
    )


@router.get("/{project_id}", response_model=WorkspaceResponse)
async def get_workspace(
    project_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> WorkspaceResponse:
    try:
        info = registry.get_info(project_id)
    except WorkspaceNotFoundError:
        raise HTTPException(
            status_code=404, detail=f"Workspace '{project_id}' not found"
        ) from None
    return _workspace_response(info)


@router.delete("/{project_id}", status_code=204)
async def close_workspace(
    project_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> None:
    """Close a workspace; persisted artifacts are kept."""
    try:
        registry.close(project_id)
    except WorkspaceNotFoundError:
        raise HTTPException(
            status_code=404, detail=f"Workspace '{project_id}' not found"
        ) from None


# -- artifacts ---------------------------------------------------------------


@router.get("/{project_id}/artifacts", response_model=ArtifactListResponse)
async def list_artifacts(
    project_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> ArtifactListResponse:
    engine = _get_engine(project_id, registry)
    return ArtifactListResponse(artifacts=engine.workspace.artifacts)


@router.post("/{project_id}/responses", response_model=TurnResponse)
async def submit_response(
    project_id: str,
    body: TurnRequest,
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> TurnResponse:
    """Parse a complete assistant turn, save its artifact and pipeline state.

    Parse failures are reported in the body (``success=false``) together with
    the raw content so the client can show it and retry. An artifact that was
    present but dropped during parsing is reported in ``artifact_error``.
    """
    engine = _get_engine(project_id, registry)
    result = await engine.process_response(body.raw_text)
    data = result.parsed.data
    return TurnResponse(
        success=result.parsed.success,
        message=result.message,
        artifact=result.artifact,
        state=result.state,
        next_actions=(data.next_actions or []) if data else [],
        error=result.parsed.error,
        artifact_error=result.artifact_error,
        raw_content=result.raw_content,
    )


@router.post("/{project_id}/preview", response_model=ArtifactListResponse)
async def preview(
    project_id: str,
    body: PreviewRequest,
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> ArtifactListResponse:
    """Merge the artifact found in partial streamed text over the persisted set."""
    engine = _get_engine(project_id, registry)
    return ArtifactListResponse(artifacts=engine.build_preview(body.partial_text))


@router.post(
    "/{project_id}/artifacts/{artifact_id}/approve", response_model=ApprovalResponse
)
async def approve_artifact(
    project_id: str,
    artifact_id: str,
    x_user_id: str | None = Header(default=None),
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> ApprovalResponse:
    """Approve an artifact and every unapproved artifact before it in the pipeline."""
    engine = _get_engine(project_id, registry)
    result = await engine.approve_with_result(artifact_id, approver=x_user_id)
    if not result.ok:
        raise HTTPException(
            status_code=_APPROVAL_STATUS[result.outcome], detail=result.error
        )
    return ApprovalResponse(artifact_id=artifact_id, approved_ids=result.approved_ids)


@router.get(
    "/{project_id}/artifacts/{artifact_id}/versions", response_model=VersionListResponse
)
async def list_versions(
    project_id: str,
    artifact_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> VersionListResponse:
    engine = _get_engine(project_id, registry)
    if engine.workspace.get(artifact_id) is None:
        raise HTTPException(status_code=404, detail=f"Artifact '{artifact_id}' not found")
    return VersionListResponse(versions=await engine.version_history(artifact_id))


# -- state -------------------------------------------------------------------


@router.get("/{project_id}/state", response_model=StateResponse)
async def get_state(
    project_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),  # noqa: B008
) -> StateResponse:
    engine = _get_engine(project_id, registry)
    return StateResponse(project_id=project_id, state=await engine.load_state())

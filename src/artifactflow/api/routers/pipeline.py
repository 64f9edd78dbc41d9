"""Pipeline order endpoint: GET /pipeline/{mode}."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from artifactflow.api.schemas import PipelineResponse, PipelineStep
from artifactflow.models.project import ProjectMode
from artifactflow.pipeline.order import PipelineOrder

router = APIRouter()


@router.get("/{mode}", response_model=PipelineResponse)
async def get_pipeline(mode: str) -> PipelineResponse:
    """List the artifact types of a mode in pipeline order."""
    try:
        order = PipelineOrder.for_mode(mode)
    except ValueError:
        valid = ", ".join(m.value for m in ProjectMode)
        raise HTTPException(
            status_code=404, detail=f"Unknown mode '{mode}' (expected one of: {valid})"
        ) from None
    return PipelineResponse(
        mode=order.mode,
        steps=[
            PipelineStep(position=i + 1, artifact_type=t, label=label)
            for i, (t, label) in enumerate(order.labels())
        ],
    )

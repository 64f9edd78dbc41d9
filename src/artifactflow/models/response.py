"""The one response shape the assistant is allowed to produce."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from artifactflow.models.artifact import ArtifactType
from artifactflow.models.project import PipelineState

MIN_CONTENT_LENGTH = 20
MAX_TITLE_LENGTH = 200


class DraftStatus(StrEnum):
    DRAFT = "draft"
    READY_FOR_REVIEW = "ready_for_review"


class ParsedArtifact(BaseModel):
    """A deliverable as emitted by the model, before reconciliation."""

    model_config = ConfigDict(extra="ignore")

    type: ArtifactType
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    content: str = Field(min_length=MIN_CONTENT_LENGTH)
    status: DraftStatus = DraftStatus.DRAFT


class ParsedResponse(BaseModel):
    """A validated assistant turn."""

    model_config = ConfigDict(extra="ignore")

    message: str = Field(min_length=1)
    artifact: ParsedArtifact | None = None
    state: PipelineState | None = None
    next_actions: list[str] | None = None


RESPONSE_SCHEMA_PROMPT = f"""
You MUST respond with valid JSON matching this exact schema:

{{
  "message": "Your natural language response to the user",
  "artifact": {{
    "type": "one of: {", ".join(t.value for t in ArtifactType)}",
    "title": "Title of the deliverable",
    "content": "The full markdown content of the deliverable"
  }},
  "state": {{
    "mode": "STANDARD or QUICK",
    "pipeline_stage": "current stage name"
  }},
  "next_actions": ["suggested next step 1", "suggested next step 2"]
}}

Rules:
- "message" is REQUIRED - always include a natural language response
- "artifact" is OPTIONAL - only include when generating a deliverable
- "state" is OPTIONAL - only include when pipeline state changes
- "next_actions" is OPTIONAL - include to guide the user
- Do NOT include any text outside the JSON object
- Do NOT wrap the JSON in markdown code blocks
"""

"""Shared test fixtures for artifactflow."""

from __future__ import annotations

import json

import pytest

from artifactflow.models.artifact import Artifact, ArtifactStatus, ArtifactType
from artifactflow.models.project import ProjectMode
from artifactflow.parser.extractor import ResponseExtractor
from artifactflow.parser.response_parser import ResponseParser
from artifactflow.parser.validator import SchemaValidator
from artifactflow.service.engine import ArtifactEngine
from artifactflow.service.workspace import ArtifactWorkspace
from artifactflow.service.workspace_registry import WorkspaceRegistry
from artifactflow.settings import Settings
from artifactflow.storage.memory import in_memory_repositories
from artifactflow.storage.repository import PersistenceError, Repositories

PROJECT_ID = "proj-1"

CONTRACT_CONTENT = "# Contract\n\nScope: onboarding course for new support agents."
CONTRACT_CONTENT_V2 = "# Contract\n\nScope: onboarding course for new support agents, v2."

SAMPLE_RESPONSE = {
    "message": "Here is your contract.",
    "artifact": {
        "type": "phase_1_contract",
        "title": "Phase 1 Contract",
        "content": CONTRACT_CONTENT,
    },
    "state": {"mode": "STANDARD", "pipeline_stage": "phase_1"},
    "next_actions": ["Review the contract", "Approve it"],
}

SAMPLE_RESPONSE_JSON = json.dumps(SAMPLE_RESPONSE)


def make_response(**overrides: object) -> str:
    """Serialize SAMPLE_RESPONSE with top-level keys replaced (None drops a key)."""
    body = dict(SAMPLE_RESPONSE)
    for key, value in overrides.items():
        if value is None:
            body.pop(key, None)
        else:
            body[key] = value
    return json.dumps(body)


def make_artifact(
    artifact_type: ArtifactType,
    content: str = "Some deliverable content that is long enough.",
    status: ArtifactStatus = ArtifactStatus.DRAFT,
    **fields: object,
) -> Artifact:
    fields.setdefault("project_id", PROJECT_ID)
    return Artifact(artifact_type=artifact_type, content=content, status=status, **fields)


class FailingArtifactRepository:
    """Wraps an artifact repository and rejects every write while ``failing`` is set."""

    def __init__(self, inner) -> None:
        self._inner = inner
        self.failing = True

    def __getattr__(self, name: str):
        return getattr(self._inner, name)

    async def create(self, artifact: Artifact) -> Artifact:
        if self.failing:
            raise PersistenceError("store unavailable")
        return await self._inner.create(artifact)

    async def update(self, artifact: Artifact) -> Artifact:
        if self.failing:
            raise PersistenceError("store unavailable")
        return await self._inner.update(artifact)

    async def update_many(self, artifact_ids: list[str], changes: dict) -> list[Artifact]:
        if self.failing:
            raise PersistenceError("store unavailable")
        return await self._inner.update_many(artifact_ids, changes)


@pytest.fixture
def extractor() -> ResponseExtractor:
    return ResponseExtractor()


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()


@pytest.fixture
def parser() -> ResponseParser:
    return ResponseParser()


@pytest.fixture
def repos() -> Repositories:
    return in_memory_repositories()


@pytest.fixture
def workspace() -> ArtifactWorkspace:
    return ArtifactWorkspace(PROJECT_ID, ProjectMode.STANDARD)


@pytest.fixture
def settings() -> Settings:
    return Settings(workspace_ttl_seconds=3600, workspace_cleanup_interval=9999)


@pytest.fixture
def engine(repos: Repositories, settings: Settings) -> ArtifactEngine:
    return ArtifactEngine(
        PROJECT_ID, repositories=repos, settings=settings, identity=lambda: "alice"
    )


@pytest.fixture
def registry(repos: Repositories, settings: Settings) -> WorkspaceRegistry:
    """WorkspaceRegistry with long TTL and no cleanup thread (for tests)."""
    return WorkspaceRegistry(
        ttl_seconds=3600, cleanup_interval=9999, repositories=repos, settings=settings
    )

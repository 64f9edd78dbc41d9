"""In-memory storage implementations for development/testing."""

from __future__ import annotations

from typing import Any

from artifactflow.models.artifact import Artifact, ArtifactVersion
from artifactflow.models.project import ProjectState
from artifactflow.storage.repository import (
    ArtifactRepository,
    ArtifactVersionRepository,
    PersistenceError,
    ProjectStateRepository,
    Repositories,
)


class InMemoryArtifactRepository(ArtifactRepository):
    """In-memory artifact repository. Returns copies so callers cannot mutate rows."""

    def __init__(self) -> None:
        self._store: dict[str, Artifact] = {}

    async def create(self, artifact: Artifact) -> Artifact:
        if artifact.is_preview:
            raise PersistenceError(f"Refusing to persist preview artifact '{artifact.id}'")
        if artifact.id in self._store:
            raise PersistenceError(f"Artifact '{artifact.id}' already exists")
        self._store[artifact.id] = artifact.model_copy()
        return artifact.model_copy()

    async def get(self, artifact_id: str) -> Artifact | None:
        artifact = self._store.get(artifact_id)
        return artifact.model_copy() if artifact else None

    async def list(self, project_id: str | None = None) -> list[Artifact]:
        artifacts = list(self._store.values())
        if project_id:
            artifacts = [a for a in artifacts if a.project_id == project_id]
        return [a.model_copy() for a in artifacts]

    async def update(self, artifact: Artifact) -> Artifact:
        if artifact.id not in self._store:
            raise PersistenceError(f"Artifact '{artifact.id}' not found")
        self._store[artifact.id] = artifact.model_copy()
        return artifact.model_copy()

    async def update_many(
        self, artifact_ids: list[str], changes: dict[str, Any]
    ) -> list[Artifact]:
        missing = [i for i in artifact_ids if i not in self._store]
        if missing:
            raise PersistenceError(f"Artifacts not found: {', '.join(missing)}")
        updated = [self._store[i].model_copy(update=changes) for i in artifact_ids]
        for artifact in updated:
            self._store[artifact.id] = artifact
        return [a.model_copy() for a in updated]


class InMemoryArtifactVersionRepository(ArtifactVersionRepository):
    """Append-only in-memory version history."""

    def __init__(self) -> None:
        self._rows: list[ArtifactVersion] = []

    async def append(self, version: ArtifactVersion) -> ArtifactVersion:
        self._rows.append(version.model_copy())
        return version

    async def list(self, artifact_id: str) -> list[ArtifactVersion]:
        rows = [v for v in self._rows if v.artifact_id == artifact_id]
        return sorted((v.model_copy() for v in rows), key=lambda v: v.version)


class InMemoryProjectStateRepository(ProjectStateRepository):
    """In-memory project state keyed by project id; upsert is last-write-wins."""

    def __init__(self) -> None:
        self._store: dict[str, ProjectState] = {}

    async def upsert(self, state: ProjectState) -> ProjectState:
        self._store[state.project_id] = state.model_copy()
        return state

    async def get(self, project_id: str) -> ProjectState | None:
        state = self._store.get(project_id)
        return state.model_copy() if state else None


def in_memory_repositories() -> Repositories:
    return Repositories(
        artifacts=InMemoryArtifactRepository(),
        versions=InMemoryArtifactVersionRepository(),
        states=InMemoryProjectStateRepository(),
    )

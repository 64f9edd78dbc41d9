"""Abstract repository interfaces for persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from artifactflow.models.artifact import Artifact, ArtifactVersion
from artifactflow.models.project import ProjectState


class PersistenceError(Exception):
    """Raised when the store rejects a read or write."""


class ArtifactRepository(ABC):
    @abstractmethod
    async def create(self, artifact: Artifact) -> Artifact: ...

    @abstractmethod
    async def get(self, artifact_id: str) -> Artifact | None: ...

    @abstractmethod
    async def list(self, project_id: str | None = None) -> list[Artifact]: ...

    @abstractmethod
    async def update(self, artifact: Artifact) -> Artifact: ...

    @abstractmethod
    async def update_many(
        self, artifact_ids: list[str], changes: dict[str, Any]
    ) -> list[Artifact]:
        """Apply the same field changes to every id in one batch."""


class ArtifactVersionRepository(ABC):
    @abstractmethod
    async def append(self, version: ArtifactVersion) -> ArtifactVersion: ...

    @abstractmethod
    async def list(self, artifact_id: str) -> list[ArtifactVersion]: ...


class ProjectStateRepository(ABC):
    @abstractmethod
    async def upsert(self, state: ProjectState) -> ProjectState:
        """Insert or replace the state row keyed by ``state.project_id``."""

    @abstractmethod
    async def get(self, project_id: str) -> ProjectState | None: ...


@dataclass
class Repositories:
    """The set of stores one project's engine reads and writes."""

    artifacts: ArtifactRepository
    versions: ArtifactVersionRepository
    states: ProjectStateRepository

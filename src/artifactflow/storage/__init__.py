"""Persistence contracts and in-memory implementations."""

from artifactflow.storage.memory import (
    InMemoryArtifactRepository,
    InMemoryArtifactVersionRepository,
    InMemoryProjectStateRepository,
    in_memory_repositories,
)
from artifactflow.storage.repository import (
    ArtifactRepository,
    ArtifactVersionRepository,
    PersistenceError,
    ProjectStateRepository,
    Repositories,
)

__all__ = [
    "ArtifactRepository",
    "ArtifactVersionRepository",
    "InMemoryArtifactRepository",
    "InMemoryArtifactVersionRepository",
    "InMemoryProjectStateRepository",
    "PersistenceError",
    "ProjectStateRepository",
    "Repositories",
    "in_memory_repositories",
]

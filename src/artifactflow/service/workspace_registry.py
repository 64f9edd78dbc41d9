"""Workspace registry: TTL-scoped ArtifactEngine instances keyed by project id."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from artifactflow.models.project import ProjectMode
from artifactflow.service.engine import ArtifactEngine
from artifactflow.settings import Settings
from artifactflow.storage.memory import in_memory_repositories
from artifactflow.storage.repository import Repositories


class WorkspaceNotFoundError(KeyError):
    """Raised when a project workspace is not open or has expired."""


@dataclass
class WorkspaceInfo:
    """Public workspace metadata (returned by list/get)."""

    project_id: str
    mode: ProjectMode
    opened_at: datetime
    last_accessed_at: datetime
    artifact_count: int
    loading: bool


@dataclass
class _Workspace:
    """Internal registry entry."""

    engine: ArtifactEngine
    last_accessed: float  # monotonic clock for TTL checks
    opened_at_wall: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_accessed_wall: datetime = field(default_factory=lambda: datetime.now(UTC))


class WorkspaceRegistry:
    """Keeps one :class:`ArtifactEngine` per open project, all sharing one store.

    Thread-safe.  Call :meth:`start` to begin the background cleanup thread
    and :meth:`stop` to shut it down.  Evicting a workspace drops only the
    in-memory view; persisted artifacts stay in the repositories.
    """

    def __init__(
        self,
        ttl_seconds: int = 1800,
        cleanup_interval: float = 60,
        repositories: Repositories | None = None,
        settings: Settings | None = None,
        engine_factory: Callable[[str, ProjectMode], ArtifactEngine] | None = None,
    ) -> None:
        self._ttl = ttl_seconds
        self._cleanup_interval = cleanup_interval
        self._repos = repositories or in_memory_repositories()
        self._settings = settings or Settings()
        self._engine_factory = engine_factory or self._default_engine
        self._lock = threading.Lock()
        self._workspaces: dict[str, _Workspace] = {}
        self._stop_event = threading.Event()
        self._cleanup_thread: threading.Thread | None = None

    @property
    def repositories(self) -> Repositories:
        return self._repos

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Start the background cleanup daemon thread."""
        if self._cleanup_thread is not None:
            return
        self._stop_event.clear()
        self._cleanup_thread = threading.Thread(
            target=self._cleanup_loop, daemon=True, name="workspace-cleanup"
        )
        self._cleanup_thread.start()

    def stop(self) -> None:
        """Signal the cleanup thread to stop and wait for it."""
        self._stop_event.set()
        if self._cleanup_thread is not None:
            self._cleanup_thread.join(timeout=5)
            self._cleanup_thread = None

    # -- public API ----------------------------------------------------------

    def open(
        self, project_id: str, mode: ProjectMode = ProjectMode.STANDARD
    ) -> tuple[ArtifactEngine, bool]:
        """Return the project's engine, creating it if needed.

        The second element is True when the engine was newly created and
        still needs :meth:`ArtifactEngine.load`.
        """
        now_mono = time.monotonic()
        with self._lock:
            entry = self._workspaces.get(project_id)
            if entry is not None and now_mono - entry.last_accessed <= self._ttl:
                self._touch(entry, now_mono)
                return entry.engine, False
            engine = self._engine_factory(project_id, mode)
            self._workspaces[project_id] = _Workspace(engine=engine, last_accessed=now_mono)
            return engine, True

    def get(self, project_id: str) -> ArtifactEngine:
        """Get a project's engine, updating its last-accessed time.

        Raises :class:`WorkspaceNotFoundError` if the workspace is missing or expired.
        """
        with self._lock:
            entry = self._live_entry(project_id)
            return entry.engine

    def get_info(self, project_id: str) -> WorkspaceInfo:
        with self._lock:
            return self._info(self._live_entry(project_id))

    def close(self, project_id: str) -> None:
        """Explicitly close a workspace."""
        with self._lock:
            if project_id not in self._workspaces:
                raise WorkspaceNotFoundError(f"Workspace '{project_id}' not found")
            del self._workspaces[project_id]

    def list_workspaces(self) -> list[WorkspaceInfo]:
        """Return info for all non-expired workspaces."""
        now_mono = time.monotonic()
        with self._lock:
            return [
                self._info(entry)
                for entry in self._workspaces.values()
                if now_mono - entry.last_accessed <= self._ttl
            ]

    @property
    def active_count(self) -> int:
        """Number of active (non-expired) workspaces."""
        now_mono = time.monotonic()
        with self._lock:
            return sum(
                1 for w in self._workspaces.values() if now_mono - w.last_accessed <= self._ttl
            )

    # -- internal ------------------------------------------------------------

    def _default_engine(self, project_id: str, mode: ProjectMode) -> ArtifactEngine:
        return ArtifactEngine(
            project_id, mode=mode, repositories=self._repos, settings=self._settings
        )

    def _live_entry(self, project_id: str) -> _Workspace:
        """Caller must hold the lock."""
        now_mono = time.monotonic()
        entry = self._workspaces.get(project_id)
        if entry is None:
            raise WorkspaceNotFoundError(f"Workspace '{project_id}' not found")
        # Lazy expiration check
        if now_mono - entry.last_accessed > self._ttl:
            del self._workspaces[project_id]
            raise WorkspaceNotFoundError(f"Workspace '{project_id}' has expired")
        self._touch(entry, now_mono)
        return entry

    @staticmethod
    def _touch(entry: _Workspace, now_mono: float) -> None:
        entry.last_accessed = now_mono
        entry.last_accessed_wall = datetime.now(UTC)

    @staticmethod
    def _info(entry: _Workspace) -> WorkspaceInfo:
        workspace = entry.engine.workspace
        return WorkspaceInfo(
            project_id=workspace.project_id,
            mode=workspace.mode,
            opened_at=entry.opened_at_wall,
            last_accessed_at=entry.last_accessed_wall,
            artifact_count=len(workspace.artifacts),
            loading=workspace.loading,
        )

    def _purge_expired(self) -> None:
        """Remove all expired workspaces (called by cleanup thread)."""
        now_mono = time.monotonic()
        with self._lock:
            expired = [
                pid for pid, w in self._workspaces.items() if now_mono - w.last_accessed > self._ttl
            ]
            for pid in expired:
                del self._workspaces[pid]

    def _cleanup_loop(self) -> None:
        """Background loop that periodically purges expired workspaces."""
        while not self._stop_event.wait(timeout=self._cleanup_interval):
            self._purge_expired()

"""Dependency injection for FastAPI: WorkspaceRegistry singleton."""

from __future__ import annotations

from artifactflow.service.workspace_registry import WorkspaceRegistry

_registry: WorkspaceRegistry | None = None


def init_registry(registry: WorkspaceRegistry) -> None:
    """Set the global WorkspaceRegistry (called at app startup)."""
    global _registry  # noqa: PLW0603
    _registry = registry


def get_registry() -> WorkspaceRegistry:
    """FastAPI ``Depends`` provider for WorkspaceRegistry."""
    if _registry is None:
        raise RuntimeError("WorkspaceRegistry not initialised, call init_registry() first")
    return _registry


def reset_registry() -> None:
    """Clear the global WorkspaceRegistry (for tests)."""
    global _registry  # noqa: PLW0603
    _registry = None

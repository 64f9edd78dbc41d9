"""Reconcile parsed artifacts against the persisted set: create, update or no-op."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from artifactflow.models.artifact import (
    Artifact,
    ArtifactStatus,
    ArtifactVersion,
    is_preview_artifact,
)
from artifactflow.models.response import ParsedArtifact
from artifactflow.storage.repository import (
    ArtifactRepository,
    ArtifactVersionRepository,
    PersistenceError,
)

STALE_REASON_CONTENT_UPDATED = "Content updated"


class ReconcileAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    NOOP = "noop"


@dataclass
class ReconcilePlan:
    """What reconciling one parsed artifact would do.

    ``artifact`` is the record to write (or the unchanged existing record for
    a no-op); ``history`` is the snapshot of the previous content for updates.
    """

    action: ReconcileAction
    artifact: Artifact
    previous: Artifact | None = None
    history: ArtifactVersion | None = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


def find_current(existing: Iterable[Artifact], parsed: ParsedArtifact) -> Artifact | None:
    """The persisted record of ``parsed.type``; the highest version wins on duplicates."""
    matches = [
        a
        for a in existing
        if a.artifact_type == parsed.type and not is_preview_artifact(a)
    ]
    if not matches:
        return None
    return max(matches, key=lambda a: (a.version, a.updated_at))


class ArtifactReconciler:
    """Sole writer path for artifact content."""

    def __init__(
        self,
        artifacts: ArtifactRepository,
        versions: ArtifactVersionRepository,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._artifacts = artifacts
        self._versions = versions
        self._log = logger or logging.getLogger("artifactflow.reconciler")
        self._clock = clock

    def plan(
        self, project_id: str, parsed: ParsedArtifact, existing: Iterable[Artifact]
    ) -> ReconcilePlan:
        current = find_current(existing, parsed)
        now = self._clock()

        if current is None:
            return ReconcilePlan(
                action=ReconcileAction.CREATE,
                artifact=Artifact(
                    project_id=project_id,
                    artifact_type=parsed.type,
                    content=parsed.content,
                    status=ArtifactStatus.DRAFT,
                    version=1,
                    created_at=now,
                    updated_at=now,
                ),
            )

        if current.content == parsed.content:
            return ReconcilePlan(action=ReconcileAction.NOOP, artifact=current, previous=current)

        was_approved = current.status == ArtifactStatus.APPROVED
        updated = current.model_copy(
            update={
                "content": parsed.content,
                "version": current.version + 1,
                "status": ArtifactStatus.STALE if was_approved else ArtifactStatus.DRAFT,
                "stale_reason": STALE_REASON_CONTENT_UPDATED if was_approved else None,
                "updated_at": now,
            }
        )
        history = ArtifactVersion(
            artifact_id=current.id,
            project_id=current.project_id,
            artifact_type=current.artifact_type,
            content=current.content,
            version=current.version,
            created_at=now,
        )
        return ReconcilePlan(
            action=ReconcileAction.UPDATE, artifact=updated, previous=current, history=history
        )

    async def reconcile_and_save(
        self, project_id: str, parsed: ParsedArtifact, existing: Iterable[Artifact]
    ) -> Artifact | None:
        """Persist ``parsed`` against ``existing``; None if the store rejects the write."""
        if not project_id:
            self._log.warning("No project id, skipping save of %s", parsed.type)
            return None

        plan = self.plan(project_id, parsed, existing)
        if plan.action is ReconcileAction.NOOP:
            self._log.debug("Content unchanged for %s", parsed.type)
            return plan.artifact

        try:
            if plan.action is ReconcileAction.CREATE:
                saved = await self._artifacts.create(plan.artifact)
            else:
                assert plan.history is not None
                await self._versions.append(plan.history)
                saved = await self._artifacts.update(plan.artifact)
        except PersistenceError as exc:
            self._log.error("%s of %s failed: %s", plan.action, parsed.type, exc)
            return None

        self._log.info(
            "%s %s (version=%d, status=%s)",
            "Created" if plan.action is ReconcileAction.CREATE else "Updated",
            saved.artifact_type,
            saved.version,
            saved.status,
        )
        return saved

    async def reconcile_many(
        self,
        project_id: str,
        parsed_artifacts: Iterable[ParsedArtifact],
        existing: Iterable[Artifact],
    ) -> list[Artifact]:
        """Save several parsed artifacts in order, feeding each result into the next lookup."""
        lookup = list(existing)
        saved_all: list[Artifact] = []
        for parsed in parsed_artifacts:
            saved = await self.reconcile_and_save(project_id, parsed, lookup)
            if saved is None:
                continue
            saved_all.append(saved)
            lookup = [a for a in lookup if a.id != saved.id]
            lookup.append(saved)
        return saved_all

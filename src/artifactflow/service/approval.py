"""Cascading approval across the active pipeline order."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from artifactflow.models.artifact import (
    PREVIEW_ID_PREFIX,
    Artifact,
    ArtifactStatus,
    is_preview_artifact,
)
from artifactflow.pipeline.order import PipelineOrder
from artifactflow.service.optimistic import optimistic_update
from artifactflow.service.workspace import ArtifactWorkspace
from artifactflow.storage.repository import ArtifactRepository

_PREVIEW_ERROR = "Preview artifacts cannot be approved"


class ApprovalOutcome(StrEnum):
    APPROVED = "approved"
    PREVIEW = "preview"
    NOT_FOUND = "not_found"
    NO_APPROVER = "no_approver"
    PERSISTENCE_FAILED = "persistence_failed"


@dataclass
class ApprovalResult:
    """Outcome of one approve call; truthy only when the cascade was persisted."""

    outcome: ApprovalOutcome
    artifact_id: str
    approved_ids: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ApprovalOutcome.APPROVED

    @property
    def is_precondition_failure(self) -> bool:
        return self.outcome in (
            ApprovalOutcome.PREVIEW,
            ApprovalOutcome.NOT_FOUND,
            ApprovalOutcome.NO_APPROVER,
        )

    def __bool__(self) -> bool:
        return self.ok


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _has_content(artifact: Artifact) -> bool:
    return bool(artifact.content.strip())


class ApprovalCoordinator:
    """Approves an artifact together with every unapproved predecessor.

    After approving the artifact at position N of the active order, every
    artifact at positions before N that has content is approved as well;
    nothing after N changes.  The batch is applied to the workspace first and
    rolled back if the store rejects it.
    """

    def __init__(
        self,
        workspace: ArtifactWorkspace,
        artifacts: ArtifactRepository,
        identity: Callable[[], str | None] | None = None,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._workspace = workspace
        self._artifacts = artifacts
        self._identity = identity or (lambda: None)
        self._log = logger or logging.getLogger("artifactflow.approval")
        self._clock = clock

    def cascade_targets(self, target: Artifact) -> list[Artifact]:
        """Artifacts the approval of ``target`` must approve, in pipeline order."""
        order = PipelineOrder.for_mode(self._workspace.mode)
        target_pos = order.position(target.artifact_type)
        if target_pos is None:
            # Outside the active mode's order: approve the target alone.
            return [] if target.status == ArtifactStatus.APPROVED else [target]

        selected: list[tuple[int, Artifact]] = []
        for artifact in self._workspace.artifacts:
            if is_preview_artifact(artifact) or artifact.status == ArtifactStatus.APPROVED:
                continue
            pos = order.position(artifact.artifact_type)
            if pos is None or pos > target_pos:
                continue
            if artifact.id == target.id or _has_content(artifact):
                selected.append((pos, artifact))
        selected.sort(key=lambda item: item[0])
        return [artifact for _, artifact in selected]

    async def approve(self, artifact_id: str, approver: str | None = None) -> ApprovalResult:
        if artifact_id.startswith(PREVIEW_ID_PREFIX):
            return self._refuse(ApprovalOutcome.PREVIEW, artifact_id, _PREVIEW_ERROR)
        target = self._workspace.get(artifact_id)
        if target is None:
            return self._refuse(ApprovalOutcome.NOT_FOUND, artifact_id, "Artifact not found")
        if is_preview_artifact(target):
            return self._refuse(ApprovalOutcome.PREVIEW, artifact_id, _PREVIEW_ERROR)
        approver = approver or self._identity()
        if not approver:
            return self._refuse(
                ApprovalOutcome.NO_APPROVER, artifact_id, "No approver identity"
            )

        to_approve = self.cascade_targets(target)
        if not to_approve:
            return ApprovalResult(outcome=ApprovalOutcome.APPROVED, artifact_id=artifact_id)

        now = self._clock()
        changes = {
            "status": ArtifactStatus.APPROVED,
            "approved_at": now,
            "approved_by": approver,
            "stale_reason": None,
            "updated_at": now,
        }
        ids = [a.id for a in to_approve]

        def mutate() -> None:
            self._workspace.merge(a.model_copy(update=changes) for a in to_approve)

        async def persist() -> None:
            persisted = await self._artifacts.update_many(ids, changes)
            self._workspace.merge(persisted)

        if not await optimistic_update(self._workspace, mutate, persist, logger=self._log):
            return ApprovalResult(
                outcome=ApprovalOutcome.PERSISTENCE_FAILED,
                artifact_id=artifact_id,
                error="Failed to approve artifact",
            )

        self._log.info(
            "Approved %d artifact(s) up to %s by %s", len(ids), target.artifact_type, approver
        )
        return ApprovalResult(
            outcome=ApprovalOutcome.APPROVED, artifact_id=artifact_id, approved_ids=ids
        )

    def _refuse(self, outcome: ApprovalOutcome, artifact_id: str, error: str) -> ApprovalResult:
        self._log.warning("Approval of %s refused: %s", artifact_id, error)
        return ApprovalResult(outcome=outcome, artifact_id=artifact_id, error=error)

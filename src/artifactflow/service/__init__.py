"""Artifact lifecycle services: reconciliation, approval, preview and state."""

from artifactflow.service.approval import ApprovalCoordinator, ApprovalOutcome, ApprovalResult
from artifactflow.service.engine import ArtifactEngine, TurnResult
from artifactflow.service.optimistic import optimistic_update
from artifactflow.service.preview import StreamingPreviewBuilder
from artifactflow.service.reconciler import ArtifactReconciler, ReconcileAction, ReconcilePlan
from artifactflow.service.session_state import SessionStateTracker
from artifactflow.service.workspace import ArtifactWorkspace, ChangeEvent

__all__ = [
    "ApprovalCoordinator",
    "ApprovalOutcome",
    "ApprovalResult",
    "ArtifactEngine",
    "ArtifactReconciler",
    "ArtifactWorkspace",
    "ChangeEvent",
    "ReconcileAction",
    "ReconcilePlan",
    "SessionStateTracker",
    "StreamingPreviewBuilder",
    "TurnResult",
    "optimistic_update",
]

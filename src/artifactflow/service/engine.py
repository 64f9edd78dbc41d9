"""Per-project facade over parsing, reconciliation, approval, preview and state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from artifactflow.models.artifact import Artifact, ArtifactVersion
from artifactflow.models.project import PipelineState, ProjectMode
from artifactflow.models.response import ParsedArtifact
from artifactflow.parser.extractor import ResponseExtractor
from artifactflow.parser.response_parser import ParseResult, ResponseParser
from artifactflow.parser.validator import SchemaValidator
from artifactflow.service.approval import ApprovalCoordinator, ApprovalResult
from artifactflow.service.preview import StreamingPreviewBuilder
from artifactflow.service.reconciler import ArtifactReconciler
from artifactflow.service.session_state import SessionStateTracker
from artifactflow.service.workspace import ArtifactWorkspace
from artifactflow.settings import Settings
from artifactflow.storage.memory import in_memory_repositories
from artifactflow.storage.repository import PersistenceError, Repositories

ARTIFACT_DROPPED_ERROR = "The response contained an artifact but it could not be parsed"


@dataclass
class TurnResult:
    """Everything one completed assistant turn produced.

    ``artifact_error`` is set when the turn parsed but an artifact it
    contained was dropped; ``raw_content`` then carries the raw text, as it
    does for a failed parse.
    """

    parsed: ParseResult
    artifact: Artifact | None = None
    state: PipelineState | None = None
    turn: int | None = None
    artifact_error: str | None = None
    raw_content: str | None = None

    @property
    def message(self) -> str | None:
        return self.parsed.data.message if self.parsed.data else None


class ArtifactEngine:
    """Wires the engine components for one project over shared repositories."""

    def __init__(
        self,
        project_id: str,
        mode: ProjectMode = ProjectMode.STANDARD,
        repositories: Repositories | None = None,
        settings: Settings | None = None,
        identity: Callable[[], str | None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        settings = settings or Settings()
        log = logger or logging.getLogger("artifactflow.engine")
        self._log = log
        self._repos = repositories or in_memory_repositories()
        self._workspace = ArtifactWorkspace(project_id, mode)

        extractor = ResponseExtractor(logger=log.getChild("extractor"))
        validator = SchemaValidator(max_response_chars=settings.max_response_chars)
        self._parser = ResponseParser(extractor, validator, logger=log.getChild("parser"))
        self._reconciler = ArtifactReconciler(
            self._repos.artifacts, self._repos.versions, logger=log.getChild("reconciler")
        )
        self._approval = ApprovalCoordinator(
            self._workspace,
            self._repos.artifacts,
            identity=identity,
            logger=log.getChild("approval"),
        )
        self._preview = StreamingPreviewBuilder(
            project_id,
            extractor=extractor,
            validator=validator,
            min_length=settings.min_streaming_preview_length,
        )
        self._tracker = SessionStateTracker(
            self._repos.states, parser=self._parser, logger=log.getChild("session_state")
        )

    @property
    def project_id(self) -> str:
        return self._workspace.project_id

    @property
    def workspace(self) -> ArtifactWorkspace:
        return self._workspace

    @property
    def approval(self) -> ApprovalCoordinator:
        return self._approval

    # -- core operations ------------------------------------------------------

    def parse(self, raw_text: str) -> ParseResult:
        return self._parser.parse(raw_text)

    async def reconcile_and_save(
        self, parsed: ParsedArtifact, existing: Iterable[Artifact] | None = None
    ) -> Artifact | None:
        if existing is None:
            existing = self._workspace.artifacts
        saved = await self._reconciler.reconcile_and_save(self.project_id, parsed, existing)
        if saved is not None:
            self._workspace.upsert(saved)
        return saved

    async def approve(self, artifact_id: str, approver: str | None = None) -> bool:
        result = await self.approve_with_result(artifact_id, approver)
        return result.ok

    async def approve_with_result(
        self, artifact_id: str, approver: str | None = None
    ) -> ApprovalResult:
        return await self._approval.approve(artifact_id, approver)

    def build_preview(
        self, partial_text: str, existing: Iterable[Artifact] | None = None
    ) -> list[Artifact]:
        if existing is None:
            existing = self._workspace.artifacts
        return self._preview.build_preview(partial_text, existing)

    async def extract_and_save_state(
        self, raw_text: str, parsed: ParseResult | None = None
    ) -> PipelineState | None:
        state = await self._tracker.extract_and_save_state(self.project_id, raw_text, parsed)
        if state is not None:
            self._workspace.mode = state.mode
        return state

    # -- turn orchestration ----------------------------------------------------

    def begin_turn(self) -> int:
        return self._workspace.begin_turn()

    def stream(self, turn: int, partial_text: str) -> list[Artifact]:
        """Record streamed text for ``turn`` and return the current display view."""
        self._workspace.stream(turn, partial_text)
        return self.display_artifacts()

    def display_artifacts(self) -> list[Artifact]:
        return self._workspace.display_artifacts(self._preview)

    async def process_response(self, raw_text: str, turn: int | None = None) -> TurnResult:
        """Parse a complete turn, then save its artifact and state concurrently.

        A turn's result is always reconciled, even when a newer turn has
        started meanwhile; completing the turn discards its preview.
        """
        parsed = self.parse(raw_text)
        try:
            if not parsed.success or parsed.data is None:
                return TurnResult(parsed=parsed, turn=turn, raw_content=parsed.raw_content)

            async def save_artifact() -> Artifact | None:
                if parsed.data is None or parsed.data.artifact is None:
                    return None
                return await self.reconcile_and_save(parsed.data.artifact)

            saved, state = await asyncio.gather(
                save_artifact(), self.extract_and_save_state(raw_text, parsed)
            )
            result = TurnResult(parsed=parsed, artifact=saved, state=state, turn=turn)
            if parsed.data.artifact is None and self._parser.extractor.mentions_artifact(
                raw_text
            ):
                self._log.warning(
                    "Artifact field found but no artifact parsed for %s (strategy=%s)",
                    self.project_id,
                    parsed.strategy,
                )
                result.artifact_error = ARTIFACT_DROPPED_ERROR
                result.raw_content = raw_text
            return result
        finally:
            if turn is not None:
                self._workspace.complete_turn(turn)

    # -- storage reads -----------------------------------------------------------

    async def load(self) -> bool:
        """Hydrate the workspace (artifacts and mode) from storage."""
        try:
            artifacts = await self._repos.artifacts.list(self.project_id)
        except PersistenceError as exc:
            self._log.error("Error loading artifacts for %s: %s", self.project_id, exc)
            return False
        self._workspace.replace(artifacts)
        state = await self._tracker.load_state(self.project_id)
        if state is not None:
            self._workspace.mode = state.mode
        return True

    async def load_state(self) -> PipelineState | None:
        return await self._tracker.load_state(self.project_id)

    async def version_history(self, artifact_id: str) -> list[ArtifactVersion]:
        return await self._repos.versions.list(artifact_id)

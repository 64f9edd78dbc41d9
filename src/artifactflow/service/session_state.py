"""Pipeline state extraction and idempotent persistence."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import ValidationError

from artifactflow.models.project import PipelineState, ProjectState
from artifactflow.parser.response_parser import ParseResult, ResponseParser
from artifactflow.storage.repository import PersistenceError, ProjectStateRepository


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionStateTracker:
    """Tracks the per-project pipeline pointer (mode + current stage).

    State is saved independently of artifact persistence and may be present
    in a response that carries no artifact.  Saves are upserts keyed by
    project id; concurrent saves resolve last-write-wins.
    """

    def __init__(
        self,
        states: ProjectStateRepository,
        parser: ResponseParser | None = None,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._states = states
        self._parser = parser or ResponseParser()
        self._log = logger or logging.getLogger("artifactflow.session_state")
        self._clock = clock

    def extract_state(
        self, raw_text: str, parsed: ParseResult | None = None
    ) -> PipelineState | None:
        """State from a successful parse, else from a state-only field scan."""
        if parsed is None:
            parsed = self._parser.parse(raw_text)
        if parsed.success and parsed.data is not None:
            return parsed.data.state

        candidate = self._parser.extractor.extract_state(raw_text)
        if candidate is None:
            return None
        try:
            return PipelineState.model_validate(candidate)
        except ValidationError:
            self._log.debug("Discarding invalid state fields: %s", candidate)
            return None

    async def save_state(self, project_id: str, state: PipelineState) -> bool:
        if not project_id:
            return False
        try:
            await self._states.upsert(
                ProjectState(project_id=project_id, state=state, updated_at=self._clock())
            )
        except PersistenceError as exc:
            self._log.error("Error upserting session state for %s: %s", project_id, exc)
            return False
        self._log.debug("Saved state for project %s (%s)", project_id, state.pipeline_stage)
        return True

    async def load_state(self, project_id: str) -> PipelineState | None:
        try:
            row = await self._states.get(project_id)
        except PersistenceError as exc:
            self._log.error("Error loading session state for %s: %s", project_id, exc)
            return None
        return row.state if row else None

    async def extract_and_save_state(
        self, project_id: str, raw_text: str, parsed: ParseResult | None = None
    ) -> PipelineState | None:
        state = self.extract_state(raw_text, parsed)
        if state is None:
            return None
        if not await self.save_state(project_id, state):
            return None
        return state

"""Tests for SessionStateTracker."""

from __future__ import annotations

from artifactflow.models.project import PipelineState, ProjectMode, ProjectState
from artifactflow.service.session_state import SessionStateTracker
from artifactflow.storage.memory import InMemoryProjectStateRepository
from artifactflow.storage.repository import PersistenceError
from tests.conftest import PROJECT_ID, SAMPLE_RESPONSE_JSON, make_response


class _FailingStateRepository(InMemoryProjectStateRepository):
    async def upsert(self, state: ProjectState) -> ProjectState:
        raise PersistenceError("store unavailable")


class TestExtractState:
    def test_from_successful_parse(self) -> None:
        tracker = SessionStateTracker(InMemoryProjectStateRepository())
        state = tracker.extract_state(SAMPLE_RESPONSE_JSON)
        assert state == PipelineState(mode=ProjectMode.STANDARD, pipeline_stage="phase_1")

    def test_response_without_state(self) -> None:
        tracker = SessionStateTracker(InMemoryProjectStateRepository())
        assert tracker.extract_state(make_response(state=None)) is None

    def test_from_failed_parse(self) -> None:
        tracker = SessionStateTracker(InMemoryProjectStateRepository())
        raw = '{"message": "", "state": {"mode": "QUICK", "pipeline_stage": "blueprint"}}'
        state = tracker.extract_state(raw)
        assert state is not None
        assert state.mode is ProjectMode.QUICK
        assert state.pipeline_stage == "blueprint"

    def test_invalid_threshold_discarded(self) -> None:
        tracker = SessionStateTracker(InMemoryProjectStateRepository())
        raw = (
            '{"message": "", "state": {"mode": "QUICK", "pipeline_stage": "b", '
            '"threshold_percent": 250}}'
        )
        assert tracker.extract_state(raw) is None


class TestSaveAndLoad:
    async def test_save_then_load(self) -> None:
        tracker = SessionStateTracker(InMemoryProjectStateRepository())
        state = PipelineState(mode=ProjectMode.QUICK, pipeline_stage="audit", threshold_percent=80)
        assert await tracker.save_state(PROJECT_ID, state)
        assert await tracker.load_state(PROJECT_ID) == state

    async def test_repeated_saves_keep_one_row(self) -> None:
        repo = InMemoryProjectStateRepository()
        tracker = SessionStateTracker(repo)
        state = PipelineState(mode=ProjectMode.STANDARD, pipeline_stage="phase_1")
        for _ in range(3):
            assert await tracker.save_state(PROJECT_ID, state)
        row = await repo.get(PROJECT_ID)
        assert row is not None
        assert row.state == state

    async def test_no_project_id(self) -> None:
        tracker = SessionStateTracker(InMemoryProjectStateRepository())
        state = PipelineState(mode=ProjectMode.STANDARD, pipeline_stage="phase_1")
        assert not await tracker.save_state("", state)

    async def test_persistence_error(self) -> None:
        tracker = SessionStateTracker(_FailingStateRepository())
        state = PipelineState(mode=ProjectMode.STANDARD, pipeline_stage="phase_1")
        assert not await tracker.save_state(PROJECT_ID, state)

    async def test_load_missing(self) -> None:
        tracker = SessionStateTracker(InMemoryProjectStateRepository())
        assert await tracker.load_state("nobody") is None


class TestExtractAndSave:
    async def test_saves_extracted_state(self) -> None:
        repo = InMemoryProjectStateRepository()
        tracker = SessionStateTracker(repo)
        state = await tracker.extract_and_save_state(PROJECT_ID, SAMPLE_RESPONSE_JSON)
        assert state is not None
        row = await repo.get(PROJECT_ID)
        assert row is not None
        assert row.state == state

    async def test_nothing_to_save(self) -> None:
        repo = InMemoryProjectStateRepository()
        tracker = SessionStateTracker(repo)
        assert await tracker.extract_and_save_state(PROJECT_ID, '{"message": "hi"}') is None
        assert await repo.get(PROJECT_ID) is None

    async def test_failed_save_returns_none(self) -> None:
        tracker = SessionStateTracker(_FailingStateRepository())
        assert await tracker.extract_and_save_state(PROJECT_ID, SAMPLE_RESPONSE_JSON) is None

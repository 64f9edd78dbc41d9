"""Project-scoped in-memory artifact state and turn bookkeeping."""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import TYPE_CHECKING

from artifactflow.models.artifact import Artifact, is_preview_artifact
from artifactflow.models.project import ProjectMode

if TYPE_CHECKING:
    from artifactflow.service.preview import StreamingPreviewBuilder


class ChangeEvent(StrEnum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"


class ArtifactWorkspace:
    """The persisted artifact set of one project as the rest of the app sees it.

    Holds only persisted records; preview records are derived on demand by
    :meth:`display_artifacts` and never stored here.  Components receive the
    workspace explicitly and read it through :attr:`artifacts`.

    Turns: each user message starts a turn.  Only the newest turn owns the
    loading flag and the streaming preview; completing a turn discards its
    preview even if a newer turn has already begun.
    """

    def __init__(
        self,
        project_id: str,
        mode: ProjectMode = ProjectMode.STANDARD,
        artifacts: Iterable[Artifact] = (),
    ) -> None:
        self.project_id = project_id
        self.mode = ProjectMode(mode)
        self._artifacts: list[Artifact] = []
        self.merge(artifacts)
        self._latest_turn = 0
        self._completed_turns: set[int] = set()
        self._stream_text = ""

    # -- artifact set --------------------------------------------------------

    @property
    def artifacts(self) -> list[Artifact]:
        return list(self._artifacts)

    def get(self, artifact_id: str) -> Artifact | None:
        for artifact in self._artifacts:
            if artifact.id == artifact_id:
                return artifact
        return None

    def snapshot(self) -> tuple[Artifact, ...]:
        return tuple(a.model_copy(deep=True) for a in self._artifacts)

    def restore(self, snapshot: tuple[Artifact, ...]) -> None:
        self._artifacts = [a.model_copy(deep=True) for a in snapshot]

    def replace(self, artifacts: Iterable[Artifact]) -> None:
        """Drop the current set and load ``artifacts`` (e.g. after a fresh fetch)."""
        self._artifacts = []
        self.merge(artifacts)

    def upsert(self, artifact: Artifact) -> None:
        """Replace by id, else by type, else append."""
        if is_preview_artifact(artifact):
            raise ValueError(f"Preview artifact '{artifact.id}' cannot enter the workspace")
        for i, current in enumerate(self._artifacts):
            if current.id == artifact.id:
                self._artifacts[i] = artifact
                return
        for i, current in enumerate(self._artifacts):
            if current.artifact_type == artifact.artifact_type:
                self._artifacts[i] = artifact
                return
        self._artifacts.append(artifact)

    def merge(self, artifacts: Iterable[Artifact]) -> None:
        for artifact in artifacts:
            self.upsert(artifact)

    def apply_change(self, artifact: Artifact, event: ChangeEvent | str) -> None:
        """Apply a change notification pushed by the store."""
        if ChangeEvent(event) is ChangeEvent.INSERT:
            if self.get(artifact.id) is None:
                self.upsert(artifact)
            return
        for i, current in enumerate(self._artifacts):
            if current.id == artifact.id:
                self._artifacts[i] = artifact
                return

    # -- turns ---------------------------------------------------------------

    def begin_turn(self) -> int:
        self._latest_turn += 1
        self._stream_text = ""
        return self._latest_turn

    @property
    def latest_turn(self) -> int:
        return self._latest_turn

    @property
    def loading(self) -> bool:
        return self._latest_turn > 0 and self._latest_turn not in self._completed_turns

    @property
    def streaming_text(self) -> str:
        return self._stream_text

    def stream(self, turn: int, text: str) -> bool:
        """Record the accumulated streamed text of ``turn``.

        Returns False (and ignores the text) when ``turn`` is superseded or
        already complete.
        """
        if turn != self._latest_turn or turn in self._completed_turns:
            return False
        self._stream_text = text
        return True

    def complete_turn(self, turn: int) -> None:
        self._completed_turns.add(turn)
        if turn == self._latest_turn:
            self._stream_text = ""

    def display_artifacts(self, builder: StreamingPreviewBuilder) -> list[Artifact]:
        """Preview-merged view while the newest turn streams, persisted set otherwise."""
        if self.loading and self._stream_text:
            return builder.build_preview(self._stream_text, self.artifacts)
        return self.artifacts

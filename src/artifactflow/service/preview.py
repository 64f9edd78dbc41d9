"""Best-effort artifact preview from partially streamed text. No I/O."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from artifactflow.models.artifact import Artifact, preview_id
from artifactflow.models.response import ParsedArtifact
from artifactflow.parser.extractor import ResponseExtractor
from artifactflow.parser.validator import SchemaValidator

DEFAULT_MIN_PREVIEW_LENGTH = 50


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StreamingPreviewBuilder:
    """Merges whatever artifact the stream has produced so far over the persisted set."""

    def __init__(
        self,
        project_id: str = "",
        extractor: ResponseExtractor | None = None,
        validator: SchemaValidator | None = None,
        min_length: int = DEFAULT_MIN_PREVIEW_LENGTH,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._project_id = project_id
        self._extractor = extractor or ResponseExtractor()
        self._validator = validator or SchemaValidator()
        self._min_length = min_length
        self._clock = clock

    def extract_artifact(self, partial_text: str) -> ParsedArtifact | None:
        """First artifact any extraction strategy recovers from ``partial_text``."""
        for _strategy, candidate in self._extractor.candidates(partial_text):
            if not isinstance(candidate, dict):
                continue
            artifact = self._validator.validate_artifact(candidate.get("artifact"))
            if artifact is not None:
                return artifact
        return None

    def build_preview(self, partial_text: str, existing: Iterable[Artifact]) -> list[Artifact]:
        """Return ``existing`` with the streamed artifact overlaid or appended.

        Existing records pass through unchanged except for a same-type match,
        whose ``content`` is replaced in the returned copy only.  A new type is
        appended as a preview record.
        """
        result = list(existing)
        if len(partial_text) <= self._min_length:
            return result
        parsed = self.extract_artifact(partial_text)
        if parsed is None:
            return result

        for i, artifact in enumerate(result):
            if artifact.artifact_type == parsed.type:
                result[i] = artifact.model_copy(update={"content": parsed.content})
                return result

        now = self._clock()
        result.append(
            Artifact(
                id=preview_id(parsed.type),
                project_id=self._project_id,
                artifact_type=parsed.type,
                content=parsed.content,
                created_at=now,
                updated_at=now,
                is_preview=True,
            )
        )
        return result

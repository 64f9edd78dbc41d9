"""Static ordering of artifact types for the standard and quick pipelines."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from artifactflow.models.artifact import ARTIFACT_LABELS, Artifact, ArtifactType
from artifactflow.models.project import ProjectMode

STANDARD_ORDER: tuple[ArtifactType, ...] = tuple(ArtifactType)

QUICK_ORDER: tuple[ArtifactType, ...] = (
    ArtifactType.PHASE_1_CONTRACT,
    ArtifactType.DESIGN_BLUEPRINT,
    ArtifactType.FINAL_AUDIT,
    ArtifactType.PERFORMANCE_RECOMMENDATION_REPORT,
)


@dataclass(frozen=True)
class PipelineOrder:
    """An immutable, ordered sequence of artifact types for one mode."""

    mode: ProjectMode
    types: tuple[ArtifactType, ...]

    @classmethod
    def for_mode(cls, mode: ProjectMode | str) -> PipelineOrder:
        mode = ProjectMode(str(mode).upper())
        return _ORDERS[mode]

    def __len__(self) -> int:
        return len(self.types)

    def __iter__(self) -> Iterator[ArtifactType]:
        return iter(self.types)

    def contains(self, artifact_type: ArtifactType | str) -> bool:
        return self.position(artifact_type) is not None

    def position(self, artifact_type: ArtifactType | str) -> int | None:
        """Zero-based index of ``artifact_type``, or None if this mode skips it."""
        try:
            return self.types.index(ArtifactType(artifact_type))
        except ValueError:
            return None

    def predecessors(self, artifact_type: ArtifactType | str) -> tuple[ArtifactType, ...]:
        """Types strictly before ``artifact_type``; empty if it is not in this order."""
        pos = self.position(artifact_type)
        if pos is None:
            return ()
        return self.types[:pos]

    def next_type(self, artifact_type: ArtifactType | str) -> ArtifactType | None:
        """The type that follows ``artifact_type``, or None at the end / if absent."""
        pos = self.position(artifact_type)
        if pos is None or pos + 1 >= len(self.types):
            return None
        return self.types[pos + 1]

    def next_missing(self, artifacts: Iterable[Artifact]) -> ArtifactType | None:
        """First type in order that has no artifact yet (what to generate next)."""
        present = {a.artifact_type for a in artifacts}
        for artifact_type in self.types:
            if artifact_type not in present:
                return artifact_type
        return None

    def labels(self) -> list[tuple[ArtifactType, str]]:
        return [(t, ARTIFACT_LABELS[t]) for t in self.types]


_ORDERS: dict[ProjectMode, PipelineOrder] = {
    ProjectMode.STANDARD: PipelineOrder(ProjectMode.STANDARD, STANDARD_ORDER),
    ProjectMode.QUICK: PipelineOrder(ProjectMode.QUICK, QUICK_ORDER),
}


def is_skipped_in_quick_mode(artifact_type: ArtifactType | str) -> bool:
    return not _ORDERS[ProjectMode.QUICK].contains(artifact_type)

"""Pipeline ordering of artifact types."""

from artifactflow.pipeline.order import (
    QUICK_ORDER,
    STANDARD_ORDER,
    PipelineOrder,
    is_skipped_in_quick_mode,
)

__all__ = [
    "QUICK_ORDER",
    "STANDARD_ORDER",
    "PipelineOrder",
    "is_skipped_in_quick_mode",
]

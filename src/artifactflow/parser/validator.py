"""Schema validation for assistant responses: shape only, no business rules."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from artifactflow.models.artifact import ArtifactType
from artifactflow.models.errors import FieldError, ValidationResult
from artifactflow.models.response import ParsedArtifact, ParsedResponse

DEFAULT_MAX_RESPONSE_CHARS = 500_000

_VALID_ARTIFACT_TYPES = frozenset(t.value for t in ArtifactType)


def is_valid_artifact_type(value: object) -> bool:
    return isinstance(value, str) and value in _VALID_ARTIFACT_TYPES


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors(include_url=False):
        path = ".".join(str(p) for p in err["loc"])
        errors.append(
            FieldError(
                code=err["type"],
                message=f"{path}: {err['msg']}" if path else err["msg"],
                path=path or None,
            )
        )
    return errors


class SchemaValidator:
    """Validates candidate objects against the fixed response schema."""

    def __init__(self, max_response_chars: int = DEFAULT_MAX_RESPONSE_CHARS) -> None:
        self._max_chars = max_response_chars

    @property
    def max_response_chars(self) -> int:
        return self._max_chars

    def check_size(self, raw: str) -> FieldError | None:
        """Reject oversized responses before any parsing work is attempted."""
        if len(raw) > self._max_chars:
            return FieldError(
                code="RESPONSE_TOO_LARGE",
                message=(
                    f"Response is {len(raw)} characters, "
                    f"exceeding the maximum of {self._max_chars}"
                ),
            )
        return None

    def validate(self, obj: Any) -> ValidationResult:
        _, result = self.to_response(obj)
        return result

    def to_response(self, obj: Any) -> tuple[ParsedResponse | None, ValidationResult]:
        """Validate and, on success, return the typed response alongside the result."""
        try:
            response = ParsedResponse.model_validate(obj)
        except ValidationError as exc:
            return None, ValidationResult(valid=False, errors=_field_errors(exc))
        return response, ValidationResult(valid=True)

    def validate_artifact(self, obj: Any) -> ParsedArtifact | None:
        """Validate only the ``artifact`` portion; returns None if absent or invalid."""
        if obj is None:
            return None
        try:
            return ParsedArtifact.model_validate(obj)
        except ValidationError:
            return None

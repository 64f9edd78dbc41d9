"""Structured validation error models."""

from __future__ import annotations

from pydantic import BaseModel


class FieldError(BaseModel):
    """A single violated constraint, addressed by dotted field path."""

    code: str
    message: str
    path: str | None = None


class ValidationResult(BaseModel):
    """Result of validating a candidate response object."""

    valid: bool
    errors: list[FieldError] = []

    @property
    def summary(self) -> str:
        """All error messages joined for display."""
        return "; ".join(e.message for e in self.errors)

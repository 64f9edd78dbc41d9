"""Tests for SchemaValidator."""

from __future__ import annotations

import pytest

from artifactflow.models.artifact import ArtifactType
from artifactflow.models.response import DraftStatus
from artifactflow.parser.validator import SchemaValidator, is_valid_artifact_type


def _artifact(**overrides: object) -> dict:
    artifact = {
        "type": "design_strategy",
        "title": "Strategy",
        "content": "x" * 20,
    }
    artifact.update(overrides)
    return artifact


class TestValidate:
    def test_message_only_is_valid(self, validator: SchemaValidator) -> None:
        assert validator.validate({"message": "hi"}).valid

    def test_missing_message(self, validator: SchemaValidator) -> None:
        result = validator.validate({"artifact": _artifact()})
        assert not result.valid
        assert result.errors[0].path == "message"
        assert result.errors[0].code == "missing"

    def test_empty_message(self, validator: SchemaValidator) -> None:
        assert not validator.validate({"message": ""}).valid

    def test_not_an_object(self, validator: SchemaValidator) -> None:
        assert not validator.validate(["message"]).valid

    def test_content_boundary(self, validator: SchemaValidator) -> None:
        ok = validator.validate({"message": "m", "artifact": _artifact(content="x" * 20)})
        short = validator.validate({"message": "m", "artifact": _artifact(content="x" * 19)})
        assert ok.valid
        assert not short.valid
        assert short.errors[0].path == "artifact.content"

    def test_title_boundary(self, validator: SchemaValidator) -> None:
        assert validator.validate({"message": "m", "artifact": _artifact(title="t" * 200)}).valid
        assert not validator.validate(
            {"message": "m", "artifact": _artifact(title="t" * 201)}
        ).valid

    def test_empty_title(self, validator: SchemaValidator) -> None:
        assert not validator.validate({"message": "m", "artifact": _artifact(title="")}).valid

    def test_unknown_type(self, validator: SchemaValidator) -> None:
        result = validator.validate({"message": "m", "artifact": _artifact(type="essay")})
        assert not result.valid
        assert "artifact.type" in result.summary

    def test_invalid_state(self, validator: SchemaValidator) -> None:
        result = validator.validate(
            {"message": "m", "state": {"mode": "SLOW", "pipeline_stage": "x"}}
        )
        assert not result.valid

    @pytest.mark.parametrize("threshold", ["50", True])
    def test_non_numeric_threshold_rejected(
        self, validator: SchemaValidator, threshold: object
    ) -> None:
        state = {"mode": "QUICK", "pipeline_stage": "x", "threshold_percent": threshold}
        result = validator.validate({"message": "m", "state": state})
        assert not result.valid
        assert result.errors[0].path == "state.threshold_percent"

    @pytest.mark.parametrize("threshold", [0, 50, 100, 37.5])
    def test_numeric_threshold_accepted(
        self, validator: SchemaValidator, threshold: float
    ) -> None:
        state = {"mode": "QUICK", "pipeline_stage": "x", "threshold_percent": threshold}
        response, result = validator.to_response({"message": "m", "state": state})
        assert result.valid
        assert response is not None and response.state is not None
        assert response.state.threshold_percent == threshold

    def test_errors_have_no_urls(self, validator: SchemaValidator) -> None:
        result = validator.validate({})
        assert all("http" not in e.message for e in result.errors)


class TestToResponse:
    def test_typed_response(self, validator: SchemaValidator) -> None:
        response, result = validator.to_response(
            {"message": "m", "artifact": _artifact(), "next_actions": ["a"]}
        )
        assert result.valid
        assert response is not None
        assert response.artifact is not None
        assert response.artifact.type is ArtifactType.DESIGN_STRATEGY
        assert response.artifact.status is DraftStatus.DRAFT
        assert response.next_actions == ["a"]

    def test_invalid_returns_none(self, validator: SchemaValidator) -> None:
        response, result = validator.to_response({"message": 5})
        assert response is None
        assert not result.valid


class TestValidateArtifact:
    def test_valid(self, validator: SchemaValidator) -> None:
        artifact = validator.validate_artifact(_artifact(status="ready_for_review"))
        assert artifact is not None
        assert artifact.status is DraftStatus.READY_FOR_REVIEW

    def test_none(self, validator: SchemaValidator) -> None:
        assert validator.validate_artifact(None) is None

    def test_invalid(self, validator: SchemaValidator) -> None:
        assert validator.validate_artifact(_artifact(content="short")) is None


class TestCheckSize:
    def test_within_limit(self) -> None:
        assert SchemaValidator(max_response_chars=10).check_size("x" * 10) is None

    def test_over_limit(self) -> None:
        error = SchemaValidator(max_response_chars=10).check_size("x" * 11)
        assert error is not None
        assert error.code == "RESPONSE_TOO_LARGE"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("phase_1_contract", True),
        ("performance_recommendation_report", True),
        ("Phase_1_Contract", False),
        ("", False),
        (None, False),
        (3, False),
    ],
)
def test_is_valid_artifact_type(value: object, expected: bool) -> None:
    assert is_valid_artifact_type(value) is expected

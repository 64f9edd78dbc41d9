"""Tests for ResponseExtractor: wrapping, repair and manual field scans."""

from __future__ import annotations

import json

import pytest

from artifactflow.parser.extractor import ExtractionError, ResponseExtractor

TRUNCATED = (
    '{"message": "Drafting now", "artifact": {"type": "scenario_bank", '
    '"title": "Scenarios", "content": "## Scenario 1\nThe learner greets a customer who'
)


class TestStripWrapping:
    def test_plain_object_unchanged(self, extractor: ResponseExtractor) -> None:
        assert extractor.strip_wrapping('{"message": "hi"}') == '{"message": "hi"}'

    def test_json_fence(self, extractor: ResponseExtractor) -> None:
        raw = '```json\n{"message": "hi"}\n```'
        assert extractor.strip_wrapping(raw) == '{"message": "hi"}'

    def test_bare_fence(self, extractor: ResponseExtractor) -> None:
        raw = '```\n{"message": "hi"}\n```'
        assert extractor.strip_wrapping(raw) == '{"message": "hi"}'

    def test_json_label(self, extractor: ResponseExtractor) -> None:
        assert extractor.strip_wrapping('json\n{"message": "hi"}') == '{"message": "hi"}'

    def test_missing_opening_brace(self, extractor: ResponseExtractor) -> None:
        assert extractor.strip_wrapping('"message": "hi"}') == '{"message": "hi"}'

    def test_surrounding_prose(self, extractor: ResponseExtractor) -> None:
        raw = 'Sure! {"message": "hi"} Hope this helps.'
        assert extractor.strip_wrapping(raw) == '{"message": "hi"}'

    def test_brace_inside_open_string_kept(self, extractor: ResponseExtractor) -> None:
        raw = '{"message": "hi", "artifact": {"content": "uses {braces} and more'
        assert extractor.strip_wrapping(raw) == raw


class TestLoad:
    def test_raw_newlines_tolerated(self, extractor: ResponseExtractor) -> None:
        assert extractor.load('{"message": "line one\nline two"}') == {
            "message": "line one\nline two"
        }

    def test_invalid_raises(self, extractor: ResponseExtractor) -> None:
        with pytest.raises(ExtractionError):
            extractor.load('{"message": ')


class TestRepair:
    def test_closes_truncated_content(self, extractor: ResponseExtractor) -> None:
        obj = json.loads(extractor.repair(TRUNCATED))
        artifact = obj["artifact"]
        assert artifact["content"] == "## Scenario 1\nThe learner greets a customer who"
        assert artifact["status"] == "draft"
        assert obj["message"] == "Drafting now"

    def test_escapes_quotes_in_content(self, extractor: ResponseExtractor) -> None:
        raw = (
            '{"message": "m", "artifact": {"type": "scenario_bank", "title": "T", '
            '"content": "He said "hello" to all learners today"}}'
        )
        obj = json.loads(extractor.repair(raw))
        assert obj["artifact"]["content"] == 'He said "hello" to all learners today'

    def test_drops_trailing_comma(self, extractor: ResponseExtractor) -> None:
        assert json.loads(extractor.repair('{"message": "hi",')) == {"message": "hi"}

    def test_closes_other_open_string(self, extractor: ResponseExtractor) -> None:
        assert json.loads(extractor.repair('{"message": "hel')) == {"message": "hel"}

    def test_drops_dangling_backslash(self, extractor: ResponseExtractor) -> None:
        assert json.loads(extractor.repair('{"message": "abc\\')) == {"message": "abc"}

    def test_closes_nested_arrays(self, extractor: ResponseExtractor) -> None:
        repaired = extractor.repair('{"message": "m", "next_actions": ["a", "b"')
        assert json.loads(repaired) == {"message": "m", "next_actions": ["a", "b"]}

    def test_balanced_text_unchanged(self, extractor: ResponseExtractor) -> None:
        assert extractor.repair('{"message": "hi"}') == '{"message": "hi"}'


class TestScanStringValue:
    def test_simple(self, extractor: ResponseExtractor) -> None:
        assert extractor.scan_string_value('{"message": "hi"}', "message") == "hi"

    def test_escaped_quotes(self, extractor: ResponseExtractor) -> None:
        text = '{"message": "a \\"q\\" b"}'
        assert extractor.scan_string_value(text, "message") == 'a "q" b'

    def test_escaped_newline(self, extractor: ResponseExtractor) -> None:
        assert extractor.scan_string_value('{"message": "a\\nb"}', "message") == "a\nb"

    def test_missing_key(self, extractor: ResponseExtractor) -> None:
        assert extractor.scan_string_value('{"other": "x"}', "message") is None

    def test_non_string_value(self, extractor: ResponseExtractor) -> None:
        assert extractor.scan_string_value('{"message": 5}', "message") is None

    def test_unterminated(self, extractor: ResponseExtractor) -> None:
        assert extractor.scan_string_value('{"message": "never ends', "message") is None

    def test_empty(self, extractor: ResponseExtractor) -> None:
        assert extractor.scan_string_value('{"message": ""}', "message") is None

    def test_start_offset(self, extractor: ResponseExtractor) -> None:
        text = '{"title": "outer", "artifact": {"title": "inner"}}'
        start = text.find('"artifact"')
        assert extractor.scan_string_value(text, "title", start) == "inner"


class TestExtractState:
    def test_full_state(self, extractor: ResponseExtractor) -> None:
        raw = (
            '{"message": "m", "state": {"mode": "QUICK", '
            '"pipeline_stage": "blueprint", "threshold_percent": 40}'
        )
        assert extractor.extract_state(raw) == {
            "mode": "QUICK",
            "pipeline_stage": "blueprint",
            "threshold_percent": 40.0,
        }

    def test_unknown_mode(self, extractor: ResponseExtractor) -> None:
        raw = '{"state": {"mode": "TURBO", "pipeline_stage": "x"}}'
        assert extractor.extract_state(raw) is None

    def test_missing_stage(self, extractor: ResponseExtractor) -> None:
        assert extractor.extract_state('{"state": {"mode": "QUICK"}}') is None

    def test_no_state(self, extractor: ResponseExtractor) -> None:
        assert extractor.extract_state('{"message": "m"}') is None


class TestExtractFields:
    def test_message_and_artifact(self, extractor: ResponseExtractor) -> None:
        raw = (
            '{"message": "Done" "artifact": {"type": "final_audit", "title": "Audit", '
            '"content": "The audit covers every module"}}'
        )
        assert extractor.extract_fields(raw) == {
            "message": "Done",
            "artifact": {
                "type": "final_audit",
                "title": "Audit",
                "content": "The audit covers every module",
                "status": "draft",
            },
        }

    def test_short_content_drops_artifact(self, extractor: ResponseExtractor) -> None:
        raw = (
            '{"message": "Done" "artifact": {"type": "final_audit", "title": "Audit", '
            '"content": "too short"}}'
        )
        assert extractor.extract_fields(raw) == {"message": "Done"}

    def test_unknown_type_drops_artifact(self, extractor: ResponseExtractor) -> None:
        raw = (
            '{"message": "Done" "artifact": {"type": "poem", "title": "Audit", '
            '"content": "The audit covers every module"}}'
        )
        assert extractor.extract_fields(raw) == {"message": "Done"}

    def test_no_message(self, extractor: ResponseExtractor) -> None:
        assert extractor.extract_fields('{"artifact": {}}') is None


class TestMentionsArtifact:
    @pytest.mark.parametrize(
        "raw",
        [
            '{"message": "m", "artifact": {"type": "x"}}',
            '{"message": "m" "artifact" :\n  {',
        ],
    )
    def test_artifact_object_opened(self, extractor: ResponseExtractor, raw: str) -> None:
        assert extractor.mentions_artifact(raw)

    @pytest.mark.parametrize(
        "raw",
        [
            '{"message": "m"}',
            '{"message": "m", "artifact": null}',
            '{"message": "the artifact is ready"}',
        ],
    )
    def test_no_artifact_object(self, extractor: ResponseExtractor, raw: str) -> None:
        assert not extractor.mentions_artifact(raw)


class TestCandidates:
    def test_direct_first(self, extractor: ResponseExtractor) -> None:
        strategies = [s for s, _ in extractor.candidates('{"message": "hi"}')]
        assert strategies == ["direct", "manual"]

    def test_repair_then_manual(self, extractor: ResponseExtractor) -> None:
        strategies = [s for s, _ in extractor.candidates(TRUNCATED)]
        assert strategies == ["repair", "manual"]

    def test_nothing_recoverable(self, extractor: ResponseExtractor) -> None:
        assert list(extractor.candidates("no json here")) == []

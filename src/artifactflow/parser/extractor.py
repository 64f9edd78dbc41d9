"""Turn raw, possibly wrapped or truncated model output into a candidate object.

Strategies escalate: strip wrapping and parse directly, then repair the
usual streaming/truncation damage, then scan the known fields by hand.
Nothing in here raises past :meth:`ResponseExtractor.candidates`; a strategy
that cannot produce an object is simply skipped.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from artifactflow.models.project import ProjectMode
from artifactflow.models.response import MIN_CONTENT_LENGTH
from artifactflow.parser.validator import is_valid_artifact_type

_FENCE_OPEN_RE = re.compile(r"^```[ \t]*(?:json)?[ \t]*(?:\r?\n)?", re.IGNORECASE)
_JSON_LABEL_RE = re.compile(r'^json(?=[\s{"])', re.IGNORECASE)
_CONTENT_OPEN_RE = re.compile(r'"content"\s*:\s*"')
_CONTENT_OPEN_TAIL_RE = re.compile(r'"content"\s*:\s*"\Z')
_CONTENT_END_RE = re.compile(r'"\s*(?:,\s*"status"\s*:|\})')
_THRESHOLD_RE = re.compile(r'"threshold_percent"\s*:\s*(-?\d+(?:\.\d+)?)')
_ARTIFACT_FIELD_RE = re.compile(r'"artifact"\s*:\s*\{')

_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}
_CLOSERS = {"{": "}", "[": "]"}

REPAIR_STATUS_SUFFIX = '", "status": "draft"'


class ExtractionError(ValueError):
    """Raised when a cleaned string cannot be loaded as JSON."""


@dataclass
class _Structure:
    """Result of a string-aware scan over a JSON-ish text."""

    open_containers: list[str] = field(default_factory=list)
    in_string: bool = False
    string_start: int = -1
    pending_escape: bool = False

    @property
    def balanced(self) -> bool:
        return not self.in_string and not self.open_containers


def _scan_structure(text: str) -> _Structure:
    s = _Structure()
    for i, ch in enumerate(text):
        if s.in_string:
            if s.pending_escape:
                s.pending_escape = False
            elif ch == "\\":
                s.pending_escape = True
            elif ch == '"':
                s.in_string = False
            continue
        if ch == '"':
            s.in_string = True
            s.string_start = i
        elif ch in _CLOSERS:
            s.open_containers.append(ch)
        elif ch in ("}", "]") and s.open_containers:
            if _CLOSERS[s.open_containers[-1]] == ch:
                s.open_containers.pop()
    return s


def _unescape(raw_value: str) -> str:
    try:
        return json.loads(f'"{raw_value}"', strict=False)
    except ValueError:
        return (
            raw_value.replace("\\n", "\n")
            .replace("\\r", "\r")
            .replace("\\t", "\t")
            .replace('\\"', '"')
            .replace("\\\\", "\\")
        )


class ResponseExtractor:
    """Produces candidate response objects from raw model text."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or logging.getLogger("artifactflow.extractor")

    # -- strategy 1: strip wrapping ----------------------------------------

    def strip_wrapping(self, raw: str) -> str:
        """Remove code fences, a bare ``json`` label and surrounding prose."""
        text = raw.strip()
        if text.startswith("```"):
            text = _FENCE_OPEN_RE.sub("", text, count=1)
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
        text = _JSON_LABEL_RE.sub("", text, count=1).lstrip()

        if not text.startswith("{"):
            if text.startswith('"message"'):
                text = "{" + text
            else:
                first = text.find("{")
                if first >= 0:
                    text = text[first:]

        if text.startswith("{") and not text.endswith("}"):
            # Only drop trailing text after a complete object; a "}" inside an
            # unterminated string must not cut the string short.
            last = text.rfind("}")
            if last > 0 and _scan_structure(text[: last + 1]).balanced:
                text = text[: last + 1]
        return text

    # -- strategy 2: direct parse ------------------------------------------

    def load(self, text: str) -> Any:
        """Parse ``text`` as JSON, tolerating raw control characters in strings."""
        try:
            return json.loads(text, strict=False)
        except RecursionError:
            raise ExtractionError("JSON nesting too deep") from None
        except json.JSONDecodeError as exc:
            raise ExtractionError(str(exc)) from None

    # -- strategy 3: repair ------------------------------------------------

    def repair(self, text: str) -> str:
        """Fix unescaped quotes in ``content`` and close whatever was left open."""
        repaired = self._escape_content_quotes(text)
        structure = _scan_structure(repaired)
        if structure.balanced:
            return repaired

        if structure.in_string:
            if structure.pending_escape:
                repaired = repaired[:-1]
            if _CONTENT_OPEN_TAIL_RE.search(repaired, 0, structure.string_start + 1):
                repaired += REPAIR_STATUS_SUFFIX
            else:
                repaired += '"'
        else:
            repaired = repaired.rstrip().rstrip(",")

        closers = "".join(_CLOSERS[c] for c in reversed(structure.open_containers))
        return repaired + closers

    def _escape_content_quotes(self, text: str) -> str:
        match = _CONTENT_OPEN_RE.search(text)
        if match is None:
            return text
        start = match.end()
        end = self._content_end(text, start)

        out: list[str] = []
        escaped = False
        for ch in text[start:end]:
            if escaped:
                out.append(ch)
                escaped = False
            elif ch == "\\":
                out.append(ch)
                escaped = True
            elif ch == '"':
                out.append('\\"')
            else:
                out.append(_ESCAPES.get(ch, ch))
        return text[:start] + "".join(out) + text[end:]

    @staticmethod
    def _content_end(text: str, start: int) -> int:
        """Index of the quote closing the content value, or end of text if none."""
        backslashes = 0
        for i in range(start, len(text)):
            ch = text[i]
            if ch == "\\":
                backslashes += 1
                continue
            if ch == '"' and backslashes % 2 == 0 and _CONTENT_END_RE.match(text, i):
                return i
            backslashes = 0
        return len(text)

    # -- strategy 4: manual field extraction -------------------------------

    def scan_string_value(self, text: str, key: str, start: int = 0) -> str | None:
        """Return the unescaped string value of ``key`` found at or after ``start``.

        Stops at the first unescaped closing quote. Returns None when the key
        is missing, its value is not a string, or the string never closes.
        """
        key_index = text.find(f'"{key}"', start)
        if key_index < 0:
            return None
        colon = text.find(":", key_index + len(key) + 2)
        if colon < 0:
            return None
        i = colon + 1
        while i < len(text) and text[i].isspace():
            i += 1
        if i >= len(text) or text[i] != '"':
            return None

        escaped = False
        for end in range(i + 1, len(text)):
            ch = text[end]
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                break
        else:
            return None

        raw_value = text[i + 1 : end]
        if not raw_value:
            return None
        return _unescape(raw_value)

    def extract_state(self, raw: str) -> dict[str, Any] | None:
        """Scan the ``state`` object's fields without relying on a full parse."""
        state_at = raw.find('"state"')
        if state_at < 0:
            return None
        mode = self.scan_string_value(raw, "mode", state_at)
        stage = self.scan_string_value(raw, "pipeline_stage", state_at)
        if mode not in tuple(ProjectMode) or not stage:
            return None
        state: dict[str, Any] = {"mode": mode, "pipeline_stage": stage}
        threshold = _THRESHOLD_RE.search(raw, state_at)
        if threshold is not None:
            state["threshold_percent"] = float(threshold.group(1))
        return state

    def extract_fields(self, raw: str) -> dict[str, Any] | None:
        """Last resort: rebuild the response from individually scanned fields."""
        message = self.scan_string_value(raw, "message")
        if not message:
            return None
        result: dict[str, Any] = {"message": message}

        artifact_at = raw.find('"artifact"')
        if artifact_at >= 0:
            artifact_type = self.scan_string_value(raw, "type", artifact_at)
            title = self.scan_string_value(raw, "title", artifact_at)
            content = self.scan_string_value(raw, "content", artifact_at)
            if (
                is_valid_artifact_type(artifact_type)
                and title
                and content
                and len(content) >= MIN_CONTENT_LENGTH
            ):
                result["artifact"] = {
                    "type": artifact_type,
                    "title": title,
                    "content": content,
                    "status": "draft",
                }

        state = self.extract_state(raw)
        if state is not None:
            result["state"] = state
        return result

    def mentions_artifact(self, raw: str) -> bool:
        """True if ``raw`` opens an ``artifact`` object, parseable or not."""
        return _ARTIFACT_FIELD_RE.search(raw) is not None

    # -- escalation --------------------------------------------------------

    def fallbacks(self, cleaned: str, raw: str) -> Iterator[tuple[str, Any]]:
        """Yield repair and manual-extraction candidates, in that order."""
        try:
            yield "repair", self.load(self.repair(cleaned))
        except ExtractionError as exc:
            self._log.debug("Repair pass did not produce valid JSON: %s", exc)
        manual = self.extract_fields(raw)
        if manual is not None:
            yield "manual", manual

    def candidates(self, raw: str) -> Iterator[tuple[str, Any]]:
        """Yield ``(strategy, object)`` pairs in escalation order."""
        cleaned = self.strip_wrapping(raw)
        try:
            obj = self.load(cleaned)
        except ExtractionError:
            yield from self.fallbacks(cleaned, raw)
            return
        yield "direct", obj
        manual = self.extract_fields(raw)
        if manual is not None:
            yield "manual", manual

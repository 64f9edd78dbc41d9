"""Orchestrates extraction and validation into a typed parse result."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from artifactflow.models.response import ParsedResponse
from artifactflow.parser.extractor import ExtractionError, ResponseExtractor
from artifactflow.parser.validator import SchemaValidator


@dataclass
class ParseResult:
    """Outcome of parsing one raw assistant turn.

    On failure ``raw_content`` carries the untouched input so callers can
    offer a "view raw response" / retry affordance.
    """

    success: bool
    data: ParsedResponse | None = None
    error: str | None = None
    raw_content: str | None = None
    strategy: str | None = None


class ResponseParser:
    """Parses raw model output: strip → direct parse → repair → manual scan."""

    def __init__(
        self,
        extractor: ResponseExtractor | None = None,
        validator: SchemaValidator | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._log = logger or logging.getLogger("artifactflow.parser")
        self._extractor = extractor or ResponseExtractor(logger=self._log)
        self._validator = validator or SchemaValidator()

    @property
    def extractor(self) -> ResponseExtractor:
        return self._extractor

    @property
    def validator(self) -> SchemaValidator:
        return self._validator

    def parse(self, raw_text: str) -> ParseResult:
        """Parse ``raw_text``. Pure; never raises."""
        too_large = self._validator.check_size(raw_text)
        if too_large is not None:
            return self._fail(too_large.message, raw_text)

        cleaned = self._extractor.strip_wrapping(raw_text)
        try:
            obj = self._extractor.load(cleaned)
        except ExtractionError as exc:
            parse_error = exc
        else:
            # A syntactically valid object is judged as-is; repair is only for
            # text that does not parse at all.
            response, result = self._validator.to_response(obj)
            if response is None:
                return self._fail(result.summary, raw_text)
            return ParseResult(success=True, data=response, strategy="direct")

        for strategy, candidate in self._extractor.fallbacks(cleaned, raw_text):
            response, _ = self._validator.to_response(candidate)
            if response is not None:
                self._log.debug("Recovered response via %s strategy", strategy)
                return ParseResult(success=True, data=response, strategy=strategy)

        return self._fail(f"JSON parse error: {parse_error}", raw_text)

    def _fail(self, error: str, raw_text: str) -> ParseResult:
        self._log.warning(
            "Parse failed: %s (content length=%d)", error, len(raw_text)
        )
        return ParseResult(success=False, error=error, raw_content=raw_text)

"""Response extraction, repair and schema validation."""

from artifactflow.parser.extractor import ExtractionError, ResponseExtractor
from artifactflow.parser.response_parser import ParseResult, ResponseParser
from artifactflow.parser.validator import SchemaValidator, is_valid_artifact_type

__all__ = [
    "ExtractionError",
    "ParseResult",
    "ResponseExtractor",
    "ResponseParser",
    "SchemaValidator",
    "is_valid_artifact_type",
]

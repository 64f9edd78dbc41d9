"""Stateless parsing endpoints: POST /parse, GET /parse/schema."""

from __future__ import annotations

from fastapi import APIRouter, Request

from artifactflow.api.schemas import ParseRequest, ParseResponseBody, SchemaPromptResponse
from artifactflow.models.response import RESPONSE_SCHEMA_PROMPT
from artifactflow.parser.response_parser import ResponseParser

router = APIRouter()


@router.post("", response_model=ParseResponseBody)
async def parse(body: ParseRequest, request: Request) -> ParseResponseBody:
    """Parse raw assistant output without touching any project."""
    parser: ResponseParser = request.app.state.parser
    result = parser.parse(body.raw_text)
    return ParseResponseBody(
        success=result.success,
        data=result.data,
        error=result.error,
        raw_content=result.raw_content,
        strategy=result.strategy,
    )


@router.get("/schema", response_model=SchemaPromptResponse)
async def schema_prompt() -> SchemaPromptResponse:
    """The response-format instructions to give the model."""
    return SchemaPromptResponse(prompt=RESPONSE_SCHEMA_PROMPT.strip())

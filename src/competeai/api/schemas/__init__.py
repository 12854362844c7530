"""Pydantic schemas for API request/response validation."""

from competeai.api.schemas.search import (
    ErrorResponse,
    SearchRequest,
    SearchResponse,
    SourceResponse,
    SummarizeRequest,
    SummarizeResponse,
    TokensUsed,
)

__all__ = [
    "ErrorResponse",
    "SearchRequest",
    "SearchResponse",
    "SourceResponse",
    "SummarizeRequest",
    "SummarizeResponse",
    "TokensUsed",
]

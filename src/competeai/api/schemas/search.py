"""Pydantic schemas for the AI search and summary endpoints."""

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from competeai.models.content import ContentRecord, ContentType, parse_content_type, record_from_dict


class SearchRequest(BaseModel):
    """Request body for a RAG search."""

    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = None
    content_type: str = Field("all", alias="contentType")
    limit: Optional[int] = None


class TokensUsed(BaseModel):
    input: int = 0
    output: int = 0


class SourceResponse(BaseModel):
    """A retrieved record cited by the answer."""

    type: str
    id: str
    title: str
    url: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    relevance: float


class SearchResponse(BaseModel):
    """Answer with sources.

    model, tokensUsed and estimatedCost are absent when nothing was retrieved.
    """

    model_config = ConfigDict(populate_by_name=True)

    answer: str
    sources: list[SourceResponse]
    query: str
    model: Optional[str] = None
    tokens_used: Optional[TokensUsed] = Field(None, alias="tokensUsed")
    estimated_cost: Optional[float] = Field(None, alias="estimatedCost")


class SummarizeRequest(BaseModel):
    """Request body for a record summary."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)

    def to_record(self) -> ContentRecord:
        """Build a domain record from the camelCase payload.

        Raises:
            ValueError: If the type is unknown or the data does not fit it
        """
        content_type = parse_content_type(self.type)
        data = {_snake_case(k): v for k, v in self.data.items()}

        for source, target in _FIELD_ALIASES.get(content_type, {}).items():
            if source in data and target not in data:
                data[target] = data.pop(source)

        id_field = _ID_FIELDS[content_type]
        if data.get(id_field) is None:
            data[id_field] = ""
        return record_from_dict(content_type, data)


class SummarizeResponse(BaseModel):
    summary: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None


_FIELD_ALIASES: dict[ContentType, dict[str, str]] = {
    ContentType.TRIAL: {"id": "nct_id", "sponsor": "sponsor_name"},
    ContentType.COMPANY: {"type": "company_type"},
}

_ID_FIELDS: dict[ContentType, str] = {
    ContentType.TRIAL: "nct_id",
    ContentType.COMPANY: "slug",
    ContentType.NEWS: "id",
    ContentType.INDICATION: "slug",
}


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()

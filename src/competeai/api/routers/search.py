"""AI search, summary and provider endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from competeai.api.dependencies import get_app_settings, get_pipeline, get_summarizer
from competeai.api.schemas import (
    ErrorResponse,
    SearchRequest,
    SearchResponse,
    SummarizeRequest,
    SummarizeResponse,
)
from competeai.config import Settings, list_providers
from competeai.exceptions import InvalidQueryError
from competeai.rag.pipeline import RAGSearchPipeline
from competeai.rag.summarizer import Summarizer

router = APIRouter(prefix="/api/ai", tags=["ai"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


@router.post(
    "/search",
    response_model=SearchResponse,
    response_model_exclude_unset=True,
    response_model_by_alias=True,
    responses=ERROR_RESPONSES,
)
async def search(
    request: SearchRequest,
    pipeline: RAGSearchPipeline = Depends(get_pipeline),
):
    """
    Answer a natural-language question from the indexed records.

    Retrieves the nearest trials, companies, news and indications, then asks
    the completion model to answer using only those documents.
    """
    result = await pipeline.search(
        request.query,
        content_type=request.content_type,
        limit=request.limit,
    )
    return SearchResponse.model_validate(result.to_dict())


@router.get(
    "/search",
    response_model=SearchResponse,
    response_model_exclude_unset=True,
    response_model_by_alias=True,
    responses=ERROR_RESPONSES,
)
async def search_get(
    q: Optional[str] = None,
    pipeline: RAGSearchPipeline = Depends(get_pipeline),
):
    """Same as POST /api/ai/search with default type and limit."""
    if not q:
        raise InvalidQueryError('Query parameter "q" is required')
    result = await pipeline.search(q)
    return SearchResponse.model_validate(result.to_dict())


@router.post("/summarize", response_model=SummarizeResponse, responses=ERROR_RESPONSES)
async def summarize(
    request: SummarizeRequest,
    summarizer: Summarizer = Depends(get_summarizer),
):
    """Short bullet summary of a trial, company or news article."""
    try:
        record = request.to_record()
    except ValueError as e:
        raise InvalidQueryError(str(e)) from e

    summary = await summarizer.summarize(record)
    return SummarizeResponse(summary=summary)


@router.get("/providers")
async def get_providers(settings: Settings = Depends(get_app_settings)):
    """
    List completion providers with their models and rates.

    Availability reflects whether the provider's API key is configured.
    """
    return {"providers": list_providers(settings)}

"""FastAPI dependencies for the components built at startup."""

from fastapi import Request

from competeai.config import Settings
from competeai.rag.pipeline import RAGSearchPipeline
from competeai.rag.summarizer import Summarizer
from competeai.rag.vector_store import EmbeddingStore


def get_app_settings(request: Request) -> Settings:
    """
    Settings the application was created with.

    Usage:
        @router.get("/items")
        async def get_items(settings: Settings = Depends(get_app_settings)):
            ...
    """
    return request.app.state.settings


def get_pipeline(request: Request) -> RAGSearchPipeline:
    return request.app.state.pipeline


def get_summarizer(request: Request) -> Summarizer:
    return request.app.state.summarizer


def get_store(request: Request) -> EmbeddingStore:
    return request.app.state.store

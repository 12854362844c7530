"""FastAPI application for the CompeteAI competitive-intelligence platform."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from competeai import __version__
from competeai.api.dependencies import get_store
from competeai.api.routers import search
from competeai.config import Settings, get_settings
from competeai.database.connection import Database
from competeai.exceptions import (
    CompeteAIError,
    InvalidQueryError,
    ProviderCallError,
    ProviderTimeoutError,
    StoreUnavailableError,
)
from competeai.logging import get_logger, log_failure, setup_logging
from competeai.rag.completion import CompletionClient
from competeai.rag.embedder import Embedder
from competeai.rag.pipeline import RAGSearchPipeline
from competeai.rag.summarizer import Summarizer
from competeai.rag.vector_store import EmbeddingStore, create_store

logger = get_logger("api")


def error_status(error: CompeteAIError) -> int:
    """HTTP status for an application error."""
    if isinstance(error, InvalidQueryError):
        return 400
    if isinstance(error, ProviderTimeoutError):
        return 504
    return 500


def error_details(error: CompeteAIError) -> Optional[str]:
    """Raw upstream message for diagnosis."""
    if isinstance(error, ProviderCallError):
        return error.provider_message
    if error.__cause__ is not None:
        return str(error.__cause__)
    return None


def build_components(app: FastAPI, settings: Settings) -> None:
    """Construct the store and provider clients once and attach them to app.state."""
    database = Database(settings) if settings.vector_store_backend.lower() == "postgres" else None
    store = create_store(settings, database)
    embedder = Embedder(settings)
    completion = CompletionClient(settings)

    app.state.database = database
    app.state.store = store
    app.state.pipeline = RAGSearchPipeline(settings, embedder, store, completion)
    app.state.summarizer = Summarizer(completion)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings (loads from env if not provided)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for FastAPI application.

        Handles startup and shutdown events.
        """
        setup_logging(level=logging.DEBUG if settings.debug else settings.log_level.upper())
        logger.info("Starting CompeteAI API...")
        logger.info(f"Vector store: {settings.vector_store_backend}")
        logger.info(f"Completion provider: {settings.completion_provider}")

        if not hasattr(app.state, "pipeline"):
            build_components(app, settings)

        yield

        logger.info("Shutting down CompeteAI API...")
        database = getattr(app.state, "database", None)
        if database is not None:
            await database.close()
            logger.info("Database connections closed")

    app = FastAPI(
        title="CompeteAI API",
        description="""
    Pharmaceutical competitive intelligence with retrieval-augmented answers.

    ## Endpoints

    - **Search**: POST /api/ai/search answers questions from indexed trials, companies, news and indications
    - **Summaries**: POST /api/ai/summarize writes a short bullet summary of one record
    - **Providers**: GET /api/ai/providers lists completion providers and their rates
    """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CompeteAIError)
    async def competeai_error_handler(request: Request, exc: CompeteAIError):
        status_code = error_status(exc)
        if status_code >= 500:
            log_failure(logger, f"{request.method} {request.url.path}", exc)
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")

        message = exc.message
        if isinstance(exc, StoreUnavailableError):
            message = "Embedding store unavailable"
        elif isinstance(exc, ProviderCallError) and not isinstance(exc, ProviderTimeoutError):
            message = f"{exc.provider} request failed"

        return JSONResponse(
            status_code=status_code,
            content={
                "error": message,
                "details": None if settings.is_production else error_details(exc),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request body",
                "details": None if settings.is_production else str(exc.errors()),
            },
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception):
        log_failure(logger, f"{request.method} {request.url.path}", exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "details": None if settings.is_production else str(exc),
            },
        )

    app.include_router(search.router)

    @app.get("/", tags=["root"])
    async def root():
        """
        Root endpoint with API information.
        """
        return {
            "name": "CompeteAI API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "search": "/api/ai/search",
                "summarize": "/api/ai/summarize",
                "providers": "/api/ai/providers",
            },
        }

    @app.get("/health", tags=["health"])
    async def health_check(store: EmbeddingStore = Depends(get_store)):
        """
        Health check endpoint for monitoring.

        Returns 200 OK if the API is running and can reach the embedding store.
        """
        try:
            await store.ping()
        except StoreUnavailableError as e:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "store": "disconnected",
                    "error": e.message,
                },
            )
        return {
            "status": "healthy",
            "store": "connected",
        }

    return app


app = create_app()


# Development server
if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "competeai.api.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.debug,
    )

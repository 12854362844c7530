"""Text embedder for the RAG system.

Generates embeddings using OpenAI's text-embedding models. One model and
dimensionality is used for both indexing and queries.
"""

import asyncio
from typing import Optional

from openai import AsyncOpenAI, OpenAIError, RateLimitError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from competeai.config import Settings
from competeai.exceptions import (
    ConfigurationMissingError,
    EmbeddingGenerationFailed,
    InvalidQueryError,
    ProviderCallError,
)
from competeai.logging import get_logger, log_warning
from competeai.utils import call_with_timeout

logger = get_logger("embedder")

PROVIDER = "openai"


class Embedder:
    """Generates text embeddings using OpenAI."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        """Initialize the embedder.

        Args:
            settings: Application settings (model, dimensions, batching, timeout)
            client: Pre-built OpenAI client; created from settings when omitted
        """
        self.model = settings.embedding_model
        self.dimensions = settings.embedding_dimensions
        self.batch_size = settings.embedding_batch_size
        self.batch_delay = settings.embedding_batch_delay_seconds
        self.rate_limit_backoff = settings.embedding_rate_limit_backoff_seconds
        self.timeout = settings.provider_timeout_seconds
        self._api_key = settings.openai_api_key
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def ensure_configured(self) -> None:
        """Fail before any network call when no credential is available."""
        if not self.is_configured:
            raise ConfigurationMissingError(
                "openai_api_key", "OpenAI API key not configured"
            )

    @property
    def client(self) -> AsyncOpenAI:
        self.ensure_configured()
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def _create(self, texts: list[str]) -> list[list[float]]:
        """Single embeddings API call, vectors returned in input order."""
        response = await call_with_timeout(
            self.client.embeddings.create(
                model=self.model,
                input=texts,
                dimensions=self.dimensions,
            ),
            self.timeout,
            PROVIDER,
        )

        data = sorted(response.data, key=lambda item: item.index)
        vectors = [item.embedding for item in data]
        if len(vectors) != len(texts):
            raise EmbeddingGenerationFailed(
                PROVIDER, f"Expected {len(texts)} embeddings, got {len(vectors)}"
            )
        return vectors

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Non-empty text to embed

        Returns:
            Embedding vector

        Raises:
            InvalidQueryError: If text is empty or whitespace
            ConfigurationMissingError: If no API key is configured
            EmbeddingGenerationFailed: If the provider call fails
            ProviderTimeoutError: If the provider does not answer in time
        """
        if not text or not text.strip():
            raise InvalidQueryError("Text to embed must not be empty")

        try:
            vectors = await self._create([text])
        except ProviderCallError:
            raise
        except OpenAIError as e:
            raise EmbeddingGenerationFailed(PROVIDER, str(e)) from e
        return vectors[0]

    async def _embed_chunk(self, texts: list[str]) -> list[list[float]]:
        """Embed one batch chunk, retrying once after a fixed backoff on rate limits."""
        vectors: list[list[float]] = []
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(RateLimitError),
                stop=stop_after_attempt(2),
                wait=wait_fixed(self.rate_limit_backoff),
                before_sleep=lambda state: log_warning(
                    logger,
                    "Embedding batch",
                    f"rate limited, retrying in {self.rate_limit_backoff}s",
                    context={"texts": len(texts)},
                ),
                reraise=True,
            ):
                with attempt:
                    vectors = await self._create(texts)
        except ProviderCallError:
            raise
        except OpenAIError as e:
            raise EmbeddingGenerationFailed(PROVIDER, str(e)) from e
        return vectors

    async def embed_batch(
        self, texts: list[str], batch_size: Optional[int] = None
    ) -> list[list[float]]:
        """Embed many texts in chunks of at most ``batch_size``.

        Chunks are sent one after another with a fixed delay between them.
        A failing chunk aborts the remaining ones.

        Args:
            texts: Texts to embed
            batch_size: Upper bound on texts per API call (defaults to settings)

        Returns:
            Embedding vectors in the same order as ``texts``
        """
        if not texts:
            return []

        bound = self.batch_size if batch_size is None else batch_size
        if bound < 1:
            raise ValueError("batch_size must be at least 1")
        if any(not t or not t.strip() for t in texts):
            raise InvalidQueryError("Texts to embed must not be empty")

        self.ensure_configured()

        embeddings: list[list[float]] = []
        for start in range(0, len(texts), bound):
            chunk = texts[start:start + bound]
            logger.debug(f"Embedding batch {start // bound + 1} ({len(chunk)} texts)")
            embeddings.extend(await self._embed_chunk(chunk))

            if start + bound < len(texts):
                await asyncio.sleep(self.batch_delay)

        logger.info(f"Generated {len(embeddings)} embeddings")
        return embeddings

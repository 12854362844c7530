"""Query pipeline: answers questions from retrieved, grounded context.

embed query → retrieve top-k → (no results: fixed answer) → build context →
complete → map sources
"""

import logging
from typing import Any, Optional

from competeai.config import Settings
from competeai.exceptions import InvalidQueryError
from competeai.models.content import ContentType, parse_content_type
from competeai.models.rag import QueryResult, ScoredRecord, SourceEntry
from competeai.rag.completion import CompletionClient
from competeai.rag.embedder import Embedder
from competeai.rag.prompts import NO_RESULTS_ANSWER, SYSTEM_PROMPT, build_user_prompt
from competeai.rag.vector_store import EmbeddingStore
from competeai.utils import first_line

logger = logging.getLogger(__name__)

ALL_TYPES = "all"
TRIAL_REGISTRY_URL = "https://clinicaltrials.gov/study/{id}"


def format_metadata(metadata: dict[str, Any]) -> str:
    """Flatten metadata to ``key: value; key: a, b``. Empty values are dropped."""
    parts = []
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        parts.append(f"{key}: {value}")
    return "; ".join(parts)


def build_context(results: list[ScoredRecord]) -> str:
    """Numbered, delimited context block in ranked order."""
    blocks = []
    for i, result in enumerate(results, 1):
        record = result.record
        metadata_str = format_metadata(record.metadata)
        block = f"[Document {i} - {record.content_type.value}]\n{record.content}\n"
        if metadata_str:
            block += f"Metadata: {metadata_str}\n"
        blocks.append(block + "---")
    return "\n\n".join(blocks)


def source_url(content_type: ContentType, content_id: str, metadata: dict[str, Any]) -> str:
    """Best-effort link for a retrieved record."""
    match content_type:
        case ContentType.TRIAL:
            return TRIAL_REGISTRY_URL.format(id=content_id)
        case ContentType.COMPANY:
            return f"/companies/{content_id}"
        case ContentType.INDICATION:
            return f"/indications/{content_id}"
        case ContentType.NEWS:
            return metadata.get("sourceUrl") or "/news"
    return ""


def to_source(result: ScoredRecord) -> SourceEntry:
    record = result.record
    return SourceEntry(
        type=record.content_type.value,
        id=record.content_id,
        title=first_line(record.content),
        url=source_url(record.content_type, record.content_id, record.metadata),
        metadata=record.metadata,
        relevance=round(result.relevance, 3),
    )


class RAGSearchPipeline:
    """Answers natural-language questions using only retrieved records."""

    def __init__(
        self,
        settings: Settings,
        embedder: Embedder,
        store: EmbeddingStore,
        completion: CompletionClient,
    ):
        """Initialize the pipeline.

        Args:
            settings: Application settings (top-k bounds, temperature, token budget)
            embedder: Embedding generator, same model the index was built with
            store: Embedding store to retrieve from
            completion: Completion client used to write the answer
        """
        self.embedder = embedder
        self.store = store
        self.completion = completion
        self.default_top_k = settings.rag_top_k
        self.max_top_k = settings.rag_max_top_k
        self.temperature = settings.rag_temperature
        self.max_tokens = settings.rag_max_tokens

    def _validate(
        self, query: Optional[str], content_type: Optional[ContentType | str], limit: Optional[int]
    ) -> tuple[str, Optional[ContentType], int]:
        if query is None or not query.strip():
            raise InvalidQueryError("Query is required")

        type_filter: Optional[ContentType] = None
        if content_type is not None and not (
            isinstance(content_type, str) and content_type.strip().lower() == ALL_TYPES
        ):
            try:
                type_filter = parse_content_type(content_type)
            except ValueError as e:
                raise InvalidQueryError(str(e)) from e

        k = self.default_top_k if limit is None else limit
        if not 1 <= k <= self.max_top_k:
            raise InvalidQueryError(f"limit must be between 1 and {self.max_top_k}")

        return query, type_filter, k

    async def search(
        self,
        query: Optional[str],
        content_type: Optional[ContentType | str] = ALL_TYPES,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """Answer a question from the indexed records.

        Args:
            query: Natural-language question
            content_type: Restrict retrieval to one type, or "all"
            limit: Number of records to retrieve (defaults to settings.rag_top_k)

        Returns:
            QueryResult with the answer, cited sources and completion usage

        Raises:
            InvalidQueryError: Empty query, unknown content type or limit out of range
            ConfigurationMissingError: Embedding or completion credential absent
            ProviderCallError: Embedding or completion call failed or timed out
            StoreUnavailableError: The embedding store cannot be reached
        """
        query, type_filter, k = self._validate(query, content_type, limit)

        self.embedder.ensure_configured()
        self.completion.ensure_configured()

        query_vector = await self.embedder.embed(query)

        results = await self.store.query(query_vector, k, type_filter)
        logger.info(
            f"Retrieved {len(results)} records for query "
            f"(type={type_filter.value if type_filter else ALL_TYPES}, k={k})"
        )

        if not results:
            return QueryResult(answer=NO_RESULTS_ANSWER, sources=[], query=query)

        context = build_context(results)
        completion = await self.completion.complete(
            SYSTEM_PROMPT,
            build_user_prompt(query, context),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        return QueryResult(
            answer=completion.text,
            sources=[to_source(r) for r in results],
            query=query,
            model=completion.model,
            tokens_used=completion.usage,
            estimated_cost=completion.estimated_cost,
        )

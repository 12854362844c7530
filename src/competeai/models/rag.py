"""RAG (Retrieval-Augmented Generation) data models.

Data structures for the embedding index, retrieval results and answers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from competeai.models.content import ContentType


@dataclass
class EmbeddingRecord:
    """One entry of the embedding index.

    (content_type, content_id) is unique across the store.
    """

    content_type: ContentType
    content_id: str
    content: str  # Exact text that was embedded
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[ContentType, str]:
        return (self.content_type, self.content_id)


@dataclass
class ScoredRecord:
    """A retrieved record with its distance to the query vector."""

    record: EmbeddingRecord
    distance: float  # Cosine distance, lower = more similar

    @property
    def relevance(self) -> float:
        """Relevance score, 1 - distance clamped to [0, 1] (higher = more relevant)."""
        return min(1.0, max(0.0, 1.0 - self.distance))


@dataclass
class SourceEntry:
    """A cited source displayed alongside an answer."""

    type: str
    id: str
    title: str
    url: str
    metadata: dict[str, Any]
    relevance: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "metadata": self.metadata,
            "relevance": self.relevance,
        }


@dataclass
class TokenUsage:
    """Prompt and completion token counts."""

    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output


@dataclass
class CompletionResult:
    """Result of a single completion call."""

    text: str
    model: str
    provider: str
    usage: TokenUsage
    estimated_cost: float


@dataclass
class QueryResult:
    """Answer returned by the query pipeline (not persisted)."""

    answer: str
    sources: list[SourceEntry]
    query: str
    model: Optional[str] = None
    tokens_used: Optional[TokenUsage] = None
    estimated_cost: Optional[float] = None

    @property
    def has_sources(self) -> bool:
        return bool(self.sources)

    def to_dict(self) -> dict[str, Any]:
        """Response body for the search endpoint."""
        data: dict[str, Any] = {
            "answer": self.answer,
            "sources": [s.to_dict() for s in self.sources],
            "query": self.query,
        }
        if self.model is not None:
            data["model"] = self.model
            data["tokensUsed"] = {
                "input": self.tokens_used.input if self.tokens_used else 0,
                "output": self.tokens_used.output if self.tokens_used else 0,
            }
            data["estimatedCost"] = self.estimated_cost or 0.0
        return data


@dataclass
class ItemFailure:
    """A record that could not be indexed."""

    content_type: ContentType
    content_id: str
    error: str


@dataclass
class IndexStats:
    """Counts for one content type in an indexing run."""

    content_type: ContentType
    processed: int = 0
    skipped: int = 0
    errored: int = 0
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.processed + self.skipped + self.errored


@dataclass
class IndexSummary:
    """Summary of an indexing run across content types."""

    stats: dict[ContentType, IndexStats] = field(default_factory=dict)

    def for_type(self, content_type: ContentType) -> IndexStats:
        if content_type not in self.stats:
            self.stats[content_type] = IndexStats(content_type=content_type)
        return self.stats[content_type]

    @property
    def processed(self) -> int:
        return sum(s.processed for s in self.stats.values())

    @property
    def skipped(self) -> int:
        return sum(s.skipped for s in self.stats.values())

    @property
    def errored(self) -> int:
        return sum(s.errored for s in self.stats.values())

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            t.value: {"processed": s.processed, "skipped": s.skipped, "errored": s.errored}
            for t, s in self.stats.items()
        }

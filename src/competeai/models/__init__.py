"""Models package."""

from competeai.models.content import (
    Company,
    ContentRecord,
    ContentType,
    Indication,
    NewsArticle,
    Trial,
    parse_content_type,
    record_from_dict,
)
from competeai.models.rag import (
    CompletionResult,
    EmbeddingRecord,
    IndexStats,
    IndexSummary,
    ItemFailure,
    QueryResult,
    ScoredRecord,
    SourceEntry,
    TokenUsage,
)

__all__ = [
    "Company",
    "CompletionResult",
    "ContentRecord",
    "ContentType",
    "EmbeddingRecord",
    "Indication",
    "IndexStats",
    "IndexSummary",
    "ItemFailure",
    "NewsArticle",
    "QueryResult",
    "ScoredRecord",
    "SourceEntry",
    "TokenUsage",
    "Trial",
    "parse_content_type",
    "record_from_dict",
]

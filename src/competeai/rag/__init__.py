"""RAG (Retrieval-Augmented Generation) system for competitive intelligence.

Indexes trials, companies, news and indications as embeddings and answers
questions from the nearest records.
"""

from competeai.rag.completion import CompletionClient
from competeai.rag.embedder import Embedder
from competeai.rag.formatter import format_content
from competeai.rag.indexer import (
    BatchIndexer,
    CandidateSource,
    DatabaseCandidateSource,
    StaticCandidateSource,
)
from competeai.rag.pipeline import RAGSearchPipeline
from competeai.rag.summarizer import Summarizer
from competeai.rag.vector_store import (
    EmbeddingStore,
    InMemoryEmbeddingStore,
    PgVectorEmbeddingStore,
    create_store,
)

__all__ = [
    "BatchIndexer",
    "CandidateSource",
    "CompletionClient",
    "DatabaseCandidateSource",
    "Embedder",
    "EmbeddingStore",
    "InMemoryEmbeddingStore",
    "PgVectorEmbeddingStore",
    "RAGSearchPipeline",
    "StaticCandidateSource",
    "Summarizer",
    "create_store",
    "format_content",
]

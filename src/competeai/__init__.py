"""CompeteAI - Pharmaceutical competitive intelligence with grounded AI search."""

__version__ = "0.1.0"

from competeai.rag.indexer import BatchIndexer  # noqa: E402
from competeai.rag.pipeline import RAGSearchPipeline  # noqa: E402

__all__ = ["BatchIndexer", "RAGSearchPipeline", "__version__"]

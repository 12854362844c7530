"""Database layer for CompeteAI."""

from competeai.database.connection import Database, create_engine_from_settings, unavailable_on_error
from competeai.database.models import (
    EMBEDDING_DIMENSIONS,
    Base,
    Company,
    Embedding,
    Indication,
    NewsItem,
    Trial,
)

__all__ = [
    "EMBEDDING_DIMENSIONS",
    "Base",
    "Company",
    "Database",
    "Embedding",
    "Indication",
    "NewsItem",
    "Trial",
    "create_engine_from_settings",
    "unavailable_on_error",
]

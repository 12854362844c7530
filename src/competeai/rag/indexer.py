"""
Batch indexer - brings the embedding store up to date with the domain data.

Pipeline per content type: fetch candidates → skip if indexed → format → embed → upsert
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, Optional

from sqlalchemy import Select, select
from sqlalchemy.orm import selectinload

from competeai.database import models as db
from competeai.database.connection import Database, unavailable_on_error
from competeai.exceptions import ItemProcessingError
from competeai.logging import get_logger, log_failure
from competeai.models.content import (
    Company,
    ContentRecord,
    ContentType,
    Indication,
    NewsArticle,
    Trial,
    parse_content_type,
)
from competeai.models.rag import EmbeddingRecord, IndexSummary, ItemFailure
from competeai.rag.embedder import Embedder
from competeai.rag.formatter import format_content
from competeai.rag.vector_store import EmbeddingStore

logger = get_logger("indexer")

ALL_TYPES = "all"

# Processing order for an "all" run
INDEX_ORDER = [
    ContentType.INDICATION,
    ContentType.COMPANY,
    ContentType.NEWS,
    ContentType.TRIAL,
]


class CandidateSource(ABC):
    """Supplies the domain records to index, in fetch order."""

    @abstractmethod
    async def fetch(
        self, content_type: ContentType, limit: Optional[int] = None
    ) -> Sequence[ContentRecord]:
        """Fetch candidate records of one type."""


class StaticCandidateSource(CandidateSource):
    """Candidates held in memory, keyed by content type."""

    def __init__(self, records: Sequence[ContentRecord]):
        self._records: dict[ContentType, list[ContentRecord]] = {}
        for record in records:
            self._records.setdefault(record.content_type, []).append(record)

    async def fetch(
        self, content_type: ContentType, limit: Optional[int] = None
    ) -> Sequence[ContentRecord]:
        records = self._records.get(content_type, [])
        return records[:limit] if limit is not None else list(records)


class DatabaseCandidateSource(CandidateSource):
    """Reads candidates from the trials, companies, news and indications tables."""

    def __init__(self, database: Database, news_limit: int = 100):
        """
        Args:
            database: Database holding the domain tables
            news_limit: Most recent articles to index when no limit is given
        """
        self.database = database
        self.news_limit = news_limit

    async def fetch(
        self, content_type: ContentType, limit: Optional[int] = None
    ) -> Sequence[ContentRecord]:
        """
        Raises:
            StoreUnavailableError: If the database cannot be reached
        """
        stmt = candidate_statement(content_type, limit, self.news_limit)
        to_record = ROW_MAPPERS[content_type]
        with unavailable_on_error("Domain database"):
            async with self.database.session() as session:
                rows = (await session.execute(stmt)).scalars().all()
                return [to_record(row) for row in rows]


def candidate_statement(
    content_type: ContentType, limit: Optional[int] = None, news_limit: int = 100
) -> Select:
    """SELECT for one type's candidates. News is most recent first and always bounded."""
    match content_type:
        case ContentType.TRIAL:
            stmt = select(db.Trial).options(selectinload(db.Trial.company)).order_by(db.Trial.id)
        case ContentType.COMPANY:
            stmt = select(db.Company).order_by(db.Company.id)
        case ContentType.NEWS:
            return (
                select(db.NewsItem)
                .order_by(db.NewsItem.published_date.desc(), db.NewsItem.id)
                .limit(limit if limit is not None else news_limit)
            )
        case ContentType.INDICATION:
            stmt = select(db.Indication).order_by(db.Indication.id)
        case _:
            raise ValueError(f"Unsupported content type: {content_type}")
    return stmt.limit(limit) if limit is not None else stmt


def _trial_from_row(row: db.Trial) -> Trial:
    return Trial(
        nct_id=row.id,
        title=row.title,
        phase=row.phase,
        status=row.status,
        conditions=list(row.conditions or []),
        interventions=list(row.interventions or []),
        sponsor_name=row.sponsor_name,
        company_name=row.company.name if row.company else None,
        brief_summary=row.brief_summary,
        study_type=row.study_type,
        enrollment_count=row.enrollment_count,
    )


def _company_from_row(row: db.Company) -> Company:
    return Company(
        slug=row.slug,
        name=row.name,
        headquarters=row.headquarters,
        therapy_areas=list(row.therapy_areas or []),
        website=row.website,
        company_type=row.company_type,
    )


def _news_from_row(row: db.NewsItem) -> NewsArticle:
    return NewsArticle(
        id=row.id,
        title=row.title,
        source=row.source,
        summary=row.summary,
        description=row.description,
        category=row.category,
        published_date=row.published_date,
        source_url=row.source_url,
    )


def _indication_from_row(row: db.Indication) -> Indication:
    return Indication(
        slug=row.slug,
        name=row.name,
        category=row.category,
        description=row.description,
        total_reports=row.total_reports or 0,
        total_trials=row.total_trials or 0,
    )


ROW_MAPPERS: dict[ContentType, Callable[[Any], ContentRecord]] = {
    ContentType.TRIAL: _trial_from_row,
    ContentType.COMPANY: _company_from_row,
    ContentType.NEWS: _news_from_row,
    ContentType.INDICATION: _indication_from_row,
}


class BatchIndexer:
    """
    Orchestrates the indexing pipeline.

    Records are processed one at a time in fetch order. A record that fails
    to format, embed or store is counted and skipped; the run continues.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: EmbeddingStore,
        source: CandidateSource,
        item_delay: float = 0.6,
    ):
        """
        Initialize the indexer.

        Args:
            embedder: Embedding generator
            store: Embedding store to bring up to date
            source: Where candidate records come from
            item_delay: Seconds to wait between single-item embedding calls
        """
        self.embedder = embedder
        self.store = store
        self.source = source
        self.item_delay = item_delay

    async def index(
        self,
        content_type: ContentType | str = ALL_TYPES,
        limit: Optional[int] = None,
        skip_existing: bool = True,
    ) -> IndexSummary:
        """
        Index one content type, or all of them.

        Args:
            content_type: A content type name or "all"
            limit: Maximum candidates fetched per type
            skip_existing: Skip records already in the store

        Returns:
            Processed/skipped/errored counts per content type

        Raises:
            ValueError: If content_type or limit is invalid
            ConfigurationMissingError: If no embedding credential is configured
            StoreUnavailableError: If the domain tables or the store cannot be read
        """
        if limit is not None and limit < 1:
            raise ValueError("limit must be at least 1")

        if isinstance(content_type, str) and content_type.strip().lower() == ALL_TYPES:
            types = list(INDEX_ORDER)
        else:
            types = [parse_content_type(content_type)]

        self.embedder.ensure_configured()

        summary = IndexSummary()
        for ctype in types:
            await self._index_type(ctype, limit, skip_existing, summary)

        logger.info(
            f"Indexing complete: {summary.processed} processed, "
            f"{summary.skipped} skipped, {summary.errored} errors"
        )
        return summary

    async def _index_type(
        self,
        content_type: ContentType,
        limit: Optional[int],
        skip_existing: bool,
        summary: IndexSummary,
    ) -> None:
        stats = summary.for_type(content_type)
        candidates = await self.source.fetch(content_type, limit)
        logger.info(f"Found {len(candidates)} {content_type.value} candidates")

        embedded_any = False
        for record in candidates:
            content_id = record.content_id

            if skip_existing and await self.store.exists(content_type, content_id):
                stats.skipped += 1
                continue

            if embedded_any and self.item_delay > 0:
                await asyncio.sleep(self.item_delay)

            embedded_any = True
            try:
                await self._index_record(content_type, record)
            except ItemProcessingError as e:
                log_failure(
                    logger,
                    "Index record",
                    e.__cause__ or e,
                    context={"content_type": content_type.value, "content_id": content_id},
                )
                stats.errored += 1
                stats.failures.append(
                    ItemFailure(content_type=content_type, content_id=content_id, error=e.message)
                )
                continue

            stats.processed += 1
            if stats.processed % 10 == 0:
                logger.info(f"Processed {stats.processed}/{len(candidates)} {content_type.value} records")

        logger.info(
            f"{content_type.value}: {stats.processed} processed, "
            f"{stats.skipped} skipped, {stats.errored} errors"
        )

    async def _index_record(self, content_type: ContentType, record: ContentRecord) -> None:
        """Format, embed and store one record.

        Raises:
            ItemProcessingError: If any step fails for this record
        """
        try:
            content = format_content(record, content_type)
            vector = await self.embedder.embed(content)
            await self.store.upsert(
                EmbeddingRecord(
                    content_type=content_type,
                    content_id=record.content_id,
                    content=content,
                    embedding=vector,
                    metadata=record.metadata,
                )
            )
        except Exception as e:
            raise ItemProcessingError(content_type.value, record.content_id, str(e)) from e

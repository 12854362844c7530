"""Embedding stores for the RAG system.

``PgVectorEmbeddingStore`` keeps the index in PostgreSQL with the pgvector
extension and is the production backend. ``InMemoryEmbeddingStore`` keeps
it in process memory and serves tests and single-process tooling.

Both rank by cosine distance (lower = more similar) and break ties by
insertion order, so equal-distance results come back deterministically.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import numpy as np
from sqlalchemy import delete, func, literal, select
from sqlalchemy.dialects.postgresql import insert

from competeai.config import Settings
from competeai.database.connection import Database, unavailable_on_error
from competeai.database.models import EMBEDDING_DIMENSIONS, Embedding
from competeai.models.content import ContentType
from competeai.models.rag import EmbeddingRecord, ScoredRecord

logger = logging.getLogger(__name__)


class EmbeddingStore(ABC):
    """Persistent index of (content_type, content_id) -> text, vector, metadata."""

    def __init__(self, dimension: Optional[int] = None):
        self.dimension = dimension

    def _validate_vector(self, vector: list[float]) -> None:
        if self.dimension is not None and len(vector) != self.dimension:
            raise ValueError(
                f"Embedding has {len(vector)} dimensions, store expects {self.dimension}"
            )

    @abstractmethod
    async def upsert(self, record: EmbeddingRecord) -> EmbeddingRecord:
        """Insert a record, or replace content/vector/metadata of the existing one."""

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        k: int,
        content_type: Optional[ContentType] = None,
    ) -> list[ScoredRecord]:
        """Return up to k records nearest to vector, ascending by distance."""

    @abstractmethod
    async def exists(self, content_type: ContentType, content_id: str) -> bool:
        """Check whether a record is already indexed."""

    @abstractmethod
    async def get(self, content_type: ContentType, content_id: str) -> Optional[EmbeddingRecord]:
        """Fetch one record by key."""

    @abstractmethod
    async def count(self) -> dict[ContentType, int]:
        """Number of records per content type."""

    @abstractmethod
    async def clear_all(self) -> int:
        """Delete every record. Returns the number deleted."""

    @abstractmethod
    async def clear_by_type(self, content_type: ContentType) -> int:
        """Delete records of one type. Returns the number deleted."""

    async def ping(self) -> None:
        """Raise StoreUnavailableError if the store cannot be reached."""
        return None


def _copy(record: EmbeddingRecord) -> EmbeddingRecord:
    return replace(record, embedding=list(record.embedding), metadata=dict(record.metadata))


def _cosine_distances(matrix: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Cosine distance of each row of matrix to vector; zero vectors get distance 1."""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(vector)
    dots = matrix @ vector
    similarity = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
    return 1.0 - similarity


class InMemoryEmbeddingStore(EmbeddingStore):
    """Embedding store held in process memory."""

    def __init__(self, dimension: Optional[int] = None):
        """Initialize the store.

        Args:
            dimension: Required vector length; fixed by the first upsert when None
        """
        super().__init__(dimension)
        self._records: dict[tuple[ContentType, str], EmbeddingRecord] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._records)

    async def upsert(self, record: EmbeddingRecord) -> EmbeddingRecord:
        if self.dimension is None:
            self.dimension = len(record.embedding)
        self._validate_vector(record.embedding)

        now = datetime.now(timezone.utc)
        existing = self._records.get(record.key)

        if existing is None:
            stored = EmbeddingRecord(
                content_type=record.content_type,
                content_id=record.content_id,
                content=record.content,
                embedding=list(record.embedding),
                metadata=dict(record.metadata),
                id=self._next_id,
                created_at=now,
                updated_at=now,
            )
            self._next_id += 1
            self._records[record.key] = stored
        else:
            # Keep updated_at strictly increasing even on coarse clocks
            if existing.updated_at is not None and now <= existing.updated_at:
                now = existing.updated_at + timedelta(microseconds=1)
            stored = replace(
                existing,
                content=record.content,
                embedding=list(record.embedding),
                metadata=dict(record.metadata),
                updated_at=now,
            )
            self._records[record.key] = stored

        return _copy(stored)

    async def query(
        self,
        vector: list[float],
        k: int,
        content_type: Optional[ContentType] = None,
    ) -> list[ScoredRecord]:
        if k < 1:
            raise ValueError("k must be at least 1")
        self._validate_vector(vector)

        candidates = [
            r for r in self._records.values()
            if content_type is None or r.content_type == content_type
        ]
        if not candidates:
            return []

        matrix = np.array([r.embedding for r in candidates], dtype=np.float64)
        distances = _cosine_distances(matrix, np.array(vector, dtype=np.float64))

        ranked = sorted(
            zip(candidates, distances.tolist()),
            key=lambda pair: (pair[1], pair[0].id),
        )
        return [ScoredRecord(record=_copy(r), distance=float(d)) for r, d in ranked[:k]]

    async def exists(self, content_type: ContentType, content_id: str) -> bool:
        return (content_type, content_id) in self._records

    async def get(self, content_type: ContentType, content_id: str) -> Optional[EmbeddingRecord]:
        stored = self._records.get((content_type, content_id))
        return _copy(stored) if stored is not None else None

    async def count(self) -> dict[ContentType, int]:
        counts: dict[ContentType, int] = {}
        for content_type, _ in self._records:
            counts[content_type] = counts.get(content_type, 0) + 1
        return counts

    async def clear_all(self) -> int:
        deleted = len(self._records)
        self._records.clear()
        return deleted

    async def clear_by_type(self, content_type: ContentType) -> int:
        keys = [key for key in self._records if key[0] == content_type]
        for key in keys:
            del self._records[key]
        return len(keys)


def upsert_statement(record: EmbeddingRecord):
    """INSERT ... ON CONFLICT (content_type, content_id) DO UPDATE for one record."""
    stmt = insert(Embedding).values(
        {
            Embedding.content_type: record.content_type.value,
            Embedding.content_id: record.content_id,
            Embedding.content: record.content,
            Embedding.embedding: record.embedding,
            Embedding.metadata_: record.metadata,
        }
    )
    return stmt.on_conflict_do_update(
        index_elements=[Embedding.content_type, Embedding.content_id],
        set_={
            Embedding.content: stmt.excluded["content"],
            Embedding.embedding: stmt.excluded["embedding"],
            Embedding.metadata_: stmt.excluded["metadata"],
            Embedding.updated_at: func.now(),
        },
    ).returning(Embedding)


def nearest_statement(vector: list[float], k: int, content_type: Optional[ContentType] = None):
    """SELECT the k nearest rows by cosine distance, ties broken by id."""
    distance = Embedding.embedding.cosine_distance(vector).label("distance")
    stmt = select(Embedding, distance)
    if content_type is not None:
        stmt = stmt.where(Embedding.content_type == content_type.value)
    return stmt.order_by(distance, Embedding.id).limit(k)


def exists_statement(content_type: ContentType, content_id: str):
    return (
        select(literal(1))
        .where(Embedding.content_type == content_type.value)
        .where(Embedding.content_id == content_id)
        .limit(1)
    )


def _to_record(row: Embedding) -> EmbeddingRecord:
    return EmbeddingRecord(
        content_type=ContentType(row.content_type),
        content_id=row.content_id,
        content=row.content,
        embedding=[float(x) for x in row.embedding],
        metadata=dict(row.metadata_ or {}),
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class PgVectorEmbeddingStore(EmbeddingStore):
    """Embedding store backed by PostgreSQL + pgvector."""

    def __init__(self, database: Database, dimension: int = EMBEDDING_DIMENSIONS):
        """Initialize the store.

        Args:
            database: Database owning the engine and session factory
            dimension: Vector length; must match the embeddings column
        """
        if dimension != EMBEDDING_DIMENSIONS:
            raise ValueError(
                f"Embeddings column is vector({EMBEDDING_DIMENSIONS}); "
                f"cannot store {dimension}-dimensional vectors"
            )
        super().__init__(dimension)
        self.database = database

    async def upsert(self, record: EmbeddingRecord) -> EmbeddingRecord:
        self._validate_vector(record.embedding)
        with unavailable_on_error():
            async with self.database.session() as session:
                result = await session.execute(upsert_statement(record))
                row = result.scalar_one()
                return _to_record(row)

    async def query(
        self,
        vector: list[float],
        k: int,
        content_type: Optional[ContentType] = None,
    ) -> list[ScoredRecord]:
        if k < 1:
            raise ValueError("k must be at least 1")
        self._validate_vector(vector)
        with unavailable_on_error():
            async with self.database.session() as session:
                result = await session.execute(nearest_statement(vector, k, content_type))
                return [
                    ScoredRecord(record=_to_record(row), distance=float(distance))
                    for row, distance in result.all()
                ]

    async def exists(self, content_type: ContentType, content_id: str) -> bool:
        with unavailable_on_error():
            async with self.database.session() as session:
                result = await session.execute(exists_statement(content_type, content_id))
                return result.scalar() is not None

    async def get(self, content_type: ContentType, content_id: str) -> Optional[EmbeddingRecord]:
        stmt = (
            select(Embedding)
            .where(Embedding.content_type == content_type.value)
            .where(Embedding.content_id == content_id)
        )
        with unavailable_on_error():
            async with self.database.session() as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
                return _to_record(row) if row is not None else None

    async def count(self) -> dict[ContentType, int]:
        stmt = select(Embedding.content_type, func.count()).group_by(Embedding.content_type)
        with unavailable_on_error():
            async with self.database.session() as session:
                rows = (await session.execute(stmt)).all()
        return {ContentType(content_type): total for content_type, total in rows}

    async def ping(self) -> None:
        with unavailable_on_error():
            await self.database.ping()

    async def _delete(self, stmt: Any) -> int:
        with unavailable_on_error():
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return result.rowcount or 0

    async def clear_all(self) -> int:
        deleted = await self._delete(delete(Embedding))
        logger.info(f"Deleted {deleted} embeddings")
        return deleted

    async def clear_by_type(self, content_type: ContentType) -> int:
        deleted = await self._delete(
            delete(Embedding).where(Embedding.content_type == content_type.value)
        )
        logger.info(f"Deleted {deleted} {content_type.value} embeddings")
        return deleted


def create_store(settings: Settings, database: Optional[Database] = None) -> EmbeddingStore:
    """Build the configured store backend ("postgres" or "memory")."""
    backend = settings.vector_store_backend.lower()
    if backend == "memory":
        return InMemoryEmbeddingStore(dimension=settings.embedding_dimensions)
    if backend == "postgres":
        return PgVectorEmbeddingStore(
            database or Database(settings), dimension=settings.embedding_dimensions
        )
    raise ValueError(f"Unknown vector store backend: {settings.vector_store_backend}")

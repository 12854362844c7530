"""Tests for the embedding stores."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import DBAPIError

from competeai.config import Settings
from competeai.exceptions import StoreUnavailableError
from competeai.models.content import ContentType
from competeai.models.rag import EmbeddingRecord, ScoredRecord
from competeai.rag.vector_store import (
    InMemoryEmbeddingStore,
    PgVectorEmbeddingStore,
    create_store,
    exists_statement,
    nearest_statement,
    upsert_statement,
)

from conftest import make_settings, mock_database, unit_vector, unreachable_database


def record(content_type=ContentType.TRIAL, content_id="NCT1", vector=None, content="text"):
    return EmbeddingRecord(
        content_type=content_type,
        content_id=content_id,
        content=content,
        embedding=vector or unit_vector(0),
        metadata={"phase": "Phase 3"},
    )


def compile_pg(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.fixture
def store():
    return InMemoryEmbeddingStore(dimension=8)


class TestInMemoryUpsert:
    """Tests for upsert semantics."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_timestamps(self, store):
        stored = await store.upsert(record())

        assert stored.id == 1
        assert stored.created_at is not None
        assert stored.created_at == stored.updated_at
        assert await store.exists(ContentType.TRIAL, "NCT1")

    @pytest.mark.asyncio
    async def test_upsert_replaces_existing(self, store):
        first = await store.upsert(record(content="old", vector=unit_vector(0)))
        second = await store.upsert(record(content="new", vector=unit_vector(1)))

        assert len(store) == 1
        current = await store.get(ContentType.TRIAL, "NCT1")
        assert current.content == "new"
        assert current.embedding == unit_vector(1)
        assert current.id == first.id
        assert current.created_at == first.created_at
        assert second.updated_at > first.updated_at

    @pytest.mark.asyncio
    async def test_upsert_idempotent(self, store):
        await store.upsert(record())
        await store.upsert(record())

        assert await store.count() == {ContentType.TRIAL: 1}

    @pytest.mark.asyncio
    async def test_same_id_different_types_are_distinct(self, store):
        await store.upsert(record(ContentType.COMPANY, "acme"))
        await store.upsert(record(ContentType.INDICATION, "acme"))

        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_wrong_dimension_rejected(self, store):
        with pytest.raises(ValueError):
            await store.upsert(record(vector=[1.0, 0.0]))


class TestInMemoryQuery:
    """Tests for nearest-neighbour queries."""

    @pytest.mark.asyncio
    async def test_empty_store_returns_empty(self, store):
        assert await store.query(unit_vector(0), 5) == []

    @pytest.mark.asyncio
    async def test_filter_matching_nothing_returns_empty(self, store):
        await store.upsert(record())
        assert await store.query(unit_vector(0), 5, ContentType.NEWS) == []

    @pytest.mark.asyncio
    async def test_results_ordered_by_distance(self, store):
        await store.upsert(record(content_id="far", vector=unit_vector(3)))
        await store.upsert(record(content_id="near", vector=[0.9, 0.1, 0, 0, 0, 0, 0, 0]))
        await store.upsert(record(content_id="exact", vector=unit_vector(0)))

        results = await store.query(unit_vector(0), 3)

        assert [r.record.content_id for r in results] == ["exact", "near", "far"]
        distances = [r.distance for r in results]
        assert distances == sorted(distances)
        assert results[0].distance == pytest.approx(0.0)
        assert results[2].distance == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_fewer_than_k(self, store):
        await store.upsert(record())
        assert len(await store.query(unit_vector(0), 5)) == 1

    @pytest.mark.asyncio
    async def test_k_limits_results(self, store):
        for i in range(6):
            await store.upsert(record(content_id=f"NCT{i}", vector=unit_vector(i)))
        assert len(await store.query(unit_vector(0), 2)) == 2

    @pytest.mark.asyncio
    async def test_ties_broken_by_insertion_order(self, store):
        for content_id in ["b", "a", "c"]:
            await store.upsert(record(content_id=content_id, vector=unit_vector(1)))

        results = await store.query(unit_vector(0), 3)
        assert [r.record.content_id for r in results] == ["b", "a", "c"]

    @pytest.mark.asyncio
    async def test_type_filter(self, store):
        await store.upsert(record(ContentType.TRIAL, "NCT1"))
        await store.upsert(record(ContentType.NEWS, "1"))

        results = await store.query(unit_vector(0), 5, ContentType.NEWS)
        assert [r.record.content_type for r in results] == [ContentType.NEWS]

    @pytest.mark.asyncio
    async def test_relevance_within_bounds(self, store):
        await store.upsert(record(content_id="same", vector=unit_vector(0)))
        await store.upsert(record(content_id="opposite", vector=[-1.0] + [0.0] * 7))

        results = await store.query(unit_vector(0), 2)
        assert results[0].relevance == pytest.approx(1.0)
        assert results[1].distance == pytest.approx(2.0)
        assert results[1].relevance == 0.0
        assert all(0.0 <= r.distance <= 2.0 for r in results)

    @pytest.mark.asyncio
    async def test_invalid_k(self, store):
        with pytest.raises(ValueError):
            await store.query(unit_vector(0), 0)


class TestInMemoryCopies:
    """Callers get copies; mutating them never touches the index."""

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, store):
        await store.upsert(record())

        fetched = await store.get(ContentType.TRIAL, "NCT1")
        fetched.content = "tampered"
        fetched.embedding[0] = -1.0
        fetched.metadata["phase"] = "Phase 1"

        current = await store.get(ContentType.TRIAL, "NCT1")
        assert current.content == "text"
        assert current.embedding == unit_vector(0)
        assert current.metadata == {"phase": "Phase 3"}

    @pytest.mark.asyncio
    async def test_query_results_are_copies(self, store):
        await store.upsert(record())

        [hit] = await store.query(unit_vector(0), 1)
        hit.record.embedding[0] = -1.0

        [again] = await store.query(unit_vector(0), 1)
        assert again.distance == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get(ContentType.TRIAL, "missing") is None


class TestRelevance:
    """Relevance is 1 - distance, kept within [0, 1]."""

    @pytest.mark.parametrize(
        "distance,expected",
        [(0.0, 1.0), (0.25, 0.75), (1.0, 0.0), (1.6, 0.0), (2.0, 0.0)],
    )
    def test_relevance(self, distance, expected):
        assert ScoredRecord(record=record(), distance=distance).relevance == pytest.approx(expected)


class TestInMemoryClear:
    """Tests for bulk deletes."""

    @pytest.mark.asyncio
    async def test_clear_by_type(self, store):
        await store.upsert(record(ContentType.TRIAL, "NCT1"))
        await store.upsert(record(ContentType.NEWS, "1"))

        assert await store.clear_by_type(ContentType.TRIAL) == 1
        assert await store.count() == {ContentType.NEWS: 1}

    @pytest.mark.asyncio
    async def test_clear_all(self, store):
        await store.upsert(record(ContentType.TRIAL, "NCT1"))
        await store.upsert(record(ContentType.NEWS, "1"))

        assert await store.clear_all() == 2
        assert len(store) == 0


class TestPgVectorStatements:
    """SQL generated for PostgreSQL + pgvector."""

    def test_nearest_uses_cosine_operator(self):
        sql = compile_pg(nearest_statement(unit_vector(0, 1536), 5))

        assert "<=>" in sql
        assert "ORDER BY distance, embeddings.id" in sql
        assert "LIMIT" in sql
        # Vector and k are bound parameters, never inlined
        assert "0.0" not in sql

    def test_nearest_with_type_filter(self):
        sql = compile_pg(nearest_statement(unit_vector(0, 1536), 5, ContentType.TRIAL))
        assert "WHERE embeddings.content_type = " in sql

    def test_upsert_on_conflict(self):
        sql = compile_pg(upsert_statement(record(vector=unit_vector(0, 1536))))

        assert "INSERT INTO embeddings" in sql
        assert "ON CONFLICT (content_type, content_id) DO UPDATE" in sql
        assert "updated_at = now()" in sql
        assert "created_at" not in sql.split("DO UPDATE")[1].split("RETURNING")[0]
        assert "RETURNING" in sql

    def test_exists_statement(self):
        sql = compile_pg(exists_statement(ContentType.COMPANY, "acme"))
        assert "embeddings.content_type" in sql
        assert "embeddings.content_id" in sql

    def test_dimension_must_match_column(self):
        with pytest.raises(ValueError):
            PgVectorEmbeddingStore(MagicMock(), dimension=768)


class TestPgVectorOutage:
    """Driver and socket errors surface as StoreUnavailableError."""

    @pytest.mark.asyncio
    async def test_driver_error_on_query(self):
        database = mock_database(error=DBAPIError("SELECT", None, Exception("server closed the connection")))
        store = PgVectorEmbeddingStore(database)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.query(unit_vector(0, 1536), 5)
        assert "server closed the connection" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_refused_connection_on_exists(self):
        store = PgVectorEmbeddingStore(unreachable_database())

        with pytest.raises(StoreUnavailableError):
            await store.exists(ContentType.TRIAL, "NCT1")

    @pytest.mark.asyncio
    async def test_ping(self):
        store = PgVectorEmbeddingStore(unreachable_database())

        with pytest.raises(StoreUnavailableError):
            await store.ping()

    @pytest.mark.asyncio
    async def test_query_reads_rows(self):
        database = mock_database()
        store = PgVectorEmbeddingStore(database)

        assert await store.query(unit_vector(0, 1536), 5, ContentType.NEWS) == []
        session = database.session.return_value.__aenter__.return_value
        assert "<=>" in compile_pg(session.execute.await_args.args[0])


class TestCreateStore:
    """Tests for backend selection."""

    def test_memory_backend(self):
        store = create_store(make_settings(vector_store_backend="memory"))
        assert isinstance(store, InMemoryEmbeddingStore)
        assert store.dimension == 8

    def test_postgres_backend(self):
        database = MagicMock()
        settings = make_settings(vector_store_backend="postgres", embedding_dimensions=1536)
        store = create_store(settings, database)
        assert isinstance(store, PgVectorEmbeddingStore)
        assert store.database is database

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_store(make_settings(vector_store_backend="faiss"))

    def test_settings_default_dimensions(self):
        assert Settings(_env_file=None).embedding_dimensions == 1536

"""Tests for the competeai command line."""

from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from competeai.cli import app
from competeai.exceptions import ConfigurationMissingError
from competeai.models.content import ContentType
from competeai.models.rag import QueryResult, SourceEntry, TokenUsage

from conftest import make_settings, unreachable_database

runner = CliRunner()


@pytest.fixture(autouse=True)
def memory_settings():
    with patch("competeai.cli.get_settings", return_value=make_settings()) as mock_settings:
        yield mock_settings


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "CompeteAI v0.1.0" in result.stdout


class TestStatsAndClear:
    """Store maintenance commands against the in-memory backend."""

    def test_stats_lists_every_type(self):
        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        for content_type in ContentType:
            assert content_type.value in result.stdout

    def test_clear_with_yes(self):
        result = runner.invoke(app, ["clear", "--yes"])

        assert result.exit_code == 0
        assert "Deleted 0 embeddings" in result.stdout

    def test_clear_one_type(self):
        result = runner.invoke(app, ["clear", "--type", "news", "--yes"])

        assert result.exit_code == 0
        assert "Deleted 0 embeddings" in result.stdout

    def test_clear_declined(self):
        result = runner.invoke(app, ["clear"], input="n\n")

        assert result.exit_code == 0
        assert "Aborted" in result.stdout

    def test_invalid_type(self):
        result = runner.invoke(app, ["clear", "--type", "patents", "--yes"])
        assert result.exit_code != 0


class TestIndex:
    def test_memory_backend_rejected(self):
        result = runner.invoke(app, ["index"])

        assert result.exit_code == 1
        assert "postgres" in result.stdout

    def test_unreachable_database_reported(self):
        settings = make_settings(vector_store_backend="postgres", embedding_dimensions=1536)
        with patch("competeai.cli.get_settings", return_value=settings), patch(
            "competeai.cli.Database", return_value=unreachable_database()
        ):
            result = runner.invoke(app, ["index", "--type", "trial"])

        assert result.exit_code == 1
        assert not isinstance(result.exception, OSError)
        assert "Error:" in result.stdout
        assert "Domain database unavailable" in result.stdout

    def test_stats_with_unreachable_database(self):
        settings = make_settings(vector_store_backend="postgres", embedding_dimensions=1536)
        with patch("competeai.cli.get_settings", return_value=settings), patch(
            "competeai.cli.Database", return_value=unreachable_database()
        ):
            result = runner.invoke(app, ["stats"])

        assert result.exit_code == 1
        assert "Embedding store unavailable" in result.stdout


class TestSearch:
    """search command wiring and rendering."""

    def test_renders_answer_and_sources(self):
        answer = QueryResult(
            answer="Acme runs one Phase 3 trial.",
            sources=[
                SourceEntry(
                    type="trial",
                    id="NCT1",
                    title="Acme Study",
                    url="https://clinicaltrials.gov/study/NCT1",
                    metadata={"phase": "Phase 3"},
                    relevance=0.9,
                )
            ],
            query="acme trials",
            model="gpt-4o-mini",
            tokens_used=TokenUsage(input=100, output=20),
            estimated_cost=0.000027,
        )
        with patch("competeai.cli.RAGSearchPipeline") as mock_pipeline:
            mock_pipeline.return_value.search = AsyncMock(return_value=answer)
            result = runner.invoke(app, ["search", "acme trials", "--type", "trial", "--limit", "3"])

        assert result.exit_code == 0
        assert "Acme runs one Phase 3 trial." in result.stdout
        assert "Acme Study" in result.stdout
        assert "gpt-4o-mini" in result.stdout
        mock_pipeline.return_value.search.assert_awaited_once_with(
            "acme trials", content_type=ContentType.TRIAL, limit=3
        )

    def test_error_exits_nonzero(self):
        with patch("competeai.cli.RAGSearchPipeline") as mock_pipeline:
            mock_pipeline.return_value.search = AsyncMock(
                side_effect=ConfigurationMissingError("openai_api_key", "OpenAI API key not configured")
            )
            result = runner.invoke(app, ["search", "acme trials"])

        assert result.exit_code == 1
        assert "OpenAI API key not configured" in result.stdout

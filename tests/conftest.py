"""Shared fixtures: settings and fake provider clients."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from competeai.config import Settings

DIMENSIONS = 8


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values = {
        "openai_api_key": "sk-test",
        "deepseek_api_key": "",
        "embedding_dimensions": DIMENSIONS,
        "embedding_batch_delay_seconds": 0,
        "embedding_rate_limit_backoff_seconds": 0,
        "indexer_item_delay_seconds": 0,
        "vector_store_backend": "memory",
        "environment": "development",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def unit_vector(index: int, dimensions: int = DIMENSIONS) -> list[float]:
    vector = [0.0] * dimensions
    vector[index] = 1.0
    return vector


def embedding_response(vectors: list[list[float]]) -> SimpleNamespace:
    return SimpleNamespace(
        data=[SimpleNamespace(index=i, embedding=v) for i, v in enumerate(vectors)]
    )


def completion_response(
    text: str = "According to Document 1, there is one Phase 3 trial.",
    prompt_tokens: int = 1000,
    completion_tokens: int = 100,
) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


def mock_openai_client(
    embed=None,
    complete=None,
) -> MagicMock:
    """OpenAI-shaped client whose create calls are AsyncMocks."""
    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=embed)
    client.chat.completions.create = AsyncMock(
        return_value=completion_response() if complete is None else complete
    )
    return client


@pytest.fixture
def settings() -> Settings:
    return make_settings()


def mock_database(rows=None, error=None) -> MagicMock:
    """Database whose session() yields a session returning rows, or raising error on execute."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(rows or [])
    result.all.return_value = []
    session = MagicMock()
    session.execute = AsyncMock(return_value=result, side_effect=error)

    database = MagicMock()
    database.session.return_value.__aenter__ = AsyncMock(return_value=session)
    database.session.return_value.__aexit__ = AsyncMock(return_value=False)
    database.close = AsyncMock()
    return database


def unreachable_database() -> MagicMock:
    """Database whose connections are refused."""
    database = MagicMock()
    database.session.side_effect = OSError("Connect call failed ('127.0.0.1', 1)")
    database.ping = AsyncMock(side_effect=OSError("Connect call failed ('127.0.0.1', 1)"))
    database.close = AsyncMock()
    return database

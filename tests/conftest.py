"""
Test fixtures and configuration for ElasticScope tests.

Unit tests run against a temporary SQLite profile store and ``AsyncMock``
stand-ins for ``AsyncElasticsearch``. Integration tests use a real
Elasticsearch instance started with testcontainers.
"""

from collections.abc import AsyncGenerator, Generator
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi.testclient import TestClient

from elasticscope.app import create_app
from elasticscope.config.settings import AppSettings
from elasticscope.security.cipher import CredentialCipher
from elasticscope.services.elasticsearch_client import ElasticsearchClientFactory
from elasticscope.services.session_manager import SessionManager
from elasticscope.storage.database import Database
from elasticscope.storage.stores import ConnectionStore, SavedQueryStore
from factories import make_es_client

TEST_ENCRYPTION_KEY = "test-encryption-key"


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "connections.db")


@pytest.fixture
def settings(db_path) -> AppSettings:
    return AppSettings(
        DATABASE_URL=f"sqlite+aiosqlite:///{db_path}",
        ENCRYPTION_KEY=TEST_ENCRYPTION_KEY,
        APP_ENV="development",
        CORS_ORIGINS="*",
    )


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher(TEST_ENCRYPTION_KEY)


@pytest.fixture
async def database(db_path) -> AsyncGenerator[Database, None]:
    db = Database(f"sqlite+aiosqlite:///{db_path}")
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def connection_store(database, cipher) -> ConnectionStore:
    return ConnectionStore(database, cipher)


@pytest.fixture
def query_store(database) -> SavedQueryStore:
    return SavedQueryStore(database)


@pytest.fixture
def mock_elasticsearch_client() -> AsyncMock:
    return make_es_client()


@pytest.fixture
def client_factory(mock_elasticsearch_client) -> Mock:
    """Client factory whose ``connect`` hands out the mock client."""
    factory = Mock(spec=ElasticsearchClientFactory)
    factory.connect = AsyncMock(return_value=mock_elasticsearch_client)
    return factory


@pytest.fixture
def session_manager(connection_store, client_factory) -> SessionManager:
    return SessionManager(connection_store, client_factory)


@pytest.fixture
def patched_elasticsearch() -> Generator[Mock, None, None]:
    """Patch the client class used by the factory; every built client pings True."""
    with patch("elasticscope.services.elasticsearch_client.AsyncElasticsearch") as es_class:
        es_class.return_value = make_es_client()
        yield es_class


@pytest.fixture
def api_client(settings) -> Generator[TestClient, None, None]:
    app = create_app(settings)
    with TestClient(app) as client:
        yield client

"""
Tests for the connection profile and saved query stores.
"""

import pytest

from elasticscope.models.connection import PASSWORD_MASK, ConnectionInput, SavedQueryInput
from elasticscope.security.cipher import EncryptedSecret, parse_secret
from elasticscope.storage.tables import DEFAULT_COLOR


@pytest.mark.unit
class TestConnectionStore:

    async def test_create_encrypts_password(self, connection_store, cipher):
        profile = await connection_store.create(ConnectionInput(
            name="prod", url="https://es.example.com:9200", username="elastic", password="s3cret",
        ))

        assert profile.id is not None
        assert profile.password != "s3cret"
        assert isinstance(parse_secret(profile.password), EncryptedSecret)
        assert cipher.decrypt(profile.password) == "s3cret"
        assert connection_store.reveal_password(profile) == "s3cret"

    async def test_create_defaults(self, connection_store):
        profile = await connection_store.create(ConnectionInput(name="local", url="http://localhost:9200"))

        assert profile.color == DEFAULT_COLOR
        assert profile.password is None
        assert profile.username is None
        assert profile.created_at is not None
        assert profile.updated_at is not None
        assert connection_store.reveal_password(profile) is None

    async def test_masked_output(self, connection_store):
        with_password = await connection_store.create(
            ConnectionInput(name="a", url="http://a:9200", password="pw")
        )
        without_password = await connection_store.create(ConnectionInput(name="b", url="http://b:9200"))

        assert with_password.masked()["password"] == PASSWORD_MASK
        assert without_password.masked()["password"] is None

    async def test_list_is_ordered_by_name(self, connection_store):
        for name in ["zeta", "alpha", "mid"]:
            await connection_store.create(ConnectionInput(name=name, url=f"http://{name}:9200"))

        names = [profile.name for profile in await connection_store.list()]
        assert names == ["alpha", "mid", "zeta"]

    async def test_get_missing_returns_none(self, connection_store):
        assert await connection_store.get(999) is None

    async def test_update_without_password_keeps_token(self, connection_store):
        created = await connection_store.create(
            ConnectionInput(name="prod", url="http://es:9200", username="elastic", password="pw")
        )

        updated = await connection_store.update(created.id, ConnectionInput(name="production"))

        assert updated.name == "production"
        assert updated.url == "http://es:9200"
        assert updated.username == "elastic"
        assert updated.password == created.password
        assert updated.updated_at >= created.updated_at

    async def test_update_with_empty_password_clears_it(self, connection_store):
        created = await connection_store.create(
            ConnectionInput(name="prod", url="http://es:9200", password="pw")
        )

        updated = await connection_store.update(created.id, ConnectionInput(password=""))

        assert updated.password is None
        assert updated.name == "prod"

    async def test_update_with_new_password_reencrypts(self, connection_store, cipher):
        created = await connection_store.create(
            ConnectionInput(name="prod", url="http://es:9200", password="old")
        )

        updated = await connection_store.update(created.id, ConnectionInput(password="new"))

        assert updated.password != created.password
        assert cipher.decrypt(updated.password) == "new"

    async def test_update_missing_returns_none(self, connection_store):
        assert await connection_store.update(42, ConnectionInput(name="x")) is None
        assert await connection_store.list() == []

    async def test_delete(self, connection_store):
        created = await connection_store.create(ConnectionInput(name="prod", url="http://es:9200"))

        assert await connection_store.delete(created.id) is True
        assert await connection_store.get(created.id) is None
        assert await connection_store.delete(created.id) is False


@pytest.mark.unit
class TestSavedQueryStore:

    async def test_crud(self, query_store):
        created = await query_store.create(SavedQueryInput(
            name="health", method="GET", path="/_cluster/health",
        ))
        assert created.body is None

        fetched = await query_store.get(created.id)
        assert fetched.path == "/_cluster/health"

        updated = await query_store.update(created.id, SavedQueryInput(body='{"size": 0}'))
        assert updated.body == '{"size": 0}'
        assert updated.name == "health"
        assert updated.method == "GET"

        assert await query_store.delete(created.id) is True
        assert await query_store.delete(created.id) is False

    async def test_list_ordered_by_name(self, query_store):
        for name in ["b-query", "a-query"]:
            await query_store.create(SavedQueryInput(name=name, method="GET", path="/"))

        assert [q.name for q in await query_store.list()] == ["a-query", "b-query"]

    async def test_update_missing_returns_none(self, query_store):
        assert await query_store.update(7, SavedQueryInput(name="x")) is None

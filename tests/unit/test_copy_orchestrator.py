"""
Tests for cross-cluster document copy.
"""

from unittest.mock import AsyncMock, Mock

import pytest
from elasticsearch import NotFoundError

from elasticscope.exceptions import (
    ConnectionFailedError,
    CopyPreconditionError,
    InputValidationError,
    UpstreamError,
)
from elasticscope.models.copy import CopyDocumentRequest, CopyDocumentsRequest
from elasticscope.services.copy_orchestrator import CopyOrchestrator, extract_mappings, summarize

from factories import SourceDocumentFactory, bulk_response, get_response, make_es_client

SOURCE_ID = 1
TARGET_ID = 2


def missing(index, doc_id):
    return NotFoundError(
        "not_found",
        meta=Mock(status=404),
        body={"_index": index, "_id": doc_id, "found": False},
    )


@pytest.fixture
def source():
    return make_es_client()


@pytest.fixture
def target():
    client = make_es_client()
    client.indices.exists.return_value = True
    return client


@pytest.fixture
def sessions(source, target):
    """Session manager stand-in serving pooled clients by connection id."""
    pool = {SOURCE_ID: source, TARGET_ID: target}
    manager = Mock()
    manager.active_client = None
    manager.get_pooled_client = AsyncMock(side_effect=lambda connection_id: pool.get(connection_id))
    return manager


@pytest.fixture
def orchestrator(sessions):
    return CopyOrchestrator(sessions, concurrency=2)


def serve_documents(client, documents, missing_ids=()):
    async def get(index, id):
        if id in missing_ids:
            raise missing(index, id)
        return get_response(index, id, documents[id])

    client.get.side_effect = get


@pytest.mark.unit
class TestCopyDocument:

    def request(self, **overrides):
        data = {
            "sourceConnectionId": SOURCE_ID,
            "sourceIndex": "logs",
            "documentId": "abc",
            "targetConnectionId": TARGET_ID,
            "targetIndex": "logs-copy",
        }
        data.update(overrides)
        return CopyDocumentRequest.model_validate(data)

    async def test_copies_with_same_id(self, orchestrator, source, target):
        document = SourceDocumentFactory()
        serve_documents(source, {"abc": document})
        target.index.return_value = {"result": "created", "_id": "abc"}

        result = await orchestrator.copy_document(self.request())

        assert result.success is True
        assert result.result == "created"
        assert result.model_dump(by_alias=True)["targetIndex"] == "logs-copy"
        assert result.model_dump(by_alias=True)["documentId"] == "abc"
        target.index.assert_awaited_once_with(index="logs-copy", id="abc", document=document, refresh=True)

    async def test_numeric_document_id(self, orchestrator, source, target):
        serve_documents(source, {"7": SourceDocumentFactory()})
        target.index.return_value = {"result": "updated"}

        result = await orchestrator.copy_document(self.request(documentId=7))

        assert result.document_id == "7"

    @pytest.mark.parametrize("missing_field", ["targetConnectionId", "targetIndex", "documentId"])
    async def test_required_fields(self, orchestrator, missing_field):
        with pytest.raises(InputValidationError) as exc_info:
            await orchestrator.copy_document(self.request(**{missing_field: None}))

        assert exc_info.value.error_code == "TARGET_CONNECTION_INDEX_ID_REQUIRED"

    async def test_source_index_required(self, orchestrator, sessions, source):
        with pytest.raises(InputValidationError) as exc_info:
            await orchestrator.copy_document(self.request(sourceIndex=None))

        assert exc_info.value.error_code == "SOURCE_INDEX_REQUIRED"
        assert exc_info.value.status_code == 400
        sessions.get_pooled_client.assert_not_called()
        source.get.assert_not_called()

    async def test_source_falls_back_to_active_session(self, orchestrator, sessions, target):
        active = make_es_client()
        serve_documents(active, {"abc": {"message": "from active"}})
        sessions.active_client = active
        target.index.return_value = {"result": "created"}

        await orchestrator.copy_document(self.request(sourceConnectionId=None))

        active.get.assert_awaited_once_with(index="logs", id="abc")

    async def test_no_source_client(self, orchestrator):
        with pytest.raises(CopyPreconditionError) as exc_info:
            await orchestrator.copy_document(self.request(sourceConnectionId=None))

        assert exc_info.value.error_code == "SOURCE_CONNECTION_NOT_FOUND"
        assert exc_info.value.status_code == 400

    async def test_target_connection_failed(self, orchestrator):
        with pytest.raises(CopyPreconditionError) as exc_info:
            await orchestrator.copy_document(self.request(targetConnectionId=99))

        assert exc_info.value.error_code == "TARGET_CONNECTION_FAILED"

    async def test_missing_target_index_without_create(self, orchestrator, source, target):
        target.indices.exists.return_value = False

        with pytest.raises(CopyPreconditionError) as exc_info:
            await orchestrator.copy_document(self.request())

        assert exc_info.value.error_code == "TARGET_INDEX_NOT_FOUND"
        assert exc_info.value.to_response() == {"errorCode": "TARGET_INDEX_NOT_FOUND", "details": "logs-copy"}
        target.indices.create.assert_not_called()
        target.index.assert_not_called()

    async def test_creates_target_with_copied_mapping(self, orchestrator, source, target):
        target.indices.exists.return_value = False
        mappings = {"properties": {"message": {"type": "text"}}}
        source.indices.get_mapping.return_value = {"logs": {"mappings": mappings}}
        serve_documents(source, {"abc": {"message": "hi"}})
        target.index.return_value = {"result": "created"}

        await orchestrator.copy_document(self.request(createIndexIfNotExists=True, copyMapping=True))

        target.indices.create.assert_awaited_once_with(index="logs-copy", mappings=mappings)

    async def test_creates_bare_target(self, orchestrator, source, target):
        target.indices.exists.return_value = False
        serve_documents(source, {"abc": {"message": "hi"}})
        target.index.return_value = {"result": "created"}

        await orchestrator.copy_document(self.request(createIndexIfNotExists=True))

        target.indices.create.assert_awaited_once_with(index="logs-copy")
        source.indices.get_mapping.assert_not_called()

    async def test_missing_source_document_is_upstream_error(self, orchestrator, source, target):
        serve_documents(source, {}, missing_ids={"abc"})

        with pytest.raises(UpstreamError) as exc_info:
            await orchestrator.copy_document(self.request())

        assert exc_info.value.status_code == 404
        target.index.assert_not_called()


@pytest.mark.unit
class TestCopyDocuments:

    def request(self, ids, **overrides):
        data = {
            "sourceConnectionId": SOURCE_ID,
            "documents": [{"index": "logs", "id": doc_id} for doc_id in ids],
            "targetConnectionId": TARGET_ID,
            "targetIndex": "logs-copy",
        }
        data.update(overrides)
        return CopyDocumentsRequest.model_validate(data)

    async def test_partial_read_failure(self, orchestrator, source, target):
        ids = ["1", "2", "3", "4", "5"]
        documents = {doc_id: SourceDocumentFactory() for doc_id in ids}
        serve_documents(source, documents, missing_ids={"2", "4"})
        target.bulk.return_value = bulk_response(3)

        result = await orchestrator.copy_documents(self.request(ids))

        assert result.success is True
        assert result.copied == 3
        assert result.errors == 2
        assert result.message == "3 documents copied, 2 errors"
        assert {(f.id, f.stage) for f in result.failures} == {("2", "read"), ("4", "read")}

        operations = target.bulk.await_args.kwargs["operations"]
        assert len(operations) == 6
        assert [op["index"]["_id"] for op in operations[::2]] == ["1", "3", "5"]
        assert operations[1] == documents["1"]
        assert target.bulk.await_args.kwargs["refresh"] is True

    async def test_all_reads_fail_skips_bulk(self, orchestrator, source, target):
        serve_documents(source, {}, missing_ids={"1", "2"})

        result = await orchestrator.copy_documents(self.request(["1", "2"]))

        assert result.copied == 0
        assert result.errors == 2
        target.bulk.assert_not_called()

    async def test_bulk_item_failures_move_to_errors(self, orchestrator, source, target):
        ids = ["1", "2", "3"]
        serve_documents(source, {doc_id: SourceDocumentFactory() for doc_id in ids})
        target.bulk.return_value = bulk_response(3, failed={1: "failed to parse field [timestamp]"})

        result = await orchestrator.copy_documents(self.request(ids))

        assert result.copied == 2
        assert result.errors == 1
        assert result.failures[0].id == "2"
        assert result.failures[0].stage == "write"
        assert result.failures[0].reason == "failed to parse field [timestamp]"

    async def test_no_errors_message(self, orchestrator, source, target):
        serve_documents(source, {"1": {"a": 1}})
        target.bulk.return_value = bulk_response(1)

        result = await orchestrator.copy_documents(self.request(["1"]))

        assert result.message == "1 documents copied"

    @pytest.mark.parametrize("overrides", [
        {"documents": []},
        {"documents": None},
        {"targetIndex": ""},
        {"targetConnectionId": None},
    ])
    async def test_required_fields(self, orchestrator, overrides):
        with pytest.raises(InputValidationError) as exc_info:
            await orchestrator.copy_documents(self.request(["1"], **overrides))

        assert exc_info.value.error_code == "TARGET_CONNECTION_INDEX_DOCUMENTS_REQUIRED"

    async def test_mapping_from_first_document_index(self, orchestrator, source, target):
        target.indices.exists.return_value = False
        source.indices.get_mapping.return_value = {"logs-a": {"mappings": {"properties": {}}}}
        serve_documents(source, {"1": {"a": 1}, "2": {"b": 2}})
        target.bulk.return_value = bulk_response(2)
        request = self.request(
            ["1"],
            documents=[{"index": "logs-a", "id": "1"}, {"index": "logs-b", "id": "2"}],
            createIndexIfNotExists=True,
            copyMapping=True,
        )

        await orchestrator.copy_documents(request)

        source.indices.get_mapping.assert_awaited_once_with(index="logs-a")
        target.indices.create.assert_awaited_once_with(index="logs-copy", mappings={"properties": {}})


@pytest.mark.unit
class TestCrossClusterBrowsing:

    async def test_list_connection_indices(self, orchestrator, source):
        source.cat.indices.return_value = [
            {"index": "logs", "health": "yellow", "status": "open", "docs.count": "5", "store.size": "2kb"},
            {"index": ".security", "health": "green", "status": "open", "docs.count": "1", "store.size": "1kb"},
        ]
        source.cat.aliases.return_value = [{"alias": "current", "index": "logs"}]

        indices = await orchestrator.list_connection_indices(SOURCE_ID)

        assert indices == [{
            "index": "logs",
            "health": "yellow",
            "docsCount": "5",
            "storeSize": "2kb",
            "aliases": ["current"],
        }]

    async def test_unreachable_connection(self, orchestrator):
        with pytest.raises(ConnectionFailedError) as exc_info:
            await orchestrator.list_connection_indices(99)

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "CONNECTION_FAILED"

    async def test_connection_mapping(self, orchestrator, target):
        target.indices.get_mapping.return_value = {"logs": {"mappings": {}}}

        assert await orchestrator.get_connection_mapping(TARGET_ID, "logs") == {"logs": {"mappings": {}}}


@pytest.mark.unit
class TestHelpers:

    def test_extract_mappings_exact_key(self):
        assert extract_mappings({"logs": {"mappings": {"a": 1}}}, "logs") == {"a": 1}

    def test_extract_mappings_alias_falls_back_to_single_entry(self):
        assert extract_mappings({"logs-000001": {"mappings": {"a": 1}}}, "logs") == {"a": 1}

    def test_extract_mappings_empty(self):
        assert extract_mappings({}, "logs") == {}

    def test_summarize(self):
        assert summarize(3, 0) == "3 documents copied"
        assert summarize(3, 2) == "3 documents copied, 2 errors"

"""
Tests for error classification and the error handler decorator.
"""

from unittest.mock import Mock

import pytest
from elasticsearch import ApiError, BadRequestError, NotFoundError
from elasticsearch import ConnectionError as ESConnectionError

from elasticscope.exceptions import (
    DangerousRequestError,
    ElasticScopeError,
    EntityNotFoundError,
    ErrorCategory,
    InputValidationError,
    InternalError,
    NoConnectionError,
    UpstreamError,
)
from elasticscope.utils.error_handling import ErrorClassifier, create_error_context, error_handler


def api_error(cls, status, body):
    return cls("upstream failure", meta=Mock(status=status), body=body)


@pytest.mark.unit
class TestExceptions:

    def test_response_body(self):
        assert NoConnectionError().to_response() == {"errorCode": "NO_ES_CONNECTION"}
        assert NoConnectionError().status_code == 400

    def test_details_included(self):
        error = InputValidationError("INDEX_NAME_INVALID_CHARS", details="my index", field="index")

        assert error.to_response() == {"errorCode": "INDEX_NAME_INVALID_CHARS", "details": "my index"}
        assert error.context == {"field": "index"}
        assert error.category is ErrorCategory.VALIDATION

    def test_status_codes(self):
        assert EntityNotFoundError("QUERY_NOT_FOUND", entity_id=4).status_code == 404
        assert DangerousRequestError("DELETE", "/_all").status_code == 403
        assert InternalError("boom").status_code == 500

    def test_to_dict(self):
        error = DangerousRequestError("PUT", "/_cluster/settings")

        data = error.to_dict()

        assert data["error_type"] == "DangerousRequestError"
        assert data["error_code"] == "DANGEROUS_REQUEST_BLOCKED"
        assert data["context"] == {"method": "PUT", "path": "/_cluster/settings"}
        assert data["severity"] == "high"

    def test_upstream_legacy_shape(self):
        error = UpstreamError("index_not_found_exception", upstream_status=404, upstream_body={"status": 404})

        assert error.status_code == 404
        assert error.to_response() == {"error": "index_not_found_exception"}

    def test_upstream_relayed_body(self):
        body = {"error": {"type": "parsing_exception"}, "status": 400}
        error = UpstreamError("parsing_exception", upstream_status=400, upstream_body=body, relay_body=True)

        assert error.to_response() == body

    def test_upstream_without_status(self):
        assert UpstreamError("connection refused").status_code == 500


@pytest.mark.unit
class TestErrorClassifier:

    def test_reason_from_body(self):
        error = api_error(NotFoundError, 404, {"error": {"type": "index_not_found_exception", "reason": "no such index [x]"}})

        classified = ErrorClassifier.classify_elasticsearch_error(error)

        assert isinstance(classified, UpstreamError)
        assert classified.upstream_status == 404
        assert classified.message == "no such index [x]"

    def test_type_when_no_reason(self):
        error = api_error(BadRequestError, 400, {"error": {"type": "parsing_exception"}})

        assert ErrorClassifier.classify_elasticsearch_error(error).message == "parsing_exception"

    def test_string_error_body(self):
        error = api_error(ApiError, 405, {"error": "Incorrect HTTP method"})

        classified = ErrorClassifier.classify_elasticsearch_error(error)

        assert classified.status_code == 405
        assert classified.message == "Incorrect HTTP method"

    def test_transport_error(self):
        classified = ErrorClassifier.classify_elasticsearch_error(ESConnectionError("connection refused"))

        assert isinstance(classified, UpstreamError)
        assert classified.status_code == 500
        assert classified.upstream_status is None

    def test_other_errors_are_internal(self):
        classified = ErrorClassifier.classify_elasticsearch_error(KeyError("hits"))

        assert isinstance(classified, InternalError)

    def test_passes_through_own_errors(self):
        error = NoConnectionError()

        assert ErrorClassifier.classify_elasticsearch_error(error) is error


@pytest.mark.unit
class TestErrorHandler:

    async def test_wraps_upstream_error(self):
        @error_handler("search")
        async def search():
            raise api_error(NotFoundError, 404, {"error": {"reason": "missing"}})

        with pytest.raises(UpstreamError) as exc_info:
            await search()

        assert exc_info.value.relay_body is False
        assert isinstance(exc_info.value.__cause__, NotFoundError)

    async def test_relay_body_flag(self):
        body = {"error": {"reason": "bad"}, "status": 400}

        @error_handler("rest", relay_body=True)
        async def rest():
            raise api_error(BadRequestError, 400, body)

        with pytest.raises(UpstreamError) as exc_info:
            await rest()

        assert exc_info.value.to_response() == body

    async def test_own_errors_untouched(self):
        @error_handler("cluster_health")
        async def health():
            raise NoConnectionError()

        with pytest.raises(NoConnectionError):
            await health()

    async def test_returns_result(self):
        @error_handler("noop")
        async def noop():
            return {"ok": True}

        assert await noop() == {"ok": True}

    async def test_internal_error_logged(self, caplog):
        @error_handler("broken", include_traceback=True)
        async def broken():
            raise ValueError("unexpected")

        with pytest.raises(ElasticScopeError):
            await broken()

        assert any("Error in broken" in r.getMessage() for r in caplog.records)


@pytest.mark.unit
def test_create_error_context():
    context = create_error_context("copy_documents", index="logs", connection_id=2, documents=5)

    assert context["operation"] == "copy_documents"
    assert context["index"] == "logs"
    assert context["connection_id"] == 2
    assert context["documents"] == 5
    assert "timestamp" in context

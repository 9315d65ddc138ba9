"""
Data factories for generating realistic test data for ElasticScope tests.

These factories use Faker and Factory Boy to generate connection payloads,
saved queries and source documents for copy tests.
"""

from typing import Any
from unittest.mock import AsyncMock

import factory
from faker import Faker

fake = Faker()

COLORS = ["#3b82f6", "#ef4444", "#10b981", "#f59e0b", "#8b5cf6"]


class ConnectionPayloadFactory(factory.DictFactory):
    """Body of ``POST /api/connections``."""

    name = factory.LazyFunction(lambda: f"{fake.word()}-cluster")
    url = factory.LazyFunction(lambda: f"https://{fake.domain_name()}:9200")
    username = "elastic"
    password = factory.LazyFunction(lambda: fake.password(length=16))
    color = factory.LazyFunction(lambda: fake.random_element(COLORS))


class SavedQueryPayloadFactory(factory.DictFactory):
    name = factory.LazyFunction(lambda: fake.sentence(nb_words=3))
    method = "GET"
    path = factory.LazyFunction(lambda: f"/{fake.word()}/_search")
    body = '{"query": {"match_all": {}}}'


class SourceDocumentFactory(factory.DictFactory):
    """``_source`` of a document living on a source cluster."""

    timestamp = factory.LazyFunction(lambda: fake.iso8601())
    host = factory.LazyFunction(lambda: fake.hostname())
    message = factory.LazyFunction(lambda: fake.sentence())
    level = factory.LazyFunction(lambda: fake.random_element(["info", "warning", "error"]))


def get_response(index: str, doc_id: str, source: dict[str, Any]) -> dict[str, Any]:
    """Shape of an Elasticsearch ``GET /<index>/_doc/<id>`` response."""
    return {
        "_index": index,
        "_id": doc_id,
        "_version": 1,
        "found": True,
        "_source": source,
    }


def bulk_response(count: int, failed: dict[int, str] | None = None) -> dict[str, Any]:
    """Shape of a bulk response with ``count`` index items, some optionally failed."""
    failed = failed or {}
    items = []
    for position in range(count):
        if position in failed:
            items.append({
                "index": {
                    "status": 400,
                    "error": {"type": "mapper_parsing_exception", "reason": failed[position]},
                }
            })
        else:
            items.append({"index": {"status": 201, "result": "created"}})
    return {"took": 3, "errors": bool(failed), "items": items}


def make_es_client(ping: bool = True) -> AsyncMock:
    """An ``AsyncElasticsearch`` stand-in whose ping succeeds by default."""
    client = AsyncMock()
    client.ping.return_value = ping
    client.cluster.health.return_value = {
        "cluster_name": "test-cluster",
        "status": "green",
        "number_of_nodes": 1,
        "active_shards": 5,
    }
    return client

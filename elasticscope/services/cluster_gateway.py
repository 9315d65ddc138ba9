"""
Cluster gateway.

Translates the HTTP surface's cluster, node, index, document and search
operations into Elasticsearch client calls against the active session
client. Every operation fails fast with ``NO_ES_CONNECTION`` when no session
is connected; upstream failures are classified by ``error_handler`` and
never retried.
"""

from typing import Any

from elasticsearch import AsyncElasticsearch

from ..exceptions import DangerousRequestError, InputValidationError
from ..models.requests import (
    AggregationRequest,
    CreateIndexRequest,
    RestRequest,
    SearchRequest,
)
from ..models.validators import (
    is_dangerous_request,
    validate_alias_name,
    validate_index_name,
)
from ..utils.error_handling import error_handler
from ..utils.logging import get_logger, log_elasticsearch_request
from .session_manager import SessionManager

logger = get_logger(__name__)

ALL_NODE_METRICS = [
    "jvm",
    "os",
    "fs",
    "indices",
    "thread_pool",
    "transport",
    "http",
    "breaker",
    "process",
]

INDEXING_STATS_METRICS = ["indexing", "search", "get", "merge", "refresh", "flush", "segments"]

CAT_NODES_COLUMNS = (
    "name,ip,node.role,master,heap.percent,ram.percent,cpu,"
    "load_1m,load_5m,load_15m,disk.used_percent,disk.total,disk.used"
)
CAT_SHARDS_COLUMNS = "index,shard,prirep,state,docs,store,node"
CAT_SEGMENTS_COLUMNS = "index,shard,segment,generation,docs.count,docs.deleted,size,size.memory"
CAT_THREAD_POOL_COLUMNS = "node_name,name,active,queue,rejected,completed,type,size,queue_size"
CAT_INDICES_COLUMNS = "index,health,status,docs.count,store.size"
CAT_ALIASES_COLUMNS = "alias,index"

# Server-assigned index settings that a create call rejects
IMMUTABLE_INDEX_SETTINGS = (
    "uuid",
    "version",
    "creation_date",
    "provided_name",
    "routing",
    "resize",
)

TERMS_BUCKET_SIZE = 10

DATE_RANGE_BUCKETS = [
    {"key": "today", "from": "now/d", "to": "now"},
    {"key": "yesterday", "from": "now-1d/d", "to": "now/d"},
    {"key": "last_7_days", "from": "now-7d/d", "to": "now"},
    {"key": "last_30_days", "from": "now-30d/d", "to": "now"},
    {"key": "this_month", "from": "now/M", "to": "now"},
]


def response_body(response: Any) -> Any:
    """Unwrap an ``ApiResponse`` to its decoded body."""
    return getattr(response, "body", response)


def _as_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_total(total: Any) -> int:
    """Reduce ``hits.total`` (a bare number or ``{"value": n}``) to an int."""
    if isinstance(total, bool):
        return 0
    if isinstance(total, int):
        return total
    if isinstance(total, dict):
        return _as_int(total.get("value")) or 0
    return 0


def strip_immutable_settings(settings: dict[str, Any]) -> dict[str, Any]:
    """
    Drop server-assigned keys from a settings object before replaying it.

    Keys are removed both at the top level and under a nested ``index``
    object, which is the shape ``GET /<index>/_settings`` returns.
    """
    cleaned = {k: v for k, v in settings.items() if k not in IMMUTABLE_INDEX_SETTINGS}
    nested = cleaned.get("index")
    if isinstance(nested, dict):
        cleaned["index"] = {k: v for k, v in nested.items() if k not in IMMUTABLE_INDEX_SETTINGS}
    return cleaned


def build_facet_aggregations(
    fields: list[str] | None,
    date_field: str | None = None,
) -> dict[str, Any]:
    """
    Build the facet aggregations for the document browser.

    One ``terms`` aggregation per field, plus a daily histogram and the fixed
    quick-filter date ranges when a date field is given.
    """
    aggs: dict[str, Any] = {}

    for field in fields or []:
        aggs[field] = {"terms": {"field": field, "size": TERMS_BUCKET_SIZE}}

    if date_field:
        aggs["date_histogram"] = {
            "date_histogram": {
                "field": date_field,
                "calendar_interval": "day",
                "format": "yyyy-MM-dd",
                "min_doc_count": 1,
            }
        }
        aggs["date_range"] = {
            "date_range": {
                "field": date_field,
                "ranges": [dict(bucket) for bucket in DATE_RANGE_BUCKETS],
            }
        }

    return aggs


def group_aliases(aliases: list[dict[str, Any]]) -> dict[str, list[str]]:
    """Group ``_cat/aliases`` rows by index, skipping hidden indices."""
    alias_map: dict[str, list[str]] = {}
    for row in aliases or []:
        index = row.get("index") or ""
        if index.startswith("."):
            continue
        alias_map.setdefault(index, []).append(row.get("alias"))
    return alias_map


def visible_indices(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [row for row in rows or [] if not str(row.get("index", "")).startswith(".")]


class ClusterGateway:
    """Operations against the active session's cluster."""

    def __init__(self, session_manager: SessionManager):
        self._sessions = session_manager

    @property
    def client(self) -> AsyncElasticsearch:
        return self._sessions.require_active_client()

    # Cluster

    @error_handler("cluster_health")
    async def cluster_health(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("cluster_health")
        return response_body(await client.cluster.health())

    @error_handler("cluster_info")
    async def cluster_info(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("cluster_info")
        return response_body(await client.info())

    @error_handler("cluster_stats")
    async def cluster_stats(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("cluster_stats")
        return response_body(await client.cluster.stats())

    @error_handler("pending_tasks")
    async def pending_tasks(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("pending_tasks")
        return response_body(await client.cluster.pending_tasks())

    # Nodes

    @error_handler("node_stats")
    async def node_stats(self, metric: str | list[str] | None = None) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("node_stats", metric=metric)
        if metric:
            return response_body(await client.nodes.stats(metric=metric))
        return response_body(await client.nodes.stats())

    @error_handler("node_stats_all")
    async def node_stats_all(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("node_stats_all")
        return response_body(await client.nodes.stats(metric=ALL_NODE_METRICS))

    @error_handler("node_info")
    async def node_info(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("node_info")
        return response_body(await client.nodes.info())

    @error_handler("node_breakers")
    async def node_breakers(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("node_breakers")
        return response_body(await client.nodes.stats(metric="breaker"))

    @error_handler("hot_threads")
    async def hot_threads(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("hot_threads")
        threads = response_body(await client.nodes.hot_threads(threads=3, interval="500ms"))
        return {"threads": threads}

    # Cat summaries

    @error_handler("cat_nodes")
    async def cat_nodes(self) -> list[dict[str, Any]]:
        client = self.client
        log_elasticsearch_request("cat_nodes")
        return response_body(await client.cat.nodes(format="json", h=CAT_NODES_COLUMNS))

    @error_handler("cat_shards")
    async def cat_shards(self) -> list[dict[str, Any]]:
        client = self.client
        log_elasticsearch_request("cat_shards")
        return response_body(await client.cat.shards(format="json", h=CAT_SHARDS_COLUMNS))

    @error_handler("cat_segments")
    async def cat_segments(self) -> list[dict[str, Any]]:
        client = self.client
        log_elasticsearch_request("cat_segments")
        return response_body(await client.cat.segments(format="json", h=CAT_SEGMENTS_COLUMNS))

    @error_handler("cat_recovery")
    async def cat_recovery(self) -> list[dict[str, Any]]:
        client = self.client
        log_elasticsearch_request("cat_recovery")
        return response_body(await client.cat.recovery(format="json", active_only=True))

    @error_handler("thread_pool")
    async def thread_pool(self) -> list[dict[str, Any]]:
        client = self.client
        log_elasticsearch_request("thread_pool")
        return response_body(await client.cat.thread_pool(format="json", h=CAT_THREAD_POOL_COLUMNS))

    @error_handler("indexing_stats")
    async def indexing_stats(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("indexing_stats")
        return response_body(await client.indices.stats(metric=INDEXING_STATS_METRICS))

    # Tasks

    @error_handler("list_tasks")
    async def list_tasks(self) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("list_tasks")
        return response_body(await client.tasks.list(detailed=True, group_by="parents"))

    @error_handler("cancel_task")
    async def cancel_task(self, task_id: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("cancel_task", target=task_id)
        return response_body(await client.tasks.cancel(task_id=task_id))

    # Indices

    @error_handler("list_indices")
    async def list_indices(self) -> list[dict[str, Any]]:
        """
        List user indices with their aliases and creation metadata.

        Hidden (``.``-prefixed) indices are left out.
        """
        client = self.client
        log_elasticsearch_request("list_indices")

        rows = response_body(await client.cat.indices(format="json", h=CAT_INDICES_COLUMNS))
        aliases = response_body(await client.cat.aliases(format="json", h=CAT_ALIASES_COLUMNS))
        settings = response_body(await client.indices.get_settings())

        alias_map = group_aliases(aliases)
        indices = []
        for row in visible_indices(rows):
            index_settings = (settings.get(row["index"]) or {}).get("settings", {}).get("index", {})
            indices.append({
                **row,
                "aliases": alias_map.get(row["index"], []),
                "creation_date": _as_int(index_settings.get("creation_date")),
                "number_of_shards": _as_int(index_settings.get("number_of_shards")),
                "number_of_replicas": _as_int(index_settings.get("number_of_replicas")),
            })
        return indices

    @error_handler("create_index")
    async def create_index(self, request: CreateIndexRequest) -> dict[str, Any]:
        client = self.client
        validation = validate_index_name(request.index_name)
        if not validation.valid:
            raise InputValidationError(validation.error, field="indexName")

        params: dict[str, Any] = {}
        if request.settings:
            params["settings"] = strip_immutable_settings(request.settings)
        if request.mappings:
            params["mappings"] = request.mappings

        log_elasticsearch_request("create_index", target=request.index_name)
        await client.indices.create(index=request.index_name, **params)
        logger.info("Index created", extra={"index": request.index_name})
        return {"success": True, "message": f'Index "{request.index_name}" created'}

    @error_handler("delete_index")
    async def delete_index(self, index: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("delete_index", target=index)
        await client.indices.delete(index=index)
        logger.info("Index deleted", extra={"index": index})
        return {"success": True, "message": f'Index "{index}" deleted'}

    @error_handler("open_index")
    async def open_index(self, index: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("open_index", target=index)
        await client.indices.open(index=index)
        return {"success": True, "message": f'Index "{index}" opened'}

    @error_handler("close_index")
    async def close_index(self, index: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("close_index", target=index)
        await client.indices.close(index=index)
        return {"success": True, "message": f'Index "{index}" closed'}

    @error_handler("get_mapping")
    async def get_mapping(self, index: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("get_mapping", target=index)
        return response_body(await client.indices.get_mapping(index=index))

    @error_handler("get_settings")
    async def get_settings(self, index: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("get_settings", target=index)
        return response_body(await client.indices.get_settings(index=index))

    @error_handler("index_stats")
    async def index_stats(self, index: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("index_stats", target=index)
        return response_body(await client.indices.stats(index=index))

    @error_handler("add_alias")
    async def add_alias(self, index: str, alias: Any) -> dict[str, Any]:
        client = self.client
        validation = validate_alias_name(alias)
        if not validation.valid:
            raise InputValidationError(validation.error, field="alias")

        log_elasticsearch_request("add_alias", target=index, alias=alias)
        await client.indices.put_alias(index=index, name=alias)
        return {"success": True, "message": f'Alias "{alias}" added'}

    @error_handler("remove_alias")
    async def remove_alias(self, index: str, alias: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("remove_alias", target=index, alias=alias)
        await client.indices.delete_alias(index=index, name=alias)
        return {"success": True, "message": f'Alias "{alias}" removed'}

    # Documents

    @error_handler("get_document")
    async def get_document(self, index: str, doc_id: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("get_document", target=index, doc_id=doc_id)
        return response_body(await client.get(index=index, id=doc_id))

    @error_handler("put_document")
    async def put_document(
        self,
        index: str,
        document: dict[str, Any],
        doc_id: str | None = None,
    ) -> dict[str, Any]:
        """Index a document, with the given id or an auto-generated one."""
        client = self.client
        log_elasticsearch_request("put_document", target=index, doc_id=doc_id)
        if doc_id is None:
            response = await client.index(index=index, document=document, refresh=True)
        else:
            response = await client.index(index=index, id=doc_id, document=document, refresh=True)
        return response_body(response)

    @error_handler("delete_document")
    async def delete_document(self, index: str, doc_id: str) -> dict[str, Any]:
        client = self.client
        log_elasticsearch_request("delete_document", target=index, doc_id=doc_id)
        return response_body(await client.delete(index=index, id=doc_id, refresh=True))

    # Search

    @error_handler("search")
    async def search(self, request: SearchRequest) -> dict[str, Any]:
        client = self.client
        if not request.index:
            raise InputValidationError("INDEX_REQUIRED", field="index")

        params: dict[str, Any] = {
            "index": request.index,
            "query": request.query or {"match_all": {}},
            "from_": request.from_,
            "size": request.size,
        }
        if request.sort:
            params["sort"] = request.sort

        log_elasticsearch_request("search", target=request.index, size=request.size)
        response = response_body(await client.search(**params))
        hits = response.get("hits", {})
        return {
            "total": normalize_total(hits.get("total")),
            "hits": hits.get("hits", []),
            "took": response.get("took"),
        }

    @error_handler("aggregations")
    async def aggregations(self, request: AggregationRequest) -> dict[str, Any]:
        client = self.client
        if not request.index:
            raise InputValidationError("INDEX_REQUIRED", field="index")

        params: dict[str, Any] = {
            "index": request.index,
            "size": 0,
            "aggs": build_facet_aggregations(request.fields, request.date_field),
        }
        if request.query:
            params["query"] = request.query

        log_elasticsearch_request("aggregations", target=request.index)
        response = response_body(await client.search(**params))
        return {"aggregations": response.get("aggregations")}

    # REST passthrough

    @error_handler("rest_passthrough", relay_body=True)
    async def passthrough(self, request: RestRequest) -> Any:
        """
        Forward a free-form call to the cluster.

        Blocked administrative and destructive calls are rejected before
        any network traffic. Upstream error bodies are relayed verbatim.

        Raises:
            InputValidationError: If method or path is missing
            DangerousRequestError: If the request guard rejects the call
        """
        client = self.client
        if not request.method or not request.path:
            raise InputValidationError("METHOD_PATH_REQUIRED")

        method = request.method.strip().upper()
        path = request.path if request.path.startswith("/") else f"/{request.path}"

        if is_dangerous_request(method, path):
            logger.warning(
                "Blocked dangerous REST request",
                extra={"method": method, "path": path},
            )
            raise DangerousRequestError(method, path)

        headers = {"accept": "application/json"}
        body = request.body if request.body not in (None, "") else None
        if body is not None:
            headers["content-type"] = "application/json"

        log_elasticsearch_request("rest_passthrough", target=path, method=method)
        response = await client.perform_request(method, path, headers=headers, body=body)
        return response_body(response)

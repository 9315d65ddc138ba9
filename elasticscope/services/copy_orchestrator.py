"""
Cross-cluster document copy.

Each copy resolves a source client (an explicit saved connection from the
pool, or the active session) and a target client (always a saved
connection from the pool), makes sure the target index exists, and then
transfers. Bulk copies read every source document independently with
bounded concurrency; a failed document is counted and reported but never
aborts the batch.
"""

import asyncio
from typing import Any

from elasticsearch import AsyncElasticsearch

from ..exceptions import ConnectionFailedError, CopyPreconditionError, InputValidationError
from ..models.copy import (
    BulkCopyResult,
    CopyDocumentRequest,
    CopyDocumentsRequest,
    CopyFailure,
    CopyResult,
    DocumentRef,
)
from ..utils.error_handling import ErrorClassifier, error_handler
from ..utils.logging import get_logger, log_elasticsearch_request
from .cluster_gateway import (
    CAT_ALIASES_COLUMNS,
    CAT_INDICES_COLUMNS,
    group_aliases,
    response_body,
    visible_indices,
)
from .session_manager import SessionManager

logger = get_logger(__name__)

DEFAULT_COPY_CONCURRENCY = 8


def extract_mappings(mapping_response: dict[str, Any], index: str) -> dict[str, Any]:
    """
    Pick the ``mappings`` object for ``index`` out of a get-mapping response.

    The response is keyed by concrete index name, so when ``index`` is an
    alias the single entry returned is used instead.
    """
    entry = mapping_response.get(index)
    if entry is None and mapping_response:
        entry = next(iter(mapping_response.values()))
    return (entry or {}).get("mappings") or {}


def summarize(copied: int, errors: int) -> str:
    message = f"{copied} documents copied"
    if errors:
        message += f", {errors} errors"
    return message


class CopyOrchestrator:
    """Copies documents between clusters."""

    def __init__(self, session_manager: SessionManager, concurrency: int = DEFAULT_COPY_CONCURRENCY):
        self._sessions = session_manager
        self.concurrency = max(1, concurrency)

    async def _resolve_clients(
        self,
        source_connection_id: int | None,
        target_connection_id: int,
    ) -> tuple[AsyncElasticsearch, AsyncElasticsearch]:
        if source_connection_id:
            source = await self._sessions.get_pooled_client(source_connection_id)
        else:
            source = self._sessions.active_client
        if source is None:
            raise CopyPreconditionError("SOURCE_CONNECTION_NOT_FOUND")

        target = await self._sessions.get_pooled_client(target_connection_id)
        if target is None:
            raise CopyPreconditionError("TARGET_CONNECTION_FAILED")

        return source, target

    async def _ensure_target_index(
        self,
        source: AsyncElasticsearch,
        target: AsyncElasticsearch,
        target_index: str,
        mapping_source_index: str | None,
        create_if_missing: bool,
        copy_mapping: bool,
    ) -> None:
        """
        Create the target index if it is missing and creation was requested.

        Raises:
            CopyPreconditionError: ``TARGET_INDEX_NOT_FOUND`` if the index is
                missing and may not be created
        """
        if await target.indices.exists(index=target_index):
            return

        if not create_if_missing:
            raise CopyPreconditionError("TARGET_INDEX_NOT_FOUND", details=target_index)

        if copy_mapping and mapping_source_index:
            log_elasticsearch_request("copy_source_mapping", target=mapping_source_index)
            mapping = response_body(await source.indices.get_mapping(index=mapping_source_index))
            mappings = extract_mappings(mapping, mapping_source_index)
            await target.indices.create(index=target_index, mappings=mappings)
        else:
            await target.indices.create(index=target_index)

        logger.info(
            "Target index created",
            extra={"index": target_index, "mapping_from": mapping_source_index if copy_mapping else None},
        )

    @error_handler("copy_document")
    async def copy_document(self, request: CopyDocumentRequest) -> CopyResult:
        """
        Copy one document, keeping its id.

        Raises:
            InputValidationError: If target connection, target index, document id
                or source index is missing
            CopyPreconditionError: If a client cannot be resolved or the target index is missing
        """
        if not request.target_connection_id or not request.target_index or not request.document_id:
            raise InputValidationError("TARGET_CONNECTION_INDEX_ID_REQUIRED")
        if not request.source_index:
            raise InputValidationError("SOURCE_INDEX_REQUIRED", field="sourceIndex")

        source, target = await self._resolve_clients(
            request.source_connection_id, request.target_connection_id
        )
        await self._ensure_target_index(
            source,
            target,
            request.target_index,
            request.source_index,
            request.create_index_if_not_exists,
            request.copy_mapping,
        )

        log_elasticsearch_request(
            "copy_document", target=request.source_index, doc_id=request.document_id
        )
        source_doc = response_body(await source.get(index=request.source_index, id=request.document_id))
        result = response_body(
            await target.index(
                index=request.target_index,
                id=request.document_id,
                document=source_doc.get("_source") or {},
                refresh=True,
            )
        )

        logger.info(
            "Document copied",
            extra={
                "source_connection_id": request.source_connection_id,
                "target_connection_id": request.target_connection_id,
                "target_index": request.target_index,
                "doc_id": request.document_id,
            },
        )
        return CopyResult(
            message="Document copied successfully",
            result=result.get("result"),
            target_index=request.target_index,
            document_id=request.document_id,
        )

    async def _read_documents(
        self,
        source: AsyncElasticsearch,
        documents: list[DocumentRef],
    ) -> list[dict[str, Any] | CopyFailure]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def read(ref: DocumentRef) -> dict[str, Any] | CopyFailure:
            async with semaphore:
                try:
                    doc = response_body(await source.get(index=ref.index, id=ref.id))
                except Exception as e:
                    reason = ErrorClassifier.classify_elasticsearch_error(e).message
                    logger.warning(
                        "Source document read failed",
                        extra={"index": ref.index, "doc_id": ref.id, "error": reason},
                    )
                    return CopyFailure(index=ref.index, id=ref.id, stage="read", reason=reason)
                return doc.get("_source") or {}

        # gather keeps input order, so the bulk body follows the request order
        return await asyncio.gather(*(read(ref) for ref in documents))

    @error_handler("copy_documents")
    async def copy_documents(self, request: CopyDocumentsRequest) -> BulkCopyResult:
        """
        Copy a batch of documents into one target index.

        Source documents that cannot be read are counted as errors and listed
        in ``failures``; the rest are written with a single bulk request.
        Items the bulk request rejects are moved from ``copied`` to
        ``errors``.
        """
        if not request.target_connection_id or not request.target_index or not request.documents:
            raise InputValidationError("TARGET_CONNECTION_INDEX_DOCUMENTS_REQUIRED")

        source, target = await self._resolve_clients(
            request.source_connection_id, request.target_connection_id
        )
        await self._ensure_target_index(
            source,
            target,
            request.target_index,
            request.documents[0].index,
            request.create_index_if_not_exists,
            request.copy_mapping,
        )

        log_elasticsearch_request(
            "copy_documents", target=request.target_index, documents=len(request.documents)
        )
        results = await self._read_documents(source, request.documents)

        operations: list[dict[str, Any]] = []
        written: list[DocumentRef] = []
        failures: list[CopyFailure] = []
        for ref, outcome in zip(request.documents, results):
            if isinstance(outcome, CopyFailure):
                failures.append(outcome)
                continue
            operations.append({"index": {"_index": request.target_index, "_id": ref.id}})
            operations.append(outcome)
            written.append(ref)

        copied = len(written)
        if operations:
            response = response_body(await target.bulk(operations=operations, refresh=True))
            if response.get("errors"):
                for ref, item in zip(written, response.get("items", [])):
                    action = next(iter(item.values()), {}) if item else {}
                    error = action.get("error")
                    if not error:
                        continue
                    copied -= 1
                    reason = error.get("reason") if isinstance(error, dict) else str(error)
                    failures.append(
                        CopyFailure(index=ref.index, id=ref.id, stage="write", reason=reason or "bulk item failed")
                    )

        errors = len(failures)
        logger.info(
            "Bulk copy finished",
            extra={
                "target_connection_id": request.target_connection_id,
                "target_index": request.target_index,
                "copied": copied,
                "errors": errors,
            },
        )
        return BulkCopyResult(
            message=summarize(copied, errors),
            copied=copied,
            errors=errors,
            failures=failures,
        )

    # Cross-cluster browsing

    async def _pooled_or_fail(self, connection_id: int) -> AsyncElasticsearch:
        client = await self._sessions.get_pooled_client(connection_id)
        if client is None:
            raise ConnectionFailedError(
                f"Could not connect to saved connection {connection_id}",
                status_code=400,
                context={"connection_id": connection_id},
            )
        return client

    @error_handler("connection_indices")
    async def list_connection_indices(self, connection_id: int) -> list[dict[str, Any]]:
        """List the user indices of a saved connection."""
        client = await self._pooled_or_fail(connection_id)
        log_elasticsearch_request("connection_indices", connection_id=connection_id)

        rows = response_body(await client.cat.indices(format="json", h=CAT_INDICES_COLUMNS))
        aliases = response_body(await client.cat.aliases(format="json", h=CAT_ALIASES_COLUMNS))

        alias_map = group_aliases(aliases)
        return [
            {
                "index": row["index"],
                "health": row.get("health"),
                "docsCount": row.get("docs.count"),
                "storeSize": row.get("store.size"),
                "aliases": alias_map.get(row["index"], []),
            }
            for row in visible_indices(rows)
        ]

    @error_handler("connection_mapping")
    async def get_connection_mapping(self, connection_id: int, index: str) -> dict[str, Any]:
        client = await self._pooled_or_fail(connection_id)
        log_elasticsearch_request("connection_mapping", target=index, connection_id=connection_id)
        return response_body(await client.indices.get_mapping(index=index))

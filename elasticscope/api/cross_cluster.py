"""
Cross-cluster browsing and copy endpoints.

These work against saved connections through the client pool and do not
require an active session (the active session is only used as the copy
source when no source connection is given).
"""

from typing import Any

from fastapi import APIRouter, Depends

from ..models.copy import BulkCopyResult, CopyDocumentRequest, CopyDocumentsRequest
from ..services.copy_orchestrator import CopyOrchestrator
from .dependencies import get_copy_orchestrator

router = APIRouter(tags=["cross-cluster"])


@router.get("/connections/{connection_id}/indices")
async def connection_indices(
    connection_id: int,
    orchestrator: CopyOrchestrator = Depends(get_copy_orchestrator),
) -> list[dict[str, Any]]:
    return await orchestrator.list_connection_indices(connection_id)


@router.get("/connections/{connection_id}/indices/{index}/mapping")
async def connection_mapping(
    connection_id: int,
    index: str,
    orchestrator: CopyOrchestrator = Depends(get_copy_orchestrator),
) -> Any:
    return await orchestrator.get_connection_mapping(connection_id, index)


@router.post("/copy-document")
async def copy_document(
    payload: CopyDocumentRequest,
    orchestrator: CopyOrchestrator = Depends(get_copy_orchestrator),
) -> dict[str, Any]:
    result = await orchestrator.copy_document(payload)
    return result.model_dump(by_alias=True)


@router.post("/copy-documents")
async def copy_documents(
    payload: CopyDocumentsRequest,
    orchestrator: CopyOrchestrator = Depends(get_copy_orchestrator),
) -> BulkCopyResult:
    return await orchestrator.copy_documents(payload)

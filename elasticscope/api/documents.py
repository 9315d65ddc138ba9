"""
Document, search and aggregation endpoints.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from ..models.requests import AggregationRequest, SearchRequest
from ..services.cluster_gateway import ClusterGateway
from .dependencies import get_gateway

router = APIRouter(tags=["documents"])


@router.post("/search")
async def search(payload: SearchRequest, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.search(payload)


@router.post("/aggregations")
async def aggregations(payload: AggregationRequest, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.aggregations(payload)


@router.get("/indices/{index}/doc/{doc_id}")
async def get_document(index: str, doc_id: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.get_document(index, doc_id)


@router.put("/indices/{index}/doc/{doc_id}")
async def put_document(
    index: str,
    doc_id: str,
    document: dict[str, Any] = Body(...),
    gateway: ClusterGateway = Depends(get_gateway),
) -> Any:
    return await gateway.put_document(index, document, doc_id=doc_id)


@router.put("/indices/{index}/doc")
async def put_document_auto_id(
    index: str,
    document: dict[str, Any] = Body(...),
    gateway: ClusterGateway = Depends(get_gateway),
) -> Any:
    return await gateway.put_document(index, document)


@router.delete("/indices/{index}/doc/{doc_id}")
async def delete_document(index: str, doc_id: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.delete_document(index, doc_id)

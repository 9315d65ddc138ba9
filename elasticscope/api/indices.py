"""
Index lifecycle and alias endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from ..models.requests import AliasRequest, CreateIndexRequest
from ..services.cluster_gateway import ClusterGateway
from .dependencies import get_gateway

router = APIRouter(tags=["indices"])


@router.get("/indices")
async def list_indices(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.list_indices()


@router.post("/indices")
async def create_index(payload: CreateIndexRequest, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.create_index(payload)


@router.delete("/indices/{index}")
async def delete_index(index: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.delete_index(index)


@router.post("/indices/{index}/open")
async def open_index(index: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.open_index(index)


@router.post("/indices/{index}/close")
async def close_index(index: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.close_index(index)


@router.get("/indices/{index}/mapping")
async def get_mapping(index: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.get_mapping(index)


@router.get("/indices/{index}/settings")
async def get_settings(index: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.get_settings(index)


@router.get("/indices/{index}/stats")
async def index_stats(index: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.index_stats(index)


@router.post("/indices/{index}/alias")
async def add_alias(
    index: str,
    payload: AliasRequest,
    gateway: ClusterGateway = Depends(get_gateway),
) -> Any:
    return await gateway.add_alias(index, payload.alias)


@router.delete("/indices/{index}/alias/{alias}")
async def remove_alias(index: str, alias: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.remove_alias(index, alias)

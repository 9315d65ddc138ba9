"""
Saved REST query endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from ..exceptions import EntityNotFoundError, InputValidationError
from ..models.connection import SavedQuery, SavedQueryInput
from ..storage.stores import SavedQueryStore
from .dependencies import get_query_store

router = APIRouter(tags=["queries"])


@router.get("/queries")
async def list_queries(store: SavedQueryStore = Depends(get_query_store)) -> list[SavedQuery]:
    return await store.list()


@router.get("/queries/{query_id}")
async def get_query(query_id: int, store: SavedQueryStore = Depends(get_query_store)) -> SavedQuery:
    query = await store.get(query_id)
    if query is None:
        raise EntityNotFoundError("QUERY_NOT_FOUND", entity_id=query_id)
    return query


@router.post("/queries")
async def create_query(
    payload: SavedQueryInput,
    store: SavedQueryStore = Depends(get_query_store),
) -> SavedQuery:
    if not payload.name or not payload.method or not payload.path:
        raise InputValidationError("NAME_METHOD_PATH_REQUIRED")
    return await store.create(payload)


@router.put("/queries/{query_id}")
async def update_query(
    query_id: int,
    payload: SavedQueryInput,
    store: SavedQueryStore = Depends(get_query_store),
) -> SavedQuery:
    query = await store.update(query_id, payload)
    if query is None:
        raise EntityNotFoundError("QUERY_NOT_FOUND", entity_id=query_id)
    return query


@router.delete("/queries/{query_id}")
async def delete_query(query_id: int, store: SavedQueryStore = Depends(get_query_store)) -> dict[str, Any]:
    if not await store.delete(query_id):
        raise EntityNotFoundError("QUERY_NOT_FOUND", entity_id=query_id)
    return {"success": True}

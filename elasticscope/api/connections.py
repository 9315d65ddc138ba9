"""
Saved connection profile endpoints.

Passwords never leave the server: every response carries the mask instead
of the stored token.
"""

from typing import Any

from fastapi import APIRouter, Depends

from ..exceptions import EntityNotFoundError, InputValidationError
from ..models.connection import ConnectionInput
from ..models.validators import validate_connection_input, validate_connection_update
from ..storage.stores import ConnectionStore
from .dependencies import get_connection_store

router = APIRouter(tags=["connections"])


@router.get("/connections")
async def list_connections(store: ConnectionStore = Depends(get_connection_store)) -> list[dict[str, Any]]:
    return [profile.masked() for profile in await store.list()]


@router.get("/connections/{connection_id}")
async def get_connection(
    connection_id: int,
    store: ConnectionStore = Depends(get_connection_store),
) -> dict[str, Any]:
    profile = await store.get(connection_id)
    if profile is None:
        raise EntityNotFoundError("CONNECTION_NOT_FOUND", entity_id=connection_id)
    return profile.masked()


@router.post("/connections")
async def create_connection(
    payload: ConnectionInput,
    store: ConnectionStore = Depends(get_connection_store),
) -> dict[str, Any]:
    validation = validate_connection_input(payload)
    if not validation.valid:
        raise InputValidationError(validation.error)
    profile = await store.create(payload)
    return profile.masked()


@router.put("/connections/{connection_id}")
async def update_connection(
    connection_id: int,
    payload: ConnectionInput,
    store: ConnectionStore = Depends(get_connection_store),
) -> dict[str, Any]:
    validation = validate_connection_update(payload)
    if not validation.valid:
        raise InputValidationError(validation.error)
    profile = await store.update(connection_id, payload)
    if profile is None:
        raise EntityNotFoundError("CONNECTION_NOT_FOUND", entity_id=connection_id)
    return profile.masked()


@router.delete("/connections/{connection_id}")
async def delete_connection(
    connection_id: int,
    store: ConnectionStore = Depends(get_connection_store),
) -> dict[str, Any]:
    if not await store.delete(connection_id):
        raise EntityNotFoundError("CONNECTION_NOT_FOUND", entity_id=connection_id)
    return {"success": True}

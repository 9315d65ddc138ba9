"""
Active session endpoints: status, connect and disconnect.
"""

from typing import Any

from fastapi import APIRouter, Depends

from ..models.session import ActiveSession, ConnectRequest
from ..services.session_manager import SessionManager
from .dependencies import get_session_manager

router = APIRouter(tags=["session"])


@router.get("/status")
async def status(sessions: SessionManager = Depends(get_session_manager)) -> ActiveSession:
    return sessions.status()


@router.post("/connect")
async def connect(
    payload: ConnectRequest | None = None,
    sessions: SessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    payload = payload or ConnectRequest()
    session = await sessions.connect(
        connection_id=payload.connection_id,
        url=payload.url,
        username=payload.username,
        password=payload.password,
    )
    return {
        "success": True,
        "message": "Connection successful",
        "connection": session.model_dump(),
    }


@router.post("/disconnect")
async def disconnect(sessions: SessionManager = Depends(get_session_manager)) -> dict[str, Any]:
    await sessions.disconnect()
    return {"success": True}

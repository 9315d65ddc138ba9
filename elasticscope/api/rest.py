"""
Generic REST passthrough endpoint.
"""

from typing import Any

from fastapi import APIRouter, Depends

from ..models.requests import RestRequest
from ..services.cluster_gateway import ClusterGateway
from .dependencies import get_gateway

router = APIRouter(tags=["rest"])


@router.post("/rest")
async def rest_passthrough(payload: RestRequest, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.passthrough(payload)

"""
Cluster, node, cat and task monitoring endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from ..services.cluster_gateway import ClusterGateway
from .dependencies import get_gateway

router = APIRouter(tags=["cluster"])


@router.get("/cluster/health")
async def cluster_health(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.cluster_health()


@router.get("/cluster/info")
async def cluster_info(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.cluster_info()


@router.get("/cluster/stats")
async def cluster_stats(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.cluster_stats()


@router.get("/cluster/pending_tasks")
async def pending_tasks(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.pending_tasks()


@router.get("/nodes")
async def node_stats(metric: str | None = None, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    """Node stats, optionally limited to comma-separated metric groups."""
    metrics = [m.strip() for m in metric.split(",") if m.strip()] if metric else None
    return await gateway.node_stats(metrics)


@router.get("/nodes/info")
async def node_info(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.node_info()


@router.get("/nodes/stats/all")
async def node_stats_all(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.node_stats_all()


@router.get("/nodes/breakers")
async def node_breakers(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.node_breakers()


@router.get("/nodes/hot_threads")
async def hot_threads(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.hot_threads()


@router.get("/cat/nodes")
async def cat_nodes(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.cat_nodes()


@router.get("/cat/shards")
async def cat_shards(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.cat_shards()


@router.get("/cat/segments")
async def cat_segments(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.cat_segments()


@router.get("/cat/recovery")
async def cat_recovery(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.cat_recovery()


@router.get("/thread_pool")
async def thread_pool(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.thread_pool()


@router.get("/stats/indexing")
async def indexing_stats(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.indexing_stats()


@router.get("/tasks")
async def list_tasks(gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.list_tasks()


@router.post("/tasks/{task_id}/cancel")
async def cancel_task(task_id: str, gateway: ClusterGateway = Depends(get_gateway)) -> Any:
    return await gateway.cancel_task(task_id)

"""
FastAPI dependencies resolving the components built in the app lifespan.
"""

from fastapi import Request

from ..services.cluster_gateway import ClusterGateway
from ..services.copy_orchestrator import CopyOrchestrator
from ..services.session_manager import SessionManager
from ..storage.stores import ConnectionStore, SavedQueryStore


def get_connection_store(request: Request) -> ConnectionStore:
    return request.app.state.connection_store


def get_query_store(request: Request) -> SavedQueryStore:
    return request.app.state.query_store


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_gateway(request: Request) -> ClusterGateway:
    return request.app.state.gateway


def get_copy_orchestrator(request: Request) -> CopyOrchestrator:
    return request.app.state.copy_orchestrator

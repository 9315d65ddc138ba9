"""
HTTP surface.

Each module exposes a ``router`` mounted under ``/api`` by ``create_app``.
"""

from . import cluster, connections, cross_cluster, documents, indices, queries, rest, session

ROUTERS = [
    connections.router,
    queries.router,
    session.router,
    cluster.router,
    indices.router,
    documents.router,
    rest.router,
    cross_cluster.router,
]

__all__ = ["ROUTERS"]

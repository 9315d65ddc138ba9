"""
Active session and cross-cluster client pool.

The session manager owns two independent pieces of shared state:

* the active session slot: the one cluster the operator is "in", used by
  the cluster gateway. It is swapped under a single lock, so readers see
  either the old or the new client, never a mix.
* the pool: clients for saved connections, keyed by connection id and
  used by cross-cluster operations. Entries are created under a per-id
  lock and live until shutdown.

Connecting or disconnecting the active session never touches the pool and
vice versa.
"""

import asyncio
from enum import Enum

from elasticsearch import AsyncElasticsearch

from ..exceptions import (
    ConnectionFailedError,
    EntityNotFoundError,
    InputValidationError,
    InternalError,
    NoConnectionError,
)
from ..models.session import ActiveSession
from ..storage.stores import ConnectionStore
from ..utils.logging import get_logger
from .elasticsearch_client import (
    ClusterCredentials,
    ElasticsearchClientFactory,
    close_quietly,
)

logger = get_logger(__name__)


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class SessionManager:
    """Manages the active session client and the pooled clients."""

    def __init__(self, store: ConnectionStore, client_factory: ElasticsearchClientFactory):
        self._store = store
        self._factory = client_factory

        self._active_client: AsyncElasticsearch | None = None
        self._session = ActiveSession()
        self._state = SessionState.DISCONNECTED
        self._pending_connects = 0
        self._slot_lock = asyncio.Lock()

        self._pool: dict[int, AsyncElasticsearch] = {}
        self._pool_locks: dict[int, asyncio.Lock] = {}

    # Active session

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_client(self) -> AsyncElasticsearch | None:
        return self._active_client

    def require_active_client(self) -> AsyncElasticsearch:
        """
        Return the active client.

        Raises:
            NoConnectionError: If no session is connected
        """
        client = self._active_client
        if client is None:
            raise NoConnectionError()
        return client

    def status(self) -> ActiveSession:
        return self._session.model_copy()

    async def connect(
        self,
        connection_id: int | None = None,
        url: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> ActiveSession:
        """
        Connect the active session to a saved connection or an ad-hoc URL.

        On success the new client replaces (and closes) the previous one. On
        failure the session is reset to disconnected.

        Raises:
            EntityNotFoundError: If ``connection_id`` does not exist
            InputValidationError: If no URL could be resolved
            ConnectionFailedError: If the cluster did not answer the ping
        """
        name, color, session_id = "", "", None
        if connection_id:
            profile = await self._store.get(connection_id)
            if profile is None:
                raise EntityNotFoundError("SAVED_CONNECTION_NOT_FOUND", entity_id=connection_id)
            url = profile.url
            username = profile.username
            password = self._store.reveal_password(profile)
            name, color, session_id = profile.name, profile.color, profile.id

        if not url:
            raise InputValidationError("URL_REQUIRED", field="url")

        credentials = ClusterCredentials(url=url, username=username, password=password)

        async with self._slot_lock:
            self._pending_connects += 1
            self._state = SessionState.CONNECTING

        try:
            client = await self._factory.connect(credentials)
        except Exception:
            # Any failure while connecting returns the slot to disconnected
            async with self._slot_lock:
                self._pending_connects -= 1
                previous = self._active_client
                self._active_client = None
                self._session = ActiveSession()
                self._state = self._settled_state()
            await close_quietly(previous)
            logger.warning(
                "Active session connect failed",
                extra={"connection_id": connection_id, "host": credentials.host},
            )
            raise

        async with self._slot_lock:
            self._pending_connects -= 1
            previous = self._active_client
            self._active_client = client
            self._session = ActiveSession(
                id=session_id, url=url, connected=True, name=name, color=color
            )
            self._state = self._settled_state()
            session = self._session.model_copy()

        if previous is not None and previous is not client:
            await close_quietly(previous)

        logger.info(
            "Active session connected",
            extra={"connection_id": session_id, "host": credentials.host},
        )
        return session

    async def disconnect(self) -> ActiveSession:
        """Clear the active session. Always succeeds."""
        async with self._slot_lock:
            previous = self._active_client
            self._active_client = None
            self._session = ActiveSession()
            self._state = self._settled_state()
        await close_quietly(previous)
        logger.info("Active session disconnected")
        return self.status()

    def _settled_state(self) -> SessionState:
        # Caller holds the slot lock
        if self._pending_connects > 0:
            return SessionState.CONNECTING
        return SessionState.CONNECTED if self._active_client is not None else SessionState.DISCONNECTED

    # Pool

    def _lock_for(self, connection_id: int) -> asyncio.Lock:
        lock = self._pool_locks.get(connection_id)
        if lock is None:
            lock = self._pool_locks.setdefault(connection_id, asyncio.Lock())
        return lock

    async def get_pooled_client(self, connection_id: int) -> AsyncElasticsearch | None:
        """
        Return a verified client for a saved connection.

        Cached clients are returned without any I/O. Otherwise the profile is
        loaded, a client built and pinged, and cached on success.

        Returns:
            The client, or None if the connection does not exist or is unreachable
        """
        cached = self._pool.get(connection_id)
        if cached is not None:
            return cached

        async with self._lock_for(connection_id):
            # Another request may have filled the slot while we waited
            cached = self._pool.get(connection_id)
            if cached is not None:
                return cached

            try:
                profile = await self._store.get(connection_id)
            except InternalError as e:
                logger.error(
                    "Pooled connection lookup failed",
                    extra={"connection_id": connection_id, "error": e.message},
                )
                return None
            if profile is None:
                logger.warning("Pooled connection not found", extra={"connection_id": connection_id})
                return None

            credentials = ClusterCredentials(
                url=profile.url,
                username=profile.username,
                password=self._store.reveal_password(profile),
            )
            try:
                client = await self._factory.connect(credentials)
            except ConnectionFailedError as e:
                logger.warning(
                    "Pooled connection failed",
                    extra={"connection_id": connection_id, "error": e.message},
                )
                return None

            self._pool[connection_id] = client
            logger.info("Pooled client created", extra={"connection_id": connection_id})
            return client

    def pooled_connection_ids(self) -> list[int]:
        return sorted(self._pool)

    async def close(self) -> None:
        """Close the active client and every pooled client."""
        await self.disconnect()
        clients = list(self._pool.values())
        self._pool.clear()
        self._pool_locks.clear()
        for client in clients:
            await close_quietly(client)
        logger.info("Session manager closed", extra={"pooled_clients_closed": len(clients)})

"""
Construction and liveness probing of upstream Elasticsearch clients.

Both the active session and the cross-cluster pool build their clients
here, so the TLS and authentication policy is applied in exactly one place.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from elasticsearch import AsyncElasticsearch

from ..exceptions import ConnectionFailedError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClusterCredentials:
    """Resolved (plaintext) connection parameters for one cluster."""

    url: str
    username: str | None = None
    password: str | None = None

    @property
    def host(self) -> str:
        return urlsplit(self.url).netloc or self.url

    def __repr__(self) -> str:
        # Never leak the password into logs or tracebacks
        return f"ClusterCredentials(url={self.url!r}, username={self.username!r})"


class ElasticsearchClientFactory:
    """
    Builds ``AsyncElasticsearch`` clients.

    Certificate verification is controlled by ``verify_certs``; it defaults
    to off because the managed clusters are typically self-hosted with
    self-signed certificates.
    """

    def __init__(self, verify_certs: bool = False):
        self.verify_certs = verify_certs

    def build(self, credentials: ClusterCredentials) -> AsyncElasticsearch:
        connect_params: dict[str, Any] = {"hosts": [credentials.url]}

        if credentials.url.lower().startswith("https://"):
            connect_params["verify_certs"] = self.verify_certs
            if not self.verify_certs:
                connect_params["ssl_show_warn"] = False

        # Basic auth only when both halves are present
        if credentials.username and credentials.password:
            connect_params["basic_auth"] = (credentials.username, credentials.password)
            auth_method = "basic"
        else:
            auth_method = "none"

        logger.debug(
            "Building Elasticsearch client",
            extra={
                "host": credentials.host,
                "auth_method": auth_method,
                "verify_certs": self.verify_certs,
            },
        )
        return AsyncElasticsearch(**connect_params)

    async def connect(self, credentials: ClusterCredentials) -> AsyncElasticsearch:
        """
        Build a client and verify the cluster answers a ping.

        The client is closed again if the probe fails.

        Raises:
            ConnectionFailedError: If the client cannot be built, or the
                cluster is unreachable or rejects the probe
        """
        try:
            client = self.build(credentials)
        except Exception as e:
            logger.warning(
                "Elasticsearch client could not be built",
                extra={"host": credentials.host, "error": str(e)},
            )
            raise ConnectionFailedError(str(e), original_error=e, host=credentials.host) from e

        try:
            alive = await client.ping()
        except Exception as e:
            await close_quietly(client)
            logger.warning(
                "Elasticsearch ping failed",
                extra={"host": credentials.host, "error": str(e)},
            )
            raise ConnectionFailedError(str(e), original_error=e, host=credentials.host) from e

        if not alive:
            await close_quietly(client)
            logger.warning("Elasticsearch ping returned false", extra={"host": credentials.host})
            raise ConnectionFailedError(
                f"Cluster at {credentials.host} did not answer the ping",
                host=credentials.host,
            )

        logger.info("Connected to Elasticsearch", extra={"host": credentials.host})
        return client


async def close_quietly(client: AsyncElasticsearch | None) -> None:
    """Close a client, logging rather than propagating transport errors."""
    if client is None:
        return
    try:
        await client.close()
    except Exception as e:
        logger.warning("Error while closing Elasticsearch client", extra={"error": str(e)})

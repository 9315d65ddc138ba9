"""
Active session models.
"""

from pydantic import BaseModel, ConfigDict, Field


class ActiveSession(BaseModel):
    """
    The cluster the operator is currently connected to.

    ``id`` is None for an ad-hoc (unsaved) connection and for the
    disconnected state.
    """

    id: int | None = None
    url: str = ""
    connected: bool = False
    name: str = ""
    color: str = ""


class ConnectRequest(BaseModel):
    """Connect by saved connection id, or ad-hoc by URL and optional credentials."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    connection_id: int | None = Field(None, alias="connectionId")
    url: str | None = None
    username: str | None = None
    password: str | None = None

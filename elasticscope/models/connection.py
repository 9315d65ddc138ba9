"""
Connection profile and saved query models.

Input models keep every field optional: required-field checks are done by
the request guard so they report the same machine-readable error codes as
the rest of the API, and partial updates need to tell an omitted field from
an explicitly empty one (``model_fields_set``).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PASSWORD_MASK = "••••••••"


class ConnectionInput(BaseModel):
    """Create or partial-update payload for a connection profile."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(None, description="Display name")
    url: str | None = Field(None, description="Cluster base URL")
    username: str | None = Field(None, description="Basic auth username")
    password: str | None = Field(
        None,
        description="Plaintext password; empty string clears the stored one on update",
    )
    color: str | None = Field(None, description="Display color")


class ConnectionProfile(BaseModel):
    """
    A saved cluster endpoint as stored.

    ``password`` holds the stored value (cipher token or legacy plaintext),
    never a revealed password. Use ``masked()`` for anything leaving the
    process.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    url: str
    username: str | None = None
    password: str | None = None
    color: str
    created_at: datetime
    updated_at: datetime

    def masked(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["password"] = PASSWORD_MASK if self.password else None
        return data


class SavedQueryInput(BaseModel):
    """Create or partial-update payload for a saved REST query."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    method: str | None = None
    path: str | None = None
    body: str | None = None


class SavedQuery(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    method: str
    path: str
    body: str | None = None
    created_at: datetime
    updated_at: datetime

"""
Request bodies for the cluster gateway endpoints.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    index: str | None = None
    query: dict[str, Any] | None = None
    from_: int = Field(0, alias="from", ge=0)
    size: int = Field(20, ge=0)
    sort: list[Any] | dict[str, Any] | str | None = None


class AggregationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    index: str | None = None
    fields: list[str] | None = None
    date_field: str | None = Field(None, alias="dateField")
    query: dict[str, Any] | None = None


class RestRequest(BaseModel):
    """Generic REST passthrough call."""

    model_config = ConfigDict(extra="ignore")

    method: str | None = None
    path: str | None = None
    body: Any = None


class CreateIndexRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    index_name: Any = Field(None, alias="indexName")
    settings: dict[str, Any] | None = None
    mappings: dict[str, Any] | None = None


class AliasRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    alias: Any = None

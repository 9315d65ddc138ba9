"""
Cross-cluster copy requests and results.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_id(v: Any) -> Any:
    # Document ids arrive as JSON numbers from some clients
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


class DocumentRef(BaseModel):
    """A source document addressed by index and id."""

    index: str
    id: str

    normalize_id = field_validator("id", mode="before")(_coerce_id)


class CopyDocumentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_connection_id: int | None = Field(None, alias="sourceConnectionId")
    source_index: str | None = Field(None, alias="sourceIndex")
    document_id: str | None = Field(None, alias="documentId")
    target_connection_id: int | None = Field(None, alias="targetConnectionId")
    target_index: str | None = Field(None, alias="targetIndex")
    create_index_if_not_exists: bool = Field(False, alias="createIndexIfNotExists")
    copy_mapping: bool = Field(False, alias="copyMapping")

    normalize_id = field_validator("document_id", mode="before")(_coerce_id)


class CopyDocumentsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_connection_id: int | None = Field(None, alias="sourceConnectionId")
    documents: list[DocumentRef] | None = None
    target_connection_id: int | None = Field(None, alias="targetConnectionId")
    target_index: str | None = Field(None, alias="targetIndex")
    create_index_if_not_exists: bool = Field(False, alias="createIndexIfNotExists")
    copy_mapping: bool = Field(False, alias="copyMapping")


class CopyResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    result: Any = None
    target_index: str = Field(..., alias="targetIndex")
    document_id: str = Field(..., alias="documentId")


class CopyFailure(BaseModel):
    """Why one document of a bulk copy did not make it to the target."""

    index: str
    id: str
    stage: str = Field(..., description="'read' or 'write'")
    reason: str


class BulkCopyResult(BaseModel):
    success: bool = True
    message: str
    copied: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    failures: list[CopyFailure] = Field(default_factory=list)

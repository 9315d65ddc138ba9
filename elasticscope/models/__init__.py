"""
Data models and request validators for the ElasticScope server.
"""

from .connection import (
    PASSWORD_MASK,
    ConnectionInput,
    ConnectionProfile,
    SavedQuery,
    SavedQueryInput,
)
from .copy import (
    BulkCopyResult,
    CopyDocumentRequest,
    CopyDocumentsRequest,
    CopyFailure,
    CopyResult,
    DocumentRef,
)
from .requests import (
    AggregationRequest,
    AliasRequest,
    CreateIndexRequest,
    RestRequest,
    SearchRequest,
)
from .session import ActiveSession, ConnectRequest
from .validators import (
    ValidationResult,
    is_dangerous_request,
    validate_alias_name,
    validate_connection_input,
    validate_connection_update,
    validate_index_name,
)

__all__ = [
    "PASSWORD_MASK",
    "ActiveSession",
    "AggregationRequest",
    "AliasRequest",
    "BulkCopyResult",
    "ConnectRequest",
    "ConnectionInput",
    "ConnectionProfile",
    "CopyDocumentRequest",
    "CopyDocumentsRequest",
    "CopyFailure",
    "CopyResult",
    "CreateIndexRequest",
    "DocumentRef",
    "RestRequest",
    "SavedQuery",
    "SavedQueryInput",
    "SearchRequest",
    "ValidationResult",
    "is_dangerous_request",
    "validate_alias_name",
    "validate_connection_input",
    "validate_connection_update",
    "validate_index_name",
]

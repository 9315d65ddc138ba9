"""
Custom exceptions for the ElasticScope server.

Every error that reaches the HTTP layer carries a machine-readable error code
(never a human-readable sentence) so the browser client can localize it, plus
the HTTP status it maps to and structured context for logging.
"""

from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Error severity levels for classification and logging priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories, matching the families of error codes."""

    VALIDATION = "validation"
    STATE = "state"
    NOT_FOUND = "not_found"
    SECURITY = "security"
    CONNECTION = "connection"
    UPSTREAM = "upstream"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ElasticScopeError(Exception):
    """
    Base exception for all ElasticScope errors.

    Provides structured error information with an error code, HTTP status,
    severity, category and context.
    """

    status_code: int = 500
    default_error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        error_code: str | None = None,
        *,
        details: str | None = None,
        status_code: int | None = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        self.error_code = error_code or self.default_error_code
        super().__init__(details or self.error_code)
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        self.severity = severity
        self.category = category
        self.context = context or {}
        self.original_error = original_error

    @property
    def message(self) -> str:
        return self.details or self.error_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "status_code": self.status_code,
            "details": self.details,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context,
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def to_response(self) -> Any:
        """Build the JSON body returned to HTTP callers."""
        body: dict[str, Any] = {"errorCode": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


class InputValidationError(ElasticScopeError):
    """Raised when the caller supplied malformed input."""

    status_code = 400
    default_error_code = "INVALID_REQUEST"

    def __init__(
        self,
        error_code: str,
        details: str | None = None,
        field: str | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        super().__init__(
            error_code,
            details=details,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            context=context,
            **kwargs
        )


class NoConnectionError(ElasticScopeError):
    """Raised when an operation needs an active cluster session and there is none."""

    status_code = 400
    default_error_code = "NO_ES_CONNECTION"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.STATE,
            **kwargs
        )


class EntityNotFoundError(ElasticScopeError):
    """Raised when a referenced profile, query or saved connection does not exist."""

    status_code = 404
    default_error_code = "NOT_FOUND"

    def __init__(
        self,
        error_code: str,
        entity_id: int | str | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if entity_id is not None:
            context["entity_id"] = entity_id
        super().__init__(
            error_code,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.NOT_FOUND,
            context=context,
            **kwargs
        )


class CopyPreconditionError(ElasticScopeError):
    """Raised when a copy workflow cannot start (missing client or target index)."""

    status_code = 400

    def __init__(self, error_code: str, details: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            error_code,
            details=details,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.NOT_FOUND,
            **kwargs
        )


class DangerousRequestError(ElasticScopeError):
    """Raised when the request guard blocks an administrative or destructive call."""

    status_code = 403
    default_error_code = "DANGEROUS_REQUEST_BLOCKED"

    def __init__(self, method: str, path: str, **kwargs: Any) -> None:
        super().__init__(
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.SECURITY,
            context={"method": method, "path": path},
            **kwargs
        )


class ConnectionFailedError(ElasticScopeError):
    """Raised when a cluster could not be reached or rejected the liveness probe."""

    default_error_code = "CONNECTION_FAILED"

    def __init__(
        self,
        details: str | None = None,
        original_error: Exception | None = None,
        host: str | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if host:
            context["host"] = host
        super().__init__(
            details=details,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.CONNECTION,
            original_error=original_error,
            context=context,
            **kwargs
        )


class UpstreamError(ElasticScopeError):
    """
    Raised when the Elasticsearch client failed talking to a cluster.

    Carries the upstream status code and body when the cluster answered.
    With ``relay_body`` set, the upstream body is returned to the caller
    verbatim; otherwise the legacy ``{"error": message}`` shape is used.
    """

    default_error_code = "UPSTREAM_ERROR"

    def __init__(
        self,
        details: str,
        *,
        upstream_status: int | None = None,
        upstream_body: Any = None,
        relay_body: bool = False,
        original_error: Exception | None = None,
        **kwargs: Any
    ) -> None:
        super().__init__(
            details=details,
            status_code=upstream_status or 500,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.UPSTREAM,
            original_error=original_error,
            **kwargs
        )
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        self.relay_body = relay_body

    def to_response(self) -> Any:
        if self.relay_body and self.upstream_body:
            return self.upstream_body
        return {"error": self.details}


class InternalError(ElasticScopeError):
    """Raised for store failures and other unexpected internal errors."""

    def __init__(
        self,
        details: str | None = None,
        original_error: Exception | None = None,
        component: str | None = None,
        **kwargs: Any
    ) -> None:
        context = {"component": component} if component else {}
        super().__init__(
            details=details,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.SYSTEM,
            original_error=original_error,
            context=context,
            **kwargs
        )


class ConfigurationError(ElasticScopeError):
    """Raised when required environment configuration is missing or invalid."""

    default_error_code = "CONFIGURATION_ERROR"

    def __init__(self, details: str, variable: str | None = None, **kwargs: Any) -> None:
        context = {"variable": variable} if variable else {}
        super().__init__(
            details=details,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            context=context,
            **kwargs
        )

"""
Error classification and handling helpers.

Transforms exceptions raised by the Elasticsearch client into structured
ElasticScope errors and provides the decorator the gateway and the copy
orchestrator wrap their operations with. Nothing here retries: every
failure is reported to the operator immediately.
"""

import traceback
from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
from typing import Any

from elasticsearch.exceptions import ApiError, TransportError

from ..exceptions import ElasticScopeError, InternalError, UpstreamError
from .logging import get_logger, log_elasticsearch_error

logger = get_logger(__name__)


def _extract_message(error: ApiError) -> str:
    """Pull the most specific reason out of an Elasticsearch error body."""
    body = error.body
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            reason = err.get("reason") or err.get("type")
            if reason:
                return str(reason)
        elif isinstance(err, str):
            return err
    return str(error.message)


class ErrorClassifier:
    """
    Classifies exceptions into structured ElasticScope errors.
    """

    @staticmethod
    def classify_elasticsearch_error(
        error: Exception,
        context: dict[str, Any] | None = None,
        relay_body: bool = False,
    ) -> ElasticScopeError:
        """
        Classify an exception raised while talking to a cluster.

        Args:
            error: The original exception
            context: Additional context information
            relay_body: Whether the upstream body should be returned verbatim

        Returns:
            Appropriate ElasticScopeError subclass
        """
        context = context or {}

        if isinstance(error, ElasticScopeError):
            return error

        # The cluster answered with an error status
        if isinstance(error, ApiError):
            status = getattr(error.meta, "status", None) if error.meta is not None else None
            return UpstreamError(
                _extract_message(error),
                upstream_status=status,
                upstream_body=error.body,
                relay_body=relay_body,
                original_error=error,
                context=context,
            )

        # Connection refused, timeout, TLS failure: no upstream status
        if isinstance(error, TransportError):
            return UpstreamError(
                str(error.message),
                original_error=error,
                context=context,
            )

        return InternalError(
            str(error),
            original_error=error,
            component=context.get("component", "cluster_gateway"),
        )


def error_handler(
    operation: str,
    relay_body: bool = False,
    include_traceback: bool = False,
) -> Callable[..., Callable[..., Any]]:
    """
    Decorator for error handling in async operations.

    ElasticScope errors pass through untouched; everything else is
    classified, logged with structured context and re-raised.

    Args:
        operation: Name of the operation for logging
        relay_body: Relay the upstream error body verbatim to the caller
        include_traceback: Whether to include the traceback in logs
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except ElasticScopeError:
                raise
            except Exception as e:
                context = create_error_context(operation, function=func.__name__)
                structured_error = ErrorClassifier.classify_elasticsearch_error(
                    e, context, relay_body=relay_body
                )

                log_data: dict[str, Any] = {"error_info": structured_error.to_dict()}
                if include_traceback:
                    log_data["traceback"] = traceback.format_exception(type(e), e, e.__traceback__)

                if isinstance(structured_error, UpstreamError):
                    log_elasticsearch_error(
                        operation, structured_error.message, structured_error.upstream_status
                    )
                else:
                    logger.error(f"Error in {operation}: {structured_error.message}", extra=log_data)

                raise structured_error from e

        return wrapper
    return decorator


def create_error_context(
    operation: str,
    index: str | None = None,
    connection_id: int | None = None,
    **additional_context: Any
) -> dict[str, Any]:
    """
    Create standardized error context for consistent logging.

    Args:
        operation: The operation being performed
        index: Elasticsearch index name
        connection_id: Saved connection the call went to
        **additional_context: Additional context fields
    """
    context: dict[str, Any] = {
        "operation": operation,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if index:
        context["index"] = index
    if connection_id is not None:
        context["connection_id"] = connection_id

    context.update(additional_context)
    return context

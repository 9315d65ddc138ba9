"""
Structured logging configuration for the ElasticScope server.

This module provides structured JSON logging with configurable levels and
correlation ID support for tracing a single HTTP request through the
gateway, the session manager and the upstream client.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, cast
from uuid import uuid4

import structlog

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# LogRecord attributes that are not user supplied "extra" fields
_RESERVED_RECORD_KEYS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "taskName", "getMessage", "message",
})


class RestartingFileHandler(logging.FileHandler):
    """
    File handler that truncates the log file once it reaches ``max_bytes``
    instead of rotating into backup files.
    """

    def __init__(
        self,
        filename: str,
        *,
        max_bytes: int = 10 * 1024 * 1024,
        encoding: str | None = None,
        delay: bool = False,
    ) -> None:
        super().__init__(filename, "a", encoding, delay)
        self.max_bytes = max_bytes

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if self.should_restart():
                self.restart_file()
            super().emit(record)
        except Exception:
            self.handleError(record)

    def should_restart(self) -> bool:
        try:
            return os.path.getsize(self.baseFilename) >= self.max_bytes
        except OSError:
            return False

    def restart_file(self) -> None:
        """Close the stream, truncate the file and reopen it for appending."""
        try:
            if self.stream:
                self.stream.close()
            with open(self.baseFilename, "w", encoding=self.encoding) as f:
                f.write(f"=== Log file restarted at {datetime.now(UTC).isoformat()} ===\n")
            self.stream = self._open()
        except OSError as e:
            print(f"Failed to restart log file: {e}", file=sys.stderr)


class CorrelationIDProcessor:
    """structlog processor adding the current request's correlation ID."""

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        correlation_id = _correlation_id.get()
        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        return event_dict


correlation_processor = CorrelationIDProcessor()


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = _correlation_id.get()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def configure_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    enable_console: bool = True,
    enable_file: bool = True,
    max_file_size: int = 10 * 1024 * 1024,
    enable_json_logging: bool = True,
    verbose: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (defaults to /tmp/elasticscope.log)
        enable_console: Enable console logging
        enable_file: Enable file logging
        max_file_size: Maximum size of log file before it is truncated
        enable_json_logging: Enable JSON structured logging
        verbose: Enable verbose/debug logging
    """
    if log_level is None:
        log_level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO").upper()

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if log_file is None:
        log_file = "/tmp/elasticscope.log"

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(numeric_level)

    plain_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handlers: list[logging.Handler] = []

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(JSONFormatter() if enable_json_logging else plain_formatter)
        handlers.append(console_handler)

    if enable_file:
        file_handler = RestartingFileHandler(log_file, max_bytes=max_file_size)
        file_handler.setFormatter(JSONFormatter() if enable_json_logging else plain_formatter)
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    if enable_json_logging:
        processors: list[Any] = [
            correlation_processor,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ]
        structlog.configure(
            processors=cast(Any, processors),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    # Upstream client libraries are noisy at INFO
    for noisy in ("elasticsearch", "elastic_transport", "urllib3", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name (typically ``__name__``)."""
    return logging.getLogger(name)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set the correlation ID for the current task.

    Args:
        correlation_id: Correlation ID to set (generates UUID4 if None)

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current task."""
    _correlation_id.set(None)


def log_api_request(method: str, path: str) -> None:
    logger = get_logger("elasticscope.api")
    logger.info(
        "API request",
        extra={
            "http_method": method,
            "http_path": path,
            "event_type": "api_request",
        },
    )


def log_api_response(
    method: str, path: str, status_code: int, duration_ms: float
) -> None:
    """
    Log the outcome of an API request.

    Server errors are logged at ERROR, everything else at INFO.
    """
    logger = get_logger("elasticscope.api")
    extra = {
        "http_method": method,
        "http_path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
        "event_type": "api_response",
    }
    if status_code >= 500:
        logger.error("API response", extra=extra)
    else:
        logger.info("API response", extra=extra)


def log_elasticsearch_request(operation: str, target: str | None = None, **fields: Any) -> None:
    """
    Log an outbound Elasticsearch call.

    Args:
        operation: Gateway or orchestrator operation name
        target: Index, path or connection the call is aimed at
        **fields: Additional structured fields
    """
    logger = get_logger("elasticscope.elasticsearch")
    extra: dict[str, Any] = {
        "operation": operation,
        "event_type": "elasticsearch_request",
        **fields,
    }
    if target is not None:
        extra["target"] = target
    logger.debug("Elasticsearch request", extra=extra)


def log_elasticsearch_error(operation: str, error: str, status: int | None = None) -> None:
    logger = get_logger("elasticscope.elasticsearch")
    extra: dict[str, Any] = {
        "operation": operation,
        "error": error,
        "event_type": "elasticsearch_error",
    }
    if status is not None:
        extra["upstream_status"] = status
    logger.error("Elasticsearch error", extra=extra)

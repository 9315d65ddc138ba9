"""
Exception handlers rendering errors as JSON bodies.

Application errors carry their own status and body; request validation
failures and anything unexpected are mapped to ``INVALID_REQUEST`` and
``INTERNAL_ERROR``.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..exceptions import ElasticScopeError, ErrorSeverity
from ..utils.logging import get_logger

logger = get_logger(__name__)


async def elasticscope_error_handler(request: Request, exc: ElasticScopeError) -> JSONResponse:
    log = logger.error if exc.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL) else logger.info
    log(
        f"{request.method} {request.url.path} failed: {exc.error_code}",
        extra={"error_info": exc.to_dict()},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    details = f"{location}: {first.get('msg')}" if first else None
    logger.info(
        f"{request.method} {request.url.path} rejected: INVALID_REQUEST",
        extra={"validation_errors": len(errors), "details": details},
    )
    content = {"errorCode": "INVALID_REQUEST"}
    if details:
        content["details"] = details
    return JSONResponse(status_code=400, content=content)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error in {request.method} {request.url.path}: {exc}",
        extra={"error_type": type(exc).__name__},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"errorCode": "INTERNAL_ERROR", "details": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ElasticScopeError, elasticscope_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

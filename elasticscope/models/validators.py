"""
Request guard validators.

Stateless checks run on every request before anything is sent upstream.
Validators return a ``ValidationResult`` carrying a machine-readable error
code rather than raising, so callers decide which HTTP error to map it to.
"""

import re
from collections.abc import Mapping
from typing import Any, NamedTuple
from urllib.parse import unquote, urlsplit

MAX_INDEX_NAME_LENGTH = 255
MAX_ALIAS_NAME_LENGTH = 255
MAX_CONNECTION_NAME_LENGTH = 100

# Administrative APIs that must never be reachable through the REST passthrough
DANGEROUS_PATHS = (
    "/_all",
    "/_cluster/settings",
    "/_security",
    "/_snapshot",
    "/_slm",
    "/_ilm",
    "/_license",
    "/_xpack/security",
    "/_nodes/shutdown",
    "/_shutdown",
)

DANGEROUS_PATH_PATTERNS = (
    re.compile(r"^/_all/"),            # anything addressed to every index
    re.compile(r"^/_template$"),       # all legacy templates
    re.compile(r"^/_index_template$"), # all composable templates
)

DANGEROUS_DELETE_PATHS = frozenset({"/", "/_all", "/*"})

_FORBIDDEN_NAME_CHARS = re.compile(r'[\\/*?"<>|,#:\s]')
_INVALID_INDEX_START = re.compile(r"^[-_+]")


class ValidationResult(NamedTuple):
    valid: bool
    error: str | None = None


VALID = ValidationResult(True)


def normalize_request_path(path: str) -> str:
    """
    Normalize a passthrough path for comparison against the deny-list.

    Lowercases, drops the query string, percent-decodes until stable,
    collapses repeated slashes and removes a trailing slash, so
    ``/_Cluster//%73ettings/?pretty`` compares equal to ``/_cluster/settings``.
    """
    normalized = path.split("?", 1)[0].split("#", 1)[0]
    decoded = unquote(normalized)
    while decoded != normalized:
        normalized, decoded = decoded, unquote(decoded)
    normalized = normalized.split("?", 1)[0].strip().lower()
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    normalized = re.sub(r"/{2,}", "/", normalized)
    if len(normalized) > 1:
        normalized = normalized.rstrip("/") or "/"
    return normalized


def is_dangerous_request(method: str, path: str) -> bool:
    """
    Check whether a passthrough call targets a blocked administrative or
    mass-destructive API.

    Args:
        method: HTTP method, any case
        path: Request path, with or without a leading slash

    Returns:
        True if the request must be rejected
    """
    normalized_path = normalize_request_path(path)
    normalized_method = method.strip().upper()

    for blocked in DANGEROUS_PATHS:
        if normalized_path == blocked or normalized_path.startswith(blocked + "/"):
            return True

    if any(pattern.search(normalized_path) for pattern in DANGEROUS_PATH_PATTERNS):
        return True

    if normalized_method == "DELETE" and normalized_path in DANGEROUS_DELETE_PATHS:
        return True

    return False


def validate_index_name(index_name: Any) -> ValidationResult:
    """
    Validate an index name against Elasticsearch's naming rules.

    Index names must be lowercase, at most 255 characters, must not start
    with ``-``, ``_`` or ``+``, must not contain whitespace or any of
    ``\\ / * ? " < > | , # :`` and cannot be ``.`` or ``..``.
    """
    if not index_name or not isinstance(index_name, str):
        return ValidationResult(False, "INDEX_NAME_REQUIRED")

    if len(index_name) > MAX_INDEX_NAME_LENGTH:
        return ValidationResult(False, "INDEX_NAME_TOO_LONG")

    if _INVALID_INDEX_START.match(index_name):
        return ValidationResult(False, "INDEX_NAME_INVALID_START")

    if _FORBIDDEN_NAME_CHARS.search(index_name):
        return ValidationResult(False, "INDEX_NAME_INVALID_CHARS")

    if index_name in (".", ".."):
        return ValidationResult(False, "INDEX_NAME_INVALID")

    if index_name != index_name.lower():
        return ValidationResult(False, "INDEX_NAME_MUST_BE_LOWERCASE")

    return VALID


def validate_alias_name(alias_name: Any) -> ValidationResult:
    """Validate an alias name. Same character rules as indices, any case."""
    if not alias_name or not isinstance(alias_name, str):
        return ValidationResult(False, "ALIAS_REQUIRED")

    if len(alias_name) > MAX_ALIAS_NAME_LENGTH:
        return ValidationResult(False, "ALIAS_NAME_TOO_LONG")

    if _FORBIDDEN_NAME_CHARS.search(alias_name):
        return ValidationResult(False, "ALIAS_NAME_INVALID_CHARS")

    return VALID


def is_absolute_url(value: str) -> bool:
    try:
        parts = urlsplit(value.strip())
        # Reading .port validates the port component
        _ = parts.port
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc and parts.hostname)


def validate_connection_input(data: Mapping[str, Any] | Any) -> ValidationResult:
    """
    Validate a connection profile payload.

    Requires a non-blank name of at most 100 characters and a well-formed
    absolute URL.

    Args:
        data: Mapping or object exposing ``name`` and ``url``
    """
    if isinstance(data, Mapping):
        name, url = data.get("name"), data.get("url")
    else:
        name, url = getattr(data, "name", None), getattr(data, "url", None)

    return _check_name(name) or _check_url(url) or VALID


def validate_connection_update(data: Any) -> ValidationResult:
    """
    Validate a partial connection update.

    Only fields that carry a value are checked; omitted (None) fields keep
    their stored value and need no validation.
    """
    name, url = getattr(data, "name", None), getattr(data, "url", None)
    if name is not None and (error := _check_name(name)):
        return error
    if url is not None and (error := _check_url(url)):
        return error
    return VALID


def _check_name(name: Any) -> ValidationResult | None:
    if not name or not isinstance(name, str) or not name.strip():
        return ValidationResult(False, "NAME_REQUIRED")
    if len(name) > MAX_CONNECTION_NAME_LENGTH:
        return ValidationResult(False, "NAME_TOO_LONG")
    return None


def _check_url(url: Any) -> ValidationResult | None:
    if not url or not isinstance(url, str):
        return ValidationResult(False, "URL_REQUIRED")
    if not is_absolute_url(url):
        return ValidationResult(False, "URL_INVALID")
    return None

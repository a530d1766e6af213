"""Error codes and exception classification for upstream failures.

Codes drive two decisions: whether the client retries a request and which
remediation hint a tool handler appends to its error text.
"""

from __future__ import annotations

import json
from enum import StrEnum
from functools import lru_cache

import httpx
from pydantic import ValidationError


class ErrorCode(StrEnum):
    """Failure categories shared by the client, retry policy and handlers."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RATE_LIMITED = "RATE_LIMITED"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN = "UNKNOWN"


# Substring rules for exceptions without a known type, first match wins
_KEYWORD_RULES: tuple[tuple[tuple[str, ...], ErrorCode], ...] = (
    (("timeout", "timed out"), ErrorCode.TIMEOUT),
    (("connection", "network", "unreachable"), ErrorCode.NETWORK_ERROR),
    (("rate limit", "too many requests"), ErrorCode.RATE_LIMITED),
    (("permission", "forbidden", "unauthorized"), ErrorCode.PERMISSION_DENIED),
    (("json", "decode", "parse"), ErrorCode.PARSE_ERROR),
    (("not found", "notfound"), ErrorCode.NOT_FOUND),
    (("valueerror", "typeerror", "validation"), ErrorCode.INVALID_PARAMS),
)


@lru_cache(maxsize=256)
def _match_keywords(signature: str) -> ErrorCode:
    text = signature.lower()
    for keywords, code in _KEYWORD_RULES:
        if any(word in text for word in keywords):
            return code
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def classify_status(status: int) -> ErrorCode:
    """HTTP status -> code. Unlisted 4xx statuses count as bad parameters."""
    match status:
        case 404:
            return ErrorCode.NOT_FOUND
        case 429:
            return ErrorCode.RATE_LIMITED
        case 401 | 403:
            return ErrorCode.PERMISSION_DENIED
        case _ if status >= 500:
            return ErrorCode.EXTERNAL_SERVICE_ERROR
    return ErrorCode.INVALID_PARAMS


def classify_exception(exc: Exception) -> ErrorCode:
    """Code for a caught exception.

    httpx and decoding errors map by type; anything else is matched on its
    class name and message.
    """
    match exc:
        case httpx.HTTPStatusError():
            return classify_status(exc.response.status_code)
        case httpx.TimeoutException():
            return ErrorCode.TIMEOUT
        case httpx.TransportError():
            return ErrorCode.NETWORK_ERROR
        case ValidationError() | json.JSONDecodeError():
            return ErrorCode.PARSE_ERROR
    return _match_keywords(f"{type(exc).__name__}: {exc}")


# The same request may succeed on a later attempt
RETRYABLE_CODES: frozenset[ErrorCode] = frozenset(
    (ErrorCode.TIMEOUT, ErrorCode.NETWORK_ERROR, ErrorCode.RATE_LIMITED, ErrorCode.EXTERNAL_SERVICE_ERROR)
)


def is_retryable(code: ErrorCode | str | None) -> bool:
    return code in RETRYABLE_CODES if code else False

"""Unified error handling.

- ErrorCode: standard failure kinds, classify_exception maps exceptions to them
- ErrorTrace/ErrorContext: error payload with operation provenance
- Result/Ok/Err: outcome type returned by the API client
"""

from .errors import RETRYABLE_CODES, ErrorCode, classify_exception, classify_status, is_retryable
from .result import Err, Ok, Result, try_async, try_fn
from .types import ErrorContext, ErrorTrace, JsonDict, JsonValue, trace, trace_from_exc

__all__ = [
    "ErrorCode", "RETRYABLE_CODES", "classify_exception", "classify_status", "is_retryable",
    "Result", "Ok", "Err", "try_fn", "try_async",
    "ErrorContext", "ErrorTrace", "JsonDict", "JsonValue", "trace", "trace_from_exc",
]

"""Retry policies and backoff strategies for upstream requests."""

from .backoff import Backoff, ConstantBackoff, ExponentialBackoff
from .policy import NO_RETRY, RetryPolicy, execute_with_retry

__all__ = [
    "Backoff",
    "ConstantBackoff",
    "ExponentialBackoff",
    "NO_RETRY",
    "RetryPolicy",
    "execute_with_retry",
]

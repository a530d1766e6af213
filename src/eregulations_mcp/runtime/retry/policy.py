"""Retry policy for upstream API requests.

Retries are decided on the ErrorCode of a failed Result, so only transient
failures (network, timeout, rate limit, 5xx) are repeated. A 404 or a parse
error fails immediately.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Annotated, Awaitable, Callable, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from eregulations_mcp.foundation.errors import RETRYABLE_CODES, ErrorCode, ErrorTrace, Result

from .backoff import Backoff, ConstantBackoff

if TYPE_CHECKING:
    from eregulations_mcp.foundation.config import RetrySettings
    from eregulations_mcp.runtime.observability import StructuredLogger

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


class RetryPolicy(BaseModel):
    """How many times, after how long, and for which codes to repeat a request.

    `max_retries` counts repeats after the first call; 0 disables retrying.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    max_retries: Annotated[int, Field(ge=0, le=10)] = 3
    backoff: Backoff = Field(default_factory=ConstantBackoff, repr=False)
    retry_on: frozenset[ErrorCode] = RETRYABLE_CODES

    @field_validator("retry_on", mode="before")
    @classmethod
    def _as_codes(cls, codes: Iterable[ErrorCode | str]) -> frozenset[ErrorCode]:
        return frozenset(map(ErrorCode, codes))

    @computed_field
    @property
    def is_disabled(self) -> bool:
        return not (self.max_retries and self.retry_on)

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> RetryPolicy:
        return cls(max_retries=settings.max_retries, backoff=ConstantBackoff(settings.delay))

    def should_retry(self, code: ErrorCode | str | None, attempt: int) -> bool:
        """True when retry number `attempt` (from 0) is allowed for a failure with `code`."""
        return code is not None and attempt < self.max_retries and code in self.retry_on

    def wait_for(self, attempt: int) -> float:
        return self.backoff.delay(attempt)


NO_RETRY = RetryPolicy(max_retries=0, retry_on=frozenset())


async def execute_with_retry(
    operation: Callable[[], Awaitable[Result[T, ErrorTrace]]],
    policy: RetryPolicy,
    *,
    name: str,
    logger: StructuredLogger | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> Result[T, ErrorTrace]:
    """Await `operation` until it returns Ok or the policy gives up.

    The last Err is returned as-is once retries run out or its code is not
    retryable.
    """
    attempt = 0
    while True:
        outcome = await operation()
        if outcome.is_ok():
            return outcome
        code = outcome.unwrap_err().error_code
        if not policy.should_retry(code, attempt):
            return outcome

        pause = policy.wait_for(attempt)
        if logger is not None:
            logger.warning(
                "retrying request",
                operation=name,
                attempt=attempt + 1,
                max_retries=policy.max_retries,
                delay=pause,
                code=code,
            )
        await sleep(pause)
        attempt += 1

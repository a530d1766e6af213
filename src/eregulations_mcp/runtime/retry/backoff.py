"""Delay strategies between retry attempts (attempt numbers start at 0)."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    def delay(self, attempt: int) -> float: ...


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Same wait before every retry. 2s matches the upstream client's pause."""

    delay_seconds: float = 2.0

    def delay(self, attempt: int) -> float:
        return self.delay_seconds


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Doubling wait capped at `max_delay`.

    With jitter the capped value is scaled by a random factor in [0.5, 1.5).
    """

    base: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0
    jitter: bool = True

    def delay(self, attempt: int) -> float:
        wait = self.base * self.multiplier**attempt
        if wait > self.max_delay:
            wait = self.max_delay
        if not self.jitter:
            return wait
        return wait * random.uniform(0.5, 1.5)

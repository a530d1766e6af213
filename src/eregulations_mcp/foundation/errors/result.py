"""Result type for outcomes that cross the API client boundary.

Client calls return `Ok(record)` or `Err(ErrorTrace)` instead of raising, so
each tool handler decides how a failure reads to the model.

    >>> Ok(1246).map(lambda pid: f"procedure_{pid}").unwrap()
    'procedure_1246'
    >>> Err(trace("upstream down")).unwrap_or([])
    []
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from .types import ErrorTrace, trace_from_exc

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterator

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")


class Result(Generic[T, E]):
    """Success (`Ok`) or failure (`Err`) holding exactly one payload.

    Build instances with Ok() and Err(); the constructor is internal.
    """

    __slots__ = ("_payload", "_ok")
    __match_args__ = ("_payload",)

    def __init__(self, payload: T | E, ok: bool) -> None:
        self._payload = payload
        self._ok = ok

    def is_ok(self) -> bool:
        return self._ok

    def is_err(self) -> bool:
        return not self._ok

    # ─── Extraction ──────────────────────────────────────────────────

    def unwrap(self) -> T:
        """Payload of an Ok. An Err raises RuntimeError."""
        if not self._ok:
            raise RuntimeError(f"unwrap() on Err: {self._payload}")
        return self._payload  # type: ignore[return-value]

    def unwrap_err(self) -> E:
        """Payload of an Err. An Ok raises RuntimeError."""
        if self._ok:
            raise RuntimeError(f"unwrap_err() on Ok: {self._payload!r}")
        return self._payload  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        if self._ok:
            return self._payload  # type: ignore[return-value]
        return default

    def ok(self) -> T | None:
        """Payload of an Ok, else None."""
        return self._payload if self._ok else None  # type: ignore[return-value]

    def err(self) -> E | None:
        """Payload of an Err, else None."""
        return None if self._ok else self._payload  # type: ignore[return-value]

    # ─── Composition ─────────────────────────────────────────────────

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """Transform the Ok payload; an Err passes through untouched."""
        if self._ok:
            return Ok(f(self._payload))  # type: ignore[arg-type]
        return self  # type: ignore[return-value]

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        """Transform the Err payload; an Ok passes through untouched."""
        if self._ok:
            return self  # type: ignore[return-value]
        return Err(f(self._payload))  # type: ignore[arg-type]

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain a step that can itself fail, e.g. parsing a fetched payload."""
        if self._ok:
            return f(self._payload)  # type: ignore[arg-type]
        return self  # type: ignore[return-value]

    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Fold both variants into one value."""
        if self._ok:
            return ok(self._payload)  # type: ignore[arg-type]
        return err(self._payload)  # type: ignore[arg-type]

    # ─── Protocols ───────────────────────────────────────────────────

    def __bool__(self) -> bool:
        return self._ok

    def __repr__(self) -> str:
        return f"{'Ok' if self._ok else 'Err'}({self._payload!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._ok is other._ok and self._payload == other._payload

    def __hash__(self) -> int:
        return hash((self._ok, id(self._payload)))

    def __iter__(self) -> Iterator[T]:
        """One item for an Ok, none for an Err."""
        if self._ok:
            yield self._payload  # type: ignore[misc]


# ═══════════════════════════════════════════════════════════════════════════════
# Constructors
# ═══════════════════════════════════════════════════════════════════════════════


def Ok(value: T) -> Result[T, E]:  # noqa: N802
    return Result(value, True)


def Err(error: E) -> Result[T, E]:  # noqa: N802
    return Result(error, False)


def try_fn(f: Callable[[], T], *, operation: str = "") -> Result[T, ErrorTrace]:
    """Call f and capture any exception as a classified ErrorTrace."""
    try:
        value = f()
    except Exception as e:
        return Err(trace_from_exc(e, operation=operation))
    return Ok(value)


async def try_async(f: Callable[[], Awaitable[T]], *, operation: str = "") -> Result[T, ErrorTrace]:
    """Await f() and capture any exception as a classified ErrorTrace."""
    try:
        value = await f()
    except Exception as e:
        return Err(trace_from_exc(e, operation=operation))
    return Ok(value)

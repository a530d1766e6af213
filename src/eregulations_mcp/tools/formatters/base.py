"""Shared formatter types and text helpers.

A formatter turns one upstream record (or collection) into a `Formatted`
pair: a bounded `text` rendering for the model to read and a minimal `data`
subset for programmatic use. Formatters are pure: no I/O, no shared state.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")
R = TypeVar("R", bound=BaseModel)

ELLIPSIS = "..."


class Formatted(BaseModel, Generic[T]):
    """Rendered text plus the structured subset it was built from."""

    model_config = ConfigDict(frozen=True)

    text: str
    data: T


class Formatter(Protocol[T]):
    def format(self, *args: Any, **kwargs: Any) -> Formatted[T]: ...


def truncate(text: str, max_length: int | None) -> str:
    """Cut text to max_length characters plus an ellipsis, only when it exceeds the bound."""
    if max_length is None or len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def num(value: float | int) -> str:
    """Render a number without a trailing `.0` when it is integral."""
    return str(int(value)) if float(value).is_integer() else str(value)


def grouped(value: float | int) -> str:
    """Render a number with thousands separators: 1500000 -> '1,500,000'."""
    return f"{int(value):,}" if float(value).is_integer() else f"{value:,}"


def as_record(model: type[R], value: R | Mapping[str, Any]) -> R:
    """Accept either a parsed record or its raw mapping."""
    return value if isinstance(value, model) else model.model_validate(value)


def compact(mapping: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in mapping.items() if v is not None}

"""ErrorTrace: the payload of every `Err` returned by the API client.

A trace holds a user-facing message, an ErrorCode value and the chain of
operations (innermost first) the failure passed through, e.g.
`GET /Procedures/99` -> `fetch_procedure_by_id`.
"""

from __future__ import annotations

import traceback
from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer

from .errors import ErrorCode, classify_exception

JsonScalar = Union[str, int, float, bool, None]
JsonValue = Union[JsonScalar, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]

_NO_CONTEXTS: tuple[ErrorContext, ...] = ()


class ErrorContext(BaseModel):
    """One hop of a trace: the operation name plus identifying metadata."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    operation: Annotated[str, Field(min_length=1)]
    metadata: JsonDict = Field(default_factory=dict, repr=False)

    def __str__(self) -> str:
        if not self.metadata:
            return self.operation
        pairs = ", ".join(f"{key}={value}" for key, value in self.metadata.items())
        return f"{self.operation} ({pairs})"


class ErrorTrace(BaseModel):
    """Immutable failure description. `with_*` methods return modified copies.

    `error_code` stays a plain string so codes survive serialization; `code`
    exposes it as an ErrorCode, UNKNOWN when unset or unrecognised.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
        revalidate_instances="never",
    )

    message: Annotated[str, Field(min_length=1)]
    contexts: tuple[ErrorContext, ...] = ()
    error_code: str | None = None
    recoverable: bool = True
    details: str | None = Field(default=None, repr=False)

    @field_serializer("contexts")
    def _dump_contexts(self, contexts: tuple[ErrorContext, ...]) -> list[JsonDict]:
        return [hop.model_dump() for hop in contexts]

    @computed_field
    @property
    def code(self) -> ErrorCode:
        if not self.error_code or self.error_code not in ErrorCode.__members__:
            return ErrorCode.UNKNOWN
        return ErrorCode(self.error_code)

    @computed_field
    @property
    def root_operation(self) -> str | None:
        """Innermost operation, where the failure originated."""
        return self.contexts[0].operation if self.contexts else None

    def __hash__(self) -> int:
        return hash((self.message, self.error_code))

    def _copy(self, **changes: Any) -> ErrorTrace:
        fields = {
            "message": self.message,
            "contexts": self.contexts,
            "error_code": self.error_code,
            "recoverable": self.recoverable,
            "details": self.details,
        }
        return ErrorTrace.model_construct(**{**fields, **changes})

    def with_operation(self, operation: str, **metadata: JsonValue) -> ErrorTrace:
        """Append an outer hop to the chain."""
        hop = ErrorContext.model_construct(operation=operation, metadata=metadata)
        return self._copy(contexts=(*self.contexts, hop))

    def with_code(self, code: ErrorCode | str) -> ErrorTrace:
        return self._copy(error_code=str(code))

    def format(self, *, include_details: bool = False) -> str:
        """Message, code and hop chain as multi-line text (for logs, never for the model)."""
        text = f"{self.message} [{self.error_code}]" if self.error_code else self.message
        if self.contexts:
            text += "\nContext trace:" + "".join(f"\n  - {hop}" for hop in self.contexts)
        if include_details and self.details:
            text += f"\nDetails:\n{self.details}"
        return text

    __str__ = format


# ═══════════════════════════════════════════════════════════════════════════════
# Factories
# ═══════════════════════════════════════════════════════════════════════════════


def trace(message: str, *, code: ErrorCode | str | None = None, recoverable: bool = True) -> ErrorTrace:
    """Build a trace without validation overhead."""
    return ErrorTrace.model_construct(
        message=message,
        contexts=_NO_CONTEXTS,
        error_code=None if code is None else str(code),
        recoverable=recoverable,
        details=None,
    )


def trace_from_exc(exc: Exception, *, operation: str = "", code: ErrorCode | str | None = None) -> ErrorTrace:
    """Wrap a caught exception; the code is classified from it unless given."""
    built = ErrorTrace.model_construct(
        message=str(exc) or type(exc).__name__,
        contexts=_NO_CONTEXTS,
        error_code=str(classify_exception(exc) if code is None else code),
        recoverable=True,
        details="".join(traceback.format_exception(exc)),
    )
    return built.with_operation(operation) if operation else built

"""Tool handler base: validation, error rendering and content blocks.

A handler composes one client call with one formatter. It never raises:
invalid arguments, upstream errors and unexpected exceptions all come back as
a single text block that tells the model what went wrong.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Literal, TypeVar

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from eregulations_mcp.foundation.errors import ErrorCode, ErrorTrace, Result, trace_from_exc
from eregulations_mcp.runtime.observability import get_logger

if TYPE_CHECKING:
    from eregulations_mcp.runtime.observability import StructuredLogger
    from eregulations_mcp.services import ProcedureSource
    from eregulations_mcp.tools.formatters import Formatted

TParams = TypeVar("TParams", bound=BaseModel)

LIST_HINT = "Valid procedure IDs can be found by using the listProcedures tool first."
RETRY_HINT = "The eRegulations API may be temporarily unavailable. Try again shortly."


class ToolMetadata(BaseModel):
    """Name and description advertised to MCP clients."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[a-z][A-Za-z0-9]*$")
    description: str = Field(..., min_length=10)
    enabled: bool = True


class TextBlock(BaseModel):
    """Transport-neutral text content block."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str
    annotations: dict[str, Any] | None = None

    @classmethod
    def json_data(cls, data: Any) -> TextBlock:
        """Fenced, pretty-printed JSON block tagged with the data role."""
        body = orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()
        return cls(text=f"```json\n{body}\n```", annotations={"role": "data"})


class ToolHandler(ABC, Generic[TParams]):
    """Abstract base for tool handlers.

    Subclasses define `metadata`, `params_schema` and `error_prefix`, and
    implement `_run(params)` returning a Result of content blocks.
    """

    metadata: ClassVar[ToolMetadata]
    params_schema: ClassVar[type[BaseModel]]
    error_prefix: ClassVar[str]

    __slots__ = ("_source", "_log")

    def __init__(self, source: ProcedureSource, *, logger: StructuredLogger | None = None) -> None:
        self._source = source
        self._log = (logger or get_logger("eregulations.tools")).bind(tool=self.metadata.name)

    @property
    def name(self) -> str:
        return self.metadata.name

    async def __call__(self, arguments: Mapping[str, Any] | None = None) -> list[TextBlock]:
        """Validate arguments and run the tool. Never raises."""
        try:
            params = self.params_schema.model_validate(dict(arguments or {}))
        except ValidationError as e:
            self._log.warning("invalid parameters", errors=e.error_count())
            return [TextBlock(text=f"Invalid parameters for {self.name}: {_summarize(e)}")]

        self._log.info("handling request", **params.model_dump(exclude_none=True))
        try:
            result = await self._run(params)  # type: ignore[arg-type]
        except Exception as e:
            self._log.exception("tool failed", error=str(e))
            return [TextBlock(text=self._failure(trace_from_exc(e, operation=self.name)))]

        if result.is_err():
            err = result.unwrap_err()
            self._log.error("tool returned error", error=err.message, code=err.error_code)
            return [TextBlock(text=self._failure(err))]

        blocks = result.unwrap()
        self._log.info("request handled", blocks=len(blocks))
        return blocks

    @abstractmethod
    async def _run(self, params: TParams) -> Result[list[TextBlock], ErrorTrace]:
        ...

    # ─────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _blocks(formatted: Formatted[Any], return_data: bool) -> list[TextBlock]:
        blocks = [TextBlock(text=formatted.text)]
        if return_data:
            blocks.append(TextBlock.json_data(formatted.data))
        return blocks

    def _failure(self, err: ErrorTrace) -> str:
        text = f"{self.error_prefix}: {err.message}"
        hint = self._hint(err.code)
        return f"{text}\n\n{hint}" if hint else text

    def _hint(self, code: ErrorCode) -> str | None:
        """Remediation appended to the error text, chosen by error kind."""
        match code:
            case ErrorCode.NOT_FOUND:
                return LIST_HINT
            case ErrorCode.TIMEOUT | ErrorCode.NETWORK_ERROR | ErrorCode.RATE_LIMITED | ErrorCode.EXTERNAL_SERVICE_ERROR:
                return RETRY_HINT
        return None


def _summarize(exc: ValidationError) -> str:
    """One line per field error: `field: message`."""
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}" for err in exc.errors()
    )

"""The four eRegulations tools: list, details, step and search."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from eregulations_mcp.foundation.errors import ErrorCode, ErrorTrace, Result

from .base import LIST_HINT, TextBlock, ToolHandler, ToolMetadata
from .formatters import procedure_formatter, procedure_list_formatter, search_formatter, step_formatter
from .schemas import (
    GetProcedureDetailsParams,
    GetProcedureStepParams,
    ListProceduresParams,
    SearchProceduresParams,
    ToolName,
)

if TYPE_CHECKING:
    from eregulations_mcp.runtime.observability import StructuredLogger
    from eregulations_mcp.services import ProcedureSource


class ListProceduresTool(ToolHandler[ListProceduresParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name=ToolName.LIST_PROCEDURES,
        description="List all available procedures in the eRegulations system",
    )
    params_schema = ListProceduresParams
    error_prefix = "Error retrieving procedures"

    async def _run(self, params: ListProceduresParams) -> Result[list[TextBlock], ErrorTrace]:
        result = await self._source.fetch_procedure_summaries()
        return result.map(lambda procedures: self._blocks(
            procedure_list_formatter.format(
                procedures,
                include_data=params.return_data,
                max_items=params.max_items,
                max_length=params.max_length,
            ),
            params.return_data,
        ))


class GetProcedureDetailsTool(ToolHandler[GetProcedureDetailsParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name=ToolName.GET_PROCEDURE_DETAILS,
        description="Get detailed information about a specific procedure by ID",
    )
    params_schema = GetProcedureDetailsParams
    error_prefix = "Error retrieving procedure details"

    async def _run(self, params: GetProcedureDetailsParams) -> Result[list[TextBlock], ErrorTrace]:
        result = await self._source.fetch_procedure_by_id(params.procedureId)
        return result.map(lambda procedure: self._blocks(
            procedure_formatter.format(procedure, max_length=params.max_length),
            params.return_data,
        ))

    def _hint(self, code: ErrorCode) -> str | None:
        return LIST_HINT


class GetProcedureStepTool(ToolHandler[GetProcedureStepParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name=ToolName.GET_PROCEDURE_STEP,
        description="Get information about a specific step within a procedure",
    )
    params_schema = GetProcedureStepParams
    error_prefix = "Error retrieving step details"

    async def _run(self, params: GetProcedureStepParams) -> Result[list[TextBlock], ErrorTrace]:
        result = await self._source.fetch_step(params.procedureId, params.stepId)
        return result.map(lambda step: self._blocks(step_formatter.format(step), params.return_data))

    def _hint(self, code: ErrorCode) -> str | None:
        if code is ErrorCode.NOT_FOUND:
            return "Valid step IDs can be found by using the getProcedureDetails tool first."
        return super()._hint(code)


class SearchProceduresTool(ToolHandler[SearchProceduresParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name=ToolName.SEARCH_PROCEDURES,
        description="Search for procedures by keyword or phrase",
    )
    params_schema = SearchProceduresParams
    error_prefix = "Error searching procedures"

    async def _run(self, params: SearchProceduresParams) -> Result[list[TextBlock], ErrorTrace]:
        result = await self._source.search_by_keyword(params.keyword)
        return result.map(lambda matches: self._blocks(
            search_formatter.format(
                matches,
                keyword=params.keyword,
                include_data=params.return_data,
                max_items=params.max_items,
                max_length=params.max_length,
            ),
            params.return_data,
        ))


HANDLER_TYPES: tuple[type[ToolHandler], ...] = (
    ListProceduresTool,
    GetProcedureDetailsTool,
    GetProcedureStepTool,
    SearchProceduresTool,
)


def create_handlers(source: ProcedureSource, *, logger: StructuredLogger | None = None) -> dict[str, ToolHandler]:
    """Instantiate every tool against one source, keyed by tool name."""
    handlers = [cls(source, logger=logger) for cls in HANDLER_TYPES]
    return {handler.name: handler for handler in handlers}

"""MCP tools over the eRegulations API."""

from .base import TextBlock, ToolHandler, ToolMetadata
from .handlers import (
    HANDLER_TYPES,
    GetProcedureDetailsTool,
    GetProcedureStepTool,
    ListProceduresTool,
    SearchProceduresTool,
    create_handlers,
)
from .schemas import (
    GetProcedureDetailsParams,
    GetProcedureStepParams,
    ListProceduresParams,
    SearchProceduresParams,
    ToolName,
)

__all__ = [
    "HANDLER_TYPES",
    "GetProcedureDetailsParams",
    "GetProcedureDetailsTool",
    "GetProcedureStepParams",
    "GetProcedureStepTool",
    "ListProceduresParams",
    "ListProceduresTool",
    "SearchProceduresParams",
    "SearchProceduresTool",
    "TextBlock",
    "ToolHandler",
    "ToolMetadata",
    "ToolName",
    "create_handlers",
]

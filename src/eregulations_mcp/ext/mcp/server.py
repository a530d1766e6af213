"""FastMCP server exposing the eRegulations tools and prompts.

Example:
    >>> from eregulations_mcp.ext.mcp import create_server
    >>> server = create_server()          # reads EREGULATIONS_* settings
    >>> server.run(transport="stdio")

Requires: fastmcp
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated, Any, Literal

from fastmcp import FastMCP
from mcp.types import Annotations, TextContent
from pydantic import Field

from eregulations_mcp.foundation.config import Settings, get_settings
from eregulations_mcp.prompts import PROMPT_TEMPLATES, PromptTemplate
from eregulations_mcp.runtime.observability import get_logger
from eregulations_mcp.services import ERegulationsClient
from eregulations_mcp.tools import TextBlock, ToolHandler, ToolName, create_handlers

if TYPE_CHECKING:
    from eregulations_mcp.runtime.observability import StructuredLogger

Transport = Literal["stdio", "http", "sse", "streamable-http"]

INSTRUCTIONS = (
    "Tools for exploring eRegulations administrative procedures. "
    "Start with listProcedures or searchProcedures to find a procedure ID, "
    "then use getProcedureDetails and getProcedureStep for specifics."
)

ProcedureId = Annotated[int, Field(gt=0, description="ID of the procedure")]
StepId = Annotated[int, Field(gt=0, description="ID of the step within the procedure")]
MaxItems = Annotated[int | None, Field(ge=1, description="Maximum number of entries to render")]
MaxLength = Annotated[int | None, Field(ge=1, description="Maximum characters per description")]
ReturnData = Annotated[bool, Field(description="Also return the structured data as a JSON block")]


def to_content(blocks: list[TextBlock]) -> list[TextContent]:
    """Convert transport-neutral blocks into MCP text content."""
    return [
        TextContent(
            type="text",
            text=block.text,
            annotations=Annotations.model_validate(block.annotations) if block.annotations else None,
        )
        for block in blocks
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# Server
# ═══════════════════════════════════════════════════════════════════════════════


class MCPServer:
    """FastMCP-backed server for MCP clients (Claude Desktop, Cursor, VS Code, ...).

    Tools are registered as typed wrapper functions so FastMCP can derive each
    input schema; every wrapper delegates to its ToolHandler.
    """

    __slots__ = ("_name", "_handlers", "_client", "_log", "_mcp")

    def __init__(
        self,
        handlers: Mapping[str, ToolHandler],
        *,
        name: str = "eregulations",
        client: ERegulationsClient | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._name = name
        self._handlers = dict(handlers)
        self._client = client
        self._log = logger or get_logger("eregulations.server")
        self._mcp = self._create_server()

    @property
    def name(self) -> str:
        return self._name

    @property
    def fastmcp(self) -> FastMCP:
        """Access underlying FastMCP instance."""
        return self._mcp

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    async def invoke(self, tool_name: str, arguments: Mapping[str, Any] | None = None) -> list[TextBlock]:
        """Invoke a tool by name. Unknown tools yield an error block instead of raising."""
        handler = self._handlers.get(tool_name)
        if handler is None:
            return [TextBlock(text=f"Unknown tool: {tool_name}. Available tools: {', '.join(self._handlers)}")]
        return await handler(arguments)

    def run(self, transport: Transport = "stdio", *, host: str = "127.0.0.1", port: int = 8080) -> None:
        """Start the server (blocking)."""
        self._log.info("starting server", transport=transport, tools=len(self._handlers))
        if transport == "stdio":
            self._mcp.run()
        else:
            self._mcp.run(transport=transport, host=host, port=port)

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    def _create_server(self) -> FastMCP:
        mcp = FastMCP(self._name, instructions=INSTRUCTIONS, lifespan=self._lifespan)
        self._register_tools(mcp)
        for template in PROMPT_TEMPLATES.values():
            _register_prompt(mcp, template)
        return mcp

    @asynccontextmanager
    async def _lifespan(self, _server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        try:
            yield {}
        finally:
            if self._client is not None:
                await self._client.aclose()
                self._log.info("api client closed")

    def _register_tools(self, mcp: FastMCP) -> None:
        def register(tool_name: str, fn: Any) -> None:
            handler = self._handlers.get(tool_name)
            if handler is None or not handler.metadata.enabled:
                return
            mcp.tool(name=str(handler.name), description=handler.metadata.description, output_schema=None)(fn)

        async def list_procedures(
            return_data: ReturnData = False,
            max_items: MaxItems = None,
            max_length: MaxLength = None,
        ) -> list[TextContent]:
            return to_content(await self.invoke(ToolName.LIST_PROCEDURES, {
                "return_data": return_data, "max_items": max_items, "max_length": max_length,
            }))

        async def get_procedure_details(
            procedureId: ProcedureId,  # noqa: N803
            max_length: MaxLength = None,
            return_data: ReturnData = False,
        ) -> list[TextContent]:
            return to_content(await self.invoke(ToolName.GET_PROCEDURE_DETAILS, {
                "procedureId": procedureId, "max_length": max_length, "return_data": return_data,
            }))

        async def get_procedure_step(
            procedureId: ProcedureId,  # noqa: N803
            stepId: StepId,  # noqa: N803
            return_data: ReturnData = False,
        ) -> list[TextContent]:
            return to_content(await self.invoke(ToolName.GET_PROCEDURE_STEP, {
                "procedureId": procedureId, "stepId": stepId, "return_data": return_data,
            }))

        async def search_procedures(
            keyword: Annotated[str, Field(description="The keyword or phrase to search for procedures")],
            return_data: ReturnData = False,
            max_items: MaxItems = None,
            max_length: MaxLength = None,
        ) -> list[TextContent]:
            return to_content(await self.invoke(ToolName.SEARCH_PROCEDURES, {
                "keyword": keyword, "return_data": return_data, "max_items": max_items, "max_length": max_length,
            }))

        register(ToolName.LIST_PROCEDURES, list_procedures)
        register(ToolName.GET_PROCEDURE_DETAILS, get_procedure_details)
        register(ToolName.GET_PROCEDURE_STEP, get_procedure_step)
        register(ToolName.SEARCH_PROCEDURES, search_procedures)


def _register_prompt(mcp: FastMCP, template: PromptTemplate) -> None:
    def render() -> str:
        return template.body

    mcp.prompt(name=str(template.name), description=template.description)(render)


# ═══════════════════════════════════════════════════════════════════════════════
# Factory
# ═══════════════════════════════════════════════════════════════════════════════


def create_server(
    settings: Settings | None = None,
    *,
    base_url: str | None = None,
    logger: StructuredLogger | None = None,
) -> MCPServer:
    """Wire client, handlers and FastMCP together from settings."""
    settings = settings or get_settings()
    log = logger or get_logger("eregulations")
    client = ERegulationsClient(base_url, settings=settings, logger=log.bind(component="api"))
    handlers = create_handlers(client, logger=log.bind(component="tools"))
    return MCPServer(handlers, name=settings.server.name, client=client, logger=log.bind(component="server"))

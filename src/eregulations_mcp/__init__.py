"""eregulations-mcp - eRegulations procedures for language-model clients over MCP.

Condenses large procedure records into bounded, model-readable text and caches
upstream responses in memory for the lifetime of the process.

Quick Start:
    >>> from eregulations_mcp import ERegulationsClient, create_handlers
    >>> client = ERegulationsClient("https://api-tanzania.tradeportal.org")
    >>> tools = create_handlers(client)
    >>> blocks = await tools["listProcedures"]({"max_items": 10})
    >>> print(blocks[0].text)

Run as an MCP server:
    $ EREGULATIONS_API_URL=https://api-tanzania.tradeportal.org eregulations-mcp
"""

__version__ = "0.1.0"

from .foundation.config import Settings, clear_settings_cache, get_settings
from .foundation.errors import Err, ErrorCode, ErrorTrace, Ok, Result
from .io.cache import TTLCache
from .models import ProcedureDetail, ProcedureSummary, Step
from .runtime.observability import configure_logging, get_logger
from .services import ERegulationsClient, ProcedureSource
from .tools import TextBlock, ToolHandler, ToolName, create_handlers
from .tools.formatters import (
    Formatted,
    ProcedureFormatter,
    ProcedureListFormatter,
    SearchFormatter,
    StepFormatter,
)

__all__ = [
    "__version__",
    # Config
    "Settings", "get_settings", "clear_settings_cache",
    # Errors
    "ErrorCode", "ErrorTrace", "Result", "Ok", "Err",
    # Cache
    "TTLCache",
    # Records
    "ProcedureSummary", "ProcedureDetail", "Step",
    # Logging
    "configure_logging", "get_logger",
    # Client
    "ERegulationsClient", "ProcedureSource",
    # Formatters
    "Formatted", "ProcedureListFormatter", "ProcedureFormatter", "StepFormatter", "SearchFormatter",
    # Tools
    "TextBlock", "ToolHandler", "ToolName", "create_handlers",
]

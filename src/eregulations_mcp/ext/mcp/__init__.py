"""MCP protocol adapter."""

from .server import MCPServer, Transport, create_server, to_content

__all__ = ["MCPServer", "Transport", "create_server", "to_content"]

"""
MCP stdio server

Serves the registered tools over stdin/stdout using the MCP SDK low-level
Server. stdout carries protocol messages only; logs go to stderr.
"""

import logging
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .transport import ToolTransport

logger = logging.getLogger(__name__)


class StdioMCPServer(ToolTransport):
    """MCP server speaking JSON-RPC over stdio."""

    def __init__(self, name: str = "outlook-mcp", version: str = "1.0.0"):
        super().__init__(name, version)
        self.server = Server(name, version=version)
        self._setup_handlers()

    def _setup_handlers(self):
        """Setup MCP server handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> List[Tool]:
            return [
                Tool(
                    name=tool["name"],
                    description=tool["description"],
                    inputSchema=tool["inputSchema"],
                )
                for tool in self.list_tools()
            ]

        # arguments are validated by the tool's own validator model
        @self.server.call_tool(validate_input=False)
        async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
            envelope = await self.call_tool(name, arguments)
            return [
                TextContent(type="text", text=item["text"])
                for item in envelope["content"]
            ]

    async def run(self):
        """Serve until stdin closes."""
        logger.info(f"🚀 {self.name} {self.version} serving {len(self.tool_names)} tools over stdio")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )

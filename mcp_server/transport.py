"""
Transport boundary

A transport holds the registered tools, validates incoming arguments against
each tool's validator model and invokes the wrapped handler. Concrete
transports (stdio, REST) adapt this to their wire protocol.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from .dispatcher import WrappedHandler
from .errors import DuplicateToolError, UnknownToolError
from .schema_translator import ValidatorShape, build_validator_model, validate_arguments

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = {"rest", "stdio"}


@dataclass(frozen=True)
class RegisteredTool:
    name: str
    description: str
    input_schema: Dict[str, Any]
    model: Type[BaseModel]
    handler: WrappedHandler


class ToolTransport:
    """Base class holding tool registrations for a transport."""

    def __init__(self, name: str = "outlook-mcp", version: str = "1.0.0"):
        self.name = name
        self.version = version
        self._tools: Dict[str, RegisteredTool] = {}

    def register_tool(
        self,
        name: str,
        description: str,
        input_schema: Dict[str, Any],
        shape: ValidatorShape,
        handler: WrappedHandler,
    ) -> None:
        if name in self._tools:
            raise DuplicateToolError(name)

        self._tools[name] = RegisteredTool(
            name=name,
            description=description or "",
            input_schema=input_schema,
            model=build_validator_model(name, shape),
            handler=handler,
        )
        logger.debug(f"Registered tool: {name}")

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    def list_tools(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.input_schema,
            }
            for tool in self._tools.values()
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Validate arguments and invoke a tool.

        Returns:
            MCP content envelope produced by the wrapped handler

        Raises:
            UnknownToolError: no tool registered under name
            ToolValidationError: arguments rejected, the handler is not called
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)

        params = validate_arguments(tool.model, name, arguments)
        return await tool.handler(params)

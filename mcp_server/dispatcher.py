"""
Tool Dispatcher

Builds, once per tool, the validator shape and a wrapped handler that logs
the call, runs the domain handler and normalizes its result. Handler
exceptions are logged with the tool name and re-raised unchanged.
"""

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterator, Mapping, Optional

from .errors import SchemaDefinitionError
from .result_normalizer import normalize_result
from .schema_translator import ValidatorShape, translate_schema
from .tool_registry import Handler, ToolDescriptor, ToolRegistry

logger = logging.getLogger(__name__)

WrappedHandler = Callable[[Optional[Dict[str, Any]]], Awaitable[Dict[str, Any]]]


def wrap_handler(name: str, handler: Handler) -> WrappedHandler:
    """Wrap a domain handler with call logging, error logging and result normalization."""

    async def wrapped(args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = args or {}
        logger.info(f"Tool {name} called with args: {json.dumps(params, ensure_ascii=False, default=str)}")
        try:
            result = await handler(params)
            return normalize_result(result)
        except Exception as e:
            logger.error(f"Error in tool {name}: {e}")
            raise

    wrapped.__name__ = f"{name}_wrapped"
    return wrapped


@dataclass(frozen=True)
class PreparedTool:
    name: str
    description: str
    input_schema: Dict[str, Any]
    shape: ValidatorShape
    handler: WrappedHandler


class ToolDispatcher:
    """
    Prepares every registered tool for a transport.

    Malformed parameter schemas raise SchemaDefinitionError here, at startup.
    """

    def __init__(self, registry: ToolRegistry):
        prepared = {}
        for descriptor in registry:
            prepared[descriptor.name] = self._prepare(descriptor)
        self._tools: Mapping[str, PreparedTool] = MappingProxyType(prepared)
        logger.info(f"Dispatcher prepared {len(prepared)} tools")

    @staticmethod
    def _prepare(descriptor: ToolDescriptor) -> PreparedTool:
        try:
            shape = translate_schema(descriptor.parameter_schema)
        except SchemaDefinitionError as e:
            raise e.for_tool(descriptor.name) from e

        return PreparedTool(
            name=descriptor.name,
            description=descriptor.description or "",
            input_schema=descriptor.input_schema,
            shape=shape,
            handler=wrap_handler(descriptor.name, descriptor.handler),
        )

    def __iter__(self) -> Iterator[PreparedTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> Optional[PreparedTool]:
        return self._tools.get(name)

    def register_all(self, transport) -> None:
        """Register every prepared tool with a ToolTransport."""
        for tool in self._tools.values():
            transport.register_tool(
                tool.name,
                tool.description,
                tool.input_schema,
                tool.shape,
                tool.handler,
            )
        logger.info(f"Registered {len(self._tools)} tools with {type(transport).__name__}")

"""
Tool Registry

Domain packages expose provider functions that return their ToolDescriptors.
build_tool_registry() is called once at startup with those providers and
returns an immutable registry; a repeated tool name aborts startup.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .errors import DuplicateToolError

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]
ToolProvider = Callable[[], Iterable["ToolDescriptor"]]

# Shared property specs for tool parameter schemas
USER_ID_PROPERTY = {
    "type": "string",
    "description": "User ID for multi-user support (default: 'default')"
}

ORDER_BY_PROPERTY = {
    "type": ["string", "object", "array"],
    "items": {"type": ["string", "object"]},
    "description": "Sort order: \"field desc\", {\"field\": \"asc\"}, or a list of either"
}


@dataclass(frozen=True)
class ToolDescriptor:
    """A callable tool: name, description, parameter schema and async handler."""

    name: str
    description: str
    parameter_schema: Mapping[str, Any]
    handler: Handler = field(compare=False)

    @property
    def input_schema(self) -> Dict[str, Any]:
        """JSON schema advertised to MCP clients."""
        schema = dict(self.parameter_schema or {})
        schema.setdefault("type", "object")
        schema.setdefault("properties", {})
        return schema


class ToolRegistry:
    """Ordered, read-only collection of ToolDescriptors with a name index."""

    def __init__(self, descriptors: Iterable[ToolDescriptor]):
        ordered: List[ToolDescriptor] = []
        index: Dict[str, ToolDescriptor] = {}

        for descriptor in descriptors:
            if descriptor.name in index:
                raise DuplicateToolError(descriptor.name)
            index[descriptor.name] = descriptor
            ordered.append(descriptor)

        self._descriptors: Tuple[ToolDescriptor, ...] = tuple(ordered)
        self._index = MappingProxyType(index)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._index.get(name)

    def names(self) -> List[str]:
        return [d.name for d in self._descriptors]


def build_tool_registry(providers: Iterable[ToolProvider]) -> ToolRegistry:
    """
    Collect descriptors from every provider, in order.

    Raises:
        DuplicateToolError: two descriptors share a name
    """
    descriptors: List[ToolDescriptor] = []
    for provider in providers:
        descriptors.extend(provider())

    registry = ToolRegistry(descriptors)
    logger.info(f"Tool registry built with {len(registry)} tools")
    return registry

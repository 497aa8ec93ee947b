"""
MCP Server - tool registry, schema translation, dispatch and transports

Transports (server_stdio, server_rest) and the launcher (run) are imported
directly so that domain packages can import the registry without pulling in
the server stack.
"""

from .errors import (
    DuplicateToolError,
    SchemaDefinitionError,
    ToolConfigurationError,
    ToolValidationError,
    UnknownToolError,
)
from .tool_registry import ToolDescriptor, ToolRegistry, build_tool_registry
from .schema_translator import build_validator_model, translate_schema, validate_arguments
from .dispatcher import ToolDispatcher, wrap_handler
from .result_normalizer import normalize_result

__all__ = [
    'DuplicateToolError',
    'SchemaDefinitionError',
    'ToolConfigurationError',
    'ToolValidationError',
    'UnknownToolError',
    'ToolDescriptor',
    'ToolRegistry',
    'build_tool_registry',
    'build_validator_model',
    'translate_schema',
    'validate_arguments',
    'ToolDispatcher',
    'wrap_handler',
    'normalize_result',
]

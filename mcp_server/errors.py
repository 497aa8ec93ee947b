"""
Tool server exceptions

Configuration errors are raised while the registry and dispatcher are built
and abort startup. Validation and unknown-tool errors are raised per call by
the transport before any handler runs.
"""

import json
from typing import Any, Dict, List, Optional


class ToolConfigurationError(Exception):
    """Base class for startup-time tool configuration failures."""


class DuplicateToolError(ToolConfigurationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate tool name: {name}")


class SchemaDefinitionError(ToolConfigurationError):
    """A tool parameter schema is structurally malformed."""

    def __init__(self, reason: str, tool: Optional[str] = None, field: Optional[str] = None):
        self.reason = reason
        self.tool = tool
        self.field = field
        location = ".".join(p for p in (tool, field) if p)
        super().__init__(f"Invalid parameter schema{f' ({location})' if location else ''}: {reason}")

    def for_tool(self, tool: str) -> "SchemaDefinitionError":
        return SchemaDefinitionError(self.reason, tool=tool, field=self.field)


class ToolValidationError(Exception):
    """Caller-supplied arguments were rejected by the tool's validator."""

    def __init__(self, tool_name: str, errors: List[Dict[str, Any]]):
        self.tool_name = tool_name
        self.errors = errors
        super().__init__(json.dumps(self.to_dict(), ensure_ascii=False, default=str))

    @property
    def message(self) -> str:
        details = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ())) or '<root>'}: {e.get('msg')}"
            for e in self.errors
        )
        return f"Invalid arguments for tool '{self.tool_name}': {details}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "error",
            "code": "INVALID_PARAMS",
            "tool": self.tool_name,
            "message": self.message,
            "errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in self.errors
            ],
        }


class UnknownToolError(Exception):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")

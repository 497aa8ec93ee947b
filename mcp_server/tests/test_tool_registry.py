"""
Tool Registry 테스트
"""

import pytest

from mcp_server.errors import DuplicateToolError, ToolConfigurationError
from mcp_server.tool_registry import ToolDescriptor, ToolRegistry, build_tool_registry


async def noop_handler(args):
    return {"status": "success"}


def descriptor(name, schema=None):
    return ToolDescriptor(
        name=name,
        description=f"{name} tool",
        parameter_schema=schema or {"type": "object", "properties": {}},
        handler=noop_handler,
    )


class TestBuildToolRegistry:

    def test_preserves_provider_order(self):
        registry = build_tool_registry([
            lambda: [descriptor("list_emails"), descriptor("read_email")],
            lambda: [descriptor("create_event")],
        ])

        assert registry.names() == ["list_emails", "read_email", "create_event"]
        assert len(registry) == 3
        assert "read_email" in registry
        assert registry.get("create_event").description == "create_event tool"
        assert registry.get("missing") is None

    def test_duplicate_name_across_providers_fails(self):
        """두 provider가 같은 이름을 등록하면 시작 단계에서 실패"""
        with pytest.raises(DuplicateToolError) as exc_info:
            build_tool_registry([
                lambda: [descriptor("list_emails")],
                lambda: [descriptor("list_emails")],
            ])

        assert exc_info.value.name == "list_emails"
        assert "list_emails" in str(exc_info.value)
        assert isinstance(exc_info.value, ToolConfigurationError)

    def test_duplicate_name_in_one_provider_fails(self):
        with pytest.raises(DuplicateToolError):
            ToolRegistry([descriptor("a"), descriptor("a")])

    def test_empty_providers(self):
        registry = build_tool_registry([])
        assert len(registry) == 0
        assert list(registry) == []


class TestToolDescriptor:

    def test_input_schema_defaults(self):
        tool = descriptor("check_auth_status", schema={"properties": {}})
        assert tool.input_schema == {"properties": {}, "type": "object"}

    def test_input_schema_does_not_mutate_definition(self):
        schema = {"properties": {"a": {"type": "string"}}}
        tool = descriptor("x", schema=schema)
        tool.input_schema["extra"] = True
        assert "extra" not in schema
        assert "type" not in schema

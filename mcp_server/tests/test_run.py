"""
서버 조립 (run) 테스트

실제 도메인 provider로 레지스트리를 만들고, transport를 통해 end-to-end 호출을 확인합니다.
"""

import json
from importlib.metadata import version

import pytest

from core.config import Settings
from mcp_server.dispatcher import ToolDispatcher
from mcp_server.errors import ToolValidationError
from mcp_server.run import build_application, build_providers, create_transport, main
from mcp_server.server_rest import RestMCPServer
from mcp_server.server_stdio import StdioMCPServer
from mcp_server.tool_registry import build_tool_registry
from mcp_server.transport import ToolTransport
from session.auth_database import AuthDatabase
from session.session_store import SessionStore

EXPECTED_TOOLS = [
    "authenticate", "check_auth_status", "revoke_authentication", "list_authenticated_users",
    "list_emails", "read_email", "send_email", "mark_as_read",
    "create_event", "list_events", "delete_event",
    "list_folders", "get_folder", "create_folder", "update_folder", "delete_folder",
    "move_emails", "copy_emails", "move_folder",
    "list_rules", "get_rule", "create_rule", "update_rule", "delete_rule",
]


class TestBuildApplication:

    def test_rest_application(self, db_path):
        app = build_application(Settings({"db_path": db_path}), "rest")

        assert isinstance(app.transport, RestMCPServer)
        assert app.registry.names() == EXPECTED_TOOLS
        assert app.transport.tool_names == EXPECTED_TOOLS

    def test_stdio_application(self, db_path):
        app = build_application(Settings({"db_path": db_path}), "stdio")

        assert isinstance(app.transport, StdioMCPServer)
        assert len(app.transport.list_tools()) == len(EXPECTED_TOOLS)

    def test_stdio_server_uses_decorator_handlers(self):
        """설치된 mcp SDK가 list_tools/call_tool 데코레이터를 제공"""
        assert int(version("mcp").split(".")[0]) < 2

        server = StdioMCPServer().server
        assert callable(server.list_tools)
        assert callable(server.call_tool)

    def test_every_schema_translates(self, db_path):
        """모든 도구 스키마가 시작 시 변환 가능"""
        app = build_application(Settings({"db_path": db_path}), "rest")
        dispatcher = ToolDispatcher(app.registry)
        assert len(dispatcher) == len(EXPECTED_TOOLS)

    def test_unsupported_protocol(self):
        with pytest.raises(ValueError, match="Unsupported protocol"):
            create_transport("websocket", Settings())

    @pytest.mark.asyncio
    async def test_check_auth_status_end_to_end(self, db_path):
        app = build_application(Settings({"db_path": db_path}), "rest")

        envelope = await app.transport.call_tool("check_auth_status", {})
        result = json.loads(envelope["content"][0]["text"])

        assert result["status"] == "not_authenticated"
        assert result["isAuthenticating"] is False


class TestProvidersPipeline:
    """도메인 provider -> registry -> dispatcher -> transport 전체 경로"""

    def build(self, db_path, graph_client_factory):
        settings = Settings({"db_path": db_path})
        providers = build_providers(settings, AuthDatabase(db_path), SessionStore(), graph_client_factory)
        transport = ToolTransport()
        ToolDispatcher(build_tool_registry(providers)).register_all(transport)
        return transport

    @pytest.mark.asyncio
    async def test_list_emails(self, db_path, graph_client_factory, mock_graph_client, sample_message):
        mock_graph_client.get.return_value = {"value": [sample_message]}
        transport = self.build(db_path, graph_client_factory)

        envelope = await transport.call_tool("list_emails", {"limit": 5, "orderBy": {"receivedDateTime": "asc"}})
        result = json.loads(envelope["content"][0]["text"])

        assert result["status"] == "success"
        assert result["emails"][0]["subject"] == "테스트 메일 제목"
        graph_client_factory.assert_called_with("default")
        _, query = mock_graph_client.get.call_args.args
        assert query["$orderby"] == "receivedDateTime asc"
        assert query["$top"] == "5"

    @pytest.mark.asyncio
    async def test_list_emails_order_by_items(self, db_path, graph_client_factory, mock_graph_client, sample_message):
        """orderBy 리스트 원소는 문자열 또는 객체만 허용"""
        mock_graph_client.get.return_value = {"value": [sample_message]}
        transport = self.build(db_path, graph_client_factory)

        for bad in ([5], ["receivedDateTime desc", True], [["subject"]]):
            with pytest.raises(ToolValidationError):
                await transport.call_tool("list_emails", {"orderBy": bad})
        mock_graph_client.get.assert_not_called()

        await transport.call_tool("list_emails", {"orderBy": ["subject asc", {"receivedDateTime": "desc"}]})
        _, query = mock_graph_client.get.call_args.args
        assert query["$orderby"] == "subject asc, receivedDateTime desc"

    @pytest.mark.asyncio
    async def test_send_email_recipient_forms(self, db_path, graph_client_factory, mock_graph_client):
        transport = self.build(db_path, graph_client_factory)

        await transport.call_tool("send_email", {"to": "a@example.com", "subject": "S"})
        await transport.call_tool("send_email", {"to": ["a@example.com", "b@example.com"], "subject": "S"})

        assert mock_graph_client.post.call_count == 2
        with pytest.raises(ToolValidationError):
            await transport.call_tool("send_email", {"to": 42, "subject": "S"})
        assert mock_graph_client.post.call_count == 2


class TestMain:

    def test_invalid_configuration_exits_with_error(self, monkeypatch, db_path):
        monkeypatch.setenv("DB_PATH", db_path)
        monkeypatch.setenv("GRAPH_TIMEOUT_SECONDS", "0")
        assert main(["--protocol", "rest"]) == 1

"""
AuthToolService 테스트

인증 서버 호출(_post_auth_start)은 AsyncMock으로 대체합니다.
"""

from unittest.mock import AsyncMock

import aiohttp
import pytest

from core.config import Settings
from mcp_auth.auth_tools import AuthToolService
from session.auth_database import AuthDatabase
from session.session_store import SessionStore

AUTH_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/authorize?client_id=client-123"


class TestAuthenticate:

    def make_service(self, db_path, **config):
        settings = Settings({"client_id": "client-123", "auth_port": 3333, "redirect_uri": None, **config})
        self.db = AuthDatabase(db_path)
        self.sessions = SessionStore()
        return AuthToolService(settings, self.db, self.sessions)

    @pytest.mark.asyncio
    async def test_missing_client_id(self, db_path):
        service = self.make_service(db_path, client_id=None)
        service._post_auth_start = AsyncMock()

        result = await service.authenticate({})

        assert result["status"] == "error"
        assert "MS_CLIENT_ID" in result["message"]
        service._post_auth_start.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_started(self, db_path):
        service = self.make_service(db_path, scopes=["User.Read"])
        service._post_auth_start = AsyncMock(return_value=(200, {"status": "authentication_started", "authUrl": AUTH_URL}))

        result = await service.authenticate({"userId": "kimghw", "scopes": "Mail.Read, Mail.Send"})

        payload = service._post_auth_start.call_args.args[0]
        assert payload == {
            "clientId": "client-123",
            "scopes": ["Mail.Read", "Mail.Send"],
            "redirectUri": "http://localhost:3333/auth/callback",
            "state": "kimghw",
        }
        assert result["status"] == "authentication_started"
        assert result["authUrl"] == AUTH_URL
        assert result["userId"] == "kimghw"

        pending = self.sessions.find_sessions(status="pending")
        assert len(pending) == 1
        assert pending[0]["userId"] == "kimghw"

    @pytest.mark.asyncio
    async def test_default_scopes_and_state(self, db_path):
        service = self.make_service(db_path, scopes=["User.Read"])
        service._post_auth_start = AsyncMock(return_value=(200, {"status": "authentication_started", "authUrl": AUTH_URL}))

        result = await service.authenticate({})

        payload = service._post_auth_start.call_args.args[0]
        assert payload["scopes"] == ["User.Read"]
        assert payload["state"] == "mcp-user"
        assert result["userId"] == "default"

    @pytest.mark.asyncio
    async def test_auth_server_rejects(self, db_path):
        service = self.make_service(db_path)
        service._post_auth_start = AsyncMock(return_value=(500, "Internal Server Error"))

        result = await service.authenticate({})

        assert result["status"] == "error"
        assert result["message"] == "Authentication failed: Failed to start authentication process"
        assert self.sessions.list_sessions() == []

    @pytest.mark.asyncio
    async def test_auth_server_unreachable(self, db_path):
        service = self.make_service(db_path)
        service._post_auth_start = AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))

        result = await service.authenticate({})

        assert result["status"] == "error"
        assert "refused" in result["message"]


class TestAuthStatus:

    def setup_method(self):
        self.sessions = SessionStore()

    def make_service(self, db_path):
        self.db = AuthDatabase(db_path)
        return AuthToolService(Settings({"client_id": "client-123"}), self.db, self.sessions)

    @pytest.mark.asyncio
    async def test_not_authenticated(self, db_path):
        result = await self.make_service(db_path).check_auth_status({})

        assert result["status"] == "not_authenticated"
        assert result["userId"] is None
        assert result["isAuthenticating"] is False

    @pytest.mark.asyncio
    async def test_single_user_completes_pending_session(self, db_path):
        service = self.make_service(db_path)
        self.sessions.store_session("s1", {"sessionId": "s1", "userId": "kimghw", "status": "pending"})
        self.db.save_token("kimghw", {"access_token": "a"})

        result = await service.check_auth_status({})

        assert result["status"] == "authenticated"
        assert result["userId"] == "kimghw"
        assert result["isAuthenticating"] is False
        assert self.sessions.get_session("s1") is None

    @pytest.mark.asyncio
    async def test_multiple_users_while_authenticating(self, db_path):
        service = self.make_service(db_path)
        self.sessions.store_session("s1", {"sessionId": "s1", "userId": "carol", "status": "pending"})
        self.db.save_token("alice", {"access_token": "a"})
        self.db.save_token("bob", {"access_token": "b"})

        result = await service.check_auth_status({})

        assert result["users"] == ["alice", "bob"]
        assert result["isAuthenticating"] is True
        assert "alice" in result["instruction"]

    @pytest.mark.asyncio
    async def test_revoke(self, db_path):
        service = self.make_service(db_path)
        self.db.save_token("default", {"access_token": "a"})

        assert (await service.revoke_authentication({}))["status"] == "success"
        assert (await service.revoke_authentication({}))["status"] == "warning"
        assert self.db.list_users() == []

    @pytest.mark.asyncio
    async def test_list_authenticated_users(self, db_path):
        service = self.make_service(db_path)
        assert (await service.list_authenticated_users({}))["count"] == 0

        self.db.save_token("kimghw", {"access_token": "a"})
        result = await service.list_authenticated_users({})

        assert result == {
            "status": "success",
            "users": ["kimghw"],
            "count": 1,
            "instruction": result["instruction"],
        }
        assert "specify userId" in result["instruction"]

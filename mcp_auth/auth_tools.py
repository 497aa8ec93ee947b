"""
Auth Tool Service - 인증 관련 MCP 도구 핸들러

브라우저 인증은 별도 인증 서버(http://localhost:{AUTH_SERVER_PORT})가 처리합니다.
이 서비스는 인증 서버에 플로우 시작을 요청하고, 토큰 저장소를 조회/삭제합니다.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from core.config import Settings
from core.protocols import TokenStoreProtocol
from session.session_store import SessionStore

logger = logging.getLogger(__name__)


class AuthToolService:
    """인증 도구 서비스"""

    def __init__(self, settings: Settings, token_store: TokenStoreProtocol, session_store: SessionStore):
        """
        Args:
            settings: 서버 설정 (client_id, redirect_uri, auth_port, scopes)
            token_store: 토큰 저장소
            session_store: 진행 중인 인증 세션 저장소
        """
        self.settings = settings
        self.token_store = token_store
        self.session_store = session_store

    @staticmethod
    def _normalize_scopes(scopes: Any) -> Optional[List[str]]:
        if not scopes:
            return None
        if isinstance(scopes, str):
            return [s for s in re.split(r"[,\s]+", scopes) if s]
        return list(scopes)

    async def _post_auth_start(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        """인증 서버에 플로우 시작 요청, (HTTP 상태, 응답 본문) 반환"""
        url = f"{self.settings.auth_server_url}/auth/start"
        logger.info(f"Sending request to {url}")

        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30)) as session:
            async with session.post(url, json=payload) as response:
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    body = await response.text()
                return response.status, body

    async def authenticate(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        인증 플로우 시작

        Returns:
            authentication_started (authUrl 포함) 또는 error
        """
        user_id = params.get("userId") or "default"
        client_id = self.settings.get("client_id")

        if not client_id:
            return {
                "status": "error",
                "message": "Authentication failed: MS_CLIENT_ID environment variable is not configured. "
                           "Please set it in your .env file.",
                "details": None,
            }

        payload = {
            "clientId": client_id,
            "scopes": self._normalize_scopes(params.get("scopes")) or self.settings.scopes,
            "redirectUri": self.settings.get("redirect_uri"),
            "state": params.get("userId") or "mcp-user",
        }
        logger.info(
            f"Starting authentication flow (scopes={len(payload['scopes'])}, "
            f"redirectUri={payload['redirectUri']}, state={payload['state']})"
        )

        try:
            status, body = await self._post_auth_start(payload)
        except aiohttp.ClientError as e:
            logger.error(f"Authentication error: {e}")
            return {
                "status": "error",
                "message": f"Authentication failed: {e}",
                "details": None,
                "instruction": "Make sure the authentication server is running, then try again.",
            }

        if status >= 400 or not isinstance(body, dict) or body.get("status") != "authentication_started":
            logger.error(f"Authentication error: auth server returned {status}: {body}")
            return {
                "status": "error",
                "message": "Authentication failed: Failed to start authentication process",
                "details": body,
                "instruction": "Please try again. If the problem persists, check server logs for more details.",
            }

        session_id = self.session_store.generate_session_id()
        self.session_store.store_session(session_id, {
            "sessionId": session_id,
            "userId": user_id,
            "state": payload["state"],
            "authUrl": body.get("authUrl"),
            "status": "pending",
        })
        logger.info(f"Authentication URL created, waiting for completion: {body.get('authUrl')}")

        return {
            "status": "authentication_started",
            "message": "Authentication started. Please complete the authentication in your browser.",
            "authUrl": body.get("authUrl"),
            "userId": user_id,
            "instruction": "Please complete the authentication process in your browser. "
                           "You will be redirected back once authenticated.",
        }

    def _pending_sessions(self, users: List[str]) -> bool:
        """완료된 인증 세션은 정리하고, 아직 진행 중인 세션이 있는지 반환"""
        authenticating = False
        for session in self.session_store.find_sessions(status="pending"):
            if session.get("userId") in users:
                self.session_store.remove_session(session["sessionId"])
            else:
                authenticating = True
        return authenticating

    async def check_auth_status(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """저장된 토큰 기준 인증 상태 확인"""
        users = self.token_store.list_users()
        is_authenticating = self._pending_sessions(users)

        if not users:
            return {
                "status": "not_authenticated",
                "isAuthenticating": is_authenticating,
                "userId": None,
                "instruction": "Not authenticated. Please use the authenticate tool to start the authentication process.",
            }

        if len(users) == 1:
            return {
                "status": "authenticated",
                "isAuthenticating": is_authenticating,
                "userId": users[0],
                "instruction": f"Authenticated as {users[0]}. You can now use other tools that require authentication.",
            }

        return {
            "status": "authenticated",
            "isAuthenticating": is_authenticating,
            "users": users,
            "instruction": f"Multiple users authenticated: {', '.join(users)}. Tools will use {users[0]} by default.",
        }

    async def revoke_authentication(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """사용자 토큰 삭제"""
        user_id = params.get("userId") or "default"

        if self.token_store.delete_token(user_id):
            logger.info(f"Authentication revoked for user {user_id}")
            return {
                "status": "success",
                "message": f"Authentication revoked successfully for user {user_id}",
                "instruction": "You will need to authenticate again to use tools that require authentication.",
            }

        return {
            "status": "warning",
            "message": f"No authentication found for user {user_id}",
            "instruction": "No action was needed as you were not authenticated.",
        }

    async def list_authenticated_users(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """토큰이 저장된 사용자 목록"""
        users = self.token_store.list_users()
        return {
            "status": "success",
            "users": users,
            "count": len(users),
            "instruction": (
                "These are the currently authenticated users. You can specify userId when using "
                "other tools to act on behalf of a specific user."
                if users else
                "No authenticated users found. Please use the authenticate tool to authenticate."
            ),
        }

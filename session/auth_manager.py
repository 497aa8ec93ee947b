"""
Authentication Manager
저장된 토큰 조회 및 Azure AD 토큰 갱신 (TokenProviderProtocol 구현)

브라우저 인증 플로우는 별도의 인증 서버가 담당하며,
이 모듈은 인증 서버가 저장한 토큰을 읽고 만료 시 갱신만 합니다.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List

import aiohttp

from core.config import Settings
from core.protocols import TokenStoreProtocol

logger = logging.getLogger(__name__)

TOKEN_URL_TEMPLATE = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"


class TokenRefreshError(Exception):
    """토큰 갱신 실패"""


def parse_expiry(expires_at: Any) -> Optional[datetime]:
    """
    만료 시간을 UTC datetime으로 변환

    ISO 문자열, datetime, epoch(초 또는 밀리초) 모두 허용합니다.
    """
    if expires_at is None or expires_at == "":
        return None

    if isinstance(expires_at, datetime):
        dt = expires_at
    elif isinstance(expires_at, (int, float)):
        seconds = expires_at / 1000 if expires_at > 1e12 else expires_at
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    else:
        text = str(expires_at)
        if text.isdigit():
            return parse_expiry(int(text))
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class AuthManager:
    """인증 매니저 - 다중 사용자 토큰 조회/갱신"""

    def __init__(self, token_store: TokenStoreProtocol, settings: Optional[Settings] = None):
        """
        Args:
            token_store: 토큰 저장소 (AuthDatabase)
            settings: Azure AD 앱 설정 (None이면 환경 변수에서 로드)
        """
        self.token_store = token_store
        self.settings = settings or Settings()
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """aiohttp 세션 관리"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    def is_token_expired(self, expires_at: Any, buffer_seconds: int = 300) -> bool:
        """
        토큰 만료 확인

        Args:
            expires_at: 만료 시간
            buffer_seconds: 버퍼 시간 (기본 5분)
        """
        try:
            expiry = parse_expiry(expires_at)
        except (ValueError, OverflowError, OSError):
            logger.warning(f"Invalid token expiry {expires_at!r}, treating token as expired")
            return True
        if expiry is None:
            return True
        return datetime.now(timezone.utc) >= (expiry - timedelta(seconds=buffer_seconds))

    async def get_token(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        특정 사용자의 토큰 조회

        Returns:
            토큰 정보 (is_expired 포함) 또는 None
        """
        token_info = self.token_store.get_token(user_id)

        if not token_info:
            logger.warning(f"No token found for {user_id}")
            return None

        return {
            'user_id': user_id,
            'access_token': token_info.get('access_token'),
            'refresh_token': token_info.get('refresh_token'),
            'expires_at': token_info.get('expires_at'),
            'is_expired': self.is_token_expired(token_info.get('expires_at')),
        }

    async def _refresh_tokens(self, refresh_token: str) -> Dict[str, Any]:
        """
        Azure AD 토큰 엔드포인트로 토큰 갱신

        Raises:
            TokenRefreshError: 갱신 실패 (invalid_grant 포함)
        """
        token_url = TOKEN_URL_TEMPLATE.format(tenant_id=self.settings.get('tenant_id'))

        data = {
            'client_id': self.settings.get('client_id') or '',
            'refresh_token': refresh_token,
            'grant_type': 'refresh_token',
            'scope': ' '.join(self.settings.scopes),
        }
        if self.settings.get('client_secret'):
            data['client_secret'] = self.settings.get('client_secret')

        session = await self._get_session()
        async with session.post(token_url, data=data) as response:
            if response.status != 200:
                error_text = await response.text()
                if 'invalid_grant' in error_text:
                    raise TokenRefreshError("Refresh token expired or revoked")
                raise TokenRefreshError(f"Token refresh failed: {error_text[:500]}")

            token_data = await response.json()

        expires_in = token_data.get('expires_in', 3600)
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)

        return {
            'access_token': token_data['access_token'],
            # 새 refresh token이 없으면 기존 것 유지
            'refresh_token': token_data.get('refresh_token') or refresh_token,
            'token_type': token_data.get('token_type', 'Bearer'),
            'expires_in': expires_in,
            'expires_at': expires_at.isoformat(),
            'scope': token_data.get('scope', ''),
        }

    async def refresh_token(self, user_id: str) -> Dict[str, Any]:
        """
        특정 사용자의 토큰 갱신

        Returns:
            갱신 결과 (status: success | error | reauth_required)
        """
        token_info = self.token_store.get_token(user_id)

        if not token_info:
            return {
                'status': 'error',
                'message': f'No token found for {user_id}'
            }

        if not token_info.get('refresh_token'):
            return {
                'status': 'reauth_required',
                'message': 'Refresh token not available, re-authentication required'
            }

        try:
            new_tokens = await self._refresh_tokens(token_info['refresh_token'])
        except (TokenRefreshError, aiohttp.ClientError) as e:
            logger.error(f"Token refresh failed for {user_id}: {e}")
            return {
                'status': 'reauth_required',
                'message': str(e)
            }

        if not self.token_store.save_token(user_id, new_tokens):
            return {
                'status': 'error',
                'message': 'Failed to save refreshed token'
            }

        logger.info(f"Token refreshed for {user_id}")
        return {
            'status': 'success',
            'user_id': user_id,
            'access_token': new_tokens['access_token'],
            'expires_at': new_tokens['expires_at'],
        }

    async def validate_and_refresh_token(self, user_id: str) -> Optional[str]:
        """
        토큰 유효성 확인 및 필요시 자동 갱신

        Returns:
            유효한 액세스 토큰 또는 None
        """
        token_info = self.token_store.get_token(user_id)

        if not token_info:
            logger.error(f"No token found for {user_id}")
            return None

        if token_info.get('access_token') and not self.is_token_expired(token_info.get('expires_at')):
            return token_info['access_token']

        logger.info(f"Token expired for {user_id}, attempting refresh")
        refresh_result = await self.refresh_token(user_id)

        if refresh_result['status'] == 'success':
            return refresh_result['access_token']

        logger.error(f"Failed to get valid token for {user_id}")
        return None

    def list_users(self) -> List[str]:
        return self.token_store.list_users()

    def remove_user(self, user_id: str) -> bool:
        """
        사용자 제거 (토큰 삭제)

        Returns:
            삭제된 토큰이 있으면 True
        """
        return self.token_store.delete_token(user_id)

    async def close(self):
        """리소스 정리"""
        if self.session and not self.session.closed:
            await self.session.close()
        logger.info("Auth manager closed")

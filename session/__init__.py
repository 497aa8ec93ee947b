"""
Session Module - 토큰 저장소, 토큰 갱신, 인증 세션 관리
"""

from .auth_database import AuthDatabase
from .auth_manager import AuthManager, TokenRefreshError
from .session_store import SessionStore, generate_session_id

__all__ = [
    'AuthDatabase',
    'AuthManager',
    'TokenRefreshError',
    'SessionStore',
    'generate_session_id',
]

"""
Session Store
진행 중인 인증 세션(authenticate 도구가 시작한 플로우)을 보관하는 명시적 저장소

전역 맵 대신 인스턴스를 생성해 필요한 곳(mcp_auth)에 주입합니다.
마지막 접근 후 timeout이 지난 세션은 조회 시 또는 주기적 정리 작업에서 제거됩니다.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional, Any, List

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """16바이트 랜덤 hex 세션 ID"""
    return secrets.token_hex(16)


@dataclass
class StoredSession:
    session_id: str
    data: Dict[str, Any]
    created_at: datetime = field(default_factory=datetime.now)
    last_access: datetime = field(default_factory=datetime.now)

    def is_expired(self, timeout_minutes: int) -> bool:
        return datetime.now() - self.last_access > timedelta(minutes=timeout_minutes)

    def touch(self):
        self.last_access = datetime.now()


class SessionStore:
    """
    Pending authentication sessions with automatic cleanup
    """

    def __init__(self, timeout_minutes: int = 30, max_sessions: int = 100, cleanup_interval_minutes: int = 5):
        """
        Args:
            timeout_minutes: Minutes of inactivity before a session expires
            max_sessions: Oldest session is evicted beyond this count
            cleanup_interval_minutes: Interval for the background cleanup task
        """
        self.sessions: Dict[str, StoredSession] = {}
        self.timeout_minutes = timeout_minutes
        self.max_sessions = max_sessions
        self.cleanup_interval = cleanup_interval_minutes
        self._cleanup_task: Optional[asyncio.Task] = None

    def generate_session_id(self) -> str:
        return generate_session_id()

    def store_session(self, session_id: str, data: Dict[str, Any]) -> StoredSession:
        """세션 저장 (같은 ID가 있으면 덮어씀)"""
        session = StoredSession(session_id=session_id, data=dict(data))
        self.sessions.pop(session_id, None)
        self.sessions[session_id] = session

        while len(self.sessions) > self.max_sessions:
            oldest_id = next(iter(self.sessions))
            del self.sessions[oldest_id]
            logger.info(f"Evicted oldest session: {oldest_id[:8]}...")

        logger.debug(f"Session stored: {session_id[:8]}...")
        return session

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        세션 데이터 조회 (접근 시간 갱신)

        Returns:
            세션 데이터 또는 None (없거나 만료)
        """
        session = self.sessions.get(session_id)
        if session is None:
            return None

        if session.is_expired(self.timeout_minutes):
            del self.sessions[session_id]
            logger.info(f"Expired session removed: {session_id[:8]}...")
            return None

        session.touch()
        return session.data

    def remove_session(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None

    def find_sessions(self, **criteria) -> List[Dict[str, Any]]:
        """데이터 값이 criteria와 모두 일치하는 만료되지 않은 세션 목록"""
        self.cleanup_expired()
        return [
            s.data for s in self.sessions.values()
            if all(s.data.get(k) == v for k, v in criteria.items())
        ]

    def cleanup_expired(self) -> int:
        """만료된 세션 제거, 제거된 수 반환"""
        expired = [sid for sid, s in self.sessions.items() if s.is_expired(self.timeout_minutes)]
        for sid in expired:
            del self.sessions[sid]

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired sessions")
        return len(expired)

    def list_sessions(self) -> List[Dict[str, Any]]:
        return [
            {
                "session_id": s.session_id,
                "created_at": s.created_at.isoformat(),
                "last_access": s.last_access.isoformat(),
                **s.data,
            }
            for s in self.sessions.values()
        ]

    async def start(self):
        """Start the background cleanup task"""
        if not self._cleanup_task:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("SessionStore cleanup task started")

    async def stop(self):
        """Stop the cleanup task and drop all sessions"""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

        self.sessions.clear()
        logger.info("SessionStore stopped")

    async def _cleanup_loop(self):
        while True:
            await asyncio.sleep(self.cleanup_interval * 60)
            self.cleanup_expired()
            logger.debug(f"Active sessions: {len(self.sessions)}")

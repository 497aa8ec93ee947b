"""
Authentication Database Module
사용자별 OAuth 토큰의 CRUD 작업을 담당 (sqlite)
"""

import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class AuthDatabase:
    """인증 데이터베이스 - user_id 단위 토큰 저장소"""

    def __init__(self, db_path: str = "database/auth.db"):
        """
        데이터베이스 초기화

        Args:
            db_path: 데이터베이스 파일 경로
        """
        self.db_path = db_path
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        self.ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_tables(self):
        """토큰 테이블 생성"""
        conn = self._connect()
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS outlook_tokens (
                    user_id TEXT PRIMARY KEY,
                    access_token TEXT,
                    refresh_token TEXT,
                    expires_at TEXT,
                    scope TEXT,
                    token_json TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_outlook_tokens_created ON outlook_tokens(created_at);
            """)
            conn.commit()
            logger.debug("✅ Token table ready")
        except sqlite3.Error as e:
            logger.error(f"❌ Failed to create tables: {e}")
            raise
        finally:
            conn.close()

    def save_token(self, user_id: str, token: Dict[str, Any]) -> bool:
        """
        토큰 저장 (있으면 갱신, created_at은 유지)

        Args:
            user_id: 사용자 식별자
            token: access_token, refresh_token, expires_at 등을 포함한 토큰 딕셔너리

        Returns:
            성공 여부
        """
        now = datetime.now(timezone.utc).isoformat()
        expires_at = token.get('expires_at')

        conn = self._connect()
        try:
            conn.execute("""
                INSERT INTO outlook_tokens (
                    user_id, access_token, refresh_token, expires_at, scope,
                    token_json, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    access_token = excluded.access_token,
                    refresh_token = excluded.refresh_token,
                    expires_at = excluded.expires_at,
                    scope = excluded.scope,
                    token_json = excluded.token_json,
                    updated_at = excluded.updated_at
            """, (
                user_id,
                token.get('access_token'),
                token.get('refresh_token'),
                str(expires_at) if expires_at is not None else None,
                token.get('scope'),
                json.dumps(token),
                now,
                now,
            ))
            conn.commit()
            logger.info(f"✅ Token saved for: {user_id}")
            return True
        except sqlite3.Error as e:
            logger.error(f"❌ Failed to save token: {e}")
            return False
        finally:
            conn.close()

    def get_token(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        토큰 조회

        Returns:
            저장된 토큰 딕셔너리 (created_at, updated_at 포함) 또는 None
        """
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT token_json, created_at, updated_at FROM outlook_tokens WHERE user_id = ?",
                (user_id,)
            ).fetchone()
        finally:
            conn.close()

        if not row:
            return None

        token = json.loads(row['token_json'])
        token['created_at'] = row['created_at']
        token['updated_at'] = row['updated_at']
        return token

    def delete_token(self, user_id: str) -> bool:
        """
        토큰 삭제

        Returns:
            삭제된 토큰이 있으면 True
        """
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM outlook_tokens WHERE user_id = ?", (user_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
        finally:
            conn.close()

        if deleted:
            logger.info(f"✅ Token deleted for: {user_id}")
        else:
            logger.warning(f"No token to delete for: {user_id}")
        return deleted

    def list_users(self) -> List[str]:
        """토큰이 저장된 사용자 목록 (저장 순서)"""
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT user_id FROM outlook_tokens ORDER BY created_at, rowid"
            ).fetchall()
        finally:
            conn.close()
        return [row['user_id'] for row in rows]

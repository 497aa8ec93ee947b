"""
Legacy token migration

이전 버전이 사용하던 JSON 토큰 파일({user_id: token})을 sqlite 토큰 저장소로 옮깁니다.
사용자가 하나뿐이고 'default' 항목이 없으면 같은 토큰을 'default'로도 저장합니다.

Usage:
    python -m session.migrate_tokens [--legacy-path PATH] [--db-path PATH]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Any

from core.config import Settings
from core.protocols import TokenStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = 'default'


def load_legacy_tokens(legacy_path: str) -> Dict[str, Dict[str, Any]]:
    """
    레거시 토큰 파일 로드

    Returns:
        {user_id: token} 딕셔너리 (파일이 없으면 빈 딕셔너리)

    Raises:
        ValueError: 파일 내용이 JSON 객체가 아닌 경우
    """
    path = Path(legacy_path).expanduser()
    if not path.exists():
        return {}

    with open(path, 'r', encoding='utf-8') as f:
        tokens = json.load(f)

    if not isinstance(tokens, dict):
        raise ValueError(f"Legacy token file must contain a JSON object: {path}")
    return tokens


def migrate_tokens(store: TokenStoreProtocol, legacy_path: str) -> Dict[str, Any]:
    """
    레거시 토큰을 저장소로 이전

    Args:
        store: 대상 토큰 저장소
        legacy_path: 레거시 JSON 파일 경로

    Returns:
        status(no_file | migrated), migrated(user_id 목록), aliased_default 여부
    """
    tokens = load_legacy_tokens(legacy_path)
    if not tokens:
        logger.info("No token file found. Nothing to migrate.")
        return {'status': 'no_file', 'migrated': [], 'aliased_default': False}

    migrated = []
    for user_id, token in tokens.items():
        if not isinstance(token, dict):
            logger.warning(f"Skipping malformed token entry: {user_id}")
            continue
        if store.save_token(user_id, token):
            migrated.append(user_id)

    aliased = False
    users = list(tokens.keys())
    if len(users) == 1 and DEFAULT_USER_ID not in tokens and isinstance(tokens[users[0]], dict):
        logger.info(f"Migrating single user token from '{users[0]}' to '{DEFAULT_USER_ID}'")
        aliased = store.save_token(DEFAULT_USER_ID, tokens[users[0]])

    logger.info(f"✅ Token migration completed: {len(migrated)} user(s)")
    return {'status': 'migrated', 'migrated': migrated, 'aliased_default': aliased}


def main(argv=None) -> int:
    settings = Settings()

    parser = argparse.ArgumentParser(description="Import legacy Outlook MCP tokens into the token database")
    parser.add_argument('--legacy-path', default=settings.get('legacy_token_path'),
                        help='Legacy JSON token file')
    parser.add_argument('--db-path', default=settings.get('db_path'),
                        help='Target sqlite database')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )

    from session.auth_database import AuthDatabase

    result = migrate_tokens(AuthDatabase(args.db_path), args.legacy_path)
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

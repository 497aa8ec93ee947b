"""
Server settings

.env 파일과 환경 변수에서 설정을 읽어 Settings 객체로 제공합니다.
우선순위: 생성자 인자 > 환경 변수 > DEFAULTS
"""

import os
import re
from pathlib import Path
from typing import Dict, Any, List, Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# 프로젝트 루트의 .env 로드 (이미 설정된 환경 변수는 덮어쓰지 않음)
load_dotenv(PROJECT_ROOT / '.env')

DEFAULT_SCOPES = [
    'offline_access',
    'User.Read',
    'Mail.ReadWrite',
    'Mail.Send',
    'Calendars.ReadWrite',
    'MailboxSettings.ReadWrite',
]


class Settings:
    """Outlook MCP server settings."""

    DEFAULTS = {
        # Server
        'server_name': 'outlook-mcp',
        'server_version': '1.0.0',
        'protocol': 'stdio',
        'rest_host': '0.0.0.0',
        'rest_port': 8000,

        # Auth server / Azure AD app
        'auth_port': 3333,
        'client_id': None,
        'client_secret': None,
        'tenant_id': 'common',
        'redirect_uri': None,
        'scopes': DEFAULT_SCOPES,

        # Graph API
        'graph_base_url': 'https://graph.microsoft.com/v1.0',
        'graph_timeout': 30,
        'graph_max_retries': 2,

        # Storage
        'db_path': str(PROJECT_ROOT / 'database' / 'auth.db'),
        'legacy_token_path': str(Path.home() / '.enhanced-outlook-mcp-tokens.json'),

        # Sessions
        'session_timeout_minutes': 30,

        # Logging
        'log_level': 'INFO',
    }

    ENV_MAPPINGS = {
        'MCP_SERVER_NAME': 'server_name',
        'MCP_SERVER_VERSION': 'server_version',
        'MCP_PROTOCOL': 'protocol',
        'MCP_REST_HOST': 'rest_host',
        'MCP_REST_PORT': 'rest_port',
        'AUTH_SERVER_PORT': 'auth_port',
        'MS_CLIENT_ID': 'client_id',
        'MS_CLIENT_SECRET': 'client_secret',
        'MS_TENANT_ID': 'tenant_id',
        'MS_REDIRECT_URI': 'redirect_uri',
        'MS_SCOPES': 'scopes',
        'GRAPH_API_BASE_URL': 'graph_base_url',
        'GRAPH_TIMEOUT_SECONDS': 'graph_timeout',
        'GRAPH_MAX_RETRIES': 'graph_max_retries',
        'DB_PATH': 'db_path',
        'LEGACY_TOKEN_PATH': 'legacy_token_path',
        'SESSION_TIMEOUT_MINUTES': 'session_timeout_minutes',
        'LOG_LEVEL': 'log_level',
    }

    INT_KEYS = ['rest_port', 'auth_port', 'graph_timeout', 'graph_max_retries', 'session_timeout_minutes']

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        설정 초기화

        Args:
            config: 환경 변수보다 우선하는 설정 딕셔너리 (테스트용)
        """
        self.config = self.DEFAULTS.copy()
        self._load_from_env()

        if config:
            self.config.update(config)

        if not self.config.get('redirect_uri'):
            self.config['redirect_uri'] = f"http://localhost:{self.config['auth_port']}/auth/callback"

    def _load_from_env(self):
        """환경 변수에서 설정 로드"""
        for env_var, config_key in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if not value:
                continue

            if config_key in self.INT_KEYS:
                try:
                    value = int(value)
                except ValueError:
                    continue
            elif config_key == 'scopes':
                value = [s for s in re.split(r'[,\s]+', value) if s]

            self.config[config_key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    @property
    def server_name(self) -> str:
        return self.config['server_name']

    @property
    def server_version(self) -> str:
        return self.config['server_version']

    @property
    def auth_server_url(self) -> str:
        return f"http://localhost:{self.config['auth_port']}"

    @property
    def scopes(self) -> List[str]:
        return list(self.config['scopes'])

    def validate(self) -> Dict[str, Any]:
        """
        설정 검증

        Returns:
            valid, warnings, errors 키를 가진 결과 딕셔너리
        """
        results = {
            'valid': True,
            'warnings': [],
            'errors': []
        }

        for key in ['rest_port', 'auth_port', 'graph_timeout', 'session_timeout_minutes']:
            if self.config[key] <= 0:
                results['errors'].append(f'{key} must be positive')
                results['valid'] = False

        if self.config['graph_max_retries'] < 0:
            results['errors'].append('graph_max_retries must not be negative')
            results['valid'] = False

        if not self.config.get('client_id'):
            results['warnings'].append('MS_CLIENT_ID is not set, authenticate tool will fail')

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if str(self.config['log_level']).upper() not in valid_log_levels:
            results['warnings'].append('Invalid log_level, using INFO')
            self.config['log_level'] = 'INFO'

        return results

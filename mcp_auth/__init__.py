"""
MCP Auth - 인증 상태 확인 및 인증 플로우 시작 도구
"""

from .auth_tools import AuthToolService
from .tool_definitions import get_auth_tools

__all__ = ['AuthToolService', 'get_auth_tools']

"""
Core Module - 공통 설정, Protocol, Graph API 클라이언트

도메인 서비스(mcp_mail, mcp_folder 등)가 session 패키지를 직접 의존하지 않도록 추상화.
"""

from .protocols import TokenProviderProtocol, TokenStoreProtocol, GraphClientProtocol
from .config import Settings
from .graph_api import GraphApiClient, GraphApiError, build_query_params

__all__ = [
    'TokenProviderProtocol',
    'TokenStoreProtocol',
    'GraphClientProtocol',
    'Settings',
    'GraphApiClient',
    'GraphApiError',
    'build_query_params',
]

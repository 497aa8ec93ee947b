"""
Core Protocols - 모듈 간 의존성 추상화를 위한 Protocol 정의

현재 정의:
    - TokenProviderProtocol: GraphApiClient가 session.AuthManager를 직접 알지 않아도 되게 함
    - TokenStoreProtocol: 토큰 저장소 (sqlite AuthDatabase 또는 테스트용 메모리 저장소)
    - GraphClientProtocol: 도메인 서비스가 사용하는 HTTP 클라이언트 인터페이스

사용 예시:
    # 테스트용 Mock 주입
    client = AsyncMock(spec=GraphClientProtocol)
    service = FolderService(lambda user_id: client)
"""

from typing import Protocol, Optional, Dict, Any, List, runtime_checkable


@runtime_checkable
class TokenProviderProtocol(Protocol):
    """
    토큰 제공자 프로토콜 - AuthManager 추상화

    OAuth 토큰의 획득, 갱신, 검증을 담당하는 인터페이스.
    session.AuthManager가 이 Protocol을 구현합니다.
    """

    async def validate_and_refresh_token(self, user_id: str) -> Optional[str]:
        """
        유효한 액세스 토큰 반환 (필요시 자동 갱신)

        Args:
            user_id: 사용자 식별자

        Returns:
            유효한 액세스 토큰 또는 None
        """
        ...

    async def get_token(self, user_id: str) -> Optional[Dict[str, Any]]:
        """특정 사용자의 전체 토큰 정보 조회"""
        ...

    async def close(self) -> None:
        """리소스 정리"""
        ...


@runtime_checkable
class TokenStoreProtocol(Protocol):
    """토큰 저장소 프로토콜 - user_id 단위 저장/조회/삭제/목록"""

    def save_token(self, user_id: str, token: Dict[str, Any]) -> bool:
        ...

    def get_token(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def delete_token(self, user_id: str) -> bool:
        """삭제된 토큰이 있으면 True"""
        ...

    def list_users(self) -> List[str]:
        ...


@runtime_checkable
class GraphClientProtocol(Protocol):
    """Graph API HTTP 클라이언트 프로토콜"""

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...

    async def post(self, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...

    async def patch(self, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...

    async def delete(self, path: str) -> Dict[str, Any]:
        ...

    async def get_all(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        max_pages: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        ...

"""
Graph API Client - Microsoft Graph 범용 HTTP 클라이언트

도메인 서비스(메일, 캘린더, 폴더, 규칙)가 공통으로 사용하는 GET/POST/PATCH/DELETE 헬퍼.
토큰은 TokenProviderProtocol 구현체에서 요청마다 가져옵니다.

재시도 정책:
    - 429 / 503 / 504 응답과 aiohttp.ClientError는 max_retries까지 재시도
    - Retry-After 헤더가 있으면 그 값(초)만큼 대기, 없으면 지수 백오프
"""

import asyncio
import json
import logging
from typing import Dict, Any, List, Optional, Union

import aiohttp

from .protocols import TokenProviderProtocol

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
RETRYABLE_STATUS = {429, 503, 504}
RETRY_BACKOFF_SECONDS = 1.0

OrderBy = Union[str, Dict[str, str], List[Union[str, Dict[str, str]]]]


class GraphApiError(Exception):
    """Graph API 요청 실패 (non-2xx 응답 또는 재시도 소진)"""

    def __init__(self, status: Optional[int], body: Any = None, message: Optional[str] = None):
        self.status = status
        self.body = body
        self.message = message or self._extract_message(status, body)
        super().__init__(self.message)

    @staticmethod
    def _extract_message(status: Optional[int], body: Any) -> str:
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return f"Graph API error {status}: {error['message']}"
        if body:
            return f"Graph API error {status}: {str(body)[:500]}"
        return f"Graph API error {status}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "error",
            "http_status": self.status,
            "message": self.message,
        }


def format_order_by(order_by: OrderBy) -> str:
    """
    orderBy 파라미터를 OData $orderby 문자열로 변환

    Args:
        order_by: "receivedDateTime desc" | {"displayName": "asc"} | 두 형식의 리스트

    Returns:
        "displayName asc, receivedDateTime desc" 형식 문자열
    """
    if isinstance(order_by, str):
        return order_by.strip()

    if isinstance(order_by, dict):
        parts = []
        for field, direction in order_by.items():
            direction = "desc" if str(direction or "").lower() == "desc" else "asc"
            parts.append(f"{field} {direction}")
        return ", ".join(parts)

    if isinstance(order_by, (list, tuple)):
        return ", ".join(p for p in (format_order_by(item) for item in order_by) if p)

    raise ValueError(f"Unsupported orderBy value: {order_by!r}")


def build_query_params(
    top: Optional[int] = None,
    skip: Optional[int] = None,
    select: Optional[List[str]] = None,
    filter_expr: Optional[str] = None,
    order_by: Optional[OrderBy] = None,
    expand: Optional[str] = None,
    search: Optional[str] = None,
    count: bool = False,
) -> Dict[str, str]:
    """
    OData 쿼리 파라미터 딕셔너리 생성

    None이거나 빈 값은 포함하지 않습니다.
    """
    params: Dict[str, str] = {}

    if top is not None:
        params["$top"] = str(top)
    if skip:
        params["$skip"] = str(skip)
    if select:
        params["$select"] = ",".join(select)
    if filter_expr:
        params["$filter"] = filter_expr
    if order_by:
        formatted = format_order_by(order_by)
        if formatted:
            params["$orderby"] = formatted
    if expand:
        params["$expand"] = expand
    if search:
        # Graph는 $search 값을 따옴표로 감싸야 함
        params["$search"] = search if search.startswith('"') else f'"{search}"'
    if count:
        params["$count"] = "true"

    return params


class GraphApiClient:
    """
    사용자 단위 Graph API 클라이언트

    session을 주입하지 않으면 요청마다 aiohttp.ClientSession을 생성/종료합니다.
    """

    def __init__(
        self,
        user_id: str = "default",
        token_provider: Optional[TokenProviderProtocol] = None,
        base_url: str = GRAPH_BASE_URL,
        timeout: int = 30,
        max_retries: int = 2,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.user_id = user_id
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_retries = max_retries
        self._session = session

    def _build_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _get_headers(self) -> Dict[str, str]:
        if self.token_provider is None:
            raise GraphApiError(401, message="No token provider configured")

        access_token = await self.token_provider.validate_and_refresh_token(self.user_id)
        if not access_token:
            raise GraphApiError(
                401,
                message=f"No valid access token for user '{self.user_id}'. Please authenticate first."
            )

        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, Any]],
        body: Optional[Dict[str, Any]],
    ):
        async with session.request(
            method, url, headers=headers, params=params, json=body
        ) as response:
            text = await response.text()
            return response.status, text, response.headers.get("Retry-After")

    async def _request_once(self, method, url, headers, params, body):
        if self._session is not None:
            return await self._send(self._session, method, url, headers, params, body)
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            return await self._send(session, method, url, headers, params, body)

    def _retry_delay(self, attempt: int, retry_after: Optional[str]) -> float:
        if retry_after:
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                pass
        return RETRY_BACKOFF_SECONDS * (2 ** attempt)

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Graph API 요청 실행

        Args:
            method: HTTP 메서드
            path: base_url 기준 상대 경로 또는 절대 URL(@odata.nextLink)
            params: 쿼리 파라미터
            body: JSON 본문

        Returns:
            파싱된 JSON 응답 (204 / 빈 본문이면 {})

        Raises:
            GraphApiError: non-2xx 응답 또는 네트워크 재시도 소진
        """
        url = self._build_url(path)
        headers = await self._get_headers()

        attempt = 0
        while True:
            try:
                status, text, retry_after = await self._request_once(method, url, headers, params, body)
            except aiohttp.ClientError as e:
                if attempt >= self.max_retries:
                    logger.error(f"❌ {method} {url} failed after {attempt + 1} attempts: {e}")
                    raise GraphApiError(None, message=f"Network error: {e}") from e
                delay = self._retry_delay(attempt, None)
                logger.warning(f"{method} {url} network error ({e}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                attempt += 1
                continue

            if status in RETRYABLE_STATUS and attempt < self.max_retries:
                delay = self._retry_delay(attempt, retry_after)
                logger.warning(f"{method} {url} returned {status}, retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                attempt += 1
                continue

            break

        try:
            data = json.loads(text) if text else {}
        except ValueError:
            data = text

        if 200 <= status < 300:
            logger.debug(f"{method} {url} -> {status}")
            return data if isinstance(data, dict) else {"value": data}

        logger.error(f"❌ {method} {url} -> {status}")
        raise GraphApiError(status, data)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("POST", path, body=body)

    async def patch(self, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("PATCH", path, body=body)

    async def delete(self, path: str) -> Dict[str, Any]:
        return await self.request("DELETE", path)

    async def get_all(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        max_pages: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        @odata.nextLink를 따라가며 모든 페이지의 value 항목을 수집

        Args:
            path: 첫 페이지 경로
            params: 첫 페이지 쿼리 파라미터 (nextLink에는 이미 포함됨)
            max_pages: 최대 페이지 수 (None이면 제한 없음)
        """
        items: List[Dict[str, Any]] = []
        url: Optional[str] = path
        page_params = params
        pages = 0

        while url:
            data = await self.get(url, page_params)
            items.extend(data.get("value", []))
            pages += 1

            if max_pages and pages >= max_pages:
                break

            url = data.get("@odata.nextLink")
            page_params = None

        return items

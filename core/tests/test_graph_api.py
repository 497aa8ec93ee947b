"""
Graph API Client 테스트

aiohttp 세션 대신 응답을 순서대로 돌려주는 FakeSession을 주입합니다.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from core.graph_api import GraphApiClient, GraphApiError, build_query_params, format_order_by


class FakeResponse:
    def __init__(self, status, body=None, headers=None):
        self.status = status
        self._text = body if isinstance(body, str) else (json.dumps(body) if body is not None else "")
        self.headers = headers or {}

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """request() 호출을 기록하고 미리 준비한 응답(또는 예외)을 차례로 반환"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, headers=None, params=None, json=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "params": params, "json": json})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def token_provider(token="access-token"):
    provider = MagicMock()
    provider.validate_and_refresh_token = AsyncMock(return_value=token)
    return provider


def make_client(*responses, token="access-token", max_retries=2):
    session = FakeSession(*responses)
    client = GraphApiClient(
        user_id="kimghw",
        token_provider=token_provider(token),
        max_retries=max_retries,
        session=session,
    )
    return client, session


class TestQueryParams:

    def test_format_order_by(self):
        assert format_order_by("receivedDateTime desc") == "receivedDateTime desc"
        assert format_order_by({"displayName": "asc"}) == "displayName asc"
        assert format_order_by({"a": "DESC", "b": "sideways"}) == "a desc, b asc"
        assert format_order_by(["a desc", {"b": "asc"}]) == "a desc, b asc"

    def test_format_order_by_rejects_other_types(self):
        with pytest.raises(ValueError):
            format_order_by(42)

    def test_build_query_params(self):
        params = build_query_params(
            top=10,
            select=["id", "subject"],
            filter_expr="isRead eq false",
            order_by={"receivedDateTime": "desc"},
            search="invoice",
        )

        assert params == {
            "$top": "10",
            "$select": "id,subject",
            "$filter": "isRead eq false",
            "$orderby": "receivedDateTime desc",
            "$search": '"invoice"',
        }

    def test_empty_values_are_skipped(self):
        assert build_query_params() == {}
        assert build_query_params(skip=0, select=[], order_by="") == {}
        assert build_query_params(count=True) == {"$count": "true"}


class TestRequest:

    @pytest.mark.asyncio
    async def test_get_sends_bearer_token(self):
        client, session = make_client(FakeResponse(200, {"value": [{"id": "1"}]}))

        result = await client.get("/me/messages", {"$top": "1"})

        assert result == {"value": [{"id": "1"}]}
        call = session.calls[0]
        assert call["method"] == "GET"
        assert call["url"] == "https://graph.microsoft.com/v1.0/me/messages"
        assert call["headers"]["Authorization"] == "Bearer access-token"
        assert call["params"] == {"$top": "1"}
        client.token_provider.validate_and_refresh_token.assert_awaited_with("kimghw")

    @pytest.mark.asyncio
    async def test_no_content_returns_empty_dict(self):
        client, session = make_client(FakeResponse(204))
        assert await client.delete("/me/events/1") == {}
        assert session.calls[0]["method"] == "DELETE"

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self):
        client, session = make_client(FakeResponse(202))
        await client.post("/me/sendMail", {"message": {"subject": "Hi"}})
        assert session.calls[0]["json"] == {"message": {"subject": "Hi"}}

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client, _ = make_client(FakeResponse(404, {"error": {"code": "ErrorItemNotFound", "message": "Not found"}}))

        with pytest.raises(GraphApiError) as exc_info:
            await client.get("/me/messages/missing")

        assert exc_info.value.status == 404
        assert "Not found" in exc_info.value.message
        assert exc_info.value.to_dict()["http_status"] == 404

    @pytest.mark.asyncio
    async def test_missing_token_raises_401(self):
        client, session = make_client(FakeResponse(200, {}), token=None)

        with pytest.raises(GraphApiError) as exc_info:
            await client.get("/me")

        assert exc_info.value.status == 401
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_no_token_provider(self):
        client = GraphApiClient(session=FakeSession())
        with pytest.raises(GraphApiError):
            await client.get("/me")

    @pytest.mark.asyncio
    async def test_absolute_url_is_used_as_is(self):
        client, session = make_client(FakeResponse(200, {}))
        await client.get("https://graph.microsoft.com/v1.0/me/messages?$skip=10")
        assert session.calls[0]["url"] == "https://graph.microsoft.com/v1.0/me/messages?$skip=10"


class TestRetry:

    @pytest.mark.asyncio
    async def test_retry_after_on_429(self):
        client, session = make_client(
            FakeResponse(429, {"error": {"message": "throttled"}}, headers={"Retry-After": "3"}),
            FakeResponse(200, {"id": "1"}),
        )

        with patch("core.graph_api.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await client.get("/me/messages/1")

        assert result == {"id": "1"}
        assert len(session.calls) == 2
        sleep.assert_awaited_once_with(3.0)

    @pytest.mark.asyncio
    async def test_exponential_backoff_then_error(self):
        client, session = make_client(
            FakeResponse(503),
            FakeResponse(503),
            FakeResponse(503),
            max_retries=2,
        )

        with patch("core.graph_api.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(GraphApiError) as exc_info:
                await client.get("/me")

        assert exc_info.value.status == 503
        assert len(session.calls) == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_network_error_retries(self):
        client, session = make_client(
            aiohttp.ClientConnectionError("reset"),
            FakeResponse(200, {"ok": True}),
        )

        with patch("core.graph_api.asyncio.sleep", new=AsyncMock()):
            assert await client.get("/me") == {"ok": True}
        assert len(session.calls) == 2

    @pytest.mark.asyncio
    async def test_network_error_exhausted(self):
        client, _ = make_client(aiohttp.ClientConnectionError("reset"), max_retries=0)

        with pytest.raises(GraphApiError) as exc_info:
            await client.get("/me")

        assert exc_info.value.status is None
        assert "Network error" in exc_info.value.message


class TestGetAll:

    @pytest.mark.asyncio
    async def test_follows_next_link(self):
        next_link = "https://graph.microsoft.com/v1.0/me/messages?$skiptoken=abc"
        client, session = make_client(
            FakeResponse(200, {"value": [{"id": "1"}, {"id": "2"}], "@odata.nextLink": next_link}),
            FakeResponse(200, {"value": [{"id": "3"}]}),
        )

        items = await client.get_all("/me/messages", {"$top": "2"})

        assert [i["id"] for i in items] == ["1", "2", "3"]
        assert session.calls[1]["url"] == next_link
        assert session.calls[1]["params"] is None

    @pytest.mark.asyncio
    async def test_max_pages(self):
        client, session = make_client(
            FakeResponse(200, {"value": [{"id": "1"}], "@odata.nextLink": "https://graph.microsoft.com/v1.0/next"}),
        )

        items = await client.get_all("/me/messages", max_pages=1)

        assert items == [{"id": "1"}]
        assert len(session.calls) == 1

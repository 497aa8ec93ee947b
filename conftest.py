"""
테스트 공통 Fixtures

Graph API 호출은 모두 AsyncMock으로 대체하며, 네트워크에 접근하지 않습니다.
"""

import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# 프로젝트 경로 추가
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


@pytest.fixture
def mock_graph_client():
    """get/post/patch/delete/get_all이 AsyncMock인 Graph 클라이언트"""
    client = MagicMock()
    client.get = AsyncMock(return_value={"value": []})
    client.post = AsyncMock(return_value={})
    client.patch = AsyncMock(return_value={})
    client.delete = AsyncMock(return_value={})
    client.get_all = AsyncMock(return_value=[])
    return client


@pytest.fixture
def graph_client_factory(mock_graph_client):
    """user_id와 무관하게 mock_graph_client를 반환하는 팩토리 (호출 기록 포함)"""
    return MagicMock(return_value=mock_graph_client)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "database" / "auth.db")


@pytest.fixture
def sample_message():
    """테스트용 Graph 메일 객체"""
    return {
        "id": "AAMkADU2MGM5YzRjLTE4NmI",
        "subject": "테스트 메일 제목",
        "receivedDateTime": "2025-01-09T10:30:00Z",
        "from": {"emailAddress": {"name": "Test Sender", "address": "sender@example.com"}},
        "toRecipients": [
            {"emailAddress": {"name": "Test Recipient", "address": "recipient@example.com"}}
        ],
        "body": {"contentType": "html", "content": "<p>This is a test email body.</p>"},
        "bodyPreview": "This is a test email body.",
        "isRead": False,
        "hasAttachments": False,
        "importance": "normal",
    }

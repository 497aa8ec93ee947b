"""
MailService 테스트
"""

import pytest

from core.graph_api import GraphApiError
from mcp_mail.mail_service import MailService, format_message_summary


class TestListEmails:

    @pytest.mark.asyncio
    async def test_defaults(self, graph_client_factory, mock_graph_client, sample_message):
        mock_graph_client.get.return_value = {
            "value": [sample_message],
            "@odata.nextLink": "https://graph.microsoft.com/v1.0/me/messages?$skip=25",
        }

        result = await MailService(graph_client_factory).list_emails({})

        endpoint, query = mock_graph_client.get.call_args.args
        assert endpoint == "/me/messages"
        assert query["$top"] == "25"
        assert query["$orderby"] == "receivedDateTime desc"
        assert "$filter" not in query
        assert result["hasMore"] is True
        assert result["emails"][0]["from"] == {"name": "Test Sender", "email": "sender@example.com"}

    @pytest.mark.asyncio
    async def test_folder_unread_and_filter(self, graph_client_factory, mock_graph_client):
        await MailService(graph_client_factory).list_emails({
            "folderId": "inbox",
            "unreadOnly": True,
            "filter": "importance eq 'high'",
            "limit": 5000,
        })

        endpoint, query = mock_graph_client.get.call_args.args
        assert endpoint == "/me/mailFolders/inbox/messages"
        assert query["$filter"] == "(importance eq 'high') and (isRead eq false)"
        assert query["$top"] == "1000"

    @pytest.mark.asyncio
    async def test_search_disables_order_by(self, graph_client_factory, mock_graph_client):
        await MailService(graph_client_factory).list_emails({"search": "invoice", "orderBy": "subject asc"})

        _, query = mock_graph_client.get.call_args.args
        assert query["$search"] == '"invoice"'
        assert "$orderby" not in query

    @pytest.mark.asyncio
    async def test_graph_error(self, graph_client_factory, mock_graph_client):
        mock_graph_client.get.side_effect = GraphApiError(401, message="No valid access token")

        result = await MailService(graph_client_factory).list_emails({})

        assert result == {"status": "error", "message": "Failed to list emails: No valid access token"}


class TestReadEmail:

    @pytest.mark.asyncio
    async def test_read(self, graph_client_factory, mock_graph_client, sample_message):
        mock_graph_client.get.return_value = sample_message

        result = await MailService(graph_client_factory).read_email({"emailId": sample_message["id"]})

        assert mock_graph_client.get.call_args.args[0] == f"/me/messages/{sample_message['id']}"
        email = result["email"]
        assert email["to"] == [{"name": "Test Recipient", "email": "recipient@example.com"}]
        assert email["cc"] == []
        assert email["bodyType"] == "html"
        assert email["body"] == "<p>This is a test email body.</p>"

    @pytest.mark.asyncio
    async def test_requires_id(self, graph_client_factory):
        assert (await MailService(graph_client_factory).read_email({}))["status"] == "error"


class TestSendEmail:

    @pytest.mark.asyncio
    async def test_send(self, graph_client_factory, mock_graph_client):
        result = await MailService(graph_client_factory).send_email({
            "to": "a@example.com; Kim <kim@example.com>",
            "cc": [{"email": "c@example.com", "name": "C"}],
            "subject": "Hello",
            "body": "Hi",
        })

        endpoint, payload = mock_graph_client.post.call_args.args
        assert endpoint == "/me/sendMail"
        assert payload["saveToSentItems"] is True
        message = payload["message"]
        assert message["body"] == {"contentType": "HTML", "content": "Hi"}
        assert message["importance"] == "normal"
        assert message["ccRecipients"] == [{"emailAddress": {"name": "C", "address": "c@example.com"}}]
        assert "bccRecipients" not in message
        assert result["recipients"] == ["a@example.com", "kim@example.com"]

    @pytest.mark.asyncio
    async def test_save_to_sent_items_false(self, graph_client_factory, mock_graph_client):
        await MailService(graph_client_factory).send_email({
            "to": ["a@example.com"], "subject": "S", "saveToSentItems": False, "bodyType": "Text",
        })

        payload = mock_graph_client.post.call_args.args[1]
        assert payload["saveToSentItems"] is False
        assert payload["message"]["body"]["contentType"] == "Text"

    @pytest.mark.asyncio
    async def test_requires_recipient_and_subject(self, graph_client_factory, mock_graph_client):
        service = MailService(graph_client_factory)
        assert (await service.send_email({"to": [], "subject": "S"}))["status"] == "error"
        assert (await service.send_email({"to": "a@example.com"}))["status"] == "error"
        mock_graph_client.post.assert_not_awaited()


class TestMarkAsRead:

    @pytest.mark.asyncio
    async def test_mark_unread_with_partial_failure(self, graph_client_factory, mock_graph_client):
        mock_graph_client.patch.side_effect = [{}, GraphApiError(404)]

        result = await MailService(graph_client_factory).mark_as_read({"emailIds": "m1,m2", "isRead": False})

        mock_graph_client.patch.assert_any_await("/me/messages/m1", {"isRead": False})
        assert result["status"] == "partial"
        assert result["results"]["success"] == ["m1"]
        assert result["results"]["failed"][0]["id"] == "m2"

    @pytest.mark.asyncio
    async def test_defaults_to_read(self, graph_client_factory, mock_graph_client):
        result = await MailService(graph_client_factory).mark_as_read({"emailIds": ["m1"]})

        mock_graph_client.patch.assert_awaited_once_with("/me/messages/m1", {"isRead": True})
        assert result["status"] == "success"


def test_format_message_summary_without_sender():
    summary = format_message_summary({"id": "1"})
    assert summary["subject"] == "(No Subject)"
    assert summary["from"] is None

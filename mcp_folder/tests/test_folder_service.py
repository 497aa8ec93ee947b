"""
FolderService 테스트
"""

import pytest

from core.graph_api import GraphApiError
from mcp_folder.folder_service import FolderService, RECENT_MESSAGES_EXPAND


class TestFolderQueries:

    @pytest.mark.asyncio
    async def test_list_root_folders(self, graph_client_factory, mock_graph_client):
        mock_graph_client.get.return_value = {"value": [
            {"id": "f1", "displayName": "Inbox", "parentFolderId": "root-id",
             "childFolderCount": 1, "totalItemCount": 10, "unreadItemCount": 2},
        ]}
        service = FolderService(graph_client_factory)

        result = await service.list_folders({})

        endpoint, query = mock_graph_client.get.call_args.args
        assert endpoint == "/me/mailFolders"
        assert query["$top"] == "100"
        assert query["$orderby"] == "displayName asc"
        assert result["parentFolderId"] == "root"
        assert result["folders"] == [{
            "id": "f1", "name": "Inbox", "parentFolderId": "root-id",
            "childFolderCount": 1, "itemCount": 10, "unreadItemCount": 2,
        }]

    @pytest.mark.asyncio
    async def test_list_child_folders_with_order(self, graph_client_factory, mock_graph_client):
        service = FolderService(graph_client_factory)

        result = await service.list_folders({
            "parentFolderId": "p1",
            "orderBy": [{"totalItemCount": "desc"}, "displayName asc"],
            "userId": "kimghw",
        })

        endpoint, query = mock_graph_client.get.call_args.args
        assert endpoint == "/me/mailFolders/p1/childFolders"
        assert query["$orderby"] == "totalItemCount desc, displayName asc"
        assert result["count"] == 0
        graph_client_factory.assert_called_with("kimghw")

    @pytest.mark.asyncio
    async def test_list_folders_graph_error(self, graph_client_factory, mock_graph_client):
        mock_graph_client.get.side_effect = GraphApiError(500, {"error": {"message": "down"}})

        result = await FolderService(graph_client_factory).list_folders({})

        assert result["status"] == "error"
        assert "down" in result["message"]

    @pytest.mark.asyncio
    async def test_get_folder_well_known_name(self, graph_client_factory, mock_graph_client, sample_message):
        mock_graph_client.get.return_value = {
            "id": "inbox-id",
            "displayName": "Inbox",
            "wellKnownName": "inbox",
            "childFolders": [{"id": "c1", "displayName": "Reports", "parentFolderId": "inbox-id"}],
            "messages": [sample_message],
        }

        result = await FolderService(graph_client_factory).get_folder({"folderId": "Inbox"})

        endpoint, query = mock_graph_client.get.call_args.args
        assert endpoint == "/me/mailFolders/inbox"
        assert query == {"$expand": RECENT_MESSAGES_EXPAND}
        folder = result["folder"]
        assert folder["childFolders"][0]["name"] == "Reports"
        assert "parentFolderId" not in folder["childFolders"][0]
        assert folder["recentMessages"][0]["sender"] == {"name": "Test Sender", "email": "sender@example.com"}

    @pytest.mark.asyncio
    async def test_get_folder_requires_id(self, graph_client_factory):
        result = await FolderService(graph_client_factory).get_folder({})
        assert result == {"status": "error", "message": "Folder ID is required"}


class TestFolderChanges:

    @pytest.mark.asyncio
    async def test_create_folder(self, graph_client_factory, mock_graph_client):
        mock_graph_client.post.return_value = {"id": "new", "displayName": "Projects"}

        result = await FolderService(graph_client_factory).create_folder({"name": "Projects", "parentFolderId": "inbox"})

        mock_graph_client.post.assert_awaited_once_with("/me/mailFolders/inbox/childFolders", {"displayName": "Projects"})
        assert result["folder"]["id"] == "new"

    @pytest.mark.asyncio
    async def test_update_and_delete_folder(self, graph_client_factory, mock_graph_client):
        service = FolderService(graph_client_factory)

        assert (await service.update_folder({"folderId": "f1"}))["status"] == "error"
        await service.update_folder({"folderId": "f1", "name": "Renamed"})
        mock_graph_client.patch.assert_awaited_once_with("/me/mailFolders/f1", {"displayName": "Renamed"})

        result = await service.delete_folder({"folderId": "f1"})
        mock_graph_client.delete.assert_awaited_once_with("/me/mailFolders/f1")
        assert result["folderId"] == "f1"


class TestTransferEmails:

    @pytest.mark.asyncio
    async def test_move_emails_comma_separated(self, graph_client_factory, mock_graph_client):
        result = await FolderService(graph_client_factory).move_emails({
            "emailIds": "m1, m2",
            "destinationFolderId": "archive",
        })

        assert result["status"] == "success"
        assert result["results"]["success"] == ["m1", "m2"]
        mock_graph_client.post.assert_any_await("/me/messages/m2/move", {"destinationId": "archive"})

    @pytest.mark.asyncio
    async def test_copy_emails_partial_failure(self, graph_client_factory, mock_graph_client):
        mock_graph_client.post.side_effect = [{}, GraphApiError(404, {"error": {"message": "missing"}})]

        result = await FolderService(graph_client_factory).copy_emails({
            "emailIds": ["m1", "m2"],
            "destinationFolderId": "archive",
        })

        assert result["status"] == "partial"
        assert result["message"] == "Copied 1 of 2 emails to folder"
        assert result["results"]["failed"][0]["id"] == "m2"
        assert mock_graph_client.post.await_args_list[0].args[0] == "/me/messages/m1/copy"

    @pytest.mark.asyncio
    async def test_transfer_requires_ids_and_destination(self, graph_client_factory):
        service = FolderService(graph_client_factory)
        assert (await service.move_emails({"destinationFolderId": "x"}))["status"] == "error"
        assert (await service.move_emails({"emailIds": ["m1"]}))["status"] == "error"


class TestMoveFolder:

    @pytest.mark.asyncio
    async def test_moves_messages_and_nested_folders(self, graph_client_factory, mock_graph_client):
        """메일과 하위 폴더를 재귀적으로 옮기고 원본을 삭제"""
        mock_graph_client.get.side_effect = [
            {"displayName": "Projects"},
            {"id": "archive"},
        ]
        pages = {
            "/me/mailFolders/src/messages": [{"id": "m1"}, {"id": "m2"}],
            "/me/mailFolders/src/childFolders": [{"id": "child", "displayName": "2024"}],
            "/me/mailFolders/child/messages": [{"id": "m3"}],
            "/me/mailFolders/child/childFolders": [],
        }
        mock_graph_client.get_all.side_effect = lambda path, params=None: pages[path]
        created = iter([{"id": "new-root"}, {"id": "new-child"}])

        async def post(path, body=None):
            if path.endswith("/childFolders"):
                return next(created)
            return {}

        mock_graph_client.post.side_effect = post

        result = await FolderService(graph_client_factory).move_folder({
            "folderId": "src",
            "destinationFolderId": "archive",
        })

        assert result["status"] == "success"
        assert result["newFolderId"] == "new-root"
        assert result["movedMessageCount"] == 3
        assert result["movedChildFolderCount"] == 1
        mock_graph_client.post.assert_any_await("/me/mailFolders/archive/childFolders", {"displayName": "Projects"})
        mock_graph_client.post.assert_any_await("/me/mailFolders/new-root/childFolders", {"displayName": "2024"})
        mock_graph_client.post.assert_any_await("/me/messages/m3/move", {"destinationId": "new-child"})
        mock_graph_client.delete.assert_awaited_once_with("/me/mailFolders/src")

    @pytest.mark.asyncio
    async def test_cannot_move_into_itself(self, graph_client_factory, mock_graph_client):
        result = await FolderService(graph_client_factory).move_folder({"folderId": "a", "destinationFolderId": "a"})

        assert result["status"] == "error"
        mock_graph_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_keeps_source(self, graph_client_factory, mock_graph_client):
        mock_graph_client.get.side_effect = [{"displayName": "Projects"}, GraphApiError(404)]

        result = await FolderService(graph_client_factory).move_folder({"folderId": "src", "destinationFolderId": "x"})

        assert result["status"] == "error"
        mock_graph_client.delete.assert_not_awaited()

"""
Folder Service - 메일 폴더 조회/생성/수정/삭제/이동

Graph API 엔드포인트:
    /me/mailFolders                      최상위 폴더
    /me/mailFolders/{id}/childFolders    하위 폴더
    /me/messages/{id}/move | copy        메일 이동/복사
"""

import logging
from typing import Any, Callable, Dict, List

import aiohttp

from core.graph_api import GraphApiError, build_query_params
from core.graph_format import simplify_recipient
from core.protocols import GraphClientProtocol

logger = logging.getLogger(__name__)

WELL_KNOWN_FOLDERS = {"inbox", "drafts", "sentitems", "deleteditems"}
FOLDER_SELECT = ["id", "displayName", "parentFolderId", "childFolderCount", "totalItemCount", "unreadItemCount"]
RECENT_MESSAGES_EXPAND = (
    "childFolders,"
    "messages($top=5;$orderby=receivedDateTime desc;$select=id,subject,from,receivedDateTime,isRead)"
)
PAGE_SIZE = 100

RemoteErrors = (GraphApiError, aiohttp.ClientError)


def _split_ids(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [v for v in value if v]


def _format_folder(folder: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": folder.get("id"),
        "name": folder.get("displayName"),
        "parentFolderId": folder.get("parentFolderId"),
        "childFolderCount": folder.get("childFolderCount"),
        "itemCount": folder.get("totalItemCount"),
        "unreadItemCount": folder.get("unreadItemCount"),
    }


class FolderService:
    """메일 폴더 서비스"""

    def __init__(self, graph_client_factory: Callable[[str], GraphClientProtocol]):
        """
        Args:
            graph_client_factory: user_id -> Graph API 클라이언트
        """
        self.graph_client_factory = graph_client_factory

    def _client(self, params: Dict[str, Any]):
        user_id = params.get("userId") or "default"
        return user_id, self.graph_client_factory(user_id)

    async def list_folders(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """폴더 목록 조회 (parentFolderId가 있으면 하위 폴더)"""
        user_id, client = self._client(params)
        parent_folder_id = params.get("parentFolderId")
        endpoint = (
            f"/me/mailFolders/{parent_folder_id}/childFolders"
            if parent_folder_id else "/me/mailFolders"
        )

        query = build_query_params(
            top=params.get("limit") or 100,
            select=FOLDER_SELECT,
            filter_expr=params.get("filter"),
            order_by=params.get("orderBy") or {"displayName": "asc"},
        )

        try:
            logger.info(f"Listing mail folders for user {user_id}")
            response = await client.get(endpoint, query)
        except RemoteErrors as e:
            logger.error(f"Error listing folders: {e}")
            return {"status": "error", "message": f"Failed to list folders: {e}"}

        if "value" not in response:
            return {"status": "error", "message": "Failed to retrieve folders"}

        folders = [_format_folder(f) for f in response["value"]]
        return {
            "status": "success",
            "count": len(folders),
            "parentFolderId": parent_folder_id or "root",
            "folders": folders,
        }

    async def get_folder(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """폴더 상세 조회 (하위 폴더, 최근 메일 5개 포함)"""
        folder_id = params.get("folderId")
        if not folder_id:
            return {"status": "error", "message": "Folder ID is required"}

        user_id, client = self._client(params)
        if folder_id.lower() in WELL_KNOWN_FOLDERS:
            folder_id = folder_id.lower()

        try:
            logger.info(f"Getting folder {folder_id} for user {user_id}")
            folder = await client.get(f"/me/mailFolders/{folder_id}", {"$expand": RECENT_MESSAGES_EXPAND})
        except RemoteErrors as e:
            logger.error(f"Error getting folder: {e}")
            return {"status": "error", "message": f"Failed to get folder: {e}"}

        if not folder:
            return {"status": "error", "message": f"Folder not found with ID: {folder_id}"}

        child_folders = []
        for child in folder.get("childFolders") or []:
            formatted = _format_folder(child)
            formatted.pop("parentFolderId")
            child_folders.append(formatted)

        recent_messages = [
            {
                "id": message.get("id"),
                "subject": message.get("subject") or "(No Subject)",
                "sender": simplify_recipient(message["from"]) if message.get("from") else None,
                "receivedDateTime": message.get("receivedDateTime"),
                "isRead": message.get("isRead"),
            }
            for message in folder.get("messages") or []
        ]

        folder_info = _format_folder(folder)
        folder_info.update({
            "wellKnownName": folder.get("wellKnownName"),
            "childFolders": child_folders,
            "recentMessages": recent_messages,
        })
        return {"status": "success", "folder": folder_info}

    async def create_folder(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not name:
            return {"status": "error", "message": "Folder name is required"}

        user_id, client = self._client(params)
        parent_folder_id = params.get("parentFolderId")
        endpoint = (
            f"/me/mailFolders/{parent_folder_id}/childFolders"
            if parent_folder_id else "/me/mailFolders"
        )

        try:
            logger.info(f"Creating folder \"{name}\" for user {user_id}")
            folder = await client.post(endpoint, {"displayName": name})
        except RemoteErrors as e:
            logger.error(f"Error creating folder: {e}")
            return {"status": "error", "message": f"Failed to create folder: {e}"}

        return {
            "status": "success",
            "message": "Folder created successfully",
            "folder": _format_folder(folder),
        }

    async def update_folder(self, params: Dict[str, Any]) -> Dict[str, Any]:
        folder_id = params.get("folderId")
        name = params.get("name")
        if not folder_id:
            return {"status": "error", "message": "Folder ID is required"}
        if not name:
            return {"status": "error", "message": "New folder name is required"}

        user_id, client = self._client(params)
        try:
            logger.info(f"Renaming folder {folder_id} to \"{name}\" for user {user_id}")
            folder = await client.patch(f"/me/mailFolders/{folder_id}", {"displayName": name})
        except RemoteErrors as e:
            logger.error(f"Error updating folder: {e}")
            return {"status": "error", "message": f"Failed to update folder: {e}"}

        return {
            "status": "success",
            "message": "Folder updated successfully",
            "folder": _format_folder(folder),
        }

    async def delete_folder(self, params: Dict[str, Any]) -> Dict[str, Any]:
        folder_id = params.get("folderId")
        if not folder_id:
            return {"status": "error", "message": "Folder ID is required"}

        user_id, client = self._client(params)
        try:
            logger.info(f"Deleting folder {folder_id} for user {user_id}")
            await client.delete(f"/me/mailFolders/{folder_id}")
        except RemoteErrors as e:
            logger.error(f"Error deleting folder: {e}")
            return {"status": "error", "message": f"Failed to delete folder: {e}"}

        return {"status": "success", "message": "Folder deleted successfully", "folderId": folder_id}

    async def _transfer_emails(self, params: Dict[str, Any], action: str) -> Dict[str, Any]:
        """move_emails / copy_emails 공통 처리 - 메일별 성공/실패 기록"""
        email_ids = _split_ids(params.get("emailIds"))
        destination_folder_id = params.get("destinationFolderId")
        verb, past = ("Moving", "Moved") if action == "move" else ("Copying", "Copied")

        if not email_ids:
            return {"status": "error", "message": "At least one email ID is required"}
        if not destination_folder_id:
            return {"status": "error", "message": "Destination folder ID is required"}

        user_id, client = self._client(params)
        logger.info(f"{verb} {len(email_ids)} emails to folder {destination_folder_id} for user {user_id}")

        results = {"success": [], "failed": []}
        for email_id in email_ids:
            try:
                await client.post(f"/me/messages/{email_id}/{action}", {"destinationId": destination_folder_id})
                results["success"].append(email_id)
            except RemoteErrors as e:
                logger.error(f"Error {verb.lower()} email {email_id}: {e}")
                results["failed"].append({"id": email_id, "error": str(e)})

        return {
            "status": "success" if not results["failed"] else "partial",
            "message": f"{past} {len(results['success'])} of {len(email_ids)} emails to folder",
            "destinationFolderId": destination_folder_id,
            "results": results,
        }

    async def move_emails(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._transfer_emails(params, "move")

    async def copy_emails(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._transfer_emails(params, "copy")

    async def _move_folder_contents(
        self,
        client: GraphClientProtocol,
        source_id: str,
        target_id: str,
        stats: Dict[str, int],
    ):
        """source 폴더의 메일과 모든 하위 폴더를 target 아래로 재귀 이동"""
        messages = await client.get_all(
            f"/me/mailFolders/{source_id}/messages",
            {"$select": "id", "$top": str(PAGE_SIZE)},
        )
        for message in messages:
            await client.post(f"/me/messages/{message['id']}/move", {"destinationId": target_id})
            stats["movedMessageCount"] += 1

        children = await client.get_all(
            f"/me/mailFolders/{source_id}/childFolders",
            {"$select": "id,displayName", "$top": str(PAGE_SIZE)},
        )
        for child in children:
            new_child = await client.post(
                f"/me/mailFolders/{target_id}/childFolders",
                {"displayName": child["displayName"]},
            )
            stats["movedChildFolderCount"] += 1
            await self._move_folder_contents(client, child["id"], new_child["id"], stats)

    async def move_folder(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        폴더 이동

        대상 폴더 아래에 같은 이름의 폴더를 만들고 메일과 하위 폴더를 옮긴 뒤 원본을 삭제합니다.
        """
        folder_id = params.get("folderId")
        destination_folder_id = params.get("destinationFolderId")

        if not folder_id:
            return {"status": "error", "message": "Folder ID is required"}
        if not destination_folder_id:
            return {"status": "error", "message": "Destination parent folder ID is required"}
        if folder_id == destination_folder_id:
            return {"status": "error", "message": "Cannot move a folder to itself"}

        user_id, client = self._client(params)
        stats = {"movedMessageCount": 0, "movedChildFolderCount": 0}

        try:
            logger.info(f"Moving folder {folder_id} to parent folder {destination_folder_id} for user {user_id}")

            folder = await client.get(f"/me/mailFolders/{folder_id}", {"$select": "displayName"})
            if not folder:
                return {"status": "error", "message": "Source folder not found"}

            destination = await client.get(f"/me/mailFolders/{destination_folder_id}", {"$select": "id"})
            if not destination:
                return {"status": "error", "message": "Destination folder not found"}

            new_folder = await client.post(
                f"/me/mailFolders/{destination_folder_id}/childFolders",
                {"displayName": folder.get("displayName")},
            )
            await self._move_folder_contents(client, folder_id, new_folder["id"], stats)
            await client.delete(f"/me/mailFolders/{folder_id}")
        except RemoteErrors as e:
            logger.error(f"Error moving folder: {e}")
            return {"status": "error", "message": f"Failed to move folder: {e}", **stats}

        return {
            "status": "success",
            "message": "Folder moved successfully",
            "newFolderId": new_folder["id"],
            **stats,
        }

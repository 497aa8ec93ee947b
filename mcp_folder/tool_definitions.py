"""
MCP Tool Definitions for mail folder tools
"""

from typing import List

from mcp_server.tool_registry import ORDER_BY_PROPERTY, ToolDescriptor, USER_ID_PROPERTY
from .folder_service import FolderService

EMAIL_IDS_PROPERTY = {
    "type": ["array", "string"],
    "items": {"type": "string"},
    "description": "Email ID(s): a list or a comma-separated string"
}

FOLDER_ID_PROPERTY = {
    "type": "string",
    "description": "Folder ID or well-known name (inbox, drafts, sentitems, deleteditems)"
}


def get_folder_tools(service: FolderService) -> List[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="list_folders",
            description="List mail folders, optionally under a parent folder",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "parentFolderId": {"type": "string", "description": "Parent folder ID (omit for top level)"},
                    "limit": {"type": "integer", "description": "Maximum number of folders (default 100)"},
                    "filter": {"type": "string", "description": "OData $filter expression"},
                    "orderBy": ORDER_BY_PROPERTY
                }
            },
            handler=service.list_folders,
        ),
        ToolDescriptor(
            name="get_folder",
            description="Get folder details with child folders and recent messages",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "folderId": FOLDER_ID_PROPERTY
                },
                "required": ["folderId"]
            },
            handler=service.get_folder,
        ),
        ToolDescriptor(
            name="create_folder",
            description="Create a mail folder",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "name": {"type": "string", "description": "Folder display name"},
                    "parentFolderId": {"type": "string", "description": "Parent folder ID (omit for top level)"}
                },
                "required": ["name"]
            },
            handler=service.create_folder,
        ),
        ToolDescriptor(
            name="update_folder",
            description="Rename a mail folder",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "folderId": FOLDER_ID_PROPERTY,
                    "name": {"type": "string", "description": "New display name"}
                },
                "required": ["folderId", "name"]
            },
            handler=service.update_folder,
        ),
        ToolDescriptor(
            name="delete_folder",
            description="Delete a mail folder",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "folderId": FOLDER_ID_PROPERTY
                },
                "required": ["folderId"]
            },
            handler=service.delete_folder,
        ),
        ToolDescriptor(
            name="move_emails",
            description="Move emails to another folder",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "emailIds": EMAIL_IDS_PROPERTY,
                    "destinationFolderId": {"type": "string", "description": "Destination folder ID"}
                },
                "required": ["emailIds", "destinationFolderId"]
            },
            handler=service.move_emails,
        ),
        ToolDescriptor(
            name="copy_emails",
            description="Copy emails to another folder",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "emailIds": EMAIL_IDS_PROPERTY,
                    "destinationFolderId": {"type": "string", "description": "Destination folder ID"}
                },
                "required": ["emailIds", "destinationFolderId"]
            },
            handler=service.copy_emails,
        ),
        ToolDescriptor(
            name="move_folder",
            description="Move a folder with its messages and subfolders under another folder",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "folderId": {"type": "string", "description": "Folder ID to move"},
                    "destinationFolderId": {"type": "string", "description": "New parent folder ID"}
                },
                "required": ["folderId", "destinationFolderId"]
            },
            handler=service.move_folder,
        ),
    ]

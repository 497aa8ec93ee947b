"""
MCP Tool Definitions for mail tools
"""

from typing import List

from mcp_server.tool_registry import ORDER_BY_PROPERTY, ToolDescriptor, USER_ID_PROPERTY
from .mail_service import MailService

RECIPIENTS_PROPERTY = {
    "type": ["string", "array"],
    "items": {"type": ["string", "object"]},
    "description": "Recipient(s): \"a@example.com\", \"Name <a@example.com>\", a comma-separated string, or a list"
}


def get_mail_tools(service: MailService) -> List[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="list_emails",
            description="List emails in a folder or across the mailbox",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "folderId": {"type": "string", "description": "Folder ID or well-known name (default: all messages)"},
                    "limit": {"type": "integer", "description": "Maximum number of emails (default 25)"},
                    "filter": {"type": "string", "description": "OData $filter expression"},
                    "search": {"type": "string", "description": "Search text (disables ordering)"},
                    "orderBy": ORDER_BY_PROPERTY,
                    "unreadOnly": {"type": "boolean", "description": "Only unread emails"}
                }
            },
            handler=service.list_emails,
        ),
        ToolDescriptor(
            name="read_email",
            description="Read an email including its body and recipients",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "emailId": {"type": "string", "description": "Email ID"}
                },
                "required": ["emailId"]
            },
            handler=service.read_email,
        ),
        ToolDescriptor(
            name="send_email",
            description="Send an email",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "to": RECIPIENTS_PROPERTY,
                    "cc": RECIPIENTS_PROPERTY,
                    "bcc": RECIPIENTS_PROPERTY,
                    "subject": {"type": "string", "description": "Email subject"},
                    "body": {"type": "string", "description": "Email body"},
                    "bodyType": {"type": "string", "enum": ["Text", "HTML"], "description": "Body content type (default HTML)"},
                    "importance": {"type": "string", "enum": ["low", "normal", "high"], "description": "Importance (default normal)"},
                    "saveToSentItems": {"type": "boolean", "description": "Save a copy in Sent Items (default true)"}
                },
                "required": ["to", "subject"]
            },
            handler=service.send_email,
        ),
        ToolDescriptor(
            name="mark_as_read",
            description="Mark emails as read or unread",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "emailIds": {
                        "type": ["array", "string"],
                        "items": {"type": "string"},
                        "description": "Email ID(s): a list or a comma-separated string"
                    },
                    "isRead": {"type": "boolean", "description": "true = read (default), false = unread"}
                },
                "required": ["emailIds"]
            },
            handler=service.mark_as_read,
        ),
    ]

"""
MCP Tool Definitions for authentication tools
"""

from typing import List

from mcp_server.tool_registry import ToolDescriptor, USER_ID_PROPERTY
from .auth_tools import AuthToolService

AUTHENTICATE_SCHEMA = {
    "type": "object",
    "properties": {
        "userId": USER_ID_PROPERTY,
        "scopes": {
            "type": ["array", "string"],
            "items": {"type": "string"},
            "description": "OAuth scopes to request (defaults to the configured scopes)"
        }
    }
}

USER_ONLY_SCHEMA = {
    "type": "object",
    "properties": {
        "userId": USER_ID_PROPERTY
    }
}

EMPTY_SCHEMA = {
    "type": "object",
    "properties": {}
}


def get_auth_tools(service: AuthToolService) -> List[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="authenticate",
            description="Start Microsoft account authentication and get the sign-in URL",
            parameter_schema=AUTHENTICATE_SCHEMA,
            handler=service.authenticate,
        ),
        ToolDescriptor(
            name="check_auth_status",
            description="Check whether a user is authenticated",
            parameter_schema=EMPTY_SCHEMA,
            handler=service.check_auth_status,
        ),
        ToolDescriptor(
            name="revoke_authentication",
            description="Remove the stored authentication for a user",
            parameter_schema=USER_ONLY_SCHEMA,
            handler=service.revoke_authentication,
        ),
        ToolDescriptor(
            name="list_authenticated_users",
            description="List users with stored authentication",
            parameter_schema=EMPTY_SCHEMA,
            handler=service.list_authenticated_users,
        ),
    ]

"""
MCP Tool Definitions for inbox rule tools
"""

from typing import List

from mcp_server.tool_registry import ToolDescriptor, USER_ID_PROPERTY
from .rules_service import RulesService

CONDITIONS_PROPERTY = {
    "type": "object",
    "description": (
        "Rule conditions, e.g. {\"fromAddresses\": \"boss@example.com\", \"subjectContains\": [\"urgent\"], "
        "\"hasAttachments\": true}"
    )
}

ACTIONS_PROPERTY = {
    "type": "object",
    "description": (
        "Rule actions, e.g. {\"moveToFolder\": \"<folderId>\", \"markAsRead\": true, "
        "\"assignCategories\": [\"Red\"], \"forwardTo\": \"a@example.com\"}"
    )
}

RULE_ID_PROPERTY = {"type": "string", "description": "Rule ID"}


def get_rules_tools(service: RulesService) -> List[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="list_rules",
            description="List inbox rules",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY
                }
            },
            handler=service.list_rules,
        ),
        ToolDescriptor(
            name="get_rule",
            description="Get an inbox rule",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "ruleId": RULE_ID_PROPERTY
                },
                "required": ["ruleId"]
            },
            handler=service.get_rule,
        ),
        ToolDescriptor(
            name="create_rule",
            description="Create an inbox rule",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "displayName": {"type": "string", "description": "Rule name"},
                    "sequence": {"type": "integer", "description": "Execution order (default 0)"},
                    "isEnabled": {"type": "boolean", "description": "Enable the rule (default true)"},
                    "conditions": CONDITIONS_PROPERTY,
                    "actions": ACTIONS_PROPERTY
                },
                "required": ["displayName", "conditions", "actions"]
            },
            handler=service.create_rule,
        ),
        ToolDescriptor(
            name="update_rule",
            description="Update an inbox rule",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "ruleId": RULE_ID_PROPERTY,
                    "displayName": {"type": "string", "description": "Rule name"},
                    "sequence": {"type": "integer", "description": "Execution order"},
                    "isEnabled": {"type": "boolean", "description": "Enable or disable the rule"},
                    "conditions": CONDITIONS_PROPERTY,
                    "actions": ACTIONS_PROPERTY
                },
                "required": ["ruleId"]
            },
            handler=service.update_rule,
        ),
        ToolDescriptor(
            name="delete_rule",
            description="Delete an inbox rule",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "ruleId": RULE_ID_PROPERTY
                },
                "required": ["ruleId"]
            },
            handler=service.delete_rule,
        ),
    ]

"""
Rules Service - 받은편지함 규칙 조회/생성/수정/삭제

Graph API 엔드포인트: /me/mailFolders/inbox/messageRules
"""

import logging
from typing import Any, Callable, Dict

import aiohttp

from core.graph_api import GraphApiError
from core.protocols import GraphClientProtocol
from .rule_format import format_rule_actions, format_rule_conditions, format_rule_response

logger = logging.getLogger(__name__)

RULES_ENDPOINT = "/me/mailFolders/inbox/messageRules"

RemoteErrors = (GraphApiError, aiohttp.ClientError)


class RulesService:
    """메일 규칙 서비스"""

    def __init__(self, graph_client_factory: Callable[[str], GraphClientProtocol]):
        self.graph_client_factory = graph_client_factory

    def _client(self, params: Dict[str, Any]):
        user_id = params.get("userId") or "default"
        return user_id, self.graph_client_factory(user_id)

    async def list_rules(self, params: Dict[str, Any]) -> Dict[str, Any]:
        user_id, client = self._client(params)
        try:
            logger.info(f"Listing mail rules for user {user_id}")
            response = await client.get(RULES_ENDPOINT)
        except RemoteErrors as e:
            logger.error(f"Error listing mail rules: {e}")
            return {"status": "error", "message": f"Failed to list mail rules: {e}"}

        if "value" not in response:
            return {"status": "error", "message": "Failed to retrieve mail rules"}

        rules = [format_rule_response(rule) for rule in response["value"]]
        return {"status": "success", "count": len(rules), "rules": rules}

    async def get_rule(self, params: Dict[str, Any]) -> Dict[str, Any]:
        rule_id = params.get("ruleId")
        if not rule_id:
            return {"status": "error", "message": "Rule ID is required"}

        user_id, client = self._client(params)
        try:
            logger.info(f"Getting mail rule {rule_id} for user {user_id}")
            rule = await client.get(f"{RULES_ENDPOINT}/{rule_id}")
        except RemoteErrors as e:
            logger.error(f"Error getting mail rule: {e}")
            return {"status": "error", "message": f"Failed to get mail rule: {e}"}

        if not rule:
            return {"status": "error", "message": f"Rule not found with ID: {rule_id}"}

        return {"status": "success", "rule": format_rule_response(rule)}

    async def create_rule(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """규칙 생성 - 조건과 동작이 각각 하나 이상 필요"""
        if not params.get("displayName"):
            return {"status": "error", "message": "Rule display name is required"}

        conditions = format_rule_conditions(params.get("conditions"))
        if not conditions:
            return {"status": "error", "message": "At least one condition is required for the rule"}

        actions = format_rule_actions(params.get("actions"))
        if not actions:
            return {"status": "error", "message": "At least one action is required for the rule"}

        user_id, client = self._client(params)
        rule_data = {
            "displayName": params["displayName"],
            "sequence": params.get("sequence") or 0,
            "isEnabled": params.get("isEnabled") is not False,
            "conditions": conditions,
            "actions": actions,
        }

        try:
            logger.info(f"Creating mail rule \"{params['displayName']}\" for user {user_id}")
            rule = await client.post(RULES_ENDPOINT, rule_data)
        except RemoteErrors as e:
            logger.error(f"Error creating mail rule: {e}")
            return {"status": "error", "message": f"Failed to create mail rule: {e}"}

        return {
            "status": "success",
            "message": "Rule created successfully",
            "ruleId": rule.get("id"),
            "displayName": rule.get("displayName"),
        }

    async def update_rule(self, params: Dict[str, Any]) -> Dict[str, Any]:
        rule_id = params.get("ruleId")
        if not rule_id:
            return {"status": "error", "message": "Rule ID is required"}

        update_data: Dict[str, Any] = {}
        if params.get("displayName"):
            update_data["displayName"] = params["displayName"]
        for key in ("sequence", "isEnabled"):
            if params.get(key) is not None:
                update_data[key] = params[key]
        if params.get("conditions"):
            update_data["conditions"] = format_rule_conditions(params["conditions"])
        if params.get("actions"):
            update_data["actions"] = format_rule_actions(params["actions"])

        if not update_data:
            return {"status": "error", "message": "Nothing to update"}

        user_id, client = self._client(params)
        try:
            logger.info(f"Updating mail rule {rule_id} for user {user_id}")
            await client.patch(f"{RULES_ENDPOINT}/{rule_id}", update_data)
        except RemoteErrors as e:
            logger.error(f"Error updating mail rule: {e}")
            return {"status": "error", "message": f"Failed to update mail rule: {e}"}

        return {"status": "success", "message": "Rule updated successfully", "ruleId": rule_id}

    async def delete_rule(self, params: Dict[str, Any]) -> Dict[str, Any]:
        rule_id = params.get("ruleId")
        if not rule_id:
            return {"status": "error", "message": "Rule ID is required"}

        user_id, client = self._client(params)
        try:
            logger.info(f"Deleting mail rule {rule_id} for user {user_id}")
            await client.delete(f"{RULES_ENDPOINT}/{rule_id}")
        except RemoteErrors as e:
            logger.error(f"Error deleting mail rule: {e}")
            return {"status": "error", "message": f"Failed to delete mail rule: {e}"}

        return {"status": "success", "message": "Rule deleted successfully", "ruleId": rule_id}

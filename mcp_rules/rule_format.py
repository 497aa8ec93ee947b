"""
Inbox rule 조건/동작 변환 테이블

키 종류별 규칙:
    LIST     문자열 하나도 리스트로 감쌈, 응답에서는 빈 리스트 제외
    ADDRESS  수신자 입력 -> Graph recipient 리스트, 응답에서는 {name, email}
    FLAG     None이 아니면 그대로 유지 (False 포함)
    VALUE    값이 있으면 그대로 유지
"""

from typing import Any, Dict

from core.graph_format import format_email_addresses, simplify_recipients

LIST = "list"
ADDRESS = "address"
FLAG = "flag"
VALUE = "value"

CONDITION_KEYS = {
    "bodyContains": LIST,
    "bodyOrSubjectContains": LIST,
    "categories": LIST,
    "fromAddresses": ADDRESS,
    "hasAttachments": FLAG,
    "headerContains": LIST,
    "importance": VALUE,
    "isApprovalRequest": FLAG,
    "isAutomaticForward": FLAG,
    "isAutomaticReply": FLAG,
    "isEncrypted": FLAG,
    "isMeetingRequest": FLAG,
    "isMeetingResponse": FLAG,
    "isReadReceipt": FLAG,
    "messageActionFlag": VALUE,
    "notSentToMe": FLAG,
    "recipientContains": LIST,
    "senderContains": LIST,
    "sensitivity": VALUE,
    "sentCcMe": FLAG,
    "sentOnlyToMe": FLAG,
    "sentToAddresses": ADDRESS,
    "sentToMe": FLAG,
    "sentToOrCcMe": FLAG,
    "subjectContains": LIST,
    "withinSizeRange": VALUE,
}

ACTION_KEYS = {
    "assignCategories": LIST,
    "copyToFolder": VALUE,
    "delete": FLAG,
    "forwardAsAttachmentTo": ADDRESS,
    "forwardTo": ADDRESS,
    "markAsRead": FLAG,
    "markImportance": VALUE,
    "moveToFolder": VALUE,
    "permanentDelete": FLAG,
    "redirectTo": ADDRESS,
    "stopProcessingRules": FLAG,
}


def _format_request(values: Dict[str, Any], table: Dict[str, str]) -> Dict[str, Any]:
    formatted = {}
    for key, kind in table.items():
        value = values.get(key)
        if kind == FLAG:
            if value is not None:
                formatted[key] = value
        elif not value:
            continue
        elif kind == LIST:
            formatted[key] = list(value) if isinstance(value, (list, tuple)) else [value]
        elif kind == ADDRESS:
            formatted[key] = format_email_addresses(value)
        else:
            formatted[key] = value
    return formatted


def _format_response(values: Dict[str, Any], table: Dict[str, str]) -> Dict[str, Any]:
    formatted = {}
    for key, kind in table.items():
        value = values.get(key)
        if kind == FLAG:
            if value is not None:
                formatted[key] = value
        elif not value:
            continue
        elif kind == ADDRESS:
            formatted[key] = simplify_recipients(value)
        else:
            formatted[key] = value
    return formatted


def format_rule_conditions(conditions: Dict[str, Any]) -> Dict[str, Any]:
    """사용자 조건 -> Graph messageRulePredicates (알 수 없는 키는 제외)"""
    return _format_request(conditions or {}, CONDITION_KEYS)


def format_rule_actions(actions: Dict[str, Any]) -> Dict[str, Any]:
    """사용자 동작 -> Graph messageRuleActions (알 수 없는 키는 제외)"""
    return _format_request(actions or {}, ACTION_KEYS)


def format_rule_response(rule: Dict[str, Any]) -> Dict[str, Any]:
    """Graph messageRule -> 도구 응답 형식"""
    return {
        "id": rule.get("id"),
        "displayName": rule.get("displayName"),
        "sequence": rule.get("sequence"),
        "isEnabled": rule.get("isEnabled"),
        "hasError": rule.get("hasError"),
        "isReadOnly": rule.get("isReadOnly"),
        "conditions": _format_response(rule.get("conditions") or {}, CONDITION_KEYS),
        "actions": _format_response(rule.get("actions") or {}, ACTION_KEYS),
    }

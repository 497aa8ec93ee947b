"""
Graph payload 변환 유틸리티

사용자 입력(문자열/딕셔너리/리스트)을 Graph API 요청 형식으로,
Graph 응답의 수신자 객체를 간단한 {name, email} 형식으로 변환합니다.
"""

import re
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_NAMED_ADDRESS = re.compile(r"^(.*?)\s*<([^>]+)>$")
_SEPARATORS = re.compile(r"[,;]")


def split_addresses(value: Any) -> List[Any]:
    """
    "a@x.com; b@y.com" 형식 문자열 또는 단일 값을 리스트로 변환

    리스트 안의 문자열도 ,/; 로 분리합니다.
    """
    if value is None or value == "" or value == []:
        return []

    if isinstance(value, str):
        return [part.strip() for part in _SEPARATORS.split(value) if part.strip()]

    if isinstance(value, (list, tuple)):
        result: List[Any] = []
        for item in value:
            if isinstance(item, str):
                result.extend(split_addresses(item))
            elif item is not None:
                result.append(item)
        return result

    return [value]


def format_email_address(address: Any) -> Dict[str, Any]:
    """단일 주소를 Graph recipient 객체({"emailAddress": {...}})로 변환"""
    if isinstance(address, dict):
        if "emailAddress" in address:
            return address
        if address.get("email"):
            return {"emailAddress": {"name": address.get("name") or "", "address": address["email"]}}
        if address.get("address"):
            return {"emailAddress": {"name": address.get("name") or "", "address": address["address"]}}

    if isinstance(address, str):
        match = _NAMED_ADDRESS.match(address.strip())
        if match:
            return {"emailAddress": {"name": match.group(1).strip(), "address": match.group(2).strip()}}
        return {"emailAddress": {"address": address.strip()}}

    return {"emailAddress": {"address": str(address)}}


def format_email_addresses(addresses: Any) -> List[Dict[str, Any]]:
    """
    수신자 입력을 Graph recipient 리스트로 변환

    Args:
        addresses: "Name <a@b.com>", "a@b.com, c@d.com", {"email", "name"}, 또는 이들의 리스트

    Returns:
        [{"emailAddress": {"name": ..., "address": ...}}, ...]
    """
    return [format_email_address(a) for a in split_addresses(addresses)]


def format_attendees(attendees: Any) -> List[Dict[str, Any]]:
    """참석자 입력을 Graph attendee 리스트로 변환 (type 기본값 required)"""
    formatted = []
    for attendee in split_addresses(attendees):
        if isinstance(attendee, dict) and "emailAddress" in attendee:
            formatted.append(attendee)
            continue

        recipient = format_email_address(attendee)
        attendee_type = attendee.get("type") if isinstance(attendee, dict) else None
        recipient["type"] = attendee_type or "required"
        formatted.append(recipient)

    return formatted


def format_location(location: Any) -> Optional[Dict[str, Any]]:
    """장소 입력을 Graph location 객체로 변환"""
    if not location:
        return None

    if isinstance(location, str):
        return {"displayName": location}

    if isinstance(location, dict):
        if location.get("displayName") and "name" not in location:
            return location
        formatted = {"displayName": location.get("name") or location.get("displayName") or "Unknown Location"}
        for key in ("address", "coordinates"):
            if location.get(key) is not None:
                formatted[key] = location[key]
        return formatted

    return {"displayName": str(location)}


def default_end_time(start: str, minutes: int = 30) -> str:
    """
    시작 시간 + minutes 분의 종료 시간 계산

    파싱할 수 없는 입력이면 시작 시간을 그대로 반환합니다.
    """
    try:
        start_dt = datetime.fromisoformat(start.replace("Z", "+00:00"))
    except (ValueError, AttributeError) as e:
        logger.warning(f"Error calculating default end time: {e}")
        return start

    end_dt = start_dt + timedelta(minutes=minutes)
    if end_dt.tzinfo is not None:
        return end_dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return end_dt.isoformat()


def simplify_recipient(recipient: Dict[str, Any]) -> Dict[str, Any]:
    """Graph recipient 객체를 {name, email}로 변환"""
    email_address = recipient.get("emailAddress") or {}
    return {
        "name": email_address.get("name"),
        "email": email_address.get("address"),
    }


def simplify_recipients(recipients: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return [simplify_recipient(r) for r in recipients or []]

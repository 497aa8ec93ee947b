"""
Calendar Service - 일정 생성/조회/삭제

calendarId가 'primary'(기본값)이면 /me/events, 그 외에는 /me/calendars/{id}/events 를 사용합니다.
"""

import logging
from typing import Any, Callable, Dict, Optional

import aiohttp

from core.graph_api import GraphApiError, build_query_params
from core.graph_format import (
    default_end_time,
    format_attendees,
    format_location,
    simplify_recipient,
)
from core.protocols import GraphClientProtocol

logger = logging.getLogger(__name__)

PRIMARY_CALENDAR = "primary"
DEFAULT_LIMIT = 50
EVENT_SELECT = [
    "id", "subject", "start", "end", "location", "organizer", "attendees",
    "isAllDay", "isOnlineMeeting", "onlineMeeting", "showAs", "webLink", "bodyPreview",
]

RemoteErrors = (GraphApiError, aiohttp.ClientError)


def _calendar_base(calendar_id: Optional[str]) -> str:
    if not calendar_id or calendar_id == PRIMARY_CALENDAR:
        return "/me"
    return f"/me/calendars/{calendar_id}"


def format_event(event: Dict[str, Any]) -> Dict[str, Any]:
    location = event.get("location") or {}
    online_meeting = event.get("onlineMeeting") or {}
    return {
        "id": event.get("id"),
        "subject": event.get("subject") or "(No Subject)",
        "start": event.get("start"),
        "end": event.get("end"),
        "location": location.get("displayName"),
        "organizer": simplify_recipient(event["organizer"]) if event.get("organizer") else None,
        "attendees": [
            {**simplify_recipient(a), "type": a.get("type")}
            for a in event.get("attendees") or []
        ],
        "isAllDay": event.get("isAllDay"),
        "isOnlineMeeting": event.get("isOnlineMeeting"),
        "joinUrl": online_meeting.get("joinUrl"),
        "showAs": event.get("showAs"),
        "preview": event.get("bodyPreview"),
        "webLink": event.get("webLink"),
    }


class CalendarService:
    """캘린더 서비스"""

    def __init__(self, graph_client_factory: Callable[[str], GraphClientProtocol]):
        self.graph_client_factory = graph_client_factory

    def _client(self, params: Dict[str, Any]):
        user_id = params.get("userId") or "default"
        return user_id, self.graph_client_factory(user_id)

    def build_event_payload(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        create_event 파라미터를 Graph event 객체로 변환

        - end가 없으면 start + 30분
        - timeZone 기본값 UTC, bodyType 기본값 HTML
        """
        time_zone = params.get("timeZone") or "UTC"
        event: Dict[str, Any] = {
            "subject": params["subject"],
            "body": {
                "contentType": params.get("bodyType") or "HTML",
                "content": params.get("body") or "",
            },
            "start": {"dateTime": params["start"], "timeZone": time_zone},
            "end": {"dateTime": params.get("end") or default_end_time(params["start"]), "timeZone": time_zone},
            "location": format_location(params.get("location")),
            "attendees": format_attendees(params.get("attendees")),
            "isAllDay": params.get("isAllDay") is True,
            "sensitivity": params.get("sensitivity") or "normal",
            "showAs": params.get("showAs") or "busy",
        }

        if params.get("isOnlineMeeting") is True:
            event["isOnlineMeeting"] = True
            event["onlineMeetingProvider"] = params.get("onlineMeetingProvider") or "teamsForBusiness"

        if params.get("categories"):
            event["categories"] = list(params["categories"])

        return event

    async def create_event(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if not params.get("subject"):
            return {"status": "error", "message": "Event subject is required"}
        if not params.get("start"):
            return {"status": "error", "message": "Event start time is required"}

        user_id, client = self._client(params)
        endpoint = f"{_calendar_base(params.get('calendarId'))}/events"

        try:
            logger.info(f"Creating calendar event \"{params['subject']}\" for user {user_id}")
            event = await client.post(endpoint, self.build_event_payload(params))
        except RemoteErrors as e:
            logger.error(f"Error creating calendar event: {e}")
            return {"status": "error", "message": f"Failed to create calendar event: {e}"}

        return {
            "status": "success",
            "message": "Event created successfully",
            "eventId": event.get("id"),
            "webLink": event.get("webLink"),
        }

    async def list_events(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        일정 목록 조회

        startDateTime과 endDateTime이 모두 있으면 calendarView(반복 일정 전개)를 사용합니다.
        """
        user_id, client = self._client(params)
        base = _calendar_base(params.get("calendarId"))
        start = params.get("startDateTime")
        end = params.get("endDateTime")

        if bool(start) != bool(end):
            return {"status": "error", "message": "startDateTime and endDateTime must be given together"}

        query = build_query_params(
            top=params.get("limit") or DEFAULT_LIMIT,
            select=EVENT_SELECT,
            order_by=params.get("orderBy") or "start/dateTime asc",
        )
        if start:
            endpoint = f"{base}/calendarView"
            query.update({"startDateTime": start, "endDateTime": end})
        else:
            endpoint = f"{base}/events"

        try:
            logger.info(f"Listing calendar events for user {user_id}")
            response = await client.get(endpoint, query)
        except RemoteErrors as e:
            logger.error(f"Error listing calendar events: {e}")
            return {"status": "error", "message": f"Failed to list calendar events: {e}"}

        events = [format_event(e) for e in response.get("value", [])]
        return {"status": "success", "count": len(events), "events": events}

    async def delete_event(self, params: Dict[str, Any]) -> Dict[str, Any]:
        event_id = params.get("eventId")
        if not event_id:
            return {"status": "error", "message": "Event ID is required"}

        user_id, client = self._client(params)
        try:
            logger.info(f"Deleting calendar event {event_id} for user {user_id}")
            await client.delete(f"{_calendar_base(params.get('calendarId'))}/events/{event_id}")
        except RemoteErrors as e:
            logger.error(f"Error deleting calendar event: {e}")
            return {"status": "error", "message": f"Failed to delete calendar event: {e}"}

        return {"status": "success", "message": "Event deleted successfully", "eventId": event_id}

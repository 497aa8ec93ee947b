"""
MCP Tool Definitions for calendar tools
"""

from typing import List

from mcp_server.tool_registry import ORDER_BY_PROPERTY, ToolDescriptor, USER_ID_PROPERTY
from .calendar_service import CalendarService

CALENDAR_ID_PROPERTY = {
    "type": "string",
    "description": "Calendar ID (default: 'primary')"
}


def get_calendar_tools(service: CalendarService) -> List[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="create_event",
            description="Create a calendar event",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "subject": {"type": "string", "description": "Event subject"},
                    "start": {"type": "string", "description": "Start time (ISO 8601)"},
                    "end": {"type": "string", "description": "End time (ISO 8601, default start + 30 minutes)"},
                    "timeZone": {"type": "string", "description": "Time zone (default UTC)"},
                    "body": {"type": "string", "description": "Event description"},
                    "bodyType": {"type": "string", "enum": ["Text", "HTML"], "description": "Body content type (default HTML)"},
                    "location": {
                        "type": ["string", "object"],
                        "description": "Location name or {name, address, coordinates}"
                    },
                    "attendees": {
                        "type": ["string", "array"],
                        "items": {"type": ["string", "object"]},
                        "description": "Attendees: \"Name <a@example.com>\", a comma-separated string, or a list"
                    },
                    "isAllDay": {"type": "boolean", "description": "All-day event"},
                    "isOnlineMeeting": {"type": "boolean", "description": "Create an online meeting"},
                    "onlineMeetingProvider": {
                        "type": "string",
                        "enum": ["teamsForBusiness", "skypeForBusiness", "skypeForConsumer"],
                        "description": "Online meeting provider (default teamsForBusiness)"
                    },
                    "sensitivity": {
                        "type": "string",
                        "enum": ["normal", "personal", "private", "confidential"],
                        "description": "Sensitivity (default normal)"
                    },
                    "showAs": {
                        "type": "string",
                        "enum": ["free", "tentative", "busy", "oof", "workingElsewhere", "unknown"],
                        "description": "Free/busy status (default busy)"
                    },
                    "categories": {"type": "array", "items": {"type": "string"}, "description": "Categories"},
                    "calendarId": CALENDAR_ID_PROPERTY
                },
                "required": ["subject", "start"]
            },
            handler=service.create_event,
        ),
        ToolDescriptor(
            name="list_events",
            description="List calendar events, expanded over a date range when both bounds are given",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "startDateTime": {"type": "string", "description": "Range start (ISO 8601)"},
                    "endDateTime": {"type": "string", "description": "Range end (ISO 8601)"},
                    "limit": {"type": "integer", "description": "Maximum number of events (default 50)"},
                    "orderBy": ORDER_BY_PROPERTY,
                    "calendarId": CALENDAR_ID_PROPERTY
                }
            },
            handler=service.list_events,
        ),
        ToolDescriptor(
            name="delete_event",
            description="Delete a calendar event",
            parameter_schema={
                "type": "object",
                "properties": {
                    "userId": USER_ID_PROPERTY,
                    "eventId": {"type": "string", "description": "Event ID"},
                    "calendarId": CALENDAR_ID_PROPERTY
                },
                "required": ["eventId"]
            },
            handler=service.delete_event,
        ),
    ]

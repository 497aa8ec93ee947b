"""
MCP Calendar - 일정 관리 도구

Usage:
    from mcp_calendar import CalendarService, get_calendar_tools

    service = CalendarService(graph_client_factory)
    tools = get_calendar_tools(service)
"""

from .calendar_service import CalendarService
from .tool_definitions import get_calendar_tools

__all__ = ['CalendarService', 'get_calendar_tools']

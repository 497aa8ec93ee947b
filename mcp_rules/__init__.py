"""
MCP Rules - 받은편지함 규칙 관리 도구
"""

from .rules_service import RulesService
from .tool_definitions import get_rules_tools

__all__ = ['RulesService', 'get_rules_tools']

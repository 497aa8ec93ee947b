"""
MCP Mail - 메일 조회/발송 도구
"""

from .mail_service import MailService
from .tool_definitions import get_mail_tools

__all__ = ['MailService', 'get_mail_tools']

"""
MCP Folder - 메일 폴더 관리 도구
"""

from .folder_service import FolderService
from .tool_definitions import get_folder_tools

__all__ = ['FolderService', 'get_folder_tools']

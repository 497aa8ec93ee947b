"""
Result Normalizer - handler return value -> MCP content envelope
"""

import json
from typing import Any, Dict


def format_tool_result(result: Any) -> str:
    """Pretty JSON text of a handler result (2-space indent)."""
    return json.dumps(result, ensure_ascii=False, indent=2)


def normalize_result(result: Any) -> Dict[str, Any]:
    """
    Wrap a handler result in a single text content item.

    Raises:
        TypeError / ValueError: the result is not JSON serializable
    """
    return {
        "content": [
            {
                "type": "text",
                "text": format_tool_result(result),
            }
        ]
    }

"""
MCP REST server

HTTP endpoints for the registered tools:
    GET  /                     server info
    GET  /health               health check
    POST /mcp/v1/tools/list    list tools
    POST /mcp/v1/tools/call    {"params": {"name": ..., "arguments": {...}}}
    POST /mcp/v1               JSON-RPC 2.0 (initialize, tools/list, tools/call, ping)
"""

import logging
from typing import Any, Dict, Optional

import aiohttp
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.graph_api import GraphApiError
from .errors import ToolValidationError, UnknownToolError
from .transport import ToolTransport

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

GRAPH_STATUS_CODES = {
    401: ("AUTH_EXPIRED", "Access token expired or invalid. Re-authentication required."),
    403: ("PERMISSION_DENIED", "Insufficient permissions for this operation."),
    404: ("NOT_FOUND", None),
    429: ("RATE_LIMITED", "API rate limit exceeded. Please retry later."),
}

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def error_payload(exc: Exception) -> tuple:
    """Map a tool call failure to (http_status, error dict)."""
    if isinstance(exc, ToolValidationError):
        return 400, {"code": "INVALID_PARAMS", "message": exc.message, "details": exc.to_dict()["errors"]}

    if isinstance(exc, UnknownToolError):
        return 404, {"code": "UNKNOWN_TOOL", "message": str(exc)}

    if isinstance(exc, GraphApiError) and exc.status in GRAPH_STATUS_CODES:
        code, message = GRAPH_STATUS_CODES[exc.status]
        return exc.status, {"code": code, "message": message or f"Resource not found: {exc.message}"}

    if isinstance(exc, (GraphApiError, aiohttp.ClientError)):
        return 502, {"code": "API_ERROR", "message": str(exc)}

    return 500, {"code": "INTERNAL_ERROR", "message": str(exc)}


def create_error_response(id: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> JSONResponse:
    """Create JSON-RPC error response"""
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return JSONResponse(content={"jsonrpc": "2.0", "id": id, "error": error})


class RestMCPServer(ToolTransport):
    """FastAPI based MCP server."""

    def __init__(self, name: str = "outlook-mcp", version: str = "1.0.0"):
        super().__init__(name, version)
        self.app = self._create_app()

    def _server_info(self) -> Dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "serverInfo": {"name": self.name, "version": self.version},
            "capabilities": {"tools": {}},
        }

    def _create_app(self) -> FastAPI:
        app = FastAPI(title=self.name, version=self.version)

        @app.get("/")
        async def root():
            """Root endpoint"""
            return {"name": self.name, "version": self.version}

        @app.get("/health")
        async def health_check():
            """Health check endpoint"""
            return {"status": "healthy", "server": self.name, "tools": len(self.tool_names)}

        @app.post("/mcp/v1/tools/list")
        async def list_tools():
            """List available MCP tools"""
            return {"result": {"tools": self.list_tools()}}

        @app.post("/mcp/v1/tools/call")
        async def call_tool(request: Request):
            """Execute an MCP tool"""
            try:
                data = await request.json()
            except ValueError:
                return JSONResponse(status_code=400, content={"error": {"code": "PARSE_ERROR", "message": "Invalid JSON body"}})

            params = data.get("params", {}) if isinstance(data, dict) else {}
            tool_name = params.get("name")
            arguments = params.get("arguments")

            try:
                result = await self.call_tool(tool_name, arguments)
            except Exception as e:
                status, error = error_payload(e)
                if status >= 500:
                    logger.error(f"Error executing tool {tool_name}: {e}", exc_info=True)
                else:
                    logger.warning(f"Tool call rejected ({tool_name}): {error['code']}")
                return JSONResponse(status_code=status, content={"error": error})

            return {"result": result}

        @app.post("/mcp/v1")
        async def jsonrpc(request: Request):
            """JSON-RPC 2.0 endpoint"""
            try:
                data = await request.json()
            except ValueError:
                return create_error_response(None, PARSE_ERROR, "Parse error")

            if not isinstance(data, dict):
                return create_error_response(None, INVALID_REQUEST, "Invalid request")

            request_id = data.get("id")
            method = data.get("method")
            params = data.get("params") or {}

            if method == "initialize":
                result = self._server_info()
            elif method == "ping":
                result = {}
            elif method == "tools/list":
                result = {"tools": self.list_tools()}
            elif method == "tools/call":
                try:
                    result = await self.call_tool(params.get("name"), params.get("arguments"))
                except ToolValidationError as e:
                    return create_error_response(request_id, INVALID_PARAMS, e.message, e.to_dict())
                except UnknownToolError as e:
                    return create_error_response(request_id, METHOD_NOT_FOUND, str(e))
                except Exception as e:
                    logger.error(f"Error executing tool {params.get('name')}: {e}", exc_info=True)
                    status, error = error_payload(e)
                    return create_error_response(request_id, INTERNAL_ERROR, error["message"], error)
            else:
                return create_error_response(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

            return {"jsonrpc": "2.0", "id": request_id, "result": result}

        return app

    async def run(self, host: str = "0.0.0.0", port: int = 8000):
        """Serve with uvicorn until stopped."""
        logger.info(f"🚀 {self.name} {self.version} serving {len(self.tool_names)} tools on http://{host}:{port}")
        config = uvicorn.Config(self.app, host=host, port=port, log_level="info")
        await uvicorn.Server(config).serve()

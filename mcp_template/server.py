"""
HTTP mode.

Serves the same dispatcher over FastAPI: POST a JSON-RPC message to
``/message`` or ``/mcp`` and the response comes back in the body.
Notifications get ``202 Accepted`` with no body.

Usage: python mcp_stdio_server.py --http (runs on http://0.0.0.0:$PORT)
"""

import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from mcp_template.dispatcher import INVALID_REQUEST, MCPServer, jsonrpc_error

logger = logging.getLogger(__name__)


def create_app(mcp_server: MCPServer) -> FastAPI:
    settings = mcp_server.settings
    app = FastAPI(title=settings.server_name, version=settings.server_version)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def handle(message: Any):
        if not isinstance(message, dict):
            return JSONResponse(jsonrpc_error(None, INVALID_REQUEST, "Message must be a JSON object"))
        response = await mcp_server.handle_message(message)
        if response is None:
            return Response(status_code=202)
        return JSONResponse(response)

    @app.post("/message")
    async def handle_mcp_message(message: Any = Body(...)):
        """Handle MCP protocol messages over HTTP."""
        return await handle(message)

    @app.post("/mcp")
    async def handle_mcp_endpoint(message: Any = Body(...)):
        return await handle(message)

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "server": settings.server_name,
            "version": settings.server_version,
            "transport": "HTTP",
            "operations": len(mcp_server.registry),
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/")
    async def root() -> Dict[str, Any]:
        return {
            "message": "MCP Server",
            "tools": len(mcp_server.registry.list("tool")),
            "prompts": len(mcp_server.registry.list("prompt")),
            "resources": len(mcp_server.registry.list("resource")),
        }

    return app


def run_http(mcp_server: MCPServer) -> None:
    import uvicorn

    port = mcp_server.settings.port
    logger.info(f"MCP Server starting in HTTP mode on port {port}")
    uvicorn.run(create_app(mcp_server), host="0.0.0.0", port=port, log_config=None)

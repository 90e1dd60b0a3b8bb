"""MCP template server: tools, prompts and resources over stdio."""

from typing import Optional

import httpx

from mcp_template.config import Settings, load_settings
from mcp_template.dispatcher import MCPServer, Request, Response
from mcp_template.registry import OperationRegistry
from mcp_template.prompts import register_prompts
from mcp_template.resources import register_resources
from mcp_template.tools import register_tools
from mcp_template.web import register_web_tools

__version__ = "1.0.0"

__all__ = [
    "MCPServer",
    "OperationRegistry",
    "Request",
    "Response",
    "Settings",
    "build_registry",
    "build_server",
    "load_settings",
]


def build_registry(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> OperationRegistry:
    """Register every known operation and freeze the registry."""
    registry = OperationRegistry()
    register_tools(registry)
    register_web_tools(registry, settings, transport=transport)
    register_prompts(registry)
    register_resources(registry)
    registry.freeze()
    return registry


def build_server(settings: Optional[Settings] = None) -> MCPServer:
    settings = settings or Settings()
    return MCPServer(build_registry(settings), settings)

import asyncio
import io
import json

import pytest

from mcp_template import build_registry
from mcp_template.config import Settings
from mcp_template.dispatcher import MCPServer
from mcp_template.transport import StdioTransport


@pytest.fixture
def settings():
    return Settings(tool_timeout=5.0, rate_limit_calls=100, rate_limit_period=1.0)


@pytest.fixture
def registry(settings):
    return build_registry(settings)


@pytest.fixture
def mcp_server(registry, settings):
    return MCPServer(registry, settings)


def call(server, method, params=None, message_id=1):
    """Send one JSON-RPC message through ``handle_message``."""
    message = {"jsonrpc": "2.0", "id": message_id, "method": method}
    if params is not None:
        message["params"] = params
    return asyncio.run(server.handle_message(message))


def serve_lines(server, messages):
    """Run the stdio loop over ``messages`` and return the decoded output lines."""
    lines = [m if isinstance(m, str) else json.dumps(m) for m in messages]
    output = io.StringIO()
    transport = StdioTransport(io.StringIO("\n".join(lines) + "\n"), output)
    asyncio.run(server.run(transport))
    return [json.loads(line) for line in output.getvalue().splitlines()]

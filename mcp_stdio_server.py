#!/usr/bin/env python3
"""
MCP Template Server

A Model Context Protocol (MCP) server template that exposes tools, prompts
and resources to an LLM host. It speaks newline-delimited JSON-RPC 2.0 on
stdin/stdout for hosts like Claude Desktop, or HTTP for direct API access.

Exposed operations:
- add-numbers (tool): adds two numbers
- meeting-agenda-generator (tool): builds a meeting agenda prompt
- search-perplexity (tool): web search through Perplexity, needs PERPLEXITY_API_KEY
- story-idea-generator (prompt): story idea template
- sample-text (resource): sample://text

Usage:
- Stdio mode: python mcp_stdio_server.py
- HTTP mode: python mcp_stdio_server.py --http
"""

import asyncio
import logging
import sys

from mcp_template import build_registry, load_settings
from mcp_template.dispatcher import MCPServer
from mcp_template.transport import StdioTransport

logger = logging.getLogger("mcp_template")


def configure_logging(level: str) -> None:
    # stdout is reserved for protocol traffic
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def stdio_main(mcp_server: MCPServer, transport: StdioTransport) -> None:
    """Main loop for stdio transport."""
    logger.info("MCP Template Server running...")
    await mcp_server.run(transport)
    logger.info("MCP Template Server shutting down...")


def main(argv=None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        logger.info("MCP Template Server starting...")

        mcp_server = MCPServer(build_registry(settings), settings)

        if "--http" in argv:
            from mcp_template.server import run_http

            run_http(mcp_server)
            return

        transport = StdioTransport()
    except Exception as e:
        if not logging.getLogger().handlers:
            configure_logging("INFO")
        logger.error(f"Error starting MCP Template Server: {e}")
        sys.exit(1)

    try:
        asyncio.run(stdio_main(mcp_server, transport))
    except KeyboardInterrupt:
        logger.info("MCP Template Server shutting down...")


if __name__ == "__main__":
    main()

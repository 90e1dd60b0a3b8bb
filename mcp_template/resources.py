"""
Read-only resources.

Resources are identified by URIs and are browsed by clients without side
effects.
"""

import logging

from mcp_template.dispatcher import resource_content
from mcp_template.registry import RESOURCE, OperationRegistry

logger = logging.getLogger(__name__)

SAMPLE_TEXT_URI = "sample://text"

SAMPLE_TEXT = """The Model Context Protocol (MCP) lets applications provide context to large language models in a standardized way.

A server exposes three kinds of capabilities:

- Tools: functions the model can call to take actions or compute results.
- Prompts: reusable templates that help users start common tasks.
- Resources: read-only data, such as this text, that clients can load into context.

This sample resource exists so that clients have something to read while you build your own server from this template."""


def load_sample_text() -> str:
    return SAMPLE_TEXT


def sample_text():
    """Provide the sample text, or an error payload if it cannot be loaded."""
    logger.info("[Resource] Providing sample text content")
    try:
        text = load_sample_text()
    except Exception as e:
        logger.error(f"[Error] Failed to load sample text: {e}")
        return {
            "content": [resource_content(
                SAMPLE_TEXT_URI, f"Error: Failed to load sample text content. {e}"
            )],
            "isError": True,
        }
    logger.info("[Resource] Successfully loaded sample text content")
    return text


def register_resources(registry: OperationRegistry) -> None:
    registry.register(
        "sample-text",
        "Sample text content bundled with the server",
        {},
        sample_text,
        kind=RESOURCE,
        uri=SAMPLE_TEXT_URI,
        mime_type="text/plain",
    )

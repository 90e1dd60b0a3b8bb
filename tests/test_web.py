"""Perplexity-backed search tool, with outbound HTTP mocked by httpx.MockTransport."""

import asyncio
import json

import httpx
import pytest
from conftest import call

from mcp_template import build_registry
from mcp_template.config import Settings
from mcp_template.dispatcher import MCPServer
from mcp_template.errors import HandlerError
from mcp_template.throttle import RateLimiter
from mcp_template.web import PERPLEXITY_API_BASE, PerplexitySearch, validate_limit


def perplexity_transport(seen, status=200, body=None):
    if body is None:
        body = {
            "choices": [{"message": {"content": "MCP is a protocol."}}],
            "citations": ["https://a.example", "https://b.example", "https://c.example"],
        }

    def handler(request):
        seen.append(request)
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


def test_search_formats_answer_and_sources():
    seen = []
    search = PerplexitySearch("key-123", RateLimiter(10, 1.0), transport=perplexity_transport(seen))

    result = asyncio.run(search(query="what is mcp", max_results=2))

    assert "MCP is a protocol." in result
    assert "1. https://a.example" in result
    assert "2. https://b.example" in result
    assert "https://c.example" not in result

    request = seen[0]
    assert str(request.url) == PERPLEXITY_API_BASE
    assert request.headers["Authorization"] == "Bearer key-123"
    assert json.loads(request.content)["messages"][-1]["content"] == "what is mcp"


def test_search_without_key():
    search = PerplexitySearch(None, RateLimiter(10, 1.0))
    with pytest.raises(HandlerError):
        asyncio.run(search(query="x"))


def test_search_http_failure_is_a_handler_error():
    search = PerplexitySearch("key", RateLimiter(10, 1.0), transport=perplexity_transport([], status=500))
    with pytest.raises(HandlerError) as exc_info:
        asyncio.run(search(query="x"))
    assert "Perplexity search failed" in str(exc_info.value)


def test_search_through_dispatcher():
    seen = []
    settings = Settings(perplexity_api_key="key", rate_limit_calls=5, rate_limit_period=1.0)
    server = MCPServer(build_registry(settings, transport=perplexity_transport(seen)), settings)

    response = call(server, "tools/call", {"name": "search-perplexity", "arguments": {"query": "mcp"}})

    assert response["result"]["isError"] is False
    assert "MCP is a protocol." in response["result"]["content"][0]["text"]
    assert len(seen) == 1


def test_validate_limit():
    assert validate_limit(0, 10) == 1
    assert validate_limit(50, 10) == 10
    assert validate_limit(5, 10) == 5

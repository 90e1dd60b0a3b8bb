"""
External-API-backed tools.

Every outbound call goes through :func:`make_request`, which first waits on
the shared :class:`~mcp_template.throttle.RateLimiter`. Credentials come from
the environment via :class:`~mcp_template.config.Settings`.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from mcp_template.config import Settings
from mcp_template.errors import HandlerError
from mcp_template.registry import TOOL, OperationRegistry
from mcp_template.schema import Param
from mcp_template.throttle import RateLimiter

logger = logging.getLogger(__name__)

PERPLEXITY_API_BASE = "https://api.perplexity.ai/chat/completions"
PERPLEXITY_MODEL = "sonar"
DEFAULT_TIMEOUT = 30.0
MAX_RESULTS = 10


def validate_limit(limit: int, max_allowed: int, service: str = "API") -> int:
    """Clamp ``limit`` into ``1..max_allowed``."""
    if limit < 1:
        logger.warning(f"{service}: limit too low ({limit}), using 1")
        return 1
    elif limit > max_allowed:
        logger.warning(f"{service}: limit too high ({limit}), capping at {max_allowed}")
        return max_allowed
    return limit


async def make_request(
    url: str,
    limiter: RateLimiter,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    method: str = "GET",
    json_data: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[Dict[str, Any]]:
    """Make a throttled HTTP request. Returns the JSON body, or ``None`` on failure."""
    await limiter.acquire()
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            if method.upper() == "POST":
                response = await client.post(url, params=params, headers=headers, json=json_data)
            else:
                response = await client.get(url, params=params, headers=headers)

            response.raise_for_status()
            return response.json()
    except httpx.TimeoutException:
        logger.error(f"Request timeout for {url}")
        return None
    except httpx.HTTPStatusError as e:
        logger.error(f"HTTP error {e.response.status_code} for {url}")
        return None
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Request failed for {url}: {e}")
        return None


class PerplexitySearch:
    """AI-powered web search using Perplexity."""

    name = "search-perplexity"
    schema = {
        "query": Param("string", "The search query to look up"),
        "max_results": Param(
            "integer", "Maximum number of sources to list (default: 10)", required=False, default=MAX_RESULTS
        ),
    }

    def __init__(
        self,
        api_key: Optional[str],
        limiter: RateLimiter,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.limiter = limiter
        self.transport = transport

    async def __call__(self, query: str, max_results: int = MAX_RESULTS) -> str:
        if not self.api_key:
            raise HandlerError(self.name, "PERPLEXITY_API_KEY is not configured")
        max_results = validate_limit(max_results, MAX_RESULTS, "Perplexity")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": PERPLEXITY_MODEL,
            "messages": [
                {"role": "system", "content": "Be precise and informative. Provide factual information with sources."},
                {"role": "user", "content": query},
            ],
            "max_tokens": 1000,
            "temperature": 0.2,
        }

        data = await make_request(
            PERPLEXITY_API_BASE,
            self.limiter,
            headers=headers,
            method="POST",
            json_data=payload,
            transport=self.transport,
        )
        if not data or not data.get("choices"):
            raise HandlerError(self.name, f"Perplexity search failed for '{query}'")

        content = data["choices"][0]["message"]["content"]
        citations = data.get("citations", [])

        result = f"Perplexity search results for '{query}'\n\n{content}"
        if citations:
            result += "\n\nSources:\n"
            for i, citation in enumerate(citations[:max_results], 1):
                result += f"{i}. {citation}\n"
        return result


def register_web_tools(
    registry: OperationRegistry,
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    limiter = RateLimiter(settings.rate_limit_calls, settings.rate_limit_period)
    search = PerplexitySearch(settings.perplexity_api_key, limiter, transport=transport)
    registry.register(
        search.name,
        "Search the web using Perplexity AI for real-time information. "
        "Requires PERPLEXITY_API_KEY.",
        search.schema,
        search,
        kind=TOOL,
    )

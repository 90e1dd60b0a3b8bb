"""
Configuration loaded from environment variables.

A ``.env`` file in the working directory is read first (python-dotenv), so
credentials such as ``PERPLEXITY_API_KEY`` can live outside the shell
environment. Only handlers consume credentials; the dispatcher never does.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from mcp_template.errors import ConfigError

# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_SERVER_NAME = "mcp-template"
DEFAULT_SERVER_VERSION = "1.0.0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_TOOL_TIMEOUT = 120.0  # Tool calls can take time when they hit external APIs
DEFAULT_RATE_LIMIT_CALLS = 30
DEFAULT_RATE_LIMIT_PERIOD = 60.0
DEFAULT_PORT = 8080


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return value


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    server_name: str = DEFAULT_SERVER_NAME
    server_version: str = DEFAULT_SERVER_VERSION
    log_level: str = DEFAULT_LOG_LEVEL
    tool_timeout: float = DEFAULT_TOOL_TIMEOUT
    rate_limit_calls: int = DEFAULT_RATE_LIMIT_CALLS
    rate_limit_period: float = DEFAULT_RATE_LIMIT_PERIOD
    perplexity_api_key: Optional[str] = None
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``env`` (defaults to ``os.environ``)."""
        if env is None:
            env = os.environ
        return cls(
            server_name=env.get("MCP_SERVER_NAME", DEFAULT_SERVER_NAME),
            server_version=env.get("MCP_SERVER_VERSION", DEFAULT_SERVER_VERSION),
            log_level=env.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            tool_timeout=_get_float(env, "TOOL_TIMEOUT", DEFAULT_TOOL_TIMEOUT),
            rate_limit_calls=_get_int(env, "RATE_LIMIT_CALLS", DEFAULT_RATE_LIMIT_CALLS),
            rate_limit_period=_get_float(env, "RATE_LIMIT_PERIOD", DEFAULT_RATE_LIMIT_PERIOD),
            perplexity_api_key=env.get("PERPLEXITY_API_KEY") or None,
            port=_get_int(env, "PORT", DEFAULT_PORT),
        )


def load_settings() -> Settings:
    """Load ``.env`` into the process environment, then read settings."""
    load_dotenv()
    return Settings.from_env()

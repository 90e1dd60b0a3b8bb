"""Error types raised by the MCP template server."""

from dataclasses import dataclass
from typing import List


class MCPError(Exception):
    """Base class for all server errors."""


class ConfigError(MCPError):
    """Invalid configuration value. Fatal at startup."""


class DuplicateOperationError(MCPError):
    """An operation name (or resource URI) was registered twice."""


class RegistryFrozenError(MCPError):
    """Registration attempted after startup completed."""


class UnknownOperationError(MCPError):
    """No operation is registered under the requested name."""


@dataclass(frozen=True)
class Violation:
    field: str
    expected: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"


class ValidationError(MCPError):
    """Parameters did not match the declared schema.

    Carries every violation found, not just the first one.
    """

    def __init__(self, violations: List[Violation]):
        self.violations = list(violations)
        super().__init__("; ".join(str(v) for v in self.violations))

    @property
    def fields(self) -> List[str]:
        return [v.field for v in self.violations]


class HandlerError(MCPError):
    """A handler failed while executing."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(message)


class TransportError(MCPError):
    """The transport could not be opened."""

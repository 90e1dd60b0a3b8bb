"""Operation registry.

Populated during startup, then frozen. After :meth:`OperationRegistry.freeze`
the registry is read-only, so concurrent lookups need no locking.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from mcp_template.errors import (
    DuplicateOperationError,
    RegistryFrozenError,
    UnknownOperationError,
)
from mcp_template.schema import Schema

logger = logging.getLogger(__name__)

TOOL = "tool"
PROMPT = "prompt"
RESOURCE = "resource"
KINDS = (TOOL, PROMPT, RESOURCE)


@dataclass(frozen=True)
class Operation:
    """Registered metadata for one operation."""

    name: str
    description: str
    schema: Schema
    handler: Callable[..., Any] = field(compare=False)
    kind: str = TOOL
    uri: Optional[str] = None
    mime_type: str = "text/plain"
    timeout: Optional[float] = None


class OperationRegistry:
    def __init__(self):
        self._operations: Dict[str, Operation] = {}
        self._by_uri: Dict[str, Operation] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        description: str,
        schema: Schema,
        handler: Callable[..., Any],
        kind: str = TOOL,
        uri: Optional[str] = None,
        mime_type: str = "text/plain",
        timeout: Optional[float] = None,
    ) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register '{name}': registry is frozen")
        if kind not in KINDS:
            raise ValueError(f"Unknown operation kind: {kind}")
        if kind == RESOURCE and not uri:
            raise ValueError(f"Resource '{name}' needs a URI")
        if name in self._operations:
            raise DuplicateOperationError(f"Operation already registered: {name}")
        if uri is not None and uri in self._by_uri:
            raise DuplicateOperationError(f"Resource URI already registered: {uri}")

        operation = Operation(
            name=name,
            description=description,
            schema=dict(schema),
            handler=handler,
            kind=kind,
            uri=uri,
            mime_type=mime_type,
            timeout=timeout,
        )
        self._operations[name] = operation
        if uri is not None:
            self._by_uri[uri] = operation
        logger.debug(f"Registered {kind} '{name}'")

    def lookup(self, name: str) -> Operation:
        try:
            return self._operations[name]
        except (KeyError, TypeError):
            raise UnknownOperationError(f"Unknown operation: {name}")

    def lookup_uri(self, uri: str) -> Operation:
        try:
            return self._by_uri[uri]
        except (KeyError, TypeError):
            raise UnknownOperationError(f"Unknown resource: {uri}")

    def list(self, kind: Optional[str] = None) -> List[Operation]:
        """Descriptors in registration order, optionally filtered by kind."""
        return [op for op in self._operations.values() if kind is None or op.kind == kind]

    def freeze(self) -> None:
        self._frozen = True
        logger.info(f"Registry frozen with {len(self._operations)} operations")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __len__(self) -> int:
        return len(self._operations)

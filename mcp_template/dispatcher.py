"""
MCP request dispatcher.

``MCPServer.dispatch`` is the core: it takes one :class:`Request`, looks the
operation up, validates its parameters, runs the handler and always returns
exactly one :class:`Response` carrying the request's id. Per request the
states are::

    RECEIVED -> VALIDATED -> EXECUTING -> SUCCEEDED | FAILED

Lookup or validation failures go straight from RECEIVED to FAILED without
touching any handler. Handler failures (exceptions, timeouts, bad return
values) are caught here and reported as error responses.

``MCPServer.handle_message`` maps JSON-RPC 2.0 MCP methods onto ``dispatch``
and ``MCPServer.run`` drives the whole thing from a transport, one asyncio
task per request.
"""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mcp_template.config import Settings
from mcp_template.errors import (
    HandlerError,
    MCPError,
    UnknownOperationError,
    ValidationError,
)
from mcp_template.registry import PROMPT, RESOURCE, TOOL, Operation, OperationRegistry
from mcp_template.schema import to_json_schema, to_prompt_arguments, validate

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Request states, used for diagnostics only
RECEIVED = "RECEIVED"
VALIDATED = "VALIDATED"
EXECUTING = "EXECUTING"
SUCCEEDED = "SUCCEEDED"
FAILED = "FAILED"


# ============================================================================
# CONTENT BLOCKS
# ============================================================================

def text_content(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def prompt_message(text: str, role: str = "user") -> Dict[str, Any]:
    return {"role": role, "content": text_content(text)}


def resource_content(uri: str, text: str, mime_type: str = "text/plain") -> Dict[str, Any]:
    return {"uri": uri, "mimeType": mime_type, "text": text}


# ============================================================================
# REQUEST / RESPONSE
# ============================================================================

@dataclass
class Request:
    id: Any
    op: str
    params: Any = None


@dataclass
class Response:
    id: Any
    content: List[Dict[str, Any]] = field(default_factory=list)
    is_error: bool = False
    error_kind: Optional[str] = None

    @property
    def text(self) -> str:
        """Concatenated text of all text-bearing blocks."""
        parts = []
        for block in self.content:
            if "text" in block:
                parts.append(block["text"])
            elif isinstance(block.get("content"), dict) and "text" in block["content"]:
                parts.append(block["content"]["text"])
        return "\n".join(parts)


def jsonrpc_result(message_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "result": result}


def jsonrpc_error(message_id: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": message_id, "error": error}


def _valid_id(message_id: Any) -> bool:
    if isinstance(message_id, bool):
        return False
    return isinstance(message_id, (str, int, float))


def _id_key(message_id: Any):
    # "1" and 1 are different ids
    return (type(message_id).__name__, message_id)


# ============================================================================
# MCP SERVER
# ============================================================================

class MCPServer:
    def __init__(self, registry: OperationRegistry, settings: Optional[Settings] = None):
        self.registry = registry
        self.settings = settings or Settings()

    # ------------------------------------------------------------------
    # Core dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, request: Request) -> Response:
        """Run one request to completion. Never raises for per-request errors."""
        logger.debug(f"[{request.id}] {RECEIVED} {request.op}")
        try:
            operation = self.registry.lookup(request.op)
            params = validate(operation.schema, request.params)
        except UnknownOperationError as e:
            return self._fail(request, e, str(e))
        except ValidationError as e:
            return self._fail(request, e, f"Invalid arguments for {request.op}: {e}")

        logger.debug(f"[{request.id}] {VALIDATED} {request.op}")
        try:
            content, is_error = await self._execute(request, operation, params)
        except HandlerError as e:
            return self._fail(request, e, f"Error executing {request.op}: {e}")

        state = FAILED if is_error else SUCCEEDED
        logger.debug(f"[{request.id}] {state} {request.op}")
        return Response(
            id=request.id,
            content=content,
            is_error=is_error,
            error_kind=HandlerError.__name__ if is_error else None,
        )

    async def _execute(self, request: Request, operation: Operation, params: Dict[str, Any]):
        logger.debug(f"[{request.id}] {EXECUTING} {operation.name}")
        timeout = operation.timeout or self.settings.tool_timeout
        try:
            result = operation.handler(**params)
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(result, timeout=timeout)
            return self._normalize(operation, result)
        except asyncio.TimeoutError:
            raise HandlerError(operation.name, f"timed out after {timeout}s")
        except HandlerError:
            raise
        except Exception as e:
            logger.exception(f"Handler for {operation.name} failed")
            raise HandlerError(operation.name, f"{type(e).__name__}: {e}") from e

    def _normalize(self, operation: Operation, result: Any):
        """Turn a handler's return value into ``(content, is_error)``."""
        if isinstance(result, str):
            if operation.kind == PROMPT:
                content = [prompt_message(result)]
            elif operation.kind == RESOURCE:
                content = [resource_content(operation.uri, result, operation.mime_type)]
            else:
                content = [text_content(result)]
            return content, False
        if isinstance(result, list):
            content, is_error = result, False
        elif isinstance(result, dict) and isinstance(result.get("content"), list):
            content, is_error = result["content"], bool(result.get("isError", False))
        else:
            raise HandlerError(
                operation.name, f"handler returned unsupported type {type(result).__name__}"
            )

        # Content goes on the wire as JSON
        try:
            json.dumps(content)
        except (TypeError, ValueError) as e:
            raise HandlerError(operation.name, f"handler returned content that is not JSON: {e}")
        return content, is_error

    def _fail(self, request: Request, error: MCPError, text: str) -> Response:
        logger.info(f"[{request.id}] {FAILED} {request.op}: {type(error).__name__}: {error}")
        return Response(
            id=request.id,
            content=[text_content(text)],
            is_error=True,
            error_kind=type(error).__name__,
        )

    # ------------------------------------------------------------------
    # JSON-RPC / MCP protocol
    # ------------------------------------------------------------------

    async def handle_message(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Handle one MCP protocol message. Returns ``None`` for notifications."""
        message_id = message.get("id")
        method = message.get("method")

        # If this is a notification (no ID), don't send a response
        if message_id is None:
            logger.debug(f"Notification received: {method}")
            return None

        if not _valid_id(message_id):
            return jsonrpc_error(None, INVALID_REQUEST, "Invalid request id")
        if not isinstance(method, str):
            return jsonrpc_error(message_id, INVALID_REQUEST, "Missing method")

        params = message.get("params", {})
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return jsonrpc_error(message_id, INVALID_PARAMS, "params must be an object")

        logger.info(f"Handling method: {method} (id: {message_id})")
        try:
            if method == "initialize":
                return jsonrpc_result(message_id, self._initialize_result())
            elif method == "ping":
                return jsonrpc_result(message_id, {})
            elif method == "tools/list":
                return jsonrpc_result(message_id, {"tools": self._list_tools()})
            elif method == "prompts/list":
                return jsonrpc_result(message_id, {"prompts": self._list_prompts()})
            elif method == "resources/list":
                return jsonrpc_result(message_id, {"resources": self._list_resources()})
            elif method == "tools/call":
                return await self._call_tool(message_id, params)
            elif method == "prompts/get":
                return await self._get_prompt(message_id, params)
            elif method == "resources/read":
                return await self._read_resource(message_id, params)
            else:
                return jsonrpc_error(message_id, METHOD_NOT_FOUND, f"Unknown method: {method}")
        except Exception as e:
            logger.exception(f"Error processing {method}")
            return jsonrpc_error(message_id, INTERNAL_ERROR, f"Internal error: {e}")

    def _initialize_result(self) -> Dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
                "prompts": {"listChanged": False},
                "resources": {"subscribe": False, "listChanged": False},
            },
            "serverInfo": {
                "name": self.settings.server_name,
                "version": self.settings.server_version,
            },
        }

    def _list_tools(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": op.name,
                "description": op.description,
                "inputSchema": to_json_schema(op.schema),
            }
            for op in self.registry.list(TOOL)
        ]

    def _list_prompts(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": op.name,
                "description": op.description,
                "arguments": to_prompt_arguments(op.schema),
            }
            for op in self.registry.list(PROMPT)
        ]

    def _list_resources(self) -> List[Dict[str, Any]]:
        return [
            {
                "uri": op.uri,
                "name": op.name,
                "description": op.description,
                "mimeType": op.mime_type,
            }
            for op in self.registry.list(RESOURCE)
        ]

    def _lookup_kind(self, name: Any, kind: str) -> Operation:
        operation = self.registry.lookup(name)
        if operation.kind != kind:
            raise UnknownOperationError(f"Unknown {kind}: {name}")
        return operation

    async def _call_tool(self, message_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name")
        arguments = params.get("arguments", {})

        try:
            self._lookup_kind(tool_name, TOOL)
        except UnknownOperationError:
            response = self._fail(
                Request(message_id, tool_name, arguments),
                UnknownOperationError(tool_name),
                f"Unknown tool: {tool_name}",
            )
        else:
            response = await self.dispatch(Request(message_id, tool_name, arguments))

        return jsonrpc_result(message_id, {
            "content": response.content,
            "isError": response.is_error,
        })

    async def _get_prompt(self, message_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        prompt_name = params.get("name")
        try:
            operation = self._lookup_kind(prompt_name, PROMPT)
        except UnknownOperationError:
            return jsonrpc_error(message_id, INVALID_PARAMS, f"Unknown prompt: {prompt_name}")

        response = await self.dispatch(Request(message_id, prompt_name, params.get("arguments", {})))
        if response.is_error:
            code = INTERNAL_ERROR if response.error_kind == HandlerError.__name__ else INVALID_PARAMS
            return jsonrpc_error(message_id, code, response.text)

        return jsonrpc_result(message_id, {
            "description": operation.description,
            "messages": response.content,
        })

    async def _read_resource(self, message_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        uri = params.get("uri")
        try:
            operation = self.registry.lookup_uri(uri)
        except UnknownOperationError:
            return jsonrpc_error(message_id, INVALID_PARAMS, f"Unknown resource: {uri}")

        response = await self.dispatch(Request(message_id, operation.name, {}))
        content = response.content
        if response.is_error and not any("uri" in block for block in content):
            content = [resource_content(uri, response.text, operation.mime_type)]

        result = {"contents": content}
        if response.is_error:
            result["isError"] = True
        return jsonrpc_result(message_id, result)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    async def run(self, transport) -> None:
        """Serve requests from ``transport`` until its input closes.

        Each request runs in its own task so a slow handler never holds up
        reading. A second request reusing an id that is still in flight is
        rejected; the first one is unaffected.
        """
        in_flight: Dict[Any, asyncio.Task] = {}

        async for message in transport.receive():
            message_id = message.get("id")

            if message_id is None:
                await self.handle_message(message)
                continue

            if not _valid_id(message_id):
                await transport.send(jsonrpc_error(None, INVALID_REQUEST, "Invalid request id"))
                continue

            key = _id_key(message_id)
            if key in in_flight:
                logger.warning(f"Rejecting duplicate in-flight request id: {message_id!r}")
                await transport.send(jsonrpc_error(
                    message_id, INVALID_REQUEST, f"Duplicate request id: {message_id}"
                ))
                continue

            task = asyncio.create_task(self._serve(message, transport))
            in_flight[key] = task
            task.add_done_callback(lambda t, key=key: self._finish(in_flight, key, t))

        if in_flight:
            logger.info(f"Waiting for {len(in_flight)} in-flight requests")
            await asyncio.gather(*list(in_flight.values()), return_exceptions=True)

    def _finish(self, in_flight: Dict[Any, asyncio.Task], key, task: asyncio.Task) -> None:
        in_flight.pop(key, None)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Request {key[1]!r} failed without a response", exc_info=task.exception())

    async def _serve(self, message: Dict[str, Any], transport) -> None:
        response = await self.handle_message(message)
        if response is None:
            return
        try:
            await transport.send(response)
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize response for id {message.get('id')!r}: {e}")
            await transport.send(jsonrpc_error(
                message.get("id"), INTERNAL_ERROR, f"Internal error: response is not JSON: {e}"
            ))

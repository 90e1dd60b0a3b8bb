"""
Newline-delimited JSON transport over stdin/stdout.

stdout carries protocol messages only. Anything human-readable goes through
``logging`` to stderr.
"""

import asyncio
import json
import logging
import sys
from typing import Any, AsyncIterator, Dict, Optional, TextIO

from mcp_template.errors import TransportError

logger = logging.getLogger(__name__)


class StdioTransport:
    """Reads one JSON message per line and writes one JSON message per line."""

    def __init__(self, input_stream: Optional[TextIO] = None, output_stream: Optional[TextIO] = None):
        self.input_stream = input_stream if input_stream is not None else sys.stdin
        self.output_stream = output_stream if output_stream is not None else sys.stdout
        for stream in (self.input_stream, self.output_stream):
            if stream is None or getattr(stream, "closed", False):
                raise TransportError("stdio stream is not available")
        self._send_lock: Optional[asyncio.Lock] = None

    def _readline(self):
        # Read bytes when possible so a badly encoded line can be skipped
        # instead of raising out of the text layer
        buffer = getattr(self.input_stream, "buffer", None)
        if buffer is not None:
            return buffer.readline()
        return self.input_stream.readline()

    async def receive(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield decoded messages until the input stream closes.

        Lines that are not valid JSON objects are logged and skipped.
        """
        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(None, self._readline)
            except UnicodeDecodeError as e:
                logger.error(f"Undecodable line skipped: {e}")
                continue
            if not line:
                logger.info("Input stream closed")
                break

            if isinstance(line, bytes):
                try:
                    line = line.decode("utf-8")
                except UnicodeDecodeError as e:
                    logger.error(f"Invalid UTF-8 received: {line[:100]!r} - {e}")
                    continue

            # Strip whitespace and skip empty lines
            line = line.strip()
            if not line:
                continue

            try:
                message = json.loads(line)
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON received: {line[:100]!r} - {e}")
                continue

            if not isinstance(message, dict):
                logger.warning(f"Skipping non-object message: {line[:100]!r}")
                continue

            yield message

    async def send(self, message: Dict[str, Any]) -> None:
        """Write ``message`` as a single line. Concurrent sends never interleave."""
        if self._send_lock is None:
            self._send_lock = asyncio.Lock()
        data = json.dumps(message) + "\n"
        async with self._send_lock:
            self.output_stream.write(data)
            self.output_stream.flush()

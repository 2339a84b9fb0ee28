from __future__ import annotations

import asyncio
import enum
import json
import logging
import os
import stat
import sys
from typing import IO, Any, BinaryIO, Dict, Optional, Protocol, Tuple

from .protocol import PARSE_ERROR, MCPProtocolHandler, error_response

logger = logging.getLogger(__name__)

STREAM_LIMIT = 16 * 1024 * 1024


class StdioState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_REQUEST = "awaiting_request"
    DISPATCHING = "dispatching"
    CLOSED = "closed"


class LineReader(Protocol):
    async def readline(self) -> bytes: ...


class LineWriter(Protocol):
    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...


class StdioServer:
    """
    Newline-delimited JSON-RPC over a pair of byte streams.

    One request is read, dispatched and answered before the next line is
    read; there is no pipelining within a session.
    """

    def __init__(
        self,
        handler: MCPProtocolHandler,
        reader: LineReader,
        writer: LineWriter,
    ) -> None:
        self.handler = handler
        self.reader = reader
        self.writer = writer
        self.state = StdioState.IDLE
        self.handled = 0

    async def serve(self) -> None:
        logger.info("Spoonacular MCP Server running on stdio")
        self.state = StdioState.AWAITING_REQUEST
        try:
            while True:
                try:
                    line = await self.reader.readline()
                except ValueError as exc:
                    # Oversized line; the reader has already dropped it.
                    await self._write(error_response(None, PARSE_ERROR, f"Parse error: {exc}"))
                    continue
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue

                self.state = StdioState.DISPATCHING
                response = await self.handler.handle_line(line)
                if response is not None:
                    await self._write(response)
                self.handled += 1
                self.state = StdioState.AWAITING_REQUEST
        finally:
            self.state = StdioState.CLOSED
            logger.info("stdin closed after %d messages", self.handled)

    async def _write(self, message: Dict[str, Any]) -> None:
        data = json.dumps(message, ensure_ascii=False, separators=(",", ":")).encode("utf-8") + b"\n"
        self.writer.write(data)
        await self.writer.drain()


class ThreadedLineReader:
    """Blocking line reads in a worker thread, for stdin redirected from a file."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    async def readline(self) -> bytes:
        return await asyncio.to_thread(self._stream.readline)


class ThreadedLineWriter:
    """Buffered writes flushed from a worker thread, for stdout redirected to a file."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write(self, data: bytes) -> None:
        self._stream.write(data)

    async def drain(self) -> None:
        await asyncio.to_thread(self._stream.flush)


def _is_pipe(stream: IO[Any]) -> bool:
    # connect_read_pipe/connect_write_pipe reject regular files.
    mode = os.fstat(stream.fileno()).st_mode
    return stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode) or stat.S_ISCHR(mode)


async def open_stdio_streams() -> Tuple[LineReader, LineWriter]:
    loop = asyncio.get_running_loop()

    reader: LineReader
    stream_reader: Optional[asyncio.StreamReader] = None
    if _is_pipe(sys.stdin):
        stream_reader = asyncio.StreamReader(limit=STREAM_LIMIT)
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(stream_reader), sys.stdin)
        reader = stream_reader
    else:
        logger.debug("stdin is a regular file; reading it from a worker thread")
        reader = ThreadedLineReader(sys.stdin.buffer)

    writer: LineWriter
    if _is_pipe(sys.stdout):
        transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
        writer = asyncio.StreamWriter(transport, protocol, stream_reader, loop)
    else:
        logger.debug("stdout is a regular file; writing it from a worker thread")
        writer = ThreadedLineWriter(sys.stdout.buffer)
    return reader, writer


async def run_stdio(handler: MCPProtocolHandler) -> None:
    reader, writer = await open_stdio_streams()
    server = StdioServer(handler, reader, writer)
    try:
        await server.serve()
    finally:
        await handler.tool_service.aclose()

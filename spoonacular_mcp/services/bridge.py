from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

logger = logging.getLogger(__name__)

_JSONRPC_VERSION = "2.0"
_STREAM_LIMIT = 16 * 1024 * 1024

T = TypeVar("T")


class BridgeError(RuntimeError):
    pass


class BridgeTimeoutError(BridgeError):
    pass


class SubprocessBridge:
    """
    Request/response access to a stdio MCP server running as a child process.

    Requests are serialised with a lock so only one is in flight per child.
    Framing is one JSON document per line. Each request is sent under a
    bridge-assigned id and only the reply carrying that id is accepted;
    anything else on stdout (late replies to timed-out requests,
    notifications) is discarded. The caller's id is restored on the reply.
    """

    def __init__(
        self,
        command: List[str],
        *,
        env: Dict[str, str] | None = None,
        timeout_seconds: float = 30.0,
        cwd: str | None = None,
    ) -> None:
        if not command:
            raise ValueError("A command is required to launch the MCP server")
        self.command = command
        self.env = env
        self.timeout_seconds = timeout_seconds
        self.cwd = cwd
        self.spawn_count = 0
        self._process: asyncio.subprocess.Process | None = None
        self._lock = asyncio.Lock()
        self._next_id = 0
        self._partial_write = False
        self._background: List[asyncio.Task[None]] = []

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    def is_alive(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Spawn the child, replacing any previous instance."""
        if self._process is not None:
            await self.stop()

        logger.info("Launching MCP stdio server: %s", " ".join(self.command))
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env if self.env is not None else os.environ.copy(),
                cwd=self.cwd,
                limit=_STREAM_LIMIT,
            )
        except OSError as exc:
            raise BridgeError(f"Failed to start MCP server: {exc}") from exc

        self._process = process
        self.spawn_count += 1
        self._partial_write = False
        self._background = [
            asyncio.create_task(self._log_stderr(process)),
            asyncio.create_task(self._watch_exit(process)),
        ]

    async def stop(self) -> None:
        process = self._process
        self._process = None
        if process is not None:
            if process.stdin and not process.stdin.is_closing():
                process.stdin.close()
            if process.returncode is None:
                process.terminate()
                try:
                    await asyncio.wait_for(process.wait(), timeout=2.0)
                except asyncio.TimeoutError:
                    process.kill()
                    await process.wait()
        for task in self._background:
            if not task.done():
                task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._background = []

    async def request(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Forward one JSON-RPC message; returns None for notifications."""
        async with self._lock:
            if not self.is_alive():
                if self._process is not None:
                    logger.warning("MCP server is not running; restarting")
                await self.start()

            if "id" not in message:
                await self._with_deadline(self._send(message), message)
                return None

            client_id = message["id"]
            bridge_id = self._next_request_id()
            reply = await self._with_deadline(self._exchange({**message, "id": bridge_id}), message)

        reply["id"] = client_id
        return reply

    async def _with_deadline(self, operation: Awaitable[T], message: Dict[str, Any]) -> T:
        # One deadline covers writing the request and reading the reply.
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "No reply from MCP server within %.1fs for method '%s'",
                self.timeout_seconds,
                message.get("method"),
            )
            if self._partial_write:
                # The child's stdin now holds half a line; framing cannot recover.
                logger.error("MCP server stopped reading its input; stopping it")
                await self.stop()
            raise BridgeTimeoutError("Request timeout") from None

    async def _exchange(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        await self._send(payload)
        return await self._receive(payload["id"])

    async def _send(self, payload: Dict[str, Any]) -> None:
        process = self._process
        if process is None or process.stdin is None:
            raise BridgeError("MCP server is not running")
        data = json.dumps(payload, separators=(",", ":")).encode("utf-8") + b"\n"
        self._partial_write = True
        try:
            process.stdin.write(data)
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            await self._reap(process)
            raise BridgeError(f"MCP server stdin closed: {exc}") from exc
        self._partial_write = False

    async def _receive(self, target_id: str) -> Dict[str, Any]:
        process = self._process
        if process is None or process.stdout is None:
            raise BridgeError("MCP server is not running")
        while True:
            line = await process.stdout.readline()
            if not line:
                await self._reap(process)
                raise BridgeError("MCP server closed the connection unexpectedly")
            try:
                message = json.loads(line.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                logger.debug("Ignoring non-JSON output from MCP server: %r", line[:200])
                continue
            if isinstance(message, dict) and message.get("id") == target_id:
                return message
            logger.debug("Discarding unmatched MCP message: %r", line[:200])

    async def _reap(self, process: asyncio.subprocess.Process) -> None:
        # A closed pipe usually means the child is exiting; wait so is_alive() sees it.
        try:
            await asyncio.wait_for(process.wait(), timeout=2.0)
        except asyncio.TimeoutError:
            logger.warning("MCP server closed its pipes but did not exit; killing it")
            process.kill()
            await process.wait()

    async def _log_stderr(self, process: asyncio.subprocess.Process) -> None:
        if process.stderr is None:
            return
        while True:
            line = await process.stderr.readline()
            if not line:
                return
            logger.info("MCP stderr: %s", line.decode("utf-8", errors="replace").rstrip())

    async def _watch_exit(self, process: asyncio.subprocess.Process) -> None:
        code = await process.wait()
        logger.info("MCP process exited with code %s", code)

    def _next_request_id(self) -> str:
        self._next_id += 1
        return f"bridge-{self._next_id}"

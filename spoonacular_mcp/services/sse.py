from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def format_event(event: str, data: str) -> str:
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


@dataclass
class SSESession:
    id: str
    queue: "asyncio.Queue[Dict[str, Any]]" = field(default_factory=asyncio.Queue)

    async def send(self, message: Dict[str, Any]) -> None:
        await self.queue.put(message)


class SSESessionManager:
    """Tracks open event streams so POSTed messages can be answered on them."""

    def __init__(self, message_path: str = "/message", keepalive_seconds: float = 15.0) -> None:
        self.message_path = message_path
        self.keepalive_seconds = keepalive_seconds
        self._sessions: Dict[str, SSESession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> SSESession:
        session = SSESession(id=uuid.uuid4().hex)
        self._sessions[session.id] = session
        logger.info("Opened SSE session %s", session.id)
        return session

    def get(self, session_id: str) -> Optional[SSESession]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info("Closed SSE session %s", session_id)

    def endpoint_for(self, session: SSESession) -> str:
        return f"{self.message_path}?sessionId={session.id}"

    async def stream(
        self,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[str]:
        """Open a session and yield its events until the client goes away.

        The session only exists while the generator is running, so a client
        that disconnects before the body starts never registers one.
        """
        session = self.create()
        try:
            yield format_event("endpoint", self.endpoint_for(session))
            while True:
                try:
                    message = await asyncio.wait_for(session.queue.get(), timeout=self.keepalive_seconds)
                except asyncio.TimeoutError:
                    if is_disconnected is not None and await is_disconnected():
                        break
                    yield ": keepalive\n\n"
                    continue
                yield format_event("message", json.dumps(message, ensure_ascii=False))
        finally:
            self.remove(session.id)

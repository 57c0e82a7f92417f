from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional


def sse_frame(event: str, data: Optional[Dict[str, Any]] = None) -> str:
    """
    Server-sent events frame: ``event: <name>\\ndata: <json>\\n\\n``.
    """
    body = json.dumps(data if data is not None else {}, default=str, separators=(",", ":"))
    return f"event: {event}\ndata: {body}\n\n"


class ConnectionClosed(Exception):
    pass


class QueueConnection:
    """
    One open live-update stream.

    ``write`` may be called from any thread; frames are handed to the
    stream's event loop and consumed by the response generator via ``next_frame``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = 100):
        self._loop = loop
        self._queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def write(self, payload: Dict[str, Any]) -> None:
        if self.closed or self._loop.is_closed():
            raise ConnectionClosed("stream is closed")
        frame = sse_frame("notification", payload)
        self._loop.call_soon_threadsafe(self._enqueue, frame)

    def _enqueue(self, frame: str) -> None:
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            # slow consumer; the client reconciles from the store on reconnect
            self.closed = True

    async def next_frame(self, timeout: float) -> Optional[str]:
        """Next queued frame, or None if nothing arrived within ``timeout``."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        self.closed = True

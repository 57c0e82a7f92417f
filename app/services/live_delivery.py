# app/services/live_delivery.py
from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Dict, Protocol, Set

logger = logging.getLogger(__name__)


class LiveConnection(Protocol):
    def write(self, payload: Dict[str, Any]) -> None: ...


class LiveDeliveryRegistry:
    """
    Process-local map of member id -> open live connections.

    Not persisted and not shared across processes: a member with no open
    connection simply misses the push and reconciles from the notification
    store on reconnect.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._streams: Dict[uuid.UUID, Set[LiveConnection]] = {}

    def register(self, member_id: uuid.UUID, connection: LiveConnection) -> None:
        with self._lock:
            self._streams.setdefault(member_id, set()).add(connection)

    def unregister(self, member_id: uuid.UUID, connection: LiveConnection) -> None:
        with self._lock:
            streams = self._streams.get(member_id)
            if not streams:
                return
            streams.discard(connection)
            if not streams:
                del self._streams[member_id]

    def push(self, member_id: uuid.UUID, payload: Dict[str, Any]) -> int:
        """
        Write ``payload`` to every open connection of ``member_id``.

        Returns the number of successful writes. Failing connections are
        dropped; nothing is raised to the caller.
        """
        with self._lock:
            targets = list(self._streams.get(member_id, ()))

        delivered = 0
        for conn in targets:
            try:
                conn.write(payload)
                delivered += 1
            except Exception as exc:
                logger.warning(
                    "[live] dropping dead connection member=%s error=%s", member_id, exc
                )
                self.unregister(member_id, conn)
        return delivered

    def connection_count(self, member_id: uuid.UUID) -> int:
        with self._lock:
            return len(self._streams.get(member_id, ()))

    def member_count(self) -> int:
        with self._lock:
            return len(self._streams)

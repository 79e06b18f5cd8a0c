"""Process-wide registry of realtime notification connections."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, DefaultDict, Iterable, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Track websocket subscribers per user between ``start()`` and ``stop()``.

    The registry knows nothing about notifications: it only fans a JSON
    message out to the sockets subscribed for a set of user ids.
    """

    def __init__(self) -> None:
        self._connections: DefaultDict[int, Set[WebSocket]] = defaultdict(set)
        self._pending: Set[asyncio.Task[None]] = set()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Open the registry for new subscribers."""

        self._running = True
        logger.info("Realtime connection registry started")

    async def stop(self) -> None:
        """Cancel pending deliveries and close every registered socket."""

        self._running = False
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending.clear()

        connections = [
            (user_id, websocket)
            for user_id, sockets in self._connections.items()
            for websocket in sockets
        ]
        self._connections.clear()
        for user_id, websocket in connections:
            try:
                await websocket.close(code=1001)
            except Exception:  # pragma: no cover - socket already gone
                logger.debug("Websocket for user %s was already closed", user_id)
        logger.info("Realtime connection registry stopped")

    async def connect(self, user_id: int, websocket: WebSocket) -> bool:
        """Accept ``websocket`` and subscribe it to ``user_id``'s messages."""

        if not self._running:
            await websocket.close(code=1013)
            return False
        await websocket.accept()
        self._connections[user_id].add(websocket)
        return True

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        connections = self._connections.get(user_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(user_id, None)

    def subscriber_count(self, user_id: int) -> int:
        return len(self._connections.get(user_id, ()))

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> None:
        """Send ``message`` to every active connection for ``user_id``."""

        for connection in list(self._connections.get(user_id, set())):
            try:
                await connection.send_json(message)
            except Exception:  # pragma: no cover - stale socket cleanup
                logger.debug("Dropping stale websocket for user %s", user_id)
                self.disconnect(user_id, connection)

    async def broadcast(self, user_ids: Iterable[int], message: dict[str, Any]) -> None:
        """Send ``message`` to the subscribers of every user in ``user_ids``."""

        for user_id in {user_id for user_id in user_ids if user_id}:
            await self.send_to_user(user_id, dict(message))

    def schedule_broadcast(self, user_ids: Iterable[int], message: dict[str, Any]) -> None:
        """Start :meth:`broadcast` as a task on the running event loop."""

        if not self._running:
            return
        task = asyncio.get_running_loop().create_task(
            self.broadcast(list(user_ids), message)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


connection_registry = ConnectionRegistry()


__all__ = ["ConnectionRegistry", "connection_registry"]

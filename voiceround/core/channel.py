"""
Client channel

Wraps one WebSocket connection for outbound traffic:
- JSON control messages and binary frames are written under a send lock
- A stream lock lets the audio streamer own the socket for a whole payload
- Background tasks spawned for the connection are tracked and cancelled
  when it closes
"""

import asyncio
import json
import logging
from typing import Any, Coroutine, Protocol

logger = logging.getLogger(__name__)


class SocketLike(Protocol):
    async def send_text(self, data: str) -> None: ...

    async def send_bytes(self, data: bytes) -> None: ...


class ClientChannel:
    """Outbound side of one client connection."""

    def __init__(self, websocket: SocketLike, name: str = "client"):
        self.websocket = websocket
        self.name = name
        self.send_lock = asyncio.Lock()
        self.stream_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send_json(self, payload: dict[str, Any]) -> None:
        async with self.send_lock:
            await self.websocket.send_text(json.dumps(payload, ensure_ascii=False))

    async def send_bytes(self, data: bytes) -> None:
        async with self.send_lock:
            await self.websocket.send_bytes(data)

    async def send_error(self, error: str) -> None:
        await self.send_json({"type": "error", "error": error})

    # =========================================================================
    # BACKGROUND WORK
    # =========================================================================

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """
        Run fire-and-forget work tied to this connection.

        Exceptions are logged and never propagate to the caller.
        """
        task = asyncio.create_task(coro, name=f"{self.name}:{name}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Background task {task.get_name()} failed: {exc!r}",
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def wait_background(self) -> None:
        """Wait for all outstanding background tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding background work."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

"""In-memory FIFO queue delivering messages between agents."""
from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

from agentflow.logging import get_logger

from .models import AgentMessage

logger = get_logger(__name__)

Deliver = Callable[[AgentMessage], Awaitable[None]]


class MessageRouter:
    """Single shared queue drained by at most one loop at a time.

    A drain is scheduled whenever a message is routed and no drain is running,
    and a periodic background drain picks up anything left behind. The
    ``_draining`` flag is checked and set without an intervening ``await`` so
    the two triggers can never run concurrently on the same event loop.
    """

    def __init__(self, deliver: Deliver, *, interval: float = 1.0) -> None:
        self._deliver = deliver
        self._interval = interval
        self._queue: Deque[AgentMessage] = deque()
        self._draining = False
        self._drain_task: Optional[asyncio.Task[None]] = None
        self._runner: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def is_draining(self) -> bool:
        return self._draining

    def route(self, message: AgentMessage) -> None:
        """Enqueue a message and schedule a drain unless one is in flight.

        Must be called from the event loop; outside it this raises
        ``RuntimeError`` and the message is not queued.
        """
        loop = asyncio.get_running_loop()
        self._queue.append(message)
        if not self._draining:
            self._drain_task = loop.create_task(self.drain())

    async def drain(self) -> int:
        """Deliver queued messages in FIFO order; returns how many were handled."""
        if self._draining:
            return 0
        self._draining = True
        delivered = 0
        try:
            while self._queue:
                message = self._queue.popleft()
                try:
                    await self._deliver(message)
                except Exception:  # noqa: BLE001
                    logger.exception(
                        "message_delivery_failed",
                        message_id=message.id,
                        to_agent=message.to_agent,
                        message_type=message.message_type.value,
                    )
                delivered += 1
        finally:
            self._draining = False
        return delivered

    async def join(self) -> None:
        """Wait until the queue is empty and no drain is running."""
        while self._queue or self._draining:
            task = self._drain_task
            if task is not None and not task.done():
                await task
            elif self._draining:
                await asyncio.sleep(0)
            else:
                await self.drain()

    async def start(self) -> None:
        """Start the periodic safety-net drain."""
        if self._runner is not None:
            return
        self._stop_event.clear()
        self._runner = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._runner is None:
            return
        self._stop_event.set()
        await self._runner
        self._runner = None

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                if self._queue and not self._draining:
                    await self.drain()

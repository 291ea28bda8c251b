"""
Per-project fan-out of generation events.

Each subscriber owns a queue; ``publish`` copies the subscriber list
under the lock and enqueues outside it, so one event reaches every
handle subscribed at that moment, in publish order. Events are not
retained for subscribers that join later.
"""
from __future__ import annotations
import asyncio
import itertools
import logging
import threading
from collections import defaultdict
from typing import AsyncIterator, Dict, List, Optional

from projectgen.core.config import settings
from projectgen.core.workflow import GenerationEvent

log = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """A handle returned by ``BroadcastHub.subscribe``."""

    def __init__(self, hub: "BroadcastHub", project_id: str, handle_id: int, max_size: int = 0):
        self.hub = hub
        self.project_id = project_id
        self.id = handle_id
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self.closed = False

    def _offer(self, event: GenerationEvent) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            return False

    def _close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # get() sees `closed` once the backlog drains.
            pass

    async def get(self, timeout: Optional[float] = None) -> Optional[GenerationEvent]:
        """Next event, or None once the subscription is closed and drained."""
        if self.closed and self._queue.empty():
            return None
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            return None
        return item

    def get_nowait(self) -> Optional[GenerationEvent]:
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        return None if item is _CLOSED else item

    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self) -> AsyncIterator[GenerationEvent]:
        return self._iterate()

    async def _iterate(self):
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


class BroadcastHub:
    def __init__(self, max_queue_size: Optional[int] = None):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[Subscription]] = defaultdict(list)
        self._ids = itertools.count(1)
        self._max_queue_size = settings.subscriber_queue_size if max_queue_size is None else max_queue_size

    def subscribe(self, project_id: str) -> Subscription:
        with self._lock:
            handle = Subscription(self, project_id, next(self._ids), self._max_queue_size)
            self._subscribers[project_id].append(handle)
        log.debug("Subscriber %d joined", handle.id, extra={"project_id": project_id, "stage": "-"})
        return handle

    def unsubscribe(self, handle: Subscription) -> None:
        with self._lock:
            handles = self._subscribers.get(handle.project_id)
            if handles and handle in handles:
                handles.remove(handle)
                if not handles:
                    del self._subscribers[handle.project_id]
        handle._close()
        log.debug("Subscriber %d left", handle.id, extra={"project_id": handle.project_id, "stage": "-"})

    def publish(self, project_id: str, event: GenerationEvent) -> int:
        """Deliver ``event`` to current subscribers; returns how many received it."""
        with self._lock:
            handles = list(self._subscribers.get(project_id, ()))
        delivered = 0
        for handle in handles:
            if handle._offer(event):
                delivered += 1
            elif not handle.closed:
                log.warning("Subscriber %d queue full, disconnecting", handle.id,
                            extra={"project_id": project_id, "stage": event.stage or "-"})
                self.unsubscribe(handle)
        return delivered

    def subscriber_count(self, project_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(project_id, ()))

    def close_all(self) -> None:
        with self._lock:
            handles = [h for hs in self._subscribers.values() for h in hs]
            self._subscribers.clear()
        for handle in handles:
            handle._close()

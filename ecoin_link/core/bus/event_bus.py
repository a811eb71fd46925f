# ecoin_link/core/bus/event_bus.py
from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class EventBus:
    """
    Lightweight async pub/sub bus feeding the dashboard.

    - topic-based
    - subscribers get an asyncio.Queue
    - publishers push events without blocking (drops oldest if full)
    """

    def __init__(self):
        self._subs: Dict[str, List[asyncio.Queue]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, topic: str, maxsize: int = 8) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        async with self._lock:
            self._subs.setdefault(topic, []).append(q)
        return q

    async def unsubscribe(self, topic: str, q: asyncio.Queue) -> None:
        async with self._lock:
            if topic in self._subs:
                self._subs[topic] = [qq for qq in self._subs[topic] if qq is not q]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subs.get(topic, []))

    def publish_nowait(self, topic: str, event: Any) -> None:
        for q in list(self._subs.get(topic, [])):
            if q.full():
                try:
                    q.get_nowait()
                except asyncio.QueueEmpty:
                    pass
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug("[BUS] dropped %s event for slow subscriber", topic)

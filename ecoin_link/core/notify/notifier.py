# ecoin_link/core/notify/notifier.py
from __future__ import annotations

import logging
import time

logger = logging.getLogger(__name__)


class Notifier:
    """
    Pushes operator alerts to connected dashboards; the browser turns them
    into desktop notifications. Fire-and-forget.
    """

    def __init__(self, bus=None):
        self.bus = bus
        self.sent = 0

    def notify(self, title: str, body: str) -> None:
        self.sent += 1
        logger.info("[NOTIFY] %s: %s", title, body)
        if self.bus is None:
            return
        self.bus.publish_nowait(
            "notification",
            {"title": title, "body": body, "timestamp": time.time()},
        )

# ecoin_link/core/store/detections.py
"""
Running detection total + recent event history.

Persisted as a small JSON document so the counter survives restarts:
  {"total": int, "history": [{"id", "timestamp", "label"}, ...]}  newest first
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

from ecoin_link.core.bus.models import DetectionEvent

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "IR Signal Detected"
DEFAULT_MAX_HISTORY = 100

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_event_id(length: int = 9) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


class DetectionStore:
    def __init__(
        self,
        path: Optional[Path] = None,
        max_history: int = DEFAULT_MAX_HISTORY,
        notifier=None,
        bus=None,
    ):
        self.path = Path(path) if path is not None else None
        self.max_history = int(max_history)
        self.notifier = notifier
        self.bus = bus

        self.total = 0
        self._history: Deque[DetectionEvent] = deque(maxlen=self.max_history)

    # -------------------------------------------------
    # Persistence
    # -------------------------------------------------
    def load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            total = int(data.get("total", 0))
            events = [DetectionEvent.from_dict(d) for d in data.get("history", [])]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("[STORE] ignoring unreadable %s: %s", self.path, e)
            return

        self.total = max(total, 0)
        self._history = deque(events[: self.max_history], maxlen=self.max_history)
        logger.info("[STORE] restored total=%d history=%d", self.total, len(self._history))

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.snapshot(), indent=2), encoding="utf-8")

    # -------------------------------------------------
    # Detection intake
    # -------------------------------------------------
    def record_detection(self, label: str = DEFAULT_LABEL) -> DetectionEvent:
        self.total += 1
        event = DetectionEvent(id=new_event_id(), ts=time.time(), label=label)
        # newest first; the oldest drops off the right end
        self._history.appendleft(event)

        try:
            self.save()
        except OSError as e:
            logger.error("[STORE] failed to persist detection: %s", e)

        if self.bus is not None:
            self.bus.publish_nowait("detection", {"total": self.total, "event": event.to_dict()})
        if self.notifier is not None:
            self.notifier.notify(
                "Ecoin Alert",
                f"Infrared sensor tripped! Total detections: {self.total}",
            )
        return event

    def clear(self) -> None:
        self.total = 0
        self._history.clear()
        self.save()
        if self.bus is not None:
            self.bus.publish_nowait("detection", {"total": 0, "event": None})

    # -------------------------------------------------
    # Views
    # -------------------------------------------------
    @property
    def history(self) -> List[DetectionEvent]:
        return list(self._history)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "history": [e.to_dict() for e in self._history],
        }

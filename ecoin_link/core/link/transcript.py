# ecoin_link/core/link/transcript.py
from __future__ import annotations

from collections import deque
from typing import Deque, Optional, Tuple

from ecoin_link.core.bus.models import Direction, TranscriptEntry

DEFAULT_MAX_ENTRIES = 50


class SessionLog:
    """
    Bounded serial console transcript.

    Insertion ordered; the oldest entry falls off when the bound is hit.
    """

    def __init__(self, maxlen: int = DEFAULT_MAX_ENTRIES, bus=None):
        self.maxlen = int(maxlen)
        self._entries: Deque[TranscriptEntry] = deque(maxlen=self.maxlen)
        self.bus = bus

    def append(self, entry: TranscriptEntry) -> None:
        self._entries.append(entry)
        if self.bus is not None:
            self.bus.publish_nowait("transcript", entry.to_dict())

    def record(self, direction: Direction, text: str, ts: Optional[float] = None) -> TranscriptEntry:
        if ts is None:
            entry = TranscriptEntry(direction=direction, text=text)
        else:
            entry = TranscriptEntry(direction=direction, text=text, ts=ts)
        self.append(entry)
        return entry

    def snapshot(self) -> Tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

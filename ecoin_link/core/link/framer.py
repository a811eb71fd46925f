# ecoin_link/core/link/framer.py
"""
Newline framing for the device's text stream.

Serial chunks arrive with arbitrary boundaries (half a line, three lines,
a split UTF-8 sequence). The framer keeps the partial tail between calls so
the resulting line sequence only depends on the concatenated stream.
"""

from __future__ import annotations

import codecs
from typing import AsyncIterator, List, Optional, Protocol


class ChunkReader(Protocol):
    async def read(self) -> bytes:
        """Next chunk, or b"" at end of stream."""
        ...


class LineFramer:
    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    def feed_bytes(self, chunk: bytes) -> List[str]:
        return self.feed(self._decoder.decode(chunk))

    def feed(self, text: str) -> List[str]:
        if not text:
            return []
        parts = (self._pending + text).split("\n")
        self._pending = parts.pop()
        return [p.strip() for p in parts]

    def flush(self) -> Optional[str]:
        tail = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if not tail:
            return None
        return tail.strip()

    async def iter_lines(self, reader: ChunkReader) -> AsyncIterator[str]:
        while True:
            chunk = await reader.read()
            if not chunk:
                break
            for line in self.feed_bytes(chunk):
                yield line

        tail = self.flush()
        if tail is not None:
            yield tail

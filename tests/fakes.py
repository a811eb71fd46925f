"""
Fake serial host/port/handles standing in for pyserial in unit tests.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from ecoin_link.core.link.errors import PortSelectionCancelled


class FakeReader:
    def __init__(self):
        self._q: asyncio.Queue = asyncio.Queue()
        self.cancelled = 0
        self.cancel_error: Optional[Exception] = None

    def push(self, item) -> None:
        """bytes = chunk, b"" = end of stream, Exception = read fault."""
        self._q.put_nowait(item)

    async def read(self) -> bytes:
        item = await self._q.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def cancel(self) -> None:
        self.cancelled += 1
        if self.cancel_error is not None:
            raise self.cancel_error
        self._q.put_nowait(b"")


class FakeWriter:
    def __init__(self):
        self.writes: List[bytes] = []
        self.released = 0
        self.fail_with: Optional[Exception] = None
        self.release_error: Optional[Exception] = None
        self.active = 0
        self.max_active = 0

    async def write(self, data: bytes) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            if self.fail_with is not None:
                raise self.fail_with
            self.writes.append(data)
        finally:
            self.active -= 1

    async def release(self) -> None:
        self.released += 1
        if self.release_error is not None:
            raise self.release_error


class FakePort:
    def __init__(self, name: str = "/dev/ttyUSB0"):
        self.name = name
        self.baud_rate: Optional[int] = None
        self.open_error: Optional[Exception] = None
        self.reader_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None
        self.closed = 0
        self.read_handle = FakeReader()
        self.write_handle = FakeWriter()

    async def open(self, baud_rate: int) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.baud_rate = baud_rate

    def reader(self) -> FakeReader:
        if self.reader_error is not None:
            raise self.reader_error
        return self.read_handle

    def writer(self) -> FakeWriter:
        return self.write_handle

    async def close(self) -> None:
        self.closed += 1
        if self.close_error is not None:
            raise self.close_error


class GatedPort(FakePort):
    """open() parks until the test sets `gate`."""

    def __init__(self, name: str = "/dev/ttyUSB0"):
        super().__init__(name)
        self.gate = asyncio.Event()
        self.opening = False
        self.handles_taken = 0

    async def open(self, baud_rate: int) -> None:
        self.opening = True
        await self.gate.wait()
        await super().open(baud_rate)

    def reader(self) -> FakeReader:
        self.handles_taken += 1
        return super().reader()

    def writer(self) -> FakeWriter:
        self.handles_taken += 1
        return super().writer()


class FakeHost:
    def __init__(self, port: Optional[FakePort] = None, supported: bool = True):
        self.port = port or FakePort()
        self.supported = supported
        self.cancel_selection = False
        self.requests: List[Optional[str]] = []

    def list_ports(self):
        return [{"device": self.port.name, "description": "ESP32", "hwid": "USB VID:PID=10C4:EA60"}]

    async def request_port(self, port_name=None) -> FakePort:
        self.requests.append(port_name)
        if self.cancel_selection:
            raise PortSelectionCancelled("no port chosen")
        return self.port


class SequenceHost(FakeHost):
    """Hands out a different port on each request."""

    def __init__(self, ports: List[FakePort]):
        super().__init__(ports[0])
        self.ports = list(ports)

    async def request_port(self, port_name=None) -> FakePort:
        self.requests.append(port_name)
        return self.ports.pop(0)


class RecordingRecorder:
    def __init__(self, fail: bool = False):
        self.calls = 0
        self.fail = fail

    def record_detection(self):
        self.calls += 1
        if self.fail:
            raise RuntimeError("store offline")


async def wait_until(predicate, tries: int = 500) -> None:
    for _ in range(tries):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")

# ecoin_link/core/link/transport.py
"""
pyserial-backed device transport.

Blocking pyserial calls run in worker threads so the event loop keeps
serving the dashboard. The read side is unblocked with Serial.cancel_read(),
which is how a disconnect tears down an in-flight read.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

from ecoin_link.core.link.errors import PortSelectionCancelled

try:
    import serial
    from serial.tools import list_ports
except Exception:
    serial = None
    list_ports = None

logger = logging.getLogger(__name__)


class SerialReader:
    def __init__(self, ser):
        self._ser = ser
        self._cancelled = False

    async def read(self) -> bytes:
        """
        Next chunk from the device. b"" means end of stream: the reader was
        cancelled, the idle timeout elapsed, or the device node went away.
        """
        if self._cancelled:
            return b""
        return await asyncio.to_thread(self._read_blocking)

    def _read_blocking(self) -> bytes:
        try:
            data = self._ser.read(1)
            if data:
                waiting = self._ser.in_waiting
                if waiting:
                    data += self._ser.read(waiting)
            return data
        except serial.SerialException:
            if self._cancelled or not os.path.exists(self._ser.port or ""):
                # Cable pulled: the device node is gone
                return b""
            raise

    async def cancel(self) -> None:
        self._cancelled = True
        self._ser.cancel_read()


class SerialWriter:
    def __init__(self, ser):
        self._ser = ser
        self._released = False

    async def write(self, data: bytes) -> None:
        if self._released:
            raise RuntimeError("writer already released")
        await asyncio.to_thread(self._write_blocking, data)

    def _write_blocking(self, data: bytes) -> None:
        self._ser.write(data)
        self._ser.flush()

    async def release(self) -> None:
        self._released = True


class SerialPort:
    """One physical port. Hands out a single reader and a single writer."""

    def __init__(self, name: str, idle_timeout_s: Optional[float] = None):
        self.name = name
        self.idle_timeout_s = idle_timeout_s
        self._ser = None

    async def open(self, baud_rate: int) -> None:
        ser = serial.Serial()
        ser.port = self.name
        ser.baudrate = int(baud_rate)
        # None blocks until data arrives
        ser.timeout = self.idle_timeout_s
        await asyncio.to_thread(ser.open)
        self._ser = ser
        logger.info("[LINK] opened %s at %d bps", self.name, baud_rate)

    def reader(self) -> SerialReader:
        if self._ser is None:
            raise RuntimeError(f"port {self.name} is not open")
        return SerialReader(self._ser)

    def writer(self) -> SerialWriter:
        if self._ser is None:
            raise RuntimeError(f"port {self.name} is not open")
        return SerialWriter(self._ser)

    async def close(self) -> None:
        ser, self._ser = self._ser, None
        if ser is not None:
            await asyncio.to_thread(ser.close)


class SerialHost:
    """
    The machine's serial capability.

    Stands in for the browser's port picker: an explicit port name wins,
    then the configured default, then the only attached port. Anything
    else counts as the operator not choosing a port.
    """

    def __init__(self, default_port: Optional[str] = None, idle_timeout_s: Optional[float] = None):
        self.default_port = default_port
        self.idle_timeout_s = idle_timeout_s

    @property
    def supported(self) -> bool:
        return serial is not None

    def list_ports(self) -> List[Dict[str, Any]]:
        if list_ports is None:
            return []
        return [
            {"device": p.device, "description": p.description, "hwid": p.hwid}
            for p in sorted(list_ports.comports(), key=lambda p: p.device)
        ]

    async def request_port(self, port_name: Optional[str] = None) -> SerialPort:
        name = port_name or self.default_port
        if not name:
            candidates = await asyncio.to_thread(self.list_ports)
            if len(candidates) != 1:
                raise PortSelectionCancelled(f"{len(candidates)} candidate ports, none chosen")
            name = candidates[0]["device"]
        return SerialPort(name, idle_timeout_s=self.idle_timeout_s)

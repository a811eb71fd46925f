# ecoin_link/core/link/session.py
"""
Hardware link session.

Single owner of the serial port and its reader/writer handles.

States:
  disconnected -> connecting -> connected -> closing -> disconnected

Responsibilities:
- open the port and start exactly one read loop
- frame inbound text, log it, classify it, forward detections
- serialize outbound writes
- tear everything down best-effort on disconnect, EOF or read fault
"""

from __future__ import annotations

import asyncio
import contextlib
from collections import deque
import logging
from typing import Any, Deque, Dict, Optional, Protocol

from ecoin_link.core.bus.models import (
    Classification,
    Direction,
    LinkState,
    ProvisioningCommand,
)
from ecoin_link.core.link.classifier import classify
from ecoin_link.core.link.errors import (
    LinkError,
    LinkNotConnected,
    LinkOpenError,
    LinkReadError,
    LinkUnsupported,
    LinkWriteError,
    PortSelectionCancelled,
)
from ecoin_link.core.link.framer import LineFramer
from ecoin_link.core.link.provisioning import encode
from ecoin_link.core.link.transcript import SessionLog

logger = logging.getLogger(__name__)

DEFAULT_BAUD_RATE = 115200
MAX_TEARDOWN_FAULTS = 20


class DetectionRecorder(Protocol):
    def record_detection(self) -> Any:
        ...


class LinkSession:
    def __init__(
        self,
        host,
        recorder: DetectionRecorder,
        *,
        baud_rate: int = DEFAULT_BAUD_RATE,
        transcript: Optional[SessionLog] = None,
        bus=None,
    ):
        self.host = host
        self.recorder = recorder
        self.baud_rate = int(baud_rate)
        self.bus = bus
        self.transcript = transcript if transcript is not None else SessionLog(bus=bus)

        self._state = LinkState.DISCONNECTED
        self.port_name: Optional[str] = None

        # Exclusively owned handles
        self._port = None
        self._reader = None
        self._writer = None
        self._read_task: Optional[asyncio.Task] = None

        # Bumped by every connect() and disconnect(); a connect() whose
        # token is no longer current owns nothing but its local port
        self._attempt = 0

        # One in-flight write at a time; extra senders queue on the lock
        self._write_lock = asyncio.Lock()

        self.last_error: Optional[LinkError] = None
        self.teardown_faults: Deque[str] = deque(maxlen=MAX_TEARDOWN_FAULTS)
        self.detections = 0

    # -------------------------------------------------
    # Observability
    # -------------------------------------------------
    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is LinkState.CONNECTED

    def status(self) -> Dict[str, Any]:
        return {
            "state": self._state.value,
            "connected": self.is_connected,
            "port": self.port_name,
            "baud_rate": self.baud_rate,
            "detections": self.detections,
            "last_error": self.last_error.message if self.last_error else None,
        }

    def _set_state(self, state: LinkState) -> None:
        if state is self._state:
            return
        logger.debug("[LINK] %s -> %s", self._state.value, state.value)
        self._state = state
        if self.bus is not None:
            self.bus.publish_nowait("link_state", {"state": state.value, "port": self.port_name})

    def _report(self, err: LinkError) -> None:
        self.last_error = err
        logger.error("[LINK] %s", err.message)
        if self.bus is not None:
            self.bus.publish_nowait(
                "link_error",
                {"error": type(err).__name__, "message": err.message},
            )

    # -------------------------------------------------
    # Lifecycle
    # -------------------------------------------------
    async def connect(self, port_name: Optional[str] = None) -> bool:
        """
        Open the link and start the read loop.

        Returns False when a session is already active, the operator did
        not pick a port, or disconnect() aborted this attempt. Raises
        LinkUnsupported / LinkOpenError.
        """
        if self._state is not LinkState.DISCONNECTED or self._read_loop_active():
            logger.warning("[LINK] connect ignored, session is %s", self._state.value)
            return False

        if not self.host.supported:
            raise LinkUnsupported("Serial access is not supported on this host.")

        self._attempt += 1
        attempt = self._attempt
        self.last_error = None
        self._set_state(LinkState.CONNECTING)

        try:
            port = await self.host.request_port(port_name)
        except PortSelectionCancelled as e:
            logger.info("[LINK] port selection cancelled: %s", e)
            if self._is_current(attempt):
                self._set_state(LinkState.DISCONNECTED)
            return False
        except Exception as e:
            if not self._is_current(attempt):
                return False
            self._set_state(LinkState.DISCONNECTED)
            raise LinkOpenError(f"Link Error: {e}", cause=e) from e

        if not self._is_current(attempt):
            return False

        try:
            await port.open(self.baud_rate)
        except Exception as e:
            if not self._is_current(attempt):
                return False
            self._set_state(LinkState.DISCONNECTED)
            raise LinkOpenError(f"Link Error: {e}", cause=e) from e

        if not self._is_current(attempt):
            # disconnect() ran while the port was opening; the port is ours alone
            await self._release_step("port", port.close)
            return False

        self._port = port
        try:
            self._writer = port.writer()
            self._reader = port.reader()
        except Exception as e:
            await self._release_handles()
            self._set_state(LinkState.DISCONNECTED)
            raise LinkOpenError(f"Link Error: {e}", cause=e) from e

        self.port_name = getattr(port, "name", port_name)
        self._set_state(LinkState.CONNECTED)
        self.transcript.record(Direction.SYSTEM, f"Link Established: {self.baud_rate} bps")

        self._read_task = asyncio.create_task(
            self._read_loop(self._reader), name="link_read_loop"
        )
        return True

    async def disconnect(self) -> None:
        """
        Idempotent teardown. Release faults are logged and kept in
        teardown_faults; they never propagate.
        """
        if self._state in (LinkState.DISCONNECTED, LinkState.CLOSING):
            return

        was_connected = self._state is LinkState.CONNECTED
        # Any connect() still waiting on the port is now stale
        self._attempt += 1

        self._set_state(LinkState.CLOSING)
        reader_released = await self._release_handles()

        task, self._read_task = self._read_task, None
        if task is not None and task is not asyncio.current_task():
            if not reader_released:
                task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning("[LINK] read loop ended with %r during teardown", e)

        self.port_name = None
        self._set_state(LinkState.DISCONNECTED)
        if was_connected:
            self.transcript.record(Direction.SYSTEM, "System detached.")

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._attempt and self._state is LinkState.CONNECTING

    async def wait_closed(self) -> None:
        task = self._read_task
        if task is not None:
            await asyncio.shield(task)

    def _read_loop_active(self) -> bool:
        return self._read_task is not None and not self._read_task.done()

    async def _release_handles(self) -> bool:
        # Order: reader -> writer -> port. Every step runs even if one faults.
        reader, self._reader = self._reader, None
        writer, self._writer = self._writer, None
        port, self._port = self._port, None

        reader_ok = True
        if reader is not None:
            reader_ok = await self._release_step("reader", reader.cancel)
        if writer is not None:
            await self._release_step("writer", writer.release)
        if port is not None:
            await self._release_step("port", port.close)
        return reader_ok

    async def _release_step(self, what: str, release) -> bool:
        try:
            await release()
            return True
        except Exception as e:
            logger.warning("[LINK] serial closure error (%s): %s", what, e)
            self.teardown_faults.append(f"{what}: {e}")
            return False

    # -------------------------------------------------
    # Read loop
    # -------------------------------------------------
    async def _read_loop(self, reader) -> None:
        framer = LineFramer()
        fault: Optional[Exception] = None

        try:
            async with contextlib.aclosing(framer.iter_lines(reader)) as lines:
                async for line in lines:
                    if self._state is not LinkState.CONNECTED:
                        break
                    self._on_line(line)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            fault = e

        if self._state is not LinkState.CONNECTED:
            # disconnect() is already tearing down
            return

        if fault is not None:
            self._report(LinkReadError(f"Link Error: {fault}", cause=fault))
        else:
            logger.info("[LINK] end of stream on %s", self.port_name)

        await self.disconnect()

    def _on_line(self, line: str) -> None:
        self.transcript.record(Direction.INBOUND, f"RX: {line}")
        if not line:
            return
        if classify(line) is not Classification.DETECTED:
            return

        self.detections += 1
        try:
            self.recorder.record_detection()
        except Exception:
            logger.exception("[LINK] detection recorder failed")

    # -------------------------------------------------
    # Outbound
    # -------------------------------------------------
    async def send(self, data: bytes, note: Optional[str] = None) -> None:
        """
        Hand bytes to the transport. Success does not mean the device
        processed them.
        """
        if self._state is not LinkState.CONNECTED or self._writer is None:
            raise LinkNotConnected("Device not connected via Serial.")

        async with self._write_lock:
            writer = self._writer
            if self._state is not LinkState.CONNECTED or writer is None:
                raise LinkNotConnected("Device not connected via Serial.")
            try:
                await writer.write(data)
            except Exception as e:
                logger.error("[LINK] write failed: %s", e)
                raise LinkWriteError(f"Failed to send data: {e}", cause=e) from e

        if note:
            self.transcript.record(Direction.OUTBOUND, note)

    async def provision(self, ssid: str, passphrase: str) -> None:
        cmd = ProvisioningCommand(ssid=ssid, passphrase=passphrase)
        # passphrase stays out of the transcript
        await self.send(encode(cmd), note=f"TX: Setting WiFi to {cmd.ssid}")

import asyncio

from ecoin_link.core.bus.event_bus import EventBus
from ecoin_link.core.bus.models import Direction, TranscriptEntry
from ecoin_link.core.link.transcript import SessionLog


def test_bound_keeps_most_recent_fifty_in_order():
    log = SessionLog()
    entries = [TranscriptEntry(direction=Direction.INBOUND, text=f"RX: {i}") for i in range(1, 61)]
    for entry in entries:
        log.append(entry)

    assert len(log) == 50
    assert list(log.snapshot()) == entries[10:]


def test_snapshot_is_isolated_from_later_appends():
    log = SessionLog(maxlen=3)
    log.record(Direction.SYSTEM, "Link Established: 115200 bps")
    snap = log.snapshot()
    log.record(Direction.INBOUND, "RX: 1")

    assert isinstance(snap, tuple)
    assert len(snap) == 1
    assert len(log.snapshot()) == 2


def test_entries_are_published_on_bus():
    async def run():
        bus = EventBus()
        q = await bus.subscribe("transcript")
        log = SessionLog(bus=bus)
        log.record(Direction.OUTBOUND, "TX: Setting WiFi to Net1", ts=0.0)
        return q.get_nowait()

    payload = asyncio.run(run())
    assert payload["direction"] == "outbound"
    assert payload["text"] == "TX: Setting WiFi to Net1"
    assert payload["ts"] == 0.0

import asyncio
import json

import pytest

from ecoin_link.core.bus.event_bus import EventBus
from ecoin_link.core.notify.notifier import Notifier
from ecoin_link.core.store.detections import DetectionStore
from ecoin_link.core.store.operator import OperatorAuthError, OperatorSession


class CapturingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, title, body):
        self.sent.append((title, body))


def test_record_detection_counts_and_prepends(tmp_path):
    notifier = CapturingNotifier()
    store = DetectionStore(path=tmp_path / "detections.json", notifier=notifier)

    first = store.record_detection()
    second = store.record_detection()

    assert store.total == 2
    assert store.history == [second, first]
    assert first.label == "IR Signal Detected"
    assert len(first.id) == 9 and first.id != second.id
    assert notifier.sent[-1] == ("Ecoin Alert", "Infrared sensor tripped! Total detections: 2")


def test_history_is_bounded_but_total_keeps_counting():
    store = DetectionStore(max_history=100)
    events = [store.record_detection() for _ in range(105)]

    assert store.total == 105
    assert len(store.history) == 100
    assert store.history[0] is events[-1]
    assert store.history[-1] is events[5]


def test_state_survives_restart(tmp_path):
    path = tmp_path / "detections.json"
    store = DetectionStore(path=path)
    for _ in range(3):
        store.record_detection()

    restored = DetectionStore(path=path)
    restored.load()
    assert restored.total == 3
    assert [e.id for e in restored.history] == [e.id for e in store.history]


def test_unreadable_file_starts_fresh(tmp_path):
    path = tmp_path / "detections.json"
    path.write_text("{not json")
    store = DetectionStore(path=path)
    store.load()
    assert store.total == 0
    assert store.history == []


def test_clear_resets_and_persists(tmp_path):
    path = tmp_path / "detections.json"
    store = DetectionStore(path=path)
    store.record_detection()
    store.clear()
    assert json.loads(path.read_text()) == {"total": 0, "history": []}


def test_detection_and_notification_reach_the_bus():
    async def run():
        bus = EventBus()
        detections = await bus.subscribe("detection")
        notifications = await bus.subscribe("notification")
        store = DetectionStore(notifier=Notifier(bus=bus), bus=bus)
        event = store.record_detection()
        return event, detections.get_nowait(), notifications.get_nowait()

    event, det, note = asyncio.run(run())
    assert det == {"total": 1, "event": event.to_dict()}
    assert note["title"] == "Ecoin Alert"
    assert note["body"].endswith("Total detections: 1")


def test_operator_login_rules(tmp_path):
    path = tmp_path / "session.json"
    operator = OperatorSession(path=path)

    with pytest.raises(OperatorAuthError):
        operator.login("ab", "secret")
    assert operator.active is False

    operator.login("op1", "pwd")
    restored = OperatorSession(path=path)
    restored.load()
    assert restored.active is True
    assert restored.operator == "op1"

    operator.logout()
    restored.load()
    assert restored.active is False

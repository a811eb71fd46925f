# ecoin_link/core/bus/models.py
from __future__ import annotations
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class LinkState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"
    SYSTEM = "system"


class Classification(str, Enum):
    DETECTED = "detected"
    NOT_DETECTED = "not_detected"


@dataclass(frozen=True)
class TranscriptEntry:
    direction: Direction
    text: str
    ts: float = field(default_factory=time.time)

    @property
    def time_label(self) -> str:
        # 24h wall clock, same as the serial console column
        return time.strftime("%H:%M:%S", time.localtime(self.ts))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ts": self.ts,
            "time": self.time_label,
            "direction": self.direction.value,
            "text": self.text,
        }


@dataclass(frozen=True)
class DetectionEvent:
    id: str
    ts: float
    label: str = "IR Signal Detected"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "timestamp": self.ts, "label": self.label}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectionEvent":
        return cls(
            id=str(data["id"]),
            ts=float(data["timestamp"]),
            label=str(data.get("label") or "IR Signal Detected"),
        )


@dataclass(frozen=True)
class ProvisioningCommand:
    ssid: str
    passphrase: str

# ecoin_link/core/link/provisioning.py
from __future__ import annotations

from ecoin_link.core.bus.models import ProvisioningCommand

WIFI_COMMAND = "SET_WIFI"


def encode(cmd: ProvisioningCommand) -> bytes:
    """
    Serialize Wi-Fi credentials into the device's command line.

    No validation: the firmware decides what it accepts.
    """
    return f"{WIFI_COMMAND}:{cmd.ssid},{cmd.passphrase}\n".encode("utf-8")


def encode_wifi(ssid: str, passphrase: str) -> bytes:
    return encode(ProvisioningCommand(ssid=ssid, passphrase=passphrase))

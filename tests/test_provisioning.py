from ecoin_link.core.bus.models import ProvisioningCommand
from ecoin_link.core.link.provisioning import encode, encode_wifi


def test_wifi_command_format():
    assert encode(ProvisioningCommand(ssid="Net1", passphrase="pass123")) == b"SET_WIFI:Net1,pass123\n"


def test_no_validation_or_escaping():
    # commas and spaces pass through untouched; the firmware decides
    assert encode_wifi("My Net,5G", "") == b"SET_WIFI:My Net,5G,\n"


def test_non_ascii_is_utf8():
    assert encode_wifi("café", "ñ") == "SET_WIFI:café,ñ\n".encode("utf-8")

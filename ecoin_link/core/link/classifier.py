# ecoin_link/core/link/classifier.py
from __future__ import annotations

from ecoin_link.core.bus.models import Classification

# The sensor firmware prints a bare "1" per IR trip; newer builds print a
# line containing DETECT.
DETECT_TOKEN = "1"
DETECT_SUBSTRING = "DETECT"


def classify(line: str) -> Classification:
    if line == DETECT_TOKEN or DETECT_SUBSTRING in line:
        return Classification.DETECTED
    return Classification.NOT_DETECTED


def is_detection(line: str) -> bool:
    return classify(line) is Classification.DETECTED

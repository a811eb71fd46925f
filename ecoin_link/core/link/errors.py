# ecoin_link/core/link/errors.py
"""
Failure taxonomy for the hardware link.

Every error carries a human-readable message suitable for the dashboard
banner. None of them are retried; manual reconnection is the only recovery.
"""

from __future__ import annotations
from typing import Optional


class LinkError(Exception):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class LinkUnsupported(LinkError):
    """Host has no serial capability."""


class LinkOpenError(LinkError):
    """Port open failed; the operator may retry."""


class LinkReadError(LinkError):
    """Stream faulted mid-session; the session is force-closed."""


class LinkWriteError(LinkError):
    """A send() failed; the session stays connected."""


class LinkNotConnected(LinkError):
    """send() was called while the link is not connected."""


class PortSelectionCancelled(Exception):
    """No port was chosen. Not an error; never shown to the operator."""

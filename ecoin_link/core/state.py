# ecoin_link/core/state.py
"""
Global runtime state (singletons).

This module exists to avoid circular imports between FastAPI app,
routers, and background services.
"""

from typing import Optional

from ecoin_link.core.link.session import LinkSession
from ecoin_link.core.store.detections import DetectionStore

# These will be initialized by app.py
link: Optional[LinkSession] = None
detections: Optional[DetectionStore] = None

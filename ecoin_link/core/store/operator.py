# ecoin_link/core/store/operator.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

MIN_CREDENTIAL_LEN = 3


class OperatorAuthError(Exception):
    pass


class OperatorSession:
    """
    Dashboard login gate. Only a persisted "session active" flag; there is
    no account store behind it.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self.active = False
        self.operator: Optional[str] = None

    def load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("[SESSION] ignoring unreadable %s: %s", self.path, e)
            return
        self.active = bool(data.get("active", False))
        self.operator = data.get("operator") if self.active else None

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"active": self.active, "operator": self.operator}),
            encoding="utf-8",
        )

    def login(self, username: str, password: str) -> None:
        if len(username or "") < MIN_CREDENTIAL_LEN or len(password or "") < MIN_CREDENTIAL_LEN:
            raise OperatorAuthError("Credentials required.")
        self.active = True
        self.operator = username
        self._save()

    def logout(self) -> None:
        self.active = False
        self.operator = None
        self._save()

from pydantic import BaseModel
from typing import Optional
import os


def _opt_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


class Settings(BaseModel):
    APP_NAME: str = "Ecoin Link v1.0"
    HOST: str = os.getenv("ECOIN_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("ECOIN_PORT", "8080"))

    # Serial link
    # Empty SERIAL_PORT = use the only attached port, if exactly one exists
    SERIAL_PORT: Optional[str] = os.getenv("ECOIN_SERIAL_PORT") or None
    # Unset = block on the device forever, like the firmware expects
    IDLE_TIMEOUT_S: Optional[float] = _opt_float("ECOIN_IDLE_TIMEOUT_S")
    TRANSCRIPT_MAX: int = int(os.getenv("ECOIN_TRANSCRIPT_MAX", "50"))

    # Detection history / operator session files
    DATA_DIR: str = os.getenv("ECOIN_DATA_DIR", "data")
    HISTORY_MAX: int = int(os.getenv("ECOIN_HISTORY_MAX", "100"))

    # AI insight
    GEMINI_API_KEY: str = os.getenv("ECOIN_GEMINI_API_KEY", os.getenv("API_KEY", ""))
    INSIGHT_MODEL: str = os.getenv("ECOIN_INSIGHT_MODEL", "gemini-3-flash-preview")

settings = Settings()

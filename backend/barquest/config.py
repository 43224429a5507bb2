"""Application settings and validation."""

import os
from pathlib import Path
from typing import Optional

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    API_URL: str
    DB_URL: str
    TICK_SECONDS: float
    HTTP_TIMEOUT_SECONDS: Optional[float]
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.API_URL = os.getenv("BARQUEST_API_URL", "http://localhost:8000").rstrip("/")
        self.DB_URL = os.getenv("BARQUEST_DB_URL", f"sqlite:///{BASE / 'app.db'}")
        self.TICK_SECONDS = float(os.getenv("BARQUEST_TICK_SECONDS", "1.0"))
        # Unset means no timeout on outbound calls.
        raw_timeout = os.getenv("BARQUEST_HTTP_TIMEOUT_SECONDS", "").strip()
        self.HTTP_TIMEOUT_SECONDS = float(raw_timeout) if raw_timeout else None
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    def _validate(self):
        if self.TICK_SECONDS <= 0:
            raise RuntimeError("BARQUEST_TICK_SECONDS must be positive")
        if self.HTTP_TIMEOUT_SECONDS is not None and self.HTTP_TIMEOUT_SECONDS <= 0:
            raise RuntimeError("BARQUEST_HTTP_TIMEOUT_SECONDS must be positive when set")
        if self.ENV != "dev" and self.DB_URL.startswith("sqlite:///") and "app.db" in self.DB_URL:
            raise RuntimeError("BARQUEST_DB_URL must point at a real database in non-dev environments")


settings = Settings()

# /postino/config.py
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

_PACKAGE_STATIC = Path(__file__).resolve().parent / "static"


class Settings(BaseModel):
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Upstream calls
    VERIFY_TLS: bool = os.getenv("VERIFY_TLS", "true").lower() == "true"
    TIMEOUT_SECONDS: float = float(os.getenv("TIMEOUT_SECONDS", "30"))
    MAX_BYTES: int = int(os.getenv("MAX_BYTES", "52428800"))  # 50 MB per page

    # Pagination defaults
    DEFAULT_LIMIT: int = int(os.getenv("DEFAULT_LIMIT", "1000"))
    DEFAULT_MAX_PAGES: int = int(os.getenv("DEFAULT_MAX_PAGES", "10"))
    UNLIMITED_PAGES_CAP: int = int(os.getenv("UNLIMITED_PAGES_CAP", "1000"))  # maxPages=0
    DEFAULT_DELAY_MS: int = int(os.getenv("DEFAULT_DELAY_MS", "500"))

    # Web
    STATIC_DIR: str = os.getenv("STATIC_DIR", str(_PACKAGE_STATIC))
    CORS_ORIGINS: list[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    ]


settings = Settings()

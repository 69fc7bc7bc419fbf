from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_cors_origins(env_val: str | None) -> List[str]:
    """
    Parse comma-separated origins. If env is None or '*', return ['*'] (dev).
    Otherwise, return a cleaned list like ['https://app.example.com', 'https://example.com'].
    """
    if not env_val or env_val.strip() == "*":
        return ["*"]
    parts = [p.strip() for p in env_val.split(",")]
    return [p for p in parts if p] or ["*"]


class Settings(BaseModel):
    """Runtime configuration, read from the environment by :func:`load_settings`."""

    db_path: Path = Field(default_factory=lambda: Path.cwd() / "gutsafe.db")
    timezone: str = "UTC"
    cache_ttl_seconds: float = 300.0
    max_sessions: int = Field(default=1000, ge=1)
    api_token: Optional[str] = None
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def tz(self) -> ZoneInfo:
        """User wall-clock zone used for time-of-day, weekday and week buckets."""
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone %r; falling back to UTC.", self.timezone)
            return ZoneInfo("UTC")


def load_settings() -> Settings:
    """Build :class:`Settings` from ``GUTSAFE_*`` and related environment variables."""
    values = {
        "timezone": os.getenv("GUTSAFE_TIMEZONE", "UTC"),
        "api_token": os.getenv("API_TOKEN") or None,
        "cors_origins": _parse_cors_origins(os.getenv("CORS_ORIGINS")),
        "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
    }
    if db_path := os.getenv("GUTSAFE_DB_PATH"):
        values["db_path"] = Path(db_path).expanduser().resolve()
    if ttl := os.getenv("GUTSAFE_CACHE_TTL_SECONDS"):
        values["cache_ttl_seconds"] = ttl
    if max_sessions := os.getenv("GUTSAFE_MAX_SESSIONS"):
        values["max_sessions"] = max_sessions
    return Settings(**values)


def configure_logging(level: str = "INFO") -> None:
    """Install a stream handler on the root logger once."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=_LOG_FORMAT)

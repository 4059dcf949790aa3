"""Runtime settings read from the environment.

All variables are optional:
- AUDIOCHECK_MAX_WORKERS: analysis thread pool size (default 4)
- AUDIOCHECK_DEFAULT_BIT_DEPTH: bit depth assumed when the decoder reports
  none (default 16)
- AUDIOCHECK_CORS_ORIGINS: comma separated origins allowed by the service
- AUDIOCHECK_LOG_LEVEL: logging level name (default INFO)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

_DEFAULT_ORIGINS = ("http://localhost:3000", "http://localhost:5173")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _env_list(name: str, default: tuple[str, ...]) -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    max_workers: int = 4
    default_bit_depth: int = 16
    cors_origins: List[str] = field(default_factory=lambda: list(_DEFAULT_ORIGINS))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            max_workers=_env_int("AUDIOCHECK_MAX_WORKERS", 4),
            default_bit_depth=_env_int("AUDIOCHECK_DEFAULT_BIT_DEPTH", 16),
            cors_origins=_env_list("AUDIOCHECK_CORS_ORIGINS", _DEFAULT_ORIGINS),
            log_level=(os.getenv("AUDIOCHECK_LOG_LEVEL") or "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(level: Optional[str] = None) -> None:
    """Install a basic stderr handler for the service and CLI."""

    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

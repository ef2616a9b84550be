"""
Runtime configuration for StackScout.

All settings come from the process environment. Per-platform credentials are
looked up lazily so that a token added to the environment after startup is
picked up on the next analysis.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 15.0
DEFAULT_SAMPLE_SIZE = 100
DEFAULT_RATE_LIMIT_SECONDS = 5.0
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
]


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    return value


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    return value


@dataclass(frozen=True)
class Settings:
    """Snapshot of the service settings."""
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    sample_size: int = DEFAULT_SAMPLE_SIZE
    rate_limit_seconds: float = DEFAULT_RATE_LIMIT_SECONDS
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    rules_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        origins_raw = os.getenv("STACKSCOUT_CORS_ORIGINS", "")
        origins = [o.strip() for o in origins_raw.split(",") if o.strip()]
        return cls(
            http_timeout=_float_env("STACKSCOUT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            sample_size=_int_env("STACKSCOUT_SAMPLE_SIZE", DEFAULT_SAMPLE_SIZE),
            rate_limit_seconds=_float_env("STACKSCOUT_RATE_LIMIT_SECONDS", DEFAULT_RATE_LIMIT_SECONDS),
            log_level=os.getenv("STACKSCOUT_LOG_LEVEL", "INFO").upper(),
            cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
            rules_path=os.getenv("STACKSCOUT_RULES_PATH") or None,
        )


def get_platform_token(env_var: str) -> Optional[str]:
    """Return the server-side credential stored in ``env_var``, if any."""
    value = os.getenv(env_var, "").strip()
    return value or None

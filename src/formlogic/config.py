from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

VALIDATION_SCOPE_FULL = "full"
VALIDATION_SCOPE_CHANGED = "changed"


def _env_str(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip()
    return v if v else default


def _env_float(key: str, default: float) -> float:
    v = _env_str(key)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    v = _env_str(key)
    if v is None:
        return default
    return v.lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    # Logging
    log_level: str = "WARNING"
    log_json: bool = False

    # "full" revalidates the whole tree after every answer update,
    # "changed" only validates the updated top-level item.
    validation_scope: str = VALIDATION_SCOPE_FULL

    # Remote translation sources
    translation_timeout_seconds: float = 10.0

    @staticmethod
    def from_env() -> "Settings":
        # Read configuration from environment variables.
        # Unknown or malformed values fall back to the defaults.
        scope = (_env_str("FORMLOGIC_VALIDATION_SCOPE", VALIDATION_SCOPE_FULL) or VALIDATION_SCOPE_FULL).lower()
        if scope not in (VALIDATION_SCOPE_FULL, VALIDATION_SCOPE_CHANGED):
            scope = VALIDATION_SCOPE_FULL

        return Settings(
            log_level=_env_str("FORMLOGIC_LOG_LEVEL", "WARNING") or "WARNING",
            log_json=_env_bool("FORMLOGIC_LOG_JSON", False),
            validation_scope=scope,
            translation_timeout_seconds=_env_float("FORMLOGIC_TRANSLATION_TIMEOUT", 10.0),
        )

"""
FormLogic Configuration

Runtime settings read from FL_* environment variables.

    FL_MODE                 dev | prod (default prod)
    FL_LOG_LEVEL            logging level name (default INFO)
    FL_LOG_FORMAT           json | text (default json)
    FL_DEBOUNCE_MS          per-field debounce delay (default 300)
    FL_FORM_DEBOUNCE_MS     whole-form debounce delay (default 500)
    FL_STRICT_INVARIANTS    raise on API misuse (default: true in dev)
    FL_PACKS_DIR            directory of form packs served by the API
    FL_DOCS_ENABLED         expose OpenAPI docs (default true)
    FL_MAX_CASCADE_PASSES   cascade pass limit, 0 = number of fields
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from .models.enums import RunMode


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Process-wide FormLogic settings."""
    mode: RunMode = RunMode.PROD
    log_level: str = "INFO"
    log_format: str = "json"
    debounce_ms: int = 300
    form_debounce_ms: int = 500
    strict_invariants: bool = False
    packs_dir: Path = Path("packs")
    docs_enabled: bool = True
    max_cascade_passes: int = 0

    @property
    def is_dev(self) -> bool:
        return self.mode == RunMode.DEV

    @classmethod
    def from_env(cls) -> Settings:
        mode = RunMode(os.getenv("FL_MODE", "prod").lower())
        return cls(
            mode=mode,
            log_level=os.getenv("FL_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("FL_LOG_FORMAT", "json").lower(),
            debounce_ms=int(os.getenv("FL_DEBOUNCE_MS", "300")),
            form_debounce_ms=int(os.getenv("FL_FORM_DEBOUNCE_MS", "500")),
            strict_invariants=_env_bool("FL_STRICT_INVARIANTS", mode == RunMode.DEV),
            packs_dir=Path(os.getenv("FL_PACKS_DIR", "packs")),
            docs_enabled=_env_bool("FL_DOCS_ENABLED", True),
            max_cascade_passes=int(os.getenv("FL_MAX_CASCADE_PASSES", "0")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings from the environment, read once per process."""
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Forget cached settings (tests change the environment)."""
    get_settings.cache_clear()


def resolve_settings(settings: Optional[Settings]) -> Settings:
    return settings if settings is not None else get_settings()

"""
Runtime settings: where the solver and the backing store live.

Settings come from an optional JSON file, then a few environment variables
override it, so the same file can be shared between machines:

    ROSTER_SOLVER_URL   solver endpoint
    ROSTER_STORE_URL    HTTP backing store base URL
    ROSTER_STORE_DIR    local directory for JSON board files
    ROSTER_STORE_TOKEN  bearer token for the HTTP store
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

ENV_OVERRIDES = {
    "ROSTER_SOLVER_URL":  "solver_url",
    "ROSTER_STORE_URL":   "store_url",
    "ROSTER_STORE_DIR":   "store_dir",
    "ROSTER_STORE_TOKEN": "store_token",
}


class ConfigError(ValueError):
    """Raised when the settings file or an override is invalid."""


@dataclass
class Settings:
    solver_url:   str           = ""
    store_url:    str           = ""
    store_dir:    str           = "boards"
    store_token:  Optional[str] = None
    timeout_s:    float         = 30.0
    organization: Optional[str] = None   # sent to the solver as "user"
    managers:     List[str]     = field(default_factory=list)
    log_level:    str           = "INFO"

    def validate(self) -> None:
        if self.timeout_s <= 0:
            raise ConfigError("timeout_s must be > 0")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {LOG_LEVELS}")


def load_settings(path: Optional[str | Path] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    raw: Dict[str, Any] = {}
    if path is not None:
        with Path(path).open("r", encoding="utf-8") as f:
            try:
                raw = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Settings file is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Expected a JSON object in settings, got {type(raw).__name__}")

    managers = raw.get("managers") or []
    if not isinstance(managers, list):
        raise ConfigError("managers must be a JSON array")

    try:
        settings = Settings(
            solver_url   = str(raw.get("solver_url", "")),
            store_url    = str(raw.get("store_url", "")),
            store_dir    = str(raw.get("store_dir", "boards")),
            store_token  = raw.get("store_token") or None,
            timeout_s    = float(raw.get("timeout_s", 30.0)),
            organization = raw.get("organization") or None,
            managers     = [str(m) for m in managers],
            log_level    = str(raw.get("log_level", "INFO")).upper(),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings value: {e}") from e

    env = os.environ if environ is None else environ
    for var, attr in ENV_OVERRIDES.items():
        if env.get(var):
            setattr(settings, attr, env[var])

    settings.validate()
    return settings

"""YAML configuration for the civic intake pipeline.

Values of the form ``${NAME}`` or ``${NAME:-fallback}`` are filled from the
environment after an optional ``.env`` file has been read.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

DEFAULT_TICK_INTERVAL = 1.8
DEFAULT_RESOLVE_DELAY = 1.2
DEFAULT_DEPARTMENT = "Infrastructure"
DEFAULT_NEGLECT_DAYS = 30


def _load_dotenv(path: str | Path = ".env") -> None:
    """Export KEY=value pairs from a dotenv file; the real environment wins."""
    dotenv = Path(path)
    if not dotenv.is_file():
        return
    for raw_line in dotenv.read_text().splitlines():
        entry = raw_line.strip()
        if entry.startswith("export "):
            entry = entry[len("export "):]
        if entry.startswith("#") or "=" not in entry:
            continue
        name, _, value = entry.partition("=")
        name = name.strip()
        if name:
            os.environ.setdefault(name, value.strip().strip("'\""))


def _substitute(match: re.Match) -> str:
    return os.environ.get(match.group(1)) or (match.group(2) or "")


def _resolve_env_vars(value: Any) -> Any:
    """Walk nested dicts and lists, expanding ${NAME} placeholders in strings."""
    if isinstance(value, str):
        return _ENV_PATTERN.sub(_substitute, value)
    if isinstance(value, dict):
        return {key: _resolve_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def load_config(path: str | Path = "config.yaml") -> dict[str, Any]:
    """Read the YAML file at ``path``; FileNotFoundError if it is missing."""
    _load_dotenv()

    config_file = Path(path)
    if not config_file.is_file():
        raise FileNotFoundError(f"No config file at {config_file}")

    data = yaml.safe_load(config_file.read_text()) or {}
    return _resolve_env_vars(data)


def get_active_sources(config: dict) -> list[str]:
    """Names of sources switched on under `sources:`, in file order."""
    sources = config.get("sources") or {}
    return [name for name, cfg in sources.items() if (cfg or {}).get("enabled", False)]


def get_scheduler_settings(config: dict) -> dict:
    """Tick interval, resolve delay and classifier hint for the scheduler.

    Raises ValueError when the tick interval does not exceed the
    per-post resolve delay.
    """
    cfg = config.get("scheduler") or {}
    tick_interval = float(cfg.get("tick_interval", DEFAULT_TICK_INTERVAL))
    resolve_delay = float(cfg.get("resolve_delay", DEFAULT_RESOLVE_DELAY))
    validate_timing(tick_interval, resolve_delay)
    return {
        "tick_interval": tick_interval,
        "resolve_delay": resolve_delay,
        "hint": cfg.get("hint", "") or "",
    }


def validate_timing(tick_interval: float, resolve_delay: float) -> None:
    if tick_interval <= 0 or resolve_delay < 0:
        raise ValueError(
            f"Invalid scheduler timing: tick_interval={tick_interval}, "
            f"resolve_delay={resolve_delay}"
        )
    if tick_interval <= resolve_delay:
        raise ValueError(
            f"tick_interval ({tick_interval}) must exceed "
            f"resolve_delay ({resolve_delay})"
        )


def get_default_department(config: dict) -> str:
    return (config.get("normalize") or {}).get("default_department") or DEFAULT_DEPARTMENT


def get_random_seed(config: dict) -> int | None:
    """Seed for synthetic geocoding; None means system randomness."""
    seed = (config.get("normalize") or {}).get("seed")
    return int(seed) if seed not in (None, "") else None


def get_neglect_threshold(config: dict) -> int:
    return int((config.get("neglect") or {}).get("threshold_days", DEFAULT_NEGLECT_DAYS))


def get_db_path(config: dict) -> str:
    """Get database path from config."""
    return (config.get("database") or {}).get("path") or "data/civic.db"


def get_log_level(config: dict) -> str:
    return str((config.get("logging") or {}).get("level", "INFO")).upper()

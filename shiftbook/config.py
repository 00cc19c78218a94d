from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from shift_core.policy import DEFAULT_MAX_HOURS, DEFAULT_MIN_HOURS

_DISABLED = {"", "none", "off", "0"}


@dataclass(frozen=True)
class DirectoryConfig:
    base_url: str
    api_key: str
    timeout_s: float


@dataclass(frozen=True)
class RuntimeConfig:
    db_path: Path
    min_shift_hours: float
    max_shift_hours: float | None
    log_level: str
    directory: DirectoryConfig | None


def load_env(dotenv_path: str | Path | None = None) -> None:
    path = Path(dotenv_path) if dotenv_path else None
    if path and path.exists():
        load_dotenv(path)
        return
    load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _max_hours_env() -> float | None:
    raw = os.getenv("SHIFTBOOK_MAX_SHIFT_HOURS")
    if raw is None:
        return DEFAULT_MAX_HOURS
    if raw.strip().lower() in _DISABLED:
        return None
    return _float_env("SHIFTBOOK_MAX_SHIFT_HOURS", DEFAULT_MAX_HOURS)


def directory_config() -> DirectoryConfig | None:
    base_url = os.getenv("SHIFTBOOK_DIRECTORY_URL", "").strip().rstrip("/")
    if not base_url:
        return None
    return DirectoryConfig(
        base_url=base_url,
        api_key=os.getenv("SHIFTBOOK_DIRECTORY_API_KEY", "").strip(),
        timeout_s=_float_env("SHIFTBOOK_DIRECTORY_TIMEOUT_S", 10.0),
    )


def runtime_config() -> RuntimeConfig:
    db_path = Path(os.getenv("SHIFTBOOK_DB_PATH", "./data/shifts.db")).expanduser().resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    min_hours = _float_env("SHIFTBOOK_MIN_SHIFT_HOURS", DEFAULT_MIN_HOURS)
    max_hours = _max_hours_env()
    if max_hours is not None and max_hours < min_hours:
        raise ValueError(
            f"SHIFTBOOK_MAX_SHIFT_HOURS ({max_hours:g}) is below "
            f"SHIFTBOOK_MIN_SHIFT_HOURS ({min_hours:g})"
        )
    return RuntimeConfig(
        db_path=db_path,
        min_shift_hours=min_hours,
        max_shift_hours=max_hours,
        log_level=os.getenv("SHIFTBOOK_LOG_LEVEL", "INFO").upper(),
        directory=directory_config(),
    )

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _log_level() -> str:
    level = os.environ.get("SOLOQUIZ_LOG_LEVEL", "INFO").strip().upper()
    return level if level in _LOG_LEVELS else "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str
    key_prefix: str
    questions_path: Path | None
    strict_questions: bool

    # Keep a resolved final wager when navigating back through the category stage.
    sticky_final_resolution: bool

    default_player_name: str
    lock_ttl_ms: int
    log_level: str


def get_settings() -> Settings:
    """Read settings from the environment.

    Called per use rather than cached so tests can monkeypatch env vars freely.
    """

    questions_path = os.environ.get("SOLOQUIZ_QUESTIONS_PATH", "").strip()
    return Settings(
        redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
        key_prefix=os.environ.get("SOLOQUIZ_KEY_PREFIX", "soloquiz").strip() or "soloquiz",
        questions_path=Path(questions_path) if questions_path else None,
        strict_questions=_env_flag("SOLOQUIZ_STRICT_QUESTIONS", False),
        sticky_final_resolution=_env_flag("SOLOQUIZ_STICKY_FINAL_RESOLUTION", True),
        default_player_name=os.environ.get("SOLOQUIZ_PLAYER_NAME", "Player").strip() or "Player",
        lock_ttl_ms=_env_int("SOLOQUIZ_LOCK_TTL_MS", 5_000),
        log_level=_log_level(),
    )

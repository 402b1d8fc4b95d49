from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from taskmatrix.domain.entities import DEFAULT_BACKLOG_WARN_THRESHOLD, DEFAULT_WIP_LIMIT


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Settings:
    database_url: str | None = None
    log_level: str = "INFO"
    log_dir: str = "logs"
    wip_limit: int = DEFAULT_WIP_LIMIT
    backlog_warn_threshold: int = DEFAULT_BACKLOG_WARN_THRESHOLD
    llm_api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    llm_base_url: str | None = None
    llm_timeout: float = 15.0


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def load_settings() -> Settings:
    load_env()
    api_key = os.getenv("LLM_API_KEY", "").strip() or os.getenv("OPENAI_API_KEY", "").strip()
    return Settings(
        database_url=os.getenv("DATABASE_URL", "").strip() or None,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
        wip_limit=_int_env("WIP_LIMIT", DEFAULT_WIP_LIMIT),
        backlog_warn_threshold=_int_env("BACKLOG_WARN_THRESHOLD", DEFAULT_BACKLOG_WARN_THRESHOLD),
        llm_api_key=api_key or None,
        llm_model=os.getenv("LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini",
        llm_base_url=os.getenv("LLM_BASE_URL", "").strip() or None,
        llm_timeout=_float_env("LLM_TIMEOUT", 15.0),
    )

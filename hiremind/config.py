"""Load service settings and environment configuration."""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from hiremind.log import get_logger

log = get_logger(__name__)

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

CONFIG_DIR: Path = PROJECT_ROOT / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = PROJECT_ROOT / "data"

DEFAULT_SETTINGS: dict[str, Any] = {
    "listing_source": "linkedin",
    "request_timeout": 10.0,
    "fetch_attempts": 2,
    "pages_per_context": 1,
    "page_size": 10,
    "max_cluster_size": 5,
    "max_workers": 1,
    "default_limit": 50,
    "llm_model": "llama-3.3-70b-versatile",
    "llm_base_url": "https://api.groq.com/openai/v1",
    "token_ttl_hours": 168,
    "max_upload_mb": 5,
}

_INT_KEYS = {
    "fetch_attempts", "pages_per_context", "page_size", "max_cluster_size",
    "max_workers", "default_limit", "token_ttl_hours", "max_upload_mb",
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def load_settings(path: Path | None = None) -> dict[str, Any]:
    """Built-in defaults overlaid with config/settings.yaml, if present."""
    path = path or SETTINGS_PATH
    settings = dict(DEFAULT_SETTINGS)
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path.name} must contain a mapping, got {type(data).__name__}")
        unknown = set(data) - set(DEFAULT_SETTINGS)
        if unknown:
            log.warning("Ignoring unknown settings in %s: %s", path.name, ", ".join(sorted(unknown)))
        settings.update({k: v for k, v in data.items() if k in DEFAULT_SETTINGS})

    for key in _INT_KEYS:
        settings[key] = max(int(settings[key]), 0)
    settings["request_timeout"] = float(settings["request_timeout"])
    # a pool needs at least one worker and paging needs a non-zero page
    settings["max_workers"] = max(settings["max_workers"], 1)
    settings["page_size"] = max(settings["page_size"], 1)
    return settings


@lru_cache(maxsize=1)
def get_settings() -> dict[str, Any]:
    return load_settings()


def database_url() -> str:
    return get_env("DATABASE_URL") or f"sqlite:///{DATA_DIR / 'hiremind.db'}"


def upload_dir() -> Path:
    return Path(get_env("UPLOAD_DIR") or (PROJECT_ROOT / "uploads"))


def app_env() -> str:
    return get_env("APP_ENV", "development").lower()


def is_production() -> bool:
    return app_env() == "production"


def admin_emails() -> set[str]:
    raw = get_env("ADMIN_EMAILS")
    return {e.strip().lower() for e in raw.split(",") if e.strip()}


def ensure_dirs() -> None:
    for d in (DATA_DIR, upload_dir()):
        d.mkdir(parents=True, exist_ok=True)

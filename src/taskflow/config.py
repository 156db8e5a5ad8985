# src/taskflow/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- The remote store is used only when both its URL and API key are set;
  otherwise tasks live in local storage.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKFLOW"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local storage (ignored by git) ----
    data_dir: Path
    local_db_path: Path
    storage_key: str

    # ---- Remote store ----
    remote_url: str
    remote_api_key: str
    remote_table: str
    remote_timeout_seconds: float

    # ---- Identity ----
    user_id: str | None

    @property
    def remote_configured(self) -> bool:
        return bool(self.remote_url.strip() and self.remote_api_key.strip())

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskflow") or "taskflow"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskflow"))
        local_db_path = _env_path(_k("LOCAL_DB_PATH"), data_dir / "tasks.sqlite3")
        storage_key = _env(_k("STORAGE_KEY"), "taskflow_data_v2") or "taskflow_data_v2"

        # Accept the hosted-database names too, so an existing .env keeps working.
        remote_url = (_first_env(_k("REMOTE_URL"), "SUPABASE_URL", default="") or "").strip()
        remote_api_key = (
            _first_env(_k("REMOTE_API_KEY"), "SUPABASE_ANON_KEY", default="") or ""
        ).strip()
        remote_table = _env(_k("REMOTE_TABLE"), "tasks") or "tasks"
        remote_timeout_seconds = max(1.0, _env_float(_k("REMOTE_TIMEOUT_SECONDS"), 15.0))

        user_id = (_first_env(_k("USER_ID"), default=None) or "").strip() or None

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            local_db_path=local_db_path,
            storage_key=storage_key,
            remote_url=remote_url,
            remote_api_key=remote_api_key,
            remote_table=remote_table,
            remote_timeout_seconds=remote_timeout_seconds,
            user_id=user_id,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS

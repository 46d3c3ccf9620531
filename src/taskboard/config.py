# src/taskboard/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app, passed explicitly to whoever needs it.
- No secrets required at import time (backend credentials are checked when
  the backend client is created).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TASKBOARD"

INSERT_POLICIES = ("append", "sorted")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    raw = (os.getenv(name) or "").strip().lower()
    return raw if raw in choices else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Backend (Supabase) ----
    supabase_url: str | None
    supabase_key: str | None
    user_email: str | None
    user_password: str | None

    # ---- Table / storage / realtime names ----
    table: str
    schema: str
    order_column: str
    bucket: str
    channel: str

    # ---- Replica behaviour ----
    insert_policy: str
    dedupe_inserts: bool
    load_before_subscribe: bool
    render_on_change: bool

    # ---- Connector flags ----
    console_enabled: bool

    @staticmethod
    def from_env() -> "Settings":
        _load_dotenv_if_available()

        app_name = _env(_k("APP_NAME"), "taskboard").strip() or "taskboard"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskboard"))

        supabase_url = _first_env(_k("SUPABASE_URL"), "SUPABASE_URL", default=None)
        supabase_key = _first_env(
            _k("SUPABASE_KEY"), "SUPABASE_KEY", "SUPABASE_ANON_KEY", default=None
        )
        user_email = _first_env(_k("USER_EMAIL"), default=None)
        user_password = _first_env(_k("USER_PASSWORD"), default=None)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            supabase_url=supabase_url.strip() if supabase_url else None,
            supabase_key=supabase_key.strip() if supabase_key else None,
            user_email=user_email.strip() if user_email else None,
            user_password=user_password,
            table=_env(_k("TABLE"), "tasks").strip() or "tasks",
            schema=_env(_k("SCHEMA"), "public").strip() or "public",
            order_column=_env(_k("ORDER_COLUMN"), "created_at").strip() or "created_at",
            bucket=_env(_k("BUCKET"), "tasks-images").strip() or "tasks-images",
            channel=_env(_k("CHANNEL"), "tasks-channel").strip() or "tasks-channel",
            insert_policy=_env_choice(_k("INSERT_POLICY"), INSERT_POLICIES, "append"),
            dedupe_inserts=_env_bool(_k("DEDUPE_INSERTS"), True),
            load_before_subscribe=_env_bool(_k("LOAD_BEFORE_SUBSCRIBE"), True),
            render_on_change=_env_bool(_k("RENDER_ON_CHANGE"), True),
            console_enabled=_env_bool(_k("CONSOLE_ENABLED"), True),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load settings once per process (lazily, so tests can patch the env first)."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS

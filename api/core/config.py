"""
Process settings.

Settings are read once at startup from the environment. A local `.env` file is
loaded first when present; variables already set in the environment win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_SERVER_ADDRESS = "0.0.0.0:8080"
DEFAULT_MIGRATIONS_PATH = "db/migrations"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return raw not in {"0", "false", "False", "no"}


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_pool_min_size: int
    db_pool_max_size: int
    db_command_timeout_s: float
    server_address: str
    api_url: str
    api_timeout_s: float
    migrations_path: str
    run_migrations: bool
    log_level: str
    log_file: str

    @property
    def server_host(self) -> str:
        host, _, _port = self.server_address.rpartition(":")
        return host or "0.0.0.0"

    @property
    def server_port(self) -> int:
        _host, _, port = self.server_address.rpartition(":")
        try:
            return int(port)
        except ValueError:
            return 8080


def settings_from_env() -> Settings:
    return Settings(
        database_url=_env_str("DATABASE_URL"),
        db_host=_env_str("DB_HOST", "localhost"),
        db_port=_env_int("DB_PORT", 5432),
        db_user=_env_str("DB_USER", "postgres"),
        db_password=os.environ.get("DB_PASSWORD", ""),
        db_name=_env_str("DB_NAME", "music_library"),
        db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
        db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 5),
        db_command_timeout_s=_env_float("DB_COMMAND_TIMEOUT_S", 30.0),
        server_address=_env_str("SERVER_ADDRESS", DEFAULT_SERVER_ADDRESS),
        api_url=_env_str("API_URL"),
        api_timeout_s=_env_float("API_TIMEOUT_S", 10.0),
        migrations_path=_env_str("MIGRATIONS_PATH", DEFAULT_MIGRATIONS_PATH),
        run_migrations=_env_bool("RUN_MIGRATIONS", True),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        log_file=_env_str("LOG_FILE"),
    )


def load_settings(env_file: str | None = ".env") -> Settings:
    """
    Seed the environment from `env_file` (if it exists) and build Settings.
    """
    if env_file and os.path.exists(env_file):
        load_dotenv(env_file, override=False)
    return settings_from_env()

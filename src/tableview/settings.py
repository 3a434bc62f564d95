from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class ConnectionSettings:
    host: str
    port: int
    user: str
    password: str
    database: str

    def label(self) -> str:
        """Short identifier used in log lines (never includes the password)."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


def env_bool(name: str, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    val = os.getenv(name)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


def env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val.strip() == "":
        return default
    return int(val)


def search_settings_from_env() -> ConnectionSettings:
    """Fixed connection settings for the search endpoint."""
    return ConnectionSettings(
        host=os.getenv("SEARCH_DB_HOST", "localhost"),
        port=env_int("SEARCH_DB_PORT", 3306),
        user=os.getenv("SEARCH_DB_USER", "root"),
        password=os.getenv("SEARCH_DB_PASSWORD", ""),
        database=os.getenv("SEARCH_DB_NAME", "demo"),
    )

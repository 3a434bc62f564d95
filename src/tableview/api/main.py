"""
Executable entrypoint for the table viewer API (``uvicorn tableview.api.main:app``).

Configure the search database via environment variables:
  SEARCH_DB_HOST (default: localhost)
  SEARCH_DB_PORT (default: 3306)
  SEARCH_DB_USER (default: root)
  SEARCH_DB_PASSWORD (default: empty)
  SEARCH_DB_NAME (default: demo)
  SEARCH_DB_POOL_SIZE (default: 10)
  SEARCH_PROFILE (default: people; one of people, items)
  SESSION_POOL_SIZE (default: 5)
"""

from __future__ import annotations

import os

from tableview.database import Database
from tableview.settings import env_int, search_settings_from_env
from tableview.sql_utils import SEARCH_PROFILES

from .app import create_app
from .services import MySQLBrowserService, SearchService
from .session_store import SessionStore


def build_search_service() -> SearchService:
    profile_name = os.getenv("SEARCH_PROFILE", "people").lower()
    if profile_name not in SEARCH_PROFILES:
        raise ValueError(
            f"Unknown SEARCH_PROFILE '{profile_name}'; expected one of {sorted(SEARCH_PROFILES)}"
        )
    database = Database(
        search_settings_from_env(), pool_size=env_int("SEARCH_DB_POOL_SIZE", 10)
    )
    return SearchService(database, SEARCH_PROFILES[profile_name])


session_store = SessionStore(pool_size=env_int("SESSION_POOL_SIZE", 5))
service = MySQLBrowserService(session_store)
app = create_app(service, search_service=build_search_service(), session_store=session_store)

from __future__ import annotations

import pytest
from fastapi import FastAPI

from tableview.api.main import build_search_service
from tableview.sql_utils import ITEMS_PROFILE, PEOPLE_PROFILE
from tableview.web import build_app, parse_args

ENV_VARS = [
    "PORT",
    "HOST",
    "SEARCH_DB_HOST",
    "SEARCH_DB_PORT",
    "SEARCH_DB_USER",
    "SEARCH_DB_PASSWORD",
    "SEARCH_DB_NAME",
    "SEARCH_DB_POOL_SIZE",
    "SEARCH_PROFILE",
    "SESSION_POOL_SIZE",
    "RELOAD",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    args = parse_args([])
    assert args.host == "0.0.0.0"
    assert args.port == 3000
    assert args.search_host == "localhost"
    assert args.search_port == 3306
    assert args.search_profile == "people"
    assert args.search_pool_size == 10
    assert args.reload is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("SEARCH_PROFILE", "ITEMS")
    monkeypatch.setenv("RELOAD", "yes")
    args = parse_args([])
    assert args.port == 8080
    assert args.search_profile == "items"
    assert args.reload is True


def test_build_app_wires_services():
    app = build_app(parse_args(["--search-pool-size", "3", "--search-profile", "items"]))
    assert isinstance(app, FastAPI)
    search = app.state.search_service
    assert search.profile is ITEMS_PROFILE
    assert search.database.pool.max_connections == 3
    assert app.state.session_store.pool_size == 5


def test_build_search_service_from_env(monkeypatch):
    monkeypatch.setenv("SEARCH_DB_HOST", "db.internal")
    monkeypatch.setenv("SEARCH_DB_POOL_SIZE", "4")
    service = build_search_service()
    assert service.profile is PEOPLE_PROFILE
    assert service.database.settings.host == "db.internal"
    assert service.database.pool.max_connections == 4


def test_build_search_service_rejects_unknown_profile(monkeypatch):
    monkeypatch.setenv("SEARCH_PROFILE", "nope")
    with pytest.raises(ValueError):
        build_search_service()

"""
tests/test_cli.py -- Operator commands in main.py.
"""

from __future__ import annotations

import pytest

import main
from auth.models import UserType
from auth.store import UserStore
from auth.tokens import verify_password
from cache.store import CacheStore
from core.config import get_settings


@pytest.fixture
def cli_settings(tmp_path, monkeypatch):
    settings = get_settings().model_copy(
        update={
            "database_url": f"sqlite:///{tmp_path / 'cli.db'}",
            "cache_db_path": str(tmp_path / "cli_cache.db"),
        }
    )
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    return settings


def test_create_admin(cli_settings, capsys) -> None:
    assert main.create_admin("boss@example.com", "boss", "topsecret") == 0

    store = UserStore(db_url=cli_settings.database_url)
    try:
        user = store.find_by_email("boss@example.com")
    finally:
        store.close()
    assert user.user_type is UserType.ADMIN
    assert user.is_account_verified is True
    assert verify_password("topsecret", user.hashed_password)
    assert "created" in capsys.readouterr().out


def test_create_admin_duplicate(cli_settings) -> None:
    assert main.create_admin("boss@example.com", "boss", "topsecret") == 0
    assert main.create_admin("boss@example.com", "boss2", "topsecret") == 1


def test_create_admin_short_password(cli_settings) -> None:
    assert main.create_admin("boss@example.com", "boss", "123") == 1


def test_clear_product_cache(cli_settings, capsys) -> None:
    cache = CacheStore(cli_settings.cache_db_path)
    cache.set("products:*::", [])
    cache.set("products:t=lamp::", [])
    cache.set("other:key", 1)
    cache.close()

    assert main.clear_product_cache() == 0
    assert "Removed 2" in capsys.readouterr().out

    cache = CacheStore(cli_settings.cache_db_path)
    try:
        assert cache.keys("products:*") == []
        assert cache.get("other:key") == 1
    finally:
        cache.close()

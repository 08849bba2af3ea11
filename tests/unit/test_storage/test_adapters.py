# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for storage adapters."""

import pytest

from session_lifecycle.config import HOUR_MS
from session_lifecycle.services.session_store import SessionStore
from session_lifecycle.storage.base import Cookie, StorageError
from session_lifecycle.storage.device import StaticDeviceIdProvider
from session_lifecycle.storage.memory import MemoryCookieJar, MemoryStorage
from session_lifecycle.storage.sql import SqlStorage, build_engine


@pytest.fixture
def sql_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'session.db'}")
    yield engine
    engine.dispose()


class TestMemoryStorage:
    """Tests for MemoryStorage."""

    def test_set_get_remove(self):
        storage = MemoryStorage()
        storage.set("key", "value")
        assert storage.get("key") == "value"

        storage.remove("key")
        assert storage.get("key") is None

    def test_remove_missing_key(self):
        MemoryStorage().remove("missing")

    def test_initial_values(self):
        storage = MemoryStorage({"a": "1"})
        assert storage.keys() == ["a"]


class TestSqlStorage:
    """Tests for SqlStorage."""

    def test_set_get_overwrite(self, sql_engine):
        storage = SqlStorage(sql_engine, "marketplace")

        storage.set("auth_token", "a1")
        storage.set("auth_token", "a2")

        assert storage.get("auth_token") == "a2"

    def test_remove(self, sql_engine):
        storage = SqlStorage(sql_engine)
        storage.set("key", "value")

        storage.remove("key")
        storage.remove("key")

        assert storage.get("key") is None

    def test_namespaces_are_isolated(self, sql_engine):
        first = SqlStorage(sql_engine, "first")
        second = SqlStorage(sql_engine, "second")

        first.set("key", "one")

        assert second.get("key") is None

    def test_survives_new_engine(self, tmp_path):
        """Values outlive the engine that wrote them."""
        url = f"sqlite:///{tmp_path / 'durable.db'}"
        engine = build_engine(url)
        SqlStorage(engine).set("key", "value")
        engine.dispose()

        reopened = build_engine(url)
        assert SqlStorage(reopened).get("key") == "value"
        reopened.dispose()

    def test_write_failure_raises_storage_error(self, sql_engine):
        storage = SqlStorage(sql_engine)
        with sql_engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE session_storage_entries")

        with pytest.raises(StorageError):
            storage.set("key", "value")

    def test_read_failure_raises_storage_error(self, sql_engine):
        """A broken database is not reported as a missing key."""
        storage = SqlStorage(sql_engine)
        with sql_engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE session_storage_entries")

        with pytest.raises(StorageError):
            storage.get("auth_token")

    def test_read_failure_reads_as_no_session(
        self, sql_engine, guest_user, clock, cookies
    ):
        storage = SqlStorage(sql_engine)
        store = SessionStore(
            storage, cookies, StaticDeviceIdProvider("device-1"), clock=clock
        )
        store.save_session(guest_user, "a1", "r1", clock() + HOUR_MS)
        with sql_engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE session_storage_entries")

        assert store.has_session() is False
        assert store.get_access_token() is None

    def test_backs_session_store(self, sql_engine, guest_user, clock, cookies):
        storage = SqlStorage(sql_engine)
        store = SessionStore(
            storage, cookies, StaticDeviceIdProvider("device"), clock=clock
        )
        saved = store.save_session(guest_user, "a1", "r1", clock() + HOUR_MS)

        reloaded = SessionStore(
            SqlStorage(sql_engine),
            cookies,
            StaticDeviceIdProvider("device"),
            clock=clock,
        )

        assert reloaded.load_session() == saved


class TestMemoryCookieJar:
    """Tests for MemoryCookieJar."""

    def test_expired_cookie_hidden(self, clock):
        jar = MemoryCookieJar(clock)
        jar.set("auth_token", "a1", expires_at=clock() + 1000)

        assert jar.get("auth_token") == "a1"
        clock.advance(1000)
        assert jar.get("auth_token") is None
        assert jar.get_cookie("auth_token").value == "a1"
        assert jar.as_dict() == {}

    def test_delete(self, clock):
        jar = MemoryCookieJar(clock)
        jar.set("user_type", "guest", expires_at=clock() + 1000)

        jar.delete("user_type")
        jar.delete("user_type")

        assert jar.get_cookie("user_type") is None

    def test_keeps_cookie_attributes(self, clock):
        jar = MemoryCookieJar(clock)
        jar.set("user_type", "admin", expires_at=clock() + 1000, secure=True)

        assert jar.get_cookie("user_type") == Cookie(
            "user_type", "admin", expires_at=clock() + 1000, secure=True
        )

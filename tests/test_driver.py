from __future__ import annotations

import sqlite3

import mysql.connector
import pytest

from multido import driver
from multido.config import Environment


class FakeCursor:
    def __init__(self, conn, **kwargs):
        self.conn = conn
        self.kwargs = kwargs
        self.description = None
        self.rowcount = 7
        self.closed = False

    def execute(self, statement, params=None):
        self.conn.executed.append((statement, params))
        if statement.startswith("SELECT"):
            self.description = (("a",),)

    def fetchall(self):
        self.conn.fetched += 1
        return []

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, autocommit=True):
        self.autocommit = autocommit
        self.executed = []
        self.cursors = []
        self.fetched = 0
        self.committed = False
        self.closed = False

    def cursor(self, **kwargs):
        cur = FakeCursor(self, **kwargs)
        self.cursors.append(cur)
        return cur

    def commit(self):
        self.committed = True

    def close(self):
        self.closed = True


class TestManualCommit:
    def test_autocommit_turned_off_and_restored(self):
        conn = FakeConnection(autocommit=True)
        with driver.manual_commit(conn):
            assert conn.autocommit is False
        assert conn.autocommit is True

    def test_restored_on_exception(self):
        conn = FakeConnection(autocommit=True)
        with pytest.raises(RuntimeError):
            with driver.manual_commit(conn):
                raise RuntimeError("boom")
        assert conn.autocommit is True

    def test_manual_connection_left_alone(self):
        conn = FakeConnection(autocommit=False)
        with driver.manual_commit(conn):
            assert conn.autocommit is False
        assert conn.autocommit is False

    def test_connection_without_autocommit_attribute(self):
        conn = FakeConnection()
        del conn.autocommit
        with driver.manual_commit(conn) as entered:
            assert entered is conn
        assert not hasattr(conn, "autocommit")

    def test_legacy_sqlite_begins_transaction(self, dbh):
        with driver.manual_commit(dbh):
            assert dbh.isolation_level is None
            assert dbh.in_transaction
            dbh.execute("CREATE TABLE t (a)")
            dbh.rollback()
        assert dbh.isolation_level == ""
        assert dbh.execute("SELECT name FROM sqlite_master").fetchall() == []

    def test_legacy_sqlite_joins_open_transaction(self, dbh):
        dbh.execute("CREATE TABLE t (a)")
        dbh.isolation_level = None
        dbh.execute("BEGIN")
        dbh.execute("INSERT INTO t VALUES (1)")
        with driver.manual_commit(dbh):
            assert dbh.in_transaction
        dbh.rollback()
        assert dbh.execute("SELECT a FROM t").fetchall() == []


class TestErrorClass:
    def test_sqlite(self, dbh):
        assert driver.error_class(dbh) is sqlite3.Error

    def test_connection_extension(self):
        class Conn:
            Error = KeyError

        assert driver.error_class(Conn()) is KeyError

    def test_fallback(self):
        assert driver.error_class(object()) is Exception


class TestRunStatement:
    def test_attr_and_params(self):
        conn = FakeConnection()
        assert driver.run_statement(conn, "INSERT INTO t VALUES (%s)", {"buffered": True}, [1]) == 7
        assert conn.executed == [("INSERT INTO t VALUES (%s)", [1])]
        assert conn.cursors[0].kwargs == {"buffered": True}
        assert conn.cursors[0].closed

    def test_result_set_is_drained(self):
        conn = FakeConnection()
        driver.run_statement(conn, "SELECT 1")
        assert conn.executed == [("SELECT 1", None)]
        assert conn.fetched == 1

    def test_sqlite_rowcount(self, dbh):
        driver.run_statement(dbh, "CREATE TABLE t (a)")
        assert driver.run_statement(dbh, "INSERT INTO t VALUES (?), (?)", params=(1, 2)) == 2


class TestConnection:
    def test_sqlite_commits_and_closes(self, tmp_path):
        db_file = tmp_path / "test.db"
        env = Environment("dev", {"driver": "sqlite", "database": str(db_file)})
        with driver.connection(env) as conn:
            conn.execute("CREATE TABLE t (a)")
            conn.execute("INSERT INTO t VALUES (1)")

        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")

        check = sqlite3.connect(db_file)
        try:
            assert check.execute("SELECT a FROM t").fetchall() == [(1,)]
        finally:
            check.close()

    def test_mysql(self, monkeypatch):
        calls = []
        fake = FakeConnection(autocommit=False)

        def fake_connect(**kwargs):
            calls.append(kwargs)
            return fake

        monkeypatch.setattr(mysql.connector, "connect", fake_connect)
        env = Environment(
            "prod",
            {"host": "db", "database": "app", "user": "app", "password": "secret"},
        )
        with driver.connection(env) as conn:
            assert conn is fake

        assert calls == [
            {
                "host": "db",
                "port": 3306,
                "user": "app",
                "password": "secret",
                "database": "app",
                "autocommit": False,
            }
        ]
        assert fake.committed and fake.closed

    def test_closed_on_error(self, monkeypatch):
        fake = FakeConnection(autocommit=False)
        monkeypatch.setattr(mysql.connector, "connect", lambda **kw: fake)
        env = Environment("prod", {"host": "db", "database": "app", "user": "app"})
        with pytest.raises(RuntimeError):
            with driver.connection(env):
                raise RuntimeError("boom")
        assert fake.closed and not fake.committed

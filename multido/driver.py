from __future__ import annotations

import importlib
import logging
import sqlite3
import typing as t
from contextlib import contextmanager

import mysql.connector

from multido.config import Environment

log = logging.getLogger(__name__)

# Python >= 3.12 exposes this; older releases only know the legacy mode.
_SQLITE_LEGACY = getattr(sqlite3, "LEGACY_TRANSACTION_CONTROL", -1)


@contextmanager
def connection(env: Environment):
    """
    Context‑manager that yields a DB‑API connection for *env*.

    Whatever is still pending when the block exits cleanly is committed; the
    connection is always closed.
    """
    if env.driver == "sqlite":
        conn = sqlite3.connect(env.database)
    else:
        conn = mysql.connector.connect(**env.dsn(), autocommit=False)
    log.debug("Opened %s connection for environment %r", env.driver, env.name)

    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def _is_legacy_sqlite(conn) -> bool:
    return isinstance(conn, sqlite3.Connection) and (
        getattr(conn, "autocommit", _SQLITE_LEGACY) == _SQLITE_LEGACY
    )


@contextmanager
def manual_commit(conn):
    """
    Turn auto‑commit off and begin a transaction on *conn*.

    The caller is expected to ``commit()`` or ``rollback()`` inside the
    block.  The prior auto‑commit setting is restored on every exit path.
    """
    if _is_legacy_sqlite(conn):
        if conn.in_transaction:
            # join it; assigning isolation_level = None would commit it
            yield conn
            return
        # sqlite3 only opens implicit transactions before DML, so take over
        # transaction control and issue BEGIN ourselves.
        prior = conn.isolation_level
        if prior is not None:
            conn.isolation_level = None
        try:
            conn.execute("BEGIN")
            yield conn
        finally:
            if prior is not None:
                conn.isolation_level = prior
        return

    prior = getattr(conn, "autocommit", False)
    if prior:
        conn.autocommit = False
    try:
        # DB-API connections without auto-commit are always inside a
        # transaction, there is nothing to begin explicitly.
        yield conn
    finally:
        if prior:
            conn.autocommit = prior


def error_class(conn) -> type[Exception]:
    """
    Return the DB‑API ``Error`` exception of the driver that created *conn*.

    Uses the optional ``Connection.Error`` extension when available, otherwise
    walks up the module of the connection class (``mysql.connector.connection``
    → ``mysql.connector`` → ``mysql``) looking for an ``Error`` attribute.
    """
    err = getattr(conn, "Error", None)
    if isinstance(err, type) and issubclass(err, Exception):
        return err

    parts = type(conn).__module__.split(".")
    while parts:
        try:
            module = importlib.import_module(".".join(parts))
        except ImportError:
            module = None
        err = getattr(module, "Error", None)
        if isinstance(err, type) and issubclass(err, Exception):
            return err
        parts.pop()

    log.debug("No DB-API Error found for %s, catching Exception", type(conn).__name__)
    return Exception


def run_statement(
    conn,
    statement: str,
    attr: dict[str, t.Any] | None = None,
    params: t.Sequence[t.Any] | None = None,
) -> int:
    """
    Execute one statement on a fresh cursor and return its ``rowcount``.

    *attr* is passed to ``conn.cursor()``.  A result set, if any, is fetched
    and discarded so the connection is free for the next statement.
    """
    cur = conn.cursor(**(attr or {}))
    try:
        if params:
            cur.execute(statement, params)
        else:
            cur.execute(statement)
        if cur.description is not None:
            cur.fetchall()
        return cur.rowcount
    finally:
        cur.close()
